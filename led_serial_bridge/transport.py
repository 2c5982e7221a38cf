from __future__ import annotations

import serial

from .config import DEFAULT_BAUDRATE


class SerialTransport:
    """
    Thin wrapper around a pyserial port used by the bridge.

    Reads return whatever bytes are available (at least one, or nothing when the
    read timeout expires) so the caller can frame them itself.
    """

    _serial: serial.Serial

    def __init__(self, port: str, baudrate: int = DEFAULT_BAUDRATE, timeout: float = 0.1, *, write_timeout: float = 1.0, **serial_kwargs) -> None:
        """
        Open the serial port.
        Args:
            port (str): Serial port name or pyserial URL (e.g. socket://host:port, loop://)
            baudrate (int): Baud rate
            timeout (float): Read timeout in seconds
            write_timeout (float): Write timeout in seconds
            serial_kwargs: Additional serial.Serial arguments
        Raises:
            serial.SerialException: If the port cannot be opened
        """
        self._serial = serial.serial_for_url(port, baudrate=baudrate, timeout=timeout, write_timeout=write_timeout, **serial_kwargs)

    @property
    def is_open(self) -> bool:
        return bool(self._serial.is_open)

    def close(self) -> None:
        """
        Close the serial port. Safe to call more than once.
        """
        try:
            self._serial.close()
        except (serial.SerialException, OSError):
            pass

    def write(self, data: bytes) -> int:
        """
        Write raw bytes and flush them to the device.
        Returns:
            int: Number of bytes written
        Raises:
            serial.SerialException: On any port-level failure
        """
        written = self._serial.write(data)
        self._serial.flush()
        return written or 0

    def read(self) -> bytes:
        """
        Read the bytes currently waiting, or block for one until the read timeout.
        Returns:
            bytes: Received data, empty on timeout
        Raises:
            serial.SerialException: If the port was closed or the device went away
        """
        n = self._serial.in_waiting or 1
        return self._serial.read(n)
