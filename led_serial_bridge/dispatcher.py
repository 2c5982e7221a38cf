from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Protocol

import serial

from .errors import MalformedRequest, NotConnected, WriteFailed

_logger = logging.getLogger(__name__)

TERMINATOR = "\n"


class Writable(Protocol):
    @property
    def connected(self) -> bool: ...

    def write(self, data: bytes) -> int: ...


def validate_command(command: str) -> str:
    """Reject commands that cannot be sent as a single ASCII line."""
    if not isinstance(command, str) or not command:
        raise MalformedRequest("Command is required")
    if "\n" in command or "\r" in command:
        raise MalformedRequest("Command must be a single line")
    if not command.isascii():
        raise MalformedRequest("Command must be ASCII")
    return command


class CommandDispatcher:
    """
    Writes newline-terminated commands to whichever connection is current.

    The dispatcher does not wait for the device to answer; state changes are
    observed separately on the read side.
    """

    def __init__(self, connection: Callable[[], Optional[Writable]]) -> None:
        """
        Args:
            connection: Returns the live connection, or None when disconnected
        """
        self._connection = connection
        self._write_lock = threading.Lock()

    def send(self, command: str) -> None:
        """
        Send one command.
        Raises:
            MalformedRequest: If the command is empty or not a single ASCII line
            NotConnected: If no connection is open (nothing is written)
            WriteFailed: If the transport rejects the write
        """
        validate_command(command)
        conn = self._connection()
        if conn is None or not conn.connected:
            raise NotConnected("Device not connected")

        _logger.info("Sending command: %s", command)
        data = (command + TERMINATOR).encode("ascii")
        with self._write_lock:
            try:
                conn.write(data)
            except (serial.SerialException, OSError) as e:
                if not conn.connected:
                    raise NotConnected("Device disconnected during write") from e
                _logger.warning("Write error: %s", e)
                raise WriteFailed(str(e)) from e
        _logger.debug("Command sent: %s", command)
