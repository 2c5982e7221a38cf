"""Bridge service: owns the serial connection, the reader thread and the device state."""

from __future__ import annotations

import datetime
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

import serial

from .config import BridgeConfig
from .discovery import Discovery, PortLister
from .dispatcher import CommandDispatcher
from .errors import ConnectError, DeviceNotFound, MalformedRequest
from .framing import LineFramer
from .state import DeviceState
from .status import is_valid_channel, parse_status_line
from .transport import SerialTransport

_logger = logging.getLogger(__name__)

TransportFactory = Callable[..., SerialTransport]


def utc_timestamp() -> str:
    """ISO-8601 UTC time with millisecond precision and a Z suffix."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class BridgeStatus:
    connected: bool
    led_states: List[bool]
    timestamp: str


class Connection:
    """
    One open transport plus the thread draining it.

    The connection counts as connected until it is closed or its transport
    fails; it is never reopened.
    """

    def __init__(self, transport: SerialTransport, path: str) -> None:
        self.transport = transport
        self.path = path
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def connected(self) -> bool:
        return not self._stop.is_set() and self.transport.is_open

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    @property
    def reader_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def write(self, data: bytes) -> int:
        return self.transport.write(data)

    def start(self, target: Callable[["Connection"], None]) -> None:
        self._thread = threading.Thread(
            target=target, args=(self,), daemon=True, name=f"serial-reader-{self.path}"
        )
        self._thread.start()

    def close(self, timeout: float = 2.0) -> None:
        """Stop the reader, close the port and wait for the reader to exit."""
        self._stop.set()
        self.transport.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                _logger.warning("Reader thread for %s did not stop within %.1fs", self.path, timeout)


class BridgeService:
    """
    Single owner of the device connection and its mirrored state.

    Foreground calls (status, dispatch, set_channel, reconnect) may come from
    any thread; the reader thread updates the state as lines arrive.
    """

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        port_lister: Optional[PortLister] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.state = DeviceState()
        self.discovery = Discovery(
            manufacturers=self.config.manufacturers,
            fallback_port=self.config.fallback_port,
            lister=port_lister,
        )
        self._transport_factory = transport_factory or SerialTransport
        self._sleep = sleep
        self._on_line = on_line
        self._lock = threading.Lock()
        self._reconnect_lock = threading.Lock()
        self._connection: Optional[Connection] = None
        self.dispatcher = CommandDispatcher(self._current_connection)

    # --- connection lifecycle ---

    def _current_connection(self) -> Optional[Connection]:
        with self._lock:
            return self._connection

    @property
    def connection(self) -> Optional[Connection]:
        return self._current_connection()

    @property
    def port(self) -> Optional[str]:
        conn = self._current_connection()
        return conn.path if conn is not None and conn.connected else None

    def is_connected(self) -> bool:
        conn = self._current_connection()
        return conn is not None and conn.connected

    def find_port(self) -> str:
        """
        Return the configured port, or run discovery.
        Raises:
            DeviceNotFound: If discovery finds nothing
        """
        if self.config.serial_port:
            return self.config.serial_port
        return self.discovery.run()

    def connect(self, path: str) -> Connection:
        """
        Open the port at path and start ingesting its status lines.

        Any existing connection is closed first.
        Raises:
            ConnectError: If the port cannot be opened
        """
        self.close()
        _logger.info("Attempting connection to %s at %d baud...", path, self.config.baudrate)
        try:
            transport = self._transport_factory(
                path,
                baudrate=self.config.baudrate,
                timeout=self.config.timeout,
                write_timeout=self.config.write_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            raise ConnectError(f"Failed to open {path}: {e}") from e

        conn = Connection(transport, path)
        with self._lock:
            self._connection = conn
        conn.start(self._ingest)
        _logger.info("Device connected on %s", path)
        return conn

    def close(self) -> None:
        """Close the current connection, if any."""
        with self._lock:
            conn = self._connection
            self._connection = None
        if conn is not None:
            conn.close()
            _logger.info("Serial port %s closed", conn.path)

    def start(self) -> bool:
        """Connect to the device once, logging rather than raising on failure."""
        try:
            self.connect(self.find_port())
        except (DeviceNotFound, ConnectError) as e:
            _logger.warning("Device not connected: %s", e)
            return False
        return True

    def reconnect(self) -> bool:
        """
        Close any existing connection, rediscover and reconnect.
        Returns:
            True if a new connection is open
        """
        with self._reconnect_lock:
            self.close()
            return self.start()

    def _drop(self, conn: Connection) -> None:
        with self._lock:
            if self._connection is conn:
                self._connection = None
        conn.close()

    # --- ingestion ---

    def _ingest(self, conn: Connection) -> None:
        framer = LineFramer(max_line_len=self.config.max_line_len)
        try:
            while not conn.stopping:
                try:
                    chunk = conn.transport.read()
                except (serial.SerialException, OSError) as e:
                    if not conn.stopping:
                        _logger.warning("Serial port %s error: %s", conn.path, e)
                    break
                if not chunk:
                    continue
                for line in framer.feed(chunk):
                    self.handle_line(line)
        except Exception:
            if not conn.stopping:
                _logger.exception("Reader for %s failed", conn.path)
        finally:
            if not conn.stopping:
                self._drop(conn)
        _logger.debug("Reader for %s stopped", conn.path)

    def handle_line(self, line: str) -> None:
        """Apply one status line from the device to the state."""
        if not line:
            return
        _logger.info("Device: %s", line)
        self.state.apply(parse_status_line(line))
        if self._on_line is not None:
            self._on_line(line)

    # --- foreground operations ---

    def status(self) -> BridgeStatus:
        return BridgeStatus(connected=self.is_connected(), led_states=self.state.snapshot(), timestamp=utc_timestamp())

    def leds(self) -> List[bool]:
        return self.state.snapshot()

    def send(self, command: str) -> None:
        self.dispatcher.send(command)

    def dispatch(self, command: str) -> List[bool]:
        """
        Send a command, wait the settle delay and return the state.

        The returned state is best effort and may not reflect the command yet.
        """
        self.dispatcher.send(command)
        self._settle()
        return self.state.snapshot()

    def set_channel(self, pin: int, on: bool) -> List[bool]:
        if not is_valid_channel(pin):
            raise MalformedRequest("Pin must be between 2 and 6")
        return self.dispatch(f"{'ON' if on else 'OFF'}{pin}")

    def all_on(self) -> List[bool]:
        return self.dispatch("ALLON")

    def all_off(self) -> List[bool]:
        return self.dispatch("ALLOFF")

    def _settle(self) -> None:
        if self.config.settle_delay > 0:
            self._sleep(self.config.settle_delay)
