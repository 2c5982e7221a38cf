from __future__ import annotations

import queue
import time
from typing import List, Optional, Tuple

import pytest
import serial  # type: ignore

from led_serial_bridge.bridge import BridgeService
from led_serial_bridge.config import BridgeConfig
from led_serial_bridge.discovery import CandidatePort


class FakeTransport:
    """In-memory stand-in for SerialTransport; tests push inbound chunks with feed()."""

    def __init__(self, port: str, baudrate: int = 9600, timeout: float = 0.1, write_timeout: float = 1.0,
                 log: Optional[List[Tuple[str, str]]] = None) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout = min(timeout, 0.02)
        self.written: List[bytes] = []
        self.fail_writes = False
        self._chunks: "queue.Queue[object]" = queue.Queue()
        self._open = True
        self._log = log if log is not None else []
        self._log.append(("open", port))

    @property
    def is_open(self) -> bool:
        return self._open

    def feed(self, data: bytes) -> None:
        self._chunks.put(data)

    def fail(self, exc: Optional[Exception] = None) -> None:
        """Make the next read raise, as if the cable was pulled."""
        self._chunks.put(exc or serial.SerialException("device reports readiness to read but returned no data"))

    def read(self) -> bytes:
        if not self._open:
            raise serial.SerialException("Attempting to use a port that is not open")
        try:
            item = self._chunks.get(timeout=self.timeout)
        except queue.Empty:
            return b""
        if isinstance(item, Exception):
            raise item
        return item

    def write(self, data: bytes) -> int:
        if not self._open:
            raise serial.SerialException("Attempting to use a port that is not open")
        if self.fail_writes:
            raise serial.SerialTimeoutException("Write timeout")
        self.written.append(bytes(data))
        return len(data)

    def close(self) -> None:
        if self._open:
            self._open = False
            self._log.append(("close", self.port))


class FakeTransportFactory:
    """Callable used as BridgeService(transport_factory=...); records every transport it opens."""

    def __init__(self) -> None:
        self.log: List[Tuple[str, str]] = []
        self.opened: List[FakeTransport] = []
        self.unavailable: set = set()
        self.replies: List[bytes] = []

    def __call__(self, port: str, **kwargs) -> FakeTransport:
        if port in self.unavailable:
            raise serial.SerialException(f"could not open port {port}: [Errno 16] Device or resource busy")
        transport = FakeTransport(port, log=self.log, **kwargs)
        for reply in self.replies:
            transport.feed(reply)
        self.opened.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.opened[-1]


ARDUINO = CandidatePort(path="/dev/ttyACM0", manufacturer="Arduino (www.arduino.cc)")


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def candidates() -> List[CandidatePort]:
    return [CandidatePort(path="/dev/ttyS0", manufacturer=None), ARDUINO]


@pytest.fixture
def make_service(factory, candidates):
    services = []

    def _make(**config_kwargs) -> BridgeService:
        config_kwargs.setdefault("settle_delay", 0)
        svc = BridgeService(BridgeConfig(**config_kwargs), transport_factory=factory, port_lister=lambda: candidates)
        services.append(svc)
        return svc

    yield _make
    for svc in services:
        svc.close()


@pytest.fixture
def service(make_service) -> BridgeService:
    return make_service()


@pytest.fixture
def wait_until():
    def _wait(predicate, timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.005)
        return predicate()

    return _wait
