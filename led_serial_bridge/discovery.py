from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from serial.tools import list_ports  # type: ignore

from .config import DEFAULT_MANUFACTURERS
from .errors import DeviceNotFound

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidatePort:
    """A serial port seen during enumeration."""

    path: str
    manufacturer: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.path} ({self.manufacturer})"


PortLister = Callable[[], Iterable[CandidatePort]]


def get_available_ports() -> List[CandidatePort]:
    """Enumerate the serial ports pyserial can see."""
    return [CandidatePort(path=info.device, manufacturer=info.manufacturer) for info in list_ports.comports()]


class Discovery:
    """Serial port discovery by manufacturer string, with an optional fallback path."""

    def __init__(
        self,
        manufacturers: Sequence[str] = DEFAULT_MANUFACTURERS,
        fallback_port: Optional[str] = None,
        lister: Optional[PortLister] = None,
    ):
        """
        Initialize discovery.

        Args:
            manufacturers: Substrings matched case-sensitively against each port's manufacturer, in order of the port list
            fallback_port: Path to use when nothing matches, if that path is present
            lister: Callable returning candidate ports (default: pyserial enumeration)
        """
        self.manufacturers = tuple(manufacturers)
        self.fallback_port = fallback_port
        self._lister = lister or get_available_ports

    def candidates(self) -> List[CandidatePort]:
        return list(self._lister())

    def matches(self, candidate: CandidatePort) -> bool:
        if not candidate.manufacturer:
            return False
        return any(token in candidate.manufacturer for token in self.manufacturers)

    def select(self, candidates: Sequence[CandidatePort]) -> str:
        """
        Pick a port from the given candidates.

        Returns:
            Path of the selected port
        Raises:
            DeviceNotFound: If no candidate matches and the fallback is absent
        """
        for candidate in candidates:
            if self.matches(candidate):
                return candidate.path

        if self.fallback_port:
            for candidate in candidates:
                if candidate.path == self.fallback_port:
                    _logger.info("Auto-detection failed, trying %s...", self.fallback_port)
                    return candidate.path

        raise DeviceNotFound(
            "No matching serial device found. Available: "
            + (", ".join(str(c) for c in candidates) or "none")
        )

    def run(self) -> str:
        """
        Enumerate ports and select one.

        Raises:
            DeviceNotFound: If no suitable port is present
        """
        candidates = self.candidates()
        _logger.info("Available ports: %s", ", ".join(str(c) for c in candidates) or "none")
        port = self.select(candidates)
        _logger.info("Selected serial port %s", port)
        return port


def find_device(
    manufacturers: Sequence[str] = DEFAULT_MANUFACTURERS,
    fallback_port: Optional[str] = None,
    lister: Optional[PortLister] = None,
) -> Optional[str]:
    """
    Public function to discover the device port.

    Returns:
        Path to the selected serial port, or None if none found
    """
    discovery = Discovery(manufacturers=manufacturers, fallback_port=fallback_port, lister=lister)
    try:
        return discovery.run()
    except DeviceNotFound as e:
        _logger.warning("%s", e)
        return None
