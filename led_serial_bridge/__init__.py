"""LED Serial Bridge package.

Exposes an LED controller attached over a USB-UART link as a small HTTP API,
using pyserial for the line-based device protocol.
"""

__all__ = [
    "BridgeConfig",
    "BridgeService",
    "CandidatePort",
    "CommandDispatcher",
    "DeviceState",
    "Discovery",
    "LineFramer",
    "find_device",
    "get_available_ports",
    "load_config",
    "parse_status_line",
]

from .bridge import BridgeService
from .config import BridgeConfig, load_config
from .discovery import CandidatePort, Discovery, find_device, get_available_ports
from .dispatcher import CommandDispatcher
from .framing import LineFramer
from .state import DeviceState
from .status import parse_status_line

__version__ = "0.1.0"
