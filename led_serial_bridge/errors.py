"""Error types raised by the LED serial bridge."""


class BridgeError(Exception):
    """Base error for the bridge."""


class DeviceNotFound(BridgeError):
    """Raised when discovery finds no usable serial port."""


class ConnectError(BridgeError):
    """Raised when a serial port cannot be opened."""


class NotConnected(BridgeError):
    """Raised when a command is sent with no open connection."""


class WriteFailed(BridgeError):
    """Raised when the serial write itself fails."""


class MalformedRequest(BridgeError):
    """Raised when a caller supplies an invalid command or channel."""
