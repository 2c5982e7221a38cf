from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

try:  # Python 3.11+
    import tomllib as _toml
except ModuleNotFoundError:  # pragma: no cover
    import tomli as _toml  # type: ignore

_logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "LED_BRIDGE_CONFIG"
DEFAULT_CONFIG_PATH = "config.toml"

DEFAULT_BAUDRATE: int = 9600
DEFAULT_MANUFACTURERS: Tuple[str, ...] = ("Arduino", "FTDI", "CH340", "CP210", "wch.cn", "QinHeng")


@dataclass(frozen=True)
class BridgeConfig:
    """
    Runtime settings for the bridge.

    Attributes:
        serial_port: Explicit serial port; when set, discovery is skipped
        baudrate: Serial baud rate
        timeout: Serial read timeout in seconds (bounds how fast the reader notices a close)
        write_timeout: Serial write timeout in seconds
        max_line_len: Longest inbound line kept before the framer drops it
        manufacturers: Ordered manufacturer substrings used by discovery
        fallback_port: Port tried when no manufacturer matches
        settle_delay: Seconds to wait after a command before reading state back
        autoconnect: Connect to the device when the server starts
        host: HTTP bind address
        http_port: HTTP port
        cors_origins: Origins allowed by the CORS middleware
    """
    serial_port: Optional[str] = None
    baudrate: int = DEFAULT_BAUDRATE
    timeout: float = 0.1
    write_timeout: float = 1.0
    max_line_len: int = 1024
    manufacturers: Tuple[str, ...] = DEFAULT_MANUFACTURERS
    fallback_port: Optional[str] = None
    settle_delay: float = 0.1
    autoconnect: bool = True
    host: str = "0.0.0.0"
    http_port: int = 3001
    cors_origins: Tuple[str, ...] = field(default=("*",))

    def override(self, **changes) -> "BridgeConfig":
        """Return a copy with every non-None keyword applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _load_toml(config_path: str) -> dict:
    """Load a TOML file, returning an empty dict when it is missing or invalid."""
    try:
        with open(config_path, "rb") as f:
            return _toml.load(f)
    except FileNotFoundError:
        _logger.info("Config file %s not found. Using default values.", config_path)
        return {}
    except (_toml.TOMLDecodeError, OSError) as e:
        _logger.warning("Failed to parse config %s: %s. Using default values.", config_path, e)
        return {}


def _optional_str(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def config_from_dict(data: dict) -> BridgeConfig:
    """Build a BridgeConfig from parsed TOML sections."""
    serial_cfg = data.get("serial", {})
    discovery_cfg = data.get("discovery", {})
    bridge_cfg = data.get("bridge", {})
    server_cfg = data.get("server", {})
    defaults = BridgeConfig()

    return BridgeConfig(
        serial_port=_optional_str(serial_cfg.get("port")),
        baudrate=int(serial_cfg.get("baudrate", defaults.baudrate)),
        timeout=float(serial_cfg.get("timeout", defaults.timeout)),
        write_timeout=float(serial_cfg.get("write_timeout", defaults.write_timeout)),
        max_line_len=int(serial_cfg.get("max_line_len", defaults.max_line_len)),
        manufacturers=tuple(str(m) for m in discovery_cfg.get("manufacturers", defaults.manufacturers)),
        fallback_port=_optional_str(discovery_cfg.get("fallback_port")),
        settle_delay=float(bridge_cfg.get("settle_delay", defaults.settle_delay)),
        autoconnect=bool(bridge_cfg.get("autoconnect", defaults.autoconnect)),
        host=str(server_cfg.get("host", defaults.host)),
        http_port=int(server_cfg.get("port", defaults.http_port)),
        cors_origins=tuple(str(o) for o in server_cfg.get("cors_origins", defaults.cors_origins)),
    )


def load_config(config_path: Optional[str] = None) -> BridgeConfig:
    """
    Load bridge configuration.

    Args:
        config_path: TOML file to read. Falls back to $LED_BRIDGE_CONFIG, then config.toml.

    Returns:
        BridgeConfig with file values applied over the defaults
    """
    path = config_path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return config_from_dict(_load_toml(path))
