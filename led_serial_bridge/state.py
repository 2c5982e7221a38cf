from __future__ import annotations

import logging
import threading
from typing import Iterable, List

from .status import CHANNEL_IDS, FIRST_CHANNEL, AllChannelsEvent, ChannelEvent, StatusEvent, is_valid_channel

_logger = logging.getLogger(__name__)


class DeviceState:
    """
    Last known on/off state of each channel, index i being channel i+2.

    All access goes through a lock; readers get copies, never the live list.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._states: List[bool] = [False] * len(CHANNEL_IDS)

    def snapshot(self) -> List[bool]:
        with self._lock:
            return list(self._states)

    def set_channel(self, pin: int, on: bool) -> bool:
        """Set one channel. Returns False, changing nothing, for pins outside 2..6."""
        if not is_valid_channel(pin):
            return False
        with self._lock:
            self._set_channel_locked(pin, on)
        return True

    def set_all(self, on: bool) -> None:
        with self._lock:
            self._set_all_locked(on)

    def apply(self, events: Iterable[StatusEvent]) -> None:
        """Apply the events parsed from one line in order, as a single update."""
        with self._lock:
            for event in events:
                if isinstance(event, ChannelEvent):
                    if is_valid_channel(event.pin):
                        self._set_channel_locked(event.pin, event.on)
                        _logger.debug("Channel %d -> %s", event.pin, "ON" if event.on else "OFF")
                elif isinstance(event, AllChannelsEvent):
                    self._set_all_locked(event.on)
                    _logger.debug("All channels -> %s", "ON" if event.on else "OFF")

    # callers hold self._lock

    def _set_channel_locked(self, pin: int, on: bool) -> None:
        self._states[pin - FIRST_CHANNEL] = bool(on)

    def _set_all_locked(self, on: bool) -> None:
        self._states = [bool(on)] * len(CHANNEL_IDS)
