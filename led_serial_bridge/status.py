"""Interpretation of status lines reported by the device."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Union

FIRST_CHANNEL = 2
LAST_CHANNEL = 6
CHANNEL_IDS = tuple(range(FIRST_CHANNEL, LAST_CHANNEL + 1))

ALL_ON_PHRASE = "All LEDs ON"
ALL_OFF_PHRASE = "All LEDs OFF"

_PIN_LINE_RE = re.compile(r"Pin ([0-9]+) (ON|OFF)")


@dataclass(frozen=True)
class ChannelEvent:
    """One channel reported on or off."""

    pin: int
    on: bool


@dataclass(frozen=True)
class AllChannelsEvent:
    """Every channel reported on or off at once."""

    on: bool


StatusEvent = Union[ChannelEvent, AllChannelsEvent]


def is_valid_channel(pin: int) -> bool:
    return FIRST_CHANNEL <= pin <= LAST_CHANNEL


def parse_status_line(line: str) -> List[StatusEvent]:
    """Return the state changes described by one line.

    The rules are independent, so a single line can yield more than one event.
    Unrecognised text and out-of-range pins yield nothing.
    """
    events: List[StatusEvent] = []

    match = _PIN_LINE_RE.search(line)
    if match:
        pin = int(match.group(1))
        if is_valid_channel(pin):
            events.append(ChannelEvent(pin=pin, on=match.group(2) == "ON"))

    if ALL_ON_PHRASE in line:
        events.append(AllChannelsEvent(on=True))
    if ALL_OFF_PHRASE in line:
        events.append(AllChannelsEvent(on=False))

    return events
