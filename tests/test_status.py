from __future__ import annotations

import pytest

from led_serial_bridge.status import AllChannelsEvent, ChannelEvent, parse_status_line


@pytest.mark.parametrize(
    "line, expected",
    [
        ("Pin 3 ON", [ChannelEvent(pin=3, on=True)]),
        ("Pin 3 OFF", [ChannelEvent(pin=3, on=False)]),
        ("Pin 2 ON", [ChannelEvent(pin=2, on=True)]),
        ("Pin 6 OFF", [ChannelEvent(pin=6, on=False)]),
        ("LED on Pin 5 ON now", [ChannelEvent(pin=5, on=True)]),
        ("All LEDs ON", [AllChannelsEvent(on=True)]),
        ("All LEDs OFF", [AllChannelsEvent(on=False)]),
        (">> All LEDs OFF <<", [AllChannelsEvent(on=False)]),
    ],
)
def test_recognised_lines(line, expected) -> None:
    assert parse_status_line(line) == expected


@pytest.mark.parametrize("line", ["Pin 1 ON", "Pin 7 ON", "Pin 0 OFF", "Pin 13 ON", "Pin 100 OFF"])
def test_out_of_range_pins_ignored(line) -> None:
    assert parse_status_line(line) == []


@pytest.mark.parametrize(
    "line",
    [
        "",
        "Arduino LED Controller Ready",
        "Unknown command: FOO",
        "pin 3 on",
        "Pin three ON",
        "Pin 3 on",
        "Pin3 ON",
        "Pin \u0663 ON",
        "Pin \uff13 OFF",
        "all leds on",
        "RAINBOW",
    ],
)
def test_unrecognised_lines_are_noops(line) -> None:
    assert parse_status_line(line) == []


def test_rules_are_independent() -> None:
    events = parse_status_line("Pin 4 ON; All LEDs OFF")
    assert events == [ChannelEvent(pin=4, on=True), AllChannelsEvent(on=False)]
