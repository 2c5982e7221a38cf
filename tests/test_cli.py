from __future__ import annotations

import pytest
from click.testing import CliRunner

from led_serial_bridge import bridge, cli, discovery
from led_serial_bridge.discovery import CandidatePort


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def no_config(tmp_path):
    return ["-c", str(tmp_path / "none.toml")]


def test_ports_marks_selected(runner, no_config, monkeypatch) -> None:
    monkeypatch.setattr(
        cli,
        "get_available_ports",
        lambda: [CandidatePort("COM3", "Unknown"), CandidatePort("COM5", "wch.cn")],
    )
    result = runner.invoke(cli.main, no_config + ["ports"])
    assert result.exit_code == 0, result.output
    assert "  COM3\tUnknown" in result.output
    assert "* COM5\twch.cn" in result.output


def test_ports_without_match(runner, no_config, monkeypatch) -> None:
    monkeypatch.setattr(cli, "get_available_ports", lambda: [CandidatePort("COM3", None)])
    result = runner.invoke(cli.main, no_config + ["ports"])
    assert result.exit_code == 0, result.output
    assert "No port matches" in result.output


def test_send_writes_command(runner, no_config, monkeypatch, factory) -> None:
    monkeypatch.setattr(bridge, "SerialTransport", factory)
    result = runner.invoke(cli.main, no_config + ["send", "ON3", "-p", "/dev/ttyUSB0", "-w", "0"])
    assert result.exit_code == 0, result.output
    assert "Sent 'ON3' to /dev/ttyUSB0" in result.output
    assert "State: 2:off 3:off" in result.output
    assert factory.last.written == [b"ON3\n"]
    assert not factory.last.is_open


def test_send_without_device(runner, no_config, monkeypatch, factory) -> None:
    monkeypatch.setattr(bridge, "SerialTransport", factory)
    monkeypatch.setattr(discovery, "get_available_ports", lambda: [])
    result = runner.invoke(cli.main, no_config + ["send", "ON3"])
    assert result.exit_code != 0
    assert "-p/--port" in result.output
    assert factory.opened == []


def test_send_port_busy(runner, no_config, monkeypatch, factory) -> None:
    factory.unavailable.add("/dev/ttyUSB0")
    monkeypatch.setattr(bridge, "SerialTransport", factory)
    result = runner.invoke(cli.main, no_config + ["send", "ON3", "-p", "/dev/ttyUSB0"])
    assert result.exit_code != 0
    assert "Failed to open /dev/ttyUSB0" in result.output


def test_send_prints_device_lines(runner, no_config, monkeypatch, factory) -> None:
    factory.replies.append(b"Pin 3 ON\r\n")
    monkeypatch.setattr(bridge, "SerialTransport", factory)
    result = runner.invoke(cli.main, no_config + ["send", "ON3", "-p", "/dev/ttyUSB0", "-w", "0.5"])
    assert result.exit_code == 0, result.output
    assert "< Pin 3 ON" in result.output
    assert "State: 2:off 3:ON" in result.output
