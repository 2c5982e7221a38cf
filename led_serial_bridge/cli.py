from __future__ import annotations

import logging
import time
from typing import Optional

import click

from .bridge import BridgeService
from .config import BridgeConfig, load_config
from .discovery import get_available_ports
from .errors import BridgeError, DeviceNotFound
from .status import CHANNEL_IDS


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _format_states(states) -> str:
    return " ".join(f"{pin}:{'ON' if on else 'off'}" for pin, on in zip(CHANNEL_IDS, states))


@click.group()
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), help="Path to config.toml (default: $LED_BRIDGE_CONFIG or ./config.toml)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], verbose: bool) -> None:
    """Bridge an LED controller on a serial port to a small HTTP API."""
    _setup_logging(verbose)
    ctx.obj = load_config(config_path)


@main.command()
@click.option("-p", "--port", "serial_port", help="Serial port (e.g., /dev/ttyUSB0, COM3). If not specified, will auto-discover.")
@click.option("-b", "--baudrate", type=int, help="Baud rate")
@click.option("--host", help="HTTP bind address")
@click.option("--http-port", type=int, help="HTTP port")
@click.option("--settle-delay", type=float, help="Seconds to wait after a command before reporting state")
@click.pass_obj
def serve(config: BridgeConfig, serial_port: Optional[str], baudrate: Optional[int], host: Optional[str],
          http_port: Optional[int], settle_delay: Optional[float]) -> None:
    """Run the HTTP server.

    Examples:

      # Auto-discover the board and listen on the configured port
      led-serial-bridge serve

      # Fixed serial port and HTTP port
      led-serial-bridge serve -p /dev/ttyACM0 --http-port 8080
    """
    import uvicorn

    from .server import create_app

    config = config.override(
        serial_port=serial_port, baudrate=baudrate, host=host, http_port=http_port, settle_delay=settle_delay,
    )
    service = BridgeService(config)
    app = create_app(service)
    click.echo(f"LED bridge server running on http://{config.host}:{config.http_port}")
    uvicorn.run(app, host=config.host, port=config.http_port)


@main.command()
@click.pass_obj
def ports(config: BridgeConfig) -> None:
    """List serial ports and show which one discovery would pick."""
    service = BridgeService(config)
    candidates = get_available_ports()
    if not candidates:
        click.echo("No serial ports found.")
        return
    try:
        selected = service.discovery.select(candidates)
    except DeviceNotFound:
        selected = None
    for candidate in candidates:
        marker = "*" if candidate.path == selected else " "
        click.echo(f"{marker} {candidate.path}\t{candidate.manufacturer or '-'}")
    if selected is None:
        click.echo("No port matches the manufacturer list.")


@main.command()
@click.argument("command")
@click.option("-p", "--port", "serial_port", help="Serial port (e.g., /dev/ttyUSB0, COM3). If not specified, will auto-discover.")
@click.option("-b", "--baudrate", type=int, help="Baud rate")
@click.option("-w", "--wait", type=float, default=1.0, show_default=True, help="Seconds to listen for status lines")
@click.pass_obj
def send(config: BridgeConfig, command: str, serial_port: Optional[str], baudrate: Optional[int], wait: float) -> None:
    """Send one COMMAND (e.g. ON3, OFF3, ALLON, RAINBOW) and print what the device reports.

    Examples:

      led-serial-bridge send ON3

      led-serial-bridge send ALLOFF -p COM5 -b 9600
    """
    config = config.override(serial_port=serial_port, baudrate=baudrate)
    service = BridgeService(config, on_line=lambda line: click.echo(f"< {line}"))
    try:
        port = service.find_port()
    except DeviceNotFound as e:
        raise click.ClickException(f"{e}. Specify port with -p/--port option.")

    try:
        service.connect(port)
        service.send(command)
        click.echo(f"Sent {command!r} to {port}")
        time.sleep(wait)
    except BridgeError as e:
        raise click.ClickException(str(e))
    finally:
        service.close()

    click.echo(f"State: {_format_states(service.leds())}")


if __name__ == "__main__":
    main()
