from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import typer

from app.schemas import SensorView
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_outcome,
    render_processing,
    render_sensor,
    render_sensors,
    render_summary,
)
from logging_config import configure_logging
from models.errors import LineSourceError
from models.readings import NumericKind
from services.ingestion import IngestionLoop, LineSource
from services.registry import SensorRegistry
from settings import get_settings
from sources.lines import IterableLineSource
from sources.serial_port import SerialLineSource

_KIND_ALIASES = {
    "t": NumericKind.FLOAT,
    "temperature": NumericKind.FLOAT,
    "float": NumericKind.FLOAT,
    "p": NumericKind.INTEGER,
    "pressure": NumericKind.INTEGER,
    "integer": NumericKind.INTEGER,
    "int": NumericKind.INTEGER,
}


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Manage temperature and pressure sensors and ingest serial protocol lines.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _parse_kind(raw: str) -> NumericKind:
    kind = _KIND_ALIASES.get(raw.strip().lower())
    if kind is None:
        raise typer.BadParameter(
            f"Unknown sensor kind {raw!r}; use T/temperature or P/pressure."
        )
    return kind


def _parse_value(raw: str) -> Union[int, float]:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"{raw!r} is not a number.") from exc


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Registry API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Emit log records (LOG_LEVEL) on stderr.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging(get_settings().log_level if verbose else "ERROR")
    config = load_config(base_url=base_url, http_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("create")
def create_command(
    ctx: typer.Context,
    kind: str = typer.Argument(..., help="T/temperature (float) or P/pressure (integer)."),
    sensor_id: str = typer.Argument(..., help="Unique sensor id, e.g. T-001."),
) -> None:
    """Register an empty sensor."""
    state = _get_state(ctx)
    payload = state.client.create_sensor(sensor_id, _parse_kind(kind).value)
    typer.secho(
        f"Sensor {payload.get('sensor_id')} created ({payload.get('sensor_type')}).",
        fg=typer.colors.GREEN,
    )


@app.command("record")
def record_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Existing sensor id."),
    value: str = typer.Argument(..., help="Reading value; pressure sensors take integers."),
) -> None:
    """Record one reading for an existing sensor."""
    state = _get_state(ctx)
    payload = state.client.add_reading(sensor_id, _parse_value(value))
    typer.secho(
        f"ID: {sensor_id}. Value: {value} ({payload.get('kind')})",
        fg=typer.colors.GREEN,
    )


@app.command("show")
def show_command(
    ctx: typer.Context,
    sensor_id: Optional[str] = typer.Argument(None, help="Sensor id; omit to show all sensors."),
) -> None:
    """Show readings and aggregates for one or all sensors."""
    state = _get_state(ctx)
    if sensor_id is None:
        render_sensors(state.client.list_sensors())
    else:
        render_sensor(state.client.get_sensor(sensor_id))


@app.command("process")
def process_command(ctx: typer.Context) -> None:
    """Compute the aggregate of every sensor (mean for pressure, minimum for temperature)."""
    state = _get_state(ctx)
    render_processing(state.client.list_sensors())


@app.command("send")
def send_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="File of protocol lines."),
) -> None:
    """Send a file of 'T <id> <value>' / 'P <id> <value>' lines to the service."""
    state = _get_state(ctx)
    lines = file.read_text(encoding="utf-8").splitlines()
    typer.echo(f"Sending {len(lines)} lines to {state.config.base_url} ...")
    render_summary(state.client.send_lines(lines))


@app.command("listen")
def listen_command(
    port: Optional[str] = typer.Option(
        None, "--port", "-p", help="Serial device, e.g. /dev/ttyACM0 (defaults to SENSOR_SERIAL_PORT)."
    ),
    baud: Optional[int] = typer.Option(
        None, "--baud", help="Baud rate (defaults to SENSOR_SERIAL_BAUDRATE or 9600)."
    ),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", exists=True, dir_okay=False, readable=True,
        help="Replay protocol lines from a file instead of a serial port.",
    ),
) -> None:
    """Ingest protocol lines locally and process the sensors at end of stream or Ctrl+C."""
    settings = get_settings()
    serial_port = port or settings.serial_port
    if file is None and not serial_port:
        raise typer.BadParameter("Provide --port, --file or SENSOR_SERIAL_PORT.")

    with SensorRegistry() as registry:
        handle = None
        source: LineSource
        try:
            if file is not None:
                handle = file.open("r", encoding="utf-8")
                source = IterableLineSource(handle)
                typer.echo(f"Replaying {file} ...")
            else:
                assert serial_port is not None
                source = SerialLineSource(
                    serial_port,
                    baudrate=baud or settings.serial_baudrate,
                    timeout=settings.serial_timeout,
                    settle_s=settings.serial_settle_seconds,
                )
                typer.echo(f"Listening on {serial_port}; press Ctrl+C to stop.")
        except LineSourceError as exc:
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        except KeyboardInterrupt:
            if handle is not None:
                handle.close()
            typer.echo()
            typer.echo("Stopped before the source was ready.")
            return

        loop = IngestionLoop(registry, source)
        failed = False
        try:
            loop.run(on_outcome=render_outcome)
        except KeyboardInterrupt:
            loop.cancel()
            typer.echo()
            typer.echo("Stopped.")
        except LineSourceError as exc:
            failed = True
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
        finally:
            if handle is not None:
                handle.close()
            if isinstance(source, SerialLineSource):
                source.close()

        typer.echo(f"Lines read: {loop.line_number}. Readings accepted: {loop.accepted}.")
        typer.echo()
        render_processing(
            SensorView.from_snapshot(snapshot).model_dump(mode="json")
            for snapshot in registry.snapshots()
        )

    if failed:
        raise typer.Exit(code=1)
