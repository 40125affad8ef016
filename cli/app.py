from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_event,
    render_health,
    render_history,
    render_reading,
    render_sensors,
    render_stats,
)
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for feeding and inspecting the sensor stream service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:5137).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    if ctx.invoked_subcommand == "serve":
        return
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Identifier of the reporting sensor."),
    temperature: str = typer.Argument(..., help="Temperature reading."),
    humidity: str = typer.Argument(..., help="Humidity reading."),
) -> None:
    """Submit one reading, acting as a field producer."""
    state = _get_state(ctx)
    response = state.client.send_reading(sensor_id, temperature, humidity)
    typer.secho(response.get("message", "Reading accepted."), fg=typer.colors.GREEN)
    render_reading(response.get("data") or {})


@app.command("sensors")
def sensors_command(ctx: typer.Context) -> None:
    """List the latest state of every sensor."""
    state = _get_state(ctx)
    render_sensors(state.client.list_sensors())


@app.command("latest")
def latest_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum sensors to show."),
) -> None:
    """List the most recently updated sensors."""
    state = _get_state(ctx)
    render_sensors(state.client.latest(limit))


@app.command("history")
def history_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Identifier of the sensor."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum readings to show."),
) -> None:
    """Show the stored readings of one sensor."""
    state = _get_state(ctx)
    render_history(sensor_id, state.client.history(sensor_id, limit))


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show the last measured values of every sensor."""
    state = _get_state(ctx)
    render_stats(state.client.stats())


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Show service counters."""
    state = _get_state(ctx)
    render_health(state.client.health())


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-c",
        help="Stop after this many update events.",
    ),
) -> None:
    """Follow the live event stream."""
    state = _get_state(ctx)
    typer.echo(f"Watching {state.config.base_url} ...")
    updates = 0
    for event in state.client.stream_events():
        render_event(event)
        if event.get("type") == "update":
            updates += 1
            if count is not None and updates >= count:
                break


@app.command("serve")
def serve_command(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (defaults to SERVICE_HOST)."),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (defaults to SERVICE_PORT)."),
) -> None:
    """Run the service under uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )
