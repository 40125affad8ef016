from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

import typer

_READING_FIELDS = (
    "id",
    "sensorId",
    "temperature",
    "humidity",
    "soilMoisture",
    "airHumidity",
    "battery",
    "timestamp",
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Reading")
    echo_key_values((field, payload.get(field)) for field in _READING_FIELDS)


def render_sensors(sensors: Sequence[Dict[str, Any]]) -> None:
    echo_heading(f"Sensors ({len(sensors)})")
    if not sensors:
        typer.echo("No sensors have reported yet.")
        return
    for sensor in sensors:
        typer.echo(
            f"  - {sensor.get('sensorId')} ({sensor.get('name')}) "
            f"temp={_fmt(sensor.get('temperature'))} "
            f"humidity={_fmt(sensor.get('humidity'))} "
            f"battery={_fmt(sensor.get('battery'))} "
            f"last_update={sensor.get('lastUpdate')}"
        )


def render_history(sensor_id: str, readings: Sequence[Dict[str, Any]]) -> None:
    echo_heading(f"History for {sensor_id} ({len(readings)})")
    if not readings:
        typer.echo("No readings stored for this sensor.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('timestamp')} "
            f"temp={_fmt(reading.get('temperature'))} "
            f"humidity={_fmt(reading.get('humidity'))}"
        )


def render_stats(stats: Sequence[Dict[str, Any]]) -> None:
    echo_heading("Global Stats")
    if not stats:
        typer.echo("No sensors have reported yet.")
        return
    for entry in stats:
        typer.echo(
            f"  - {entry.get('sensorId')}: "
            f"temp={_fmt(entry.get('temperature'))} "
            f"humidity={_fmt(entry.get('humidity'))} "
            f"soil={_fmt(entry.get('soilMoisture'))} "
            f"air={_fmt(entry.get('airHumidity'))}"
        )


def render_health(payload: Dict[str, Any]) -> None:
    echo_heading("Health")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("mode", payload.get("mode")),
            ("observers", payload.get("observers")),
            ("stored_readings", payload.get("storedReadings")),
            ("active_sensors", payload.get("activeSensors")),
        ]
    )


def render_event(event: Dict[str, Any]) -> None:
    kind = event.get("type")
    data = event.get("data")
    if kind == "initial":
        render_sensors(data or [])
        return
    if kind == "update" and isinstance(data, dict):
        typer.echo(
            f"[update] {data.get('sensorId')} "
            f"temp={_fmt(data.get('temperature'))} "
            f"humidity={_fmt(data.get('humidity'))} "
            f"at {data.get('timestamp')}"
        )
        return
    typer.echo(f"[{kind}] {data}")
