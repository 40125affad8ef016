from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import DEFAULT_BASE_URL, load_config

_READING = {
    "id": "1714564800000000000",
    "sensorId": "S1",
    "temperature": 21.5,
    "humidity": 55.0,
    "soilMoisture": 42.0,
    "airHumidity": 61.0,
    "battery": 88.0,
    "timestamp": "2024-05-01T12:00:00Z",
}

_STATE = {**_READING, "name": "Sensor S1", "lat": 34.6807, "lng": -1.9102, "active": True, "lastUpdate": "2024-05-01T12:00:00Z"}


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.sent: List[tuple[str, str, str]] = []
        self.history_calls: List[tuple[str, Optional[int]]] = []
        self.latest_calls: List[Optional[int]] = []
        self.events: List[Dict[str, Any]] = [
            {"type": "initial", "data": [_STATE]},
            {"type": "update", "data": _READING},
            {"type": "update", "data": {**_READING, "sensorId": "S2"}},
            {"type": "update", "data": {**_READING, "sensorId": "S3"}},
        ]
        self.closed = False

    def send_reading(self, sensor_id: str, temperature: str, humidity: str) -> Dict[str, Any]:
        self.sent.append((sensor_id, temperature, humidity))
        return {"success": True, "message": "Reading received and broadcast.", "data": _READING}

    def list_sensors(self) -> List[Dict[str, Any]]:
        return [_STATE]

    def latest(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self.latest_calls.append(limit)
        return [_STATE]

    def history(self, sensor_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        self.history_calls.append((sensor_id, limit))
        return []

    def stats(self) -> List[Dict[str, Any]]:
        return [{"sensorId": "S1", "temperature": 21.5, "humidity": 55.0, "soilMoisture": 42.0, "airHumidity": 61.0}]

    def health(self) -> Dict[str, Any]:
        return {"status": "ok", "mode": "in-memory streaming", "observers": 2, "storedReadings": 7, "activeSensors": 3}

    def stream_events(self) -> Iterator[Dict[str, Any]]:
        yield from self.events

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_send_command(stub: StubClient, runner: CliRunner) -> None:
    result = runner.invoke(app, ["send", "S1", "21.5", "55"])

    assert result.exit_code == 0
    assert stub.sent == [("S1", "21.5", "55")]
    assert "Reading received" in result.stdout
    assert "sensorId: S1" in result.stdout
    assert stub.closed is True


def test_sensors_and_latest_commands(stub: StubClient, runner: CliRunner) -> None:
    result = runner.invoke(app, ["sensors"])
    assert result.exit_code == 0
    assert "Sensors (1)" in result.stdout
    assert "S1 (Sensor S1)" in result.stdout

    result = runner.invoke(app, ["latest", "--limit", "3"])
    assert result.exit_code == 0
    assert stub.latest_calls == [3]


def test_history_command_for_unknown_sensor(stub: StubClient, runner: CliRunner) -> None:
    result = runner.invoke(app, ["history", "ghost", "-n", "5"])

    assert result.exit_code == 0
    assert stub.history_calls == [("ghost", 5)]
    assert "No readings stored" in result.stdout


def test_stats_and_health_commands(stub: StubClient, runner: CliRunner) -> None:
    stats = runner.invoke(app, ["stats"])
    assert stats.exit_code == 0
    assert "S1: temp=21.50" in stats.stdout

    health = runner.invoke(app, ["health"])
    assert health.exit_code == 0
    assert "observers: 2" in health.stdout
    assert "stored_readings: 7" in health.stdout


def test_watch_stops_after_count(stub: StubClient, runner: CliRunner) -> None:
    result = runner.invoke(app, ["watch", "--count", "2"])

    assert result.exit_code == 0
    assert "Sensors (1)" in result.stdout
    assert "[update] S1" in result.stdout
    assert "[update] S2" in result.stdout
    assert "[update] S3" not in result.stdout


def test_base_url_option_reaches_client(stub: StubClient, runner: CliRunner) -> None:
    result = runner.invoke(app, ["--base-url", "http://sensors.local:9000/", "health"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://sensors.local:9000"


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://env-host:1234")
    monkeypatch.setenv("CLI_REQUEST_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://env-host:1234"
    assert config.timeout == 30.0

    monkeypatch.delenv("API_BASE_URL")
    assert load_config().base_url == DEFAULT_BASE_URL


def test_serve_command_runs_uvicorn(monkeypatch, runner: CliRunner) -> None:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr("cli.app.uvicorn.run", lambda target, **kwargs: calls.append({"target": target, **kwargs}))

    result = runner.invoke(app, ["serve", "--port", "8080"])

    assert result.exit_code == 0
    assert calls and calls[0]["target"] == "app.main:app"
    assert calls[0]["port"] == 8080
