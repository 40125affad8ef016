"""Read-only views over the history store and the sensor registry."""

from __future__ import annotations

from typing import Any

from app.schemas import Reading, SensorStat, SensorState
from datastore.registry import DEFAULT_LATEST_LIMIT, SensorRegistry
from storage.history import DEFAULT_HISTORY_LIMIT, BoundedHistoryStore


def coerce_limit(raw: Any, default: int) -> int:
    """Parse a caller-supplied limit, falling back to ``default`` when it is unusable."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


class QueryService:
    """Pure reads for polling consumers.

    Unknown sensors are not an error: their history is simply empty.
    """

    def __init__(self, history: BoundedHistoryStore, registry: SensorRegistry) -> None:
        self._history = history
        self._registry = registry

    def get_latest(self, limit: Any = DEFAULT_LATEST_LIMIT) -> list[SensorState]:
        return self._registry.latest(coerce_limit(limit, DEFAULT_LATEST_LIMIT))

    def get_sensor_history(self, sensor_id: str, limit: Any = DEFAULT_HISTORY_LIMIT) -> list[Reading]:
        return self._history.query_by_sensor(sensor_id, coerce_limit(limit, DEFAULT_HISTORY_LIMIT))

    def list_sensors(self) -> list[SensorState]:
        return self._registry.list()

    def global_stats(self) -> list[SensorStat]:
        return [
            SensorStat(
                sensor_id=state.sensor_id,
                temperature=state.temperature,
                humidity=state.humidity,
                soil_moisture=state.soil_moisture,
                air_humidity=state.air_humidity,
            )
            for state in self._registry.list()
        ]
