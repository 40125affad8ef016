from __future__ import annotations

import json
import logging
from collections import OrderedDict
from pathlib import Path
from threading import Lock
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.schemas import Reading, SensorState
from models.records import SensorMetadata

logger = logging.getLogger(__name__)

DEFAULT_LATEST_LIMIT = 10


class _MetadataEntry(BaseModel):
    name: str
    lat: float
    lng: float


class SensorRegistry:
    """Latest state per sensor, ordered by when each sensor was last touched."""

    def __init__(
        self,
        default_location: tuple[float, float],
        name_template: str = "Sensor {sensor_id}",
        metadata: Optional[Mapping[str, SensorMetadata]] = None,
    ) -> None:
        self._default_lat, self._default_lng = default_location
        self._name_template = name_template
        self._metadata: Dict[str, SensorMetadata] = dict(metadata or {})
        self._states: "OrderedDict[str, SensorState]" = OrderedDict()
        self._lock = Lock()

    def metadata_for(self, sensor_id: str) -> SensorMetadata:
        known = self._metadata.get(sensor_id)
        if known is not None:
            return known
        return SensorMetadata(
            name=self._name_template.format(sensor_id=sensor_id),
            lat=self._default_lat,
            lng=self._default_lng,
        )

    def upsert(self, reading: Reading, metadata: Optional[SensorMetadata] = None) -> SensorState:
        """Replace the sensor's state with ``reading`` and move it to the newest position."""

        meta = metadata or self.metadata_for(reading.sensor_id)
        state = SensorState(
            **reading.model_dump(),
            name=meta.name,
            lat=meta.lat,
            lng=meta.lng,
            active=True,
            last_update=reading.timestamp,
        )
        with self._lock:
            self._states[reading.sensor_id] = state
            self._states.move_to_end(reading.sensor_id)
        return state.model_copy(deep=True)

    def get(self, sensor_id: str) -> Optional[SensorState]:
        with self._lock:
            state = self._states.get(sensor_id)
            if state is None:
                return None
            return state.model_copy(deep=True)

    def list(self) -> list[SensorState]:
        """Return deep copies of every sensor state, least recently touched first."""

        with self._lock:
            return [state.model_copy(deep=True) for state in self._states.values()]

    def latest(self, limit: int = DEFAULT_LATEST_LIMIT) -> list[SensorState]:
        if limit <= 0:
            limit = DEFAULT_LATEST_LIMIT
        with self._lock:
            states = list(self._states.values())[-limit:]
        return [state.model_copy(deep=True) for state in states]

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)


def load_sensor_metadata(path: Optional[Path]) -> Dict[str, SensorMetadata]:
    """Read ``{sensorId: {name, lat, lng}}`` from a JSON file.

    A missing or malformed file yields no metadata; unseen sensors then use the defaults.
    """
    if path is None or not path.exists():
        return {}

    try:
        raw = path.read_text() or "{}"
        data = json.loads(raw)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable sensor metadata file %s", path, extra={"reason": str(exc)})
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring sensor metadata file %s", path, extra={"reason": "expected an object"})
        return {}

    metadata: Dict[str, SensorMetadata] = {}
    for sensor_id, payload in data.items():
        try:
            entry = _MetadataEntry.model_validate(payload)
        except PydanticValidationError:
            logger.warning(
                "Skipping invalid metadata entry",
                extra={"sensor_id": sensor_id, "reason": "expected name, lat and lng"},
            )
            continue
        metadata[str(sensor_id)] = SensorMetadata(name=entry.name, lat=entry.lat, lng=entry.lng)
    return metadata
