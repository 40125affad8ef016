"""Shapes raw producer payloads into canonical readings."""

from __future__ import annotations

import logging
import math
import random
import time
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Mapping, Optional

from app.schemas import Reading
from models.records import FieldError
from services.errors import ValidationError

logger = logging.getLogger(__name__)

# Synthetic ranges; these fields are simulated, not measured.
SOIL_MOISTURE_RANGE = (30.0, 80.0)
AIR_HUMIDITY_RANGE = (40.0, 80.0)
BATTERY_RANGE = (60.0, 100.0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReadingNormalizer:
    """Validates producer input and enriches it with synthetic fields."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock
        self._last_id = 0
        self._id_lock = Lock()

    def normalize(self, payload: Any) -> Reading:
        """Return a canonical reading or raise ``ValidationError``.

        Every failing field is reported, not only the first one.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError([FieldError(field="payload", reason="expected an object")])

        errors: list[FieldError] = []

        sensor_id = self._parse_sensor_id(payload.get("sensorId"), errors)
        temperature = self._parse_number("temperature", payload.get("temperature"), errors)
        humidity = self._parse_number("humidity", payload.get("humidity"), errors)

        if errors:
            logger.warning(
                "Rejecting reading payload",
                extra={"sensor_id": sensor_id, "error_count": len(errors)},
            )
            raise ValidationError(errors)

        timestamp = self._clock()
        return Reading(
            id=self._next_id(),
            sensor_id=sensor_id,
            temperature=temperature,
            humidity=humidity,
            soil_moisture=self._rng.uniform(*SOIL_MOISTURE_RANGE),
            air_humidity=self._rng.uniform(*AIR_HUMIDITY_RANGE),
            battery=self._rng.uniform(*BATTERY_RANGE),
            timestamp=timestamp,
        )

    def _next_id(self) -> str:
        # Wall clock in ns, bumped so ids stay strictly increasing.
        with self._id_lock:
            candidate = max(time.time_ns(), self._last_id + 1)
            self._last_id = candidate
        return str(candidate)

    @staticmethod
    def _parse_sensor_id(value: Any, errors: list[FieldError]) -> Optional[str]:
        if value is None:
            errors.append(FieldError(field="sensorId", reason="missing sensorId"))
            return None
        if not isinstance(value, str):
            errors.append(FieldError(field="sensorId", reason="sensorId must be a string"))
            return None
        candidate = value.strip()
        if not candidate:
            errors.append(FieldError(field="sensorId", reason="missing sensorId"))
            return None
        return candidate

    @staticmethod
    def _parse_number(name: str, value: Any, errors: list[FieldError]) -> Optional[float]:
        if value is None:
            errors.append(FieldError(field=name, reason=f"missing {name}"))
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            errors.append(FieldError(field=name, reason="invalid numeric value"))
            return None
        if isinstance(value, str) and not value.strip():
            errors.append(FieldError(field=name, reason=f"missing {name}"))
            return None
        # float() accepts "1_000"; producers never send digit separators.
        if isinstance(value, str) and "_" in value:
            errors.append(FieldError(field=name, reason="invalid numeric value"))
            return None

        try:
            parsed = float(value)
        except (ValueError, OverflowError):
            errors.append(FieldError(field=name, reason="invalid numeric value"))
            return None

        if not math.isfinite(parsed):
            errors.append(FieldError(field=name, reason="invalid numeric value"))
            return None
        return parsed
