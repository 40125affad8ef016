from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Deque

from app.schemas import Reading

DEFAULT_HISTORY_LIMIT = 100


class BoundedHistoryStore:
    """Fixed-capacity log of readings in arrival order; the oldest entry is evicted first."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("History capacity must be positive.")
        self._capacity = capacity
        self._readings: Deque[Reading] = deque(maxlen=capacity)
        self._lock = Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)

    def append(self, reading: Reading) -> None:
        with self._lock:
            self._readings.append(reading)

    def query_by_sensor(self, sensor_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> list[Reading]:
        """Return the most recent ``limit`` readings of one sensor, oldest first."""

        if limit <= 0:
            limit = DEFAULT_HISTORY_LIMIT
        with self._lock:
            matching = [reading for reading in self._readings if reading.sensor_id == sensor_id]
        return matching[-limit:]

    def snapshot(self) -> list[Reading]:
        with self._lock:
            return list(self._readings)
