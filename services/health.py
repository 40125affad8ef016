from __future__ import annotations

from app.schemas import HealthReport
from datastore.registry import SensorRegistry
from services.broadcaster import StreamBroadcaster
from storage.history import BoundedHistoryStore


class HealthReporter:
    """Derives operational counters from the live components; holds no state of its own."""

    def __init__(
        self,
        history: BoundedHistoryStore,
        registry: SensorRegistry,
        broadcaster: StreamBroadcaster,
        mode: str,
    ) -> None:
        self._history = history
        self._registry = registry
        self._broadcaster = broadcaster
        self._mode = mode

    def report(self) -> HealthReport:
        return HealthReport(
            mode=self._mode,
            observers=self._broadcaster.observer_count(),
            stored_readings=len(self._history),
            active_sensors=sum(1 for state in self._registry.list() if state.active),
        )
