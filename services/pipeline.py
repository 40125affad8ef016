"""Ingestion orchestration: validate, store, register, broadcast."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from threading import RLock
from typing import Any, Optional

from app.schemas import HealthReport, Reading
from datastore.registry import SensorRegistry, load_sensor_metadata
from services.broadcaster import Observer, ObserverConnection, StreamBroadcaster
from services.health import HealthReporter
from services.normalizer import ReadingNormalizer
from services.query import QueryService
from settings import get_settings
from storage.history import BoundedHistoryStore

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Single serialization point for every mutation of history, registry and observers."""

    def __init__(
        self,
        history: BoundedHistoryStore,
        registry: SensorRegistry,
        normalizer: Optional[ReadingNormalizer] = None,
        mode: str = "in-memory streaming",
    ) -> None:
        self.history = history
        self.registry = registry
        self.normalizer = normalizer or ReadingNormalizer()
        self.broadcaster = StreamBroadcaster(snapshot=registry.list)
        self._query = QueryService(history=history, registry=registry)
        self._health = HealthReporter(
            history=history,
            registry=registry,
            broadcaster=self.broadcaster,
            mode=mode,
        )
        self._lock = RLock()

    def ingest(self, payload: Any) -> Reading:
        """Run one payload through the whole pipeline.

        Raises ``ValidationError`` before anything is stored.
        """
        reading = self.normalizer.normalize(payload)
        with self._lock:
            self.history.append(reading)
            self.registry.upsert(reading)
            delivered = self.broadcaster.publish(reading)
        logger.info(
            "Reading ingested",
            extra={
                "sensor_id": reading.sensor_id,
                "reading_id": reading.id,
                "delivered": delivered,
                "stored": len(self.history),
            },
        )
        return reading

    def attach(self, observer: Observer) -> ObserverConnection:
        with self._lock:
            return self.broadcaster.attach(observer)

    def detach(self, observer_id: str) -> bool:
        with self._lock:
            return self.broadcaster.detach(observer_id)

    def query(self) -> QueryService:
        return self._query

    def health(self) -> HealthReport:
        return self._health.report()

    def shutdown(self) -> None:
        """Close every attached observer during application shutdown."""
        with self._lock:
            self.broadcaster.close_all()


@lru_cache
def build_default_pipeline(capacity: Optional[int] = None) -> IngestionPipeline:
    """Factory that wires the pipeline from settings."""
    settings = get_settings()
    metadata_path = Path(settings.metadata_path) if settings.metadata_path else None
    history = BoundedHistoryStore(capacity=capacity or settings.history_capacity)
    registry = SensorRegistry(
        default_location=(settings.default_lat, settings.default_lng),
        name_template=settings.default_name_template,
        metadata=load_sensor_metadata(metadata_path),
    )
    return IngestionPipeline(history=history, registry=registry, mode=settings.service_mode)
