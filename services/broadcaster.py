"""Fan-out of published readings to attached stream observers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, Optional, Protocol, Union
from uuid import uuid4

from app.schemas import InitialEvent, Reading, SensorState, UpdateEvent
from services.errors import ObserverWriteError

logger = logging.getLogger(__name__)

StreamEvent = Union[InitialEvent, UpdateEvent]


class Observer(Protocol):
    """Anything able to receive stream events without blocking the publisher."""

    def send(self, event: StreamEvent) -> None:
        """Accept one event or raise ``ObserverWriteError``."""

    def close(self) -> None:
        """Release the transport; further sends must fail."""


class QueueObserver:
    """Observer backed by a bounded ``asyncio.Queue`` drained by a streaming response.

    ``send`` and ``close`` must be called from the thread running the queue's event loop.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: asyncio.Queue[Optional[StreamEvent]] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: StreamEvent) -> None:
        if self._closed:
            raise ObserverWriteError("Observer is closed.")
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull as exc:
            raise ObserverWriteError("Observer queue is full.") from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Undelivered events are dropped so the end-of-stream marker always fits.
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def next_event(self) -> Optional[StreamEvent]:
        """Wait for the next event; ``None`` marks the end of the stream."""
        return await self._queue.get()


@dataclass(frozen=True)
class ObserverConnection:
    id: str
    observer: Observer


class StreamBroadcaster:
    """Owns the set of attached observers and delivers every published reading to each."""

    def __init__(self, snapshot: Callable[[], list[SensorState]]) -> None:
        self._snapshot = snapshot
        self._connections: Dict[str, ObserverConnection] = {}
        self._lock = RLock()

    def attach(self, observer: Observer) -> ObserverConnection:
        """Register ``observer`` and send it the current registry snapshot.

        Snapshot and registration happen under the lock used by ``publish``, so the
        observer sees every later update exactly once.
        """
        connection = ObserverConnection(id=uuid4().hex, observer=observer)
        with self._lock:
            observer.send(InitialEvent(data=self._snapshot()))
            self._connections[connection.id] = connection
            count = len(self._connections)
        logger.info("Observer attached", extra={"observer_id": connection.id, "observers": count})
        return connection

    def publish(self, reading: Reading) -> int:
        """Deliver ``reading`` to every attached observer; return the successful count.

        Failed observers are detached and never retried. Nothing is raised to the caller.
        """
        event = UpdateEvent(data=reading)
        failed: list[str] = []
        delivered = 0
        with self._lock:
            for connection in list(self._connections.values()):
                try:
                    connection.observer.send(event)
                except Exception as exc:  # noqa: BLE001 - isolate every observer failure
                    logger.warning(
                        "Dropping observer after failed delivery",
                        extra={
                            "observer_id": connection.id,
                            "reading_id": reading.id,
                            "reason": str(exc) or type(exc).__name__,
                        },
                    )
                    failed.append(connection.id)
                else:
                    delivered += 1
            for observer_id in failed:
                self.detach(observer_id)
        logger.debug(
            "Reading published",
            extra={"reading_id": reading.id, "delivered": delivered, "failed": len(failed)},
        )
        return delivered

    def detach(self, observer_id: str) -> bool:
        """Remove an observer and close its transport. Unknown ids are ignored."""
        with self._lock:
            connection = self._connections.pop(observer_id, None)
            count = len(self._connections)
        if connection is None:
            return False
        try:
            connection.observer.close()
        except Exception as exc:  # noqa: BLE001 - transport already gone
            logger.debug(
                "Observer close failed",
                extra={"observer_id": observer_id, "reason": str(exc)},
            )
        logger.info("Observer detached", extra={"observer_id": observer_id, "observers": count})
        return True

    def observer_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def close_all(self) -> None:
        with self._lock:
            observer_ids = list(self._connections)
        for observer_id in observer_ids:
            self.detach(observer_id)
