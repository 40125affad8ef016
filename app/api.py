"""HTTP route definitions for the service."""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from app.schemas import HealthReport, IngestResponse, Reading, SensorStat, SensorState
from datastore.registry import DEFAULT_LATEST_LIMIT
from services.broadcaster import QueueObserver, StreamEvent
from services.errors import ObserverWriteError, ValidationError
from services.pipeline import IngestionPipeline, build_default_pipeline
from settings import get_settings
from storage.history import DEFAULT_HISTORY_LIMIT


router = APIRouter(prefix="/api")


def get_pipeline() -> IngestionPipeline:
    return build_default_pipeline()


def format_sse(event: StreamEvent) -> str:
    return f"data: {event.model_dump_json(by_alias=True)}\n\n"


@router.post(
    "/sensors/data",
    response_model=IngestResponse,
    summary="Submit one sensor reading for storage and broadcast.",
)
async def ingest_reading(
    payload: Any = Body(None, description="Reading with sensorId, temperature and humidity."),
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> IngestResponse:
    try:
        reading = pipeline.ingest(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(exc),
                "errors": [{"field": error.field, "reason": error.reason} for error in exc.errors],
            },
        ) from exc
    return IngestResponse(data=reading)


async def _event_stream(
    request: Request,
    pipeline: IngestionPipeline,
    observer: QueueObserver,
    keepalive: float,
) -> AsyncIterator[str]:
    # Attaching here means a stream that is never started never registers.
    try:
        connection = pipeline.attach(observer)
    except ObserverWriteError:
        return
    try:
        while True:
            try:
                event = await asyncio.wait_for(observer.next_event(), timeout=keepalive)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    break
                yield ": keep-alive\n\n"
                continue
            if event is None:
                break
            yield format_sse(event)
    finally:
        pipeline.detach(connection.id)


@router.get(
    "/sensors/stream",
    summary="Server-sent event stream: one initial snapshot, then one event per reading.",
)
async def stream_readings(
    request: Request,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> StreamingResponse:
    settings = get_settings()
    observer = QueueObserver(maxsize=settings.observer_queue_size)
    return StreamingResponse(
        _event_stream(request, pipeline, observer, settings.stream_keepalive_seconds),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get(
    "/sensors",
    response_model=list[SensorState],
    summary="List the latest state of every known sensor.",
)
async def list_sensors(pipeline: IngestionPipeline = Depends(get_pipeline)) -> list[SensorState]:
    return pipeline.query().list_sensors()


@router.get(
    "/sensors/latest",
    response_model=list[SensorState],
    summary="List the most recently updated sensors.",
)
async def latest_sensors(
    limit: Optional[str] = None,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> list[SensorState]:
    return pipeline.query().get_latest(limit if limit is not None else DEFAULT_LATEST_LIMIT)


@router.get(
    "/sensors/stats/global",
    response_model=list[SensorStat],
    summary="Last measured values per sensor.",
)
async def global_stats(pipeline: IngestionPipeline = Depends(get_pipeline)) -> list[SensorStat]:
    return pipeline.query().global_stats()


@router.get(
    "/sensors/{sensor_id}/data",
    response_model=list[Reading],
    summary="Recent readings of one sensor; empty when the sensor is unknown.",
)
async def sensor_history(
    sensor_id: str,
    limit: Optional[str] = None,
    pipeline: IngestionPipeline = Depends(get_pipeline),
) -> list[Reading]:
    return pipeline.query().get_sensor_history(
        sensor_id, limit if limit is not None else DEFAULT_HISTORY_LIMIT
    )


@router.get(
    "/health",
    response_model=HealthReport,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(pipeline: IngestionPipeline = Depends(get_pipeline)) -> HealthReport:
    return pipeline.health()


root_router = APIRouter()


@root_router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /api/health for service status."}
