"""Pydantic schemas shared by the pipeline and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field


class Reading(BaseModel):
    """One ingested telemetry sample.

    ``soil_moisture``, ``air_humidity`` and ``battery`` are synthetic: they are
    sampled at ingestion time and do not come from the producer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Unique, time-ordered reading token.")
    sensor_id: str = Field(..., alias="sensorId")
    temperature: float
    humidity: float
    soil_moisture: float = Field(..., alias="soilMoisture", ge=30, le=80)
    air_humidity: float = Field(..., alias="airHumidity", ge=40, le=80)
    battery: float = Field(..., ge=60, le=100)
    timestamp: datetime = Field(..., description="Ingestion instant (UTC).")


class SensorState(Reading):
    """Latest known state of one sensor: static metadata plus its last reading."""

    name: str
    lat: float
    lng: float
    active: bool = True
    last_update: datetime = Field(..., alias="lastUpdate")


class SensorStat(BaseModel):
    """Per-sensor summary of the last measured values."""

    model_config = ConfigDict(populate_by_name=True)

    sensor_id: str = Field(..., alias="sensorId")
    temperature: float
    humidity: float
    soil_moisture: float = Field(..., alias="soilMoisture")
    air_humidity: float = Field(..., alias="airHumidity")


class InitialEvent(BaseModel):
    """First event on a stream: the full registry snapshot."""

    type: Literal["initial"] = "initial"
    data: List[SensorState] = Field(default_factory=list)


class UpdateEvent(BaseModel):
    """One published reading."""

    type: Literal["update"] = "update"
    data: Reading


class IngestResponse(BaseModel):
    """Response payload after a reading was accepted and broadcast."""

    success: bool = True
    message: str = "Reading received and broadcast."
    data: Reading


class HealthReport(BaseModel):
    """Aggregate operational counters."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "ok"
    mode: str
    observers: int = Field(..., ge=0)
    stored_readings: int = Field(..., alias="storedReadings", ge=0)
    active_sensors: int = Field(..., alias="activeSensors", ge=0)
