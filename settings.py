from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_HISTORY_CAPACITY_ENV = "SENSOR_HISTORY_CAPACITY"
_DEFAULT_LAT_ENV = "SENSOR_DEFAULT_LAT"
_DEFAULT_LNG_ENV = "SENSOR_DEFAULT_LNG"
_DEFAULT_NAME_ENV = "SENSOR_DEFAULT_NAME_TEMPLATE"
_METADATA_PATH_ENV = "SENSOR_METADATA_PATH"
_QUEUE_SIZE_ENV = "OBSERVER_QUEUE_SIZE"
_KEEPALIVE_ENV = "STREAM_KEEPALIVE_SECONDS"
_MODE_ENV = "SERVICE_MODE"
_HOST_ENV = "SERVICE_HOST"
_PORT_ENV = "SERVICE_PORT"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    history_capacity: int
    default_lat: float
    default_lng: float
    default_name_template: str
    metadata_path: Optional[str]
    observer_queue_size: int
    stream_keepalive_seconds: float
    service_mode: str
    host: str
    port: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float(name: str, default: float, positive: bool = False) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        return default
    if positive and parsed <= 0:
        return default
    return parsed


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        history_capacity=_read_positive_int(_HISTORY_CAPACITY_ENV, 1000),
        default_lat=_read_float(_DEFAULT_LAT_ENV, 34.6807),
        default_lng=_read_float(_DEFAULT_LNG_ENV, -1.9102),
        default_name_template=_read_str_env(_DEFAULT_NAME_ENV, "Sensor {sensor_id}"),
        metadata_path=_read_optional_env(_METADATA_PATH_ENV, None),
        observer_queue_size=_read_positive_int(_QUEUE_SIZE_ENV, 100),
        stream_keepalive_seconds=_read_float(_KEEPALIVE_ENV, 15.0, positive=True),
        service_mode=_read_str_env(_MODE_ENV, "in-memory streaming"),
        host=_read_str_env(_HOST_ENV, "0.0.0.0"),
        port=_read_positive_int(_PORT_ENV, 5137),
        log_level=_read_log_level("INFO"),
    )
