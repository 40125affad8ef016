from __future__ import annotations

import logging
import random
from datetime import datetime, timezone

import pytest

from services.errors import ValidationError
from services.normalizer import ReadingNormalizer

_FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def normalizer() -> ReadingNormalizer:
    return ReadingNormalizer(rng=random.Random(7), clock=lambda: _FIXED_NOW)


def test_numeric_strings_are_coerced_and_synthetic_fields_in_range(normalizer) -> None:
    reading = normalizer.normalize({"sensorId": "S1", "temperature": "21.5", "humidity": "55"})

    assert reading.sensor_id == "S1"
    assert reading.temperature == 21.5
    assert reading.humidity == 55
    assert 30 <= reading.soil_moisture <= 80
    assert 40 <= reading.air_humidity <= 80
    assert 60 <= reading.battery <= 100
    assert reading.timestamp == _FIXED_NOW


def test_ids_are_unique_and_increasing(normalizer) -> None:
    payload = {"sensorId": "S1", "temperature": 1, "humidity": 2}

    ids = [int(normalizer.normalize(payload).id) for _ in range(50)]

    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_sensor_id_is_stripped(normalizer) -> None:
    reading = normalizer.normalize({"sensorId": "  S2 ", "temperature": 3, "humidity": 4.5})

    assert reading.sensor_id == "S2"


def test_missing_fields_are_all_reported(normalizer) -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalizer.normalize({"temperature": "abc"})

    reasons = {error.field: error.reason for error in excinfo.value.errors}
    assert reasons == {
        "sensorId": "missing sensorId",
        "temperature": "invalid numeric value",
        "humidity": "missing humidity",
    }


@pytest.mark.parametrize("value", [True, "nan", "inf", [1], "", "  ", "1_000"])
def test_non_numeric_values_are_rejected(normalizer, value) -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalizer.normalize({"sensorId": "S1", "temperature": value, "humidity": 40})

    assert [error.field for error in excinfo.value.errors] == ["temperature"]


def test_non_mapping_payload_is_rejected(normalizer) -> None:
    with pytest.raises(ValidationError) as excinfo:
        normalizer.normalize(["S1", 20, 40])

    assert excinfo.value.errors[0].field == "payload"


def test_blank_or_non_string_sensor_id_is_rejected(normalizer) -> None:
    for sensor_id in ("   ", 42):
        with pytest.raises(ValidationError) as excinfo:
            normalizer.normalize({"sensorId": sensor_id, "temperature": 1, "humidity": 1})
        assert excinfo.value.errors[0].field == "sensorId"


def test_rejection_is_logged(normalizer, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        with pytest.raises(ValidationError):
            normalizer.normalize({"sensorId": "S1"})

    records = [record for record in caplog.records if record.name == "services.normalizer"]
    assert records
    assert getattr(records[0], "error_count", None) == 2
