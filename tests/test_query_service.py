from __future__ import annotations

import pytest

from datastore.registry import SensorRegistry
from services.pipeline import IngestionPipeline
from services.query import coerce_limit
from storage.history import BoundedHistoryStore


@pytest.fixture()
def pipeline() -> IngestionPipeline:
    return IngestionPipeline(
        history=BoundedHistoryStore(capacity=500),
        registry=SensorRegistry(default_location=(0.0, 0.0)),
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 10), ("5", 5), (" 7 ", 7), ("abc", 10), ("0", 10), (-3, 10), (True, 10), ("2.5", 10)],
)
def test_coerce_limit(raw, expected) -> None:
    assert coerce_limit(raw, 10) == expected


def test_unknown_sensor_history_is_empty(pipeline: IngestionPipeline) -> None:
    pipeline.ingest({"sensorId": "S1", "temperature": 1, "humidity": 2})

    assert pipeline.query().get_sensor_history("never-seen") == []


def test_history_defaults_to_one_hundred(pipeline: IngestionPipeline) -> None:
    for index in range(120):
        pipeline.ingest({"sensorId": "S1", "temperature": index, "humidity": 2})

    query = pipeline.query()

    assert len(query.get_sensor_history("S1")) == 100
    assert len(query.get_sensor_history("S1", "bogus")) == 100
    assert [reading.temperature for reading in query.get_sensor_history("S1", 2)] == [118.0, 119.0]


def test_latest_and_list(pipeline: IngestionPipeline) -> None:
    for index in range(12):
        pipeline.ingest({"sensorId": f"S{index}", "temperature": index, "humidity": 2})

    query = pipeline.query()

    assert len(query.list_sensors()) == 12
    latest = query.get_latest()
    assert len(latest) == 10
    assert {state.sensor_id for state in latest} == {f"S{index}" for index in range(2, 12)}
    assert len(query.get_latest("3")) == 3


def test_queries_do_not_mutate_state(pipeline: IngestionPipeline) -> None:
    pipeline.ingest({"sensorId": "S1", "temperature": 1, "humidity": 2})
    before = (len(pipeline.history), len(pipeline.registry))

    query = pipeline.query()
    query.get_latest()
    query.get_sensor_history("S1")
    query.list_sensors()
    query.global_stats()

    assert (len(pipeline.history), len(pipeline.registry)) == before


def test_global_stats_mirror_last_values(pipeline: IngestionPipeline) -> None:
    pipeline.ingest({"sensorId": "S1", "temperature": 1, "humidity": 2})
    last = pipeline.ingest({"sensorId": "S1", "temperature": 3, "humidity": 4})

    stats = pipeline.query().global_stats()

    assert len(stats) == 1
    assert stats[0].model_dump(by_alias=True) == {
        "sensorId": "S1",
        "temperature": 3.0,
        "humidity": 4.0,
        "soilMoisture": last.soil_moisture,
        "airHumidity": last.air_humidity,
    }
