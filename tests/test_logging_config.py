from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("services.pipeline", logging.INFO, __file__, 1, "Reading ingested", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_extra_keys() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s | %(message)s")

    line = formatter.format(_record(sensor_id="S1", reading_id="42", unrelated="x", observers=None))

    assert line == "INFO | Reading ingested | sensor_id=S1 reading_id=42"


def test_formatter_without_context_returns_plain_message() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["observer_id"])

    assert formatter.format(_record(sensor_id="S1")) == "Reading ingested"
