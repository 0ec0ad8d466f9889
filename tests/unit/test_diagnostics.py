from __future__ import annotations

import json
import logging

import pytest

import logship.core.diagnostics as diag


@pytest.fixture
def diag_records(monkeypatch):
    records: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    handler = _Collect()
    logger = logging.getLogger("logship.diagnostics")
    logger.addHandler(handler)
    yield records
    logger.removeHandler(handler)


def test_disabled_by_default(diag_records) -> None:
    diag.warn("sink", "should not appear")
    assert diag_records == []


def test_enabled_via_environment(monkeypatch, diag_records) -> None:
    monkeypatch.setenv("LOGSHIP_CORE__INTERNAL_LOGGING_ENABLED", "true")

    diag.warn("forwarding-sink", "failed to deliver batch", status_code=500)
    diag.debug("forwarding-sink", "delivered batch", records=2)

    assert [r.levelno for r in diag_records] == [logging.WARNING, logging.DEBUG]
    payload = json.loads(diag_records[0].getMessage())
    assert payload == {
        "component": "forwarding-sink",
        "message": "failed to deliver batch",
        "status_code": 500,
    }


def test_setting_is_cached(monkeypatch, diag_records) -> None:
    diag._internal_logging_enabled = False
    monkeypatch.setenv("LOGSHIP_CORE__INTERNAL_LOGGING_ENABLED", "true")

    diag.warn("sink", "still disabled")
    assert diag_records == []


def test_unserializable_fields_are_stringified(diag_records) -> None:
    diag._internal_logging_enabled = True

    diag.warn("sink", "odd", value=object())

    assert "object object" in json.loads(diag_records[0].getMessage())["value"]


def test_diagnostics_do_not_propagate() -> None:
    assert logging.getLogger("logship.diagnostics").propagate is False
