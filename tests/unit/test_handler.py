from __future__ import annotations

import json
import logging
from collections.abc import Generator
from typing import Any

import httpx
import pytest

from logship.handler import ForwardingHandler
from logship.sinks import WriterSink
from logship.sinks.forwarding import ForwardingSink


@pytest.fixture
def make_logger() -> Generator[Any, None, None]:
    created: list[tuple[logging.Logger, ForwardingHandler]] = []

    def _make(sink: Any, name: str = "app") -> logging.Logger:
        logger = logging.getLogger(f"logship-tests.{name}")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        handler = ForwardingHandler(sink)
        logger.addHandler(handler)
        created.append((logger, handler))
        return logger

    yield _make
    for logger, handler in created:
        logger.removeHandler(handler)


def test_forwarding_sink_is_a_writer_sink(sink_config) -> None:
    sink = ForwardingSink(sink_config)
    assert isinstance(sink, WriterSink)
    sink.close()


def test_records_are_shipped_as_json_objects(sink_config, endpoint, make_logger) -> None:
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)

    logger.info("user %s logged in", "ada", extra={"request_id": "r-1"})

    body = endpoint.bodies[0]
    assert len(body) == 1
    record = body[0]
    assert record["message"] == "user ada logged in"
    assert record["level"] == "INFO"
    assert record["logger"] == "logship-tests.app"
    assert record["request_id"] == "r-1"
    assert record["timestamp"].endswith("Z")
    assert "args" not in record and "msg" not in record


def test_exception_text_is_included(sink_config, endpoint, make_logger) -> None:
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)

    try:
        raise RuntimeError("kaboom")
    except RuntimeError:
        logger.exception("failed")

    record = endpoint.bodies[0][0]
    assert record["level"] == "ERROR"
    assert "RuntimeError: kaboom" in record["exception"]


def test_non_json_extras_are_stringified(sink_config, endpoint, make_logger) -> None:
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)

    logger.warning("odd", extra={"thing": object()})

    assert endpoint.bodies[0][0]["thing"].startswith("<object object")


def test_formatter_controls_message(sink_config, endpoint, make_logger) -> None:
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)
    logger.handlers[-1].setFormatter(logging.Formatter("%(levelname)s|%(message)s"))

    logger.info("hello")

    assert endpoint.bodies[0][0]["message"] == "INFO|hello"


def test_delivery_failure_does_not_reach_application(
    sink_config, endpoint, make_logger, captured_warnings
) -> None:
    endpoint.outcomes = [500, 200]
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)

    logger.info("first")
    assert [r["message"] for r in sink.pending] == ["first"]
    assert any(w["component"] == "forwarding-handler" for w in captured_warnings)

    logger.info("second")
    assert [r["message"] for r in endpoint.bodies[-1]] == ["first", "second"]
    assert sink.pending == []


class _RejectingSink:
    """WriterSink that refuses every record as undecodable."""

    name = "rejecting"

    def __init__(self) -> None:
        self.pending: list[Any] = []

    def write(self, data: bytes) -> int:
        from logship.core.serialization import decode_record

        decode_record(b"not-json")
        return len(data)

    def flush(self) -> None:
        return None

    def close(self) -> None:
        return None


@pytest.mark.security
def test_unqueued_records_fall_back_to_stderr_redacted(
    capsys, make_logger, captured_warnings
) -> None:
    logger = make_logger(_RejectingSink(), name="reject")

    logger.info("login", extra={"password": "hunter2", "user": "ada"})

    err = capsys.readouterr().err.strip().splitlines()
    fallback = json.loads(err[-1])
    assert fallback["message"] == "login"
    assert fallback["password"] == "***"
    assert fallback["user"] == "ada"
    assert captured_warnings[-1]["message"] == "primary sink failed, using stderr fallback"
    assert captured_warnings[-1]["sink"] == "rejecting"


def test_close_flushes_sink(sink_config, endpoint, make_logger) -> None:
    endpoint.outcomes = [503, 200]
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)
    logger.info("kept")

    handler = logger.handlers[-1]
    handler.close()

    assert sink.closed
    assert [r["message"] for r in endpoint.bodies[-1]] == ["kept"]


def test_failed_close_dumps_pending_to_stderr(
    sink_config, endpoint, make_logger, capsys
) -> None:
    endpoint.outcomes = [503, httpx.ConnectError("down")]
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)
    logger.info("stranded")

    logger.handlers[-1].close()

    lines = capsys.readouterr().err.strip().splitlines()
    assert json.loads(lines[-1])["message"] == "stranded"
    assert sink.closed


def test_handler_flush_reports_failures(
    sink_config, endpoint, make_logger, captured_warnings
) -> None:
    endpoint.outcomes = [500, 500]
    sink = ForwardingSink(sink_config, client=endpoint.client())
    logger = make_logger(sink)
    logger.info("one")

    logger.handlers[-1].flush()

    handler_warnings = [
        w for w in captured_warnings if w["component"] == "forwarding-handler"
    ]
    assert len(handler_warnings) == 2
    assert handler_warnings[-1]["pending"] == 1
