"""
Bridge from the standard library ``logging`` module to a forwarding sink.

`ForwardingHandler` renders each ``LogRecord`` as one JSON object and hands
the encoded bytes to a `WriterSink`. Sink errors never propagate into
application code. A failed delivery leaves the record queued in the sink and
is reported as a diagnostic; a record the sink refused to queue is written
to stderr with sensitive fields masked.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

from .core import diagnostics
from .core.errors import DeliveryError, LogshipError
from .sinks import WriterSink
from .sinks.fallback import handle_sink_write_failure

# Attributes every LogRecord carries; anything else came in via ``extra=``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class ForwardingHandler(logging.Handler):
    """``logging.Handler`` that ships records through a `WriterSink`."""

    def __init__(self, sink: WriterSink, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sink = sink

    def build_payload(self, record: logging.LogRecord) -> dict[str, Any]:
        """Render ``record`` as the JSON object sent upstream."""
        message = self.format(record) if self.formatter else record.getMessage()
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": message,
        }
        if record.exc_info and not self.formatter:
            formatter = logging.Formatter()
            payload["exception"] = formatter.formatException(record.exc_info)
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        return payload

    def emit(self, record: logging.LogRecord) -> None:
        try:
            payload = self.build_payload(record)
            data = orjson.dumps(payload, default=str)
            self.sink.write(data)
        except Exception:
            self.handleError(record)

    def handleError(self, record: logging.LogRecord) -> None:  # noqa: N802
        exc = sys.exc_info()[1]
        if not isinstance(exc, LogshipError):
            super().handleError(record)
            return
        if isinstance(exc, DeliveryError):
            self._report_queued(exc)
            return
        try:
            payload = self.build_payload(record)
        except Exception:
            payload = {"message": record.getMessage()}
        handle_sink_write_failure([payload], sink=self.sink, error=exc)

    def _report_queued(self, exc: DeliveryError) -> None:
        # The record stays queued in the sink and goes out with the next flush
        diagnostics.warn(
            "forwarding-handler",
            "delivery failed, records kept for next flush",
            error=type(exc).__name__,
            pending=len(getattr(self.sink, "pending", ())),
        )

    def flush(self) -> None:
        self.acquire()
        try:
            self.sink.flush()
        except DeliveryError as exc:
            self._report_queued(exc)
        finally:
            self.release()

    def close(self) -> None:
        self.acquire()
        try:
            try:
                self.sink.close()
            except DeliveryError as exc:
                # Last chance before exit: dump whatever never made it upstream
                pending = list(getattr(self.sink, "pending", []))
                handle_sink_write_failure(pending, sink=self.sink, error=exc)
        finally:
            self.release()
            super().close()


__all__ = ["ForwardingHandler"]
