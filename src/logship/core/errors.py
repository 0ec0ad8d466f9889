"""
Error model for logship.

Every error raised by a sink derives from `LogshipError` and carries a
category, a severity and an `ErrorContext` so hosts can route failures
(log to a fallback, alert, abort startup) without parsing messages.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Broad classification of where an error originated."""

    SERIALIZATION = "serialization"
    NETWORK = "network"
    EXTERNAL = "external"
    CONFIG = "config"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context attached to every `LogshipError`."""

    category: ErrorCategory
    severity: ErrorSeverity
    error_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_id": self.error_id,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "metadata": dict(self.metadata),
        }


def create_error_context(
    category: ErrorCategory,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    **metadata: Any,
) -> ErrorContext:
    """Build an `ErrorContext` with a fresh id and UTC timestamp."""
    return ErrorContext(category=category, severity=severity, metadata=metadata)


class LogshipError(Exception):
    """Base class for all logship errors.

    Extra keyword arguments are stored as context metadata, e.g.
    ``LogshipError("boom", url=url)``.
    """

    default_category = ErrorCategory.EXTERNAL
    default_severity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        error_context: ErrorContext | None = None,
        cause: BaseException | None = None,
        **context: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.severity = severity or self.default_severity
        if error_context is None:
            error_context = create_error_context(self.category, self.severity)
        error_context.metadata.update(context)
        self.error_context = error_context
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.error_context.to_dict(),
        }
        if self.cause is not None:
            data["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return data


class ConfigurationError(LogshipError):
    """Invalid or incomplete sink configuration; fatal at construction."""

    default_category = ErrorCategory.CONFIG
    default_severity = ErrorSeverity.CRITICAL


class DecodeError(LogshipError):
    """Input bytes were not a single JSON object."""

    default_category = ErrorCategory.SERIALIZATION
    default_severity = ErrorSeverity.MEDIUM


class EncodeError(LogshipError):
    """The pending batch could not be serialized."""

    default_category = ErrorCategory.SERIALIZATION
    default_severity = ErrorSeverity.HIGH


class DeliveryError(LogshipError):
    """Base for failures that happen while delivering a batch upstream.

    ``bytes_written`` is set when the failure surfaced from a write call; the
    record was still queued and that many input bytes were accepted.
    """

    bytes_written: int | None = None


class TransportError(DeliveryError):
    """Request construction or network failure (connect error, timeout)."""

    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.HIGH

    def __init__(self, message: str, *, url: str, **kwargs: Any) -> None:
        super().__init__(message, url=url, **kwargs)
        self.url = url


class UpstreamRejected(DeliveryError):
    """The ingestion endpoint answered with a status other than 200."""

    default_category = ErrorCategory.EXTERNAL
    default_severity = ErrorSeverity.HIGH

    def __init__(
        self,
        *,
        status_code: int,
        url: str,
        body: bytes,
        **kwargs: Any,
    ) -> None:
        text = body.decode("utf-8", errors="replace")
        super().__init__(
            (
                f"unexpected status code: {status_code}\n"
                f"request url: {url}\n"
                f"request body: {text}"
            ),
            status_code=status_code,
            url=url,
            **kwargs,
        )
        self.status_code = status_code
        self.url = url
        self.body = body


__all__ = [
    "ConfigurationError",
    "DecodeError",
    "DeliveryError",
    "EncodeError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "LogshipError",
    "TransportError",
    "UpstreamRejected",
    "create_error_context",
]
