from __future__ import annotations

import json
import sys
from typing import Any, Literal

from ..core import diagnostics
from .utils import get_sink_name

# Type alias for redact mode
RedactMode = Literal["minimal", "none"]

# Keys masked before a record is written to stderr (compared lower-cased)
FALLBACK_SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "access_token",
        "refresh_token",
        "api_key",
        "apikey",
        "authorization",
        "cookie",
    }
)

# Prevent stack overflow on pathological input
_MAX_REDACT_DEPTH = 32


def _redact_list(items: list[Any], *, _depth: int) -> list[Any]:
    """Recursively redact sensitive fields within list items."""
    if _depth >= _MAX_REDACT_DEPTH:
        return items

    result: list[Any] = []
    for item in items:
        if isinstance(item, dict):
            result.append(minimal_redact(item, _depth=_depth + 1))
        elif isinstance(item, list):
            result.append(_redact_list(item, _depth=_depth + 1))
        else:
            result.append(item)
    return result


def minimal_redact(
    payload: dict[str, Any],
    *,
    _depth: int = 0,
) -> dict[str, Any]:
    """Apply minimal redaction for fallback safety.

    Masks values of keys that match FALLBACK_SENSITIVE_FIELDS (case-insensitive).
    Recursively processes nested dictionaries and lists.

    Args:
        payload: The dictionary to redact.
        _depth: Internal recursion depth counter (do not set manually).

    Returns:
        A new dictionary with sensitive fields masked as "***".
    """
    if _depth >= _MAX_REDACT_DEPTH:
        return payload

    result: dict[str, Any] = {}
    for key, value in payload.items():
        if str(key).lower() in FALLBACK_SENSITIVE_FIELDS:
            result[key] = "***"
        elif isinstance(value, dict):
            result[key] = minimal_redact(value, _depth=_depth + 1)
        elif isinstance(value, list):
            result[key] = _redact_list(value, _depth=_depth + 1)
        else:
            result[key] = value
    return result


def _serialize_entry(entry: dict[str, Any]) -> str:
    try:
        return json.dumps(entry, separators=(",", ":"), default=str)
    except Exception:
        try:
            return json.dumps({"message": str(entry)}, separators=(",", ":"))
        except Exception:
            return '{"message":"unserializable"}'


def write_to_stderr(payload: Any, *, redact_mode: RedactMode = "minimal") -> None:
    """Write one record to stderr as a JSON line.

    Args:
        payload: Record mapping; anything else is wrapped as ``{"message": ...}``.
        redact_mode: "minimal" (default) masks sensitive keys, "none" does not.
    """
    if not isinstance(payload, dict):
        payload = {"message": str(payload)}
    if redact_mode == "minimal":
        payload = minimal_redact(payload)
    text = _serialize_entry(payload)
    sys.stderr.write(text + "\n")
    sys.stderr.flush()


def handle_sink_write_failure(
    payloads: list[Any],
    *,
    sink: Any,
    error: BaseException,
    redact_mode: RedactMode = "minimal",
) -> None:
    """Emit records a sink failed to deliver on stderr instead.

    Never raises; if stderr itself fails the loss is reported as a diagnostic.
    """
    sink_label = get_sink_name(sink)
    error_type = type(error).__name__

    if redact_mode == "none":
        diagnostics.warn("sink", "fallback triggered without redaction configured")

    try:
        for payload in payloads:
            write_to_stderr(payload, redact_mode=redact_mode)
    except Exception:
        diagnostics.warn(
            "sink",
            "all sinks failed, log entry lost",
            sink=sink_label,
            error=error_type,
            fallback="stderr",
        )
        return

    diagnostics.warn(
        "sink",
        "primary sink failed, using stderr fallback",
        sink=sink_label,
        error=error_type,
        records=len(payloads),
        fallback="stderr",
    )


__all__ = [
    "FALLBACK_SENSITIVE_FIELDS",
    "handle_sink_write_failure",
    "minimal_redact",
    "write_to_stderr",
]
