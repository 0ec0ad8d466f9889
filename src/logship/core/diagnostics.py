"""
Internal diagnostics for non-fatal sink events.

Diagnostics are structured JSON lines emitted on the ``logship.diagnostics``
logger. They are disabled unless ``LOGSHIP_CORE__INTERNAL_LOGGING_ENABLED``
is true, and emitting one never raises.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import orjson

# Never propagated: a ForwardingHandler on the root logger must not see these
_logger = logging.getLogger("logship.diagnostics")
_logger.propagate = False
if not _logger.handlers:
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    _logger.addHandler(_handler)
_logger.setLevel(logging.DEBUG)

# Cached at first access; tests reset this to None
_internal_logging_enabled: bool | None = None


def _is_enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def _emit(level: int, component: str, message: str, fields: dict[str, Any]) -> None:
    if not _is_enabled():
        return
    try:
        payload = {"component": component, "message": message, **fields}
        line = orjson.dumps(payload, default=str).decode("utf-8")
        _logger.log(level, line)
    except Exception:
        # Diagnostics must never break the caller
        return


def warn(component: str, message: str, **fields: Any) -> None:
    """Emit a WARNING diagnostic for ``component``."""
    _emit(logging.WARNING, component, message, fields)


def debug(component: str, message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, component, message, fields)


__all__ = ["warn", "debug"]
