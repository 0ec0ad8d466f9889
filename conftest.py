"""
Root pytest configuration.
"""

from __future__ import annotations

import json
from collections.abc import Generator
from typing import Any

import httpx
import pytest


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "critical: Tests that must never fail - core functionality",
    )
    config.addinivalue_line(
        "markers",
        "security: Security-critical tests (redaction, auth, secrets)",
    )
    config.addinivalue_line(
        "markers",
        "property: Property-based tests (may be slow)",
    )
    config.addinivalue_line(
        "markers",
        "asyncio: Async tests",
    )


class RecordingEndpoint:
    """Ingestion endpoint stand-in for ``httpx.MockTransport``.

    Each request consumes the next outcome: an int status, an
    ``httpx.Response`` or an exception to raise. With no outcomes left the
    endpoint answers 200.
    """

    def __init__(self, outcomes: list[Any] | None = None) -> None:
        self.outcomes = list(outcomes or [])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else 200
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return httpx.Response(outcome, json={"code": outcome})
        return outcome

    @property
    def bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def endpoint() -> RecordingEndpoint:
    return RecordingEndpoint()


@pytest.fixture
def sink_config() -> Any:
    from logship.sinks.forwarding import ForwardingSinkConfig

    return ForwardingSinkConfig(
        url="http://localhost:5080/api/default/quickstart1/_json",
        username="root@example.com",
        password="Complexpass#123",
    )


@pytest.fixture(autouse=True)
def reset_diagnostics_cache() -> Generator[None, None, None]:
    """Reset the diagnostics module cache before each test.

    The diagnostics module caches the `internal_logging_enabled` setting at
    first access. Resetting keeps tests from inheriting cached state.
    """
    import logship.core.diagnostics as diag

    diag._internal_logging_enabled = None
    yield
    diag._internal_logging_enabled = None


@pytest.fixture
def captured_warnings(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Collect diagnostics.warn calls instead of emitting them."""
    warnings: list[dict[str, Any]] = []

    def _warn(component: str, message: str, **fields: Any) -> None:
        warnings.append({"component": component, "message": message, **fields})

    monkeypatch.setattr("logship.core.diagnostics.warn", _warn)
    return warnings
