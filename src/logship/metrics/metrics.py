"""
Delivery metrics for forwarding sinks.

Implements a small set of Prometheus-compatible counters and a latency
histogram. Each collector owns an isolated registry; when disabled, the
methods still track in-memory counters so tests can assert on them.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class DeliveryMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    records_delivered: int = 0
    flushes: int = 0
    flush_failures: dict[str, int] = field(default_factory=dict)


class MetricsCollector:
    """Sink-scoped metrics collector.

    Methods are synchronous and thread-safe so both the blocking and the
    asyncio sink can call them inline.
    """

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = threading.Lock()
        self._state = DeliveryMetrics()

        self._c_delivered: Any | None = None
        self._c_failures: Any | None = None
        self._h_flush_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            self._registry = CollectorRegistry()
            self._c_delivered = Counter(
                "logship_records_delivered_total",
                "Total number of records accepted by the ingestion endpoint",
                registry=self._registry,
            )
            self._c_failures = Counter(
                "logship_flush_failures_total",
                "Total number of failed flush attempts",
                ["reason"],
                registry=self._registry,
            )
            self._h_flush_latency = Histogram(
                "logship_flush_seconds",
                "Latency of a single flush request",
                buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    def record_flush_success(
        self, records: int, *, duration_seconds: float | None = None
    ) -> None:
        with self._lock:
            self._state.flushes += 1
            self._state.records_delivered += records
        if not self._enabled:
            return
        if self._c_delivered is not None:
            self._c_delivered.inc(records)
        if duration_seconds is not None and self._h_flush_latency is not None:
            self._h_flush_latency.observe(duration_seconds)

    def record_flush_failure(self, reason: str) -> None:
        with self._lock:
            self._state.flushes += 1
            failures = self._state.flush_failures
            failures[reason] = failures.get(reason, 0) + 1
        if not self._enabled:
            return
        if self._c_failures is not None:
            self._c_failures.labels(reason=reason).inc()

    def snapshot(self) -> DeliveryMetrics:
        with self._lock:
            return DeliveryMetrics(
                records_delivered=self._state.records_delivered,
                flushes=self._state.flushes,
                flush_failures=dict(self._state.flush_failures),
            )
