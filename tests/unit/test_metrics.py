from __future__ import annotations

from logship.metrics.metrics import MetricsCollector


def test_disabled_collector_tracks_in_memory_only() -> None:
    metrics = MetricsCollector()
    metrics.record_flush_success(3)
    metrics.record_flush_failure("rejected")

    snap = metrics.snapshot()
    assert not metrics.is_enabled
    assert metrics.registry is None
    assert snap.records_delivered == 3
    assert snap.flushes == 2
    assert snap.flush_failures == {"rejected": 1}


def test_enabled_collector_exports_prometheus_samples() -> None:
    metrics = MetricsCollector(enabled=True)
    metrics.record_flush_success(2, duration_seconds=0.01)
    metrics.record_flush_failure("transport")
    metrics.record_flush_failure("transport")

    registry = metrics.registry
    assert registry is not None
    assert registry.get_sample_value("logship_records_delivered_total") == 2.0
    assert (
        registry.get_sample_value(
            "logship_flush_failures_total", {"reason": "transport"}
        )
        == 2.0
    )
    assert registry.get_sample_value("logship_flush_seconds_count") == 1.0


def test_collectors_use_isolated_registries() -> None:
    first = MetricsCollector(enabled=True)
    second = MetricsCollector(enabled=True)
    first.record_flush_success(1)

    assert second.registry is not None
    assert second.registry.get_sample_value("logship_records_delivered_total") == 0.0


def test_snapshot_is_a_copy() -> None:
    metrics = MetricsCollector()
    metrics.record_flush_failure("encode")
    snap = metrics.snapshot()
    snap.flush_failures["encode"] = 99

    assert metrics.snapshot().flush_failures == {"encode": 1}
