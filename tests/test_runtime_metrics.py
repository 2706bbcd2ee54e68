from __future__ import annotations

from fastapi.testclient import TestClient

import main
from runtime_metrics import RuntimeMetrics, record_counter_metric, record_timing_metric


def test_runtime_metrics_endpoint_returns_snapshot() -> None:
    record_counter_metric(name="recommend.llm.tokens.total", value=123)
    record_timing_metric(name="recommend.provider.github.latency_ms", duration_ms=45)

    with TestClient(main.app) as client:
        client.get("/api/health")
        snapshot = client.get("/metrics/runtime")
        assert snapshot.status_code == 200, snapshot.text
        payload = snapshot.json()
        assert "requests_total" in payload
        assert "errors_5xx_total" in payload
        assert "status_counts" in payload
        assert "counters" in payload
        assert "timers" in payload
        assert int(payload["counters"].get("recommend.llm.tokens.total") or 0) >= 123
        assert "recommend.provider.github.latency_ms" in payload["timers"]
        assert int(payload["requests_total"]) >= 1


def test_runtime_metrics_aggregates_requests_and_timers() -> None:
    metrics = RuntimeMetrics()
    metrics.record_request(path="/api/ai/recommendations", status_code=200, duration_ms=10)
    metrics.record_request(path="/api/ai/recommendations", status_code=502, duration_ms=30)
    metrics.record_request(path="/api/health", status_code=200, duration_ms=2)
    metrics.record_counter(name="  Recommend.Tier.Legacy.Success ", value=2)
    metrics.record_counter(name="", value=5)
    metrics.record_timing(name="recommend.tier.legacy.latency_ms", duration_ms=40)
    metrics.record_timing(name="recommend.tier.legacy.latency_ms", duration_ms=20)

    snapshot = metrics.snapshot()
    assert snapshot["requests_total"] == 3
    assert snapshot["errors_5xx_total"] == 1
    assert snapshot["latency_avg_ms"] == 14.0
    assert snapshot["status_counts"] == {"200": 2, "502": 1}
    assert snapshot["top_paths"][0] == ("/api/ai/recommendations", 2)
    assert snapshot["counters"] == {"recommend.tier.legacy.success": 2}
    assert snapshot["timers"]["recommend.tier.legacy.latency_ms"] == {"count": 2, "avg_ms": 30.0, "max_ms": 40.0}
