from __future__ import annotations

from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from linkedin_pipeline.domain.entities.run_report import RunReport
from linkedin_pipeline.infrastructure.observability.metrics import PrometheusRunMetrics
from linkedin_pipeline.presentation.api.main import create_app
from linkedin_pipeline.presentation.scheduler import RunGuard
from tests.unit._fakes_pipeline import NOW


def _report() -> RunReport:
    return RunReport(
        started_at=NOW,
        finished_at=NOW,
        success=True,
        new_record_count=2,
        sources_total=1,
        new_by_source={"recA": 2},
    )


def test_health():
    client = TestClient(create_app(_report))
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["uptime"] >= 0


def test_scrape_on_demand_returns_report():
    calls = []

    def run():
        calls.append(1)
        return _report()

    res = TestClient(create_app(run)).post("/scrape-on-demand")
    assert res.status_code == 200
    assert res.json()["new_record_count"] == 2
    assert res.json()["new_by_source"] == {"recA": 2}
    assert calls == [1]


def test_scrape_on_demand_conflicts_with_running_job():
    guard = RunGuard()
    client = TestClient(create_app(_report, guard=guard))
    guard._lock.acquire()
    try:
        res = client.post("/scrape-on-demand")
    finally:
        guard._lock.release()
    assert res.status_code == 409


def test_metrics_exposes_registry():
    registry = CollectorRegistry()
    PrometheusRunMetrics(registry).record_run(_report())
    res = TestClient(create_app(_report, registry=registry)).get("/metrics")
    assert res.status_code == 200
    assert 'linkedin_pipeline_runs_total{outcome="success"} 1.0' in res.text
