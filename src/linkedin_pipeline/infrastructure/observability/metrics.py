from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge

from linkedin_pipeline.application.ports.metrics_port import RunMetricsPort
from linkedin_pipeline.domain.entities.run_report import RunReport


class PrometheusRunMetrics(RunMetricsPort):
    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.runs = Counter(
            "linkedin_pipeline_runs",
            "Scrape runs by outcome",
            ["outcome"],
            registry=self.registry,
        )
        self.new_records = Counter(
            "linkedin_pipeline_new_records",
            "Records inserted into the store",
            registry=self.registry,
        )
        self.source_failures = Counter(
            "linkedin_pipeline_source_failures",
            "Sources skipped during a run",
            ["reason"],
            registry=self.registry,
        )
        self.auth_failures = Counter(
            "linkedin_pipeline_auth_failures",
            "Runs that could not establish a session",
            registry=self.registry,
        )
        self.last_run = Gauge(
            "linkedin_pipeline_last_run_timestamp_seconds",
            "Finish time of the last run",
            registry=self.registry,
        )

    def record_run(self, report: RunReport) -> None:
        if not report.success:
            outcome = "failed"
        elif report.partial:
            outcome = "partial"
        else:
            outcome = "success"
        self.runs.labels(outcome=outcome).inc()
        self.new_records.inc(report.new_record_count)
        self.last_run.set(report.finished_at.timestamp())

    def record_source_failure(self, source_id: str, reason: str) -> None:
        # reason text varies per source; keep label cardinality bounded
        self.source_failures.labels(reason=reason.split(":", 1)[0].split(" ", 1)[0]).inc()

    def record_auth_failure(self) -> None:
        self.auth_failures.inc()
