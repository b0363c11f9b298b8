from typing import Protocol

from linkedin_pipeline.domain.entities.run_report import RunReport


class RunMetricsPort(Protocol):
    def record_run(self, report: RunReport) -> None: ...
    def record_source_failure(self, source_id: str, reason: str) -> None: ...
    def record_auth_failure(self) -> None: ...
