from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RunReport:
    started_at: datetime
    finished_at: datetime
    success: bool
    new_record_count: int
    error_summary: str | None = None
    sources_total: int = 0
    source_failures: int = 0
    persistence_failures: int = 0
    new_by_source: dict[str, int] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        """A successful run where at least one source or write did not complete."""
        return self.success and (self.source_failures > 0 or self.persistence_failures > 0)

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "success": self.success,
            "partial": self.partial,
            "new_record_count": self.new_record_count,
            "error_summary": self.error_summary,
            "sources_total": self.sources_total,
            "source_failures": self.source_failures,
            "persistence_failures": self.persistence_failures,
            "new_by_source": dict(self.new_by_source),
            "duration_seconds": round(self.duration_seconds, 3),
        }
