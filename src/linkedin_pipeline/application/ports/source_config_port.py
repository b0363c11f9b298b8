from typing import Protocol

from linkedin_pipeline.domain.entities.source import Source


class SourceConfigPort(Protocol):
    def list_active_sources(self) -> list[Source]: ...
