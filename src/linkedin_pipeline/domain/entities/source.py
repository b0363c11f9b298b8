from dataclasses import dataclass
from enum import Enum


class SourceStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


@dataclass(frozen=True)
class Source:
    id: str
    display_name: str
    target_url: str
    group_label: str = ""
    priority: int | None = None
    status: SourceStatus = SourceStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status is SourceStatus.ACTIVE
