from collections.abc import Sequence

from linkedin_pipeline.application.ports.record_store_port import RecordStorePort
from linkedin_pipeline.domain.entities.post_record import PersistedRecord


class InMemoryRecordStore(RecordStorePort):
    """Record store kept in a list. Test double for the Airtable post store."""

    def __init__(self) -> None:
        self._data: list[PersistedRecord] = []

    def exists(self, external_id: str) -> bool:
        return any(r.external_id == external_id for r in self._data)

    def insert(self, record: PersistedRecord) -> bool:
        self._data.append(record)
        return True

    def list(self, limit: int = 100, offset: int = 0) -> Sequence[PersistedRecord]:
        return self._data[offset : offset + limit]
