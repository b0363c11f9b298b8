from typing import Protocol

from linkedin_pipeline.domain.entities.post_record import PersistedRecord


class RecordStorePort(Protocol):
    """External structured store for persisted posts.

    Both calls raise ``StoreUnavailableError`` when the store cannot be reached.
    """

    def exists(self, external_id: str) -> bool: ...
    def insert(self, record: PersistedRecord) -> bool: ...
