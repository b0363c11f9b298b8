from __future__ import annotations

import logging
import time
from collections.abc import Callable
from enum import Enum

from linkedin_pipeline.application.ports.clock_port import Clock, SystemClock
from linkedin_pipeline.application.ports.record_store_port import RecordStorePort
from linkedin_pipeline.domain.entities.post_record import (
    DEFAULT_MAX_BODY_LENGTH,
    PersistedRecord,
    RawRecord,
)
from linkedin_pipeline.domain.entities.source import Source
from linkedin_pipeline.domain.value_objects.post_url import canonical_post_url

logger = logging.getLogger(__name__)


class IngestOutcome(str, Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    STORE_UNAVAILABLE = "store_unavailable"
    INSERT_FAILED = "insert_failed"

    @property
    def is_persistence_failure(self) -> bool:
        return self in (IngestOutcome.STORE_UNAVAILABLE, IngestOutcome.INSERT_FAILED)


class IngestRecordUseCase:
    """Existence-checked, at-most-once insertion keyed on the post's external id.

    When existence cannot be confirmed the record is skipped, never inserted.
    """

    def __init__(
        self,
        store: RecordStorePort,
        *,
        clock: Clock | None = None,
        max_body_length: int = DEFAULT_MAX_BODY_LENGTH,
        insert_delay: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.max_body_length = max_body_length
        self.insert_delay = insert_delay
        self._sleep = sleep

    def execute(self, raw: RawRecord, source: Source) -> IngestOutcome:
        external_id = canonical_post_url(raw.external_id)
        if not external_id:
            logger.debug("[Ingest] record from %s has no external id, rejected", source.id)
            return IngestOutcome.REJECTED

        try:
            if self.store.exists(external_id):
                return IngestOutcome.DUPLICATE
        except Exception as exc:
            logger.warning("[Ingest] existence check failed for %s, skipping: %s", external_id, exc)
            return IngestOutcome.STORE_UNAVAILABLE

        record = PersistedRecord.from_raw(
            raw,
            source,
            external_id=external_id,
            captured_at=self.clock.now(),
            max_body_length=self.max_body_length,
        )
        try:
            inserted = self.store.insert(record)
        except Exception as exc:
            logger.warning("[Ingest] insert failed for %s: %s", external_id, exc)
            return IngestOutcome.INSERT_FAILED
        if not inserted:
            return IngestOutcome.INSERT_FAILED

        logger.info("[Ingest] new post %s (%s)", external_id, source.display_name)
        if self.insert_delay > 0:
            self._sleep(self.insert_delay)
        return IngestOutcome.INSERTED

    def ingest(self, raw: RawRecord, source: Source) -> bool:
        return self.execute(raw, source) is IngestOutcome.INSERTED
