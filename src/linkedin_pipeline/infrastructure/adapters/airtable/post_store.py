from __future__ import annotations

import logging
from typing import Any

from linkedin_pipeline.application.ports.record_store_port import RecordStorePort
from linkedin_pipeline.domain.entities.post_record import PersistedRecord
from linkedin_pipeline.infrastructure.adapters.airtable.client import (
    AirtableClient,
    escape_formula_string,
)

logger = logging.getLogger(__name__)

POST_URL_FIELD = "Post URL"


def record_to_fields(record: PersistedRecord) -> dict[str, Any]:
    fields: dict[str, Any] = {
        POST_URL_FIELD: record.external_id,
        "Author Name": record.author_name,
        "Author Profile URL": record.author_url,
        "Group": record.group_label,
        "Post Content": record.body,
        "Post Date": record.published_at,
        "Likes": record.reaction_count,
        "Comments": record.comment_count,
        "Shares": record.share_count,
        "Has Media": record.has_media,
        "Source": record.source_id,
        "Captured At": record.captured_at.isoformat(),
    }
    if record.media_url:
        fields["Media URL"] = record.media_url
    return fields


class AirtablePostStore(RecordStorePort):
    def __init__(self, client: AirtableClient, table: str = "LinkedIn Posts") -> None:
        self.client = client
        self.table = table

    def exists(self, external_id: str) -> bool:
        formula = f'{{{POST_URL_FIELD}}} = "{escape_formula_string(external_id)}"'
        records = self.client.list_records(self.table, formula=formula, max_records=1)
        return bool(records)

    def insert(self, record: PersistedRecord) -> bool:
        created = self.client.create_record(self.table, record_to_fields(record))
        logger.debug("[AirtablePostStore] created %s for %s", created.get("id"), record.external_id)
        return bool(created.get("id"))
