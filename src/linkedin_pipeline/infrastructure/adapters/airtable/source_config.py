from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from linkedin_pipeline.application.ports.source_config_port import SourceConfigPort
from linkedin_pipeline.domain.entities.source import Source, SourceStatus
from linkedin_pipeline.infrastructure.adapters.airtable.client import AirtableClient

logger = logging.getLogger(__name__)

ACTIVE_FORMULA = '{Status} = "Active"'


def _priority(raw: Any) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def source_from_record(record: Mapping[str, Any]) -> Source | None:
    fields = record.get("fields") or {}
    url = str(fields.get("Profile URL") or "").strip()
    if not url:
        return None
    status = SourceStatus.ACTIVE if fields.get("Status") == "Active" else SourceStatus.INACTIVE
    return Source(
        id=str(record.get("id") or url),
        display_name=str(fields.get("Name") or url),
        target_url=url,
        group_label=str(fields.get("Group") or ""),
        priority=_priority(fields.get("Priority")),
        status=status,
    )


class AirtableSourceConfig(SourceConfigPort):
    """Active sources read from the Sources table, in the order the table lists them."""

    def __init__(self, client: AirtableClient, table: str = "Sources") -> None:
        self.client = client
        self.table = table

    def list_active_sources(self) -> list[Source]:
        records = self.client.list_records(self.table, formula=ACTIVE_FORMULA)
        sources = []
        for record in records:
            source = source_from_record(record)
            if source is None:
                logger.warning("[AirtableSourceConfig] record %s has no profile URL, ignored", record.get("id"))
                continue
            if source.is_active:
                sources.append(source)
        return sources
