from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from linkedin_pipeline.application.ports.notification_port import (
    AUTH_FAILURE,
    COOKIE_WARNING,
    INotificationPort,
    SCRAPER_RUN,
)
from linkedin_pipeline.infrastructure.adapters.airtable.client import AirtableClient


def advisory_message(event: str, payload: dict[str, Any]) -> str:
    if event == COOKIE_WARNING:
        return f"Session cookie expires in {payload.get('days_left')} days"
    if event == SCRAPER_RUN:
        if payload.get("success"):
            return f"Run finished: {payload.get('new_record_count', 0)} new posts"
        return f"Run failed: {payload.get('error_summary')}"
    if event == AUTH_FAILURE:
        return f"Authentication failed ({payload.get('consecutive_failures', 1)} in a row)"
    return event


class AirtableAdvisoryLog(INotificationPort):
    """Writes advisories into the Logs table. Errors propagate to the caller's wrapper."""

    def __init__(self, client: AirtableClient, table: str = "Logs") -> None:
        self.client = client
        self.table = table

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        self.client.create_record(
            self.table,
            {
                "Type": event,
                "Message": advisory_message(event, payload),
                "Timestamp": datetime.now(UTC).isoformat(),
                "Details": json.dumps(payload, default=str),
            },
        )
