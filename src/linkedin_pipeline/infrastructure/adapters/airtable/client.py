from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

from linkedin_pipeline.application.ports.http_client_port import HttpClientPort, HttpResponse
from linkedin_pipeline.domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

AIRTABLE_API_URL = "https://api.airtable.com/v0"


def escape_formula_string(value: str) -> str:
    """Quote a value for use inside a double-quoted filterByFormula literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class AirtableClient:
    """Thin REST wrapper over one Airtable base.

    Every failure (transport, non-2xx, bad JSON) surfaces as
    ``StoreUnavailableError`` so callers can decide to skip.
    """

    def __init__(
        self,
        http: HttpClientPort,
        *,
        api_key: str,
        base_id: str,
        api_url: str = AIRTABLE_API_URL,
    ) -> None:
        self.http = http
        self.base_id = base_id
        self.api_url = api_url.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def table_url(self, table: str) -> str:
        return f"{self.api_url}/{self.base_id}/{quote(table, safe='')}"

    def _checked(self, resp: HttpResponse, action: str) -> dict[str, Any]:
        if not 200 <= resp.status_code < 300:
            raise StoreUnavailableError(f"Airtable {action} -> HTTP {resp.status_code}: {resp.text[:200]}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise StoreUnavailableError(f"Airtable {action} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise StoreUnavailableError(f"Airtable {action} returned an unexpected payload")
        return data

    def list_records(
        self,
        table: str,
        *,
        formula: str | None = None,
        max_records: int | None = None,
        fields: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch records, following ``offset`` pagination until exhausted."""
        params: dict[str, Any] = {}
        if formula:
            params["filterByFormula"] = formula
        if max_records:
            params["maxRecords"] = max_records
        if fields:
            params["fields[]"] = fields

        records: list[dict[str, Any]] = []
        while True:
            try:
                resp = self.http.get(self.table_url(table), params=params, headers=self._headers)
            except StoreUnavailableError:
                raise
            except Exception as exc:
                raise StoreUnavailableError(f"Airtable list {table!r} failed: {exc}") from exc
            data = self._checked(resp, f"list {table!r}")
            records.extend(data.get("records") or [])
            offset = data.get("offset")
            if not offset or (max_records and len(records) >= max_records):
                break
            params = {**params, "offset": offset}
        return records

    def create_record(self, table: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        try:
            resp = self.http.post(
                self.table_url(table),
                json={"fields": dict(fields), "typecast": True},
                headers=self._headers,
            )
        except Exception as exc:
            raise StoreUnavailableError(f"Airtable create in {table!r} failed: {exc}") from exc
        return self._checked(resp, f"create in {table!r}")
