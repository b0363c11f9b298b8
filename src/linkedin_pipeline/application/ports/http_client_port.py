from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol
import json


class HttpResponse:
    def __init__(
        self,
        status_code: int,
        text: str,
        url: str,
        headers: Mapping[str, str],
        *,
        raw: Any | None = None,
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.url = url
        self.headers = dict(headers)
        self._raw = raw

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._raw is not None and hasattr(self._raw, "json"):
            return self._raw.json()
        return json.loads(self.text)


class HttpClientPort(Protocol):
    """Minimal HTTP client abstraction used for egress checks and the record store API."""

    def get(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse: ...
    def post(
        self,
        url: str,
        *,
        json: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse: ...
    def close(self) -> None: ...
