from __future__ import annotations

from collections.abc import Sequence

from linkedin_pipeline.application.ports.session_store_port import SessionStorePort
from linkedin_pipeline.domain.entities.cookie import Cookie


class InMemorySessionStore(SessionStorePort):
    """Simple in-memory store for development and tests. Not persistent."""

    def __init__(self, cookies: Sequence[Cookie] = ()) -> None:
        self._cookies: list[Cookie] = list(cookies)
        self.saves = 0

    def load(self) -> list[Cookie]:
        return list(self._cookies)

    def save(self, cookies: Sequence[Cookie]) -> None:
        self._cookies = list(cookies)
        self.saves += 1
