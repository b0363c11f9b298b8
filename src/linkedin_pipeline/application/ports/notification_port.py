from __future__ import annotations

import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

COOKIE_WARNING = "Cookie Warning"
SCRAPER_RUN = "Scraper Run"
AUTH_FAILURE = "Auth Failure"


class INotificationPort(Protocol):
    def notify(self, event: str, payload: dict[str, Any]) -> None: ...


class BestEffortNotifier:
    """Advisory channel wrapper: a failed write is logged and swallowed, never raised."""

    def __init__(self, inner: INotificationPort | None) -> None:
        self.inner = inner
        self.failures = 0

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        if self.inner is None:
            return
        try:
            self.inner.notify(event, payload)
        except Exception as exc:
            self.failures += 1
            logger.warning("[BestEffortNotifier] advisory %r not delivered: %s", event, exc)
