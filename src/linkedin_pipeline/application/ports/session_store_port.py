from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from linkedin_pipeline.domain.entities.cookie import Cookie


class SessionStorePort(Protocol):
    """Owns the authentication cookie set between runs."""

    def load(self) -> list[Cookie]:
        """Returns the stored cookie set, or an empty list when none exists."""
        ...

    def save(self, cookies: Sequence[Cookie]) -> None:
        """Persist a freshly captured cookie set. Called only after a verified login."""
        ...
