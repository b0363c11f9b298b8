from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from linkedin_pipeline.domain.entities.cookie import Cookie
from linkedin_pipeline.domain.services.login_heuristic import LoginSignals


@dataclass(frozen=True)
class NavigationResponse:
    """What a navigation ended on. ``error`` is set when the engine itself failed."""

    url: str
    status: int | None = None
    error: str | None = None


class BrowserPagePort(Protocol):
    """The only browser surface the core depends on."""

    @property
    def url(self) -> str: ...

    def goto(self, url: str, *, timeout_ms: int) -> NavigationResponse:
        """Navigate. Engine errors are reported in the response, not raised."""
        ...

    def reload(self, *, timeout_ms: int) -> NavigationResponse: ...
    def get_cookies(self) -> list[Cookie]: ...
    def add_cookies(self, cookies: Sequence[Cookie]) -> None: ...
    def clear_cookies(self) -> None: ...
    def inspect_login_signals(self) -> LoginSignals: ...
    def submit_login_form(self, username: str, password: str, *, timeout_ms: int) -> NavigationResponse: ...
    def scroll(self, steps: int, *, pause_ms: int) -> None: ...
    def content(self) -> str: ...


class BrowserSessionPort(Protocol):
    def open_page(self) -> BrowserPagePort: ...
    def close(self) -> None: ...


class BrowserLauncherPort(Protocol):
    def launch(self, *, headless: bool) -> BrowserSessionPort: ...
