from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

LOGIN_URL_MARKERS = ("/login", "/uas/login", "/authwall", "/signup")
CHECKPOINT_URL_MARKERS = ("/checkpoint", "/challenge")
CONNECTION_ERROR_PREFIXES = ("chrome-error://", "about:neterror")
AUTHENTICATED_URL_MARKERS = ("/feed", "/mynetwork", "/in/", "/jobs")

POSITIVE_SIGNALS = ("nav_bar", "profile_menu", "feed_container", "search_input", "messaging")


def is_connection_error_url(url: str | None) -> bool:
    return bool(url) and url.startswith(CONNECTION_ERROR_PREFIXES)


@dataclass(frozen=True)
class LoginSignals:
    """Fixed-shape result of inspecting a loaded page for login markers."""

    nav_bar: bool = False
    profile_menu: bool = False
    feed_container: bool = False
    search_input: bool = False
    messaging: bool = False
    login_form: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "LoginSignals":
        data = data or {}
        return cls(**{name: bool(data.get(name)) for name in (*POSITIVE_SIGNALS, "login_form")})

    def present(self) -> list[str]:
        return [name for name in POSITIVE_SIGNALS if getattr(self, name)]


class LoginVerdict(str, Enum):
    CONFIRMED = "confirmed"
    NOT_LOGGED_IN = "not_logged_in"
    LOGIN_PAGE = "login_page"
    CHECKPOINT = "checkpoint"
    CONNECTION_ERROR = "connection_error"
    LOGIN_FORM = "login_form"


@dataclass(frozen=True)
class LoginHeuristic:
    """Multi-signal "are we logged in" check.

    No single marker is reliable on the target, so positive signals are
    scored and a visible login form vetoes everything. ``min_score`` and the
    weights are tunable because the markup drifts.
    """

    min_score: float = 2.0
    weights: Mapping[str, float] = field(
        default_factory=lambda: {name: 1.0 for name in POSITIVE_SIGNALS}
    )

    def classify_url(self, url: str | None) -> LoginVerdict | None:
        """Reject by URL alone, before any DOM inspection."""
        if is_connection_error_url(url):
            return LoginVerdict.CONNECTION_ERROR
        lowered = (url or "").lower()
        if any(marker in lowered for marker in CHECKPOINT_URL_MARKERS):
            return LoginVerdict.CHECKPOINT
        if any(marker in lowered for marker in LOGIN_URL_MARKERS):
            return LoginVerdict.LOGIN_PAGE
        return None

    def score(self, signals: LoginSignals) -> float:
        return sum(self.weights.get(name, 1.0) for name in signals.present())

    def evaluate(self, url: str | None, signals: LoginSignals) -> LoginVerdict:
        rejected = self.classify_url(url)
        if rejected is not None:
            return rejected
        if signals.login_form:
            return LoginVerdict.LOGIN_FORM
        score = self.score(signals)
        if score >= self.min_score:
            return LoginVerdict.CONFIRMED
        lowered = (url or "").lower()
        if score > 0 and any(marker in lowered for marker in AUTHENTICATED_URL_MARKERS):
            return LoginVerdict.CONFIRMED
        return LoginVerdict.NOT_LOGGED_IN
