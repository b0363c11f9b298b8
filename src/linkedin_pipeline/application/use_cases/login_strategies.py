from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from linkedin_pipeline.application.ports.browser_port import BrowserLauncherPort, BrowserPagePort
from linkedin_pipeline.domain.entities.cookie import Cookie, find_session_cookie
from linkedin_pipeline.domain.services.login_heuristic import LoginHeuristic, LoginVerdict
from linkedin_pipeline.domain.value_objects.session_state import SessionState

if TYPE_CHECKING:
    from linkedin_pipeline.application.use_cases.acquire_session import AcquireSessionUseCase

logger = logging.getLogger(__name__)

HOME_URL = "https://www.linkedin.com/"
FEED_URL = "https://www.linkedin.com/feed/"
LOGIN_URL = "https://www.linkedin.com/login"


@dataclass(frozen=True)
class LoginCredentials:
    email: str
    password: str

    def __repr__(self) -> str:
        return f"LoginCredentials(email={self.email!r}, password='***')"


class LoginStrategy(Protocol):
    name: str

    def attempt(self, ctx: "AcquireSessionUseCase") -> bool: ...


class CookieReuseStrategy:
    """Apply a stored cookie set and check that it still opens the feed."""

    name = "cookie_reuse"

    def __init__(self, cookies: Sequence[Cookie]) -> None:
        self.cookies = list(cookies)

    def attempt(self, ctx: "AcquireSessionUseCase") -> bool:
        ctx.transition(SessionState.LOADED)
        now = ctx.clock.now()
        session_cookie = find_session_cookie(self.cookies)
        if session_cookie is None:
            logger.warning("[CookieReuse] stored cookies have no session cookie")
            ctx.transition(SessionState.EXPIRED)
            return False
        if session_cookie.is_expired(now):
            logger.warning(
                "[CookieReuse] session cookie expired at %s", session_cookie.expires_at.isoformat()
            )
            ctx.transition(SessionState.EXPIRED)
            return False
        ctx.expires_at = session_cookie.expires_at
        ctx.check_expiry_warning(session_cookie, now)

        if not ctx.navigator.goto_with_retry(HOME_URL):
            return False
        ctx.page.add_cookies(self.cookies)
        logger.info("[CookieReuse] applied %d cookies", len(self.cookies))
        if not ctx.navigator.goto_with_retry(FEED_URL):
            return False
        if ctx.confirm_login():
            return True

        # one reload before giving up on this cookie set
        logger.info("[CookieReuse] login not confirmed, reloading once")
        ctx.page.reload(timeout_ms=ctx.timeout_ms)
        if ctx.confirm_login():
            return True

        if ctx.state is not SessionState.BLOCKED:
            ctx.transition(SessionState.EXPIRED)
        ctx.page.clear_cookies()
        ctx.expires_at = None
        return False


class CredentialLoginStrategy:
    name = "credentials"

    def __init__(self, credentials: LoginCredentials) -> None:
        self.credentials = credentials

    def attempt(self, ctx: "AcquireSessionUseCase") -> bool:
        if not ctx.navigator.goto_with_retry(LOGIN_URL):
            return False
        logger.info("[CredentialLogin] submitting login form for %s", self.credentials.email)
        response = ctx.page.submit_login_form(
            self.credentials.email, self.credentials.password, timeout_ms=ctx.timeout_ms
        )
        if response.error:
            logger.warning("[CredentialLogin] navigation after submit: %s", response.error)
        if not ctx.confirm_login():
            logger.warning("[CredentialLogin] landed on %s without a session", ctx.page.url)
            return False
        ctx.persist(ctx.page.get_cookies())
        return True


class ManualLoginStrategy:
    """Open a visible browser and wait for a human to log in.

    Only ever selected when explicitly enabled. ``capture`` is also what the
    ``capture-session`` command drives, outside any run.
    """

    name = "manual"

    def __init__(
        self,
        launcher: BrowserLauncherPort,
        *,
        timeout_seconds: float = 300.0,
        poll_interval: float = 5.0,
    ) -> None:
        self.launcher = launcher
        self.timeout_seconds = timeout_seconds
        self.poll_interval = poll_interval

    def capture(
        self,
        confirm: Callable[[BrowserPagePort], bool],
        *,
        timeout_ms: int,
        sleep: Callable[[float], None] = time.sleep,
    ) -> list[Cookie] | None:
        """Poll ``confirm`` until it passes; return the page's cookies, or None on timeout."""
        polls = max(1, math.ceil(self.timeout_seconds / self.poll_interval))
        session = self.launcher.launch(headless=False)
        try:
            page = session.open_page()
            page.goto(LOGIN_URL, timeout_ms=timeout_ms)
            logger.warning(
                "[ManualLogin] log in in the opened browser window, waiting up to %.0fs",
                self.timeout_seconds,
            )
            for _ in range(polls):
                sleep(self.poll_interval)
                if confirm(page):
                    return page.get_cookies()
            logger.error("[ManualLogin] timed out after %.0fs", self.timeout_seconds)
            return None
        finally:
            session.close()

    def attempt(self, ctx: "AcquireSessionUseCase") -> bool:
        cookies = self.capture(
            lambda page: ctx.confirm_login(page, track_state=False),
            timeout_ms=ctx.timeout_ms,
            sleep=ctx.sleep,
        )
        if cookies is None:
            return False
        ctx.persist(cookies)
        ctx.page.add_cookies(cookies)
        return True


def check_login(heuristic: LoginHeuristic, page: BrowserPagePort) -> LoginVerdict:
    """Run the login heuristic on ``page``. A failed DOM inspection counts as not logged in."""
    url = page.url
    verdict = heuristic.classify_url(url)
    if verdict is not None:
        return verdict
    try:
        signals = page.inspect_login_signals()
    except Exception as exc:
        # routine while a login redirect tears down the execution context
        logger.warning("[LoginCheck] page inspection failed: %s", exc)
        return LoginVerdict.NOT_LOGGED_IN
    logger.debug("[LoginCheck] login signals present: %s", signals.present())
    return heuristic.evaluate(url, signals)
