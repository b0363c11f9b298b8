from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from linkedin_pipeline.application.ports.browser_port import BrowserPagePort
from linkedin_pipeline.application.ports.clock_port import Clock, SystemClock
from linkedin_pipeline.application.ports.notification_port import (
    COOKIE_WARNING,
    BestEffortNotifier,
    INotificationPort,
)
from linkedin_pipeline.application.ports.session_store_port import SessionStorePort
from linkedin_pipeline.application.use_cases.login_strategies import (
    CookieReuseStrategy,
    CredentialLoginStrategy,
    LoginCredentials,
    LoginStrategy,
    ManualLoginStrategy,
    check_login,
)
from linkedin_pipeline.application.use_cases.navigate_with_retry import NavigationController
from linkedin_pipeline.domain.entities.cookie import Cookie, find_session_cookie
from linkedin_pipeline.domain.services.login_heuristic import LoginHeuristic, LoginVerdict
from linkedin_pipeline.domain.value_objects.session_state import SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionResult:
    state: SessionState
    strategy: str | None
    expires_at: datetime | None
    message: str
    transitions: tuple[SessionState, ...] = ()

    @property
    def ok(self) -> bool:
        return self.state is SessionState.VERIFIED


class AcquireSessionUseCase:
    """Login state machine: stored cookies, then credentials, then manual login.

    The strategy plan is fixed when ``execute`` starts, from what is
    configured and what the store holds. Cookies are persisted only after a
    login that passed the confirmation heuristic.
    """

    def __init__(
        self,
        store: SessionStorePort,
        page: BrowserPagePort,
        navigator: NavigationController,
        *,
        heuristic: LoginHeuristic | None = None,
        credentials: LoginCredentials | None = None,
        manual_login: ManualLoginStrategy | None = None,
        notifier: INotificationPort | None = None,
        clock: Clock | None = None,
        warning_days: float = 5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.page = page
        self.navigator = navigator
        self.heuristic = heuristic or LoginHeuristic()
        self.credentials = credentials
        self.manual_login = manual_login
        self.notifier = BestEffortNotifier(notifier)
        self.clock = clock or SystemClock()
        self.warning_days = warning_days
        self.sleep = sleep
        self.state = SessionState.NO_SESSION
        self.transitions: list[SessionState] = []
        self.expires_at: datetime | None = None
        self.last_verdict: LoginVerdict | None = None

    @property
    def timeout_ms(self) -> int:
        return self.navigator.timeout_ms

    # ---------- state ----------
    def transition(self, state: SessionState) -> None:
        if state is not self.state:
            logger.info("[SessionManager] %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def plan(self, cookies: Sequence[Cookie]) -> list[LoginStrategy]:
        strategies: list[LoginStrategy] = []
        if cookies:
            strategies.append(CookieReuseStrategy(cookies))
        if self.credentials:
            strategies.append(CredentialLoginStrategy(self.credentials))
        if self.manual_login:
            strategies.append(self.manual_login)
        return strategies

    def execute(self) -> SessionResult:
        self.state = SessionState.NO_SESSION
        self.transitions = [SessionState.NO_SESSION]
        self.expires_at = None
        self.last_verdict = None

        try:
            cookies = self.store.load()
        except Exception as exc:
            logger.warning("[SessionManager] could not load stored cookies: %s", exc)
            cookies = []

        strategies = self.plan(cookies)
        logger.info("[SessionManager] login plan: %s", [s.name for s in strategies] or "empty")
        for strategy in strategies:
            try:
                ok = strategy.attempt(self)
            except Exception as exc:
                logger.warning("[SessionManager] %s strategy raised: %s", strategy.name, exc)
                ok = False
            if ok:
                self.transition(SessionState.VERIFIED)
                return SessionResult(
                    SessionState.VERIFIED,
                    strategy.name,
                    self.expires_at,
                    f"Session verified via {strategy.name}",
                    tuple(self.transitions),
                )
            logger.warning("[SessionManager] %s strategy did not yield a session", strategy.name)

        self.transition(SessionState.FAILED)
        detail = self.last_verdict.value if self.last_verdict else "no strategy available"
        return SessionResult(
            SessionState.FAILED,
            None,
            None,
            f"Could not establish a session ({detail})",
            tuple(self.transitions),
        )

    # ---------- helpers used by strategies ----------
    def confirm_login(self, page: BrowserPagePort | None = None, *, track_state: bool = True) -> bool:
        page = page or self.page
        verdict = check_login(self.heuristic, page)
        self.last_verdict = verdict
        if track_state and verdict is LoginVerdict.CHECKPOINT:
            self.transition(SessionState.BLOCKED)
        logger.info("[SessionManager] login check on %s -> %s", page.url, verdict.value)
        return verdict is LoginVerdict.CONFIRMED

    def check_expiry_warning(self, cookie: Cookie, now: datetime) -> None:
        days_left = cookie.days_left(now)
        if days_left is None or days_left > self.warning_days:
            return
        logger.warning(
            "[SessionManager] session cookie expires in %.1f days (threshold %s)",
            days_left,
            self.warning_days,
        )
        self.notifier.notify(
            COOKIE_WARNING,
            {
                "cookie": cookie.name,
                "days_left": round(days_left, 1),
                "expires_at": cookie.expires_at.isoformat() if cookie.expires_at else None,
                "threshold_days": self.warning_days,
            },
        )

    def persist(self, cookies: Sequence[Cookie]) -> None:
        session_cookie = find_session_cookie(cookies)
        self.expires_at = session_cookie.expires_at if session_cookie else None
        try:
            self.store.save(cookies)
            logger.info(
                "[SessionManager] persisted %d cookies: %s", len(cookies), [c.name for c in cookies]
            )
        except Exception as exc:
            logger.error("[SessionManager] cookies captured but not persisted: %s", exc)
