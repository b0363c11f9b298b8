from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt

from linkedin_pipeline.application.ports.browser_port import BrowserPagePort, NavigationResponse
from linkedin_pipeline.domain.services.login_heuristic import is_connection_error_url

logger = logging.getLogger(__name__)


class NavigationFailure(str, Enum):
    TRANSIENT_NETWORK = "transient_network"
    SERVER_REJECTION = "server_rejection"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 5.0

    def delay_for(self, attempt: int, failure: NavigationFailure | None) -> float:
        """Connection failures back off linearly by attempt index; rejections wait the base delay."""
        if failure is NavigationFailure.TRANSIENT_NETWORK:
            return self.backoff_seconds * attempt
        return self.backoff_seconds


def classify_navigation(response: NavigationResponse) -> NavigationFailure | None:
    if response.error or is_connection_error_url(response.url):
        return NavigationFailure.TRANSIENT_NETWORK
    if response.status is not None and response.status >= 400:
        return NavigationFailure.SERVER_REJECTION
    return None


class NavigationController:
    """Every page transition goes through here.

    ``goto_with_retry`` returns a boolean: running out of attempts is an
    ordinary outcome the caller decides on, never an exception.
    """

    def __init__(
        self,
        page: BrowserPagePort,
        *,
        policy: RetryPolicy | None = None,
        timeout_ms: int = 90_000,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.page = page
        self.policy = policy or RetryPolicy()
        self.timeout_ms = timeout_ms
        self._sleep = sleep
        self.last_failure: NavigationFailure | None = None

    def _attempt(self, target: str) -> NavigationFailure | None:
        try:
            response = self.page.goto(target, timeout_ms=self.timeout_ms)
        except Exception as exc:
            logger.warning("[NavigationController] goto %s raised: %s", target, exc)
            return NavigationFailure.TRANSIENT_NETWORK
        failure = classify_navigation(response)
        if failure is NavigationFailure.TRANSIENT_NETWORK:
            logger.warning(
                "[NavigationController] connection failure on %s (landed on %s): %s",
                target,
                response.url,
                response.error or "error page",
            )
        elif failure is NavigationFailure.SERVER_REJECTION:
            logger.warning("[NavigationController] %s answered HTTP %s", target, response.status)
        return failure

    def _wait(self, retry_state: RetryCallState) -> float:
        failure = retry_state.outcome.result() if retry_state.outcome else None
        delay = self.policy.delay_for(retry_state.attempt_number, failure)
        logger.info(
            "[NavigationController] attempt %d failed (%s), retrying in %.1fs",
            retry_state.attempt_number,
            failure.value if failure else "unknown",
            delay,
        )
        return delay

    def goto_with_retry(self, target: str, max_attempts: int | None = None) -> bool:
        attempts = max(1, max_attempts or self.policy.max_attempts)
        retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=self._wait,
            retry=retry_if_result(lambda failure: failure is not None),
            retry_error_callback=lambda state: state.outcome.result(),
            sleep=self._sleep,
        )
        self.last_failure = retrying(self._attempt, target)
        if self.last_failure is None:
            logger.debug("[NavigationController] reached %s", target)
            return True
        logger.error(
            "[NavigationController] giving up on %s after %d attempts (%s)",
            target,
            attempts,
            self.last_failure.value,
        )
        return False
