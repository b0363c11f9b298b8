from __future__ import annotations

from linkedin_pipeline.application.ports.browser_port import NavigationResponse
from linkedin_pipeline.application.use_cases.navigate_with_retry import (
    NavigationController,
    NavigationFailure,
    RetryPolicy,
    classify_navigation,
)
from tests.unit._fakes_browser import FakePage
from tests.unit._fakes_pipeline import SleepRecorder

TARGET = "https://www.linkedin.com/company/acme/posts/?feedView=all"


def _controller(page, sleep, attempts=3):
    return NavigationController(page, policy=RetryPolicy(max_attempts=attempts, backoff_seconds=5), timeout_ms=1000, sleep=sleep)


def test_classification():
    assert classify_navigation(NavigationResponse(url=TARGET, status=200)) is None
    assert classify_navigation(NavigationResponse(url=TARGET, status=302)) is None
    assert classify_navigation(NavigationResponse(url=TARGET, status=403)) is NavigationFailure.SERVER_REJECTION
    assert classify_navigation(NavigationResponse(url="chrome-error://chromewebdata/")) is NavigationFailure.TRANSIENT_NETWORK
    assert classify_navigation(NavigationResponse(url=TARGET, error="net::ERR_TUNNEL_CONNECTION_FAILED")) is NavigationFailure.TRANSIENT_NETWORK


def test_connection_errors_exhaust_without_raising():
    page = FakePage(script={TARGET: [NavigationResponse(url="chrome-error://chromewebdata/")]})
    sleep = SleepRecorder()
    nav = _controller(page, sleep)

    assert nav.goto_with_retry(TARGET) is False
    assert page.visited == [TARGET] * 3
    # linear backoff by attempt index, no sleep after the last attempt
    assert sleep.calls == [5, 10]
    assert nav.last_failure is NavigationFailure.TRANSIENT_NETWORK


def test_server_rejection_is_retried_with_base_delay():
    page = FakePage(script={TARGET: [NavigationResponse(url=TARGET, status=429), NavigationResponse(url=TARGET, status=200)]})
    sleep = SleepRecorder()
    nav = _controller(page, sleep)

    assert nav.goto_with_retry(TARGET) is True
    assert len(page.visited) == 2
    assert sleep.calls == [5]
    assert nav.last_failure is None


def test_engine_exception_counts_as_transient():
    class ExplodingPage(FakePage):
        def goto(self, url, *, timeout_ms):
            self.visited.append(url)
            raise RuntimeError("Target page, context or browser has been closed")

    page = ExplodingPage()
    sleep = SleepRecorder()
    assert _controller(page, sleep, attempts=2).goto_with_retry(TARGET) is False
    assert len(page.visited) == 2
    assert sleep.calls == [5]


def test_max_attempts_override():
    page = FakePage(script={TARGET: [NavigationResponse(url=TARGET, status=500)]})
    sleep = SleepRecorder()
    assert _controller(page, sleep).goto_with_retry(TARGET, max_attempts=1) is False
    assert sleep.calls == []
