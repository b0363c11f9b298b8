from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PWTimeout
from playwright.sync_api import sync_playwright

from linkedin_pipeline.application.ports.browser_port import (
    BrowserLauncherPort,
    BrowserPagePort,
    BrowserSessionPort,
    NavigationResponse,
)
from linkedin_pipeline.domain.entities.cookie import Cookie
from linkedin_pipeline.domain.services.login_heuristic import LoginSignals

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-notifications",
    "--disable-blink-features=AutomationControlled",
]

CHROMIUM_CANDIDATES = (
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
    "/usr/bin/chrome",
)

BLOCKED_RESOURCE_TYPES = frozenset({"image", "media", "font"})

UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
)

# Evaluated in the page; returns the fixed LoginSignals shape.
LOGIN_SIGNALS_JS = """
() => {
  const has = (sel) => !!document.querySelector(sel);
  return {
    nav_bar: has('nav.global-nav, #global-nav'),
    profile_menu: has('.global-nav__me, img.global-nav__me-photo, [data-control-name="nav.settings"]'),
    feed_container: has('.scaffold-finite-scroll, .feed-shared-update-v2, main.scaffold-layout__main'),
    search_input: has('input.search-global-typeahead__input, input[placeholder*="Search"]'),
    messaging: has('#messaging-nav-item, a[href*="/messaging/"], .msg-overlay-list-bubble'),
    login_form: has('form.login__form, input#username, input[name="session_key"]'),
  };
}
"""


def find_chromium_executable(candidates: Sequence[str] = CHROMIUM_CANDIDATES) -> str | None:
    for path in candidates:
        if os.path.exists(path):
            return path
    return None


class PlaywrightPage(BrowserPagePort):
    def __init__(self, page: Any) -> None:
        self._page = page

    @property
    def url(self) -> str:
        return self._page.url

    def _navigation(self, action: str, call: Any) -> NavigationResponse:
        try:
            response = call()
        except (PWTimeout, PlaywrightError) as exc:
            logger.debug("[PlaywrightPage] %s failed: %s", action, exc)
            return NavigationResponse(url=self._page.url, error=str(exc).splitlines()[0])
        status = response.status if response is not None else None
        return NavigationResponse(url=self._page.url, status=status)

    def goto(self, url: str, *, timeout_ms: int) -> NavigationResponse:
        return self._navigation(
            f"goto {url}",
            lambda: self._page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms),
        )

    def reload(self, *, timeout_ms: int) -> NavigationResponse:
        return self._navigation(
            "reload",
            lambda: self._page.reload(wait_until="domcontentloaded", timeout=timeout_ms),
        )

    def get_cookies(self) -> list[Cookie]:
        return [Cookie.from_dict(c) for c in self._page.context.cookies() if c.get("name")]

    def add_cookies(self, cookies: Sequence[Cookie]) -> None:
        self._page.context.add_cookies([c.to_dict() for c in cookies])

    def clear_cookies(self) -> None:
        self._page.context.clear_cookies()

    def inspect_login_signals(self) -> LoginSignals:
        return LoginSignals.from_mapping(self._page.evaluate(LOGIN_SIGNALS_JS))

    def submit_login_form(self, username: str, password: str, *, timeout_ms: int) -> NavigationResponse:
        self._page.fill("input#username", username, timeout=timeout_ms)
        self._page.fill("input#password", password, timeout=timeout_ms)
        try:
            with self._page.expect_navigation(wait_until="domcontentloaded", timeout=timeout_ms):
                self._page.click("button[type='submit']")
        except (PWTimeout, PlaywrightError) as exc:
            return NavigationResponse(url=self._page.url, error=str(exc).splitlines()[0])
        return NavigationResponse(url=self._page.url)

    def scroll(self, steps: int, *, pause_ms: int) -> None:
        for _ in range(steps):
            self._page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            self._page.wait_for_timeout(pause_ms)

    def content(self) -> str:
        return self._page.content()


class PlaywrightBrowserSession(BrowserSessionPort):
    def __init__(self, playwright: Any, browser: Any, *, block_heavy_resources: bool = True) -> None:
        self._playwright = playwright
        self._browser = browser
        self._block = block_heavy_resources
        self._context: Any = None

    def open_page(self) -> PlaywrightPage:
        if self._context is None:
            self._context = self._browser.new_context(
                user_agent=UA,
                ignore_https_errors=True,
                viewport={"width": 1366, "height": 900},
            )
            if self._block:
                self._context.route("**/*", _block_heavy)
        return PlaywrightPage(self._context.new_page())

    def close(self) -> None:
        try:
            self._browser.close()
        finally:
            self._playwright.stop()


def _block_heavy(route: Any) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        route.abort()
    else:
        route.continue_()


class PlaywrightLauncher(BrowserLauncherPort):
    """Chromium through Playwright's sync API, optionally behind the egress proxy."""

    def __init__(
        self,
        *,
        proxy: dict[str, Any] | None = None,
        executable_path: str | None = None,
        block_heavy_resources: bool = True,
    ) -> None:
        self.proxy = proxy
        self.executable_path = executable_path or find_chromium_executable()
        self.block_heavy_resources = block_heavy_resources

    def launch_kwargs(self, *, headless: bool) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"headless": headless, "args": list(LAUNCH_ARGS)}
        if self.executable_path:
            kwargs["executable_path"] = self.executable_path
        if self.proxy:
            kwargs["proxy"] = dict(self.proxy)
        return kwargs

    def launch(self, *, headless: bool) -> PlaywrightBrowserSession:
        logger.info(
            "[PlaywrightLauncher] launching chromium (headless=%s, executable=%s, proxy=%s)",
            headless,
            self.executable_path or "bundled",
            self.proxy["server"] if self.proxy else "none",
        )
        playwright = sync_playwright().start()
        try:
            browser = playwright.chromium.launch(**self.launch_kwargs(headless=headless))
        except Exception:
            playwright.stop()
            raise
        return PlaywrightBrowserSession(
            playwright, browser, block_heavy_resources=self.block_heavy_resources
        )
