from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.value_objects.proxy_config import ProxyConfig

_TRUE = {"1", "true", "yes", "on"}


def parse_bool(raw: str | None, default: bool = False) -> bool:
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in _TRUE


def _num(env: Mapping[str, str], key: str, default: float, cast: type = float):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return cast(default)
    try:
        return cast(float(raw)) if cast is int else cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    # proxy
    proxy_url: str = ""
    proxy_host: str = ""
    proxy_port: str = ""
    proxy_username: str = ""
    proxy_password: str = ""
    require_proxy: bool = True
    proxy_check_url: str = "https://api.ipify.org?format=json"
    proxy_check_timeout: float = 15.0
    proxy_check_attempts: int = 2
    # session
    linkedin_cookies: str = ""
    linkedin_email: str = ""
    linkedin_password: str = ""
    cookies_file: str = ".linkedin_cookies.json"
    cookie_warning_days: float = 5.0
    enable_manual_login: bool = False
    manual_login_timeout: float = 300.0
    manual_login_poll_interval: float = 5.0
    login_min_signals: float = 2.0
    # scraping
    max_posts_per_source: int = 10
    delay_between_sources: float = 60.0
    page_timeout: float = 90.0
    nav_max_attempts: int = 3
    nav_backoff: float = 5.0
    scrape_schedule: str = "every 6 hours"
    run_on_start: bool = True
    # browser
    headless: bool = True
    browser_executable_path: str = ""
    block_heavy_resources: bool = True
    # airtable
    airtable_api_key: str = ""
    airtable_base_id: str = ""
    airtable_posts_table: str = "LinkedIn Posts"
    airtable_sources_table: str = "Sources"
    airtable_logs_table: str = "Logs"
    # misc
    max_content_length: int = 1000
    http_timeout: float = 45.0
    log_level: str = "INFO"
    api_port: int = 3000

    def __repr__(self) -> str:
        return (
            f"Settings(proxy_configured={self.has_proxy}, "
            f"airtable_base={self.airtable_base_id!r}, schedule={self.scrape_schedule!r})"
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, dotenv: bool = True) -> "Settings":
        """Build settings from the environment, after loading ``.env`` if present."""
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ
        env = environ

        def s(key: str, default: str = "") -> str:
            return (env.get(key) or default).strip()

        return cls(
            proxy_url=s("PROXY_URL"),
            proxy_host=s("PROXY_HOST"),
            proxy_port=s("PROXY_PORT"),
            proxy_username=s("PROXY_USERNAME"),
            proxy_password=env.get("PROXY_PASSWORD", ""),
            require_proxy=parse_bool(env.get("REQUIRE_PROXY"), True),
            proxy_check_url=s("PROXY_CHECK_URL", cls.proxy_check_url),
            proxy_check_timeout=_num(env, "PROXY_CHECK_TIMEOUT", 15.0),
            proxy_check_attempts=_num(env, "PROXY_CHECK_ATTEMPTS", 2, int),
            linkedin_cookies=s("LINKEDIN_COOKIES"),
            linkedin_email=s("LINKEDIN_EMAIL"),
            linkedin_password=env.get("LINKEDIN_PASSWORD", ""),
            cookies_file=s("COOKIES_FILE", cls.cookies_file),
            cookie_warning_days=_num(env, "COOKIE_WARNING_DAYS", 5.0),
            enable_manual_login=parse_bool(env.get("ENABLE_MANUAL_LOGIN"), False),
            manual_login_timeout=_num(env, "MANUAL_LOGIN_TIMEOUT", 300.0),
            manual_login_poll_interval=_num(env, "MANUAL_LOGIN_POLL_INTERVAL", 5.0),
            login_min_signals=_num(env, "LOGIN_MIN_SIGNALS", 2.0),
            max_posts_per_source=_num(env, "MAX_POSTS_PER_SOURCE", 10, int),
            delay_between_sources=_num(env, "DELAY_BETWEEN_SOURCES", 60.0),
            page_timeout=_num(env, "PAGE_TIMEOUT", 90.0),
            nav_max_attempts=_num(env, "NAV_MAX_ATTEMPTS", 3, int),
            nav_backoff=_num(env, "NAV_BACKOFF", 5.0),
            scrape_schedule=s("SCRAPE_SCHEDULE", cls.scrape_schedule),
            run_on_start=parse_bool(env.get("RUN_ON_START"), True),
            headless=parse_bool(env.get("HEADLESS"), True),
            browser_executable_path=s("BROWSER_EXECUTABLE_PATH"),
            block_heavy_resources=parse_bool(env.get("BLOCK_HEAVY_RESOURCES"), True),
            airtable_api_key=s("AIRTABLE_API_KEY"),
            airtable_base_id=s("AIRTABLE_BASE_ID"),
            airtable_posts_table=s("AIRTABLE_POSTS_TABLE", cls.airtable_posts_table),
            airtable_sources_table=s("AIRTABLE_SOURCES_TABLE", cls.airtable_sources_table),
            airtable_logs_table=s("AIRTABLE_LOGS_TABLE", cls.airtable_logs_table),
            max_content_length=_num(env, "MAX_CONTENT_LENGTH", 1000, int),
            http_timeout=_num(env, "HTTP_TIMEOUT", 45.0),
            log_level=s("LOG_LEVEL", "INFO").upper(),
            api_port=_num(env, "API_PORT", 3000, int),
        )

    # ---------- derived ----------
    def proxy(self) -> ProxyConfig | None:
        return ProxyConfig.resolve(
            url=self.proxy_url,
            host=self.proxy_host,
            port=self.proxy_port,
            username=self.proxy_username,
            password=self.proxy_password,
        )

    @property
    def has_proxy(self) -> bool:
        return bool(self.proxy_url or self.proxy_host)

    @property
    def has_credentials(self) -> bool:
        return bool(self.linkedin_email and self.linkedin_password)

    @property
    def has_airtable(self) -> bool:
        return bool(self.airtable_api_key and self.airtable_base_id)

    def validate_startup(self, has_stored_session: bool) -> None:
        """Fail fast on configuration that can never produce a successful run."""
        if self.require_proxy and self.proxy() is None:
            raise ConfigurationError("A proxy is required (REQUIRE_PROXY) but none is configured")
        if not (has_stored_session or self.has_credentials or self.enable_manual_login):
            raise ConfigurationError(
                "No stored session, no LINKEDIN_EMAIL/LINKEDIN_PASSWORD and manual login disabled"
            )
        if self.nav_max_attempts < 1:
            raise ConfigurationError("NAV_MAX_ATTEMPTS must be at least 1")
        if self.max_posts_per_source < 1:
            raise ConfigurationError("MAX_POSTS_PER_SOURCE must be at least 1")
