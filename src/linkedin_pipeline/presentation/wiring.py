from __future__ import annotations

import logging
from dataclasses import dataclass

from linkedin_pipeline.application.ports.browser_port import BrowserPagePort
from linkedin_pipeline.application.use_cases.acquire_session import AcquireSessionUseCase
from linkedin_pipeline.application.use_cases.ingest_record import IngestRecordUseCase
from linkedin_pipeline.application.use_cases.login_strategies import (
    LoginCredentials,
    ManualLoginStrategy,
)
from linkedin_pipeline.application.use_cases.navigate_with_retry import (
    NavigationController,
    RetryPolicy,
)
from linkedin_pipeline.application.use_cases.run_scrape import RunOptions, RunScrapeUseCase
from linkedin_pipeline.config import Settings
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.services.login_heuristic import LoginHeuristic
from linkedin_pipeline.domain.value_objects.proxy_config import ProxyConfig
from linkedin_pipeline.infrastructure.adapters.airtable.advisory_log import AirtableAdvisoryLog
from linkedin_pipeline.infrastructure.adapters.airtable.client import AirtableClient
from linkedin_pipeline.infrastructure.adapters.airtable.post_store import AirtablePostStore
from linkedin_pipeline.infrastructure.adapters.airtable.source_config import AirtableSourceConfig
from linkedin_pipeline.infrastructure.adapters.browser.playwright_browser import PlaywrightLauncher
from linkedin_pipeline.infrastructure.adapters.extraction.feed_extractor import FeedPostExtractor
from linkedin_pipeline.infrastructure.adapters.http.httpx_client import HttpxClient
from linkedin_pipeline.infrastructure.adapters.notification.notification_adapter import (
    CompositeNotifier,
    LoggingNotificationAdapter,
)
from linkedin_pipeline.infrastructure.adapters.proxy.proxy_gateway import ProxyGateway
from linkedin_pipeline.infrastructure.adapters.session.file_store import FileSessionStore
from linkedin_pipeline.infrastructure.observability.metrics import PrometheusRunMetrics

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    settings: Settings
    session_store: FileSessionStore
    launcher: PlaywrightLauncher
    run_scrape: RunScrapeUseCase
    metrics: PrometheusRunMetrics


def build_session_store(settings: Settings) -> FileSessionStore:
    return FileSessionStore(settings.cookies_file, env_blob=settings.linkedin_cookies)


def build_launcher(settings: Settings, proxy: ProxyGateway | None = None) -> PlaywrightLauncher:
    return PlaywrightLauncher(
        proxy=proxy.launch_options() if proxy else None,
        executable_path=settings.browser_executable_path or None,
        block_heavy_resources=settings.block_heavy_resources,
    )


def build_proxy_gateway(settings: Settings) -> ProxyGateway:
    def http_factory(config: ProxyConfig | None) -> HttpxClient:
        return HttpxClient(
            timeout=settings.proxy_check_timeout,
            proxy=config.url_with_credentials() if config else None,
            max_attempts=1,
        )

    return ProxyGateway.from_settings(settings, http_factory)


def build_pipeline(settings: Settings, *, metrics: PrometheusRunMetrics | None = None) -> Pipeline:
    """Composition root. Raises ConfigurationError before anything is launched."""
    if not settings.has_airtable:
        raise ConfigurationError("AIRTABLE_API_KEY and AIRTABLE_BASE_ID are required")

    proxy = build_proxy_gateway(settings)
    store = build_session_store(settings)
    launcher = build_launcher(settings, proxy)

    airtable = AirtableClient(
        HttpxClient(timeout=settings.http_timeout),
        api_key=settings.airtable_api_key,
        base_id=settings.airtable_base_id,
    )
    notifier = CompositeNotifier(
        [LoggingNotificationAdapter(), AirtableAdvisoryLog(airtable, settings.airtable_logs_table)]
    )
    heuristic = LoginHeuristic(min_score=settings.login_min_signals)
    credentials = (
        LoginCredentials(settings.linkedin_email, settings.linkedin_password)
        if settings.has_credentials
        else None
    )
    manual = (
        ManualLoginStrategy(
            launcher,
            timeout_seconds=settings.manual_login_timeout,
            poll_interval=settings.manual_login_poll_interval,
        )
        if settings.enable_manual_login
        else None
    )

    def session_factory(page: BrowserPagePort, navigator: NavigationController) -> AcquireSessionUseCase:
        return AcquireSessionUseCase(
            store,
            page,
            navigator,
            heuristic=heuristic,
            credentials=credentials,
            manual_login=manual,
            notifier=notifier,
            warning_days=settings.cookie_warning_days,
        )

    metrics = metrics or PrometheusRunMetrics()
    run_scrape = RunScrapeUseCase(
        proxy=proxy,
        launcher=launcher,
        session_factory=session_factory,
        sources=AirtableSourceConfig(airtable, settings.airtable_sources_table),
        extractor=FeedPostExtractor(),
        ingestor=IngestRecordUseCase(
            AirtablePostStore(airtable, settings.airtable_posts_table),
            max_body_length=settings.max_content_length,
        ),
        notifier=notifier,
        metrics=metrics,
        options=RunOptions(
            max_records_per_source=settings.max_posts_per_source,
            delay_between_sources=settings.delay_between_sources,
            page_timeout_ms=int(settings.page_timeout * 1000),
            retry_policy=RetryPolicy(
                max_attempts=settings.nav_max_attempts,
                backoff_seconds=settings.nav_backoff,
            ),
            egress_attempts=settings.proxy_check_attempts,
            headless=settings.headless,
        ),
    )
    logger.info("[Wiring] pipeline ready: %r", settings)
    return Pipeline(settings, store, launcher, run_scrape, metrics)
