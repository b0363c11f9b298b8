from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from linkedin_pipeline.application.ports.browser_port import BrowserLauncherPort, BrowserPagePort
from linkedin_pipeline.application.ports.clock_port import Clock, SystemClock
from linkedin_pipeline.application.ports.extraction_port import ExtractionPort
from linkedin_pipeline.application.ports.metrics_port import RunMetricsPort
from linkedin_pipeline.application.ports.notification_port import (
    AUTH_FAILURE,
    SCRAPER_RUN,
    BestEffortNotifier,
    INotificationPort,
)
from linkedin_pipeline.application.ports.proxy_gateway_port import ProxyGatewayPort
from linkedin_pipeline.application.ports.source_config_port import SourceConfigPort
from linkedin_pipeline.application.use_cases.acquire_session import (
    AcquireSessionUseCase,
    SessionResult,
)
from linkedin_pipeline.application.use_cases.ingest_record import IngestOutcome, IngestRecordUseCase
from linkedin_pipeline.application.use_cases.navigate_with_retry import (
    NavigationController,
    RetryPolicy,
)
from linkedin_pipeline.domain.entities.run_report import RunReport
from linkedin_pipeline.domain.entities.source import Source
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.value_objects.listing_url import listing_target_for

logger = logging.getLogger(__name__)

SessionFactory = Callable[[BrowserPagePort, NavigationController], AcquireSessionUseCase]


@dataclass(frozen=True)
class RunOptions:
    max_records_per_source: int = 10
    delay_between_sources: float = 60.0
    page_timeout_ms: int = 90_000
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    egress_attempts: int = 2
    headless: bool = True
    auth_escalation_threshold: int = 3


@dataclass
class _RunStats:
    sources_total: int = 0
    source_failures: int = 0
    persistence_failures: int = 0
    new_by_source: dict[str, int] = field(default_factory=dict)

    @property
    def new_records(self) -> int:
        return sum(self.new_by_source.values())


class RunScrapeUseCase:
    """One scrape run: egress check, session, then every active source in order.

    Sources run strictly one after another on a single page. A source that
    fails is logged and skipped; only a failed session or an unexpected
    error ends the run early. Each call produces exactly one ``RunReport``.
    """

    def __init__(
        self,
        *,
        proxy: ProxyGatewayPort,
        launcher: BrowserLauncherPort,
        session_factory: SessionFactory,
        sources: SourceConfigPort,
        extractor: ExtractionPort,
        ingestor: IngestRecordUseCase,
        notifier: INotificationPort | None = None,
        metrics: RunMetricsPort | None = None,
        options: RunOptions | None = None,
        clock: Clock | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.proxy = proxy
        self.launcher = launcher
        self.session_factory = session_factory
        self.sources = sources
        self.extractor = extractor
        self.ingestor = ingestor
        self.notifier = BestEffortNotifier(notifier)
        self.metrics = metrics
        self.options = options or RunOptions()
        self.clock = clock or SystemClock()
        self._sleep = sleep
        self.consecutive_auth_failures = 0
        self.last_session: SessionResult | None = None

    def execute(self) -> RunReport:
        started_at = self.clock.now()
        stats = _RunStats()
        success = False
        error: str | None = None
        logger.info("[RunScrape] run started")
        try:
            success, error = self._run(stats)
        except ConfigurationError as exc:
            logger.error("[RunScrape] run aborted by configuration error: %s", exc)
            success, error = False, f"configuration error: {exc}"
        except Exception as exc:
            logger.exception("[RunScrape] run aborted by unexpected error")
            success, error = False, f"{type(exc).__name__}: {exc}"

        report = RunReport(
            started_at=started_at,
            finished_at=self.clock.now(),
            success=success,
            new_record_count=stats.new_records,
            error_summary=error,
            sources_total=stats.sources_total,
            source_failures=stats.source_failures,
            persistence_failures=stats.persistence_failures,
            new_by_source=dict(stats.new_by_source),
        )
        self._report(report)
        return report

    # ---------- phases ----------
    def _run(self, stats: _RunStats) -> tuple[bool, str | None]:
        if not self._verify_egress():
            return False, "proxy egress verification failed"

        browser = self.launcher.launch(headless=self.options.headless)
        try:
            page = browser.open_page()
            navigator = NavigationController(
                page,
                policy=self.options.retry_policy,
                timeout_ms=self.options.page_timeout_ms,
                sleep=self._sleep,
            )
            session = self.session_factory(page, navigator).execute()
            self.last_session = session
            if not session.ok:
                self._on_auth_failure(session)
                return False, f"authentication failed: {session.message}"
            self.consecutive_auth_failures = 0
            logger.info("[RunScrape] %s", session.message)

            sources = self.sources.list_active_sources()
            stats.sources_total = len(sources)
            logger.info("[RunScrape] %d active sources", len(sources))
            for index, source in enumerate(sources):
                if index > 0 and self.options.delay_between_sources > 0:
                    logger.info(
                        "[RunScrape] pausing %.0fs before next source", self.options.delay_between_sources
                    )
                    self._sleep(self.options.delay_between_sources)
                self._scrape_source(source, page, navigator, stats)
            return True, None
        finally:
            try:
                browser.close()
            except Exception as exc:
                logger.warning("[RunScrape] browser close failed: %s", exc)

    def _verify_egress(self) -> bool:
        for attempt in range(1, max(1, self.options.egress_attempts) + 1):
            if self.proxy.verify_egress():
                return True
            logger.warning("[RunScrape] egress check %d failed", attempt)
        logger.error("[RunScrape] proxy unreachable, not attempting login")
        return False

    def _scrape_source(
        self,
        source: Source,
        page: BrowserPagePort,
        navigator: NavigationController,
        stats: _RunStats,
    ) -> None:
        stats.new_by_source.setdefault(source.id, 0)
        target = listing_target_for(source.target_url)
        if target is None:
            self._source_failed(source, stats, f"unrecognized profile URL {source.target_url!r}")
            return
        logger.info("[RunScrape] %s -> %s", source.display_name, target.url)
        if not navigator.goto_with_retry(target.url):
            self._source_failed(source, stats, "navigation failed")
            return
        try:
            records = list(self.extractor.extract(page, self.options.max_records_per_source))
        except Exception as exc:
            self._source_failed(source, stats, f"extraction failed: {exc}")
            return

        for raw in records[: self.options.max_records_per_source]:
            outcome = self.ingestor.execute(raw, source)
            if outcome is IngestOutcome.INSERTED:
                stats.new_by_source[source.id] += 1
            elif outcome.is_persistence_failure:
                stats.persistence_failures += 1
        logger.info(
            "[RunScrape] %s: %d records seen, %d new",
            source.display_name,
            len(records),
            stats.new_by_source[source.id],
        )

    def _source_failed(self, source: Source, stats: _RunStats, reason: str) -> None:
        stats.source_failures += 1
        logger.warning("[RunScrape] source %s skipped: %s", source.display_name, reason)
        if self.metrics:
            self.metrics.record_source_failure(source.id, reason)

    def _on_auth_failure(self, session: SessionResult) -> None:
        self.consecutive_auth_failures += 1
        escalated = self.consecutive_auth_failures >= self.options.auth_escalation_threshold
        log = logger.error if escalated else logger.warning
        log(
            "[RunScrape] authentication failed (%d in a row): %s",
            self.consecutive_auth_failures,
            session.message,
        )
        if self.metrics:
            self.metrics.record_auth_failure()
        self.notifier.notify(
            AUTH_FAILURE,
            {
                "message": session.message,
                "consecutive_failures": self.consecutive_auth_failures,
                "escalated": escalated,
                "transitions": [s.value for s in session.transitions],
            },
        )

    def _report(self, report: RunReport) -> None:
        if report.success:
            logger.info(
                "[RunScrape] run finished: %d new records, %d/%d sources failed",
                report.new_record_count,
                report.source_failures,
                report.sources_total,
            )
        else:
            logger.error("[RunScrape] run failed: %s", report.error_summary)
        self.notifier.notify(SCRAPER_RUN, report.to_dict())
        if self.metrics:
            try:
                self.metrics.record_run(report)
            except Exception as exc:
                logger.warning("[RunScrape] metrics update failed: %s", exc)
