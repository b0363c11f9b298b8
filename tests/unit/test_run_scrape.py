from __future__ import annotations

from datetime import timedelta

from linkedin_pipeline.application.ports.browser_port import NavigationResponse
from linkedin_pipeline.application.ports.notification_port import AUTH_FAILURE, SCRAPER_RUN
from linkedin_pipeline.application.use_cases.acquire_session import AcquireSessionUseCase
from linkedin_pipeline.application.use_cases.ingest_record import IngestRecordUseCase
from linkedin_pipeline.application.use_cases.navigate_with_retry import RetryPolicy
from linkedin_pipeline.application.use_cases.run_scrape import RunOptions, RunScrapeUseCase
from linkedin_pipeline.domain.entities.cookie import Cookie
from linkedin_pipeline.domain.entities.post_record import RawRecord
from linkedin_pipeline.domain.entities.source import Source
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.value_objects.listing_url import listing_target_for
from linkedin_pipeline.infrastructure.adapters.session.memory_store import InMemorySessionStore
from tests.unit._fakes_browser import FakeLauncher, FakePage
from tests.unit._fakes_pipeline import (
    NOW,
    FakeExtractor,
    FakeMetrics,
    FakeNotifier,
    FakeProxy,
    FakeRecordStore,
    FakeSourceConfig,
    FixedClock,
    SleepRecorder,
)

A = Source("recA", "Acme", "https://www.linkedin.com/company/acme/")
B = Source("recB", "Beta", "https://www.linkedin.com/company/beta/")
C = Source("recC", "Carla", "https://www.linkedin.com/in/carla/")
URL_A, URL_B, URL_C = (listing_target_for(s.target_url).url for s in (A, B, C))


def _post(n: int) -> RawRecord:
    return RawRecord(external_id=f"urn:li:activity:71234567890123456{n:02d}", body=f"post {n}")


class Harness:
    def __init__(self, *, sources=(A, B, C), page=None, cookies=None, proxy=None, extractor=None, store=None):
        self.page = page or FakePage()
        self.launcher = FakeLauncher(self.page)
        self.session_store = InMemorySessionStore(
            [Cookie("li_at", "v", expires_at=NOW + timedelta(days=30))] if cookies is None else cookies
        )
        self.proxy = proxy or FakeProxy()
        self.records = store or FakeRecordStore()
        self.notifier = FakeNotifier()
        self.metrics = FakeMetrics()
        self.sleep = SleepRecorder()
        clock = FixedClock()
        self.uc = RunScrapeUseCase(
            proxy=self.proxy,
            launcher=self.launcher,
            session_factory=lambda page, nav: AcquireSessionUseCase(
                self.session_store, page, nav, clock=clock, sleep=self.sleep
            ),
            sources=FakeSourceConfig(sources),
            extractor=extractor or FakeExtractor({URL_A: [_post(1), _post(2)], URL_C: [_post(3)]}),
            ingestor=IngestRecordUseCase(self.records, clock=clock, insert_delay=0, sleep=self.sleep),
            notifier=self.notifier,
            metrics=self.metrics,
            options=RunOptions(
                max_records_per_source=10,
                delay_between_sources=60,
                retry_policy=RetryPolicy(max_attempts=3, backoff_seconds=5),
            ),
            clock=clock,
            sleep=self.sleep,
        )


def test_one_failing_source_gives_partial_success():
    page = FakePage(script={URL_B: [NavigationResponse(url="chrome-error://chromewebdata/")]})
    h = Harness(page=page)

    report = h.uc.execute()

    assert report.success
    assert report.partial
    assert report.new_record_count == 3
    assert report.sources_total == 3
    assert report.source_failures == 1
    assert report.new_by_source == {"recA": 2, "recB": 0, "recC": 1}
    assert page.visited.count(URL_B) == 3
    # sources run in order, with the inter-source delay between them
    assert [u for u in page.visited if u in (URL_A, URL_B, URL_C)] == [URL_A, URL_B, URL_B, URL_B, URL_C]
    assert h.sleep.calls.count(60) == 2
    assert h.metrics.source_failures == [("recB", "navigation failed")]
    assert h.launcher.sessions[0].closed
    assert len(h.notifier.of(SCRAPER_RUN)) == 1
    assert h.metrics.runs == [report]


def test_rerun_inserts_nothing_new():
    h = Harness()
    first = h.uc.execute()
    second = h.uc.execute()
    assert first.new_record_count == 3
    assert second.new_record_count == 0
    assert second.success and not second.partial
    assert len(h.records.inserted) == 3


def test_auth_failure_aborts_run_and_escalates():
    h = Harness(cookies=[])

    first = h.uc.execute()
    second = h.uc.execute()

    assert not first.success
    assert "authentication failed" in first.error_summary
    assert first.sources_total == 0
    assert [p["consecutive_failures"] for p in h.notifier.of(AUTH_FAILURE)] == [1, 2]
    assert h.metrics.auth_failures == 2
    assert all(s.closed for s in h.launcher.sessions)
    assert len(h.notifier.of(SCRAPER_RUN)) == 2


def test_egress_failure_stops_before_browser():
    h = Harness(proxy=FakeProxy([False]))

    report = h.uc.execute()

    assert not report.success
    assert report.error_summary == "proxy egress verification failed"
    assert h.proxy.checks == 2
    assert h.launcher.sessions == []


def test_egress_recovers_on_second_check():
    h = Harness(proxy=FakeProxy([False, True]))
    assert h.uc.execute().success
    assert h.proxy.checks == 2


def test_extraction_error_and_bad_profile_url_are_source_failures():
    odd = Source("recX", "School", "https://www.linkedin.com/school/mit/")
    h = Harness(sources=(A, odd, C), extractor=FakeExtractor({URL_C: [_post(3)]}, fail_on=[URL_A]))

    report = h.uc.execute()

    assert report.success
    assert report.source_failures == 2
    assert report.new_record_count == 1
    assert [sid for sid, _ in h.metrics.source_failures] == ["recA", "recX"]


def test_store_outage_counts_persistence_failures():
    h = Harness(store=FakeRecordStore(exists_error=True))
    report = h.uc.execute()
    assert report.success
    assert report.partial
    assert report.persistence_failures == 3
    assert report.new_record_count == 0


def test_configuration_error_mid_run_yields_failed_report():
    h = Harness()

    def broken(page, nav):
        raise ConfigurationError("bad")

    h.uc.session_factory = broken
    report = h.uc.execute()

    assert not report.success
    assert report.error_summary == "configuration error: bad"
    assert h.metrics.runs == [report]
    assert len(h.notifier.of(SCRAPER_RUN)) == 1
    assert h.launcher.sessions[0].closed


def test_unexpected_error_still_yields_one_report():
    class BrokenSources(FakeSourceConfig):
        def list_active_sources(self):
            raise RuntimeError("sources table unreachable")

    h = Harness()
    h.uc.sources = BrokenSources([])
    report = h.uc.execute()
    assert not report.success
    assert "sources table unreachable" in report.error_summary
    assert len(h.notifier.of(SCRAPER_RUN)) == 1
    assert h.launcher.sessions[0].closed
