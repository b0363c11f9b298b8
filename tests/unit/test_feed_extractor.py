from __future__ import annotations

import pytest

from linkedin_pipeline.domain.errors import ExtractionError
from linkedin_pipeline.infrastructure.adapters.extraction.feed_extractor import FeedPostExtractor
from tests.unit._fakes_browser import FakePage

HTML = """
<main>
  <div class="feed-shared-update-v2" data-urn="urn:li:activity:7100000000000000001">
    <div class="update-components-actor">
      <a class="update-components-actor__meta-link" href="/company/acme/posts?trk=x">
        <span class="update-components-actor__title"><span aria-hidden="true">Acme Corp</span></span>
      </a>
      <time datetime="2025-01-01T09:00:00Z">1d</time>
    </div>
    <div class="update-components-text"><span>We are   hiring!</span></div>
    <div class="update-components-image"><img src="https://media.licdn.com/a.jpg"></div>
    <ul class="social-details-social-counts">
      <li><span class="social-details-social-counts__reactions-count">1.2K</span></li>
      <li><button aria-label="34 comments on Acme Corp's post">34 comments</button></li>
      <li><button aria-label="5 reposts of Acme Corp's post">5 reposts</button></li>
    </ul>
  </div>
  <div class="feed-shared-update-v2" data-urn="urn:li:activity:7100000000000000002">
    <div class="update-components-text">Text only</div>
  </div>
  <div class="feed-shared-update-v2" data-urn="urn:li:activity:7100000000000000001">duplicate node</div>
  <div class="feed-shared-update-v2" data-urn="urn:li:activity:7100000000000000003"></div>
</main>
"""


def test_parses_posts_with_metrics():
    page = FakePage(html=HTML)
    records = FeedPostExtractor(scroll_steps=2, scroll_pause_ms=0).extract(page, max_records=10)

    assert page.scrolled == 2
    assert [r.external_id.rsplit(":", 1)[1] for r in records] == [
        "7100000000000000001",
        "7100000000000000002",
        "7100000000000000003",
    ]
    first = records[0]
    assert first.external_id == "https://www.linkedin.com/feed/update/urn:li:activity:7100000000000000001"
    assert first.author_name == "Acme Corp"
    assert first.author_url == "https://www.linkedin.com/company/acme/posts"
    assert first.body == "We are hiring!"
    assert first.published_at == "2025-01-01T09:00:00Z"
    assert (first.reaction_count, first.comment_count, first.share_count) == (1200, 34, 5)
    assert first.has_media is True
    assert first.media_url == "https://media.licdn.com/a.jpg"


def test_missing_metrics_stay_unknown():
    second = FeedPostExtractor(scroll_steps=0).parse(HTML, 10)[1]
    assert second.body == "Text only"
    assert second.reaction_count is None
    assert second.comment_count is None
    assert second.has_media is False


def test_max_records_is_respected():
    assert len(FeedPostExtractor(scroll_steps=0).parse(HTML, 1)) == 1


def test_unreadable_page_is_extraction_error():
    class DeadPage(FakePage):
        def content(self):
            raise RuntimeError("Target closed")

    with pytest.raises(ExtractionError):
        FeedPostExtractor(scroll_steps=0).extract(DeadPage(), 10)
