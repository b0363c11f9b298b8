from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag  # type: ignore[import-untyped]

from linkedin_pipeline.application.ports.browser_port import BrowserPagePort
from linkedin_pipeline.application.ports.extraction_port import ExtractionPort
from linkedin_pipeline.domain.entities.post_record import RawRecord
from linkedin_pipeline.domain.errors import ExtractionError
from linkedin_pipeline.domain.value_objects.metric_count import parse_metric_count

logger = logging.getLogger(__name__)

BASE_URL = "https://www.linkedin.com"

POST_SELECTOR = '[data-urn^="urn:li:activity:"]'
AUTHOR_NAME_SELECTORS = (
    ".update-components-actor__title span[aria-hidden='true']",
    ".update-components-actor__name span[aria-hidden='true']",
    ".update-components-actor__name",
    ".feed-shared-actor__name",
)
AUTHOR_LINK_SELECTORS = (
    "a.update-components-actor__meta-link",
    "a.update-components-actor__image",
    "a.feed-shared-actor__container-link",
)
BODY_SELECTORS = (
    ".update-components-text",
    ".feed-shared-update-v2__description",
    ".feed-shared-text",
)
REACTIONS_SELECTORS = (
    ".social-details-social-counts__reactions-count",
    ".social-details-social-counts__social-proof-fallback-number",
)
MEDIA_SELECTORS = (
    ".update-components-image img",
    ".update-components-linkedin-video video",
    ".feed-shared-image img",
    "video",
)

_COMMENTS = re.compile(r"comment", re.I)
_REPOSTS = re.compile(r"repost|share", re.I)


def _first(node: Tag, selectors: Sequence[str]) -> Tag | None:
    for sel in selectors:
        found = node.select_one(sel)
        if found is not None:
            return found
    return None


def _text(node: Tag | None) -> str:
    if node is None:
        return ""
    return " ".join(node.get_text(" ", strip=True).split())


def _count_for(post: Tag, pattern: re.Pattern[str]) -> int | None:
    """Counter from a social-counts button whose label mentions ``pattern``."""
    for el in post.select(".social-details-social-counts button, .social-details-social-counts li"):
        label = el.get("aria-label") or _text(el)
        if pattern.search(str(label)):
            return parse_metric_count(str(label))
    return None


class FeedPostExtractor(ExtractionPort):
    """Parse posts out of a loaded company/person activity listing.

    The page is scrolled a little to trigger lazy loading, then the DOM is
    handed to BeautifulSoup. Nothing here navigates or touches cookies.
    """

    def __init__(self, *, scroll_steps: int = 2, scroll_pause_ms: int = 1500) -> None:
        self.scroll_steps = scroll_steps
        self.scroll_pause_ms = scroll_pause_ms

    def extract(self, page: BrowserPagePort, max_records: int) -> list[RawRecord]:
        if self.scroll_steps > 0:
            try:
                page.scroll(self.scroll_steps, pause_ms=self.scroll_pause_ms)
            except Exception as exc:
                logger.debug("[FeedExtractor] scroll failed, parsing what is loaded: %s", exc)
        try:
            html = page.content()
        except Exception as exc:
            raise ExtractionError(f"could not read page content: {exc}") from exc
        return self.parse(html, max_records)

    def parse(self, html: str, max_records: int) -> list[RawRecord]:
        soup = BeautifulSoup(html, "html.parser")
        records: list[RawRecord] = []
        seen: set[str] = set()
        for post in soup.select(POST_SELECTOR):
            urn = str(post.get("data-urn") or "")
            if not urn or urn in seen:
                continue
            seen.add(urn)
            records.append(self._record(post, urn))
            if len(records) >= max_records:
                break
        logger.info("[FeedExtractor] parsed %d posts", len(records))
        return records

    def _record(self, post: Tag, urn: str) -> RawRecord:
        author_link = _first(post, AUTHOR_LINK_SELECTORS)
        author_url = ""
        if author_link is not None and author_link.get("href"):
            author_url = urljoin(BASE_URL, str(author_link["href"])).split("?", 1)[0]

        time_el = post.select_one("time[datetime]")
        published_at = str(time_el["datetime"]) if time_el is not None else None

        reactions_el = _first(post, REACTIONS_SELECTORS)
        media_el = _first(post, MEDIA_SELECTORS)
        media_url = ""
        if media_el is not None:
            media_url = str(media_el.get("src") or media_el.get("data-delayed-url") or "")

        return RawRecord(
            external_id=f"{BASE_URL}/feed/update/{urn}",
            author_name=_text(_first(post, AUTHOR_NAME_SELECTORS)),
            author_url=author_url,
            body=_text(_first(post, BODY_SELECTORS)),
            published_at=published_at,
            reaction_count=parse_metric_count(_text(reactions_el)) if reactions_el is not None else None,
            comment_count=_count_for(post, _COMMENTS),
            share_count=_count_for(post, _REPOSTS),
            has_media=media_el is not None,
            media_url=media_url,
        )
