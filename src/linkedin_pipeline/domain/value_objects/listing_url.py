from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlparse

LINKEDIN_BASE = "https://www.linkedin.com"


class ListingKind(str, Enum):
    COMPANY_POSTS = "company_posts"
    PERSON_ACTIVITY = "person_activity"


@dataclass(frozen=True)
class ListingTarget:
    kind: ListingKind
    url: str


def listing_target_for(profile_url: str) -> ListingTarget | None:
    """Map a source profile URL to the page that lists its recent posts.

    ``/company/<slug>`` maps to the company posts tab, ``/in/<slug>`` to the
    member's recent activity. Any other shape returns ``None``.
    """
    if not profile_url:
        return None
    raw = profile_url.strip()
    if "://" not in raw:
        raw = f"https://{raw}"
    parsed = urlparse(raw)
    if "linkedin.com" not in (parsed.hostname or ""):
        return None
    segments = [s for s in parsed.path.split("/") if s]
    for marker, kind in (("company", ListingKind.COMPANY_POSTS), ("in", ListingKind.PERSON_ACTIVITY)):
        if marker in segments:
            idx = segments.index(marker)
            if idx + 1 >= len(segments):
                return None
            slug = segments[idx + 1]
            if kind is ListingKind.COMPANY_POSTS:
                return ListingTarget(kind, f"{LINKEDIN_BASE}/company/{slug}/posts/?feedView=all")
            return ListingTarget(kind, f"{LINKEDIN_BASE}/in/{slug}/recent-activity/all/")
    return None
