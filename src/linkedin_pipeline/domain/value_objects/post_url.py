import re

_ACTIVITY_ID_PATTERNS = [
    re.compile(r"urn:li:activity:(\d{8,})"),
    re.compile(r"activity[-:](\d{8,})"),
    # posts slug sometimes ends with -<digits>
    re.compile(r"/posts/[^/]*-(\d{15,})"),
]


def canonical_post_url(url: str | None) -> str:
    """Stable identifier for a post URL.

    Query, fragment and trailing slash are dropped; anything carrying an
    activity id collapses to the ``/feed/update/urn:li:activity:<id>`` form so
    the same post seen via different listings dedupes.
    """
    if not url:
        return ""
    base = url.strip().split("?", 1)[0].split("#", 1)[0].rstrip("/")
    if base.startswith("urn:li:activity:"):
        base = f"https://www.linkedin.com/feed/update/{base}"
    for pattern in _ACTIVITY_ID_PATTERNS:
        match = pattern.search(base)
        if match:
            return f"https://www.linkedin.com/feed/update/urn:li:activity:{match.group(1)}"
    return base
