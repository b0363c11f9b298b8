from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

SESSION_COOKIE_NAME = "li_at"
DEFAULT_COOKIE_DOMAIN = ".linkedin.com"

# Raw expiry values above this are millisecond epochs, anything else is seconds.
MS_EPOCH_THRESHOLD = 10**12

_SAME_SITE = {
    "strict": "Strict",
    "lax": "Lax",
    "none": "None",
    "no_restriction": "None",
}


def epoch_to_datetime(raw: Any) -> datetime | None:
    """Interpret a cookie expiry timestamp as an aware UTC datetime.

    Browser exports disagree on the unit: extensions write seconds (often
    fractional), some tools write milliseconds. Non-positive values mark a
    session-only cookie and yield ``None``.
    """
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value <= 0:
        return None
    if value > MS_EPOCH_THRESHOLD:
        value = value / 1000.0
    return datetime.fromtimestamp(value, UTC)


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    domain: str = DEFAULT_COOKIE_DOMAIN
    path: str = "/"
    expires_at: datetime | None = None
    secure: bool = True
    http_only: bool = False
    same_site: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cookie":
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValueError("cookie without a name")
        raw_exp = None
        for key in ("expires", "expiry", "expirationDate"):
            if data.get(key) not in (None, ""):
                raw_exp = data[key]
                break
        same_site = data.get("sameSite") or data.get("same_site")
        return cls(
            name=name,
            value=str(data.get("value") or ""),
            domain=str(data.get("domain") or DEFAULT_COOKIE_DOMAIN),
            path=str(data.get("path") or "/"),
            expires_at=epoch_to_datetime(raw_exp),
            secure=bool(data.get("secure", True)),
            http_only=bool(data.get("httpOnly", data.get("http_only", False))),
            same_site=_SAME_SITE.get(str(same_site).lower()) if same_site else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the shape browser engines accept for ``add_cookies``."""
        out: dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expires": self.expires_at.timestamp() if self.expires_at else -1,
            "secure": self.secure,
            "httpOnly": self.http_only,
        }
        if self.same_site:
            out["sameSite"] = self.same_site
        return out

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def days_left(self, now: datetime) -> float | None:
        if self.expires_at is None:
            return None
        return (self.expires_at - now).total_seconds() / 86400.0


def find_session_cookie(
    cookies: Sequence[Cookie], name: str = SESSION_COOKIE_NAME
) -> Cookie | None:
    for cookie in cookies:
        if cookie.name == name and cookie.value:
            return cookie
    return None


def cookies_from_json(blob: str) -> list[Cookie]:
    """Parse a cookie blob: a JSON array, or a storage-state object with ``cookies``."""
    data = json.loads(blob)
    if isinstance(data, dict):
        data = data.get("cookies", [])
    if not isinstance(data, list):
        raise ValueError("cookie blob must be a JSON array")
    return [Cookie.from_dict(item) for item in data if isinstance(item, dict) and item.get("name")]


def cookies_to_json(cookies: Sequence[Cookie]) -> str:
    return json.dumps([c.to_dict() for c in cookies], indent=2)


def describe_cookie_status(cookies: Sequence[Cookie], now: datetime) -> str:
    """Short status label for the session cookie, used by the CLI and logs."""
    session = find_session_cookie(cookies)
    if session is None:
        return "NO_SESSION_COOKIE"
    if session.expires_at is None:
        return "NO_EXPIRY_DATE"
    if session.is_expired(now):
        return "EXPIRED"
    # half-days round up
    return f"VALID_{math.floor((session.days_left(now) or 0) + 0.5)}_DAYS_LEFT"
