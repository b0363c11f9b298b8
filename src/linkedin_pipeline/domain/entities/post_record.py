from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from linkedin_pipeline.domain.entities.source import Source

DEFAULT_MAX_BODY_LENGTH = 1000


@dataclass(frozen=True)
class RawRecord:
    """One feed item as read off a loaded page. Metrics may be missing."""

    external_id: str
    author_name: str = ""
    author_url: str = ""
    body: str = ""
    published_at: str | None = None
    reaction_count: int | None = None
    comment_count: int | None = None
    share_count: int | None = None
    has_media: bool | None = None
    media_url: str = ""


@dataclass(frozen=True)
class PersistedRecord:
    external_id: str
    author_name: str
    author_url: str
    body: str
    published_at: str
    reaction_count: int
    comment_count: int
    share_count: int
    has_media: bool
    media_url: str
    source_id: str
    group_label: str
    captured_at: datetime

    @classmethod
    def from_raw(
        cls,
        raw: RawRecord,
        source: Source,
        *,
        external_id: str,
        captured_at: datetime,
        max_body_length: int = DEFAULT_MAX_BODY_LENGTH,
    ) -> "PersistedRecord":
        body = (raw.body or "").strip()
        if max_body_length > 0:
            body = body[:max_body_length]
        return cls(
            external_id=external_id,
            author_name=(raw.author_name or "").strip(),
            author_url=(raw.author_url or "").strip(),
            body=body,
            published_at=raw.published_at or captured_at.isoformat(),
            reaction_count=raw.reaction_count or 0,
            comment_count=raw.comment_count or 0,
            share_count=raw.share_count or 0,
            has_media=bool(raw.has_media),
            media_url=raw.media_url or "",
            source_id=source.id,
            group_label=source.group_label or "",
            captured_at=captured_at,
        )
