"""Pure data models for the Letterboxd feed.

``RawFeedItem`` is what the transport layer hands over; ``ActivityRecord``
is the canonical, normalized record the rest of the pipeline works on.
No I/O here.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Transport model
# ---------------------------------------------------------------------------


class RawFeedItem(BaseModel):
    """One ``<item>`` of the Letterboxd RSS feed, fields as published."""

    title: str = ""
    link: str = ""
    guid: str = ""
    published: datetime | None = None
    watched_date: str | None = None
    rewatch: str = "No"
    film_title: str | None = None
    film_year: int | str | None = None
    member_rating: float | None = None
    description: str = ""


# ---------------------------------------------------------------------------
# Canonical record
# ---------------------------------------------------------------------------


class ActivityRecord(BaseModel):
    """A single watch or review, normalized.

    ``watched_date`` is set for confirmed diary entries; otherwise the
    record falls back to ``fallback_date`` (the publish date).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    year: int
    source_url: str = ""
    watched_date: date | None = None
    fallback_date: date
    rating: float | None = None
    is_rewatch: bool = False
    review_text: str | None = None
    poster_url: str | None = None
    published_at: datetime | None = None

    @property
    def reference_suffix(self) -> str:
        """Third hyphen-delimited segment of the id (``letterboxd-review-<n>``)."""
        parts = self.id.split("-")
        if len(parts) > 2:
            return parts[2]
        return parts[-1]

    @property
    def review_blockquote(self) -> str:
        """Review as a markdown blockquote, paragraphs separated by ``>``."""
        if not self.review_text:
            return ""
        return "\n".join(
            f"> {line}" if line.strip() else ">"
            for line in self.review_text.split("\n")
        )

    @property
    def sort_key(self) -> float:
        """Publish time as a POSIX timestamp, for ordering a batch."""
        if self.published_at is not None:
            return self.published_at.timestamp()
        return datetime.combine(self.fallback_date, time.min, tzinfo=UTC).timestamp()
