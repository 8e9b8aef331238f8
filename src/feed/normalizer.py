"""Turn raw feed items into canonical ``ActivityRecord`` values."""

from __future__ import annotations

import html
import logging
import re
from datetime import date

from letterboxd_sync.errors import FeedValidationError
from letterboxd_sync.feed.models import ActivityRecord, RawFeedItem

logger = logging.getLogger(__name__)

# Letterboxd injects this paragraph into every diary item without a review.
WATCHED_ON_SENTINEL = "Watched on"

_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#039;", "'"),
    ("’", "'"),
)

_PARAGRAPH_RE = re.compile(r"<p\b[^>]*>(.*?)</p>", re.IGNORECASE | re.DOTALL)
_IMG_SRC_RE = re.compile(r"<img\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")


def decode_entities(text: str) -> str:
    """Decode the handful of entities Letterboxd escapes in titles."""
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text


def extract_poster(description: str) -> str | None:
    """Return the ``src`` of the first ``<img>`` in the description, if any."""
    m = _IMG_SRC_RE.search(description)
    return html.unescape(m.group(1)) if m else None


def extract_paragraphs(description: str) -> list[str]:
    """Return the plain text of each non-empty ``<p>`` block, in order."""
    paragraphs: list[str] = []
    for raw in _PARAGRAPH_RE.findall(description):
        text = _BR_RE.sub("\n", raw)
        text = html.unescape(_TAG_RE.sub("", text))
        text = text.replace("’", "'").strip()
        if text:
            paragraphs.append(text)
    return paragraphs


def extract_review(description: str) -> str | None:
    """Join the review paragraphs, or ``None`` for a bare watch notice."""
    paragraphs = extract_paragraphs(description)
    if not paragraphs:
        return None
    if any(WATCHED_ON_SENTINEL in p for p in paragraphs):
        return None
    return "\n\n".join(paragraphs)


def normalize_rating(value: float | None) -> float | None:
    """Snap a rating onto the half-star grid, clamped to 0–5."""
    if value is None:
        return None
    return min(5.0, max(0.0, round(float(value) * 2) / 2))


def normalize_item(item: RawFeedItem) -> ActivityRecord:
    """Build an ``ActivityRecord`` from a raw feed item.

    Raises:
        FeedValidationError: If film title/year or the publish date is
            missing, or the watched date cannot be parsed.
    """
    guid = item.guid or item.link
    if not item.film_title or item.film_year in (None, ""):
        raise FeedValidationError(
            f"Feed item {guid!r} has no film title/year", guid=guid
        )
    try:
        year = int(item.film_year)
    except (TypeError, ValueError) as exc:
        raise FeedValidationError(
            f"Feed item {guid!r} has a non-numeric film year: {item.film_year!r}",
            guid=guid,
        ) from exc

    if item.published is None:
        raise FeedValidationError(f"Feed item {guid!r} has no publish date", guid=guid)

    watched: date | None = None
    if item.watched_date:
        try:
            watched = date.fromisoformat(item.watched_date.strip())
        except ValueError as exc:
            raise FeedValidationError(
                f"Feed item {guid!r} has an invalid watched date: {item.watched_date!r}",
                guid=guid,
            ) from exc

    record = ActivityRecord(
        id=guid,
        title=decode_entities(item.film_title).strip(),
        year=year,
        source_url=item.link,
        watched_date=watched,
        fallback_date=item.published.date(),
        rating=normalize_rating(item.member_rating),
        is_rewatch=item.rewatch.strip().lower() in ("yes", "true", "1"),
        review_text=extract_review(item.description),
        poster_url=extract_poster(item.description),
        published_at=item.published,
    )
    logger.debug("Normalized %s (%s, %d)", record.id, record.title, record.year)
    return record


def normalize_items(
    items: list[RawFeedItem],
) -> tuple[list[ActivityRecord], list[tuple[str, str]]]:
    """Normalize a batch, skipping invalid items.

    Returns:
        Tuple of (records, skipped) where ``skipped`` holds
        ``(guid, reason)`` pairs in feed order.
    """
    records: list[ActivityRecord] = []
    skipped: list[tuple[str, str]] = []
    for item in items:
        try:
            records.append(normalize_item(item))
        except FeedValidationError as exc:
            logger.warning("Skipping feed item: %s", exc)
            skipped.append((exc.guid, str(exc)))
    return records, skipped
