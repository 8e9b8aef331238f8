"""Diary entry rendering.

Every entry renders to exactly one diary line: breaks inside an entry
(review paragraphs, callout bodies) are carriage returns, never ``\\n``.
The diary merge dedups on whole lines, so rendering must be byte-stable
for a given record and config.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from letterboxd_sync.feed.models import ActivityRecord
from letterboxd_sync.render.config import DisplayStyle, RenderConfig, StarStyle
from letterboxd_sync.render.dates import format_date

SOFT_BREAK = "\r"
POSTER_WIDTH = 200
CALLOUT_TYPE = "letterboxd"

_STAR_GLYPHS = {StarStyle.STAR: "★", StarStyle.EMOJI: "⭐"}


class DatePhrase(NamedTuple):
    """The rendered date of a record and whether it was a confirmed watch."""

    text: str
    watched: bool

    @property
    def verb(self) -> str:
        return "Watched" if self.watched else "Marked as watched"


def date_phrase(record: ActivityRecord, config: RenderConfig) -> DatePhrase:
    """Render the record's date, linked to the daily note when configured.

    Only a confirmed watched date is ever linked; the publish-date fallback
    is plain display text.
    """
    if record.watched_date is not None:
        if config.link_date:
            return DatePhrase(f"[[{format_date(record.watched_date, config.date_format)}]]", True)
        return DatePhrase(format_date(record.watched_date, config.display_date_format), True)
    return DatePhrase(format_date(record.fallback_date, config.display_date_format), False)


def format_rating(rating: float) -> str:
    """``4.0`` → ``4``, ``3.5`` → ``3.5``."""
    return f"{rating:g}"


def star_phrase(rating: float | None, style: StarStyle) -> str:
    """Render a rating; an absent rating is an empty string."""
    if rating is None:
        return ""
    if style is StarStyle.NUMERIC:
        return f"({format_rating(rating)} stars)"
    glyph = _STAR_GLYPHS[style]
    half = "½" if rating % 1 else ""
    return f"({glyph * math.floor(rating)}{half})"


def quote_review(review: str) -> str:
    """Fold a multi-paragraph review into one quoted soft-broken line."""
    return review.replace("\n", f"{SOFT_BREAK} > ")


class EntryRenderer:
    """Renders ``ActivityRecord`` values as diary lines."""

    def __init__(self, config: RenderConfig) -> None:
        self._config = config

    def render(self, record: ActivityRecord, backlink: str | None = None) -> str:
        """Render one record.

        Args:
            record: The activity to render.
            backlink: Internal link to the film note; replaces the
                Letterboxd link when given.

        Returns:
            A single diary line (no ``\\n``).
        """
        cfg = self._config
        when = date_phrase(record, cfg)
        stars = star_phrase(record.rating, cfg.stars)
        link = backlink or f"[{record.title}]({record.source_url})"
        review = quote_review(record.review_text) if record.review_text else ""
        phrase = f"{when.verb} {link} {stars} on {when.text}"

        if cfg.style is DisplayStyle.LIST:
            return f"- {phrase}"

        if cfg.style is DisplayStyle.LIST_REVIEW:
            if not review:
                return f"- {phrase}"
            return f"- {phrase}{SOFT_BREAK} > {review}"

        label = "Review: " if record.rating is not None or review else "Watched: "
        reference = f" ^letterboxd{record.reference_suffix}" if cfg.add_reference_id else ""
        body = review
        if cfg.style is DisplayStyle.CALLOUT_POSTER and review and record.poster_url:
            body = (
                f"![{record.title}|{POSTER_WIDTH}]({record.poster_url}) "
                f"{SOFT_BREAK}> {review}"
            )
        return (
            f"> [!{CALLOUT_TYPE}]+ {label} {link} {stars} - {when.text} "
            f"{SOFT_BREAK}> {body}{reference}"
        )

    def render_all(
        self,
        records: list[ActivityRecord],
        backlinks: dict[str, str] | None = None,
    ) -> list[str]:
        """Render a batch in order, substituting backlinks by record id."""
        backlinks = backlinks or {}
        return [self.render(r, backlinks.get(r.id)) for r in records]
