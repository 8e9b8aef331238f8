"""Letterboxd RSS feed parser."""

from __future__ import annotations

import logging
from calendar import timegm
from datetime import datetime, timezone

import feedparser

from letterboxd_sync.errors import FeedFetchError
from letterboxd_sync.feed.models import RawFeedItem

logger = logging.getLogger(__name__)

FEED_URL_TEMPLATE = "https://letterboxd.com/{username}/rss/"
USER_AGENT = "letterboxd-sync (+https://letterboxd.com)"


class LetterboxdFeedParser:
    """Fetches a member's RSS feed and maps entries onto ``RawFeedItem``.

    feedparser flattens the ``letterboxd:`` namespace into lower-cased
    ``letterboxd_*`` keys on each entry.
    """

    def __init__(self, *, agent: str = USER_AGENT) -> None:
        self._agent = agent

    @staticmethod
    def feed_url(username: str) -> str:
        return FEED_URL_TEMPLATE.format(username=username.strip())

    def fetch(self, username: str) -> list[RawFeedItem]:
        """Fetch and parse the feed for ``username``.

        Raises:
            FeedFetchError: If the username is blank or the feed is unusable.
        """
        if not username or not username.strip():
            raise FeedFetchError("Cannot get data for blank username")
        return self.parse(self.feed_url(username))

    def parse(self, source: str) -> list[RawFeedItem]:
        """Parse a feed URL, file path, or raw XML string."""
        feed = feedparser.parse(source, agent=self._agent)

        if feed.bozo and not feed.entries:
            raise FeedFetchError(f"Feed error for {source}: {feed.bozo_exception}")

        items = [self._entry_to_item(entry) for entry in feed.entries]
        logger.info("Parsed %d items from %s", len(items), source)
        return items

    def _entry_to_item(self, entry: feedparser.FeedParserDict) -> RawFeedItem:
        """Convert a feedparser entry to a RawFeedItem."""
        return RawFeedItem(
            title=entry.get("title", ""),
            link=entry.get("link", ""),
            guid=entry.get("id", "") or entry.get("link", ""),
            published=self._parse_date(entry),
            watched_date=entry.get("letterboxd_watcheddate") or None,
            rewatch=entry.get("letterboxd_rewatch", "No") or "No",
            film_title=entry.get("letterboxd_filmtitle") or None,
            film_year=entry.get("letterboxd_filmyear") or None,
            member_rating=_to_float(entry.get("letterboxd_memberrating")),
            description=entry.get("summary", "") or entry.get("description", ""),
        )

    @staticmethod
    def _parse_date(entry: feedparser.FeedParserDict) -> datetime | None:
        """Parse the published date from a feed entry."""
        for field in ("published_parsed", "updated_parsed"):
            time_struct = entry.get(field)
            if time_struct:
                try:
                    return datetime.fromtimestamp(
                        timegm(time_struct), tz=timezone.utc
                    )
                except (ValueError, OverflowError):
                    continue
        return None


def _to_float(value: object) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric rating %r", value)
        return None
