"""Tests for the Letterboxd RSS feed parser."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from unittest.mock import patch

import feedparser
import pytest

from letterboxd_sync.errors import FeedFetchError
from letterboxd_sync.feed.parser import USER_AGENT, LetterboxdFeedParser

SAMPLE_FEED = """<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0" xmlns:letterboxd="https://letterboxd.com">
<channel>
<title>Letterboxd - someone</title>
<link>https://letterboxd.com/someone/</link>
<description>Letterboxd - someone</description>
<item>
<title>Past Lives, 2023 - ★★★★</title>
<link>https://letterboxd.com/someone/film/past-lives/</link>
<guid isPermaLink="false">letterboxd-review-512345678</guid>
<pubDate>Sat, 6 Jan 2024 09:30:00 +0000</pubDate>
<letterboxd:watchedDate>2024-01-05</letterboxd:watchedDate>
<letterboxd:rewatch>No</letterboxd:rewatch>
<letterboxd:filmTitle>Past Lives</letterboxd:filmTitle>
<letterboxd:filmYear>2023</letterboxd:filmYear>
<letterboxd:memberRating>4.0</letterboxd:memberRating>
<description><![CDATA[<p>Quietly devastating.</p>]]></description>
</item>
</channel>
</rss>
"""


def _make_feed_entry(**overrides):
    """Create a mock feedparser entry."""
    entry = {
        "title": "Heat, 1995 - ★★★★½",
        "link": "https://letterboxd.com/someone/film/heat/",
        "id": "letterboxd-watch-42",
        "summary": "<p>Watched on Tuesday March 5, 2024.</p>",
        "published_parsed": time.gmtime(1709650800),
        "letterboxd_watcheddate": "2024-03-05",
        "letterboxd_rewatch": "Yes",
        "letterboxd_filmtitle": "Heat",
        "letterboxd_filmyear": "1995",
        "letterboxd_memberrating": "4.5",
    }
    entry.update(overrides)
    return entry


def _make_feed(entries, *, bozo=False):
    return feedparser.FeedParserDict(
        entries=entries,
        bozo=bozo,
        bozo_exception=ValueError("not well-formed") if bozo else None,
    )


class TestFeedUrl:
    def test_member_feed_url(self):
        assert LetterboxdFeedParser.feed_url("someone") == "https://letterboxd.com/someone/rss/"

    def test_username_trimmed(self):
        assert LetterboxdFeedParser.feed_url("  someone ") == "https://letterboxd.com/someone/rss/"


class TestFetch:
    @pytest.mark.parametrize("username", ["", "   "])
    def test_blank_username_raises(self, username):
        with pytest.raises(FeedFetchError, match="blank username"):
            LetterboxdFeedParser().fetch(username)

    def test_fetch_uses_member_feed(self):
        parser = LetterboxdFeedParser()
        with patch.object(parser, "parse", return_value=[]) as mock_parse:
            parser.fetch("someone")
        mock_parse.assert_called_once_with("https://letterboxd.com/someone/rss/")


class TestParse:
    def test_sends_user_agent(self):
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([])
            LetterboxdFeedParser().parse("https://letterboxd.com/someone/rss/")
        mock_parse.assert_called_once_with(
            "https://letterboxd.com/someone/rss/", agent=USER_AGENT
        )

    def test_bozo_without_entries_raises(self):
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([], bozo=True)
            with pytest.raises(FeedFetchError, match="not well-formed"):
                LetterboxdFeedParser().parse("https://letterboxd.com/someone/rss/")

    def test_bozo_with_entries_still_parses(self):
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([_make_feed_entry()], bozo=True)
            items = LetterboxdFeedParser().parse("https://letterboxd.com/someone/rss/")
        assert len(items) == 1

    def test_entry_fields_mapped(self):
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([_make_feed_entry()])
            (item,) = LetterboxdFeedParser().parse("feed")
        assert item.guid == "letterboxd-watch-42"
        assert item.link == "https://letterboxd.com/someone/film/heat/"
        assert item.watched_date == "2024-03-05"
        assert item.rewatch == "Yes"
        assert item.film_title == "Heat"
        assert item.film_year == "1995"
        assert item.member_rating == 4.5
        assert item.published == datetime.fromtimestamp(1709650800, tz=timezone.utc)
        assert "Watched on" in item.description

    def test_missing_letterboxd_fields(self):
        entry = _make_feed_entry()
        for key in [k for k in entry if k.startswith("letterboxd_")]:
            del entry[key]
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([entry])
            (item,) = LetterboxdFeedParser().parse("feed")
        assert item.film_title is None
        assert item.film_year is None
        assert item.member_rating is None
        assert item.watched_date is None
        assert item.rewatch == "No"

    def test_non_numeric_rating_ignored(self):
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([_make_feed_entry(letterboxd_memberrating="n/a")])
            (item,) = LetterboxdFeedParser().parse("feed")
        assert item.member_rating is None

    def test_updated_date_fallback(self):
        entry = _make_feed_entry(published_parsed=None, updated_parsed=time.gmtime(0))
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([entry])
            (item,) = LetterboxdFeedParser().parse("feed")
        assert item.published == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_no_date(self):
        entry = _make_feed_entry(published_parsed=None)
        with patch("letterboxd_sync.feed.parser.feedparser.parse") as mock_parse:
            mock_parse.return_value = _make_feed([entry])
            (item,) = LetterboxdFeedParser().parse("feed")
        assert item.published is None

    def test_real_feed_document(self):
        items = LetterboxdFeedParser().parse(SAMPLE_FEED)
        assert len(items) == 1
        item = items[0]
        assert item.guid == "letterboxd-review-512345678"
        assert item.film_title == "Past Lives"
        assert str(item.film_year) == "2023"
        assert item.watched_date == "2024-01-05"
        assert item.member_rating == 4.0
        assert item.published == datetime(2024, 1, 6, 9, 30, tzinfo=timezone.utc)
        assert "Quietly devastating." in item.description
