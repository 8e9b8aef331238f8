"""Exception hierarchy shared across the sync pipeline."""

from __future__ import annotations


class SyncError(Exception):
    """Base error for letterboxd-sync."""


class FeedFetchError(SyncError):
    """Raised when the feed cannot be fetched or yields nothing usable."""


class FeedValidationError(SyncError):
    """Raised when a feed item lacks the fields needed to build a record.

    The driver skips the offending item; the rest of the batch proceeds.
    """

    def __init__(self, message: str, *, guid: str = "") -> None:
        super().__init__(message)
        self.guid = guid


class FrontmatterFormatError(SyncError):
    """Raised when a frontmatter block opens but never closes."""
