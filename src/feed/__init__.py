"""Letterboxd feed ingestion: transport parsing and normalization."""

from __future__ import annotations

from letterboxd_sync.feed.models import ActivityRecord, RawFeedItem
from letterboxd_sync.feed.normalizer import normalize_item, normalize_items

__all__ = ["ActivityRecord", "RawFeedItem", "normalize_item", "normalize_items"]
