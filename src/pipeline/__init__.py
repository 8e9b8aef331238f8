"""Sync orchestration: feed items to film notes, then to the diary."""
