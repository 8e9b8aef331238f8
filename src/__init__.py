"""Sync a Letterboxd diary feed into Obsidian notes."""

__version__ = "0.1.0"
