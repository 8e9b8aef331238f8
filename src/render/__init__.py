"""Diary entry rendering."""

from __future__ import annotations

from letterboxd_sync.render.config import DisplayStyle, RenderConfig, StarStyle
from letterboxd_sync.render.entries import EntryRenderer

__all__ = ["DisplayStyle", "EntryRenderer", "RenderConfig", "StarStyle"]
