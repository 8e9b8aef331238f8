"""Merge configuration for vault documents."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SortOrder(StrEnum):
    """Diary ordering. ``Old`` is chronological ascending."""

    OLD = "Old"
    NEW = "New"


class MergeConfig(BaseModel):
    """How new entries are spliced into the diary."""

    model_config = ConfigDict(frozen=True)

    sort: SortOrder = SortOrder.OLD
    spaced: bool = False


class MovieNoteConfig(BaseModel):
    """Per-film note settings."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    template: str = "Movies/{{title}}"
