"""Rendering configuration for diary entries."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class DisplayStyle(StrEnum):
    """How a diary entry is laid out."""

    LIST = "List"
    LIST_REVIEW = "ListReview"
    CALLOUT = "Callout"
    CALLOUT_POSTER = "CalloutPoster"

    @property
    def is_block(self) -> bool:
        """Block styles get a blank line between entries."""
        return self is not DisplayStyle.LIST


class StarStyle(StrEnum):
    """How a rating is shown."""

    NUMERIC = "numeric"
    STAR = "star"
    EMOJI = "emoji"


# Older settings files store stars as a dropdown index.
_LEGACY_STARS = {0: StarStyle.NUMERIC, 1: StarStyle.STAR, 2: StarStyle.EMOJI}


def coerce_star_style(value: Any) -> Any:
    """Map a legacy dropdown index (``0``, ``"1"``) onto a ``StarStyle``."""
    if isinstance(value, int) and not isinstance(value, bool):
        return _LEGACY_STARS.get(value, StarStyle.NUMERIC)
    if isinstance(value, str) and value.isdigit():
        return _LEGACY_STARS.get(int(value), StarStyle.NUMERIC)
    return value


class RenderConfig(BaseModel):
    """Everything the entry renderer needs; passed explicitly per call."""

    model_config = ConfigDict(frozen=True)

    style: DisplayStyle = DisplayStyle.LIST
    stars: StarStyle = StarStyle.NUMERIC
    link_date: bool = True
    add_reference_id: bool = False
    date_format: str = "YYYY-MM-DD"
    display_date_format: str = "YYYY-MM-DD"

    @field_validator("stars", mode="before")
    @classmethod
    def _legacy_star_index(cls, value: Any) -> Any:
        return coerce_star_style(value)
