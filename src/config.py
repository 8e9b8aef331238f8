"""Unified configuration loaded from .letterboxd-sync.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import json
import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from letterboxd_sync.notes.config import MergeConfig, MovieNoteConfig, SortOrder
from letterboxd_sync.render.config import DisplayStyle, RenderConfig, StarStyle, coerce_star_style

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".letterboxd-sync.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "letterboxd-sync",
]
DAILY_NOTES_SETTINGS = Path(".obsidian") / "daily-notes.json"
DEFAULT_DATE_FORMAT = "YYYY-MM-DD"


class VaultSectionConfig(BaseModel):
    """[vault] section."""

    directory: str = "."


class LetterboxdSectionConfig(BaseModel):
    """[letterboxd] section."""

    username: str = ""


class DiarySectionConfig(BaseModel):
    """[diary] section."""

    path: str = "Letterboxd Diary"
    sort: SortOrder = SortOrder.OLD
    style: DisplayStyle = DisplayStyle.LIST
    stars: StarStyle = StarStyle.NUMERIC
    add_reference_id: bool = False
    link_date: bool = True
    # None: use the vault's daily-note format
    date_format: str | None = None
    display_date_format: str = DEFAULT_DATE_FORMAT

    @field_validator("stars", mode="before")
    @classmethod
    def _legacy_star_index(cls, value: Any) -> Any:
        return coerce_star_style(value)


class MovieNotesSectionConfig(BaseModel):
    """[movie_notes] section."""

    enabled: bool = False
    template: str = "Movies/{{title}}"


class SyncConfig(BaseModel):
    """Top-level configuration model for letterboxd-sync."""

    vault: VaultSectionConfig = Field(default_factory=VaultSectionConfig)
    letterboxd: LetterboxdSectionConfig = Field(default_factory=LetterboxdSectionConfig)
    diary: DiarySectionConfig = Field(default_factory=DiarySectionConfig)
    movie_notes: MovieNotesSectionConfig = Field(default_factory=MovieNotesSectionConfig)

    @property
    def vault_path(self) -> Path:
        return Path(self.vault.directory).expanduser()

    def resolve_date_format(self) -> str:
        """Explicit ``date_format``, else the vault's daily-note format."""
        if self.diary.date_format is not None:
            return self.diary.date_format
        return daily_note_format(self.vault_path)

    def to_render_config(self) -> RenderConfig:
        """Convert to RenderConfig for the entry renderer."""
        return RenderConfig(
            style=self.diary.style,
            stars=self.diary.stars,
            link_date=self.diary.link_date,
            add_reference_id=self.diary.add_reference_id,
            date_format=self.resolve_date_format(),
            display_date_format=self.diary.display_date_format,
        )

    def to_merge_config(self) -> MergeConfig:
        """Convert to MergeConfig for the diary merge."""
        return MergeConfig(sort=self.diary.sort, spaced=self.diary.style.is_block)

    def to_movie_note_config(self) -> MovieNoteConfig:
        """Convert to MovieNoteConfig for film notes."""
        return MovieNoteConfig(
            enabled=self.movie_notes.enabled,
            template=self.movie_notes.template,
        )


def daily_note_format(vault: Path) -> str:
    """Read the daily-note date format from the vault's Obsidian settings.

    Falls back to ``YYYY-MM-DD`` when the settings file is missing, corrupt,
    or leaves the format blank (Obsidian's own default).
    """
    settings_path = vault / DAILY_NOTES_SETTINGS
    if not settings_path.exists():
        return DEFAULT_DATE_FORMAT
    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s: %s", settings_path, exc)
        return DEFAULT_DATE_FORMAT
    fmt = data.get("format") if isinstance(data, dict) else None
    return fmt or DEFAULT_DATE_FORMAT


def load_config(path: str | Path | None = None) -> SyncConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .letterboxd-sync.toml in CWD
    3. ~/.config/letterboxd-sync/.letterboxd-sync.toml
    4. ~/.config/letterboxd-sync/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged SyncConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "letterboxd-sync" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = SyncConfig.model_validate(data) if data else SyncConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: SyncConfig, **cli_kwargs: object) -> SyncConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Args:
        config: Base config.
        **cli_kwargs: CLI flag values, e.g. ``username``, ``vault_directory``.

    Returns:
        Updated config with CLI overrides applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "username": ("letterboxd", "username"),
        "vault_directory": ("vault", "directory"),
        "diary_path": ("diary", "path"),
        "sort": ("diary", "sort"),
        "style": ("diary", "style"),
        "stars": ("diary", "stars"),
        "movie_notes": ("movie_notes", "enabled"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return SyncConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: SyncConfig) -> SyncConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "LETTERBOXD_USERNAME": ("letterboxd", "username"),
        "LETTERBOXD_VAULT_DIR": ("vault", "directory"),
        "LETTERBOXD_DIARY_PATH": ("diary", "path"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    notes_raw = os.environ.get("LETTERBOXD_MOVIE_NOTES")
    if notes_raw is not None:
        data["movie_notes"]["enabled"] = notes_raw.lower() in ("true", "1", "yes")

    return SyncConfig.model_validate(data)
