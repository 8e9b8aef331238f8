"""Tests for src/config.py: SyncConfig, TOML loading, env vars, CLI overrides."""

from __future__ import annotations

import pytest

from letterboxd_sync.config import (
    SyncConfig,
    daily_note_format,
    load_config,
    merge_cli_overrides,
)
from letterboxd_sync.notes.config import SortOrder
from letterboxd_sync.render.config import DisplayStyle, StarStyle


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove env vars that _apply_env_vars reads so tests see TOML values."""
    for key in (
        "LETTERBOXD_USERNAME",
        "LETTERBOXD_VAULT_DIR",
        "LETTERBOXD_DIARY_PATH",
        "LETTERBOXD_MOVIE_NOTES",
    ):
        monkeypatch.delenv(key, raising=False)


class TestSyncConfigDefaults:
    def test_default_diary(self):
        cfg = SyncConfig()
        assert cfg.diary.path == "Letterboxd Diary"
        assert cfg.diary.sort is SortOrder.OLD
        assert cfg.diary.style is DisplayStyle.LIST
        assert cfg.diary.stars is StarStyle.NUMERIC
        assert cfg.diary.link_date is True
        assert cfg.diary.add_reference_id is False

    def test_default_movie_notes(self):
        cfg = SyncConfig()
        assert cfg.movie_notes.enabled is False
        assert cfg.movie_notes.template == "Movies/{{title}}"

    def test_default_username_blank(self):
        assert SyncConfig().letterboxd.username == ""


class TestLoadConfig:
    def test_load_from_explicit_path(self, tmp_path):
        toml_path = tmp_path / ".letterboxd-sync.toml"
        toml_path.write_text(
            '[letterboxd]\nusername = "someone"\n\n'
            '[diary]\npath = "Films/Diary"\nsort = "New"\nstyle = "Callout"\nstars = "emoji"\n\n'
            '[movie_notes]\nenabled = true\ntemplate = "Films/{{year}}/{{title}}"\n'
        )
        cfg = load_config(toml_path)
        assert cfg.letterboxd.username == "someone"
        assert cfg.diary.path == "Films/Diary"
        assert cfg.diary.sort is SortOrder.NEW
        assert cfg.diary.style is DisplayStyle.CALLOUT
        assert cfg.diary.stars is StarStyle.EMOJI
        assert cfg.movie_notes.enabled is True
        assert cfg.movie_notes.template == "Films/{{year}}/{{title}}"

    def test_legacy_star_index(self, tmp_path):
        toml_path = tmp_path / "c.toml"
        toml_path.write_text("[diary]\nstars = 1\n")
        assert load_config(toml_path).diary.stars is StarStyle.STAR

    def test_load_missing_path_returns_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nonexistent.toml")
        assert cfg.diary.path == "Letterboxd Diary"

    def test_invalid_toml_returns_defaults(self, tmp_path):
        toml_path = tmp_path / "bad.toml"
        toml_path.write_text("[diary\npath = ")
        assert load_config(toml_path).diary.path == "Letterboxd Diary"

    def test_load_searches_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".letterboxd-sync.toml").write_text('[letterboxd]\nusername = "cwd-user"\n')
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("letterboxd_sync.config.Path.home", lambda: tmp_path / "home")
        assert load_config().letterboxd.username == "cwd-user"

    def test_global_config_fallback(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        (home / ".config" / "letterboxd-sync").mkdir(parents=True)
        (home / ".config" / "letterboxd-sync" / "config.toml").write_text(
            '[letterboxd]\nusername = "global-user"\n'
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("letterboxd_sync.config.Path.home", lambda: home)
        assert load_config().letterboxd.username == "global-user"


class TestEnvVars:
    def test_env_overrides_toml(self, tmp_path, monkeypatch):
        toml_path = tmp_path / "c.toml"
        toml_path.write_text('[letterboxd]\nusername = "toml-user"\n')
        monkeypatch.setenv("LETTERBOXD_USERNAME", "env-user")
        monkeypatch.setenv("LETTERBOXD_VAULT_DIR", "/vault")
        monkeypatch.setenv("LETTERBOXD_DIARY_PATH", "Diary")
        cfg = load_config(toml_path)
        assert cfg.letterboxd.username == "env-user"
        assert cfg.vault.directory == "/vault"
        assert cfg.diary.path == "Diary"

    @pytest.mark.parametrize(("raw", "expected"), [("true", True), ("1", True), ("no", False)])
    def test_movie_notes_flag(self, tmp_path, monkeypatch, raw, expected):
        monkeypatch.setenv("LETTERBOXD_MOVIE_NOTES", raw)
        assert load_config(tmp_path / "none.toml").movie_notes.enabled is expected


class TestMergeCliOverrides:
    def test_overrides_applied(self):
        cfg = merge_cli_overrides(
            SyncConfig(),
            username="someone",
            vault_directory="/vault",
            diary_path="Diary",
            sort="New",
            style="ListReview",
            stars="star",
            movie_notes=True,
        )
        assert cfg.letterboxd.username == "someone"
        assert cfg.vault.directory == "/vault"
        assert cfg.diary.path == "Diary"
        assert cfg.diary.sort is SortOrder.NEW
        assert cfg.diary.style is DisplayStyle.LIST_REVIEW
        assert cfg.diary.stars is StarStyle.STAR
        assert cfg.movie_notes.enabled is True

    def test_none_values_ignored(self):
        base = SyncConfig.model_validate({"letterboxd": {"username": "kept"}})
        cfg = merge_cli_overrides(base, username=None, movie_notes=None)
        assert cfg.letterboxd.username == "kept"
        assert cfg.movie_notes.enabled is False

    def test_false_flag_applied(self):
        base = SyncConfig.model_validate({"movie_notes": {"enabled": True}})
        assert merge_cli_overrides(base, movie_notes=False).movie_notes.enabled is False


class TestDerivedConfigs:
    def test_daily_note_format_from_vault(self, tmp_path):
        (tmp_path / ".obsidian").mkdir()
        (tmp_path / ".obsidian" / "daily-notes.json").write_text('{"format": "YYYY/MM/DD"}')
        assert daily_note_format(tmp_path) == "YYYY/MM/DD"

    def test_daily_note_format_blank_or_missing(self, tmp_path):
        assert daily_note_format(tmp_path) == "YYYY-MM-DD"
        (tmp_path / ".obsidian").mkdir()
        (tmp_path / ".obsidian" / "daily-notes.json").write_text('{"format": ""}')
        assert daily_note_format(tmp_path) == "YYYY-MM-DD"

    def test_daily_note_format_corrupt(self, tmp_path):
        (tmp_path / ".obsidian").mkdir()
        (tmp_path / ".obsidian" / "daily-notes.json").write_text("{not json")
        assert daily_note_format(tmp_path) == "YYYY-MM-DD"

    def test_explicit_date_format_wins(self, tmp_path):
        (tmp_path / ".obsidian").mkdir()
        (tmp_path / ".obsidian" / "daily-notes.json").write_text('{"format": "YYYY/MM/DD"}')
        cfg = SyncConfig.model_validate(
            {"vault": {"directory": str(tmp_path)}, "diary": {"date_format": "DD-MM-YYYY"}}
        )
        assert cfg.to_render_config().date_format == "DD-MM-YYYY"

    def test_render_config(self, tmp_path):
        cfg = SyncConfig.model_validate(
            {"vault": {"directory": str(tmp_path)}, "diary": {"style": "Callout", "stars": 2}}
        )
        render = cfg.to_render_config()
        assert render.style is DisplayStyle.CALLOUT
        assert render.stars is StarStyle.EMOJI
        assert render.date_format == "YYYY-MM-DD"

    def test_block_styles_are_spaced(self):
        assert SyncConfig().to_merge_config().spaced is False
        cfg = SyncConfig.model_validate({"diary": {"style": "CalloutPoster"}})
        assert cfg.to_merge_config().spaced is True

    def test_movie_note_config(self):
        cfg = SyncConfig.model_validate({"movie_notes": {"enabled": True, "template": "F/{{slug}}"}})
        notes = cfg.to_movie_note_config()
        assert notes.enabled is True
        assert notes.template == "F/{{slug}}"
