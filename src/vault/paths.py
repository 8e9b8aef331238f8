"""Vault-relative path helpers, mirroring Obsidian's own path rules."""

from __future__ import annotations

import re
import unicodedata

MARKDOWN_SUFFIX = ".md"

_UNSAFE_FILENAME_RE = re.compile(r"[:/\\|?*<>\"]")
_SLASH_RUN_RE = re.compile(r"/+")


def normalize_path(path: str) -> str:
    """Normalize a vault-relative path the way Obsidian does.

    Backslashes become slashes, runs of slashes collapse, leading and
    trailing slashes are dropped, non-breaking spaces become spaces.
    """
    path = path.replace("\\", "/").replace("\u00a0", " ").replace("\u202f", " ")
    path = _SLASH_RUN_RE.sub("/", path).strip("/")
    path = unicodedata.normalize("NFC", path)
    return path or "/"


def ensure_markdown(path: str) -> str:
    """Append ``.md`` unless the path already has it."""
    return path if path.endswith(MARKDOWN_SUFFIX) else path + MARKDOWN_SUFFIX


def safe_filename(title: str) -> str:
    """Drop the characters Obsidian refuses in file names."""
    return _UNSAFE_FILENAME_RE.sub("", title)


def slugify(text: str) -> str:
    """``"Amélie (2001)"`` → ``"amelie-2001"``."""
    text = unicodedata.normalize("NFD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = re.sub(r"[^\w\s-]", "", text.lower())
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip()
