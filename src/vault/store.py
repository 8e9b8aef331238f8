"""File-backed access to an Obsidian vault.

Reads return ``None`` for missing documents. Writes replace the whole
file atomically and create any missing parent folders. Files are opened
with ``newline=""`` so the carriage returns inside diary entries survive
a read/write cycle untouched.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from letterboxd_sync.pipeline.models import WriteMode, WriteRequest
from letterboxd_sync.vault.paths import normalize_path

logger = logging.getLogger(__name__)


def _atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class VaultStore:
    """Vault-relative document storage rooted at a directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def resolve(self, path: str) -> Path:
        return self._root / normalize_path(path)

    def read(self, path: str) -> str | None:
        """Return the document text, or ``None`` if it does not exist."""
        try:
            with open(self.resolve(path), encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def write(self, request: WriteRequest) -> Path:
        """Apply a write request. ``OSError`` propagates unchanged."""
        target = self.resolve(request.path)
        if request.mode is WriteMode.CREATE and target.exists():
            logger.warning("%s appeared since it was read; overwriting", request.path)
        _atomic_write(target, request.text)
        logger.debug("%s %s (%d chars)", request.mode.value, request.path, len(request.text))
        return target
