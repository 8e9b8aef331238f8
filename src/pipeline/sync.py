"""Sync pipeline: Letterboxd feed → film notes → diary.

Ordering contract: every film note is merged *before* any diary line
is rendered, because a diary line links to the film note only once that
note's merge has produced a backlink. The diary is merged last, once
per run, with the whole batch.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from letterboxd_sync.feed.models import ActivityRecord, RawFeedItem
from letterboxd_sync.feed.normalizer import normalize_items
from letterboxd_sync.notes.config import MergeConfig, MovieNoteConfig, SortOrder
from letterboxd_sync.notes.diary import merge_diary
from letterboxd_sync.notes.movie import MovieNoteMerger
from letterboxd_sync.pipeline.models import (
    SkippedItem,
    SyncPlan,
    SyncReport,
    WriteMode,
    WriteRequest,
)
from letterboxd_sync.render.config import RenderConfig
from letterboxd_sync.render.entries import EntryRenderer
from letterboxd_sync.vault.paths import ensure_markdown, normalize_path

if TYPE_CHECKING:
    from letterboxd_sync.config import SyncConfig
    from letterboxd_sync.feed.parser import LetterboxdFeedParser
    from letterboxd_sync.vault.store import VaultStore

logger = logging.getLogger(__name__)


class DocumentReader(Protocol):
    def read(self, path: str) -> str | None: ...


class DocumentWriter(Protocol):
    def write(self, request: WriteRequest) -> Path: ...


def order_records(records: list[ActivityRecord], sort: SortOrder) -> list[ActivityRecord]:
    """Oldest first for ``Old``, newest first for ``New`` (stable)."""
    return sorted(records, key=lambda r: r.sort_key, reverse=sort is SortOrder.NEW)


def merge_movie_notes(
    records: list[ActivityRecord],
    merger: MovieNoteMerger,
    reader: DocumentReader,
) -> tuple[dict[str, str], list[WriteRequest]]:
    """Merge each record into its film note, in order.

    A note hit twice in one batch (a rewatch) is merged against the text
    pending from the earlier merge, so each path yields one request.

    Returns:
        Tuple of (backlinks by record id, write requests in first-touch order).
    """
    backlinks: dict[str, str] = {}
    pending: dict[str, WriteRequest] = {}
    for record in records:
        path = merger.path_for(record)
        if path in pending:
            result = merger.merge(pending[path].text, record)
            pending[path].text = result.text
        else:
            current = reader.read(path)
            result = merger.merge(current, record)
            pending[path] = WriteRequest(
                path=path,
                text=result.text,
                mode=WriteMode.CREATE if current is None else WriteMode.REPLACE,
                previous=current,
            )
        backlinks[record.id] = merger.backlink(record)
        logger.debug("Merged %s into %s", record.id, path)
    return backlinks, list(pending.values())


def reconcile(
    items: list[RawFeedItem],
    reader: DocumentReader,
    *,
    diary_path: str,
    render: RenderConfig,
    merge: MergeConfig,
    movie_notes: MovieNoteConfig | None = None,
) -> SyncPlan:
    """Plan every write for one sync without touching storage.

    Args:
        items: Raw feed items, any order.
        reader: Source of current document text.
        diary_path: Vault path of the diary (``.md`` optional).
        render: Entry rendering options.
        merge: Diary sort order and spacing.
        movie_notes: Film note options; ``None`` or disabled skips film notes.

    Returns:
        The plan: film note requests, then the diary request, plus a report.
    """
    report = SyncReport(items_seen=len(items))
    records, skipped = normalize_items(items)
    report.skipped = [SkippedItem(guid=guid, reason=reason) for guid, reason in skipped]
    records = order_records(records, merge.sort)
    report.records = len(records)

    # Phase 1: film notes, producing backlinks. Activity is appended oldest
    # first whatever the diary order.
    backlinks: dict[str, str] = {}
    notes: list[WriteRequest] = []
    if movie_notes is not None and movie_notes.enabled:
        backlinks, notes = merge_movie_notes(
            order_records(records, SortOrder.OLD),
            MovieNoteMerger(movie_notes, render),
            reader,
        )
        report.notes_created = sum(1 for n in notes if n.mode is WriteMode.CREATE)
        report.notes_updated = sum(1 for n in notes if n.mode is WriteMode.REPLACE and not n.is_noop)

    # Phase 2: diary, once, with the whole batch.
    lines = EntryRenderer(render).render_all(records, backlinks)
    path = normalize_path(ensure_markdown(diary_path))
    current = reader.read(path)
    result = merge_diary(current, lines, merge)
    report.diary_entries_added = result.added
    diary = WriteRequest(
        path=path,
        text=result.text,
        mode=WriteMode.CREATE if result.created else WriteMode.REPLACE,
        previous=current,
    )

    logger.info(
        "Planned sync: %d records, %d skipped, %d new diary entries, %d notes created, %d updated",
        report.records,
        len(report.skipped),
        report.diary_entries_added,
        report.notes_created,
        report.notes_updated,
    )
    return SyncPlan(diary=diary, notes=notes, report=report)


def apply_plan(plan: SyncPlan, writer: DocumentWriter) -> list[Path]:
    """Perform the planned writes, film notes first. Errors propagate."""
    written = [writer.write(request) for request in plan.writes]
    logger.info("Wrote %d document(s)", len(written))
    return written


def run_sync(
    config: SyncConfig,
    *,
    store: VaultStore | None = None,
    parser: LetterboxdFeedParser | None = None,
    dry_run: bool = False,
) -> SyncPlan:
    """Fetch the feed for the configured user and reconcile it into the vault."""
    from letterboxd_sync.feed.parser import LetterboxdFeedParser
    from letterboxd_sync.vault.store import VaultStore

    if store is None:
        store = VaultStore(config.vault_path)
    if parser is None:
        parser = LetterboxdFeedParser()

    items = parser.fetch(config.letterboxd.username)
    plan = reconcile(
        items,
        store,
        diary_path=config.diary.path,
        render=config.to_render_config(),
        merge=config.to_merge_config(),
        movie_notes=config.to_movie_note_config(),
    )
    if dry_run:
        logger.info("Dry run: %d write(s) not applied", len(plan.writes))
        return plan
    apply_plan(plan, store)
    return plan
