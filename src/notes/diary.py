"""Diary document reconciliation."""

from __future__ import annotations

import logging
from typing import NamedTuple

from letterboxd_sync.notes.config import MergeConfig, SortOrder
from letterboxd_sync.notes.frontmatter import parse_frontmatter

logger = logging.getLogger(__name__)


class MergeResult(NamedTuple):
    """Merged document text, and whether the document is new."""

    text: str
    created: bool
    added: int


def _interleave(lines: list[str], spaced: bool) -> list[str]:
    if not spaced:
        return list(lines)
    out: list[str] = []
    for line in lines:
        if out:
            out.append("")
        out.append(line)
    return out


def new_entries(existing: list[str], incoming: list[str]) -> list[str]:
    """Incoming lines absent from ``existing``, first occurrence wins.

    Exact line equality is the only key: two records that render to the
    same line are indistinguishable.
    """
    seen = set(existing)
    fresh: list[str] = []
    for line in incoming:
        if line in seen:
            continue
        seen.add(line)
        fresh.append(line)
    return fresh


def merge_lines(existing: list[str], incoming: list[str], config: MergeConfig) -> tuple[list[str], int]:
    """Splice new lines into an existing body.

    Leading and trailing blank lines of the body stay where they are;
    ``Old`` appends after the last content line, ``New`` prepends before
    the first one.

    Returns:
        Tuple of (merged lines, number of lines added).
    """
    fresh = new_entries(existing, incoming)
    if not fresh:
        return list(existing), 0

    start = 0
    while start < len(existing) and existing[start] == "":
        start += 1
    end = len(existing)
    while end > start and existing[end - 1] == "":
        end -= 1
    lead, core, tail = existing[:start], existing[start:end], existing[end:]

    block = _interleave(fresh, config.spaced)
    gap = [""] if config.spaced and core else []
    if config.sort is SortOrder.OLD:
        merged = core + gap + block
    else:
        merged = block + gap + core
    return lead + merged + tail, len(fresh)


def merge_diary(existing: str | None, incoming: list[str], config: MergeConfig) -> MergeResult:
    """Reconcile rendered entries against the diary's current text.

    Args:
        existing: Current diary text, or ``None`` when there is no diary yet.
        incoming: Rendered entries, already in the order they should appear.
        config: Sort order and spacing.

    Returns:
        The merged text. The frontmatter block is kept as written and the
        body keeps its line endings (LF or CRLF); when nothing is new the
        existing text comes back untouched.
    """
    if existing is None:
        fresh = new_entries([], incoming)
        text = "\n".join(_interleave(fresh, config.spaced))
        return MergeResult(text, True, len(fresh))

    doc = parse_frontmatter(existing)
    lines = doc.body.split("\n") if doc.body else []
    newline = "\n"
    if "\r\n" in doc.body:
        newline = "\r\n"
        lines = [line.removesuffix("\r") for line in lines]
    merged, added = merge_lines(lines, incoming, config)
    if not added:
        logger.debug("Diary already up to date")
        return MergeResult(existing, False, 0)
    return MergeResult(doc.compose(newline.join(merged)), False, added)
