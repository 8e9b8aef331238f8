"""Per-film notes and their managed ``## Letterboxd`` section.

A film note belongs to the user except for one section this module
owns::

    ## Letterboxd

    ### Review

    > review paragraph

    ### Activity

    - **Watched:** [[2024-01-05]] **Rating:** 4 **Rewatch:** No

The section runs from its heading to the next level-1 or level-2
heading. Everything before and after it is left byte for byte.
"""

from __future__ import annotations

import logging
import re

from letterboxd_sync.feed.models import ActivityRecord
from letterboxd_sync.notes.config import MovieNoteConfig
from letterboxd_sync.notes.diary import MergeResult
from letterboxd_sync.notes.frontmatter import ParsedDocument, parse_frontmatter, update_frontmatter
from letterboxd_sync.render.config import RenderConfig
from letterboxd_sync.render.entries import date_phrase, format_rating
from letterboxd_sync.vault.paths import ensure_markdown, normalize_path, safe_filename, slugify

logger = logging.getLogger(__name__)

MANAGED_HEADING = "## Letterboxd"
REVIEW_HEADING = "### Review"
ACTIVITY_HEADING = "### Activity"

_SECTION_END_RE = re.compile(r"^#{1,2} ")
_BLANK_RUN_RE = re.compile(r"\n{3,}")

# Superseded frontmatter key.
_LEGACY_KEYS = ("letterboxd_url",)


# ---------------------------------------------------------------------------
# Section parsing
# ---------------------------------------------------------------------------


def _subsection(lines: list[str], heading: str) -> list[str]:
    """Lines after ``heading`` up to the next heading line."""
    for idx, line in enumerate(lines):
        if line.strip() == heading:
            out: list[str] = []
            for following in lines[idx + 1:]:
                if following.strip().startswith("#"):
                    break
                out.append(following)
            return out
    return []


def extract_activities(section: list[str]) -> list[str]:
    """Bullet lines of the Activity subsection, trimmed, duplicates dropped."""
    bullets = [line.strip() for line in _subsection(section, ACTIVITY_HEADING)]
    return list(dict.fromkeys(b for b in bullets if b.startswith("-")))


def extract_review(section: list[str]) -> str | None:
    """Non-empty lines of the Review subsection, or ``None``."""
    kept = [line for line in _subsection(section, REVIEW_HEADING) if line.strip()]
    return "\n".join(kept).strip() or None


def build_section(review: str | None, activities: list[str]) -> str:
    """Render the managed section (no trailing newline)."""
    lines = [MANAGED_HEADING]
    if review:
        lines.extend(["", REVIEW_HEADING, "", review])
    lines.extend(["", ACTIVITY_HEADING, ""])
    lines.extend(activities)
    return _BLANK_RUN_RE.sub("\n\n", "\n".join(lines))


def merge_section(body: str | None, activity_line: str, review: str | None = None) -> str:
    """Reconcile one activity (and optional review) into a note body.

    Args:
        body: Note body without frontmatter; ``None`` or blank for a new note.
        activity_line: The activity bullet to add unless already present.
        review: Review blockquote. Supersedes the stored review when given;
            otherwise the stored one is kept.

    Returns:
        The new body. Text before the managed heading and from the
        section boundary on is unchanged.
    """
    body = body or ""
    line = activity_line.strip()
    lines = body.split("\n")
    start = next((i for i, l in enumerate(lines) if l.strip() == MANAGED_HEADING), None)

    if start is None:
        section = build_section(review, [line])
        if not body.strip():
            return body + section + "\n"
        separator = "\n" if body.endswith("\n") else "\n\n"
        return body + separator + section + "\n"

    end = next(
        (i for i in range(start + 1, len(lines)) if _SECTION_END_RE.match(lines[i])),
        len(lines),
    )
    current = lines[start + 1:end]
    activities = extract_activities(current)
    if line not in activities:
        activities.append(line)
    section = build_section(review or extract_review(current), activities)

    prefix = "\n".join(lines[:start]) + "\n" if start else ""
    if end == len(lines):
        return prefix + section + "\n"
    return prefix + section + "\n\n" + "\n".join(lines[end:])


# ---------------------------------------------------------------------------
# Film notes
# ---------------------------------------------------------------------------


def activity_line(record: ActivityRecord, config: RenderConfig) -> str:
    """``- **Watched:** [[2024-01-05]] **Rating:** 4 **Rewatch:** No``"""
    when = date_phrase(record, config)
    label = "**Watched:**" if when.watched else "**Marked as watched:**"
    rating = format_rating(record.rating) if record.rating is not None else "-"
    rewatch = "Yes" if record.is_rewatch else "No"
    return f"- {label} {when.text} **Rating:** {rating} **Rewatch:** {rewatch}"


def _score(rating: float) -> int | float:
    return int(rating) if rating.is_integer() else rating


class MovieNoteMerger:
    """Creates and updates one note per film."""

    def __init__(self, config: MovieNoteConfig, render_config: RenderConfig) -> None:
        self._config = config
        self._render_config = render_config

    def path_for(self, record: ActivityRecord) -> str:
        """Vault path of the record's film note, from the note template."""
        path = (
            self._config.template.replace("{{title}}", safe_filename(record.title))
            .replace("{{year}}", str(record.year))
            .replace("{{slug}}", slugify(record.title))
        )
        return normalize_path(ensure_markdown(path))

    def backlink(self, record: ActivityRecord) -> str:
        """Wikilink to the film note, displayed as the film title."""
        target = self.path_for(record).removesuffix(".md")
        return f"[[{target}|{record.title}]]"

    def merge(self, existing: str | None, record: ActivityRecord) -> MergeResult:
        """Merge ``record`` into its film note's current text (``None`` = create)."""
        line = activity_line(record, self._render_config)
        review = record.review_blockquote or None
        keys = self._frontmatter(record)

        if existing is None:
            doc = update_frontmatter(ParsedDocument({}, "\n", False), keys)
            return MergeResult(doc.compose(merge_section(doc.body, line, review)), True, 1)

        doc = update_frontmatter(parse_frontmatter(existing), keys, remove=_LEGACY_KEYS)
        text = doc.compose(merge_section(doc.body, line, review))
        if text == existing:
            logger.debug("Film note for %s already up to date", record.title)
        return MergeResult(text, False, int(text != existing))

    @staticmethod
    def _frontmatter(record: ActivityRecord) -> dict[str, object]:
        data: dict[str, object] = {
            "title": record.title,
            "source": record.source_url,
            "year": record.year,
        }
        if record.rating is not None:
            data["score"] = _score(record.rating)
        return data
