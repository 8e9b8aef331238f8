"""Frontmatter parsing and serialization.

Only the subset Obsidian notes use in practice is understood: flat
``key: value`` scalars, block arrays (``key:`` followed by ``  - item``
lines) and inline arrays (``key: [a, b]``). Serialization emits the
same shapes, quoting strings that would otherwise read back as
something else.

Existing blocks are never re-serialized wholesale: a parsed document
keeps its raw block, and updates rewrite only the keys they touch, so
anything outside that subset (nested mappings, block scalars, comments)
survives untouched.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, NamedTuple

from letterboxd_sync.errors import FrontmatterFormatError

logger = logging.getLogger(__name__)

DELIMITER = "---"

_INT_RE = re.compile(r"[-+]?\d+")
_FLOAT_RE = re.compile(r"[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?")
_FLOW_ITEM_RE = re.compile(r"\s*(?:\"(?:[^\"\\]|\\.)*\"|'(?:[^']|'')*'|[^,]+)")
_ITEM_RE = re.compile(r"^\s*-(?:\s+(.*))?$")
_KEY_RE = re.compile(r"([^:]+):(?:\s|$)")
_INDICATORS = set("!&*>|%@`#,?-{}[]\"'")
_NULLS = {"", "~", "null", "Null", "NULL"}
_TRUES = {"true", "True", "TRUE"}
_FALSES = {"false", "False", "FALSE"}


class ParsedDocument(NamedTuple):
    """A document split into its frontmatter mapping and body text.

    ``block`` is the frontmatter exactly as it appears in the document,
    delimiters included, so ``block + body`` reproduces the source text.
    """

    data: dict[str, Any]
    body: str
    present: bool
    block: str = ""

    def compose(self, body: str | None = None) -> str:
        """Put the frontmatter block (if the document had one) back ahead of ``body``."""
        text = self.body if body is None else body
        if not self.present:
            return text
        return (self.block or serialize_frontmatter(self.data)) + text


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


def _decode_scalar(raw: str) -> Any:
    s = raw.strip()
    if s in _NULLS:
        return None
    if s in _TRUES:
        return True
    if s in _FALSES:
        return False
    if len(s) >= 2 and s[0] == s[-1] == '"':
        try:
            return json.loads(s)
        except ValueError:
            return s[1:-1]
    if len(s) >= 2 and s[0] == s[-1] == "'":
        return s[1:-1].replace("''", "'")
    if s.startswith("[") and s.endswith("]"):
        inner = s[1:-1].strip()
        if not inner:
            return []
        return [_decode_scalar(m.group(0)) for m in _FLOW_ITEM_RE.finditer(inner) if m.group(0).strip()]
    if _INT_RE.fullmatch(s):
        return int(s)
    if _FLOAT_RE.fullmatch(s):
        return float(s)
    return s


def _needs_quotes(s: str) -> bool:
    if not s or s != s.strip():
        return True
    if s[0] in _INDICATORS or "\n" in s or "\r" in s:
        return True
    if ": " in s or s.endswith(":") or " #" in s:
        return True
    return _decode_scalar(s) != s


def _encode_scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    text = str(value)
    if _needs_quotes(text):
        return json.dumps(text, ensure_ascii=False)
    return text


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def split_frontmatter(text: str) -> tuple[list[str] | None, str]:
    """Split ``text`` into raw frontmatter lines and body.

    Returns:
        ``(None, text)`` when the first line is not the delimiter.

    Raises:
        FrontmatterFormatError: If the opening delimiter is never closed.
    """
    lines = text.split("\n")
    if lines[0].rstrip() != DELIMITER:
        return None, text
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == DELIMITER:
            return lines[1:idx], "\n".join(lines[idx + 1:])
    raise FrontmatterFormatError("Frontmatter block is never closed")


def parse_block(lines: list[str]) -> dict[str, Any]:
    """Parse the lines between the delimiters into an ordered mapping."""
    data: dict[str, Any] = {}
    current: str | None = None
    for line in lines:
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        item = _ITEM_RE.match(line)
        if item and current is not None:
            if not isinstance(data[current], list):
                data[current] = []
            data[current].append(_decode_scalar(item.group(1) or ""))
            continue
        if line[0].isspace() or ":" not in line:
            logger.debug("Ignoring unsupported frontmatter line: %r", line)
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        data[key] = _decode_scalar(value)
        current = key if data[key] is None else None
    return data


def parse_frontmatter(text: str) -> ParsedDocument:
    """Parse a document's frontmatter, recovering from an unclosed block.

    An unclosed block is treated as no frontmatter: the whole text is
    kept as body so nothing is lost.
    """
    try:
        lines, body = split_frontmatter(text)
    except FrontmatterFormatError:
        logger.warning("Unclosed frontmatter block; treating the whole document as body")
        return ParsedDocument({}, text, False)
    if lines is None:
        return ParsedDocument({}, text, False)
    return ParsedDocument(parse_block(lines), body, True, text[: len(text) - len(body)])


def _encode_entry(key: str, value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        if not value:
            return [f"{key}: []"]
        return [f"{key}:", *(f"  - {_encode_scalar(item)}" for item in value)]
    if value is None:
        return [f"{key}:"]
    return [f"{key}: {_encode_scalar(value)}"]


def serialize_frontmatter(data: dict[str, Any]) -> str:
    """Serialize a mapping as a delimited frontmatter block, keys in order."""
    lines = [DELIMITER]
    for key, value in data.items():
        lines.extend(_encode_entry(key, value))
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# In-place updates
# ---------------------------------------------------------------------------


def _top_level_key(line: str) -> str | None:
    if not line or line[0].isspace() or line.startswith(("#", "-")):
        return None
    m = _KEY_RE.match(line)
    return m.group(1).strip() if m else None


def _entry_end(lines: list[str], start: int) -> int:
    """Index past the last line belonging to the key on ``lines[start]``.

    Indented lines, column-0 sequence items and blank lines between them
    belong to the key; trailing blank lines do not.
    """
    end = start + 1
    while end < len(lines) and (
        not lines[end].strip() or lines[end][0].isspace() or lines[end].startswith("-")
    ):
        end += 1
    while end > start + 1 and not lines[end - 1].strip():
        end -= 1
    return end


def set_keys(
    lines: list[str],
    updates: dict[str, Any],
    remove: tuple[str, ...] = (),
) -> list[str]:
    """Rewrite top-level keys of raw frontmatter lines in place.

    Keys in ``updates`` are replaced where they stand (appended when
    missing), keys in ``remove`` are dropped, and every other line is
    kept as written, including nested mappings, block scalars and comments.
    """
    out: list[str] = []
    written: set[str] = set()
    idx = 0
    while idx < len(lines):
        key = _top_level_key(lines[idx])
        if key is None:
            out.append(lines[idx])
            idx += 1
            continue
        end = _entry_end(lines, idx)
        if key in updates and key not in written:
            out.extend(_encode_entry(key, updates[key]))
            written.add(key)
        elif key not in remove and key not in written:
            out.extend(lines[idx:end])
        idx = end
    for key, value in updates.items():
        if key not in written:
            out.extend(_encode_entry(key, value))
    return out


def update_frontmatter(
    doc: ParsedDocument,
    updates: dict[str, Any],
    remove: tuple[str, ...] = (),
) -> ParsedDocument:
    """Return ``doc`` with ``updates`` applied to its frontmatter.

    A document without frontmatter gains a fresh block. When the update
    changes nothing the original block is kept byte for byte.
    """
    if not doc.present:
        data = dict(updates)
        return ParsedDocument(data, doc.body, True, serialize_frontmatter(data))
    newline = "\r\n" if "\r\n" in doc.block else "\n"
    current, _ = split_frontmatter(doc.block)
    current = [line.removesuffix("\r") for line in current or []]
    lines = set_keys(current, updates, remove)
    if lines == current:
        return doc
    block = newline.join([DELIMITER, *lines, DELIMITER]) + newline
    return ParsedDocument(parse_block(lines), doc.body, True, block)
