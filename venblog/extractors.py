"""Metadata extraction for venblog posts.

Splits a raw post into frontmatter and body, normalises the fields the build
uses and estimates reading time. Nothing here raises on odd input: a malformed
frontmatter block simply leaves the whole file as body.

Key functions:
- parse_frontmatter: Minimal ``---`` delimited key/value parser.
- strip_leading_h1: Drop a heading that would duplicate the page title.
- estimate_reading_time: Mixed CJK/latin reading time in minutes.
- normalize_date: Keep ``YYYY-MM-DD`` dates, treat anything else as absent.
- normalize_tags: Deduplicate tags preserving first-seen order.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable
from typing import Any

FRONTMATTER_OPEN = "---\n"
FRONTMATTER_CLOSE = "\n---\n"

BRACKET_LIST_RE = re.compile(r"^\[(.*)]$")
LEADING_H1_RE = re.compile(r"^#\s+")
DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")

HTML_TAG_RE = re.compile(r"<[^>]+>")
BLOCK_MATH_RE = re.compile(r"\$\$.*?\$\$", re.DOTALL)
INLINE_MATH_RE = re.compile(r"\$[^$]+\$")
CJK_RE = re.compile(r"[\u4e00-\u9fff\u3400-\u4dbf]")

CJK_PER_MINUTE = 300
WORDS_PER_MINUTE = 200


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract the frontmatter block from a post.

    Only ``key: value`` lines are read. ``tags`` accepts ``[a, b]`` or a single
    scalar; every other key is kept as a trimmed string.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (meta dict, body). Without a well-formed block the meta dict is
        empty and the body is the whole normalised text.
    """
    normalized = normalize_newlines(text)
    if not normalized.startswith(FRONTMATTER_OPEN):
        return {}, normalized
    end = normalized.find(FRONTMATTER_CLOSE, len(FRONTMATTER_OPEN))
    if end == -1:
        return {}, normalized

    block = normalized[len(FRONTMATTER_OPEN) : end]
    body = normalized[end + len(FRONTMATTER_CLOSE) :]
    meta: dict[str, Any] = {}
    for line in block.split("\n"):
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip()
        value = value.strip()
        if key == "tags":
            meta["tags"] = _parse_tags(value)
        else:
            meta[key] = value
    return meta, body


def _parse_tags(value: str) -> list[str]:
    match = BRACKET_LIST_RE.match(value)
    if match:
        return [tag.strip() for tag in match.group(1).split(",") if tag.strip()]
    return [value] if value else []


def strip_leading_h1(markdown: str) -> str:
    """Remove a level-1 heading that opens the body, plus the blank lines after it.

    Leading blank lines are skipped before looking for the heading; headings
    further down are left alone.

    Examples:
        >>> strip_leading_h1("\\n# Hello\\n\\nBody.")
        'Body.'
        >>> strip_leading_h1("Intro\\n# Later")
        'Intro\\n# Later'
    """
    lines = normalize_newlines(markdown).split("\n")
    i = 0
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i < len(lines) and LEADING_H1_RE.match(lines[i]):
        i += 1
        while i < len(lines) and not lines[i].strip():
            i += 1
        return "\n".join(lines[i:])
    return "\n".join(lines)


def estimate_reading_time(text: str) -> int:
    """Estimate reading time for mixed Chinese/English text.

    CJK ideographs count individually at 300 per minute, everything else is
    split on whitespace at 200 words per minute. HTML tags and ``$``/``$$``
    math are ignored.

    Args:
        text: Markdown or HTML source.

    Returns:
        Minutes, rounded half up, never less than 1.
    """
    clean = HTML_TAG_RE.sub("", text)
    clean = BLOCK_MATH_RE.sub("", clean)
    clean = INLINE_MATH_RE.sub("", clean)
    cjk = len(CJK_RE.findall(clean))
    words = len(CJK_RE.sub(" ", clean).split())
    minutes = cjk / CJK_PER_MINUTE + words / WORDS_PER_MINUTE
    return max(1, math.floor(minutes + 0.5))


def normalize_date(value: Any) -> str:
    """Return a zero-padded ``YYYY-MM-DD`` date, or ``""`` when it does not parse.

    Padding keeps plain string comparison in date order.

    Examples:
        >>> normalize_date("2025-7-2")
        '2025-07-02'
    """
    if not value:
        return ""
    match = DATE_RE.match(str(value).strip())
    if not match:
        return ""
    year, month, day = match.groups()
    return f"{year}-{month:0>2}-{day:0>2}"


def normalize_tags(tags: Iterable[str] | None) -> tuple[str, ...]:
    """Deduplicate tags, keeping the order they first appear in."""
    seen: list[str] = []
    for tag in tags or ():
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)
