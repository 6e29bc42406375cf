"""Utility functions for venblog.

String helpers shared by the templater and the CLI.

Key functions:
    format_date_long: ``2025-07-02`` -> ``2025 年 7 月 2 日``.
    format_date_short: ``2025-07-02`` -> ``2025.07.02``.
    quote_segment: Percent-encode one URL path segment.
    post_href: Relative link to a post page.
    display_width: Terminal width of a string (wide characters count double).
    truncate_width: Cut a string to a terminal width with an ellipsis.
"""

from __future__ import annotations

from urllib.parse import quote

from .extractors import DATE_RE

# Characters encodeURIComponent leaves alone on top of quote()'s defaults.
_SEGMENT_SAFE = "!*'()"


def format_date_long(date: str) -> str:
    """Format a date for post pages.

    Examples:
        >>> format_date_long("2025-07-02")
        '2025 年 7 月 2 日'

        >>> format_date_long("")
        ''
    """
    if not date:
        return ""
    match = DATE_RE.match(date)
    if not match:
        return date
    year, month, day = match.groups()
    return f"{year} 年 {int(month)} 月 {int(day)} 日"


def format_date_short(date: str) -> str:
    """Format a date for index cards and listings.

    Examples:
        >>> format_date_short("2025-7-2")
        '2025.07.02'
    """
    if not date:
        return ""
    match = DATE_RE.match(date)
    if not match:
        return date
    year, month, day = match.groups()
    return f"{year}.{month.zfill(2)}.{day.zfill(2)}"


def quote_segment(segment: str) -> str:
    """Percent-encode a single path segment (slashes included)."""
    return quote(segment, safe=_SEGMENT_SAFE)


def post_href(slug: str, prefix: str = "posts/") -> str:
    """Return the relative URL of a post page.

    Examples:
        >>> post_href("你好 世界")
        'posts/%E4%BD%A0%E5%A5%BD%20%E4%B8%96%E7%95%8C.html'
    """
    return f"{prefix}{quote_segment(slug)}.html"


def _char_width(ch: str) -> int:
    return 2 if ord(ch) > 0x7F else 1


def display_width(text: str) -> int:
    """Approximate terminal width; non-ASCII characters count as two columns."""
    return sum(_char_width(ch) for ch in text)


def pad_width(text: str, width: int) -> str:
    """Right-pad ``text`` with spaces to ``width`` terminal columns."""
    return text + " " * max(0, width - display_width(text))


def truncate_width(text: str, max_width: int) -> str:
    """Truncate ``text`` so it fits ``max_width`` columns, ending with an ellipsis."""
    used = 0
    for index, ch in enumerate(text):
        w = _char_width(ch)
        if used + w > max_width - 1:
            return text[:index] + "…"
        used += w
    return text
