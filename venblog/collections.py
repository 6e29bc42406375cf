from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .content import Post, locale_sort_key

UNCATEGORIZED = "未分类"


def display_tags(post: Post, sentinel: str = UNCATEGORIZED) -> tuple[str, ...]:
    """Tags as shown on the index page; untagged posts get the sentinel tag."""
    seen: list[str] = []
    for tag in post.tags:
        if tag not in seen:
            seen.append(tag)
    return tuple(seen) if seen else (sentinel,)


class PostCollection(Sequence[Post]):
    """Lightweight helper for ordering and grouping posts."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        return self._posts[item]

    def sorted(self) -> PostCollection:
        """Newest first; undated posts last; ties keep their current order.

        Dates are zero-padded ``YYYY-MM-DD`` (see ``normalize_date``), so they
        compare correctly as text and the empty date sorts below every real
        one; a single stable reverse sort is enough.
        """
        return PostCollection(sorted(self._posts, key=lambda p: p.date, reverse=True))

    def tag_counts(self, sentinel: str = UNCATEGORIZED) -> list[tuple[str, int]]:
        """Return ``(tag, count)`` pairs for every display tag, in locale order."""
        counts: dict[str, int] = {}
        for post in self._posts:
            for tag in display_tags(post, sentinel):
                counts[tag] = counts.get(tag, 0) + 1
        return sorted(counts.items(), key=lambda item: locale_sort_key(item[0]))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"
