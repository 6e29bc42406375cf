"""Content processing for venblog.

This module discovers post sources and turns each one into a Post record plus
the HTML produced for it during a build.

Key classes:
- Post: Long-lived record returned to callers (slug, title, date, tags, reading time).
- RenderedPost: A Post together with its body HTML, owned by one build.
- PostSourceLoader: Finds ``*.md`` files in the posts directory in a stable order.
- PostBuilder: Runs parse -> strip heading -> render -> reading time for one file.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import PostRenderError, SourceScanError
from .extractors import (
    estimate_reading_time,
    normalize_date,
    normalize_tags,
    parse_frontmatter,
    strip_leading_h1,
)
from .renderers import MarkdownRenderer

MARKDOWN_SUFFIX = ".md"


@dataclass(frozen=True)
class Post:
    """One Markdown post.

    Attributes:
        slug: File name without extension; output name and URL segment.
        title: Frontmatter title, falling back to the slug.
        date: ``YYYY-MM-DD`` or empty when absent or unparseable.
        tags: Declared tags, deduplicated, in first-seen order.
        reading_time: Estimated minutes, at least 1.
    """

    slug: str
    title: str
    date: str = ""
    tags: tuple[str, ...] = ()
    reading_time: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "title": self.title,
            "date": self.date,
            "tags": list(self.tags),
            "readingTime": self.reading_time,
        }


@dataclass(frozen=True)
class RenderedPost:
    """A post with the artefacts produced for it during one build.

    Attributes:
        post: The public record.
        source_path: Markdown file the post was read from.
        body_html: Rendered body fragment (already safe HTML).
        meta: Raw frontmatter, unknown keys included.
    """

    post: Post
    source_path: Path
    body_html: str
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def output_path(self) -> Path:
        return self.source_path.with_name(f"{self.post.slug}.html")


def locale_sort_key(name: str) -> tuple[str, str]:
    """Case- and normalisation-insensitive ordering key with a stable tie-break."""
    return unicodedata.normalize("NFC", name).casefold(), name


def slug_from_filename(filename: str) -> str:
    """Strip a trailing ``.md`` (any case) from a file name."""
    if filename.lower().endswith(MARKDOWN_SUFFIX):
        return filename[: -len(MARKDOWN_SUFFIX)]
    return filename


def post_from_meta(slug: str, meta: dict[str, Any], body: str) -> Post:
    """Build a Post from parsed frontmatter without rendering anything."""
    return Post(
        slug=slug,
        title=str(meta.get("title") or slug),
        date=normalize_date(meta.get("date")),
        tags=normalize_tags(meta.get("tags")),
        reading_time=estimate_reading_time(body),
    )


class PostSourceLoader:
    """Discovers post source files.

    Attributes:
        posts_dir: Directory holding ``*.md`` posts (not searched recursively).
    """

    def __init__(self, posts_dir: Path):
        self.posts_dir = posts_dir

    def exists(self) -> bool:
        return self.posts_dir.is_dir()

    def iter_files(self) -> list[Path]:
        """Return Markdown files sorted by locale-aware file name comparison.

        Raises:
            SourceScanError: The directory exists but cannot be listed.
        """
        try:
            entries = list(self.posts_dir.iterdir())
        except OSError as exc:
            raise SourceScanError(self.posts_dir, exc.strerror or str(exc)) from exc
        files = [
            path
            for path in entries
            if path.name.lower().endswith(MARKDOWN_SUFFIX) and path.is_file()
        ]
        return sorted(files, key=lambda p: locale_sort_key(p.name))


class PostBuilder:
    """Builds RenderedPost objects from source files.

    Attributes:
        renderer: Markdown renderer used for post bodies.
    """

    def __init__(self, renderer: MarkdownRenderer | None = None):
        self.renderer = renderer or MarkdownRenderer()

    def build(self, path: Path) -> RenderedPost:
        """Read, parse and render one post.

        Args:
            path: Markdown source file.

        Returns:
            RenderedPost for the file.

        Raises:
            PostRenderError: The file cannot be read or rendered.
        """
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PostRenderError(path, f"Cannot read post: {exc}", exc) from exc

        meta, body = parse_frontmatter(raw)
        cleaned = strip_leading_h1(body)
        try:
            body_html = self.renderer.render(cleaned)
        except Exception as exc:
            raise PostRenderError(
                path, f"Markdown rendering failed: {type(exc).__name__}: {exc}", exc
            ) from exc

        post = post_from_meta(slug_from_filename(path.name), meta, cleaned)
        return RenderedPost(post=post, source_path=path, body_html=body_html, meta=meta)
