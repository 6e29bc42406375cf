"""Page templating for venblog.

This module uses Jinja2 to render the two page kinds of a blog: one page per
post and the index/archive page. Layouts ship with the package in
``_layouts/``; autoescaping is on, so every interpolated string (titles,
tags, dates, config text) is HTML-escaped while the rendered post body is
passed in as ``Markup`` and embedded verbatim.

Key class:
- PageTemplater: Renders post pages and the index page for one SiteConfig.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .collections import PostCollection, display_tags
from .config import SiteConfig, fill_placeholders
from .content import Post, RenderedPost
from .utils import format_date_long, format_date_short, post_href

LAYOUT_DIR = Path(__file__).parent / "_layouts"

__all__ = ["LAYOUT_DIR", "PageTemplater"]


class PageTemplater:
    """Template rendering for post and index pages.

    Attributes:
        config: Merged site configuration for the current build.
        env: Jinja2 environment over the layout directory.
    """

    def __init__(self, config: SiteConfig, layout_dir: Path | None = None):
        """Initialize the templater.

        Args:
            config: Site configuration; sections are validated on first use.
            layout_dir: Optional override of the bundled layouts.
        """
        self.config = config
        self.env = Environment(
            loader=FileSystemLoader(str(layout_dir or LAYOUT_DIR)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Expose the config sections every layout uses."""
        self.env.globals["site"] = self.config.section("site")
        self.env.globals["hero"] = self.config.section("hero")
        self.env.globals["buttons"] = self.config.section("buttons")
        self.env.globals["archive"] = self.config.section("archive")
        self.env.globals["labels"] = self.config.section("post")

    def _descriptions(self) -> dict[str, Any]:
        value = self.config.section("site").get("descriptions")
        return dict(value) if hasattr(value, "items") else {}

    def _math_stylesheet(self, asset_prefix: str) -> str:
        href = self.config.text("site", "math_stylesheet")
        if not href or href.startswith(("http://", "https://", "//", "/")):
            return href
        return f"{asset_prefix}{href}"

    def render_post(self, rendered: RenderedPost) -> str:
        """Render a complete post page.

        Args:
            rendered: Post record plus its body HTML.

        Returns:
            HTML document string.
        """
        post = rendered.post
        reading = ""
        if post.reading_time:
            reading = fill_placeholders(
                self.config.text("post", "reading_time"), minutes=post.reading_time
            )
        description = self._descriptions().get("post") or self.config.text(
            "site", "description"
        )
        context = {
            "asset_prefix": "../",
            "post": post,
            "date_long": format_date_long(post.date),
            "reading": reading,
            "description": description,
            "math_stylesheet": self._math_stylesheet("../"),
            "body_html": Markup(rendered.body_html),
        }
        return self.env.get_template("post.html.jinja").render(**context)

    def render_index(self, posts: Iterable[Post]) -> str:
        """Render the index/archive page.

        Args:
            posts: Posts in display order (already sorted by the caller).

        Returns:
            HTML document string. Without posts only the hero section renders.
        """
        collection = posts if isinstance(posts, PostCollection) else PostCollection(posts)
        sentinel = self.config.text("archive", "uncategorized")
        noun = self.config.text("archive", "noun")
        cards = [self._card(post, sentinel) for post in collection]
        status = fill_placeholders(
            self.config.text("archive", "status_all"),
            count=len(cards),
            noun=noun,
            tag=self.config.text("archive", "all"),
        )
        description = self._descriptions().get("index") or self.config.text(
            "site", "description"
        )
        context = {
            "asset_prefix": "",
            "description": description,
            "cards": cards,
            "tag_counts": collection.tag_counts(sentinel),
            "status": status,
        }
        return self.env.get_template("index.html.jinja").render(**context)

    def _card(self, post: Post, sentinel: str) -> dict[str, Any]:
        tags = display_tags(post, sentinel)
        reading = fill_placeholders(
            self.config.text("archive", "reading_time"), minutes=post.reading_time
        )
        return {
            "href": post_href(post.slug),
            "title": post.title,
            "date": post.date,
            "date_short": format_date_short(post.date)
            or self.config.text("archive", "undated"),
            "reading": reading,
            "tags": tags,
            "tags_json": json.dumps(list(tags), ensure_ascii=False),
        }
