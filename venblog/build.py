"""Site building functionality for venblog.

This module contains the core logic for building a blog from ``posts/*.md``.
It loads configuration, renders every post next to its source and writes the
index page at the project root.

Key pieces:
- build_site: Main function to build the entire site.
- SiteBuilder: One build, tracked through explicit states.
- BuildResult: Sorted posts plus wall-clock duration.

A build is fail-fast: the first post that cannot be read, rendered or written
aborts it, leaving files already written by the same run in place.
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import TemplateError

from . import log
from .collections import PostCollection
from .config import SiteConfig, load_config
from .content import Post, PostBuilder, PostSourceLoader
from .errors import PostRenderError, WriteError
from .templates import PageTemplater

POSTS_DIRNAME = "posts"
INDEX_FILENAME = "index.html"


class BuildState(enum.Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    RENDERING_POSTS = "rendering-posts"
    RENDERING_INDEX = "rendering-index"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Posts sorted by date, newest first, undated last.
        duration_ms: Wall-clock milliseconds since scanning began.
        written: Files written by this build, in write order.
    """

    posts: list[Post]
    duration_ms: float
    written: list[Path] = field(default_factory=list)


class SiteBuilder:
    """Drives one build of a project.

    Attributes:
        project_root: Directory holding ``posts/`` and receiving ``index.html``.
        config: Site configuration used for every page of the build.
        state: Current BuildState; FAILED once an exception escaped ``run``.
    """

    def __init__(
        self,
        project_root: Path,
        config: SiteConfig,
        post_builder: PostBuilder | None = None,
        templater: PageTemplater | None = None,
        verbose: bool = False,
    ):
        self.project_root = project_root
        self.config = config
        self.posts_dir = project_root / POSTS_DIRNAME
        self.loader = PostSourceLoader(self.posts_dir)
        self.post_builder = post_builder or PostBuilder()
        self.templater = templater or PageTemplater(config)
        self.verbose = verbose
        self.state = BuildState.IDLE
        self._written: list[Path] = []

    def run(self) -> BuildResult:
        """Execute the build from scanning to the index page."""
        start = time.perf_counter()
        try:
            result = self._run(start)
        except Exception:
            self.state = BuildState.FAILED
            raise
        self.state = BuildState.DONE
        return result

    def _run(self, start: float) -> BuildResult:
        self.state = BuildState.SCANNING
        if not self.loader.exists():
            log.warn(f"{POSTS_DIRNAME}/ directory not found at {self.posts_dir}")
            return BuildResult(posts=[], duration_ms=_elapsed_ms(start))
        sources = self.loader.iter_files()

        self.state = BuildState.RENDERING_POSTS
        posts: list[Post] = []
        for path in sources:
            rendered = self.post_builder.build(path)
            try:
                page = self.templater.render_post(rendered)
            except TemplateError as exc:
                raise PostRenderError(path, f"Template error: {exc}", exc) from exc
            self._write(rendered.output_path, page)
            if self.verbose:
                log.dim(f"  {path.name} → {rendered.output_path.name}")
            posts.append(rendered.post)

        self.state = BuildState.RENDERING_INDEX
        ordered = PostCollection(posts).sorted()
        self._write(
            self.project_root / INDEX_FILENAME, self.templater.render_index(ordered)
        )
        return BuildResult(
            posts=list(ordered),
            duration_ms=_elapsed_ms(start),
            written=list(self._written),
        )

    def _write(self, path: Path, html: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(html)
        except OSError as exc:
            raise WriteError(path, f"Cannot write output: {exc}", exc) from exc
        self._written.append(path)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def build_site(project_root: Path, verbose: bool = False) -> BuildResult:
    """Build the entire blog.

    Args:
        project_root: Root directory of the project.
        verbose: Log one line per rendered post.

    Returns:
        BuildResult with the sorted posts and the elapsed time.

    Raises:
        ConfigParseError: ``venblog.json`` is malformed; nothing was written.
        SourceScanError: ``posts/`` exists but cannot be listed.
        PostRenderError: A post could not be read or rendered.
        WriteError: An output file could not be written.
    """
    config = load_config(project_root)
    return SiteBuilder(project_root, config, verbose=verbose).run()
