"""Project-level commands for venblog.

Everything the CLI does besides building and serving: creating posts,
listing them, removing generated files and scaffolding a new blog.

Key functions:
- new_post: Write ``posts/<title>.md`` with frontmatter.
- collect_posts: Parse every post (no rendering) in build order.
- clean: Delete ``posts/*.html`` and ``index.html``.
- init_blog: Scaffold a new blog directory.
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
from datetime import date
from pathlib import Path

import click

from . import log
from .build import INDEX_FILENAME, POSTS_DIRNAME
from .collections import PostCollection
from .config import CONFIG_FILENAME
from .content import Post, PostSourceLoader, post_from_meta, slug_from_filename
from .errors import PostRenderError
from .extractors import parse_frontmatter

# Bundled files copied into new blogs
_SCAFFOLD_DIR = Path(__file__).parent / "_scaffold"
SCAFFOLD_FILES = ("styles.css", "main.js", "post.js", "theme.js")

GITIGNORE = """__pycache__/
.venv/
.DS_Store
"""


def today_str() -> str:
    return date.today().isoformat()


def split_tags(raw: str | None) -> list[str]:
    """Split a comma separated tag option, dropping blanks."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def render_post_source(title: str, post_date: str, tags: list[str]) -> str:
    """Return the Markdown source of a fresh post."""
    tags_str = f"[{', '.join(tags)}]" if tags else "[]"
    return "\n".join(
        [
            "---",
            f"title: {title}",
            f"date: {post_date}",
            f"tags: {tags_str}",
            "---",
            "",
            f"# {title}",
            "",
            "",
        ]
    )


def new_post(
    project_root: Path, title: str, tags: list[str], post_date: str | None = None
) -> Path:
    """Create ``posts/<title>.md``.

    Raises:
        click.ClickException: The title is empty or the file already exists.
    """
    title = title.strip()
    if not title:
        raise click.ClickException("Post title cannot be empty")
    if "/" in title or "\\" in title:
        raise click.ClickException("Post title cannot contain path separators")
    posts_dir = project_root / POSTS_DIRNAME
    posts_dir.mkdir(parents=True, exist_ok=True)
    target = posts_dir / f"{title}.md"
    if target.exists():
        raise click.ClickException(
            f"File already exists: {POSTS_DIRNAME}/{target.name}"
        )
    target.write_text(
        render_post_source(title, post_date or today_str(), tags), encoding="utf-8"
    )
    return target


def collect_posts(project_root: Path) -> PostCollection | None:
    """Parse every post without rendering, sorted like the index page.

    Returns:
        The sorted collection, or None when there is no posts directory.
    """
    loader = PostSourceLoader(project_root / POSTS_DIRNAME)
    if not loader.exists():
        return None
    posts: list[Post] = []
    for path in loader.iter_files():
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PostRenderError(path, f"Cannot read post: {exc}", exc) from exc
        meta, body = parse_frontmatter(raw)
        posts.append(post_from_meta(slug_from_filename(path.name), meta, body))
    return PostCollection(posts).sorted()


def clean(project_root: Path) -> list[str]:
    """Remove generated pages.

    Returns:
        Project-relative names of the removed files.
    """
    removed: list[str] = []
    posts_dir = project_root / POSTS_DIRNAME
    if posts_dir.is_dir():
        for path in sorted(posts_dir.iterdir()):
            if path.is_file() and path.suffix.lower() == ".html":
                path.unlink()
                removed.append(f"{POSTS_DIRNAME}/{path.name}")
    index = project_root / INDEX_FILENAME
    if index.is_file():
        index.unlink()
        removed.append(INDEX_FILENAME)
    return removed


def sample_post() -> str:
    return f"""---
title: 你好世界
date: {today_str()}
tags: [入门]
---

# 你好世界

这是你的第一篇博文，用 Markdown 写作，venblog 会帮你渲染成漂亮的 HTML 页面。

## 开始写作

在 `posts/` 目录下创建 `.md` 文件，然后运行：

```bash
venblog build
```

## 支持的语法

- **Markdown**：标题、列表、引用、代码块、图片、链接
- **GFM**：表格、任务列表、删除线
- **数学公式**：行内 $E=mc^2$，块级公式单独成段：

$$
\\int_0^1 x^2 dx
$$

> 开始你的写作之旅吧！
"""


def starter_config(name: str) -> str:
    """Minimal venblog.json naming the blog after its directory."""
    title = name or "My venblog"
    payload = {"site": {"title": title}, "hero": {"title": title}}
    return json.dumps(payload, ensure_ascii=False, indent=2) + "\n"


def is_blog(root: Path) -> bool:
    """A directory already holding posts/ and a venblog config or index counts as a blog."""
    return (root / POSTS_DIRNAME).is_dir() and (
        (root / CONFIG_FILENAME).exists() or (root / INDEX_FILENAME).exists()
    )


def init_blog(target: Path) -> list[str]:
    """Scaffold a new blog in ``target``, skipping files that already exist.

    Returns:
        Project-relative names of the files created.

    Raises:
        click.ClickException: ``target`` already is a venblog project.
    """
    if target.exists() and is_blog(target):
        raise click.ClickException(f"{target} already is a venblog project")
    target.mkdir(parents=True, exist_ok=True)
    (target / POSTS_DIRNAME).mkdir(exist_ok=True)

    created: list[str] = []
    generated = {
        f"{POSTS_DIRNAME}/你好世界.md": sample_post(),
        CONFIG_FILENAME: starter_config(target.name),
        ".gitignore": GITIGNORE,
    }
    for rel, content in generated.items():
        dest = target / rel
        if dest.exists():
            log.dim(f"Skipping existing {rel}")
            continue
        dest.write_text(content, encoding="utf-8")
        created.append(rel)

    for name in SCAFFOLD_FILES:
        dest = target / name
        if dest.exists():
            log.dim(f"Skipping existing {name}")
            continue
        shutil.copy2(_SCAFFOLD_DIR / name, dest)
        created.append(name)

    _try_git_init(target)
    return created


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("VENBLOG_SKIP_GIT_INIT") == "1":
        return
    if (root / ".git").exists():
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run(
            [git_bin, "init"],
            cwd=root,
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError):
        # Non-fatal: user can run git init manually
        log.dim("git init failed; run it manually")
