"""Command-line interface for venblog.

This module defines the CLI commands using Click framework.

Commands:
- new: Create a new post (prompts for the title when omitted).
- build: Build the site (posts/*.md -> posts/*.html + index.html).
- serve: Run the development server with rebuild-on-change.
- clean: Remove generated files.
- list: List all posts.
- deploy: Build, commit and push to the git remote.
- init: Scaffold a new blog.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import questionary

from . import __version__, log
from .errors import BuildError, DeployError, VenblogError
from .extractors import normalize_date
from .utils import format_date_short, pad_width, truncate_width


@click.group()
@click.version_option(version=__version__, prog_name="venblog")
def cli():
    """venblog: a lightweight static blog CLI (thoughts, craft & code)."""


@cli.command()
@click.argument("title", required=False)
@click.option("-t", "--tags", default="", help="Comma separated tags")
@click.option("-d", "--date", "post_date", default=None, help="Post date (YYYY-MM-DD)")
def new(title: str | None, tags: str, post_date: str | None):
    """Create a new post."""
    from .project import new_post, split_tags

    if post_date is not None and not normalize_date(post_date):
        raise click.BadParameter("expected YYYY-MM-DD", param_hint="--date")
    if title is None:
        title = questionary.text(
            "Post title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()

    tag_list = split_tags(tags)
    path = new_post(Path.cwd(), title, tag_list, post_date)
    log.success("New post created")
    log.info(f"Path: posts/{path.name}")
    log.dim(f"Date: {post_date or 'today'} | Tags: {', '.join(tag_list) or '-'}")


@cli.command()
@click.option("--clean", "clean_first", is_flag=True, help="Remove generated files first")
def build(clean_first: bool):
    """Build the site (Markdown -> HTML)."""
    project_root = Path.cwd()
    from .build import build_site

    if clean_first:
        _clean(project_root)
        log.blank()

    log.info("Building...")
    try:
        result = build_site(project_root)
    except VenblogError as exc:
        _report_failure(exc, project_root)
        raise SystemExit(1) from None
    if not result.posts:
        log.warn("No .md files found in posts/")
        return
    for post in result.posts:
        log.dim(f"  {post.slug}.md → {post.slug}.html")
    log.success(f"Built {len(result.posts)} posts in {round(result.duration_ms)}ms")


@cli.command()
@click.option("-p", "--port", type=int, default=5173, show_default=True, help="Server port")
@click.option("--open/--no-open", "open_browser", default=True, help="Open a browser tab")
@click.option("--build/--no-build", "initial_build", default=True, help="Build before serving")
def serve(port: int, open_browser: bool, initial_build: bool):
    """Run the dev server with file watching and automatic rebuilds."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(project_root, port=port, open_browser=open_browser)
    try:
        server.start(initial_build=initial_build)
    except (VenblogError, OSError) as exc:
        log.error(f"Failed to start: {exc}")
        raise SystemExit(1) from None


@cli.command()
def clean():
    """Remove all generated files."""
    _clean(Path.cwd())


@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
def list_posts(as_json: bool):
    """List all posts."""
    from .project import collect_posts

    try:
        posts = collect_posts(Path.cwd())
    except VenblogError as exc:
        _report_failure(exc, Path.cwd())
        raise SystemExit(1) from None
    if posts is None:
        log.warn("posts/ directory does not exist")
        return
    if as_json:
        click.echo(json.dumps([p.to_dict() for p in posts], ensure_ascii=False, indent=2))
        return
    if not posts:
        log.info("No posts yet")
        return

    log.blank()
    log.info(f"{len(posts)} posts")
    log.blank()
    header = f"  {pad_width('#', 4)}{pad_width('Title', 28)}{pad_width('Date', 14)}{pad_width('Read', 8)}Tags"
    click.echo(click.style(header, dim=True))
    click.echo(click.style("  " + "─" * 76, dim=True))
    for number, post in enumerate(posts, start=1):
        num = click.style(pad_width(str(number), 4), dim=True)
        title = pad_width(truncate_width(post.title, 26), 28)
        date = click.style(pad_width(format_date_short(post.date) or "—", 14), dim=True)
        minutes = click.style(pad_width(f"{post.reading_time}min", 8), dim=True)
        tags = click.style(", ".join(post.tags), dim=True) if post.tags else ""
        click.echo(f"  {num}{title}{date}{minutes}{tags}")
    log.blank()


@cli.command()
@click.option("-m", "--message", default=None, help="Custom commit message")
def deploy(message: str | None):
    """Build and deploy to the git remote."""
    project_root = Path.cwd()
    from .build import build_site
    from .deploy import deploy as run_deploy

    def _build():
        log.info("Building...")
        result = build_site(project_root)
        log.success(f"Built {len(result.posts)} posts in {round(result.duration_ms)}ms")

    try:
        pushed = run_deploy(project_root, _build, message=message)
    except DeployError as exc:
        log.error(exc.message)
        log.dim("Run: git init && git remote add origin <url>")
        raise SystemExit(1) from None
    except VenblogError as exc:
        _report_failure(exc, project_root)
        raise SystemExit(1) from None
    if pushed:
        log.success("Deployed")
    else:
        log.info("Nothing to commit")


@cli.command()
@click.argument("directory", required=False)
def init(directory: str | None):
    """Initialize a new blog."""
    from .project import init_blog

    target = Path(directory).resolve() if directory else Path.cwd()
    created = init_blog(target)
    for rel in created:
        log.dim(f"Created {rel}")
    log.blank()
    log.success(f"Blog initialized at {target}")
    log.info("Next steps:")
    if directory:
        log.dim(f"  cd {directory}")
    log.dim("  venblog build              build the site")
    log.dim("  venblog serve              start the dev server")
    log.dim('  venblog new "Title"        create a post')


def _clean(project_root: Path) -> None:
    from .project import clean as clean_project

    removed = clean_project(project_root)
    for rel in removed:
        log.dim(f"Removed {rel}")
    if removed:
        log.success(f"Cleaned {len(removed)} files")
    else:
        log.info("Nothing to clean")


def _report_failure(exc: VenblogError, project_root: Path) -> None:
    """Display a user-friendly build error."""
    log.error(click.style("Build failed:", fg="red", bold=True))
    if isinstance(exc, BuildError):
        try:
            rel_path = exc.source_path.relative_to(project_root)
        except ValueError:
            rel_path = exc.source_path
        log.error(click.style(f"  File: {rel_path}", fg="yellow"))
    log.error(f"  Error: {exc.message}")


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
