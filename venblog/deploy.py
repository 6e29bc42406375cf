"""Git based deployment for venblog.

Builds the blog, commits every change in the working tree and pushes it to
the configured remote (e.g. a GitHub Pages repository).
"""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Callable
from datetime import date
from pathlib import Path

from .errors import DeployError


def _git_bin() -> str:
    git_bin = shutil.which("git")
    if not git_bin:
        raise DeployError("git executable not found")
    return git_bin


def git(root: Path, *args: str) -> str:
    """Run a git command in ``root`` and return its stdout.

    Raises:
        DeployError: git is missing or exits non-zero.
    """
    try:
        completed = subprocess.run(
            [_git_bin(), *args],
            cwd=root,
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or exc.stdout or "").strip()
        raise DeployError(f"git {' '.join(args)} failed: {detail}") from exc
    return completed.stdout


def is_git_repo(root: Path) -> bool:
    try:
        git(root, "rev-parse", "--git-dir")
    except DeployError:
        return False
    return True


def has_remote(root: Path) -> bool:
    try:
        return bool(git(root, "remote").strip())
    except DeployError:
        return False


def default_message() -> str:
    return f"deploy: {date.today().isoformat()}"


def deploy(
    root: Path,
    build: Callable[[], object],
    message: str | None = None,
) -> bool:
    """Build, commit and push.

    Args:
        root: Project root (a git working tree with a remote).
        build: Callable running the site build; its errors propagate.
        message: Commit message, defaults to ``deploy: YYYY-MM-DD``.

    Returns:
        False when there was nothing to commit, True after a push.

    Raises:
        DeployError: Not a repository, no remote, or a git step failed.
    """
    if not is_git_repo(root):
        raise DeployError("Current directory is not a git repository")
    if not has_remote(root):
        raise DeployError("No git remote configured")

    build()

    if not git(root, "status", "--porcelain").strip():
        return False
    git(root, "add", "-A")
    git(root, "commit", "-m", message or default_message())
    git(root, "push")
    return True
