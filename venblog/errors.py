"""Error types raised by the venblog build core.

Every fatal condition surfaces to the caller of ``build_site`` as one of these
exceptions; the CLI turns them into a coloured message and a non-zero exit.

Hierarchy:
- VenblogError: base class, carries a human-readable message.
- ConfigError / ConfigParseError: configuration problems, raised before any rendering.
- SourceScanError: the posts directory exists but cannot be listed.
- BuildError: a per-file failure with source context (PostRenderError, WriteError).
- DeployError: a git step of the deployment failed.
"""

from __future__ import annotations

from pathlib import Path


class VenblogError(Exception):
    """Base class for all venblog errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(VenblogError):
    """The merged site configuration is unusable.

    Attributes:
        config_path: Path of the config file involved, if any.
    """

    def __init__(self, message: str, config_path: Path | None = None):
        self.config_path = config_path
        super().__init__(message)


class ConfigParseError(ConfigError):
    """The config file is not valid JSON or its top level is not an object."""


class SourceScanError(VenblogError):
    """The posts directory could not be listed for a reason other than absence."""

    def __init__(self, posts_dir: Path, message: str):
        self.posts_dir = posts_dir
        super().__init__(f"{posts_dir}: {message}")


class BuildError(VenblogError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.source_path}: {self.message}"


class PostRenderError(BuildError):
    """A post could not be read or converted to HTML."""


class WriteError(BuildError):
    """An output file could not be written."""


class DeployError(VenblogError):
    """A git step of the deployment failed."""
