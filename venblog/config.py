"""Site configuration for venblog.

The optional ``venblog.json`` at the project root is deep-merged over
``DEFAULT_CONFIG``: nested objects merge key by key, every other value
(lists included) replaces the default wholesale. Text for other languages
lives under ``i18n.<lang>`` and is merged over the defaults when ``site.lang``
names that language (``en-US`` falls back to ``en``); sections written in the
file itself still win. The merged result is exposed as a read-only
``SiteConfig`` for the duration of one build.

Key functions:
- deep_merge: Recursive merge of two plain dictionaries.
- load_config: Read, validate and merge the config file.
- localize: Overlay the ``i18n`` entry matching ``site.lang``.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .errors import ConfigError, ConfigParseError

CONFIG_FILENAME = "venblog.json"

REQUIRED_SECTIONS = ("site", "hero", "buttons", "archive", "post")

DEFAULT_CONFIG: dict[str, Any] = {
    "site": {
        "lang": "zh-CN",
        "title": "Venlacy's Blog",
        "description": "Venlacy's Blog. Motion-driven editorial blog experience.",
        "descriptions": {
            "index": "Venlacy's Blog. Motion-driven editorial blog experience.",
            "post": "Venlacy's Blog post.",
        },
        "math_stylesheet": "",
    },
    "hero": {
        "issue": "Issue 001",
        "title": "Venlacy's Blog",
        "tagline": "thoughts, craft & code",
    },
    "buttons": {
        "back": "返回",
        "back_label": "返回首页",
        "read": "阅读全文",
        "theme": "切换主题",
    },
    "archive": {
        "heading": "Archive",
        "label": "文章归档",
        "tags_heading": "标签",
        "all": "全部",
        "uncategorized": "未分类",
        "undated": "未标注日期",
        "noun": "篇文章",
        "status_all": "共 {count} {noun}",
        "status_tag": "“{tag}” 下共 {count} {noun}",
        "reading_time": "{minutes} 分钟",
    },
    "post": {
        "label": "博客文章",
        "reading_time": "{minutes} 分钟阅读",
        "tags_label": "标签",
        "end_mark": "fin",
    },
    "i18n": {
        "en": {
            "buttons": {
                "back": "Back",
                "back_label": "Back to home",
                "read": "Read more",
                "theme": "Toggle theme",
            },
            "archive": {
                "label": "Post archive",
                "tags_heading": "Tags",
                "all": "All",
                "uncategorized": "Uncategorized",
                "undated": "Undated",
                "noun": "posts",
                "status_all": "{count} {noun}",
                "status_tag": "{count} {noun} tagged \u201c{tag}\u201d",
                "reading_time": "{minutes} min",
            },
            "post": {
                "label": "Blog post",
                "reading_time": "{minutes} min read",
                "tags_label": "Tags",
            },
        },
    },
}


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Args:
        base: Default values.
        override: Values that win over ``base``.

    Returns:
        New dictionary; neither input is modified.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


class SiteConfig(Mapping[str, Any]):
    """Read-only view over the merged configuration.

    Attributes:
        path: Config file the values were read from, or None for pure defaults.
    """

    def __init__(self, data: Mapping[str, Any], path: Path | None = None):
        self._data = _freeze(data)
        self.path = path

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def section(self, name: str) -> Mapping[str, Any]:
        """Return a top-level section, failing loudly when it is unusable."""
        value = self._data.get(name)
        if not isinstance(value, Mapping):
            raise ConfigError(
                f"Config section '{name}' must be an object", self.path
            )
        return value

    def text(self, section: str, key: str, default: str = "") -> str:
        """Return a string value from a section, stringifying scalars."""
        value = self.section(section).get(key, default)
        return "" if value is None else str(value)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SiteConfig(path={self.path!r})"


def localize(
    config: Mapping[str, Any], config_path: Path | None = None
) -> dict[str, Any]:
    """Merge the ``i18n`` entry for ``site.lang`` over the top-level sections.

    Examples:
        >>> localize({"site": {"lang": "en-US"}, "i18n": {"en": {"post": {"label": "Post"}}}})["post"]
        {'label': 'Post'}
    """
    site = config.get("site")
    locales = config.get("i18n") or {}
    if not isinstance(locales, Mapping):
        raise ConfigError("Config section 'i18n' must be an object", config_path)
    lang = str(site.get("lang") or "") if isinstance(site, Mapping) else ""
    for key in (lang, lang.split("-")[0]):
        if key and key in locales:
            overlay = locales[key]
            if not isinstance(overlay, Mapping):
                raise ConfigError(
                    f"Config entry 'i18n.{key}' must be an object", config_path
                )
            return deep_merge(config, overlay)
    return dict(config)


def load_config(project_root: Path) -> SiteConfig:
    """Load site configuration from venblog.json.

    Args:
        project_root: Root directory of the project.

    Returns:
        SiteConfig with defaults applied.

    Raises:
        ConfigParseError: The file is not valid JSON or not a JSON object.
        ConfigError: A required section was overridden with a non-object.
    """
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return SiteConfig(localize(DEFAULT_CONFIG))
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = json.load(f)
    except json.JSONDecodeError as exc:
        raise ConfigParseError(
            f"{config_path.name}: invalid JSON (line {exc.lineno}, column {exc.colno}): {exc.msg}",
            config_path,
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigParseError(
            f"{config_path.name}: cannot be read: {exc}", config_path
        ) from exc
    if not isinstance(loaded, dict):
        raise ConfigParseError(
            f"{config_path.name}: top level must be a JSON object", config_path
        )
    # The language overlay sits between the defaults and the file's own sections.
    merged = localize(deep_merge(DEFAULT_CONFIG, loaded), config_path)
    merged = deep_merge(merged, {k: v for k, v in loaded.items() if k != "i18n"})
    config = SiteConfig(merged, config_path)
    for name in REQUIRED_SECTIONS:
        config.section(name)
    return config


def fill_placeholders(template: str, **values: object) -> str:
    """Substitute ``{name}`` placeholders, leaving unknown ones untouched.

    Examples:
        >>> fill_placeholders("共 {count} {noun}", count=3, noun="篇")
        '共 3 篇'
    """
    result = template
    for key, value in values.items():
        result = result.replace("{" + key + "}", str(value))
    return result
