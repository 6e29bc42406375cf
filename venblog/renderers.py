"""Markdown rendering for venblog.

Posts are converted with mistune using a fixed plugin set (GFM tables,
strikethrough, task lists, bare URLs and ``$``/``$$`` math). Math is typeset
to MathML with latex2mathml; an expression that fails to convert is left in
the page as escaped source instead of failing the post.

Key classes:
- MarkdownRenderer: Converts cleaned post markdown to an HTML fragment.
- _PostHTMLRenderer: mistune renderer with heading anchors and MathML output.
"""

from __future__ import annotations

import re

import mistune
from latex2mathml.converter import convert as latex_to_mathml
from markupsafe import escape

MARKDOWN_PLUGINS = ["table", "strikethrough", "task_lists", "url", "math"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text (may contain inline HTML).

    Returns:
        Slug suitable for anchor links; word characters include CJK.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _PostHTMLRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and server-side math."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text) or "section"
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_math(self, text: str) -> str:
        return f'<div class="math math--display">{_typeset(text, display="block")}</div>\n'

    def inline_math(self, text: str) -> str:
        return f'<span class="math math--inline">{_typeset(text, display="inline")}</span>'


def _typeset(latex: str, display: str) -> str:
    """Convert LaTeX to MathML, falling back to the escaped source.

    Args:
        latex: Expression without the ``$`` delimiters.
        display: ``"inline"`` or ``"block"``.

    Returns:
        MathML markup, or the delimited source wrapped in an error span.
    """
    try:
        return latex_to_mathml(latex, display=display)
    except Exception:
        delimiter = "$$" if display == "block" else "$"
        source = escape(f"{delimiter}{latex}{delimiter}")
        return f'<span class="math--error">{source}</span>'


class MarkdownRenderer:
    """Renders post markdown to an HTML fragment.

    The caller is expected to have removed the leading title heading already
    (see ``extractors.strip_leading_h1``).
    """

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source.

        Returns:
            HTML fragment; raw HTML in the source is passed through.
        """
        markdown = mistune.create_markdown(
            renderer=_PostHTMLRenderer(), plugins=MARKDOWN_PLUGINS
        )
        return markdown(content)
