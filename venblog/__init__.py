"""venblog static blog generator.

Turns ``posts/*.md`` (Markdown with a small ``---`` frontmatter block) into
one HTML page per post plus an ``index.html`` archive with a tag sidebar.

The build core (content, renderers, templates, build) has no dependency on the
development server; ``server`` and ``coordinator`` add file watching and
serialised rebuilds on top of it. The CLI module wires everything together.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
