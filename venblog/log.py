"""Branded, colourised console output for venblog.

Thin wrapper over ``click.echo``/``click.style`` so every message carries the
same ``venblog`` prefix. Errors go to stderr; everything else to stdout.
"""

from __future__ import annotations

import click

BRAND = "venblog"


def _brand(**style) -> str:
    return click.style(BRAND, bold=True, **style)


def info(*parts: object) -> None:
    """Plain progress information."""
    click.echo(" ".join([_brand(fg="cyan"), *map(str, parts)]))


def success(*parts: object) -> None:
    click.echo(
        " ".join([_brand(fg="green"), click.style("✓", fg="green"), *map(str, parts)])
    )


def warn(*parts: object) -> None:
    click.echo(
        " ".join([_brand(fg="yellow"), click.style("!", fg="yellow"), *map(str, parts)])
    )


def error(*parts: object) -> None:
    click.echo(
        " ".join([_brand(fg="red"), click.style("✗", fg="red"), *map(str, parts)]),
        err=True,
    )


def dim(*parts: object) -> None:
    """Quiet detail lines (per-file progress, hints)."""
    message = " ".join(map(str, parts))
    click.echo(f"{click.style(BRAND, dim=True)} {click.style(message, dim=True)}")


def blank() -> None:
    click.echo()
