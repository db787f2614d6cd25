"""Output rendering for pipeline listings and info."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

if TYPE_CHECKING:
    from collections.abc import Callable


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


def _align_values(items: dict[str, str]) -> list[tuple[str, str]]:
    """Right-pad keys so values line up."""
    if not items:
        return []
    max_key = max(len(k) for k in items)
    return [(k.ljust(max_key), v) for k, v in items.items()]


def format_info(fields: dict[str, str | None], *, color: bool = True) -> str:
    """Render ``key: value`` lines, skipping empty values."""
    style = styler(color)
    present = {f"{k}:": v for k, v in fields.items() if v}
    return "\n".join(f" {style(k, bold=True)} {v}" for k, v in _align_values(present))


def format_revisions(revisions: list[str], *, color: bool = True) -> str:
    """Render revision lines, highlighting the current one."""
    if not revisions:
        return "   (no revisions)"
    style = styler(color)
    return "\n".join(
        style(f"  {line}", fg="green") if line.startswith("*") else f"  {line}"
        for line in revisions
    )


def format_pipelines(names: list[str]) -> str:
    if not names:
        return "No pipelines installed."
    return "\n".join(names)
