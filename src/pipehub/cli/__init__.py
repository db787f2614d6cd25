"""pipehub command line: ``pipehub [-v] <command>``."""

from __future__ import annotations

import logging
import os
import sys
from typing import Annotated

import typer

from pipehub import __version__

LOG_ENV = "PIPEHUB_LOG"
_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
# index = number of -v flags, capped at 2
_VERBOSITY_LEVELS = (None, logging.INFO, logging.DEBUG)

app = typer.Typer(
    name="pipehub",
    help="Download, update and inspect git-hosted pipelines.",
    no_args_is_help=True,
    add_completion=False,
)


def _show_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"pipehub {__version__}")
    raise typer.Exit


def _env_log_level() -> int | None:
    """Level named by ``PIPEHUB_LOG``; unknown names are reported and ignored."""
    name = os.environ.get(LOG_ENV, "").strip().upper()
    if not name:
        return None
    level = logging.getLevelNamesMapping().get(name)
    if level is None or name == "NOTSET":
        typer.echo(
            f"WARNING: invalid {LOG_ENV} level '{name}' ignored "
            f"(use DEBUG, INFO, WARNING, ERROR or CRITICAL)",
            err=True,
        )
        return None
    return level


def _configure_logging(verbose: int) -> None:
    """Route ``pipehub`` log records to stderr.

    ``PIPEHUB_LOG`` beats the ``-v`` count. Without either, logging is left
    untouched so commands print nothing but their own output.
    """
    level = _env_log_level()
    if level is None:
        level = _VERBOSITY_LEVELS[min(verbose, len(_VERBOSITY_LEVELS) - 1)]
    if level is None:
        return
    logging.basicConfig(
        level=logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    logging.getLogger("pipehub").setLevel(level)


@app.callback()
def main(
    _version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_show_version,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="-v for info, -vv for debug logs."),
    ] = 0,
) -> None:
    _configure_logging(verbose)


from pipehub.cli import commands as _commands  # noqa: E402, F401
