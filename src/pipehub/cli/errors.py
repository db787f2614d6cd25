"""Map exceptions to clean stderr messages and exit codes."""

from __future__ import annotations

import typer


def _err(msg: str, *, fg: str | None) -> None:
    """Print a styled message to stderr."""
    typer.echo(typer.style(msg, fg=fg), err=True)


def handle_error(exc: Exception, *, color: bool = True) -> int:
    """Print a clean error message to stderr and return an exit code.

    All errors map to exit code 1.  No tracebacks are printed.
    """
    from pipehub.errors import (
        AmbiguousNameError,
        ConfigError,
        DirtyWorkingTreeError,
        GitCommandError,
        ProviderAccessError,
        PullError,
        RevisionPinnedError,
        UnknownProviderError,
    )

    fg = typer.colors.RED if color else None

    if isinstance(exc, ConfigError):
        _err(f"Configuration error: {exc}", fg=fg)
    elif isinstance(exc, AmbiguousNameError):
        _err(f"Ambiguous pipeline name '{exc.name}', which one do you mean?", fg=fg)
        for candidate in exc.candidates:
            _err(f"  - {candidate}", fg=fg)
    elif isinstance(exc, UnknownProviderError):
        _err(f"Unknown provider: {exc.provider}", fg=fg)
    elif isinstance(exc, DirtyWorkingTreeError):
        _err(f"Local changes: {exc}", fg=fg)
    elif isinstance(exc, RevisionPinnedError):
        _err(f"{exc}", fg=fg)
        _err("  Use --revision to select one.", fg=fg)
    elif isinstance(exc, PullError):
        _err(f"Pull failed: {exc.project}", fg=fg)
        for line in exc.detail.splitlines():
            _err(f"  {line}", fg=fg)
    elif isinstance(exc, ProviderAccessError):
        _err(f"Provider error: {exc}", fg=fg)
    elif isinstance(exc, GitCommandError):
        _err(f"Git error: {exc}", fg=fg)
    else:
        _err(f"Error: {exc}", fg=fg)

    return 1
