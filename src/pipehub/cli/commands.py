"""CLI command implementations."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from pipehub.cli import app
from pipehub.cli.errors import handle_error

if TYPE_CHECKING:
    from pipehub.core.manager import AssetManager

PipelineName = Annotated[
    str,
    typer.Argument(help="Pipeline name, e.g. 'nextflow-io/hello' or 'hello'."),
]

Revision = Annotated[
    str | None,
    typer.Option("--revision", "-r", help="Branch, tag or commit to use."),
]

Hub = Annotated[
    str | None,
    typer.Option("--hub", help="Provider configuration name (e.g. github, gitlab)."),
]

User = Annotated[
    str | None,
    typer.Option("--user", help="Username for the provider."),
]

Password = Annotated[
    str | None,
    typer.Option(
        "--password",
        envvar="PIPEHUB_PASSWORD",
        help="Password or token for the provider.",
        show_envvar=True,
    ),
]

NoColor = Annotated[
    bool,
    typer.Option("--no-color", help="Disable colored output."),
]


def _use_color(no_color: bool) -> bool:
    """Determine whether to use color output."""
    return not (no_color or os.environ.get("NO_COLOR"))


def _manager(
    name: str,
    *,
    hub: str | None = None,
    user: str | None = None,
    password: str | None = None,
) -> AssetManager:
    from pipehub.core.manager import AssetManager

    return AssetManager(name, hub=hub, user=user, password=password)


@app.command(name="list")
def list_cmd() -> None:
    """List the locally installed pipelines."""
    from pipehub.cli.formatting import format_pipelines
    from pipehub.core.manager import list_pipelines

    typer.echo(format_pipelines(list_pipelines()))


@app.command()
def pull(
    name: PipelineName,
    revision: Revision = None,
    hub: Hub = None,
    user: User = None,
    password: Password = None,
    no_color: NoColor = False,
) -> None:
    """Download a pipeline, or update it when already installed."""
    from rich.console import Console

    color = _use_color(no_color)
    console = Console(no_color=not color, stderr=True)
    try:
        with _manager(name, hub=hub, user=user, password=password) as manager:
            with console.status(f"Checking {manager.project} ..."):
                result = manager.download(revision)
                manager.update_submodules()
            typer.echo(f" {manager.project} - {result}")
            typer.echo(f" revision: {manager.current_revision_and_name()}")
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc


@app.command()
def clone(
    name: PipelineName,
    directory: Annotated[
        Path | None,
        typer.Argument(help="Target directory (defaults to the pipeline base name)."),
    ] = None,
    revision: Revision = None,
    hub: Hub = None,
    user: User = None,
    password: Password = None,
    no_color: NoColor = False,
) -> None:
    """Clone a pipeline into a directory outside the managed cache."""
    from rich.console import Console

    color = _use_color(no_color)
    console = Console(no_color=not color, stderr=True)
    try:
        with _manager(name, hub=hub, user=user, password=password) as manager:
            target = directory or Path(manager.base_name)
            if target.exists() and any(target.iterdir()):
                from pipehub.errors import AssetError

                raise AssetError(f"Target directory is not empty: {target}")
            with console.status(f"Cloning {manager.project} ..."):
                manager.clone(target, revision)
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(f"{manager.project} cloned to: {target}")


@app.command()
def info(
    name: PipelineName,
    detail: Annotated[
        int,
        typer.Option("--detail", "-d", count=True, help="Show commit ids (-d short, -dd full)."),
    ] = 0,
    hub: Hub = None,
    no_color: NoColor = False,
) -> None:
    """Show pipeline metadata and its revisions."""
    from pipehub.cli.formatting import format_info, format_revisions

    color = _use_color(no_color)
    try:
        with _manager(name, hub=hub) as manager:
            fields: dict[str, str | None] = {
                "project name": manager.project,
                "repository": manager.git_repository_url,
                "local path": str(manager.local_path),
                "main script": manager.main_script_name,
                "description": manager.description,
                "home page": manager.home_page,
            }
            revisions = manager.list_revisions(detail) if manager.is_local else []
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(format_info(fields, color=color))
    if revisions:
        typer.echo(" revisions:")
        typer.echo(format_revisions(revisions, color=color))


@app.command()
def checkout(
    name: PipelineName,
    revision: Annotated[str, typer.Argument(help="Branch, tag or commit to check out.")],
    no_color: NoColor = False,
) -> None:
    """Switch an installed pipeline to another revision."""
    color = _use_color(no_color)
    try:
        with _manager(name) as manager:
            if not manager.is_local:
                from pipehub.errors import MissingLocalAssetError

                raise MissingLocalAssetError(f"Pipeline not installed: {manager.project}")
            manager.checkout(revision)
            current = manager.current_revision_and_name()
    except Exception as exc:
        raise typer.Exit(handle_error(exc, color=color)) from exc

    typer.echo(f"{manager.project} at revision: {current}")
