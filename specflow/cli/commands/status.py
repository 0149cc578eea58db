"""``specflow status CHANGE`` — show done/ready/blocked artifacts for a change."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from specflow.cli.commands._schema_errors import print_schema_error
from specflow.cli.render import Renderer
from specflow.core.errors import SchemaParseError
from specflow.core.instructions import format_change_status, load_change_context
from specflow.core.schema_resolver import SchemaLoadError, SchemaNotFoundError

console = Console()


def status_cmd(
    change: str = typer.Argument(..., help="Name of the change directory."),
    schema: str = typer.Option(
        None, "--schema", "-s", help="Override the schema recorded for the change."
    ),
    project_root: Path = typer.Option(
        Path("."), "--project-root", "-p", help="Project root containing specflow/."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of a table."),
) -> None:
    """Show the status of every artifact in a change, in build order."""
    try:
        context = load_change_context(project_root, change, schema)
    except (SchemaNotFoundError, SchemaLoadError, SchemaParseError) as exc:
        print_schema_error(console, exc, project_root, schema)
        raise typer.Exit(code=1)

    if not context.change_dir.is_dir():
        console.print(f"[bold red]Change not found:[/bold red] {context.change_dir}")
        raise typer.Exit(code=1)

    status = format_change_status(context)
    if as_json:
        typer.echo(status.model_dump_json(indent=2))
    else:
        Renderer(console).print_status(status)
