"""``specflow instructions ARTIFACT --change CHANGE`` — enriched generation payload."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from specflow.cli.commands._schema_errors import print_schema_error
from specflow.cli.render import Renderer
from specflow.core.errors import SchemaParseError
from specflow.core.instructions import (
    ArtifactNotFoundError,
    TemplateLoadError,
    WarningLedger,
    generate_instructions,
    load_change_context,
)
from specflow.core.schema_resolver import SchemaLoadError, SchemaNotFoundError

console = Console()

# One ledger per CLI process.
_warnings = WarningLedger()


def instructions_cmd(
    artifact: str = typer.Argument(..., help="Artifact ID, e.g. 'proposal'."),
    change: str = typer.Option(..., "--change", "-c", help="Name of the change directory."),
    schema: str = typer.Option(
        None, "--schema", "-s", help="Override the schema recorded for the change."
    ),
    project_root: Path = typer.Option(
        Path("."), "--project-root", "-p", help="Project root containing specflow/."
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON instead of panels."),
) -> None:
    """Print the template, context, rules and dependencies for one artifact."""
    try:
        context = load_change_context(project_root, change, schema)
        instructions = generate_instructions(context, artifact, warnings=_warnings)
    except ArtifactNotFoundError as exc:
        valid = ", ".join(a.id for a in context.graph.get_all_artifacts())
        console.print(f"[bold red]Error:[/bold red] {exc}")
        console.print(f"[dim]Valid artifacts: {valid}[/dim]")
        raise typer.Exit(code=1)
    except (SchemaNotFoundError, SchemaLoadError, SchemaParseError, TemplateLoadError) as exc:
        print_schema_error(console, exc, project_root, schema)
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(instructions.model_dump_json(indent=2))
    else:
        Renderer(console).print_instructions(instructions)
