"""``specflow schema ...`` — inspect schema resolution and validity."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from specflow.cli.render import Renderer
from specflow.core.schema_parser import has_errors, validate_schema_dir
from specflow.core.schema_resolver import SchemaNotFoundError, SchemaResolver

console = Console()

schema_app = typer.Typer(
    name="schema",
    help="Inspect where schemas resolve from and whether they are valid.",
    no_args_is_help=True,
)

_PROJECT_ROOT_OPTION = typer.Option(
    Path("."), "--project-root", "-p", help="Project root containing specflow/."
)


@schema_app.command(name="which", help="Show where a schema resolves from.")
def which_cmd(
    name: str = typer.Argument(None, help="Schema name."),
    all_schemas: bool = typer.Option(False, "--all", help="Show every available schema."),
    project_root: Path = _PROJECT_ROOT_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    resolver = SchemaResolver(project_root)
    if all_schemas:
        resolutions = resolver.which_all()
        if as_json:
            typer.echo(json.dumps([r.model_dump(mode="json") for r in resolutions], indent=2))
        elif not resolutions:
            console.print("No schemas found.")
        else:
            Renderer(console).print_resolutions(resolutions)
        return

    if not name:
        console.print("[bold red]Error:[/bold red] provide a schema name or --all")
        raise typer.Exit(code=1)

    try:
        resolution = resolver.which(name)
    except SchemaNotFoundError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(resolution.model_dump_json(indent=2))
    else:
        Renderer(console).print_resolution(resolution)


@schema_app.command(name="validate", help="Validate a schema and report every issue.")
def validate_cmd(
    name: str = typer.Argument(None, help="Schema name."),
    all_schemas: bool = typer.Option(False, "--all", help="Validate every available schema."),
    project_root: Path = _PROJECT_ROOT_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    resolver = SchemaResolver(project_root)
    if all_schemas:
        names = resolver.list_schemas()
    elif name:
        names = [name]
    else:
        console.print("[bold red]Error:[/bold red] provide a schema name or --all")
        raise typer.Exit(code=1)

    results: dict[str, list] = {}
    for schema_name in names:
        try:
            schema_dir = resolver.resolve(schema_name)
        except SchemaNotFoundError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            raise typer.Exit(code=1)
        results[schema_name] = validate_schema_dir(schema_dir)

    if as_json:
        typer.echo(
            json.dumps(
                {
                    schema_name: {
                        "valid": not has_errors(issues),
                        "issues": [i.model_dump(mode="json") for i in issues],
                    }
                    for schema_name, issues in results.items()
                },
                indent=2,
            )
        )
    else:
        renderer = Renderer(console)
        for schema_name, issues in results.items():
            renderer.print_issues(schema_name, issues)

    if any(has_errors(issues) for issues in results.values()):
        raise typer.Exit(code=1)


def schemas_cmd(
    project_root: Path = _PROJECT_ROOT_OPTION,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON."),
) -> None:
    """List available schemas with their artifacts and source."""
    infos = SchemaResolver(project_root).list_schemas_with_info()
    if as_json:
        typer.echo(json.dumps([i.model_dump(mode="json") for i in infos], indent=2))
    elif not infos:
        console.print("[dim]No schemas found.[/dim]")
    else:
        Renderer(console).print_schema_infos(infos)
