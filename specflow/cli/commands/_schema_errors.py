"""Shared error output for commands that resolve a change's schema."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from specflow.core.project_config import read_project_config, suggest_schemas
from specflow.core.schema_resolver import (
    SchemaNotFoundError,
    SchemaResolver,
    canonical_schema_name,
)
from specflow.models.resolution import SchemaSource


def print_schema_error(
    console: Console, exc: Exception, project_root: Path, explicit_schema: str | None
) -> None:
    """Print ``exc``; unknown schemas named in project config get suggestions."""
    if isinstance(exc, SchemaNotFoundError) and not explicit_schema:
        project_config = read_project_config(project_root)
        if (
            project_config is not None
            and project_config.schema_name
            and canonical_schema_name(project_config.schema_name) == exc.name
        ):
            available = {
                info.name: info.source is SchemaSource.PACKAGE
                for info in SchemaResolver(project_root).list_schemas_with_info()
            }
            console.print(
                suggest_schemas(project_config.schema_name, available),
                markup=False,
                highlight=False,
            )
            return
    console.print(f"[bold red]Error:[/bold red] {exc}")
