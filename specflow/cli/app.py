"""Main Typer application — imports and registers all CLI commands.

Entry point: ``specflow`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from specflow.cli.commands.instructions import instructions_cmd
from specflow.cli.commands.schema_cmd import schema_app, schemas_cmd
from specflow.cli.commands.status import status_cmd
from specflow.config import config

app = typer.Typer(
    name="specflow",
    help="Specflow: artifact graph and instructions for spec-driven changes.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    level = logging.DEBUG if verbose or config.debug else config.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


# Register subcommands
app.command(name="status", help="Show artifact status for a change.")(status_cmd)
app.command(name="instructions", help="Show enriched instructions for one artifact.")(
    instructions_cmd
)
app.command(name="schemas", help="List available schemas.")(schemas_cmd)
app.add_typer(schema_app, name="schema")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
