"""Rich terminal rendering for status, instructions and schema resolution.

Color scheme
------------
- green     : DONE
- yellow    : READY
- bold red  : BLOCKED
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from specflow.models.resolution import SchemaInfo, SchemaResolution
from specflow.models.schema import IssueLevel, ValidationIssue
from specflow.models.status import ArtifactInstructions, ArtifactState, ChangeStatus

_STATE_LABELS: dict[ArtifactState, str] = {
    ArtifactState.DONE: "[green]DONE[/green]",
    ArtifactState.READY: "[yellow]READY[/yellow]",
    ArtifactState.BLOCKED: "[bold red]BLOCKED[/bold red]",
}


class Renderer:
    """Turns specflow value objects into Rich renderables.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_status(self, status: ChangeStatus) -> None:
        table = Table(expand=False)
        table.add_column("Artifact", style="cyan")
        table.add_column("Output")
        table.add_column("Status", justify="center")
        table.add_column("Waiting on", style="dim")
        for artifact in status.artifacts:
            table.add_row(
                artifact.id,
                artifact.output_path,
                _STATE_LABELS[artifact.status],
                ", ".join(artifact.missing_deps or []),
            )

        footer = (
            "[bold green]All artifacts complete.[/bold green]"
            if status.is_complete
            else f"{status.done_count}/{len(status.artifacts)} artifacts complete"
        )
        self.console.print(
            Panel(
                Group(table, Text.from_markup(footer)),
                title=f"[bold]{status.change_name}[/bold] [dim]({status.schema_name})[/dim]",
                subtitle=f"apply requires: {', '.join(status.apply_requires)}",
            )
        )

    def print_instructions(self, instructions: ArtifactInstructions) -> None:
        header = [
            f"[bold]Artifact:[/bold]  {instructions.artifact_id}",
            f"[bold]Output:[/bold]    {instructions.change_dir / instructions.output_path}",
        ]
        if instructions.description:
            header.append(f"[bold]About:[/bold]     {instructions.description}")
        if instructions.dependencies:
            deps = ", ".join(
                f"{d.id} ({'done' if d.done else 'missing'})" for d in instructions.dependencies
            )
            header.append(f"[bold]Requires:[/bold]  {deps}")
        if instructions.unlocks:
            header.append(f"[bold]Unlocks:[/bold]   {', '.join(instructions.unlocks)}")
        self.console.print(Panel("\n".join(header), title="Instructions"))

        # Injection order: context, rules, template.
        if instructions.context:
            self.console.print(Panel(instructions.context, title="Project context"))
        if instructions.rules:
            self.console.print(
                Panel("\n".join(f"- {rule}" for rule in instructions.rules), title="Rules")
            )
        if instructions.instruction:
            self.console.print(Panel(instructions.instruction.strip(), title="Guidance"))
        self.console.print(Panel(Markdown(instructions.template), title="Template"))

    def print_resolution(self, resolution: SchemaResolution) -> None:
        self.console.print(f"[bold]Schema:[/bold] {resolution.name}")
        self.console.print(f"[bold]Source:[/bold] {resolution.source.value}")
        self.console.print(f"[bold]Path:[/bold]   {resolution.path}")
        if resolution.shadows:
            self.console.print("\n[bold]Shadows:[/bold]")
            for shadow in resolution.shadows:
                self.console.print(f"  {shadow.source.value}: {shadow.path}")

    def print_resolutions(self, resolutions: list[SchemaResolution]) -> None:
        table = Table(title="Schemas")
        table.add_column("Name", style="cyan")
        table.add_column("Source", style="green")
        table.add_column("Shadows", style="dim")
        for res in resolutions:
            table.add_row(
                res.name,
                res.source.value,
                ", ".join(s.source.value for s in res.shadows),
            )
        self.console.print(table)

    def print_schema_infos(self, infos: list[SchemaInfo]) -> None:
        table = Table(title="Available Schemas")
        table.add_column("Name", style="cyan")
        table.add_column("Source", style="green")
        table.add_column("Artifacts")
        table.add_column("Description", style="dim")
        for info in infos:
            table.add_row(info.name, info.source.value, " -> ".join(info.artifacts), info.description)
        self.console.print(table)

    def print_issues(self, name: str, issues: list[ValidationIssue]) -> None:
        if not issues:
            self.console.print(f"[green]Schema '{name}' is valid.[/green]")
            return
        if any(issue.level is IssueLevel.ERROR for issue in issues):
            self.console.print(f"[bold red]Schema '{name}' has {len(issues)} issue(s):[/bold red]")
        else:
            self.console.print(
                f"[yellow]Schema '{name}' is valid with {len(issues)} warning(s):[/yellow]"
            )
        for issue in issues:
            style = "red" if issue.level is IssueLevel.ERROR else "yellow"
            self.console.print(f"  [{style}]{issue.level.value}[/{style}] {issue.path}: {issue.message}")
