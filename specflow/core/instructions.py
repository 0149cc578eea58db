"""Instruction assembly and change status.

``load_change_context`` gathers everything one request needs (graph,
completed set, schema and change identity).  ``generate_instructions``
turns that into the payload for producing one artifact, and
``format_change_status`` into the whole-change summary.

Neither function writes to disk.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from specflow.config import SpecflowConfig
from specflow.core.artifact_graph import (
    ArtifactGraph,
    CompletedSet,
    get_unlocked_artifacts,
)
from specflow.core.change_metadata import resolve_schema_for_change
from specflow.core.completion import OutputExistenceChecker, detect_completed
from specflow.core.project_config import read_project_config, validate_config_rules
from specflow.core.schema_parser import find_template, template_candidates
from specflow.core.schema_resolver import SchemaResolver
from specflow.models.schema import Artifact
from specflow.models.status import (
    ArtifactInstructions,
    ArtifactState,
    ArtifactStatus,
    ChangeStatus,
    DependencyInfo,
)

logger = logging.getLogger(__name__)


class TemplateLoadError(RuntimeError):
    """Raised when an artifact's template cannot be loaded."""

    def __init__(self, message: str, template_path: Path | str) -> None:
        super().__init__(message)
        self.template_path = template_path


class ArtifactNotFoundError(LookupError):
    """Raised when an artifact ID is not part of the resolved schema."""

    def __init__(self, artifact_id: str, schema_name: str) -> None:
        super().__init__(f"Artifact '{artifact_id}' not found in schema '{schema_name}'")
        self.artifact_id = artifact_id
        self.schema_name = schema_name


class WarningLedger:
    """Remembers which warnings were already shown.

    Owned by the caller: a CLI run keeps one for the whole process, a
    server keeps one per request.  Safe to share between threads.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def emit(self, message: str) -> bool:
        """Log ``message`` unless it was already emitted; return True if logged."""
        with self._lock:
            if message in self._seen:
                return False
            self._seen.add(message)
        logger.warning(message)
        return True

    def __contains__(self, message: object) -> bool:
        with self._lock:
            return message in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


class ChangeContext(BaseModel):
    """Per-request bundle: graph, completion snapshot and change identity."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    graph: ArtifactGraph
    completed: CompletedSet
    schema_name: str
    change_name: str
    change_dir: Path
    project_root: Path
    config: SpecflowConfig = Field(default_factory=SpecflowConfig, exclude=True, repr=False)


def change_dir_for(project_root: Path, change_name: str, config: SpecflowConfig | None = None) -> Path:
    return (config or SpecflowConfig()).project_dir(project_root) / "changes" / change_name


def load_change_context(
    project_root: Path,
    change_name: str,
    schema_name: str | None = None,
    config: SpecflowConfig | None = None,
    checker: OutputExistenceChecker | None = None,
) -> ChangeContext:
    """Resolve the schema for a change and snapshot its completion state.

    Raises SchemaNotFoundError, SchemaLoadError or SchemaParseError if the
    schema cannot be resolved.
    """
    settings = config or SpecflowConfig()
    project_root = Path(project_root)
    change_dir = change_dir_for(project_root, change_name, settings)

    resolved_name = resolve_schema_for_change(change_dir, schema_name, project_root, settings)
    resolver = SchemaResolver(project_root, settings)
    schema = resolver.load(resolved_name)
    graph = ArtifactGraph.from_schema(schema)
    completed = detect_completed(graph, change_dir, checker)

    logger.debug(
        "Loaded change '%s' with schema '%s': %d/%d artifact(s) complete.",
        change_name,
        schema.name,
        len(completed),
        len(graph.get_all_artifacts()),
    )
    return ChangeContext(
        graph=graph,
        completed=completed,
        schema_name=resolved_name,
        change_name=change_name,
        change_dir=change_dir,
        project_root=project_root,
        config=settings,
    )


def load_template(
    schema_name: str,
    template_path: str,
    project_root: Path | None = None,
    config: SpecflowConfig | None = None,
) -> str:
    """Read a template from the resolved schema directory.

    Raises TemplateLoadError carrying the attempted path when the schema
    directory is gone or the file is missing or unreadable.
    """
    resolver = SchemaResolver(project_root, config)
    schema_dir = resolver.get_schema_dir(schema_name)
    if schema_dir is None:
        # Report where the highest-priority copy would have held the template.
        attempted = template_candidates(resolver.locations(schema_name)[0].path, template_path)[0]
        raise TemplateLoadError(
            f"Schema '{schema_name}' not found; cannot load template: {attempted.resolve()}",
            attempted.resolve(),
        )

    full_path = find_template(schema_dir, template_path)
    if full_path is None:
        attempted = template_candidates(schema_dir, template_path)[0].resolve()
        raise TemplateLoadError(f"Template not found: {attempted}", attempted)

    try:
        return full_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateLoadError(
            f"Failed to read template {full_path}: {exc}", full_path.resolve()
        ) from exc


def generate_instructions(
    context: ChangeContext,
    artifact_id: str,
    project_root: Path | None = None,
    warnings: WarningLedger | None = None,
) -> ArtifactInstructions:
    """Assemble the instructions for producing one artifact.

    Project ``context`` and per-artifact ``rules`` come back as separate
    fields; rendering them (context, then rules, then template) is left to
    the caller.  Rules keyed by unknown artifact IDs produce a warning,
    emitted once per ``warnings`` ledger.
    """
    artifact = context.graph.get_artifact(artifact_id)
    if artifact is None:
        raise ArtifactNotFoundError(artifact_id, context.schema_name)

    template = load_template(
        context.schema_name, artifact.template, context.project_root, context.config
    )
    dependencies = _dependency_info(artifact, context.graph, context.completed)
    unlocks = get_unlocked_artifacts(context.graph, artifact_id)

    effective_root = project_root if project_root is not None else context.project_root
    project_config = read_project_config(effective_root, context.config)

    config_context: str | None = None
    config_rules: list[str] | None = None
    if project_config is not None:
        if project_config.rules:
            ledger = warnings if warnings is not None else WarningLedger()
            valid_ids = {a.id for a in context.graph.get_all_artifacts()}
            for message in validate_config_rules(
                project_config.rules, valid_ids, context.schema_name
            ):
                ledger.emit(message)
            config_rules = project_config.rules.get(artifact_id) or None
        if project_config.context and project_config.context.strip():
            config_context = project_config.context.strip()

    return ArtifactInstructions(
        change_name=context.change_name,
        artifact_id=artifact.id,
        schema_name=context.schema_name,
        change_dir=context.change_dir,
        output_path=artifact.generates,
        description=artifact.description,
        instruction=artifact.instruction,
        context=config_context,
        rules=config_rules,
        template=template,
        dependencies=dependencies,
        unlocks=unlocks,
    )


def _dependency_info(
    artifact: Artifact, graph: ArtifactGraph, completed: CompletedSet
) -> list[DependencyInfo]:
    # An ID missing from the graph degrades to the raw ID and no description.
    info: list[DependencyInfo] = []
    for dep_id in artifact.requires:
        dep = graph.get_artifact(dep_id)
        info.append(
            DependencyInfo(
                id=dep_id,
                done=dep_id in completed,
                path=dep.generates if dep is not None else dep_id,
                description=dep.description if dep is not None else "",
            )
        )
    return info


def format_change_status(context: ChangeContext) -> ChangeStatus:
    """Classify every artifact as done, ready or blocked, in build order."""
    graph = context.graph
    schema = graph.schema
    apply_requires = (
        list(schema.apply.requires)
        if schema.apply is not None and schema.apply.requires is not None
        else schema.artifact_ids
    )

    ready = set(graph.get_next_artifacts(context.completed))
    blocked = graph.get_blocked(context.completed)

    statuses: list[ArtifactStatus] = []
    for artifact_id in graph.get_build_order():
        artifact = graph.get_artifact(artifact_id)
        if artifact_id in context.completed:
            state, missing = ArtifactState.DONE, None
        elif artifact_id in ready:
            state, missing = ArtifactState.READY, None
        else:
            state, missing = ArtifactState.BLOCKED, blocked.get(artifact_id, [])
        statuses.append(
            ArtifactStatus(
                id=artifact_id,
                output_path=artifact.generates,
                status=state,
                missing_deps=missing,
            )
        )

    return ChangeStatus(
        change_name=context.change_name,
        schema_name=context.schema_name,
        is_complete=graph.is_complete(context.completed),
        apply_requires=apply_requires,
        artifacts=statuses,
    )
