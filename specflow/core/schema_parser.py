"""Schema parser — loads ``schema.yaml`` into a frozen SchemaDefinition.

Validation runs in stages, each producing its own diagnostics:

1. The file exists and is well-formed YAML mapping.
2. Required top-level fields and per-artifact field types (pydantic).
3. Artifact IDs are unique.
4. Every ``requires`` / ``apply.requires`` entry names a declared artifact.
5. The ``requires`` relation is acyclic (same Kahn pass as ArtifactGraph).

Stages 3 and 4 report every issue they find; stage 5 only runs once the
references are sound.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from specflow.core.artifact_graph import topological_order
from specflow.core.errors import CyclicDependencyError, SchemaParseError
from specflow.models.schema import IssueLevel, SchemaDefinition, ValidationIssue

logger = logging.getLogger(__name__)

SCHEMA_FILENAME = "schema.yaml"
TEMPLATES_DIRNAME = "templates"


def validate_schema_content(
    content: str,
) -> tuple[SchemaDefinition | None, list[ValidationIssue]]:
    """Validate raw schema text, collecting every issue found.

    Returns the parsed schema (``None`` if any error was found) and the
    ordered list of issues.
    """
    schema, issues, _ = _validate(content)
    return schema, issues


def parse_schema(content: str, schema_path: Path | None = None) -> SchemaDefinition:
    """Parse schema text or raise a structured SchemaParseError.

    A dependency cycle raises CyclicDependencyError (a SchemaParseError
    subclass) carrying the cycle's members.
    """
    schema, issues, cycle = _validate(content)
    if schema is not None:
        return schema
    if cycle is not None:
        raise CyclicDependencyError(cycle, issues, schema_path)

    where = f" at '{schema_path}'" if schema_path else ""
    raise SchemaParseError(
        f"Invalid schema{where}: " + "; ".join(str(issue) for issue in issues),
        issues,
        schema_path,
    )


def load_schema_file(schema_path: Path) -> SchemaDefinition:
    """Read and parse a ``schema.yaml`` file.

    Raises OSError if the file cannot be read and SchemaParseError if it
    is invalid, including when it is not UTF-8 text.
    """
    try:
        content = schema_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        issue = _decode_issue(exc)
        raise SchemaParseError(
            f"Invalid schema at '{schema_path}': {issue}", [issue], schema_path
        ) from exc
    return parse_schema(content, schema_path)


def has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.level is IssueLevel.ERROR for issue in issues)


def find_template(schema_dir: Path, template: str) -> Path | None:
    """Locate a template under ``templates/``, falling back to the schema root."""
    for candidate in template_candidates(schema_dir, template):
        if candidate.is_file():
            return candidate
    return None


def template_candidates(schema_dir: Path, template: str) -> list[Path]:
    return [schema_dir / TEMPLATES_DIRNAME / template, schema_dir / template]


def validate_schema_dir(schema_dir: Path) -> list[ValidationIssue]:
    """Validate-all mode: return every issue for a schema directory.

    Unlike ``parse_schema`` this never raises.  The schema is valid when
    no issue has level ERROR; WARNING issues flag templates kept in the
    schema root and an ``apply.tracks`` that no artifact generates.
    """
    schema_path = schema_dir / SCHEMA_FILENAME
    if not schema_path.is_file():
        return [ValidationIssue(path=SCHEMA_FILENAME, message=f"{SCHEMA_FILENAME} not found")]

    try:
        content = schema_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        return [_decode_issue(exc)]
    except OSError as exc:
        return [
            ValidationIssue(path=SCHEMA_FILENAME, message=f"Failed to read file: {exc}")
        ]

    schema, issues = validate_schema_content(content)
    if schema is None:
        return issues

    for artifact in schema.artifacts:
        found = find_template(schema_dir, artifact.template)
        if found is None:
            issues.append(
                ValidationIssue(
                    path=f"artifacts.{artifact.id}.template",
                    message=(
                        f"Template file '{artifact.template}' not found for "
                        f"artifact '{artifact.id}'"
                    ),
                )
            )
        elif found != template_candidates(schema_dir, artifact.template)[0]:
            issues.append(
                ValidationIssue(
                    level=IssueLevel.WARNING,
                    path=f"artifacts.{artifact.id}.template",
                    message=(
                        f"Template '{artifact.template}' found in the schema root; "
                        f"move it under {TEMPLATES_DIRNAME}/"
                    ),
                )
            )

    if schema.apply is not None and schema.apply.tracks:
        outputs = {a.generates for a in schema.artifacts}
        if schema.apply.tracks not in outputs:
            issues.append(
                ValidationIssue(
                    level=IssueLevel.WARNING,
                    path="apply.tracks",
                    message=(
                        f"apply.tracks '{schema.apply.tracks}' is not the output "
                        "of any artifact"
                    ),
                )
            )

    logger.debug("Validated schema at %s: %d issue(s).", schema_dir, len(issues))
    return issues


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _validate(
    content: str,
) -> tuple[SchemaDefinition | None, list[ValidationIssue], list[str] | None]:
    try:
        raw = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        return None, [
            ValidationIssue(path=SCHEMA_FILENAME, message=f"Malformed YAML: {exc}")
        ], None

    if not isinstance(raw, dict):
        return None, [
            ValidationIssue(
                path=SCHEMA_FILENAME,
                message=f"Expected a YAML mapping, got {type(raw).__name__}",
            )
        ], None

    try:
        schema = SchemaDefinition.model_validate(raw)
    except ValidationError as exc:
        return None, [
            ValidationIssue(path=_error_path(err["loc"], raw), message=err["msg"])
            for err in exc.errors()
        ], None

    issues = _check_identity_and_references(schema)
    if issues:
        return None, issues, None

    try:
        topological_order(
            schema.artifact_ids, {a.id: a.requires for a in schema.artifacts}
        )
    except CyclicDependencyError as exc:
        return None, [ValidationIssue(path="artifacts", message=str(exc))], exc.cycle

    return schema, [], None


def _check_identity_and_references(schema: SchemaDefinition) -> list[ValidationIssue]:
    issues: list[ValidationIssue] = []
    seen: set[str] = set()
    for artifact in schema.artifacts:
        if artifact.id in seen:
            issues.append(
                ValidationIssue(
                    path=f"artifacts.{artifact.id}.id",
                    message=f"Duplicate artifact ID '{artifact.id}'",
                )
            )
        seen.add(artifact.id)

    for artifact in schema.artifacts:
        for req in artifact.requires:
            if req not in seen:
                issues.append(
                    ValidationIssue(
                        path=f"artifacts.{artifact.id}.requires",
                        message=f"Artifact '{artifact.id}' requires unknown artifact '{req}'",
                    )
                )

    if schema.apply is not None:
        for req in schema.apply.requires or []:
            if req not in seen:
                issues.append(
                    ValidationIssue(
                        path="apply.requires",
                        message=f"apply.requires references unknown artifact '{req}'",
                    )
                )
    return issues


def _error_path(loc: tuple[Any, ...], raw: dict[str, Any]) -> str:
    """Render a pydantic error location, naming artifacts by ID where known."""
    parts: list[str] = []
    items = list(loc)
    if len(items) >= 2 and items[0] == "artifacts" and isinstance(items[1], int):
        artifacts = raw.get("artifacts")
        artifact_id = None
        if isinstance(artifacts, list) and items[1] < len(artifacts):
            entry = artifacts[items[1]]
            if isinstance(entry, dict) and isinstance(entry.get("id"), str):
                artifact_id = entry["id"]
        parts.append(f"artifacts.{artifact_id}" if artifact_id else f"artifacts[{items[1]}]")
        items = items[2:]
    for item in items:
        if isinstance(item, int):
            parts.append(f"[{item}]")
        else:
            parts.append(f".{item}" if parts else str(item))
    return "".join(parts) or SCHEMA_FILENAME


def _decode_issue(exc: UnicodeDecodeError) -> ValidationIssue:
    return ValidationIssue(
        path=SCHEMA_FILENAME,
        message=f"File is not valid UTF-8 (byte {exc.start}): {exc.reason}",
    )
