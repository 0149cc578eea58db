"""Schema-definition errors shared by the parser and the artifact graph."""

from __future__ import annotations

from pathlib import Path

from specflow.models.schema import ValidationIssue


class SchemaParseError(ValueError):
    """Raised when a schema definition is structurally or referentially invalid.

    Carries every issue found, in detection order, so callers can report
    them all instead of stopping at the first.
    """

    def __init__(
        self,
        message: str,
        issues: list[ValidationIssue] | None = None,
        schema_path: Path | None = None,
    ) -> None:
        super().__init__(message)
        self.issues: list[ValidationIssue] = list(issues or [])
        self.schema_path = schema_path


class CyclicDependencyError(SchemaParseError):
    """Raised when the ``requires`` relation contains a cycle.

    ``cycle`` lists the artifact IDs along the cycle, closing on the first
    ID (e.g. ``["a", "b", "a"]``).
    """

    def __init__(
        self,
        cycle: list[str],
        issues: list[ValidationIssue] | None = None,
        schema_path: Path | None = None,
    ) -> None:
        self.cycle = list(cycle)
        super().__init__(
            f"Cyclic dependency detected: {' -> '.join(self.cycle)}",
            issues,
            schema_path,
        )
