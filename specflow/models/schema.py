"""Workflow schema models — validated once at parse time, immutable afterwards."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Artifact(BaseModel):
    """One document-producing step in a workflow.

    ``requires`` encodes the DAG: an artifact is ready only when every
    listed artifact has produced its output.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    generates: str = Field(min_length=1)  # path or glob relative to the change dir
    description: str = ""
    template: str = Field(min_length=1)   # relative to the schema's templates/
    instruction: str | None = None
    requires: list[str] = Field(default_factory=list)


class ApplyPhase(BaseModel):
    """Gate for the terminal apply phase."""

    model_config = ConfigDict(frozen=True)

    requires: list[str] | None = None  # None means every artifact gates apply
    tracks: str | None = None
    instruction: str | None = None


class SchemaDefinition(BaseModel):
    """A named, versioned workflow definition."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: int | str = 1
    description: str = ""
    artifacts: list[Artifact] = Field(min_length=1)
    apply: ApplyPhase | None = None

    @property
    def artifact_ids(self) -> list[str]:
        return [a.id for a in self.artifacts]


class IssueLevel(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    """A single structured diagnostic produced while validating a schema."""

    model_config = ConfigDict(frozen=True)

    level: IssueLevel = IssueLevel.ERROR
    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"
