"""Instruction and status payloads returned to presentation layers.

These are fresh value objects: none of them hold a reference back into
the artifact graph.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ArtifactState(str, Enum):
    DONE = "done"
    READY = "ready"
    BLOCKED = "blocked"


class DependencyInfo(BaseModel):
    """A required artifact, as seen from the artifact that needs it."""

    model_config = ConfigDict(frozen=True)

    id: str
    done: bool
    path: str          # the dependency's ``generates`` pattern
    description: str = ""


class ArtifactInstructions(BaseModel):
    """Everything a generator needs to produce one artifact.

    ``context``, ``rules`` and ``template`` are kept separate; renderers
    inject them in that order.
    """

    model_config = ConfigDict(frozen=True)

    change_name: str
    artifact_id: str
    schema_name: str
    change_dir: Path
    output_path: str
    description: str = ""
    instruction: str | None = None
    context: str | None = None
    rules: list[str] | None = None
    template: str
    dependencies: list[DependencyInfo] = Field(default_factory=list)
    unlocks: list[str] = Field(default_factory=list)


class ArtifactStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    output_path: str
    status: ArtifactState
    missing_deps: list[str] | None = None  # populated only when BLOCKED


class ChangeStatus(BaseModel):
    """Whole-change summary ordered by build order."""

    model_config = ConfigDict(frozen=True)

    change_name: str
    schema_name: str
    is_complete: bool
    apply_requires: list[str] = Field(default_factory=list)
    artifacts: list[ArtifactStatus] = Field(default_factory=list)

    @property
    def done_count(self) -> int:
        return sum(1 for a in self.artifacts if a.status is ArtifactState.DONE)
