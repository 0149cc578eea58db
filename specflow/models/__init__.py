"""Specflow data models — all Pydantic v2, all frozen (immutable)."""

from specflow.models.project import ChangeMetadata, ProjectConfig
from specflow.models.resolution import (
    SchemaInfo,
    SchemaLocation,
    SchemaResolution,
    SchemaSource,
    ShadowedLocation,
)
from specflow.models.schema import (
    ApplyPhase,
    Artifact,
    IssueLevel,
    SchemaDefinition,
    ValidationIssue,
)
from specflow.models.status import (
    ArtifactInstructions,
    ArtifactState,
    ArtifactStatus,
    ChangeStatus,
    DependencyInfo,
)

__all__ = [
    # schema
    "Artifact",
    "ApplyPhase",
    "SchemaDefinition",
    "IssueLevel",
    "ValidationIssue",
    # resolution
    "SchemaSource",
    "SchemaLocation",
    "ShadowedLocation",
    "SchemaResolution",
    "SchemaInfo",
    # project
    "ProjectConfig",
    "ChangeMetadata",
    # status
    "ArtifactState",
    "DependencyInfo",
    "ArtifactInstructions",
    "ArtifactStatus",
    "ChangeStatus",
]
