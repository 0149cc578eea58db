"""Schema location and resolution models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class SchemaSource(str, Enum):
    """Where a schema was found, in priority order."""

    PROJECT = "project"
    USER = "user"
    PACKAGE = "package"


class SchemaLocation(BaseModel):
    """One candidate location for a schema name."""

    model_config = ConfigDict(frozen=True)

    source: SchemaSource
    path: Path
    exists: bool = False


class ShadowedLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: SchemaSource
    path: Path


class SchemaResolution(BaseModel):
    """Which location won for a schema name, and what it hides."""

    model_config = ConfigDict(frozen=True)

    name: str
    source: SchemaSource
    path: Path
    shadows: list[ShadowedLocation] = Field(default_factory=list)


class SchemaInfo(BaseModel):
    """Summary of an available schema for selection menus."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    artifacts: list[str] = Field(default_factory=list)
    source: SchemaSource
