"""Project-level configuration and per-change metadata models."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class ProjectConfig(BaseModel):
    """Contents of ``specflow/config.yaml``.

    Every field is optional: the reader keeps whatever fields validate and
    drops the rest with a warning.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_name: str | None = Field(default=None, alias="schema")
    context: str | None = None
    rules: dict[str, list[str]] | None = None


class ChangeMetadata(BaseModel):
    """Contents of a change's ``.specflow.yaml``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_name: str = Field(alias="schema", min_length=1)
    created: date | None = None
