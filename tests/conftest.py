"""Shared test fixtures for Specflow."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from specflow.config import SpecflowConfig
from specflow.core.artifact_graph import ArtifactGraph
from specflow.models.schema import SchemaDefinition


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Provide an empty project root directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def config(tmp_path: Path) -> SpecflowConfig:
    """Settings isolated from the real user data directory.

    The package location still points at the bundled schemas.
    """
    return SpecflowConfig(data_home=tmp_path / "user-data")


@pytest.fixture
def isolated_config(tmp_path: Path) -> SpecflowConfig:
    """Settings whose user and package locations are both temp dirs."""
    return SpecflowConfig(
        data_home=tmp_path / "user-data",
        package_schemas_dir=tmp_path / "package-schemas",
    )


# ---------------------------------------------------------------------------
# Schema factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_schema() -> Callable[..., SchemaDefinition]:
    """Factory fixture: build a SchemaDefinition from ``(id, requires)`` pairs."""

    def _factory(
        artifacts: list[tuple[str, list[str]]],
        name: str = "test-schema",
        apply_requires: list[str] | None = None,
    ) -> SchemaDefinition:
        data: dict[str, Any] = {
            "name": name,
            "artifacts": [
                {
                    "id": aid,
                    "generates": f"{aid}.md",
                    "description": f"The {aid} document",
                    "template": f"{aid}.md",
                    "requires": requires,
                }
                for aid, requires in artifacts
            ],
        }
        if apply_requires is not None:
            data["apply"] = {"requires": apply_requires}
        return SchemaDefinition.model_validate(data)

    return _factory


@pytest.fixture
def linear_schema(make_schema: Callable[..., SchemaDefinition]) -> SchemaDefinition:
    """proposal -> specs -> tasks."""
    return make_schema(
        [("proposal", []), ("specs", ["proposal"]), ("tasks", ["specs"])]
    )


@pytest.fixture
def linear_graph(linear_schema: SchemaDefinition) -> ArtifactGraph:
    return ArtifactGraph.from_schema(linear_schema)


@pytest.fixture
def diamond_schema(make_schema: Callable[..., SchemaDefinition]) -> SchemaDefinition:
    """The spec-driven shape: proposal -> (specs, design) -> tasks."""
    return make_schema(
        [
            ("proposal", []),
            ("specs", ["proposal"]),
            ("design", ["proposal"]),
            ("tasks", ["specs", "design"]),
        ],
        name="diamond",
    )


@pytest.fixture
def diamond_graph(diamond_schema: SchemaDefinition) -> ArtifactGraph:
    return ArtifactGraph.from_schema(diamond_schema)


@pytest.fixture
def write_schema() -> Callable[..., Path]:
    """Factory fixture: write ``schema.yaml`` (+ templates) into a schemas area.

    ``base`` is the directory that holds schema directories (for example
    ``<project>/specflow/schemas``).  Returns the schema directory.
    """

    def _factory(
        base: Path,
        name: str,
        artifacts: list[dict[str, Any]] | None = None,
        templates: dict[str, str] | None = None,
        raw: str | None = None,
        **extra: Any,
    ) -> Path:
        schema_dir = base / name
        schema_dir.mkdir(parents=True, exist_ok=True)
        if raw is not None:
            (schema_dir / "schema.yaml").write_text(raw, encoding="utf-8")
        else:
            if artifacts is None:
                artifacts = [
                    {
                        "id": "proposal",
                        "generates": "proposal.md",
                        "description": "Proposal",
                        "template": "proposal.md",
                    }
                ]
            data = {"name": name, "version": 1, "artifacts": artifacts, **extra}
            (schema_dir / "schema.yaml").write_text(yaml.safe_dump(data), encoding="utf-8")
            if templates is None:
                templates = {a["template"]: f"# {a['id']} template\n" for a in artifacts}
        for rel, content in (templates or {}).items():
            target = schema_dir / "templates" / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return schema_dir

    return _factory


@pytest.fixture
def make_change() -> Callable[..., Path]:
    """Factory fixture: create ``<project>/specflow/changes/<name>`` with files."""

    def _factory(
        project_root: Path,
        name: str = "add-auth",
        files: dict[str, str] | None = None,
        schema: str | None = None,
    ) -> Path:
        change_dir = project_root / "specflow" / "changes" / name
        change_dir.mkdir(parents=True, exist_ok=True)
        for rel, content in (files or {}).items():
            target = change_dir / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        if schema is not None:
            (change_dir / ".specflow.yaml").write_text(
                yaml.safe_dump({"schema": schema}), encoding="utf-8"
            )
        return change_dir

    return _factory


@pytest.fixture
def write_project_config() -> Callable[..., Path]:
    """Factory fixture: write ``<project>/specflow/config.yaml``."""

    def _factory(project_root: Path, content: dict[str, Any] | str) -> Path:
        path = project_root / "specflow" / "config.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)
        text = content if isinstance(content, str) else yaml.safe_dump(content)
        path.write_text(text, encoding="utf-8")
        return path

    return _factory


# ---------------------------------------------------------------------------
# In-memory output checker
# ---------------------------------------------------------------------------


class FakeOutputChecker:
    """OutputExistenceChecker backed by a set of present ``generates`` patterns."""

    def __init__(self, existing: set[str] | None = None, change_present: bool = True) -> None:
        self.existing = set(existing or ())
        self.change_present = change_present
        self.calls = 0

    def change_exists(self, change_dir: Path) -> bool:
        return self.change_present

    def output_exists(self, change_dir: Path, generates: str) -> bool:
        self.calls += 1
        return generates in self.existing


@pytest.fixture
def fake_checker() -> FakeOutputChecker:
    return FakeOutputChecker()


@pytest.fixture
def make_checker() -> type[FakeOutputChecker]:
    """Factory fixture: the FakeOutputChecker class itself."""
    return FakeOutputChecker
