"""Tests for instruction assembly, template loading and the warning ledger."""

from __future__ import annotations

import logging
import threading

import pytest
from pydantic import ValidationError

from specflow.core.artifact_graph import ArtifactGraph
from specflow.core.instructions import (
    ArtifactNotFoundError,
    ChangeContext,
    TemplateLoadError,
    WarningLedger,
    _dependency_info,
    format_change_status,
    generate_instructions,
    load_change_context,
    load_template,
)
from specflow.core.schema_resolver import SchemaNotFoundError

LINEAR = [
    {"id": "proposal", "generates": "proposal.md", "description": "Why", "template": "proposal.md"},
    {
        "id": "specs",
        "generates": "specs.md",
        "description": "What",
        "template": "specs.md",
        "instruction": "One requirement per heading.",
        "requires": ["proposal"],
    },
    {
        "id": "tasks",
        "generates": "tasks.md",
        "description": "Checklist",
        "template": "tasks.md",
        "requires": ["specs"],
    },
]


@pytest.fixture
def linear_project(project_root, write_schema):
    write_schema(project_root / "specflow" / "schemas", "linear", artifacts=LINEAR)
    return project_root


class TestLoadChangeContext:
    def test_snapshot(self, linear_project, config, make_change):
        make_change(linear_project, files={"proposal.md": "# p\n"})
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        assert ctx.schema_name == "linear"
        assert ctx.change_name == "add-auth"
        assert ctx.change_dir == linear_project / "specflow" / "changes" / "add-auth"
        assert ctx.completed == {"proposal"}
        assert isinstance(ctx.graph, ArtifactGraph)

    def test_missing_change_dir_has_nothing_done(self, linear_project, config):
        ctx = load_change_context(linear_project, "ghost", "linear", config)
        assert ctx.completed == frozenset()

    def test_schema_from_metadata(self, linear_project, config, make_change):
        make_change(linear_project, schema="linear")
        ctx = load_change_context(linear_project, "add-auth", config=config)
        assert ctx.schema_name == "linear"

    def test_default_schema(self, project_root, config, make_change):
        make_change(project_root)
        ctx = load_change_context(project_root, "add-auth", config=config)
        assert ctx.schema_name == "spec-driven"

    def test_unknown_schema(self, project_root, config):
        with pytest.raises(SchemaNotFoundError):
            load_change_context(project_root, "add-auth", "nope", config)

    def test_alias_reported_by_canonical_name(self, project_root, config, make_change):
        make_change(project_root)
        ctx = load_change_context(project_root, "add-auth", "default", config)
        assert ctx.schema_name == "spec-driven"
        assert format_change_status(ctx).schema_name == "spec-driven"
        assert generate_instructions(ctx, "proposal").schema_name == "spec-driven"

    def test_alias_in_metadata_is_honoured(self, project_root, config, make_change, write_project_config):
        make_change(project_root, schema="default")
        write_project_config(project_root, {"schema": "elsewhere"})
        ctx = load_change_context(project_root, "add-auth", config=config)
        assert ctx.schema_name == "spec-driven"

    def test_injected_checker(self, linear_project, config, make_checker):
        checker = make_checker({"proposal.md", "specs.md"})
        ctx = load_change_context(linear_project, "virtual", "linear", config, checker)
        assert ctx.completed == {"proposal", "specs"}

    def test_context_is_frozen(self, linear_project, config):
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        with pytest.raises(ValidationError):
            ctx.change_name = "other"  # type: ignore[misc]


class TestGenerateInstructions:
    def test_root_artifact(self, linear_project, config, make_change):
        make_change(linear_project)
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        result = generate_instructions(ctx, "proposal")
        assert result.artifact_id == "proposal"
        assert result.output_path == "proposal.md"
        assert result.description == "Why"
        assert result.instruction is None
        assert result.template == "# proposal template\n"
        assert result.dependencies == []
        assert result.unlocks == ["specs"]
        assert result.context is None and result.rules is None

    def test_dependencies_reflect_completion(self, linear_project, config, make_change):
        make_change(linear_project, files={"proposal.md": "# p\n"})
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        result = generate_instructions(ctx, "specs")
        assert result.instruction == "One requirement per heading."
        assert [(d.id, d.done, d.path, d.description) for d in result.dependencies] == [
            ("proposal", True, "proposal.md", "Why")
        ]
        assert result.unlocks == ["tasks"]

    def test_unknown_artifact(self, linear_project, config):
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        with pytest.raises(ArtifactNotFoundError) as excinfo:
            generate_instructions(ctx, "nope")
        assert str(excinfo.value) == "Artifact 'nope' not found in schema 'linear'"

    def test_context_and_rules(self, linear_project, config, make_change, write_project_config):
        make_change(linear_project)
        write_project_config(
            linear_project,
            {
                "context": "  Tech stack: Python  \n",
                "rules": {"proposal": ["Include rollback plan"], "tasks": ["Small steps"]},
            },
        )
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        result = generate_instructions(ctx, "proposal")
        assert result.context == "Tech stack: Python"
        assert result.rules == ["Include rollback plan"]

        other = generate_instructions(ctx, "specs")
        assert other.context == "Tech stack: Python"
        assert other.rules is None

    def test_whitespace_context_omitted(self, linear_project, config, write_project_config):
        write_project_config(linear_project, {"context": "   \n", "schema": "linear"})
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        assert generate_instructions(ctx, "proposal").context is None

    def test_non_utf8_project_config_is_ignored(self, linear_project, config, make_change, caplog):
        make_change(linear_project)
        path = linear_project / "specflow" / "config.yaml"
        path.write_bytes(b"context: caf\xe9\n")
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        with caplog.at_level(logging.WARNING):
            result = generate_instructions(ctx, "proposal")
        assert result.context is None and result.rules is None
        assert result.template == "# proposal template\n"
        assert "Failed to parse" in caplog.text

    def test_unknown_rule_ids_warn_once_per_ledger(
        self, linear_project, config, write_project_config, caplog
    ):
        write_project_config(linear_project, {"rules": {"testplan": ["x"]}})
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        ledger = WarningLedger()
        with caplog.at_level(logging.WARNING, logger="specflow.core.instructions"):
            generate_instructions(ctx, "proposal", warnings=ledger)
            generate_instructions(ctx, "specs", warnings=ledger)
        messages = [r.getMessage() for r in caplog.records if "Unknown artifact ID" in r.getMessage()]
        assert len(messages) == 1
        assert '"testplan"' in messages[0]
        assert len(ledger) == 1

    def test_fresh_ledgers_warn_again(self, linear_project, config, write_project_config, caplog):
        write_project_config(linear_project, {"rules": {"testplan": ["x"]}})
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        with caplog.at_level(logging.WARNING, logger="specflow.core.instructions"):
            generate_instructions(ctx, "proposal", warnings=WarningLedger())
            generate_instructions(ctx, "proposal", warnings=WarningLedger())
        assert sum("Unknown artifact ID" in r.getMessage() for r in caplog.records) == 2

    def test_missing_template_leaves_state_untouched(
        self, project_root, config, make_change, write_schema
    ):
        schema_dir = write_schema(
            project_root / "specflow" / "schemas", "linear", artifacts=LINEAR, templates={}
        )
        make_change(project_root, files={"proposal.md": "# p\n"})
        ctx = load_change_context(project_root, "add-auth", "linear", config)
        order_before = ctx.graph.get_build_order()
        completed_before = ctx.completed

        with pytest.raises(TemplateLoadError) as excinfo:
            generate_instructions(ctx, "specs")

        expected = (schema_dir / "templates" / "specs.md").resolve()
        assert excinfo.value.template_path == expected
        assert str(excinfo.value) == f"Template not found: {expected}"
        assert ctx.graph.get_build_order() == order_before
        assert ctx.completed == completed_before

    def test_dependency_missing_from_graph_degrades(self, make_schema):
        # Built without validation, so 'ghost' never made it into the graph.
        schema = make_schema([("proposal", [])])
        graph = ArtifactGraph.from_schema(schema)
        artifact = schema.artifacts[0].model_copy(update={"requires": ["ghost"]})

        info = _dependency_info(artifact, graph, frozenset())
        assert [(d.id, d.done, d.path, d.description) for d in info] == [
            ("ghost", False, "ghost", "")
        ]

    def test_payload_does_not_alias_graph(self, linear_project, config):
        ctx = load_change_context(linear_project, "add-auth", "linear", config)
        result = generate_instructions(ctx, "specs")
        result.unlocks.append("mutated")
        assert generate_instructions(ctx, "specs").unlocks == ["tasks"]
        assert ctx.graph.get_dependents("specs") == ["tasks"]


class TestLoadTemplate:
    def test_loads_bundled_template(self, config):
        text = load_template("spec-driven", "proposal.md", None, config)
        assert text.strip()

    def test_unknown_schema(self, config):
        with pytest.raises(TemplateLoadError) as excinfo:
            load_template("nope", "proposal.md", None, config)
        expected = (config.user_schemas_dir / "nope" / "templates" / "proposal.md").resolve()
        assert excinfo.value.template_path == expected
        assert excinfo.value.template_path.is_absolute()
        assert str(expected) in str(excinfo.value)

    def test_nested_template(self, config):
        assert load_template("spec-driven", "specs/spec.md", None, config).strip()


class TestWarningLedger:
    def test_emit_once(self, caplog):
        ledger = WarningLedger()
        with caplog.at_level(logging.WARNING):
            assert ledger.emit("careful") is True
            assert ledger.emit("careful") is False
        assert "careful" in ledger
        assert sum(r.getMessage() == "careful" for r in caplog.records) == 1

    def test_threads_share_one_ledger(self):
        ledger = WarningLedger()
        results: list[bool] = []
        lock = threading.Lock()

        def _worker():
            outcome = ledger.emit("shared")
            with lock:
                results.append(outcome)

        threads = [threading.Thread(target=_worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1
        assert len(ledger) == 1


def test_change_context_excludes_config_from_dump(linear_project, config):
    ctx = load_change_context(linear_project, "add-auth", "linear", config)
    assert isinstance(ctx, ChangeContext)
    assert "config" not in ctx.model_dump(exclude={"graph"})
