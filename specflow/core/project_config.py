"""Project configuration reader — ``specflow/config.yaml``.

Parsing is resilient: each field is validated on its own, invalid fields
are dropped with a warning, and the rest of the file is still used.  A
broken config must never block artifact generation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from specflow.config import SpecflowConfig
from specflow.models.project import ProjectConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("config.yaml", "config.yml")

_RULE_LIST = TypeAdapter(list[str])


def find_project_config(project_root: Path, config: SpecflowConfig | None = None) -> Path | None:
    """Return the config file path (``.yaml`` preferred over ``.yml``), if any."""
    project_dir = (config or SpecflowConfig()).project_dir(project_root)
    for filename in CONFIG_FILENAMES:
        candidate = project_dir / filename
        if candidate.is_file():
            return candidate
    return None


def read_project_config(
    project_root: Path, config: SpecflowConfig | None = None
) -> ProjectConfig | None:
    """Read the project config, keeping whichever fields are valid.

    Returns ``None`` when the file is missing, unreadable, not a mapping,
    or has no valid fields.
    """
    settings = config or SpecflowConfig()
    config_path = find_project_config(project_root, settings)
    if config_path is None:
        return None

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        logger.warning("Failed to parse %s: %s", config_path, exc)
        return None

    if not isinstance(raw, dict):
        logger.warning("%s is not a valid YAML mapping", config_path)
        return None

    fields: dict[str, Any] = {}

    schema_name = raw.get("schema")
    if isinstance(schema_name, str) and schema_name:
        fields["schema"] = schema_name
    elif schema_name is not None:
        logger.warning("Invalid 'schema' field in config (must be non-empty string)")

    context = raw.get("context")
    if context is not None:
        if not isinstance(context, str):
            logger.warning("Invalid 'context' field in config (must be string)")
        else:
            size = len(context.encode("utf-8"))
            if size > settings.max_context_bytes:
                logger.warning(
                    "Context too large (%.1fKB, limit: %dKB); ignoring context field",
                    size / 1024,
                    settings.max_context_bytes // 1024,
                )
            else:
                fields["context"] = context

    if "rules" in raw:
        rules = _parse_rules(raw["rules"])
        if rules:
            fields["rules"] = rules

    if not fields:
        return None
    return ProjectConfig.model_validate(fields)


def _parse_rules(raw_rules: Any) -> dict[str, list[str]]:
    if not isinstance(raw_rules, dict):
        logger.warning("Invalid 'rules' field in config (must be object)")
        return {}

    parsed: dict[str, list[str]] = {}
    for artifact_id, rules in raw_rules.items():
        try:
            rule_list = _RULE_LIST.validate_python(rules, strict=True)
        except ValidationError:
            logger.warning(
                "Rules for '%s' must be an array of strings, ignoring this artifact's rules",
                artifact_id,
            )
            continue

        non_empty = [rule for rule in rule_list if rule]
        if len(non_empty) < len(rule_list):
            logger.warning("Some rules for '%s' are empty strings, ignoring them", artifact_id)
        if non_empty:
            parsed[str(artifact_id)] = non_empty
    return parsed


def validate_config_rules(
    rules: dict[str, list[str]],
    valid_artifact_ids: set[str],
    schema_name: str,
) -> list[str]:
    """Return one warning per rules key that names no artifact in the schema."""
    warnings: list[str] = []
    valid_ids = ", ".join(sorted(valid_artifact_ids))
    for artifact_id in rules:
        if artifact_id not in valid_artifact_ids:
            warnings.append(
                f'Unknown artifact ID in rules: "{artifact_id}". '
                f'Valid IDs for schema "{schema_name}": {valid_ids}'
            )
    return warnings


def _levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def suggest_schemas(invalid_name: str, available: dict[str, bool]) -> str:
    """Build a help message for an unknown configured schema.

    ``available`` maps schema name -> whether it is built in (package)
    rather than project-local.  Up to three names within edit distance 3
    are suggested, closest first.
    """
    scored = sorted(
        (
            (_levenshtein(invalid_name, name), name, built_in)
            for name, built_in in available.items()
        ),
    )
    suggestions = [entry for entry in scored if entry[0] <= 3][:3]

    lines = [f"Schema '{invalid_name}' not found in specflow/config.yaml", ""]
    if suggestions:
        lines.append("Did you mean one of these?")
        for _, name, built_in in suggestions:
            lines.append(f"  - {name} ({'built-in' if built_in else 'project-local'})")
        lines.append("")

    built_ins = [name for name, built_in in sorted(available.items()) if built_in]
    project_local = [name for name, built_in in sorted(available.items()) if not built_in]
    lines.append("Available schemas:")
    if built_ins:
        lines.append(f"  Built-in: {', '.join(built_ins)}")
    lines.append(f"  Project-local: {', '.join(project_local) if project_local else '(none found)'}")
    lines.append("")
    lines.append(
        f"Fix: Edit specflow/config.yaml and change 'schema: {invalid_name}' "
        "to a valid schema name"
    )
    return "\n".join(lines)
