"""Per-change metadata (``.specflow.yaml``) and schema selection for a change."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from specflow.config import SpecflowConfig
from specflow.core.project_config import read_project_config
from specflow.core.schema_resolver import SchemaResolver, canonical_schema_name
from specflow.models.project import ChangeMetadata

logger = logging.getLogger(__name__)

METADATA_FILENAME = ".specflow.yaml"


class ChangeMetadataError(ValueError):
    """Raised when a change's metadata file exists but is invalid."""

    def __init__(self, message: str, metadata_path: Path) -> None:
        super().__init__(message)
        self.metadata_path = metadata_path


def read_change_metadata(
    change_dir: Path, resolver: SchemaResolver | None = None
) -> ChangeMetadata | None:
    """Read ``.specflow.yaml`` from a change directory.

    Returns ``None`` if the file does not exist.  When a resolver is
    given, the recorded schema must be one it can find.
    """
    meta_path = change_dir / METADATA_FILENAME
    if not meta_path.is_file():
        return None

    try:
        parsed = yaml.safe_load(meta_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ChangeMetadataError(f"Failed to read metadata: {exc}", meta_path) from exc
    except yaml.YAMLError as exc:
        raise ChangeMetadataError(f"Invalid YAML in metadata file: {exc}", meta_path) from exc

    try:
        metadata = ChangeMetadata.model_validate(parsed)
    except ValidationError as exc:
        raise ChangeMetadataError(f"Invalid metadata: {exc}", meta_path) from exc

    if resolver is not None and resolver.get_schema_dir(metadata.schema_name) is None:
        available = resolver.list_schemas()
        raise ChangeMetadataError(
            f"Unknown schema '{metadata.schema_name}'. Available: {', '.join(available)}",
            meta_path,
        )
    return metadata


def resolve_schema_for_change(
    change_dir: Path,
    explicit_schema: str | None = None,
    project_root: Path | None = None,
    config: SpecflowConfig | None = None,
) -> str:
    """Pick the schema name for a change.

    Order: explicit override > change metadata > project config
    ``schema`` > process-wide default.  Unreadable metadata or config is
    logged and skipped.  The returned name is always canonical.
    """
    if explicit_schema:
        return canonical_schema_name(explicit_schema)

    settings = config or SpecflowConfig()
    if project_root is None:
        # <root>/specflow/changes/<change>
        parents = change_dir.resolve().parents
        project_root = parents[2] if len(parents) > 2 else change_dir

    try:
        metadata = read_change_metadata(change_dir, SchemaResolver(project_root, settings))
    except ChangeMetadataError as exc:
        logger.warning("Ignoring change metadata: %s", exc)
        metadata = None
    if metadata is not None:
        return canonical_schema_name(metadata.schema_name)

    project_config = read_project_config(project_root, settings)
    if project_config is not None and project_config.schema_name:
        return canonical_schema_name(project_config.schema_name)

    return canonical_schema_name(settings.default_schema)
