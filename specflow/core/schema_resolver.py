"""Schema store resolver — finds a schema across scoped locations.

Resolution order, first match wins::

    1. project   <projectRoot>/specflow/schemas/<name>/schema.yaml
    2. user      <globalDataDir>/schemas/<name>/schema.yaml
    3. package   <specflow package>/schemas/<name>/schema.yaml

Names are normalized before the search: a trailing ``.yaml``/``.yml`` is
dropped and historical aliases map to their canonical name.  Everything
returned by the resolver uses the canonical name.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from specflow.config import SpecflowConfig
from specflow.core.errors import SchemaParseError
from specflow.core.schema_parser import SCHEMA_FILENAME, load_schema_file
from specflow.models.resolution import (
    SchemaInfo,
    SchemaLocation,
    SchemaResolution,
    SchemaSource,
    ShadowedLocation,
)
from specflow.models.schema import SchemaDefinition

logger = logging.getLogger(__name__)

# Historical names kept for backward compatibility -> canonical schema name.
SCHEMA_ALIASES: dict[str, str] = {
    "default": "spec-driven",
}

_EXTENSION_RE = re.compile(r"\.ya?ml$")


class SchemaNotFoundError(LookupError):
    """Raised when a schema name resolves in none of the locations."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        self.available = list(available)
        listing = ", ".join(self.available) if self.available else "(none)"
        super().__init__(f"Schema '{name}' not found. Available schemas: {listing}")


class SchemaLoadError(RuntimeError):
    """Raised when a resolved schema file cannot be read."""

    def __init__(self, message: str, schema_path: Path) -> None:
        super().__init__(message)
        self.schema_path = schema_path


def canonical_schema_name(name: str) -> str:
    """Strip a YAML extension and map aliases to the canonical name."""
    normalized = _EXTENSION_RE.sub("", name.strip())
    return SCHEMA_ALIASES.get(normalized, normalized)


class SchemaResolver:
    """Locates schema directories for one project.

    Parameters
    ----------
    project_root:
        Project whose ``specflow/schemas`` area takes precedence.  When
        ``None`` only the user and package locations are searched.
    config:
        Settings supplying the user and package schema directories.  A
        fresh ``SpecflowConfig`` is read from the environment if omitted.

    Examples
    --------
    >>> resolver = SchemaResolver(Path("/work/project"))
    >>> resolver.resolve("spec-driven")  # doctest: +SKIP
    PosixPath('.../specflow/schemas/spec-driven')
    """

    def __init__(
        self,
        project_root: Path | None = None,
        config: SpecflowConfig | None = None,
    ) -> None:
        self._config = config or SpecflowConfig()
        self._project_root = Path(project_root) if project_root is not None else None

    # -- Locations ----------------------------------------------------------

    @property
    def project_root(self) -> Path | None:
        return self._project_root

    def search_roots(self) -> list[tuple[SchemaSource, Path]]:
        """Schema base directories in priority order."""
        roots: list[tuple[SchemaSource, Path]] = []
        if self._project_root is not None:
            roots.append(
                (SchemaSource.PROJECT, self._config.project_dir(self._project_root) / "schemas")
            )
        roots.append((SchemaSource.USER, self._config.user_schemas_dir))
        roots.append((SchemaSource.PACKAGE, self._config.bundled_schemas_dir))
        return roots

    def locations(self, name: str) -> list[SchemaLocation]:
        """Every candidate location for ``name``, flagged with existence."""
        canonical = canonical_schema_name(name)
        return [
            SchemaLocation(
                source=source,
                path=root / canonical,
                exists=(root / canonical / SCHEMA_FILENAME).is_file(),
            )
            for source, root in self.search_roots()
        ]

    # -- Resolution ---------------------------------------------------------

    def get_schema_dir(self, name: str) -> Path | None:
        """Return the winning schema directory, or ``None``."""
        for location in self.locations(name):
            if location.exists:
                return location.path
        return None

    def resolve(self, name: str) -> Path:
        """Return the winning schema directory or raise SchemaNotFoundError."""
        schema_dir = self.get_schema_dir(name)
        if schema_dir is None:
            raise SchemaNotFoundError(canonical_schema_name(name), self.list_schemas())
        return schema_dir

    def which(self, name: str) -> SchemaResolution:
        """Report the winning location and the lower-priority ones it shadows.

        Raises SchemaNotFoundError if no location holds the schema.
        """
        canonical = canonical_schema_name(name)
        existing = [loc for loc in self.locations(canonical) if loc.exists]
        if not existing:
            raise SchemaNotFoundError(canonical, self.list_schemas())

        active, *shadowed = existing
        return SchemaResolution(
            name=canonical,
            source=active.source,
            path=active.path,
            shadows=[ShadowedLocation(source=loc.source, path=loc.path) for loc in shadowed],
        )

    def which_all(self) -> list[SchemaResolution]:
        return [self.which(name) for name in self.list_schemas()]

    def load(self, name: str) -> SchemaDefinition:
        """Resolve and parse a schema.

        Raises SchemaNotFoundError, SchemaLoadError (unreadable file) or
        SchemaParseError (invalid content, with ``schema_path`` set).
        """
        schema_path = self.resolve(name) / SCHEMA_FILENAME
        try:
            return load_schema_file(schema_path)
        except OSError as exc:
            raise SchemaLoadError(
                f"Failed to read schema at '{schema_path}': {exc}", schema_path
            ) from exc

    # -- Listing ------------------------------------------------------------

    def list_schemas(self) -> list[str]:
        """Sorted union of schema names across every location."""
        names: set[str] = set()
        for _, root in self.search_roots():
            names.update(_schema_names_in(root))
        return sorted(names)

    def list_schemas_with_info(self) -> list[SchemaInfo]:
        """One entry per schema name, taken from its winning location.

        Schemas that fail to parse are skipped with a warning.
        """
        infos: list[SchemaInfo] = []
        seen: set[str] = set()
        for source, root in self.search_roots():
            for name in _schema_names_in(root):
                if name in seen:
                    continue
                schema_path = root / name / SCHEMA_FILENAME
                try:
                    schema = load_schema_file(schema_path)
                except (OSError, SchemaParseError) as exc:
                    logger.warning("Skipping invalid schema '%s' at %s: %s", name, schema_path, exc)
                    continue
                infos.append(
                    SchemaInfo(
                        name=name,
                        description=schema.description,
                        artifacts=schema.artifact_ids,
                        source=source,
                    )
                )
                seen.add(name)
        return sorted(infos, key=lambda info: info.name)


def _schema_names_in(root: Path) -> list[str]:
    if not root.is_dir():
        return []
    return sorted(
        entry.name
        for entry in root.iterdir()
        if entry.is_dir() and (entry / SCHEMA_FILENAME).is_file()
    )


def resolve_schema(name: str, project_root: Path | None = None) -> SchemaDefinition:
    """Convenience wrapper: resolve and parse ``name`` with default settings."""
    return SchemaResolver(project_root).load(name)
