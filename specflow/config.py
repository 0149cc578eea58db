"""Runtime configuration — env-driven via pydantic-settings.

Reads from a .env file and SPECFLOW_* environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_ROOT = Path(__file__).resolve().parent


class SpecflowConfig(BaseSettings):
    """Process-wide configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SPECFLOW_LOG_LEVEL=DEBUG
        export SPECFLOW_DEFAULT_SCHEMA=my-workflow
        export SPECFLOW_DATA_HOME=/srv/specflow

    Or via .env file::

        SPECFLOW_DEFAULT_SCHEMA=spec-driven
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SPECFLOW_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    debug: bool = False

    # Schema selection
    default_schema: str = "spec-driven"

    # Storage locations
    data_home: Path | None = None            # overrides the XDG lookup
    package_schemas_dir: Path | None = None  # overrides the bundled schemas
    project_dir_name: str = "specflow"

    # Project config limits
    max_context_bytes: int = 50 * 1024

    @property
    def global_data_dir(self) -> Path:
        """User-global data directory (SPECFLOW_DATA_HOME > XDG_DATA_HOME > ~/.local/share)."""
        if self.data_home is not None:
            return self.data_home
        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            return Path(xdg) / "specflow"
        return Path.home() / ".local" / "share" / "specflow"

    @property
    def user_schemas_dir(self) -> Path:
        return self.global_data_dir / "schemas"

    @property
    def bundled_schemas_dir(self) -> Path:
        if self.package_schemas_dir is not None:
            return self.package_schemas_dir
        return _PACKAGE_ROOT / "schemas"

    def project_dir(self, project_root: Path) -> Path:
        """The ``specflow/`` area inside a project root."""
        return Path(project_root) / self.project_dir_name


# Module-level singleton — import as `from specflow.config import config`
config = SpecflowConfig()
