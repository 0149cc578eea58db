"""Specflow: artifact dependency graph and instruction engine for spec-driven changes.

A change moves through a sequence of documents (proposal, specs, design,
tasks, ...) declared by a pluggable workflow schema.  This package:
  - Resolves schemas across project, user and package locations
  - Parses and validates schema definitions into frozen models
  - Builds the artifact DAG and computes ready/blocked frontiers
  - Detects completed artifacts from the change directory
  - Assembles per-artifact instructions and whole-change status
"""

__version__ = "0.1.0"
__description__ = (
    "Artifact dependency graph and instruction engine for spec-driven change workflows"
)

from specflow.core.artifact_graph import ArtifactGraph
from specflow.core.instructions import (
    format_change_status,
    generate_instructions,
    load_change_context,
)
from specflow.core.schema_resolver import SchemaResolver

__all__ = [
    "ArtifactGraph",
    "SchemaResolver",
    "format_change_status",
    "generate_instructions",
    "load_change_context",
    "__version__",
]
