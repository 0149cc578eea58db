"""Completion detection — which artifacts already have output on disk.

Completion is a filesystem fact: it is re-queried on every call and never
cached, because people and agents create artifact files between queries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from specflow.core.artifact_graph import ArtifactGraph, CompletedSet

logger = logging.getLogger(__name__)

_GLOB_CHARS = frozenset("*?[")


def is_glob_pattern(generates: str) -> bool:
    return any(ch in _GLOB_CHARS for ch in generates)


@runtime_checkable
class OutputExistenceChecker(Protocol):
    """Answers whether a change directory and an artifact's output exist."""

    def change_exists(self, change_dir: Path) -> bool: ...

    def output_exists(self, change_dir: Path, generates: str) -> bool: ...


class FilesystemOutputChecker:
    """Checks real files; directories never count.

    A glob pattern counts as present when any file matches it.
    """

    def change_exists(self, change_dir: Path) -> bool:
        return change_dir.is_dir()

    def output_exists(self, change_dir: Path, generates: str) -> bool:
        if is_glob_pattern(generates):
            return any(match.is_file() for match in change_dir.glob(generates))
        return (change_dir / generates).is_file()


def detect_completed(
    graph: ArtifactGraph,
    change_dir: Path,
    checker: OutputExistenceChecker | None = None,
) -> CompletedSet:
    """Return the IDs of artifacts whose output exists under ``change_dir``.

    A missing change directory yields an empty set; reporting the missing
    change is the caller's job.
    """
    checker = checker or FilesystemOutputChecker()
    if not checker.change_exists(change_dir):
        logger.debug("Change directory %s does not exist.", change_dir)
        return frozenset()

    return frozenset(
        artifact.id
        for artifact in graph.get_all_artifacts()
        if checker.output_exists(change_dir, artifact.generates)
    )
