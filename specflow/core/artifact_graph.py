"""Artifact DAG with ready/blocked frontier computation.

The graph enforces:
- Every ``requires`` edge points at an artifact declared in the same schema.
- The ``requires`` relation is acyclic.
- Build order is a topological order; ties are broken by declaration
  order (the earliest-declared available artifact always comes first).
"""

from __future__ import annotations

import heapq
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from specflow.core.errors import CyclicDependencyError, SchemaParseError
from specflow.models.schema import Artifact, SchemaDefinition, ValidationIssue

CompletedSet = frozenset[str]


def topological_order(
    order: Sequence[str], requires: Mapping[str, Sequence[str]]
) -> list[str]:
    """Kahn's algorithm over ``requires`` with declaration-order tie-breaking.

    ``order`` is the declaration order of every node; ``requires`` maps a
    node to its prerequisites.  Edges to unknown nodes are ignored here;
    callers check references first.

    Raises CyclicDependencyError naming the full cycle if one exists.
    """
    index = {node: i for i, node in enumerate(order)}
    in_degree = {node: 0 for node in order}
    dependents: dict[str, list[str]] = {node: [] for node in order}
    for node in order:
        for prereq in dict.fromkeys(requires.get(node, ())):
            if prereq in index:
                in_degree[node] += 1
                dependents[prereq].append(node)

    heap = [index[node] for node in order if in_degree[node] == 0]
    heapq.heapify(heap)
    result: list[str] = []
    while heap:
        node = order[heapq.heappop(heap)]
        result.append(node)
        for dep in dependents[node]:
            in_degree[dep] -= 1
            if in_degree[dep] == 0:
                heapq.heappush(heap, index[dep])

    if len(result) != len(order):
        remaining = [node for node in order if in_degree[node] > 0]
        raise CyclicDependencyError(_extract_cycle(remaining, requires))
    return result


def _extract_cycle(
    remaining: list[str], requires: Mapping[str, Sequence[str]]
) -> list[str]:
    # Every node left over by Kahn's algorithm still has an unresolved
    # prerequisite inside ``remaining``, so following those edges must loop.
    pending = set(remaining)
    path: list[str] = []
    seen: dict[str, int] = {}
    node = remaining[0]
    while node not in seen:
        seen[node] = len(path)
        path.append(node)
        node = next(p for p in requires.get(node, ()) if p in pending)
    return path[seen[node]:] + [node]


class ArtifactGraph:
    """Directed acyclic graph of artifacts and their ``requires`` edges.

    Built once from a SchemaDefinition and never mutated; rebuild it when
    the schema changes.
    """

    def __init__(self, schema: SchemaDefinition) -> None:
        self._schema = schema
        self._artifacts: dict[str, Artifact] = {a.id: a for a in schema.artifacts}
        if len(self._artifacts) != len(schema.artifacts):
            counts = Counter(a.id for a in schema.artifacts)
            duplicate_ids = [aid for aid, count in counts.items() if count > 1]
            raise SchemaParseError(
                f"Schema '{schema.name}' declares duplicate artifact IDs: "
                + ", ".join(duplicate_ids),
                [
                    ValidationIssue(
                        path=f"artifacts.{aid}.id",
                        message=f"Duplicate artifact ID '{aid}'",
                    )
                    for aid in duplicate_ids
                ],
            )

        dangling = [
            ValidationIssue(
                path=f"artifacts.{a.id}.requires",
                message=f"Artifact '{a.id}' requires unknown artifact '{req}'",
            )
            for a in schema.artifacts
            for req in a.requires
            if req not in self._artifacts
        ]
        if dangling:
            raise SchemaParseError(
                f"Schema '{schema.name}' has {len(dangling)} dangling reference(s): "
                + "; ".join(issue.message for issue in dangling),
                dangling,
            )

        # Reverse edges: artifact id -> artifacts that require it
        self._dependents: dict[str, list[str]] = {aid: [] for aid in self._artifacts}
        for a in schema.artifacts:
            for req in dict.fromkeys(a.requires):
                self._dependents[req].append(a.id)

        self._build_order = topological_order(
            list(self._artifacts),
            {aid: a.requires for aid, a in self._artifacts.items()},
        )

    @classmethod
    def from_schema(cls, schema: SchemaDefinition) -> ArtifactGraph:
        return cls(schema)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    @property
    def schema(self) -> SchemaDefinition:
        return self._schema

    def get_name(self) -> str:
        return self._schema.name

    def get_version(self) -> int | str:
        return self._schema.version

    def get_artifact(self, artifact_id: str) -> Artifact | None:
        return self._artifacts.get(artifact_id)

    def get_all_artifacts(self) -> list[Artifact]:
        """Return all artifacts in declaration order."""
        return list(self._artifacts.values())

    def get_build_order(self) -> list[str]:
        """Return artifact IDs in deterministic topological order."""
        return list(self._build_order)

    def get_dependents(self, artifact_id: str) -> list[str]:
        """Return IDs of artifacts that directly require ``artifact_id``."""
        return list(self._dependents.get(artifact_id, []))

    # ------------------------------------------------------------------
    # Completion frontier
    # ------------------------------------------------------------------

    def get_next_artifacts(self, completed: Iterable[str]) -> list[str]:
        """Return artifacts not yet completed whose requirements all are.

        The result follows build order.
        """
        done = frozenset(completed)
        return [
            aid
            for aid in self._build_order
            if aid not in done
            and all(req in done for req in self._artifacts[aid].requires)
        ]

    def get_blocked(self, completed: Iterable[str]) -> dict[str, list[str]]:
        """Map each blocked artifact to its unmet requirements.

        Completed and ready artifacts are omitted.  Missing IDs keep the
        order in which the artifact declares them.
        """
        done = frozenset(completed)
        blocked: dict[str, list[str]] = {}
        for aid in self._build_order:
            if aid in done:
                continue
            missing = [req for req in self._artifacts[aid].requires if req not in done]
            if missing:
                blocked[aid] = missing
        return blocked

    def is_complete(self, completed: Iterable[str]) -> bool:
        done = frozenset(completed)
        return all(aid in done for aid in self._artifacts)


def get_unlocked_artifacts(graph: ArtifactGraph, artifact_id: str) -> list[str]:
    """Artifacts that list ``artifact_id`` in ``requires``, sorted by ID."""
    return sorted(graph.get_dependents(artifact_id))
