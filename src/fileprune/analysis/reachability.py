"""Reachability over the reference graph."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from fileprune.analysis.graph import ReferenceGraph
from fileprune.models.config import InclusionPolicy
from fileprune.models.dependency import Edge


def follows(edge: Edge, policy: InclusionPolicy) -> bool:
    """Whether traversal crosses ``edge`` under ``policy``."""
    if not edge.kind.is_runtime:
        return policy.follow_type_only_edges
    return True


def reach(
    graph: ReferenceGraph,
    entries: Iterable[Path],
    policy: InclusionPolicy,
) -> set[Path]:
    """Find all files reachable from ``entries``.

    Entries are always part of the result. Cycles are fine: a file is
    expanded at most once.
    """
    reachable: set[Path] = set(entries)
    to_visit = list(reachable)

    while to_visit:
        current = to_visit.pop()
        for edge in graph.outgoing(current):
            if edge.is_self or edge.target in reachable:
                continue
            if follows(edge, policy):
                reachable.add(edge.target)
                to_visit.append(edge.target)

    return reachable


def type_only_touched(graph: ReferenceGraph, sources: Iterable[Path]) -> set[Path]:
    """Targets of type-only edges leaving ``sources`` that are not sources themselves."""
    source_set = set(sources)
    touched: set[Path] = set()
    for source in source_set:
        for edge in graph.outgoing(source):
            if not edge.kind.is_runtime and edge.target not in source_set:
                touched.add(edge.target)
    return touched
