"""Reference graph building."""

from __future__ import annotations

import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from fileprune.analysis.classifier import BindingClassifier
from fileprune.analysis.resolver import ModuleResolver
from fileprune.errors import GraphFrozenError, SourceReadError
from fileprune.frontend.protocol import SyntaxProvider
from fileprune.models.dependency import Edge, ModuleStatement, ReferenceKind
from fileprune.models.results import PossibleWaste

logger = logging.getLogger(__name__)


@dataclass
class ReferenceGraph:
    """Files and the merged, kind-tagged references between them."""

    nodes: set[Path] = field(default_factory=set)

    # source -> target -> edge
    edges: dict[Path, dict[Path, Edge]] = field(default_factory=lambda: defaultdict(dict))

    frozen: bool = False

    def add_node(self, path: Path) -> None:
        self._check_mutable()
        self.nodes.add(path)

    def add_edge(self, edge: Edge) -> None:
        """Add an edge, merging with any existing edge on the same pair."""
        self._check_mutable()
        self.nodes.add(edge.source)
        outgoing = self.edges[edge.source]
        existing = self.edge(edge.source, edge.target)
        outgoing[edge.target] = edge if existing is None else existing.merged(edge)

    def merge(self, other: ReferenceGraph) -> None:
        """Fold another (partial) graph into this one."""
        self._check_mutable()
        self.nodes |= other.nodes
        for outgoing in other.edges.values():
            for edge in outgoing.values():
                self.add_edge(edge)

    def freeze(self) -> ReferenceGraph:
        self.frozen = True
        return self

    def _check_mutable(self) -> None:
        if self.frozen:
            raise GraphFrozenError("Reference graph is frozen")

    def outgoing(self, path: Path) -> list[Edge]:
        return list(self.edges.get(path, {}).values())

    def edge(self, source: Path, target: Path) -> Edge | None:
        return self.edges.get(source, {}).get(target)

    def referenced_by(self, path: Path) -> list[Edge]:
        """Edges from other files into ``path``."""
        return [
            outgoing[path]
            for outgoing in self.edges.values()
            if path in outgoing and not outgoing[path].is_self
        ]

    def to_dict(self, files: Iterable[Path] | None = None) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        reverse: dict[Path, list[dict]] = defaultdict(list)
        for source, outgoing in self.edges.items():
            for edge in outgoing.values():
                reverse[edge.target].append(
                    {"source": str(source), "kind": edge.kind.name.lower()}
                )

        selected = sorted(files if files is not None else self.nodes, key=str)
        return {
            str(path): {
                "references": [
                    e.to_dict() for e in sorted(self.outgoing(path), key=lambda e: str(e.target))
                ],
                "referenced_by": sorted(reverse.get(path, []), key=lambda r: r["source"]),
            }
            for path in selected
        }


@dataclass
class BuildResult:
    """A frozen graph plus what was noticed while building it."""

    graph: ReferenceGraph
    unresolved: dict[Path, list[str]] = field(default_factory=dict)
    possible_waste: list[PossibleWaste] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    failed_files: dict[Path, str] = field(default_factory=dict)

    @property
    def unresolved_count(self) -> int:
        return sum(len(specs) for specs in self.unresolved.values())


@dataclass
class _FileOutcome:
    path: Path
    graph: ReferenceGraph = field(default_factory=ReferenceGraph)
    unresolved: list[str] = field(default_factory=list)
    possible_waste: list[PossibleWaste] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str | None = None


class GraphBuilder:
    """Builds the reference graph from discovered files."""

    def __init__(
        self,
        resolver: ModuleResolver,
        provider: SyntaxProvider,
        classifier: BindingClassifier | None = None,
    ) -> None:
        self.resolver = resolver
        self.provider = provider
        self.classifier = classifier or BindingClassifier(provider)

    def build(self, files: list[Path], workers: int = 1) -> BuildResult:
        """Build and freeze the graph for ``files``.

        With ``workers > 1`` files are classified on a thread pool; partial
        results are merged afterwards on the calling thread.
        """
        if workers > 1 and len(files) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                outcomes = list(pool.map(self.build_file, files))
        else:
            outcomes = [self.build_file(f) for f in files]

        graph = ReferenceGraph()
        result = BuildResult(graph=graph)
        for outcome in outcomes:
            graph.merge(outcome.graph)
            if outcome.unresolved:
                result.unresolved[outcome.path] = outcome.unresolved
            result.possible_waste.extend(outcome.possible_waste)
            result.warnings.extend(outcome.warnings)
            if outcome.error:
                result.failed_files[outcome.path] = outcome.error

        graph.freeze()
        logger.info(
            "Built reference graph: %d files, %d edges, %d unresolved specifiers",
            len(graph.nodes),
            sum(len(out) for out in graph.edges.values()),
            result.unresolved_count,
        )
        return result

    def build_file(self, path: Path) -> _FileOutcome:
        """Resolve and classify the statements of a single file."""
        outcome = _FileOutcome(path=path)
        outcome.graph.add_node(path)
        try:
            statements = self.provider.statements(path)
        except SourceReadError as e:
            logger.warning("Skipping unreadable file %s: %s", path, e.reason)
            outcome.error = e.reason
            outcome.warnings.append(str(e))
            return outcome

        resolved: list[tuple[ModuleStatement, Path]] = []
        for statement in statements:
            target = self.resolver.resolve(statement.specifier, path)
            if target is None:
                outcome.unresolved.append(statement.specifier)
                continue
            resolved.append((statement, target))

        try:
            classification = self.classifier.classify_file(path, resolved)
        except SourceReadError as e:
            logger.warning("Could not analyze usages in %s: %s", path, e.reason)
            outcome.error = e.reason
            outcome.warnings.append(str(e))
            # Without usage information every resolved target counts as used
            for statement, target in resolved:
                outcome.graph.add_edge(Edge(path, target, ReferenceKind.VALUE, [statement.line]))
            return outcome

        for contribution in classification.contributions:
            outcome.graph.add_edge(
                Edge(path, contribution.target, contribution.kind, [contribution.line])
            )

        outcome.possible_waste = classification.possible_waste
        outcome.warnings.extend(classification.warnings)
        return outcome
