"""Tests for reachability analysis functionality."""

from pathlib import Path

from fileprune.analysis.graph import ReferenceGraph
from fileprune.analysis.reachability import follows, reach, type_only_touched
from fileprune.models.config import InclusionPolicy
from fileprune.models.dependency import Edge, ReferenceKind

A, B, C, D = (Path(f"/p/{n}.ts") for n in "abcd")


def make_graph(*edges: tuple[Path, Path, ReferenceKind]) -> ReferenceGraph:
    """Helper to create a frozen graph from (source, target, kind) triples."""
    graph = ReferenceGraph()
    for source, target, kind in edges:
        graph.add_edge(Edge(source, target, kind, [1]))
    return graph.freeze()


class TestFollows:
    def test_runtime_kinds_always_followed(self):
        for kind in (ReferenceKind.VALUE, ReferenceKind.SIDE_EFFECT, ReferenceKind.NAMESPACE):
            edge = Edge(A, B, kind)
            assert follows(edge, InclusionPolicy())
            assert follows(edge, InclusionPolicy.strict())

    def test_type_only_follows_policy(self):
        edge = Edge(A, B, ReferenceKind.TYPE_ONLY)
        assert follows(edge, InclusionPolicy())
        assert not follows(edge, InclusionPolicy.strict())


class TestReach:
    """Tests for graph traversal."""

    def test_entries_always_reachable(self):
        graph = make_graph()

        assert reach(graph, [A], InclusionPolicy()) == {A}

    def test_transitive_value_chain(self):
        graph = make_graph(
            (A, B, ReferenceKind.VALUE),
            (B, C, ReferenceKind.NAMESPACE),
        )

        assert reach(graph, [A], InclusionPolicy.strict()) == {A, B, C}

    def test_cycle_terminates(self):
        graph = make_graph(
            (A, B, ReferenceKind.VALUE),
            (B, A, ReferenceKind.VALUE),
        )

        assert reach(graph, [A], InclusionPolicy()) == {A, B}

    def test_side_effect_target_reachable_under_strict(self):
        graph = make_graph((A, B, ReferenceKind.SIDE_EFFECT))

        assert B in reach(graph, [A], InclusionPolicy.strict())

    def test_type_only_edge_followed_by_default(self):
        graph = make_graph(
            (A, B, ReferenceKind.TYPE_ONLY),
            (B, C, ReferenceKind.VALUE),
        )

        assert reach(graph, [A], InclusionPolicy()) == {A, B, C}

    def test_type_only_edge_not_followed_when_strict(self):
        graph = make_graph(
            (A, B, ReferenceKind.TYPE_ONLY),
            (B, C, ReferenceKind.VALUE),
        )

        assert reach(graph, [A], InclusionPolicy.strict()) == {A}

    def test_self_edge_ignored(self):
        graph = make_graph((A, A, ReferenceKind.VALUE))

        assert reach(graph, [A], InclusionPolicy()) == {A}

    def test_unrelated_files_not_reached(self):
        graph = make_graph(
            (A, B, ReferenceKind.VALUE),
            (C, D, ReferenceKind.VALUE),
        )

        assert reach(graph, [A], InclusionPolicy()) == {A, B}


class TestTypeOnlyTouched:
    def test_targets_of_type_only_edges(self):
        graph = make_graph(
            (A, B, ReferenceKind.TYPE_ONLY),
            (A, C, ReferenceKind.VALUE),
            (D, C, ReferenceKind.TYPE_ONLY),
        )

        assert type_only_touched(graph, {A, C}) == {B}

    def test_sources_are_not_touched(self):
        graph = make_graph(
            (A, B, ReferenceKind.TYPE_ONLY),
            (A, B, ReferenceKind.VALUE),
            (B, A, ReferenceKind.TYPE_ONLY),
        )

        assert type_only_touched(graph, {A, B}) == set()
