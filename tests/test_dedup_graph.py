"""Tests for the shared similarity graph."""

import threading

import pytest
from hypothesis import given, strategies as st

from imgcluster.dedup.graph import GraphFrozenError, SimilarityGraph


edge_lists = st.lists(
    st.tuples(st.integers(0, 30), st.integers(0, 30)).filter(lambda e: e[0] != e[1]),
    max_size=60,
)


class TestSimilarityGraph:
    def test_empty_graph(self):
        graph = SimilarityGraph()
        assert len(graph) == 0
        assert graph.nodes() == []
        assert graph.edge_count == 0
        assert graph.neighbors(3) == frozenset()
        assert not graph.contains(3)

    def test_add_edge_is_symmetric(self):
        graph = SimilarityGraph()
        graph.add_edge(1, 4)

        assert graph.neighbors(1) == {4}
        assert graph.neighbors(4) == {1}
        assert 1 in graph and 4 in graph
        assert 2 not in graph

    def test_add_edge_is_idempotent(self):
        graph = SimilarityGraph()
        graph.add_edge(1, 2)
        graph.add_edge(2, 1)
        graph.add_edge(1, 2)

        assert graph.edge_count == 1
        assert graph.edges() == [(1, 2)]

    def test_self_loop_rejected(self):
        with pytest.raises(ValueError):
            SimilarityGraph().add_edge(3, 3)

    def test_frozen_graph_rejects_edges(self):
        graph = SimilarityGraph.from_edges([(0, 1)])
        assert graph.frozen

        with pytest.raises(GraphFrozenError):
            graph.add_edge(2, 3)
        assert graph.edges() == [(0, 1)]

    def test_nodes_are_sorted(self):
        graph = SimilarityGraph.from_edges([(9, 2), (5, 7)])
        assert graph.nodes() == [2, 5, 7, 9]

    def test_concurrent_inserts(self):
        """Edges added from many threads are all present exactly once."""
        graph = SimilarityGraph()
        edges = [(i, j) for i in range(40) for j in range(i + 1, 40) if (i + j) % 3 == 0]

        def insert(offset):
            for index in range(offset, len(edges), 4):
                graph.add_edge(*edges[index])
            # Re-adding existing edges races harmlessly
            for edge in edges[:20]:
                graph.add_edge(*edge)

        threads = [threading.Thread(target=insert, args=(offset,)) for offset in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert graph.edges() == sorted(edges)
        assert graph.edge_count == len(edges)

    @given(edges=edge_lists)
    def test_symmetry_invariant(self, edges):
        graph = SimilarityGraph.from_edges(edges)

        for i in graph.nodes():
            assert graph.neighbors(i), "only ids with neighbors are keys"
            for j in graph.neighbors(i):
                assert i in graph.neighbors(j)

        assert set(graph.edges()) == {(min(e), max(e)) for e in edges}
