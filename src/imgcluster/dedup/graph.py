"""Symmetric adjacency structure shared by the comparison workers."""

import threading
from typing import Dict, FrozenSet, Iterable, List, Set, Tuple


class GraphFrozenError(RuntimeError):
    """Raised when an edge is added to a frozen graph."""


class SimilarityGraph:
    """
    Undirected graph over image ids with an edge per similar pair.

    Edges may be added concurrently until ``freeze()`` is called; afterwards
    the graph is read-only. Only ids with at least one neighbor are keys.
    """

    def __init__(self) -> None:
        self._adjacency: Dict[int, Set[int]] = {}
        self._lock = threading.Lock()
        self._frozen = False

    @classmethod
    def from_edges(cls, edges: Iterable[Tuple[int, int]]) -> "SimilarityGraph":
        graph = cls()
        for i, j in edges:
            graph.add_edge(i, j)
        return graph.freeze()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def add_edge(self, i: int, j: int) -> None:
        """Insert the edge i-j in both directions. Adding an existing edge is a no-op."""
        if i == j:
            raise ValueError(f"self-loop on image {i}")

        with self._lock:
            if self._frozen:
                raise GraphFrozenError("cannot add edges to a frozen similarity graph")
            self._adjacency.setdefault(i, set()).add(j)
            self._adjacency.setdefault(j, set()).add(i)

    def freeze(self) -> "SimilarityGraph":
        with self._lock:
            self._frozen = True
        return self

    def neighbors(self, i: int) -> FrozenSet[int]:
        return frozenset(self._adjacency.get(i, ()))

    def contains(self, i: int) -> bool:
        return i in self._adjacency

    def __contains__(self, i: object) -> bool:
        return i in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def nodes(self) -> List[int]:
        """Keyed ids in ascending order."""
        return sorted(self._adjacency)

    def edges(self) -> List[Tuple[int, int]]:
        """Each undirected edge once, as (smaller, larger), in ascending order."""
        return sorted(
            (i, j)
            for i, neighbors in self._adjacency.items()
            for j in neighbors
            if i < j
        )

    @property
    def edge_count(self) -> int:
        return sum(len(neighbors) for neighbors in self._adjacency.values()) // 2
