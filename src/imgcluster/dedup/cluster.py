"""Clustering logic for grouping similar images."""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from ..logging import get_logger
from .graph import SimilarityGraph

logger = get_logger(__name__)


@dataclass(frozen=True)
class ImageCluster:
    """A connected component of the similarity graph."""
    index: int
    image_ids: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.image_ids)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self.image_ids


class _DisjointSet:
    """Union-find with union by rank and path compression."""

    def __init__(self) -> None:
        self._parent: Dict[int, int] = {}
        self._rank: Dict[int, int] = {}

    def add(self, x: int) -> None:
        if x not in self._parent:
            self._parent[x] = x
            self._rank[x] = 0

    def find(self, x: int) -> int:
        root = x
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[x] != root:
            self._parent[x], x = root, self._parent[x]
        return root

    def union(self, x: int, y: int) -> None:
        rx, ry = self.find(x), self.find(y)
        if rx == ry:
            return
        if self._rank[rx] < self._rank[ry]:
            rx, ry = ry, rx
        self._parent[ry] = rx
        if self._rank[rx] == self._rank[ry]:
            self._rank[rx] += 1

    def groups(self) -> List[List[int]]:
        members: Dict[int, List[int]] = defaultdict(list)
        for x in sorted(self._parent):
            members[self.find(x)].append(x)
        return list(members.values())


class ClusterBuilder:
    """Partitions a frozen similarity graph into its connected components."""

    def build(self, graph: SimilarityGraph) -> List[ImageCluster]:
        """
        Compute the connected components of the graph.

        Every keyed id lands in exactly one cluster. Clusters are ordered by
        their smallest member and list their ids in ascending order, so the
        result depends only on the graph, not on how it was built.

        Args:
            graph: Frozen similarity graph

        Returns:
            List of ImageCluster objects
        """
        if not graph.frozen:
            raise ValueError("similarity graph must be frozen before clustering")

        components = _DisjointSet()
        for node in graph.nodes():
            components.add(node)
        for i, j in graph.edges():
            components.union(i, j)

        # Members are collected in ascending order, so each group's first id is its minimum
        groups = sorted(components.groups(), key=lambda members: members[0])
        clusters = [ImageCluster(index=index, image_ids=tuple(members)) for index, members in enumerate(groups)]

        for cluster in clusters:
            logger.debug(f"Cluster {cluster.index}: {len(cluster)} images")
        logger.info(f"Built {len(clusters)} clusters covering {len(graph)} images")
        return clusters

    @staticmethod
    def unique_ids(valid_ids: Iterable[int], graph: SimilarityGraph) -> List[int]:
        """Valid ids with no similar partner, in ascending order."""
        return sorted(image_id for image_id in set(valid_ids) if image_id not in graph)
