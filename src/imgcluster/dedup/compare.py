"""Pairwise fingerprint comparison."""

from typing import List, Mapping, Optional, Set, Tuple

from ..logging import get_logger
from .distance import within_threshold
from .graph import SimilarityGraph
from .hash import Fingerprint, FingerprintRecord, Hasher, PerceptualHasher
from .workers import resolve_worker_count, run_partitioned

logger = get_logger(__name__)


def _valid_items(fingerprints: Mapping[int, FingerprintRecord]) -> List[Tuple[int, Fingerprint]]:
    return [
        (image_id, fingerprints[image_id].fingerprint)
        for image_id in sorted(fingerprints)
        if fingerprints[image_id].readable
    ]


class PairwiseComparator:
    """Finds every pair of fingerprints within a distance threshold."""

    def __init__(self, hasher: Optional[Hasher] = None, workers: Optional[int] = None) -> None:
        self.hasher = hasher or PerceptualHasher()
        self.workers = resolve_worker_count(workers)

    def compare_all(
        self,
        fingerprints: Mapping[int, FingerprintRecord],
        threshold: float,
        graph: Optional[SimilarityGraph] = None,
    ) -> SimilarityGraph:
        """
        Compare every valid fingerprint against every other one.

        Worker ``t`` owns the outer positions ``i`` with ``i % workers == t``
        and compares each against all later positions, so every unordered
        pair is compared exactly once. Unreadable records are skipped.

        Args:
            fingerprints: Mapping of image id -> FingerprintRecord
            threshold: Maximum distance for an edge
            graph: Graph to fill (a new one by default); it is not frozen here

        Returns:
            The graph with an edge for every similar pair
        """
        graph = graph if graph is not None else SimilarityGraph()
        items = _valid_items(fingerprints)
        if len(items) < 2:
            return graph

        compare = self.hasher.compare

        def work(worker_id: int, worker_count: int) -> None:
            for i in range(worker_id, len(items), worker_count):
                id_i, fp_i = items[i]
                for j in range(i + 1, len(items)):
                    id_j, fp_j = items[j]
                    distance = compare(fp_i, fp_j)
                    if within_threshold(distance, threshold):
                        graph.add_edge(id_i, id_j)
                        logger.debug(f"Linked {id_i} and {id_j} (distance: {distance})")

        run_partitioned(work, min(self.workers, len(items)))

        logger.info(f"Compared {len(items)} fingerprints, found {graph.edge_count} similar pairs")
        return graph

    def compare_cross(
        self,
        haystack: Mapping[int, FingerprintRecord],
        search: Mapping[int, FingerprintRecord],
        threshold: float,
    ) -> Set[int]:
        """
        Compare a haystack against a small search set, sequentially.

        Args:
            haystack: Fingerprints to search in
            search: Fingerprints to search for
            threshold: Maximum distance for a match

        Returns:
            Ids of haystack images within threshold of at least one search image
        """
        needles = [fp for _, fp in _valid_items(search)]
        matches: Set[int] = set()
        if not needles:
            return matches

        for image_id, fingerprint in _valid_items(haystack):
            if any(within_threshold(self.hasher.compare(fingerprint, needle), threshold) for needle in needles):
                matches.add(image_id)

        logger.info(f"Searched {len(haystack)} images for {len(needles)} fingerprints, {len(matches)} matches")
        return matches
