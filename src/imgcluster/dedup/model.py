"""Public API for image clustering and point queries."""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..config import DEFAULT_THRESHOLD
from ..logging import get_logger
from .cluster import ClusterBuilder, ImageCluster
from .compare import PairwiseComparator
from .hash import HashComputer, Hasher, ImageDecoder, ImageRecord, PerceptualHasher

logger = get_logger(__name__)

ProgressCallback = Callable[[str], None]


def _report(progress: Optional[ProgressCallback], message: str) -> None:
    logger.info(message)
    if progress is not None:
        progress(message)


@dataclass(frozen=True)
class ClusteringResult:
    """Partition of the readable images into clusters and unique images."""
    clusters: List[ImageCluster] = field(default_factory=list)
    unique_ids: List[int] = field(default_factory=list)
    unreadable_ids: List[int] = field(default_factory=list)

    @property
    def clustered_ids(self) -> List[int]:
        return sorted(image_id for cluster in self.clusters for image_id in cluster.image_ids)


def cluster_images(
    records: Sequence[ImageRecord],
    threshold: float = DEFAULT_THRESHOLD,
    hasher: Optional[Hasher] = None,
    decoder: Optional[ImageDecoder] = None,
    workers: Optional[int] = None,
    progress: Optional[ProgressCallback] = None,
) -> ClusteringResult:
    """
    Group images into clusters of transitively similar images.

    Phases run strictly in sequence: fingerprinting, pairwise comparison,
    then clustering. Fingerprints are dropped before clustering starts.

    Args:
        records: Images to cluster
        threshold: Maximum fingerprint distance for two images to be linked
        hasher: Fingerprint algorithm (default: 8x8 pHash)
        decoder: Image decoder (default: Pillow)
        workers: Worker threads per phase (default: CPU count)
        progress: Called with a message as each phase completes

    Returns:
        ClusteringResult with clusters, unique images and unreadable images
    """
    if not records:
        _report(progress, "No images to cluster")
        return ClusteringResult()

    hasher = hasher or PerceptualHasher()

    fingerprints = HashComputer(hasher, decoder, workers).compute(records)
    _report(progress, "Finished hash calculations")

    valid_ids = [image_id for image_id, record in fingerprints.items() if record.readable]
    unreadable_ids = sorted(image_id for image_id, record in fingerprints.items() if not record.readable)

    graph = PairwiseComparator(hasher, workers).compare_all(fingerprints, threshold).freeze()
    del fingerprints
    _report(progress, "Adjacency lists created")

    builder = ClusterBuilder()
    clusters = builder.build(graph)
    unique_ids = builder.unique_ids(valid_ids, graph)

    _report(
        progress,
        f"Found {len(clusters)} clusters, {len(unique_ids)} unique images, "
        f"{len(unreadable_ids)} unreadable images",
    )
    return ClusteringResult(clusters=clusters, unique_ids=unique_ids, unreadable_ids=unreadable_ids)


def search_images(
    search_records: Sequence[ImageRecord],
    haystack_records: Sequence[ImageRecord],
    threshold: float = DEFAULT_THRESHOLD,
    hasher: Optional[Hasher] = None,
    decoder: Optional[ImageDecoder] = None,
    workers: Optional[int] = None,
) -> List[ImageRecord]:
    """
    Find haystack images similar to any image of a small search set.

    Args:
        search_records: Images to search for
        haystack_records: Images to search in
        threshold: Maximum fingerprint distance for a match
        hasher: Fingerprint algorithm (default: 8x8 pHash)
        decoder: Image decoder (default: Pillow)
        workers: Worker threads for fingerprinting the haystack (default: CPU count)

    Returns:
        Matching haystack records in ascending id order
    """
    if not search_records or not haystack_records:
        return []

    hasher = hasher or PerceptualHasher()

    search = HashComputer(hasher, decoder, workers=1).compute(search_records)
    if not any(record.readable for record in search.values()):
        logger.warning("None of the search images could be read")
        return []

    haystack = HashComputer(hasher, decoder, workers).compute(haystack_records)
    matches = PairwiseComparator(hasher, workers=1).compare_cross(haystack, search, threshold)

    return [record for record in sorted(haystack_records, key=lambda r: r.id) if record.id in matches]
