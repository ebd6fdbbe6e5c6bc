"""Perceptual similarity clustering engine."""

from .model import cluster_images, search_images, ClusteringResult
from .hash import (
    DecodeError,
    FingerprintRecord,
    HashComputationError,
    HashComputer,
    ImageRecord,
    PerceptualHasher,
    PillowDecoder,
    compute_fingerprint,
)
from .distance import hamming_distance
from .graph import GraphFrozenError, SimilarityGraph
from .compare import PairwiseComparator
from .cluster import ClusterBuilder, ImageCluster

__all__ = [
    "cluster_images",
    "search_images",
    "ClusteringResult",
    "DecodeError",
    "FingerprintRecord",
    "HashComputationError",
    "HashComputer",
    "ImageRecord",
    "PerceptualHasher",
    "PillowDecoder",
    "compute_fingerprint",
    "hamming_distance",
    "GraphFrozenError",
    "SimilarityGraph",
    "PairwiseComparator",
    "ClusterBuilder",
    "ImageCluster",
]
