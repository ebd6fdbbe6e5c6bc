"""Perceptual hash computation for image clustering."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, Sequence

import imagehash
from PIL import Image

from ..config import HASH_METHODS
from ..logging import get_logger
from .distance import hamming_distance
from .workers import resolve_worker_count, run_partitioned

logger = get_logger(__name__)

Fingerprint = Any

_HASH_FUNCTIONS: Dict[str, Callable[..., imagehash.ImageHash]] = {
    "phash": imagehash.phash,
    "dhash": imagehash.dhash,
    "ahash": imagehash.average_hash,
    "whash": imagehash.whash,
}


class DecodeError(Exception):
    """Raised when an image file cannot be decoded."""


class HashComputationError(Exception):
    """Raised when a fingerprint cannot be computed from a decoded image."""


@dataclass(frozen=True)
class ImageRecord:
    """A discovered image file and its dense integer handle."""
    id: int
    path: Path


@dataclass(frozen=True)
class FingerprintRecord:
    """Fingerprint of one image; ``fingerprint`` is None when the image was unreadable."""
    id: int
    fingerprint: Optional[Fingerprint] = None

    @property
    def readable(self) -> bool:
        return self.fingerprint is not None


class ImageDecoder(Protocol):
    def decode(self, path: Path) -> Any:
        ...


class Hasher(Protocol):
    def compute(self, image: Any) -> Fingerprint:
        ...

    def compare(self, a: Fingerprint, b: Fingerprint) -> float:
        ...


class PillowDecoder:
    """Decode image files with Pillow into fully loaded RGB images."""

    def decode(self, path: Path) -> Image.Image:
        try:
            with Image.open(path) as img:
                # Convert to RGB for consistent hashing across modes
                if img.mode != 'RGB':
                    return img.convert('RGB')
                img.load()
                return img.copy()
        except Exception as exc:
            raise DecodeError(f"Failed to decode {path}: {exc}") from exc


class PerceptualHasher:
    """
    Fingerprints images with one of the ``imagehash`` algorithms.

    Fingerprints are compared by Hamming distance, so the distance is a
    whole number of differing bits in ``[0, hash_size ** 2]``.
    """

    def __init__(self, method: str = "phash", hash_size: int = 8) -> None:
        if method not in HASH_METHODS:
            raise ValueError(f"unknown hash method {method!r}")
        self.method = method
        self.hash_size = hash_size
        self._hash_func = _HASH_FUNCTIONS[method]

    def compute(self, image: Image.Image) -> imagehash.ImageHash:
        try:
            return self._hash_func(image, hash_size=self.hash_size)
        except Exception as exc:
            raise HashComputationError(f"{self.method} failed: {exc}") from exc

    def compare(self, a: imagehash.ImageHash, b: imagehash.ImageHash) -> float:
        return float(hamming_distance(a, b))


def compute_fingerprint(
    image_path: Path,
    hasher: Optional[Hasher] = None,
    decoder: Optional[ImageDecoder] = None,
) -> Fingerprint:
    """
    Load image from disk and compute its fingerprint.

    Args:
        image_path: Path to image file
        hasher: Fingerprint algorithm (default: 8x8 pHash)
        decoder: Image decoder (default: Pillow)

    Returns:
        The computed fingerprint

    Raises:
        DecodeError: If the image cannot be loaded
        HashComputationError: If the fingerprint cannot be computed
    """
    hasher = hasher or PerceptualHasher()
    decoder = decoder or PillowDecoder()

    image = decoder.decode(image_path)
    fingerprint = hasher.compute(image)
    logger.debug(f"Computed fingerprint for {image_path}: {fingerprint}")
    return fingerprint


class HashComputer:
    """Fingerprints a sequence of images on a fixed pool of worker threads."""

    def __init__(
        self,
        hasher: Optional[Hasher] = None,
        decoder: Optional[ImageDecoder] = None,
        workers: Optional[int] = None,
    ) -> None:
        self.hasher = hasher or PerceptualHasher()
        self.decoder = decoder or PillowDecoder()
        self.workers = resolve_worker_count(workers)

    def compute(self, records: Sequence[ImageRecord]) -> Dict[int, FingerprintRecord]:
        """
        Fingerprint every record.

        Worker ``t`` handles the records at positions ``p`` with
        ``p % workers == t``. Decoding and hashing run outside the lock;
        only the insert into the shared mapping is guarded. Returns after
        all workers have joined.

        Args:
            records: Images to fingerprint, with unique ids

        Returns:
            Mapping of image id -> FingerprintRecord (unreadable images included)
        """
        ids = [record.id for record in records]
        if len(set(ids)) != len(ids):
            raise ValueError("image ids must be unique")

        fingerprints: Dict[int, FingerprintRecord] = {}
        if not records:
            return fingerprints

        lock = threading.Lock()

        def work(worker_id: int, worker_count: int) -> None:
            for position in range(worker_id, len(records), worker_count):
                record = records[position]
                fingerprint = self._fingerprint(record)
                with lock:
                    fingerprints[record.id] = FingerprintRecord(id=record.id, fingerprint=fingerprint)

        run_partitioned(work, min(self.workers, len(records)))

        unreadable = sum(1 for fp in fingerprints.values() if not fp.readable)
        logger.info(f"Fingerprinted {len(fingerprints) - unreadable} images, {unreadable} unreadable")
        return fingerprints

    def _fingerprint(self, record: ImageRecord) -> Optional[Fingerprint]:
        try:
            return compute_fingerprint(record.path, self.hasher, self.decoder)
        except (DecodeError, HashComputationError) as exc:
            logger.debug(f"Excluding image {record.id}: {exc}")
            return None
