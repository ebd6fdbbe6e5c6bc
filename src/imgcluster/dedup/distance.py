"""Distance metrics for fingerprint comparison."""

import imagehash


def hamming_distance(a: imagehash.ImageHash, b: imagehash.ImageHash) -> int:
    """
    Calculate Hamming distance between two perceptual hashes.

    Args:
        a: First hash
        b: Second hash

    Returns:
        Hamming distance (number of differing bits)

    Raises:
        TypeError: If the hashes have different sizes
    """
    if a.hash.shape != b.hash.shape:
        raise TypeError(f"cannot compare hashes of shape {a.hash.shape} and {b.hash.shape}")
    return a - b


def within_threshold(distance: float, threshold: float) -> bool:
    """Two fingerprints are similar when their distance does not exceed the threshold."""
    return distance <= threshold
