"""Perceptual near-duplicate image clustering."""

__version__ = "0.1.0"
