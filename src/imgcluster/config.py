from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .logging import get_logger

logger = get_logger(__name__)

# Maximum hash distance (in bits) at which two images count as similar.
# Shared by clustering and point queries.
DEFAULT_THRESHOLD = 2.0

HASH_METHODS = ("phash", "dhash", "ahash", "whash")

STDIN_TARGET = "-"


class ConfigurationError(Exception):
    """Raised when a required setting is missing or invalid."""


class ParseError(ValueError):
    """Raised when a threshold value cannot be interpreted."""


@dataclass
class Settings:
    target: Optional[str] = None
    recursive: bool = False
    threshold: float = DEFAULT_THRESHOLD
    report_unique: bool = False
    one_line: bool = False
    hash_method: str = "phash"
    hash_size: int = 8
    workers: Optional[int] = None

    @property
    def reads_stdin(self) -> bool:
        return self.target == STDIN_TARGET

    def validate(self) -> "Settings":
        """Check the settings and return them unchanged.

        Raises:
            ConfigurationError: If the target is missing or a value is out of range
        """
        if not self.target:
            raise ConfigurationError("missing target directory (use '-' to read paths from stdin)")
        if self.hash_method not in HASH_METHODS:
            raise ConfigurationError(
                f"unknown hash method {self.hash_method!r}, expected one of {', '.join(HASH_METHODS)}"
            )
        if self.hash_size < 2:
            raise ConfigurationError(f"hash size must be at least 2, got {self.hash_size}")
        if self.hash_method == "whash" and self.hash_size & (self.hash_size - 1):
            raise ConfigurationError(f"whash needs a power-of-two hash size, got {self.hash_size}")
        if self.workers is not None and self.workers < 1:
            raise ConfigurationError(f"worker count must be at least 1, got {self.workers}")
        if self.threshold < 0 or not math.isfinite(self.threshold):
            raise ConfigurationError(f"threshold must be a finite non-negative number, got {self.threshold}")
        return self


def _to_threshold(value: str) -> float:
    try:
        threshold = float(value)
    except ValueError as exc:
        raise ParseError(f"not a number: {value!r}") from exc

    if not math.isfinite(threshold) or threshold < 0:
        raise ParseError(f"threshold must be a finite non-negative number: {value!r}")
    return threshold


def parse_threshold(value: Optional[str], default: float = DEFAULT_THRESHOLD) -> float:
    """
    Interpret a user-supplied threshold.

    Invalid input is not fatal: a warning is logged and ``default`` is used.

    Args:
        value: Raw threshold text, or None when not given
        default: Value used when ``value`` is missing or invalid

    Returns:
        The parsed threshold
    """
    if value is None or not value.strip():
        return default

    try:
        return _to_threshold(value.strip())
    except ParseError as exc:
        logger.warning(f"Invalid threshold ({exc}), using default {default}")
        return default
