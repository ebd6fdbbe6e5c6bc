from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, TextIO

from .config import STDIN_TARGET
from .dedup.hash import ImageRecord
from .logging import get_logger

logger = get_logger(__name__)


class TargetNotFoundError(OSError):
    """Raised when the target location does not exist or is not a directory."""


def list_directory(root: Path | str, recursive: bool = False) -> List[Path]:
    """List the regular files below ``root`` in sorted order."""
    root = Path(root)
    if not root.exists():
        raise TargetNotFoundError(f"Couldn't open {root}: no such directory")
    if not root.is_dir():
        raise TargetNotFoundError(f"Couldn't open {root}: not a directory")

    candidates = root.rglob("*") if recursive else root.iterdir()
    return sorted(path for path in candidates if path.is_file())


def read_path_list(stream: TextIO) -> List[Path]:
    """Read one path per line, ignoring blank lines."""
    paths = []
    for line in stream:
        line = line.rstrip("\r\n")
        if line.strip():
            paths.append(Path(line))
    return paths


def enumerate_images(paths: Iterable[Path | str]) -> List[ImageRecord]:
    """Assign dense ids (0..n-1) to paths in the given order."""
    return [ImageRecord(id=index, path=Path(path)) for index, path in enumerate(paths)]


def collect_images(target: str, recursive: bool, stdin: TextIO) -> List[ImageRecord]:
    """
    Build the image list for a target.

    Args:
        target: Directory to scan, or '-' to read the path list from ``stdin``
        recursive: Whether to descend into subdirectories
        stdin: Stream used when the target is '-'

    Returns:
        ImageRecord list with dense ids

    Raises:
        TargetNotFoundError: If the directory does not exist
    """
    if target == STDIN_TARGET:
        paths = read_path_list(stdin)
    else:
        paths = list_directory(target, recursive=recursive)

    logger.debug(f"File list created, {len(paths)} files")
    return enumerate_images(paths)
