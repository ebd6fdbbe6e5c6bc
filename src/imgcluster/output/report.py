"""
Report generation for clustering and search results.

Clusters can be rendered for people (one path per line under a header),
as one tab-delimited line per cluster for line-oriented viewers, or as a
JSON document.
"""

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..dedup.hash import ImageRecord
from ..dedup.model import ClusteringResult
from ..logging import get_logger

logger = get_logger(__name__)

REPORT_VERSION = "1.0"

# Separates member paths in the one-line format
CLUSTER_DELIMITER = "\t"


@dataclass(frozen=True)
class ClusterReport:
    """Clustering result resolved to file paths."""
    threshold: Optional[float]
    total_images: int
    clusters: List[List[str]]
    unique: List[str] = field(default_factory=list)
    unreadable: List[str] = field(default_factory=list)
    version: str = REPORT_VERSION
    generated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = asdict(self)
        result["summary"] = {
            "clusters": len(self.clusters),
            "clustered_images": sum(len(paths) for paths in self.clusters),
            "unique_images": len(self.unique),
            "unreadable_images": len(self.unreadable),
        }
        return result


def build_cluster_report(
    result: ClusteringResult,
    records: Sequence[ImageRecord],
    threshold: float,
) -> ClusterReport:
    """
    Resolve the ids of a clustering result to paths.

    Args:
        result: Output of cluster_images
        records: The records the result was computed from
        threshold: Threshold used for clustering

    Returns:
        ClusterReport with paths in id order
    """
    paths = {record.id: str(record.path) for record in records}

    return ClusterReport(
        threshold=threshold,
        total_images=len(records),
        clusters=[[paths[image_id] for image_id in cluster.image_ids] for cluster in result.clusters],
        unique=[paths[image_id] for image_id in result.unique_ids],
        unreadable=[paths[image_id] for image_id in result.unreadable_ids],
        generated_at=datetime.now().isoformat(timespec="seconds"),
    )


def format_clusters(report: ClusterReport, one_line: bool = False, show_unique: bool = False) -> List[str]:
    """
    Render the report as output lines.

    In one-line mode every cluster becomes a single line of tab-separated
    paths and each unique image (when requested) a line of its own.
    """
    lines: List[str] = []

    if one_line:
        lines.extend(CLUSTER_DELIMITER.join(paths) for paths in report.clusters)
        if show_unique:
            lines.extend(report.unique)
        return lines

    for index, paths in enumerate(report.clusters):
        lines.append(f"image cluster {index}:")
        lines.extend(paths)

    if show_unique:
        lines.append("unique images:")
        lines.extend(report.unique)

    return lines


def format_matches(matches: Iterable[ImageRecord]) -> List[str]:
    """One matching path per line."""
    return [str(record.path) for record in matches]


def parse_cluster_lines(lines: Iterable[str]) -> List[List[str]]:
    """Read clusters back from the one-line format, skipping empty lines."""
    clusters = []
    for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            continue
        clusters.append([path for path in line.split(CLUSTER_DELIMITER) if path])
    return clusters


def write_report_json(report: ClusterReport, report_path: Path) -> Path:
    """
    Write the report as JSON.

    Args:
        report: ClusterReport to write
        report_path: Destination file; parent directories are created

    Returns:
        Path to the written report file
    """
    report_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(report_path, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Wrote report to {report_path}")
        return report_path

    except OSError as exc:
        logger.error(f"Failed to write report to {report_path}: {exc}")
        raise


def load_report_json(report_path: Path) -> ClusterReport:
    """Load a report written by write_report_json."""
    with open(report_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    return ClusterReport(
        threshold=data["threshold"],
        total_images=data["total_images"],
        clusters=data["clusters"],
        unique=data.get("unique", []),
        unreadable=data.get("unreadable", []),
        version=data.get("version", REPORT_VERSION),
        generated_at=data.get("generated_at", ""),
    )


def load_cluster_lines(lines_path: Path) -> ClusterReport:
    """
    Load clusters saved from the one-line output.

    Single-path lines are the unique images printed with ``--unique``. The
    threshold is not part of that format and is left unset.
    """
    with open(lines_path, 'r', encoding='utf-8') as f:
        groups = parse_cluster_lines(f)

    return ClusterReport(
        threshold=None,
        total_images=sum(len(paths) for paths in groups),
        clusters=[paths for paths in groups if len(paths) > 1],
        unique=[paths[0] for paths in groups if len(paths) == 1],
    )
