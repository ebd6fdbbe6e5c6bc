import sys
from pathlib import Path
from typing import Callable, List, Optional

import typer

from .config import ConfigurationError, Settings, STDIN_TARGET, parse_threshold
from .dedup.hash import PerceptualHasher
from .dedup.model import cluster_images, search_images
from .logging import get_logger
from .output.report import (
    build_cluster_report,
    format_clusters,
    format_matches,
    load_cluster_lines,
    load_report_json,
    write_report_json,
)
from .sources import TargetNotFoundError, collect_images, enumerate_images

app = typer.Typer(help="imgcluster - find groups of similar images", no_args_is_help=True)

logger = get_logger(__name__)

THRESHOLD_HELP = "Maximum hash distance for two images to count as similar (default: 2.0)"


def _hasher_for(settings: Settings) -> PerceptualHasher:
    return PerceptualHasher(method=settings.hash_method, hash_size=settings.hash_size)


def _progress_for(settings: Settings) -> Optional[Callable[[str], None]]:
    # One-line output carries nothing but the clusters.
    if settings.one_line:
        return None
    return logger.info


@app.command()
def cluster(
    directory: Optional[str] = typer.Option(None, "--dir", "-d", help="Directory of images ('-' to read paths from stdin)"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Load images recursively"),
    threshold: Optional[str] = typer.Option(None, "--threshold", "-t", help=THRESHOLD_HELP),
    unique: bool = typer.Option(False, "--unique", "-u", help="Also list images without similar partners"),
    one_line: bool = typer.Option(False, "--one-line", "-l", help="Print each cluster on one tab-separated line and nothing else"),
    method: str = typer.Option("phash", help="Hash algorithm: phash, dhash, ahash or whash"),
    hash_size: int = typer.Option(8, help="Hash side length in bits"),
    workers: Optional[int] = typer.Option(None, help="Worker threads per phase (default: CPU count)"),
    json_report: Optional[Path] = typer.Option(None, "--json", help="Also write the clusters as a JSON report"),
) -> None:
    """
    Find groups of similar images.

    Images are linked when their hash distance is within the threshold;
    a cluster holds every image reachable through such links.
    """
    settings = Settings(
        target=directory,
        recursive=recursive,
        threshold=parse_threshold(threshold),
        report_unique=unique,
        one_line=one_line,
        hash_method=method,
        hash_size=hash_size,
        workers=workers,
    )

    try:
        settings.validate()
        records = collect_images(settings.target, settings.recursive, sys.stdin)
    except (ConfigurationError, TargetNotFoundError) as exc:
        logger.error(f"Error: {exc}")
        raise typer.Exit(code=1) from exc

    progress = _progress_for(settings)
    if progress is not None:
        progress(f"File list created, {len(records)} files")

    result = cluster_images(
        records,
        threshold=settings.threshold,
        hasher=_hasher_for(settings),
        workers=settings.workers,
        progress=progress,
    )
    report = build_cluster_report(result, records, settings.threshold)

    for line in format_clusters(report, one_line=settings.one_line, show_unique=settings.report_unique):
        typer.echo(line)

    if json_report is not None:
        try:
            write_report_json(report, json_report)
        except OSError as exc:
            raise typer.Exit(code=1) from exc


@app.command()
def search(
    files: List[Path] = typer.Argument(..., help="Images to search for"),
    threshold: Optional[str] = typer.Option(None, "--threshold", "-t", help=THRESHOLD_HELP),
    method: str = typer.Option("phash", help="Hash algorithm: phash, dhash, ahash or whash"),
    hash_size: int = typer.Option(8, help="Hash side length in bits"),
    workers: Optional[int] = typer.Option(None, help="Worker threads for hashing (default: CPU count)"),
) -> None:
    """
    Search for images similar to FILES.

    The filenames to search in are read from stdin, one per line. Matching
    filenames are printed one per line.
    """
    settings = Settings(
        target=STDIN_TARGET,
        threshold=parse_threshold(threshold),
        hash_method=method,
        hash_size=hash_size,
        workers=workers,
    )

    try:
        settings.validate()
    except ConfigurationError as exc:
        logger.error(f"Error: {exc}")
        raise typer.Exit(code=1) from exc

    haystack = collect_images(settings.target, recursive=False, stdin=sys.stdin)
    matches = search_images(
        enumerate_images(files),
        haystack,
        threshold=settings.threshold,
        hasher=_hasher_for(settings),
        workers=settings.workers,
    )

    for line in format_matches(matches):
        typer.echo(line)


@app.command()
def show(
    report_file: Path = typer.Argument(..., help="JSON report (--json) or saved one-line output (-l)"),
    unique: bool = typer.Option(False, "--unique", "-u", help="Also list images without similar partners"),
    one_line: bool = typer.Option(False, "--one-line", "-l", help="Print each cluster on one tab-separated line"),
) -> None:
    """
    Print clusters saved by an earlier run of the cluster command.
    """
    try:
        if report_file.suffix.lower() == ".json":
            report = load_report_json(report_file)
        else:
            report = load_cluster_lines(report_file)
    except (OSError, ValueError, KeyError) as exc:
        logger.error(f"Error: cannot read {report_file}: {exc}")
        raise typer.Exit(code=1) from exc

    for line in format_clusters(report, one_line=one_line, show_unique=unique):
        typer.echo(line)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
