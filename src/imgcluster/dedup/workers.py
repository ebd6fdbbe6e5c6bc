"""Fixed-size worker pools with static round-robin partitioning."""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional


def default_worker_count() -> int:
    """Detected hardware parallelism, never less than one."""
    return os.cpu_count() or 1


def resolve_worker_count(workers: Optional[int]) -> int:
    if workers is None:
        return default_worker_count()
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")
    return workers


def run_partitioned(worker: Callable[[int, int], None], worker_count: int) -> None:
    """
    Run ``worker(worker_id, worker_count)`` once per worker and wait for all of them.

    Each worker is expected to handle the items whose position satisfies
    ``position % worker_count == worker_id``. Returns only after every worker
    has finished; the first worker exception is re-raised here.

    Args:
        worker: Callable receiving (worker_id, worker_count)
        worker_count: Number of threads in the pool
    """
    if worker_count == 1:
        worker(0, 1)
        return

    with ThreadPoolExecutor(max_workers=worker_count) as executor:
        futures = [executor.submit(worker, worker_id, worker_count) for worker_id in range(worker_count)]
        # Join every worker before surfacing a failure.
        errors = []
        for future in futures:
            exc = future.exception()
            if exc is not None:
                errors.append(exc)

    if errors:
        raise errors[0]
