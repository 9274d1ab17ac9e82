"""Independent runs from several starting points."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from ..logging import get_logger
from .executor import Executor
from .result import OptimizationResult, best_result

logger = get_logger(__name__)


def run_multistart(
    executors: Sequence[Executor],
    max_workers: Optional[int] = None,
) -> List[OptimizationResult]:
    """
    Run independent executors and return their results in input order.

    Executors must not share solvers, problems or observers. With
    ``max_workers == 1`` they run sequentially in the calling thread;
    otherwise on a thread pool.

    Args:
        executors: Executors to run.
        max_workers: Thread pool size. None lets the pool decide.

    Returns:
        One result per executor.
    """
    executors = list(executors)
    if not executors:
        return []
    if max_workers is not None and max_workers < 1:
        raise ValueError("max_workers must be at least 1.")
    logger.info("Running %d starts", len(executors))
    if max_workers == 1 or len(executors) == 1:
        return [executor.run() for executor in executors]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda executor: executor.run(), executors))


__all__ = ["best_result", "run_multistart"]
