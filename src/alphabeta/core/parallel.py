"""Fan-out of independent optimization trials onto a worker pool."""

import logging
from concurrent.futures import (
    Executor,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    as_completed,
)
from typing import Any, Callable, Iterable, List, Optional

import numpy as np

from alphabeta.config import EXECUTORS
from alphabeta.errors import InvalidInputError

logger = logging.getLogger(__name__)

# Failures contained to a single trial; anything else propagates.
TRIAL_ERRORS = (ArithmeticError, ValueError, np.linalg.LinAlgError)

ProgressHook = Callable[[], None]


def _make_executor(executor: str, max_workers: Optional[int]) -> Executor:
    if executor == "thread":
        return ThreadPoolExecutor(max_workers=max_workers)
    if executor == "process":
        return ProcessPoolExecutor(max_workers=max_workers)
    raise InvalidInputError(f"Unknown executor {executor!r}; choose from {EXECUTORS}")


def _call(func: Callable[[Any], Any], item: Any, idx: int) -> Any:
    try:
        return func(item)
    except TRIAL_ERRORS as exc:
        logger.warning(f"Task {idx} failed: {exc!r}")
        return None


def parallel_map(
    func: Callable[[Any], Any],
    items: Iterable[Any],
    max_workers: Optional[int] = None,
    executor: str = "thread",
    progress: Optional[ProgressHook] = None,
) -> List[Any]:
    """
    Apply func to every item on a worker pool.

    Results come back in submission order, so callers need no shared
    collector. A task failing with a numerical error yields None instead
    of aborting its siblings. The progress hook runs in the calling thread
    once per finished task.

    Args:
        func: Task function (must be picklable for the process executor)
        items: Task inputs
        max_workers: Pool size; 1 runs inline, None uses the pool default
        executor: "thread" or "process"
        progress: Optional hook called after every completed task

    Returns:
        One result (or None) per item
    """
    items_list = list(items)
    results: List[Any] = [None] * len(items_list)

    if max_workers == 1:
        for idx, item in enumerate(items_list):
            results[idx] = _call(func, item, idx)
            if progress is not None:
                progress()
        return results

    with _make_executor(executor, max_workers) as pool:
        future_map = {pool.submit(func, item): idx for idx, item in enumerate(items_list)}
        for fut in as_completed(future_map):
            idx = future_map[fut]
            try:
                results[idx] = fut.result()
            except TRIAL_ERRORS as exc:
                logger.warning(f"Task {idx} failed: {exc!r}")
                results[idx] = None
            if progress is not None:
                progress()
    return results
