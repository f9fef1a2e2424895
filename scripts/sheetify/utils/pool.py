"""
Bounded thread pool that returns index-aligned results.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class TaskResult(Generic[R]):
    """Outcome of one pool task: a value or the exception the worker raised."""
    index: int
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BoundedPool:
    """
    Runs a worker over many inputs with at most ``limit`` in flight.

    A failing task is captured in its TaskResult and does not affect the
    others. Results come back sorted by task index, not completion order.
    """

    def __init__(self, limit: int, thread_name_prefix: str = "sheetify"):
        if limit < 1:
            raise ValueError(f"Concurrency limit must be positive, got {limit}")
        self.limit = limit
        self.thread_name_prefix = thread_name_prefix

    def run(self, tasks: Sequence[Tuple[int, T]], worker: Callable[[T], R],
            on_result: Optional[Callable[[TaskResult[R]], Any]] = None) -> List[TaskResult[R]]:
        """
        Execute ``worker`` for every task.

        Args:
            tasks: (index, input) pairs; indices must be unique
            worker: Callable applied to each input
            on_result: Called from the submitting thread as each task finishes

        Returns:
            One TaskResult per task, ordered by index
        """
        indices = [index for index, _ in tasks]
        if len(set(indices)) != len(indices):
            raise ValueError("Task indices must be unique")

        if not tasks:
            return []

        results: Dict[int, TaskResult[R]] = {}

        with ThreadPoolExecutor(max_workers=self.limit,
                                thread_name_prefix=self.thread_name_prefix) as executor:
            future_to_index = {
                executor.submit(worker, item): index for index, item in tasks
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                error = future.exception()
                if error is None:
                    result = TaskResult(index, value=future.result())
                else:
                    logger.debug(f"Task {index} failed: {error}")
                    result = TaskResult(index, error=error)

                results[index] = result
                if on_result is not None:
                    on_result(result)

        return [results[index] for index in sorted(results)]
