"""Bounded-concurrency dispatcher.

Runs zero-argument tasks on a worker pool with at most ``max_workers`` tasks
executing at any instant. Each running task holds one concurrency token
(a slot of a bounded semaphore) and releases it when it finishes, whether it
returned or raised.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class DispatchResult(Generic[T]):
    """Completion record for one submitted task."""
    index: int
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class DispatcherStats:
    """Counters for one dispatcher run."""
    submitted: int = 0
    completed: int = 0
    failed: int = 0
    active: int = 0
    peak_active: int = 0


class ConcurrencyDispatcher:
    """Runs tasks with a hard bound on concurrency.

    Guarantees:
    - At most ``max_workers`` tasks execute at once.
    - Every submitted task runs to completion; a task that raises is
      recorded as a failed DispatchResult, never dropped.
    - ``run()`` returns only after every task has completed.

    Tasks are submitted in order; completion order is unspecified. There is
    no cancellation and no per-task timeout, so a task that hangs keeps its
    slot until it returns.
    """

    def __init__(self, max_workers: int = 5, name: str = "extract"):
        """Initialize the dispatcher.

        Args:
            max_workers: Concurrency limit N (>= 1).
            name: Thread name prefix for worker threads.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._max_workers = max_workers
        self._name = name
        self._tokens = threading.BoundedSemaphore(max_workers)
        self._stats_lock = threading.Lock()
        self._callback_lock = threading.Lock()
        self._stats = DispatcherStats()

    @property
    def max_workers(self) -> int:
        return self._max_workers

    @property
    def stats(self) -> DispatcherStats:
        return self._stats

    def _enter(self) -> None:
        with self._stats_lock:
            self._stats.active += 1
            if self._stats.active > self._stats.peak_active:
                self._stats.peak_active = self._stats.active

    def _leave(self, failed: bool) -> None:
        with self._stats_lock:
            self._stats.active -= 1
            self._stats.completed += 1
            if failed:
                self._stats.failed += 1

    def _guarded(self, index: int, task: Callable[[], T]) -> DispatchResult[T]:
        """Run one task while holding a concurrency token."""
        with self._tokens:
            self._enter()
            failed = False
            try:
                return DispatchResult(index=index, value=task())
            except Exception as e:
                failed = True
                logger.warning(f"Task {index} raised {type(e).__name__}: {e}")
                return DispatchResult(index=index, error=e)
            finally:
                self._leave(failed)

    def run(
        self,
        tasks: Sequence[Callable[[], T]],
        on_complete: Optional[Callable[[DispatchResult[T]], Any]] = None,
    ) -> list[DispatchResult[T]]:
        """Run all tasks and wait for every one to finish.

        Args:
            tasks: Zero-argument callables, submitted in order.
            on_complete: Called once per completed task, one call at a time.

        Returns:
            Results in submission order.
        """
        self._stats = DispatcherStats(submitted=len(tasks))
        if not tasks:
            return []

        results: list[Optional[DispatchResult[T]]] = [None] * len(tasks)
        workers = min(self._max_workers, len(tasks))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=self._name) as executor:
            futures = {
                executor.submit(self._guarded, i, task): i
                for i, task in enumerate(tasks)
            }
            for future in as_completed(futures):
                result = future.result()
                results[result.index] = result
                if on_complete is not None:
                    with self._callback_lock:
                        try:
                            on_complete(result)
                        except Exception as e:
                            logger.error(f"Completion callback failed for task {result.index}: {e}")

        logger.debug(
            f"Dispatched {self._stats.submitted} tasks, "
            f"{self._stats.failed} failed, peak concurrency {self._stats.peak_active}"
        )
        return [r for r in results if r is not None]
