"""Thread pool backend."""

from __future__ import annotations

import os
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from .base import ParallelBackend


class ThreadBackend(ParallelBackend):
    """
    Shared-memory backend using a thread pool.

    numpy releases the GIL inside its kernels, so array-heavy work items
    (pair chunks, whole replica runs) overlap in practice. Each map call
    owns a fresh executor; leaving the call is the join point.
    """

    def __init__(self, n_workers: int | None = None) -> None:
        """
        Initialize thread backend.

        Args:
            n_workers: Number of worker threads. Defaults to CPU count.
        """
        if n_workers is not None and n_workers < 1:
            raise ValueError(f"n_workers must be positive, got {n_workers}")
        self._n_workers = n_workers or os.cpu_count() or 1

    @property
    def name(self) -> str:
        """Return backend name."""
        return "threads"

    @property
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        return self._n_workers

    def parallel_map(
        self,
        func: Callable[..., Any],
        items: Sequence[Any],
    ) -> list[Any]:
        """
        Apply function to items in parallel using a thread pool.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item, in input order.
        """
        if len(items) <= 1 or self._n_workers == 1:
            return [func(item) for item in items]

        with ThreadPoolExecutor(max_workers=min(self._n_workers, len(items))) as pool:
            futures = [pool.submit(func, item) for item in items]
        # Executor exit waits for every future
        return [future.result() for future in futures]
