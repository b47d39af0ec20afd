"""Abstract base class for parallel backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray


class ParallelBackend(ABC):
    """
    Abstract base class for parallelization backends.

    All shared-memory fan-out goes through this interface, so force
    evaluation and replica execution can switch between serial and
    threaded execution without changing the calling code.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return backend name."""
        ...

    @property
    @abstractmethod
    def n_workers(self) -> int:
        """Return number of parallel workers."""
        ...

    @abstractmethod
    def parallel_map(
        self,
        func: Callable[..., Any],
        items: Sequence[Any],
    ) -> list[Any]:
        """
        Apply function to items, returning results in input order.

        The call returns only once every item has finished. The first
        exception raised by any item is re-raised after the join.

        Args:
            func: Function to apply.
            items: Items to process.

        Returns:
            Results for each item.
        """
        ...

    def partition(self, items: NDArray[Any]) -> list[NDArray[Any]]:
        """
        Split work items into at most n_workers contiguous chunks.

        Empty chunks are dropped.

        Args:
            items: Work items along the first axis.

        Returns:
            List of chunks.
        """
        n_chunks = max(1, min(self.n_workers, len(items)))
        return [chunk for chunk in np.array_split(items, n_chunks) if len(chunk)]

    def reduce_sum(
        self,
        arrays: Sequence[NDArray[np.floating]],
        initial: ArrayLike,
    ) -> NDArray[np.floating]:
        """
        Sum per-worker accumulators.

        Args:
            arrays: Accumulators of identical shape. May be empty.
            initial: Starting value, giving the result shape when no
                     accumulators are passed.

        Returns:
            Element-wise sum as a new float64 array.
        """
        total = np.array(initial, dtype=np.float64)
        for array in arrays:
            total += array
        return total
