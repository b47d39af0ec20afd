"""Backend dispatcher and thread-budget helpers."""

from __future__ import annotations

import os
from typing import Literal

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threads import ThreadBackend

# Environment variable overriding the default thread budget
NUM_THREADS_ENV = "MDSAMPLER_NUM_THREADS"

# Available backend types
BackendType = Literal["serial", "threads"]


def get_backend(
    backend: BackendType | ParallelBackend | None = None,
    n_workers: int | None = None,
) -> ParallelBackend:
    """
    Get a parallel backend instance.

    Args:
        backend: Backend selector. Can be:
            - None: serial when n_workers is 1 or None, threads otherwise
            - String: Create backend by name
            - ParallelBackend: Use provided instance directly
        n_workers: Number of workers for the threads backend.

    Returns:
        ParallelBackend instance.

    Examples:
        >>> backend = get_backend()  # Serial
        >>> backend = get_backend("threads", n_workers=4)
    """
    if isinstance(backend, ParallelBackend):
        return backend

    if backend is None:
        backend = "serial" if n_workers is None or n_workers <= 1 else "threads"

    if backend == "serial":
        return SerialBackend()
    elif backend == "threads":
        return ThreadBackend(n_workers)
    else:
        raise ValueError(f"Unknown backend: {backend}. Available: serial, threads")


def default_n_threads() -> int:
    """
    Return the default thread budget.

    Honours the MDSAMPLER_NUM_THREADS environment variable and otherwise
    uses the CPU count.
    """
    value = os.environ.get(NUM_THREADS_ENV)
    if value:
        n_threads = int(value)
        if n_threads < 1:
            raise ValueError(f"{NUM_THREADS_ENV} must be positive, got {value!r}")
        return n_threads
    return os.cpu_count() or 1


def equal_parts(n: int, k: int) -> list[int]:
    """
    Split n into k non-negative integers that sum to n and differ by at most one.

    The larger parts come first.

    Examples:
        >>> equal_parts(10, 4)
        [3, 3, 2, 2]
    """
    if k < 1:
        raise ValueError(f"Cannot split into {k} parts")
    base, remainder = divmod(n, k)
    return [base + 1 if i < remainder else base for i in range(k)]
