"""Shared-memory parallelization for force evaluation and replica runs."""

from .backends.base import ParallelBackend
from .backends.serial import SerialBackend
from .backends.threads import ThreadBackend
from .dispatcher import default_n_threads, equal_parts, get_backend

__all__ = [
    "ParallelBackend",
    "SerialBackend",
    "ThreadBackend",
    "default_n_threads",
    "equal_parts",
    "get_backend",
]
