"""Tests for parallel backends and thread budgets."""

import threading

import numpy as np
import pytest

from mdsampler.parallel import (
    SerialBackend,
    ThreadBackend,
    default_n_threads,
    equal_parts,
    get_backend,
)
from mdsampler.parallel.dispatcher import NUM_THREADS_ENV


class TestEqualParts:
    """Test thread budget splitting."""

    @pytest.mark.parametrize(
        "n, k, expected",
        [(10, 4, [3, 3, 2, 2]), (8, 3, [3, 3, 2]), (4, 4, [1, 1, 1, 1]), (2, 3, [1, 1, 0])],
    )
    def test_parts(self, n, k, expected):
        """Test sizes, order and total."""
        parts = equal_parts(n, k)
        assert parts == expected
        assert sum(parts) == n

    def test_invalid(self):
        """Test that zero parts is rejected."""
        with pytest.raises(ValueError):
            equal_parts(4, 0)


class TestDefaultThreads:
    """Test the default thread budget."""

    def test_environment_override(self, monkeypatch):
        """Test that the environment variable wins."""
        monkeypatch.setenv(NUM_THREADS_ENV, "3")
        assert default_n_threads() == 3

    def test_invalid_environment(self, monkeypatch):
        """Test that non-positive overrides are rejected."""
        monkeypatch.setenv(NUM_THREADS_ENV, "0")
        with pytest.raises(ValueError):
            default_n_threads()

    def test_cpu_count(self, monkeypatch):
        """Test the fallback to the CPU count."""
        monkeypatch.delenv(NUM_THREADS_ENV, raising=False)
        assert default_n_threads() >= 1


class TestBackends:
    """Test serial and thread backends."""

    def test_get_backend(self):
        """Test backend selection."""
        assert get_backend().name == "serial"
        assert get_backend(n_workers=1).name == "serial"
        assert get_backend(n_workers=4).name == "threads"
        assert get_backend("threads", n_workers=2).n_workers == 2

        backend = SerialBackend()
        assert get_backend(backend) is backend

        with pytest.raises(ValueError):
            get_backend("processes")

    def test_thread_map_preserves_order(self):
        """Test that results come back in input order."""
        backend = ThreadBackend(4)
        assert backend.parallel_map(lambda x: x * x, list(range(20))) == [
            x * x for x in range(20)
        ]

    def test_thread_map_runs_concurrently(self):
        """Test that items run on more than one thread."""
        barrier = threading.Barrier(2, timeout=5)
        names = []

        def work(item):
            barrier.wait()
            names.append(threading.current_thread().name)
            return item

        ThreadBackend(2).parallel_map(work, [0, 1])
        assert len(set(names)) == 2

    def test_thread_map_propagates_errors(self):
        """Test that worker exceptions reach the caller."""

        def work(item):
            if item == 2:
                raise KeyError(item)
            return item

        with pytest.raises(KeyError):
            ThreadBackend(3).parallel_map(work, [0, 1, 2, 3])

    def test_partition(self):
        """Test contiguous chunks without empties."""
        backend = ThreadBackend(4)
        chunks = backend.partition(np.arange(10))
        assert [len(chunk) for chunk in chunks] == [3, 3, 2, 2]
        assert len(backend.partition(np.arange(2))) == 2
        assert len(backend.partition(np.arange(0))) == 0

    def test_reduce_sum(self):
        """Test elementwise sum of accumulators."""
        backend = SerialBackend()
        arrays = [np.ones((2, 3)), 2 * np.ones((2, 3))]
        initial = np.zeros((2, 3))
        total = backend.reduce_sum(arrays, initial)
        assert np.allclose(total, 3.0)
        assert np.all(initial == 0.0)

    def test_reduce_sum_empty(self):
        """Test that no accumulators give the initial value."""
        total = ThreadBackend(2).reduce_sum([], np.zeros((4, 2)))
        assert total.shape == (4, 2)
        assert np.all(total == 0.0)
        assert float(SerialBackend().reduce_sum([], 0.0)) == 0.0

    def test_invalid_workers(self):
        """Test that worker counts must be positive."""
        with pytest.raises(ValueError):
            ThreadBackend(0)
