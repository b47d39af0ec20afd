"""Shared test fixtures."""

import pytest


class FixedRandom:
    """Stand-in for a generator that returns preset uniform draws."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def random(self):
        value = self.values[self.calls]
        self.calls += 1
        return value


@pytest.fixture
def fixed_random():
    """Factory for generators returning preset uniform draws."""
    return FixedRandom
