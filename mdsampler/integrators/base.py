"""Base interface for integrators."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ..errors import ConfigurationError
from ..parallel import default_n_threads

if TYPE_CHECKING:
    from ..neighborlists import NeighborList
    from ..system import System

SeedLike = int | np.random.Generator | None


@dataclass(frozen=True)
class Integrator(ABC):
    """
    Abstract base class for time integration algorithms.

    Integrators are immutable configurations. ``simulate`` advances the
    system in place; everything that changes during a run (positions,
    velocities, neighbor lists, thermostat variables) lives either in the
    system or in locals of the run, so one integrator can drive several
    systems concurrently.

    Attributes:
        dt: Integration timestep.
    """

    dt: float

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not (math.isfinite(self.dt) and self.dt > 0):
            raise ConfigurationError(f"dt must be positive and finite, got {self.dt}")

    @property
    def timestep(self) -> float:
        """Return the integration timestep."""
        return self.dt

    def simulate(
        self,
        system: System,
        n_steps: int,
        n_threads: int | None = None,
        rng: SeedLike = None,
    ) -> System:
        """
        Run the integrator for a number of steps.

        Reporters run at step 0 and after every step.

        Args:
            system: System to advance in place.
            n_steps: Number of steps.
            n_threads: Thread budget for force evaluation. Defaults to
                       ``default_n_threads()``.
            rng: Random generator or seed for stochastic integrators.

        Returns:
            The same system, advanced.
        """
        check_n_steps(n_steps)
        n_threads = resolve_n_threads(n_threads)
        self.run(system, n_steps, n_threads, np.random.default_rng(rng))
        return system

    @abstractmethod
    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        """Execute the step loop."""
        ...


def check_n_steps(n_steps: int) -> None:
    """Reject negative or non-integer step counts."""
    if isinstance(n_steps, bool) or not isinstance(n_steps, (int, np.integer)) or n_steps < 0:
        raise ConfigurationError(f"n_steps must be a non-negative integer, got {n_steps!r}")


def resolve_n_threads(n_threads: int | None) -> int:
    """Return a validated thread budget."""
    if n_threads is None:
        return default_n_threads()
    if n_threads < 1:
        raise ConfigurationError(f"n_threads must be positive, got {n_threads}")
    return int(n_threads)


def prepare(system: System, remove_cm_motion: bool) -> None:
    """Wrap coordinates and optionally remove center of mass motion."""
    system.wrap_coords()
    if remove_cm_motion:
        system.remove_cm_motion()


def refresh_neighbors(
    system: System,
    neighbors: NeighborList | None,
    step: int,
    n_steps: int,
) -> NeighborList | None:
    """Refresh the neighbor list between steps; no refresh after the last one."""
    if step == n_steps:
        return neighbors
    return system.find_neighbors(neighbors, step)
