"""Metropolis Monte Carlo sampling."""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

import numpy as np
from numpy.typing import NDArray

from ..errors import ConfigurationError
from .base import SeedLike, check_n_steps, resolve_n_threads

if TYPE_CHECKING:
    from ..system import System


class UniformSource(Protocol):
    """Anything that draws uniform numbers in [0, 1)."""

    def random(self) -> float: ...


def metropolis_accept(delta: float, rng: UniformSource) -> bool:
    """
    Metropolis acceptance test.

    Accepts with probability min(1, exp(-delta)). No random number is drawn
    when delta <= 0.

    Args:
        delta: Reduced energy change (or exchange exponent).
        rng: Source of uniform random numbers.
    """
    if delta <= 0:
        return True
    return bool(rng.random() < math.exp(-delta))


def random_unit_vector(n_dims: int, rng: np.random.Generator) -> NDArray[np.floating]:
    """Draw a direction uniformly on the unit sphere in n_dims dimensions."""
    while True:
        vector = rng.standard_normal(n_dims)
        norm = np.linalg.norm(vector)
        if norm > 0:
            return vector / norm


def random_uniform_translation(
    system: System,
    shift_size: float = 1.0,
    rng: np.random.Generator | None = None,
) -> None:
    """
    Move one random atom in a random direction by a uniform distance.

    The distance is drawn from [0, shift_size). Coordinates are wrapped
    afterwards.
    """
    if rng is None:
        rng = np.random.default_rng()
    index = rng.integers(system.n_atoms)
    direction = random_unit_vector(system.n_dims, rng)
    system.positions[index] += rng.random() * shift_size * direction
    system.wrap_coords()


def random_normal_translation(
    system: System,
    shift_size: float = 1.0,
    rng: np.random.Generator | None = None,
) -> None:
    """
    Move one random atom in a random direction by a Gaussian distance.

    The signed distance is normal with standard deviation shift_size.
    Coordinates are wrapped afterwards.
    """
    if rng is None:
        rng = np.random.default_rng()
    index = rng.integers(system.n_atoms)
    direction = random_unit_vector(system.n_dims, rng)
    system.positions[index] += rng.standard_normal() * shift_size * direction
    system.wrap_coords()


TrialMove = Callable[..., None]


@dataclass(frozen=True)
class MetropolisMonteCarlo:
    """
    Metropolis Monte Carlo sampler.

    Each step snapshots the coordinates, applies the trial move, and
    accepts the result with probability min(1, exp(-dE/kT)). Rejected moves
    restore the snapshot exactly. Reporters receive ``success`` and
    ``energy_rate`` (energy over kT of the retained configuration) after
    every step.

    Attributes:
        temperature: Sampling temperature in K.
        trial_moves: Callable ``trial_moves(system, rng=..., **trial_args)``
            that perturbs the system in place.
        trial_args: Extra keyword arguments for the trial move.
    """

    temperature: float
    trial_moves: TrialMove
    trial_args: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not (math.isfinite(self.temperature) and self.temperature > 0):
            raise ConfigurationError(
                f"temperature must be positive and finite, got {self.temperature}"
            )
        if not callable(self.trial_moves):
            raise ConfigurationError("trial_moves must be callable")

    def simulate(
        self,
        system: System,
        n_steps: int,
        n_threads: int | None = None,
        rng: SeedLike = None,
        log_states: bool = True,
    ) -> System:
        """
        Run the sampler for a number of trial moves.

        Args:
            system: System to sample in place.
            n_steps: Number of trial moves.
            n_threads: Thread budget for energy evaluation.
            rng: Random generator or seed used for trial moves and acceptance.
            log_states: Run reporters after every step.

        Returns:
            The same system.
        """
        check_n_steps(n_steps)
        n_threads = resolve_n_threads(n_threads)
        rng = np.random.default_rng(rng)
        kt = system.k * self.temperature

        neighbors = system.find_neighbors()
        energy_old = system.potential_energy(neighbors, n_threads)

        for step in range(1, n_steps + 1):
            coords_old = system.positions.copy()
            neighbors_old = neighbors

            self.trial_moves(system, rng=rng, **self.trial_args)
            neighbors = system.find_neighbors()
            energy_new = system.potential_energy(neighbors, n_threads)
            delta = (energy_new - energy_old) / kt

            if metropolis_accept(delta, rng):
                energy_old = energy_new
                success = True
            else:
                system.positions = coords_old
                neighbors = neighbors_old
                success = False

            if log_states:
                system.run_reporters(
                    neighbors,
                    step,
                    n_threads=n_threads,
                    success=success,
                    energy_rate=energy_old / kt,
                )

        return system
