"""Energy minimization."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ..errors import ConfigurationError
from .base import resolve_n_threads

if TYPE_CHECKING:
    from ..system import System

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SteepestDescentMinimizer:
    """
    Steepest descent minimization with an adaptive step size.

    Each step moves every atom along its force, scaled so the atom with
    the largest force moves by the current step size h:

        r <- r + h * F / max|F|

    A lower energy is accepted and h grows by 6/5; otherwise the
    coordinates and neighbor list are restored and h shrinks by a factor
    of 5. Stops when max|F| falls below tol or after max_steps steps.

    Attributes:
        step_size: Initial step size h.
        max_steps: Maximum number of steps.
        tol: Force tolerance for convergence.
        run_reporters: Run reporters at step 0 and after every step.
    """

    step_size: float = 0.01
    max_steps: int = 1000
    tol: float = 1000.0
    run_reporters: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not (math.isfinite(self.step_size) and self.step_size > 0):
            raise ConfigurationError(f"step_size must be positive, got {self.step_size}")
        if self.max_steps < 0:
            raise ConfigurationError(f"max_steps must be non-negative, got {self.max_steps}")
        if self.tol < 0:
            raise ConfigurationError(f"tol must be non-negative, got {self.tol}")

    def simulate(self, system: System, n_threads: int | None = None) -> System:
        """
        Minimize the potential energy of the system in place.

        Args:
            system: System to minimize.
            n_threads: Thread budget for force evaluation.

        Returns:
            The same system, minimized.
        """
        n_threads = resolve_n_threads(n_threads)
        system.wrap_coords()
        neighbors = system.find_neighbors()
        if self.run_reporters:
            system.run_reporters(neighbors, 0, n_threads=n_threads)

        energy = system.potential_energy(neighbors, n_threads)
        step_size = self.step_size

        for step in range(1, self.max_steps + 1):
            forces = system.forces(neighbors, n_threads)
            max_force = float(np.max(np.linalg.norm(forces, axis=1), initial=0.0))
            if max_force == 0.0:
                logger.info("Step %d - max force is zero, stopping", step)
                break

            coords_copy = system.positions.copy()
            neighbors_copy = neighbors
            system.positions = system.positions + step_size * forces / max_force
            system.wrap_coords()
            neighbors = system.find_neighbors(neighbors, step)
            energy_trial = system.potential_energy(neighbors, n_threads)

            if energy_trial < energy:
                step_size *= 6 / 5
                energy = energy_trial
                logger.info(
                    "Step %d - potential energy %.6g - max force %.6g - accepted",
                    step,
                    energy_trial,
                    max_force,
                )
            else:
                system.positions = coords_copy
                neighbors = neighbors_copy
                step_size /= 5
                logger.info(
                    "Step %d - potential energy %.6g - max force %.6g - rejected",
                    step,
                    energy_trial,
                    max_force,
                )

            if self.run_reporters:
                system.run_reporters(neighbors, step, n_threads=n_threads)

            if max_force < self.tol:
                break

        return system
