"""Constraints applied after position updates."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray

if TYPE_CHECKING:
    from ..system import System


class Constraint(ABC):
    """
    Abstract base class for constraints.

    A constraint corrects positions (and, if needed, velocities) after an
    integrator has moved the particles, using the coordinates from before
    the update as reference.
    """

    @abstractmethod
    def apply(
        self,
        system: System,
        old_coords: NDArray[np.floating],
        dt: float,
    ) -> None:
        """
        Enforce the constraint in place.

        Args:
            system: System whose positions were just updated.
            old_coords: Positions before the update, shape (N, D).
            dt: Timestep of the update.
        """
        ...


def apply_constraints(
    system: System,
    old_coords: NDArray[np.floating],
    dt: float,
) -> None:
    """Run every configured constraint in order; no-op when there are none."""
    for constraint in system.constraints:
        constraint.apply(system, old_coords, dt)


class FixedParticles(Constraint):
    """
    Pins particles to their pre-update coordinates.

    Pinned particles also have their velocities zeroed.

    Attributes:
        indices: Indices of the pinned particles.
    """

    def __init__(self, indices: ArrayLike) -> None:
        self.indices = np.unique(np.asarray(indices, dtype=np.intp))

    def apply(
        self,
        system: System,
        old_coords: NDArray[np.floating],
        dt: float,
    ) -> None:
        system.positions[self.indices] = old_coords[self.indices]
        system.velocities[self.indices] = 0.0
