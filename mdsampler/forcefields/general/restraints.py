"""Position restraints acting on the whole system."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ...units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS
from ..base import GeneralInteraction

if TYPE_CHECKING:
    from ...system import Box


class HarmonicPositionRestraint(GeneralInteraction):
    """
    Harmonic tether of selected atoms to reference positions.

    V = sum_i 0.5 * k * |x_i - x_i^ref|^2

    Displacements use the minimum image convention.

    Attributes:
        reference_positions: Reference positions, shape (N, D).
        force_constant: Spring constant k.
        indices: Restrained atom indices; all atoms when None.
    """

    def __init__(
        self,
        reference_positions: ArrayLike,
        force_constant: float,
        indices: ArrayLike | None = None,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
    ) -> None:
        self.reference_positions = np.array(reference_positions, dtype=np.float64)
        self.force_constant = float(force_constant)
        self.indices = (
            np.arange(len(self.reference_positions))
            if indices is None
            else np.asarray(indices, dtype=np.intp)
        )
        self.force_units = force_units
        self.energy_units = energy_units

    def _displacements(
        self, coords: NDArray[np.floating], box: Box
    ) -> NDArray[np.floating]:
        return box.minimum_image(
            self.reference_positions[self.indices], coords[self.indices]
        )

    def forces(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: None = None,
    ) -> NDArray[np.floating]:
        forces = np.zeros_like(coords)
        forces[self.indices] = -self.force_constant * self._displacements(coords, box)
        return forces

    def potential_energy(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: None = None,
    ) -> float:
        dr = self._displacements(coords, box)
        return float(0.5 * self.force_constant * np.sum(dr**2))
