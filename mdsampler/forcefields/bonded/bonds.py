"""Harmonic bond interaction."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ...units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS
from ..base import SpecificInteraction

if TYPE_CHECKING:
    from ...system import Box


class HarmonicBond(SpecificInteraction):
    """
    Harmonic bond stretching.

    V(r) = 0.5 * k * (r - r0)^2

    Attributes:
        groups: Bond atom pairs, shape (N_bonds, 2).
        force_constants: Spring constants k, shape (N_bonds,).
        equilibrium_lengths: Equilibrium distances r0, shape (N_bonds,).
    """

    def __init__(
        self,
        bond_indices: ArrayLike,
        force_constants: ArrayLike,
        equilibrium_lengths: ArrayLike,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
    ) -> None:
        """
        Initialize harmonic bonds.

        Args:
            bond_indices: Bond atom pairs, shape (N_bonds, 2).
            force_constants: Spring constants, one per bond or a single value.
            equilibrium_lengths: Equilibrium distances, one per bond or a single value.
            force_units: Units of the returned forces.
            energy_units: Units of the returned energies.
        """
        self.groups = self._as_groups(bond_indices, 2)
        n_bonds = len(self.groups)
        self.force_constants = self._broadcast(force_constants, n_bonds, "force_constants")
        self.equilibrium_lengths = self._broadcast(
            equilibrium_lengths, n_bonds, "equilibrium_lengths"
        )
        self.force_units = force_units
        self.energy_units = energy_units

    def _geometry(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        bonds = self.groups[rows]
        dr = box.minimum_image(coords[bonds[:, 0]], coords[bonds[:, 1]])
        return dr, np.linalg.norm(dr, axis=1)

    def group_forces(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> NDArray[np.floating]:
        dr, r = self._geometry(coords, box, rows)
        r_safe = np.maximum(r, 1e-10)

        # Force on j from i: -k * (r - r0) * (r_j - r_i) / r
        force_mag = -self.force_constants[rows] * (r - self.equilibrium_lengths[rows])
        f_j = (force_mag / r_safe)[:, np.newaxis] * dr
        return np.stack([-f_j, f_j], axis=1)

    def group_energies(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> NDArray[np.floating]:
        _, r = self._geometry(coords, box, rows)
        delta_r = r - self.equilibrium_lengths[rows]
        return 0.5 * self.force_constants[rows] * delta_r**2
