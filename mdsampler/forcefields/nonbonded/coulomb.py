"""Coulomb electrostatic pair interaction."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ...units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS
from ..base import PairwiseInteraction

# Coulomb constant in MD units (kJ*nm / (mol*e^2))
COULOMB_CONSTANT = 138.935458


class Coulomb(PairwiseInteraction):
    """
    Direct Coulomb electrostatic interaction.

    V(r) = k_e * q_i * q_j / r

    A plain cutoff (if any) truncates the interaction; no reaction-field or
    Ewald correction is applied.

    Attributes:
        charges: Atomic charges, shape (N,).
        cutoff: Cutoff distance, or None.
        coulomb_constant: Coulomb constant in the interaction's units.
    """

    def __init__(
        self,
        charges: ArrayLike,
        cutoff: float | None = None,
        nl_only: bool = False,
        exclusions: Iterable[tuple[int, int]] | None = None,
        coulomb_constant: float = COULOMB_CONSTANT,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
    ) -> None:
        """
        Initialize Coulomb interaction.

        Args:
            charges: Atomic charges in elementary charge units, shape (N,).
            cutoff: Cutoff distance for interactions.
            nl_only: Only evaluate neighbor-list pairs.
            exclusions: Pairs never evaluated.
            coulomb_constant: Coulomb constant in appropriate units.
            force_units: Units of the returned forces.
            energy_units: Units of the returned energies.
        """
        self.charges = np.asarray(charges, dtype=np.float64)
        self.cutoff = cutoff
        self.nl_only = nl_only
        self.set_exclusions(exclusions)
        self.coulomb_constant = coulomb_constant
        self.force_units = force_units
        self.energy_units = energy_units

    def _within(self, r: NDArray[np.floating]) -> NDArray[np.bool_]:
        if self.cutoff is None:
            return np.ones(len(r), dtype=bool)
        return r < self.cutoff

    def pair_forces(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        r = np.maximum(np.linalg.norm(dr, axis=1), 1e-10)
        qq = self.charges[i] * self.charges[j]

        # Repulsive (pointing from i to j) for like charges
        force_mag = np.where(self._within(r), self.coulomb_constant * qq / r**2, 0.0)
        return (force_mag / r)[:, np.newaxis] * dr

    def pair_energies(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        r = np.maximum(np.linalg.norm(dr, axis=1), 1e-10)
        qq = self.charges[i] * self.charges[j]
        return np.where(self._within(r), self.coulomb_constant * qq / r, 0.0)
