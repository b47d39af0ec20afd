"""Lennard-Jones pair interaction."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ...units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS
from ..base import PairwiseInteraction


class LennardJones(PairwiseInteraction):
    """
    Lennard-Jones 12-6 potential.

    V(r) = 4 * epsilon * [(sigma/r)^12 - (sigma/r)^6]

    Pair parameters follow the Lorentz-Berthelot combining rules. Beyond the
    cutoff (if any) the interaction is zero.

    Attributes:
        epsilon: Well depth per atom type, shape (n_types,).
        sigma: Size parameter per atom type, shape (n_types,).
        atom_types: Atom type index for each atom, shape (N,), or None when
                    every atom has type 0.
        cutoff: Cutoff distance, or None.
    """

    def __init__(
        self,
        epsilon: ArrayLike,
        sigma: ArrayLike,
        atom_types: ArrayLike | None = None,
        cutoff: float | None = None,
        nl_only: bool = False,
        exclusions: Iterable[tuple[int, int]] | None = None,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
    ) -> None:
        """
        Initialize Lennard-Jones interaction.

        Args:
            epsilon: Well depth per atom type.
            sigma: Size parameter per atom type.
            atom_types: Atom type index for each atom.
            cutoff: Cutoff distance for interactions.
            nl_only: Only evaluate neighbor-list pairs.
            exclusions: Pairs never evaluated.
            force_units: Units of the returned forces.
            energy_units: Units of the returned energies.
        """
        self.epsilon = np.atleast_1d(np.asarray(epsilon, dtype=np.float64))
        self.sigma = np.atleast_1d(np.asarray(sigma, dtype=np.float64))
        self.atom_types = (
            None if atom_types is None else np.asarray(atom_types, dtype=np.intp)
        )
        self.cutoff = cutoff
        self.nl_only = nl_only
        self.set_exclusions(exclusions)
        self.force_units = force_units
        self.energy_units = energy_units

        if len(self.epsilon) != len(self.sigma):
            raise ValueError(
                f"epsilon length {len(self.epsilon)} != sigma length {len(self.sigma)}"
            )

    def _pair_params(
        self, i: NDArray[np.integer], j: NDArray[np.integer]
    ) -> tuple[NDArray[np.floating], NDArray[np.floating]]:
        """Lorentz-Berthelot epsilon_ij and sigma_ij for each pair."""
        if self.atom_types is None:
            type_i = np.zeros(len(i), dtype=np.intp)
            type_j = type_i
        else:
            type_i = self.atom_types[i]
            type_j = self.atom_types[j]

        epsilon_ij = np.sqrt(self.epsilon[type_i] * self.epsilon[type_j])
        sigma_ij = 0.5 * (self.sigma[type_i] + self.sigma[type_j])
        return epsilon_ij, sigma_ij

    def _terms(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> tuple[NDArray[np.floating], ...]:
        epsilon_ij, sigma_ij = self._pair_params(i, j)
        r = np.maximum(np.linalg.norm(dr, axis=1), 1e-10)
        sig_over_r_6 = (sigma_ij / r) ** 6
        sig_over_r_12 = sig_over_r_6**2
        if self.cutoff is None:
            within = np.ones(len(r), dtype=bool)
        else:
            within = r < self.cutoff
        return epsilon_ij, r, sig_over_r_6, sig_over_r_12, within

    def pair_forces(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        epsilon_ij, r, sr6, sr12, within = self._terms(dr, i, j)

        # F = -dV/dr = 24 * epsilon * [2*(sigma/r)^12 - (sigma/r)^6] / r
        force_mag = np.where(within, 24.0 * epsilon_ij * (2.0 * sr12 - sr6) / r, 0.0)
        return (force_mag / r)[:, np.newaxis] * dr

    def pair_energies(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        epsilon_ij, _, sr6, sr12, within = self._terms(dr, i, j)
        return np.where(within, 4.0 * epsilon_ij * (sr12 - sr6), 0.0)
