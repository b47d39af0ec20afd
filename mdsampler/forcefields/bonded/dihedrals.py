"""Periodic torsion interaction."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ...units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS
from ..base import SpecificInteraction

if TYPE_CHECKING:
    from ...system import Box


class PeriodicTorsion(SpecificInteraction):
    """
    Periodic dihedral (torsion) potential.

    V(phi) = k * (1 + cos(n*phi - phase))

    where phi is the dihedral angle i-j-k-l (IUPAC sign convention).
    Three-dimensional systems only.

    Attributes:
        groups: Dihedral atom quads (i, j, k, l), shape (N_dihedrals, 4).
        force_constants: Force constants k, shape (N_dihedrals,).
        periodicities: Periodicity n, shape (N_dihedrals,).
        phases: Phase shifts in radians, shape (N_dihedrals,).
    """

    def __init__(
        self,
        dihedral_indices: ArrayLike,
        force_constants: ArrayLike,
        periodicities: ArrayLike,
        phases: ArrayLike,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
    ) -> None:
        """
        Initialize periodic torsions.

        Args:
            dihedral_indices: Dihedral atom quads (i, j, k, l), shape (N_dihedrals, 4).
            force_constants: Force constants, one per dihedral or a single value.
            periodicities: Integer periodicities, one per dihedral or a single value.
            phases: Phase shifts in radians, one per dihedral or a single value.
            force_units: Units of the returned forces.
            energy_units: Units of the returned energies.
        """
        self.groups = self._as_groups(dihedral_indices, 4)
        n_dihedrals = len(self.groups)
        self.force_constants = self._broadcast(
            force_constants, n_dihedrals, "force_constants"
        )
        self.periodicities = self._broadcast(periodicities, n_dihedrals, "periodicities")
        self.phases = self._broadcast(phases, n_dihedrals, "phases")
        self.force_units = force_units
        self.energy_units = energy_units

    def _geometry(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> tuple[NDArray[np.floating], ...]:
        if coords.shape[1] != 3:
            raise ValueError("PeriodicTorsion requires three-dimensional coordinates")

        quads = self.groups[rows]
        b1 = box.minimum_image(coords[quads[:, 0]], coords[quads[:, 1]])
        b2 = box.minimum_image(coords[quads[:, 1]], coords[quads[:, 2]])
        b3 = box.minimum_image(coords[quads[:, 2]], coords[quads[:, 3]])

        # Plane normals
        m = np.cross(b1, b2)
        n = np.cross(b2, b3)
        b2_norm = np.maximum(np.linalg.norm(b2, axis=1), 1e-10)

        phi = np.arctan2(b2_norm * np.sum(b1 * n, axis=1), np.sum(m * n, axis=1))
        return b1, b2, b3, m, n, b2_norm, phi

    def group_forces(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> NDArray[np.floating]:
        b1, b2, b3, m, n, b2_norm, phi = self._geometry(coords, box, rows)
        periodicity = self.periodicities[rows]

        # -dV/dphi
        torque = self.force_constants[rows] * periodicity * np.sin(
            periodicity * phi - self.phases[rows]
        )

        m_sq = np.maximum(np.sum(m * m, axis=1), 1e-20)
        n_sq = np.maximum(np.sum(n * n, axis=1), 1e-20)
        b2_sq = b2_norm**2

        # Gradients of phi with respect to the outer atoms
        dphi_i = -(b2_norm / m_sq)[:, np.newaxis] * m
        dphi_l = (b2_norm / n_sq)[:, np.newaxis] * n

        p = (np.sum(b1 * b2, axis=1) / b2_sq)[:, np.newaxis]
        q = (np.sum(b3 * b2, axis=1) / b2_sq)[:, np.newaxis]
        dphi_j = q * dphi_l - (p + 1.0) * dphi_i
        dphi_k = p * dphi_i - (q + 1.0) * dphi_l

        gradients = np.stack([dphi_i, dphi_j, dphi_k, dphi_l], axis=1)
        return torque[:, np.newaxis, np.newaxis] * gradients

    def group_energies(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> NDArray[np.floating]:
        phi = self._geometry(coords, box, rows)[-1]
        return self.force_constants[rows] * (
            1.0 + np.cos(self.periodicities[rows] * phi - self.phases[rows])
        )
