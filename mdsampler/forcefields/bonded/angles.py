"""Harmonic angle interaction."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ...units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS
from ..base import SpecificInteraction

if TYPE_CHECKING:
    from ...system import Box


class HarmonicAngle(SpecificInteraction):
    """
    Harmonic angle bending.

    V(theta) = 0.5 * k * (theta - theta0)^2

    where theta is the angle i-j-k (j is the central atom). Works in two
    or three dimensions.

    Attributes:
        groups: Angle atom triplets (i, j, k), shape (N_angles, 3).
        force_constants: Spring constants k, shape (N_angles,).
        equilibrium_angles: Equilibrium angles theta0 in radians, shape (N_angles,).
    """

    def __init__(
        self,
        angle_indices: ArrayLike,
        force_constants: ArrayLike,
        equilibrium_angles: ArrayLike,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
    ) -> None:
        self.groups = self._as_groups(angle_indices, 3)
        n_angles = len(self.groups)
        self.force_constants = self._broadcast(force_constants, n_angles, "force_constants")
        self.equilibrium_angles = self._broadcast(
            equilibrium_angles, n_angles, "equilibrium_angles"
        )
        self.force_units = force_units
        self.energy_units = energy_units

    def _geometry(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> tuple[NDArray[np.floating], ...]:
        angles = self.groups[rows]
        pos_i = coords[angles[:, 0]]
        pos_j = coords[angles[:, 1]]
        pos_k = coords[angles[:, 2]]

        # Vectors from central atom j
        r_ji = box.minimum_image(pos_j, pos_i)
        r_jk = box.minimum_image(pos_j, pos_k)
        d_ji = np.maximum(np.linalg.norm(r_ji, axis=1), 1e-10)
        d_jk = np.maximum(np.linalg.norm(r_jk, axis=1), 1e-10)

        cos_theta = np.clip(np.sum(r_ji * r_jk, axis=1) / (d_ji * d_jk), -1.0, 1.0)
        theta = np.arccos(cos_theta)
        return r_ji, r_jk, d_ji, d_jk, cos_theta, theta

    def group_forces(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> NDArray[np.floating]:
        r_ji, r_jk, d_ji, d_jk, cos_theta, theta = self._geometry(coords, box, rows)

        # dV/dtheta = k * (theta - theta0)
        torque = self.force_constants[rows] * (theta - self.equilibrium_angles[rows])
        sin_theta = np.maximum(np.sin(theta), 1e-10)
        factor = (-torque / sin_theta)[:, np.newaxis]

        r_ji_hat = r_ji / d_ji[:, np.newaxis]
        r_jk_hat = r_jk / d_jk[:, np.newaxis]
        cos_theta = cos_theta[:, np.newaxis]

        # Forces on the outer atoms lie in the i-j-k plane
        f_i = factor * (cos_theta * r_ji_hat - r_jk_hat) / d_ji[:, np.newaxis]
        f_k = factor * (cos_theta * r_jk_hat - r_ji_hat) / d_jk[:, np.newaxis]
        f_j = -(f_i + f_k)
        return np.stack([f_i, f_j, f_k], axis=1)

    def group_energies(
        self, coords: NDArray[np.floating], box: Box, rows: NDArray[np.integer]
    ) -> NDArray[np.floating]:
        theta = self._geometry(coords, box, rows)[-1]
        delta_theta = theta - self.equilibrium_angles[rows]
        return 0.5 * self.force_constants[rows] * delta_theta**2
