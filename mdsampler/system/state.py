"""Particle state representation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..units import K_BOLTZMANN
from .box import Box


@dataclass
class ParticleState:
    """
    Positions, velocities and masses of a fixed set of particles.

    This is a pure data container. Integrators mutate the arrays in place
    (or rebind them on this object) for the lifetime of a simulation; the
    particle count and dimensionality never change once a run starts.

    Attributes:
        positions: Particle positions, shape (N, D).
        velocities: Particle velocities, shape (N, D).
        masses: Particle masses, shape (N,).
        box: Simulation boundary.
    """

    positions: NDArray[np.floating]
    velocities: NDArray[np.floating]
    masses: NDArray[np.floating]
    box: Box

    def __post_init__(self) -> None:
        """Validate and convert arrays."""
        self.positions = np.array(self.positions, dtype=np.float64)
        self.velocities = np.array(self.velocities, dtype=np.float64)
        self.masses = np.array(self.masses, dtype=np.float64)

        n_atoms = len(self.masses)
        n_dims = self.box.n_dims
        if self.positions.shape != (n_atoms, n_dims):
            raise ValueError(
                f"positions shape {self.positions.shape} incompatible with "
                f"{n_atoms} atoms in {n_dims} dimensions"
            )
        if self.velocities.shape != (n_atoms, n_dims):
            raise ValueError(
                f"velocities shape {self.velocities.shape} incompatible with "
                f"{n_atoms} atoms in {n_dims} dimensions"
            )
        if np.any(self.masses <= 0):
            raise ValueError("masses must be positive")

    @property
    def n_atoms(self) -> int:
        """Return number of atoms."""
        return len(self.masses)

    @property
    def n_dims(self) -> int:
        """Return number of spatial dimensions."""
        return self.box.n_dims

    @classmethod
    def create(
        cls,
        positions: ArrayLike,
        masses: ArrayLike,
        box: Box,
        velocities: ArrayLike | None = None,
    ) -> ParticleState:
        """
        Create a ParticleState, defaulting velocities to zero.

        Args:
            positions: Particle positions, shape (N, D).
            masses: Particle masses, shape (N,).
            box: Simulation boundary.
            velocities: Particle velocities, shape (N, D). Defaults to zeros.

        Returns:
            New ParticleState instance.
        """
        positions = np.asarray(positions, dtype=np.float64)
        if velocities is None:
            velocities = np.zeros_like(positions)

        return cls(positions=positions, velocities=velocities, masses=masses, box=box)

    def copy(self) -> ParticleState:
        """Create a deep copy of this state."""
        return ParticleState(
            positions=self.positions.copy(),
            velocities=self.velocities.copy(),
            masses=self.masses.copy(),
            box=self.box,  # Box is immutable
        )

    @property
    def kinetic_energy(self) -> float:
        """Compute total kinetic energy: sum(0.5 * m * v^2)."""
        return float(0.5 * np.sum(self.masses[:, np.newaxis] * self.velocities**2))

    @property
    def n_degrees_of_freedom(self) -> int:
        """Degrees of freedom with center of mass motion removed."""
        return self.n_dims * self.n_atoms - self.n_dims

    def temperature(self, k: float = K_BOLTZMANN) -> float:
        """
        Compute instantaneous temperature from kinetic energy.

        Uses T = 2 * KE / (N_dof * k_B) where N_dof = D*N - D.
        Returns 0 if N <= 1.

        Args:
            k: Boltzmann constant in the energy units of the system.
        """
        if self.n_atoms <= 1:
            return 0.0
        return 2.0 * self.kinetic_energy / (self.n_degrees_of_freedom * k)

    @property
    def momentum(self) -> NDArray[np.floating]:
        """Compute total linear momentum."""
        return np.sum(self.masses[:, np.newaxis] * self.velocities, axis=0)

    @property
    def center_of_mass(self) -> NDArray[np.floating]:
        """Compute center of mass position."""
        total_mass = np.sum(self.masses)
        return np.sum(self.masses[:, np.newaxis] * self.positions, axis=0) / total_mass

    @property
    def center_of_mass_velocity(self) -> NDArray[np.floating]:
        """Compute center of mass velocity."""
        return self.momentum / np.sum(self.masses)

    def remove_center_of_mass_motion(self) -> None:
        """Subtract the mass-weighted mean velocity from every particle."""
        self.velocities -= self.center_of_mass_velocity


def maxwell_boltzmann_velocities(
    masses: ArrayLike,
    temperature: float,
    k: float = K_BOLTZMANN,
    n_dims: int = 3,
    rng: np.random.Generator | None = None,
) -> NDArray[np.floating]:
    """
    Draw velocities from the Maxwell-Boltzmann distribution.

    Each component is Gaussian with standard deviation sqrt(kT/m).

    Args:
        masses: Particle masses, shape (N,).
        temperature: Temperature in K.
        k: Boltzmann constant in the energy units of the system.
        n_dims: Number of spatial dimensions.
        rng: Random generator. Defaults to a fresh unseeded generator.

    Returns:
        Velocities array of shape (N, n_dims).
    """
    if rng is None:
        rng = np.random.default_rng()
    masses = np.asarray(masses, dtype=np.float64)
    sigma = np.sqrt(k * temperature / masses)
    return rng.standard_normal((len(masses), n_dims)) * sigma[:, np.newaxis]
