"""Couplings (thermostats) applied once per step after the main update."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from ..errors import ConfigurationError
from ..system import maxwell_boltzmann_velocities

if TYPE_CHECKING:
    from ..system import System
    from .base import Integrator


class Coupling(ABC):
    """
    Abstract base class for couplings.

    Couplings modify the system in place after the integrator's update for
    a step and before reporters run.
    """

    @abstractmethod
    def apply(
        self,
        system: System,
        integrator: Integrator,
        step: int,
        rng: np.random.Generator,
    ) -> None:
        """
        Apply the coupling.

        Args:
            system: System to modify.
            integrator: Integrator driving the run.
            step: Index of the step just completed.
            rng: Random generator of the run.
        """
        ...

    @property
    def alters_velocities(self) -> bool:
        """Whether the coupling changes velocities."""
        return True


class NoCoupling(Coupling):
    """Leaves the system untouched."""

    def apply(
        self,
        system: System,
        integrator: Integrator,
        step: int,
        rng: np.random.Generator,
    ) -> None:
        pass

    @property
    def alters_velocities(self) -> bool:
        return False

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NoCoupling)

    def __hash__(self) -> int:
        return hash(NoCoupling)

    def __repr__(self) -> str:
        return "NoCoupling()"


class AndersenThermostat(Coupling):
    """
    Andersen stochastic collision thermostat.

    Each particle collides with probability dt / coupling_const per step,
    and colliding particles draw fresh Maxwell-Boltzmann velocities.
    Produces the canonical ensemble but disrupts dynamics.

    Attributes:
        temperature: Target temperature in K.
        coupling_const: Mean time between collisions of one particle.
    """

    def __init__(self, temperature: float, coupling_const: float) -> None:
        if temperature < 0:
            raise ConfigurationError(f"temperature must be non-negative, got {temperature}")
        if coupling_const <= 0:
            raise ConfigurationError(
                f"coupling_const must be positive, got {coupling_const}"
            )
        self.temperature = temperature
        self.coupling_const = coupling_const

    def apply(
        self,
        system: System,
        integrator: Integrator,
        step: int,
        rng: np.random.Generator,
    ) -> None:
        collide = rng.random(system.n_atoms) < integrator.dt / self.coupling_const
        if not np.any(collide):
            return
        system.velocities[collide] = maxwell_boltzmann_velocities(
            system.masses[collide],
            self.temperature,
            k=system.k,
            n_dims=system.n_dims,
            rng=rng,
        )


class RescaleThermostat(Coupling):
    """
    Velocity rescaling thermostat.

    Every n_steps steps, rescales all velocities to match the target
    temperature exactly. Useful for equilibration, not for sampling.
    """

    def __init__(self, temperature: float, n_steps: int = 1) -> None:
        if temperature < 0:
            raise ConfigurationError(f"temperature must be non-negative, got {temperature}")
        if n_steps < 1:
            raise ConfigurationError(f"n_steps must be at least 1, got {n_steps}")
        self.temperature = temperature
        self.n_steps = n_steps

    def apply(
        self,
        system: System,
        integrator: Integrator,
        step: int,
        rng: np.random.Generator,
    ) -> None:
        if step % self.n_steps != 0:
            return
        current = system.temperature
        if current < 1e-10:
            # Can't rescale from zero temperature
            return
        system.velocities *= np.sqrt(self.temperature / current)


class BerendsenThermostat(Coupling):
    """
    Berendsen weak-coupling thermostat.

    Scales velocities toward the target temperature with a characteristic
    relaxation time:

        lambda^2 = 1 + dt/tau * (T_target/T - 1)

    Does not produce the canonical ensemble.
    """

    def __init__(self, temperature: float, coupling_const: float, n_steps: int = 1) -> None:
        if temperature < 0:
            raise ConfigurationError(f"temperature must be non-negative, got {temperature}")
        if coupling_const <= 0:
            raise ConfigurationError(
                f"coupling_const must be positive, got {coupling_const}"
            )
        if n_steps < 1:
            raise ConfigurationError(f"n_steps must be at least 1, got {n_steps}")
        self.temperature = temperature
        self.coupling_const = coupling_const
        self.n_steps = n_steps

    def apply(
        self,
        system: System,
        integrator: Integrator,
        step: int,
        rng: np.random.Generator,
    ) -> None:
        if step % self.n_steps != 0:
            return
        current = system.temperature
        if current < 1e-10:
            return
        scale_sq = 1.0 + (integrator.dt * self.n_steps / self.coupling_const) * (
            self.temperature / current - 1.0
        )
        system.velocities *= np.sqrt(max(scale_sq, 0.0))
