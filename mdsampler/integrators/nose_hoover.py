"""Nosé-Hoover thermostatted dynamics."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from ..errors import ConfigurationError
from .base import Integrator, prepare, refresh_neighbors
from .constraints import apply_constraints
from .coupling import Coupling, NoCoupling

if TYPE_CHECKING:
    from ..system import System


@dataclass(frozen=True)
class NoseHoover(Integrator):
    """
    Velocity Verlet with a single Nosé-Hoover friction variable zeta.

    Per step:
        v_half = v + dt/2 * (a - zeta * v)
        r <- r + dt * v_half
        zeta_half = zeta + dt/(2*tau^2) * (T(v)/T0 - 1)
        zeta <- zeta_half + dt/(2*tau^2) * (T(v_half)/T0 - 1)
        v <- (v_half + dt/2 * a(r)) / (1 + zeta * dt/2)

    Temperatures use D*N - D degrees of freedom. zeta starts at zero on
    every call to ``simulate`` and is not stored on the integrator.

    Attributes:
        dt: Integration timestep.
        temperature: Target temperature T0 in K.
        coupling: Additional coupling applied after every step.
        damping: Relaxation time tau. Defaults to 100 * dt.
        remove_cm_motion: Remove center of mass motion after every step.
    """

    temperature: float
    coupling: Coupling = field(default_factory=NoCoupling)
    damping: float | None = None
    remove_cm_motion: bool = True

    def __post_init__(self) -> None:
        super().__post_init__()
        if not (math.isfinite(self.temperature) and self.temperature > 0):
            raise ConfigurationError(
                f"temperature must be positive and finite, got {self.temperature}"
            )
        if self.damping is None:
            object.__setattr__(self, "damping", 100.0 * self.dt)
        elif not self.damping > 0:
            raise ConfigurationError(f"damping must be positive, got {self.damping}")

    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        dt = self.dt
        t0 = self.temperature
        zeta_rate = dt / (2.0 * self.damping**2)
        n_dof = system.n_dims * system.n_atoms - system.n_dims

        prepare(system, self.remove_cm_motion)
        neighbors = system.find_neighbors()
        system.run_reporters(neighbors, 0, n_threads=n_threads)
        accels = system.accelerations(neighbors, n_threads)
        zeta = 0.0

        for step in range(1, n_steps + 1):
            v_half = system.velocities + 0.5 * dt * (accels - zeta * system.velocities)

            old_coords = system.positions.copy()
            system.positions += dt * v_half
            apply_constraints(system, old_coords, dt)
            system.wrap_coords()

            zeta_half = zeta + zeta_rate * (system.temperature / t0 - 1.0)
            if n_dof > 0:
                ke_half = 0.5 * np.sum(system.masses[:, np.newaxis] * v_half**2)
                t_half = 2.0 * ke_half / (n_dof * system.k)
            else:
                t_half = 0.0
            zeta = zeta_half + zeta_rate * (t_half / t0 - 1.0)

            new_accels = system.accelerations(neighbors, n_threads)
            system.velocities = (v_half + 0.5 * dt * new_accels) / (1.0 + 0.5 * zeta * dt)

            if self.remove_cm_motion:
                system.remove_cm_motion()
            self.coupling.apply(system, self, step, rng)
            system.run_reporters(neighbors, step, n_threads=n_threads)

            neighbors = refresh_neighbors(system, neighbors, step, n_steps)
            accels = new_accels
