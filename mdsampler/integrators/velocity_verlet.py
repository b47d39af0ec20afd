"""Verlet-family integrators: velocity Verlet, leapfrog and Störmer-Verlet."""

from __future__ import annotations

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
class VelocityVerlet(Integrator):
    """
    Velocity Verlet integrator.

    The standard symplectic integrator for molecular dynamics with
    excellent energy conservation and time-reversibility. One force
    evaluation per step; accelerations carry over between steps.

    Algorithm:
        r(t + dt) = r(t) + dt * v(t) + 0.5 * dt^2 * a(t)
        v(t + dt) = v(t) + 0.5 * dt * (a(t) + a(t + dt))

    Attributes:
        dt: Integration timestep.
        coupling: Coupling applied after every step.
        remove_cm_motion: Remove center of mass motion after every step.
    """

    coupling: Coupling = field(default_factory=NoCoupling)
    remove_cm_motion: bool = True

    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        dt = self.dt
        prepare(system, self.remove_cm_motion)
        neighbors = system.find_neighbors()
        system.run_reporters(neighbors, 0, n_threads=n_threads)
        accels = system.accelerations(neighbors, n_threads)

        for step in range(1, n_steps + 1):
            old_coords = system.positions.copy()
            system.positions += system.velocities * dt + 0.5 * accels * dt**2
            apply_constraints(system, old_coords, dt)
            system.wrap_coords()

            new_accels = system.accelerations(neighbors, n_threads)
            system.velocities += 0.5 * (accels + new_accels) * dt

            if self.remove_cm_motion:
                system.remove_cm_motion()
            self.coupling.apply(system, self, step, rng)
            system.run_reporters(neighbors, step, n_threads=n_threads)

            neighbors = refresh_neighbors(system, neighbors, step, n_steps)
            accels = new_accels


@dataclass(frozen=True)
class Verlet(Integrator):
    """
    Leapfrog Verlet integrator.

    Velocities are kicked before positions drift, so stored velocities lag
    the positions by half a step:

        v(t + dt/2) = v(t - dt/2) + dt * a(t)
        r(t + dt) = r(t) + dt * v(t + dt/2)

    Attributes:
        dt: Integration timestep.
        coupling: Coupling applied after every step.
        remove_cm_motion: Remove center of mass motion after every step.
    """

    coupling: Coupling = field(default_factory=NoCoupling)
    remove_cm_motion: bool = True

    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        dt = self.dt
        prepare(system, self.remove_cm_motion)
        neighbors = system.find_neighbors()
        system.run_reporters(neighbors, 0, n_threads=n_threads)

        for step in range(1, n_steps + 1):
            accels = system.accelerations(neighbors, n_threads)
            system.velocities += accels * dt

            old_coords = system.positions.copy()
            system.positions += system.velocities * dt
            apply_constraints(system, old_coords, dt)
            system.wrap_coords()

            if self.remove_cm_motion:
                system.remove_cm_motion()
            self.coupling.apply(system, self, step, rng)
            system.run_reporters(neighbors, step, n_threads=n_threads)

            neighbors = refresh_neighbors(system, neighbors, step, n_steps)


@dataclass(frozen=True)
class StormerVerlet(Integrator):
    """
    Störmer-Verlet position recurrence.

        r(t + dt) = r(t) + [r(t) - r(t - dt)] + dt^2 * a(t)

    The first step has no previous positions and uses the velocity Verlet
    position update instead. Velocities are derived as the minimum image
    displacement over one step divided by dt, so they are only first-order
    accurate and anything that modifies velocities would be ignored by the
    recurrence; only ``NoCoupling`` is accepted. Center of mass motion is
    not removed.

    Attributes:
        dt: Integration timestep.
        coupling: Must be ``NoCoupling``.
    """

    coupling: Coupling = field(default_factory=NoCoupling)

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.coupling.alters_velocities:
            raise ConfigurationError(
                "StormerVerlet derives velocities from positions and cannot be "
                f"used with {type(self.coupling).__name__}"
            )

    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        dt = self.dt
        system.wrap_coords()
        neighbors = system.find_neighbors()
        system.run_reporters(neighbors, 0, n_threads=n_threads)
        coords_last = None

        for step in range(1, n_steps + 1):
            accels = system.accelerations(neighbors, n_threads)
            coords_copy = system.positions.copy()
            if coords_last is None:
                system.positions += system.velocities * dt + 0.5 * accels * dt**2
            else:
                system.positions += (
                    system.box.minimum_image(coords_last, system.positions)
                    + accels * dt**2
                )
            apply_constraints(system, coords_copy, dt)
            system.wrap_coords()

            system.velocities = system.box.minimum_image(coords_copy, system.positions) / dt

            self.coupling.apply(system, self, step, rng)
            system.run_reporters(neighbors, step, n_threads=n_threads)

            neighbors = refresh_neighbors(system, neighbors, step, n_steps)
            coords_last = coords_copy
