"""Langevin dynamics integrators."""

from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

import numpy as np

from ..errors import ConfigurationError
from ..system import maxwell_boltzmann_velocities
from .base import Integrator, prepare, refresh_neighbors
from .constraints import apply_constraints

if TYPE_CHECKING:
    from ..system import System

# Splittings whose last A comes after the last B leave stale forces at the
# start of the next step
_STALE_FORCES = re.compile(r"^.*B[^B]*A[^B]*$")


def _check_temperature(temperature: float) -> None:
    if not (math.isfinite(temperature) and temperature >= 0):
        raise ConfigurationError(
            f"temperature must be non-negative and finite, got {temperature}"
        )


def _check_friction(friction: float) -> None:
    if not (math.isfinite(friction) and friction >= 0):
        raise ConfigurationError(
            f"friction must be non-negative and finite, got {friction}"
        )


@dataclass(frozen=True)
class Langevin(Integrator):
    """
    Langevin integrator in leapfrog BAOA form.

    Each step applies a full velocity kick (B), half a drift (A), an
    Ornstein-Uhlenbeck velocity update (O) and the second half drift:

        v <- v + dt * a
        r <- r + dt/2 * v
        v <- exp(-gamma*dt) * v + sqrt(1 - exp(-2*gamma*dt)) * xi
        r <- r + dt/2 * v

    where xi is drawn from the Maxwell-Boltzmann distribution at the
    target temperature.

    Attributes:
        dt: Integration timestep.
        temperature: Target temperature in K.
        friction: Friction coefficient gamma (1/time).
        remove_cm_motion: Remove center of mass motion after every step.
    """

    temperature: float
    friction: float
    remove_cm_motion: bool = True

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_temperature(self.temperature)
        _check_friction(self.friction)

    @property
    def velocity_scale(self) -> float:
        """Velocity damping factor exp(-gamma*dt) of the O step."""
        return math.exp(-self.friction * self.dt)

    @property
    def noise_scale(self) -> float:
        """Noise weight sqrt(1 - exp(-2*gamma*dt)) of the O step."""
        return math.sqrt(1.0 - self.velocity_scale**2)

    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        dt = self.dt
        vel_scale = self.velocity_scale
        noise_scale = self.noise_scale

        prepare(system, self.remove_cm_motion)
        neighbors = system.find_neighbors()
        system.run_reporters(neighbors, 0, n_threads=n_threads)

        for step in range(1, n_steps + 1):
            accels = system.accelerations(neighbors, n_threads)
            system.velocities += accels * dt

            old_coords = system.positions.copy()
            system.positions += 0.5 * dt * system.velocities

            noise = maxwell_boltzmann_velocities(
                system.masses, self.temperature, k=system.k, n_dims=system.n_dims, rng=rng
            )
            system.velocities = system.velocities * vel_scale + noise * noise_scale

            system.positions += 0.5 * dt * system.velocities
            apply_constraints(system, old_coords, dt)
            system.wrap_coords()

            if self.remove_cm_motion:
                system.remove_cm_motion()
            system.run_reporters(neighbors, step, n_threads=n_threads)

            neighbors = refresh_neighbors(system, neighbors, step, n_steps)


class SplittingOperation(NamedTuple):
    """
    One operator of a compiled Langevin splitting.

    Attributes:
        op: Operator letter, one of "A" (drift), "B" (kick), "O" (thermostat).
        dt: Effective timestep, dt divided by the count of this letter.
        recompute_forces: For "B", whether accelerations must be refreshed
            first because positions moved since the last evaluation.
    """

    op: str
    dt: float
    recompute_forces: bool


def compile_splitting(splitting: str, dt: float) -> tuple[SplittingOperation, ...]:
    """
    Compile a splitting string into a sequence of operations.

    Accelerations from the last B of one step carry into the first B of the
    next step when no A follows that last B.

    Args:
        splitting: String over "A", "B" and "O", e.g. "BAOAB".
        dt: Full timestep.

    Raises:
        ConfigurationError: If the string is empty or has other characters.
    """
    if not splitting:
        raise ConfigurationError("Splitting must not be empty")
    invalid = sorted(set(splitting) - set("ABO"))
    if invalid:
        raise ConfigurationError(
            f"Splitting {splitting!r} contains invalid operators {invalid}; "
            "use only 'A', 'B' and 'O'"
        )

    counts = Counter(splitting)
    forces_known = not _STALE_FORCES.match(splitting)
    operations = []
    for op in splitting:
        recompute = False
        if op == "A":
            forces_known = False
        elif op == "B" and not forces_known:
            recompute = True
            forces_known = True
        operations.append(SplittingOperation(op, dt / counts[op], recompute))
    return tuple(operations)


@dataclass(frozen=True)
class LangevinSplitting(Integrator):
    """
    Langevin integrator built from an operator splitting.

    The splitting string is read left to right each step:

    - "A": drift, r <- r + dt_eff * v
    - "B": kick, v <- v + dt_eff * a
    - "O": Ornstein-Uhlenbeck update, v <- alpha * v + sigma * xi

    with dt_eff the timestep divided by how often the letter occurs, and
    per-particle alpha = exp(-friction * dt / (m * n_O)),
    sigma = sqrt(1 - alpha^2) applied to Maxwell-Boltzmann noise xi.
    ``"BAOAB"`` gives the BAOAB scheme; ``"BAB"`` with zero friction is
    velocity Verlet.

    Attributes:
        dt: Integration timestep.
        temperature: Target temperature in K.
        friction: Friction coefficient in mass per time units.
        splitting: Operator string over "A", "B" and "O".
        remove_cm_motion: Remove center of mass motion after every step.
    """

    temperature: float
    friction: float
    splitting: str
    remove_cm_motion: bool = True
    operations: tuple[SplittingOperation, ...] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        _check_temperature(self.temperature)
        _check_friction(self.friction)
        object.__setattr__(self, "operations", compile_splitting(self.splitting, self.dt))

    def run(
        self,
        system: System,
        n_steps: int,
        n_threads: int,
        rng: np.random.Generator,
    ) -> None:
        n_o = self.splitting.count("O")
        inv_masses = 1.0 / system.masses
        if n_o:
            alpha = np.exp(-self.friction * self.dt * inv_masses / n_o)[:, np.newaxis]
            sigma = np.sqrt(1.0 - alpha**2)

        prepare(system, self.remove_cm_motion)
        neighbors = system.find_neighbors()
        system.run_reporters(neighbors, 0, n_threads=n_threads)
        accels = system.accelerations(neighbors, n_threads)

        for step in range(1, n_steps + 1):
            old_coords = system.positions.copy()
            for op, dt_eff, recompute_forces in self.operations:
                if op == "A":
                    system.positions += dt_eff * system.velocities
                    system.wrap_coords()
                elif op == "B":
                    if recompute_forces:
                        accels = system.accelerations(neighbors, n_threads)
                    system.velocities += dt_eff * accels
                else:
                    noise = maxwell_boltzmann_velocities(
                        system.masses,
                        self.temperature,
                        k=system.k,
                        n_dims=system.n_dims,
                        rng=rng,
                    )
                    system.velocities = alpha * system.velocities + sigma * noise

            apply_constraints(system, old_coords, self.dt)
            system.wrap_coords()
            if self.remove_cm_motion:
                system.remove_cm_motion()
            system.run_reporters(neighbors, step, n_threads=n_threads)

            neighbors = refresh_neighbors(system, neighbors, step, n_steps)
