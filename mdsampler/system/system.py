"""Simulation system: particle state plus everything that acts on it."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray
from openmm import unit

from ..forcefields import ForceField, aggregator
from ..neighborlists import NeighborFinder, NeighborList, NoNeighborFinder
from ..reporters import Reporter, ReporterGroup
from ..units import (
    DEFAULT_ENERGY_UNITS,
    DEFAULT_FORCE_UNITS,
    boltzmann_constant,
    check_units,
)
from .box import Box
from .state import ParticleState, maxwell_boltzmann_velocities

if TYPE_CHECKING:
    from ..forcefields import Interaction
    from ..integrators.constraints import Constraint


class System:
    """
    A particle state together with its interactions and collaborators.

    Composes:
    - Particle state (positions, velocities, masses, boundary)
    - Interaction set (force field)
    - Neighbor finder
    - Constraints
    - Reporters (loggers/observables)
    - Unit declarations and the Boltzmann constant

    Integrators own no mutable simulation state; everything they advance
    lives here.

    Example usage:
        system = System(
            state=ParticleState.create(positions, masses, Box.cubic(3.0)),
            force_field=[LennardJones(epsilon=[0.5], sigma=[0.3], nl_only=True)],
            neighbor_finder=DistanceNeighborFinder(cutoff=1.2, n_steps=10),
            reporters=[EnergyReporter(frequency=100)],
        )
        VelocityVerlet(dt=0.002).simulate(system, n_steps=10_000)
    """

    def __init__(
        self,
        state: ParticleState,
        force_field: ForceField | Iterable[Interaction] | None = None,
        neighbor_finder: NeighborFinder | None = None,
        constraints: Iterable[Constraint] | None = None,
        reporters: ReporterGroup | Iterable[Reporter] | None = None,
        force_units: unit.Unit = DEFAULT_FORCE_UNITS,
        energy_units: unit.Unit = DEFAULT_ENERGY_UNITS,
        k: float | None = None,
    ) -> None:
        """
        Initialize system.

        Args:
            state: Particle state, mutated in place by integrators.
            force_field: Interaction set, or an iterable of interactions.
            neighbor_finder: Neighbor finder. Defaults to no neighbor list.
            constraints: Constraints applied after position updates.
            reporters: Reporters run at step 0 and after every step.
            force_units: Units of forces.
            energy_units: Units of energies.
            k: Boltzmann constant in energy_units per K. Derived from
               energy_units when omitted.
        """
        self.state = state
        if isinstance(force_field, ForceField):
            self.force_field = force_field
        else:
            self.force_field = ForceField(list(force_field or []))
        self.neighbor_finder = (
            neighbor_finder if neighbor_finder is not None else NoNeighborFinder()
        )
        self.constraints: list[Constraint] = list(constraints or [])
        if isinstance(reporters, ReporterGroup):
            self.reporters = reporters
        else:
            self.reporters = ReporterGroup(list(reporters or []))

        self.force_units = check_units(force_units, "force_units")
        self.energy_units = check_units(energy_units, "energy_units")
        self.k = boltzmann_constant(energy_units) if k is None else float(k)

    # ------------------------------------------------------------------
    # State proxies
    # ------------------------------------------------------------------

    @property
    def positions(self) -> NDArray[np.floating]:
        """Return current positions."""
        return self.state.positions

    @positions.setter
    def positions(self, value: NDArray[np.floating]) -> None:
        """Set positions."""
        self.state.positions = value

    @property
    def velocities(self) -> NDArray[np.floating]:
        """Return current velocities."""
        return self.state.velocities

    @velocities.setter
    def velocities(self, value: NDArray[np.floating]) -> None:
        """Set velocities."""
        self.state.velocities = value

    @property
    def masses(self) -> NDArray[np.floating]:
        return self.state.masses

    @property
    def box(self) -> Box:
        return self.state.box

    @property
    def n_atoms(self) -> int:
        return self.state.n_atoms

    @property
    def n_dims(self) -> int:
        return self.state.n_dims

    def __len__(self) -> int:
        return self.state.n_atoms

    @property
    def kinetic_energy(self) -> float:
        """Return current kinetic energy."""
        return self.state.kinetic_energy

    @property
    def temperature(self) -> float:
        """Return current temperature."""
        return self.state.temperature(self.k)

    # ------------------------------------------------------------------
    # In-place updates
    # ------------------------------------------------------------------

    def wrap_coords(self) -> None:
        """Wrap positions into the boundary's canonical representation."""
        self.state.positions = self.state.box.wrap_positions(self.state.positions)

    def remove_cm_motion(self) -> None:
        """Remove center of mass motion."""
        self.state.remove_center_of_mass_motion()

    def random_velocities(
        self, temperature: float, rng: np.random.Generator | None = None
    ) -> None:
        """Assign Maxwell-Boltzmann velocities at the given temperature."""
        self.state.velocities = maxwell_boltzmann_velocities(
            self.masses, temperature, k=self.k, n_dims=self.n_dims, rng=rng
        )

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def find_neighbors(
        self, current: NeighborList | None = None, step: int = 0
    ) -> NeighborList | None:
        """
        Obtain a neighbor list.

        Args:
            current: Previous list, reused when no refresh is due.
                     A new list is always built when None.
            step: Step index used by the finder's refresh policy.
        """
        return self.neighbor_finder.find_neighbors(self, current, step)

    def forces(
        self, neighbors: NeighborList | None = None, n_threads: int = 1
    ) -> NDArray[np.floating]:
        """Compute forces on all atoms in force_units."""
        return aggregator.forces(self, neighbors, n_threads=n_threads)

    def accelerations(
        self, neighbors: NeighborList | None = None, n_threads: int = 1
    ) -> NDArray[np.floating]:
        """Compute accelerations of all atoms."""
        return aggregator.accelerations(self, neighbors, n_threads=n_threads)

    def potential_energy(
        self, neighbors: NeighborList | None = None, n_threads: int = 1
    ) -> float:
        """Compute the total potential energy in energy_units."""
        return aggregator.potential_energy(self, neighbors, n_threads=n_threads)

    def total_energy(
        self, neighbors: NeighborList | None = None, n_threads: int = 1
    ) -> float:
        """Return kinetic plus potential energy."""
        return self.kinetic_energy + self.potential_energy(neighbors, n_threads)

    def run_reporters(
        self, neighbors: NeighborList | None, step: int, **fields: Any
    ) -> None:
        """Run reporters that should fire at this step."""
        self.reporters.report(self, neighbors, step, **fields)

    def copy(
        self,
        force_field: ForceField | Iterable[Interaction] | None = None,
        reporters: ReporterGroup | Iterable[Reporter] | None = None,
    ) -> System:
        """
        Create an independent copy that shares no mutable arrays.

        Reporters accumulate per-run data so they are not copied; pass new
        ones explicitly.

        Args:
            force_field: Interaction set for the copy. Defaults to a deep copy.
            reporters: Reporters for the copy. Defaults to none.
        """
        if force_field is None:
            force_field = copy.deepcopy(self.force_field)
        return System(
            state=self.state.copy(),
            force_field=force_field,
            neighbor_finder=copy.deepcopy(self.neighbor_finder),
            constraints=copy.deepcopy(self.constraints),
            reporters=reporters,
            force_units=self.force_units,
            energy_units=self.energy_units,
            k=self.k,
        )
