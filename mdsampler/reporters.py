"""Reporters: observable sinks run during simulations."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any, TextIO

import numpy as np

if TYPE_CHECKING:
    from .neighborlists import NeighborList
    from .replica import ReplicaSystem
    from .system import System


class Reporter(ABC):
    """
    Abstract base class for simulation reporters.

    Reporters are called at step 0 and after every step with the system,
    the current neighbor list and any integrator-specific fields (for
    example ``success`` and ``energy_rate`` from Monte Carlo). They must
    not mutate the system.
    """

    @abstractmethod
    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        """
        Record the current state.

        Args:
            system: Current system.
            neighbors: Current neighbor list.
            step: Step index.
            **fields: Integrator-specific values, including ``n_threads``.
        """
        ...

    @property
    @abstractmethod
    def frequency(self) -> int:
        """Return reporting frequency (every N steps)."""
        ...

    def should_report(self, step: int) -> bool:
        """Check if reporter should run at this step."""
        return step % self.frequency == 0

    def finalize(self, **fields: Any) -> None:
        """Finalize reporter (called after simulation)."""
        pass


class ReporterGroup:
    """Collection of reporters with automatic frequency handling."""

    def __init__(self, reporters: list[Reporter] | None = None) -> None:
        """
        Initialize reporter group.

        Args:
            reporters: List of reporters to manage.
        """
        self._reporters: list[Reporter] = reporters if reporters else []

    def add(self, reporter: Reporter) -> None:
        """Add a reporter to the group."""
        self._reporters.append(reporter)

    def remove(self, reporter: Reporter) -> None:
        """Remove a reporter from the group."""
        self._reporters.remove(reporter)

    def __iter__(self) -> Iterator[Reporter]:
        return iter(self._reporters)

    def __len__(self) -> int:
        return len(self._reporters)

    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        """Run all reporters that should fire at this step."""
        for reporter in self._reporters:
            if reporter.should_report(step):
                reporter.report(system, neighbors, step, **fields)

    def finalize(self, **fields: Any) -> None:
        """Finalize all reporters."""
        for reporter in self._reporters:
            reporter.finalize(**fields)


class StateReporter(Reporter):
    """
    Reporter that prints simulation state to console or file.

    Outputs step, temperature, kinetic energy, potential energy and total
    energy as separated columns, preceded by a header line.
    """

    def __init__(
        self,
        frequency: int = 1000,
        file: TextIO | None = None,
        separator: str = "\t",
    ) -> None:
        """
        Initialize state reporter.

        Args:
            frequency: Reporting frequency (every N steps).
            file: Output file (defaults to stdout).
            separator: Field separator.
        """
        self._frequency = frequency
        self._file = file if file is not None else sys.stdout
        self._separator = separator
        self._header_written = False

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        if not self._header_written:
            headers = ["Step", "Temperature", "KE", "PE", "Total"]
            self._file.write(self._separator.join(headers) + "\n")
            self._header_written = True

        ke = system.kinetic_energy
        pe = system.potential_energy(neighbors, fields.get("n_threads", 1))
        values = [
            f"{step}",
            f"{system.temperature:.2f}",
            f"{ke:.4f}",
            f"{pe:.4f}",
            f"{ke + pe:.4f}",
        ]
        self._file.write(self._separator.join(values) + "\n")
        self._file.flush()


class EnergyReporter(Reporter):
    """Reporter that tracks energy components over time."""

    def __init__(self, frequency: int = 100) -> None:
        """
        Initialize energy reporter.

        Args:
            frequency: Reporting frequency.
        """
        self._frequency = frequency
        self._steps: list[int] = []
        self._kinetic: list[float] = []
        self._potential: list[float] = []
        self._temperature: list[float] = []

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        """Record energies."""
        self._steps.append(step)
        self._kinetic.append(system.kinetic_energy)
        self._potential.append(
            system.potential_energy(neighbors, fields.get("n_threads", 1))
        )
        self._temperature.append(system.temperature)

    @property
    def steps(self) -> np.ndarray:
        """Return recorded step indices."""
        return np.array(self._steps, dtype=np.int64)

    @property
    def kinetic_energy(self) -> np.ndarray:
        """Return kinetic energy time series."""
        return np.array(self._kinetic)

    @property
    def potential_energy(self) -> np.ndarray:
        """Return potential energy time series."""
        return np.array(self._potential)

    @property
    def total_energy(self) -> np.ndarray:
        """Return total energy time series."""
        return self.kinetic_energy + self.potential_energy

    @property
    def temperature(self) -> np.ndarray:
        """Return temperature time series."""
        return np.array(self._temperature)

    def clear(self) -> None:
        """Clear stored data."""
        self._steps.clear()
        self._kinetic.clear()
        self._potential.clear()
        self._temperature.clear()


class TrajectoryReporter(Reporter):
    """
    Reporter that stores the trajectory in memory.

    File formats are out of scope; write ``positions`` out with the tool
    of your choice after the run.
    """

    def __init__(self, frequency: int = 100, include_velocities: bool = False) -> None:
        """
        Initialize trajectory reporter.

        Args:
            frequency: Reporting frequency.
            include_velocities: Also store velocities.
        """
        self._frequency = frequency
        self._include_velocities = include_velocities
        self._steps: list[int] = []
        self._positions: list[np.ndarray] = []
        self._velocities: list[np.ndarray] = []

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        """Store current frame."""
        self._steps.append(step)
        self._positions.append(system.positions.copy())
        if self._include_velocities:
            self._velocities.append(system.velocities.copy())

    @property
    def n_frames(self) -> int:
        """Return number of stored frames."""
        return len(self._positions)

    @property
    def steps(self) -> np.ndarray:
        """Return recorded step indices."""
        return np.array(self._steps, dtype=np.int64)

    @property
    def positions(self) -> np.ndarray:
        """Return positions as (n_frames, n_atoms, n_dims) array."""
        return np.array(self._positions)

    @property
    def velocities(self) -> np.ndarray | None:
        """Return velocities if stored."""
        if not self._include_velocities:
            return None
        return np.array(self._velocities)

    def clear(self) -> None:
        """Clear stored trajectory."""
        self._steps.clear()
        self._positions.clear()
        self._velocities.clear()


class CallbackReporter(Reporter):
    """
    Reporter that calls a user-defined function.

    Allows arbitrary custom reporting logic.
    """

    def __init__(
        self,
        callback: Callable[[System, NeighborList | None, int, dict[str, Any]], None],
        frequency: int = 1,
    ) -> None:
        """
        Initialize callback reporter.

        Args:
            callback: Function to call with (system, neighbors, step, fields).
            frequency: Reporting frequency.
        """
        self._callback = callback
        self._frequency = frequency

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        """Call the callback function."""
        self._callback(system, neighbors, step, fields)


class MonteCarloReporter(Reporter):
    """
    Reporter for Metropolis Monte Carlo runs.

    Records the acceptance flag and the reduced energy (energy over kT) of
    the retained configuration at every reported step, and optionally the
    retained coordinates.
    """

    def __init__(self, frequency: int = 1, log_states: bool = False) -> None:
        """
        Initialize Monte Carlo reporter.

        Args:
            frequency: Reporting frequency.
            log_states: Also store the retained coordinates.
        """
        self._frequency = frequency
        self._log_states = log_states
        self._steps: list[int] = []
        self._success: list[bool] = []
        self._energy_rates: list[float] = []
        self._states: list[np.ndarray] = []

    @property
    def frequency(self) -> int:
        return self._frequency

    def report(
        self,
        system: System,
        neighbors: NeighborList | None,
        step: int,
        **fields: Any,
    ) -> None:
        """Record the outcome of the latest trial move."""
        # Step 0 has no trial move
        if "success" not in fields:
            return
        self._steps.append(step)
        self._success.append(bool(fields["success"]))
        self._energy_rates.append(float(fields["energy_rate"]))
        if self._log_states:
            self._states.append(system.positions.copy())

    @property
    def steps(self) -> np.ndarray:
        """Return recorded step indices."""
        return np.array(self._steps, dtype=np.int64)

    @property
    def success(self) -> np.ndarray:
        """Return acceptance flags."""
        return np.array(self._success, dtype=bool)

    @property
    def energy_rates(self) -> np.ndarray:
        """Return reduced energies of the retained configurations."""
        return np.array(self._energy_rates)

    @property
    def states(self) -> np.ndarray:
        """Return retained coordinates as (n_records, n_atoms, n_dims) array."""
        return np.array(self._states)

    @property
    def n_accepted(self) -> int:
        """Return number of accepted moves."""
        return int(np.sum(self._success))

    @property
    def acceptance_rate(self) -> float:
        """Return the fraction of accepted moves (0 when nothing was recorded)."""
        if not self._success:
            return 0.0
        return self.n_accepted / len(self._success)


class ExchangeReporter(ABC):
    """
    Abstract base class for replica-exchange reporters.

    Called once per successful exchange and finalized once per run.
    """

    @abstractmethod
    def report(
        self,
        replica_system: ReplicaSystem,
        step: int,
        **fields: Any,
    ) -> None:
        """
        Record a successful exchange.

        Args:
            replica_system: Replica system after the exchange.
            step: Step index at the end of the cycle.
            **fields: ``indices`` (pair of replica indices) and ``delta``.
        """
        ...

    def finalize(self, **fields: Any) -> None:
        """Finalize reporter (called after simulation)."""
        pass


class ReplicaExchangeReporter(ExchangeReporter):
    """
    Append-only record of successful replica exchanges.

    Attributes:
        steps: Step index of each exchange.
        indices: Replica index pair of each exchange.
        deltas: Exchange exponent of each exchange.
        n_steps: Total steps of the run (set by ``finalize``).
        n_attempts: Total exchange attempts (set by ``finalize``).
    """

    def __init__(self) -> None:
        self.steps: list[int] = []
        self.indices: list[tuple[int, int]] = []
        self.deltas: list[float] = []
        self.n_steps = 0
        self.n_attempts = 0

    def report(
        self,
        replica_system: ReplicaSystem,
        step: int,
        **fields: Any,
    ) -> None:
        """Append one exchange."""
        n, m = fields["indices"]
        self.steps.append(step)
        self.indices.append((int(n), int(m)))
        self.deltas.append(float(fields["delta"]))

    def finalize(self, **fields: Any) -> None:
        """Store run totals."""
        self.n_steps = int(fields.get("n_steps", self.n_steps))
        self.n_attempts = int(fields.get("n_attempts", self.n_attempts))

    @property
    def n_exchanges(self) -> int:
        """Return number of successful exchanges."""
        return len(self.steps)

    @property
    def acceptance_rate(self) -> float:
        """Return successful exchanges over attempts (0 when none attempted)."""
        if self.n_attempts == 0:
            return 0.0
        return self.n_exchanges / self.n_attempts
