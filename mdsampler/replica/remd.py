"""
Replica-exchange molecular dynamics.

Replicas advance independently for a cycle of steps, then neighbouring
replica pairs attempt Metropolis exchanges. Pairs alternate between cycles
so every neighbouring pair gets a chance: the first cycle tries (1, 2),
(3, 4), ... and the second (0, 1), (2, 3), ...
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from ..errors import ConfigurationError
from ..integrators.base import SeedLike, check_n_steps, resolve_n_threads
from ..integrators.monte_carlo import metropolis_accept
from ..parallel import ParallelBackend, SerialBackend, ThreadBackend, equal_parts

if TYPE_CHECKING:
    from .system import ReplicaSystem

logger = logging.getLogger(__name__)

RNG_POLICIES = ("spawn", "shared")


def exchange_pairs(cycle: int, n_replicas: int) -> list[tuple[int, int]]:
    """
    Return the replica pairs attempted after a cycle.

    Args:
        cycle: Zero-based cycle index.
        n_replicas: Number of replicas.

    Examples:
        >>> exchange_pairs(0, 5)
        [(1, 2), (3, 4)]
        >>> exchange_pairs(1, 5)
        [(0, 1), (2, 3)]
    """
    start = (cycle + 1) % 2
    return [(n, n + 1) for n in range(start, n_replicas - 1, 2)]


class ReplicaExchange(ABC):
    """
    Base class for replica-exchange orchestrators.

    Subclasses are frozen dataclasses with ``dt``, ``simulators``,
    ``exchange_time`` and ``rng_policy`` fields and implement the exchange
    rule. ``simulators[i]`` advances replica ``i``; anything with a
    ``simulate(system, n_steps, n_threads=..., rng=...)`` method works,
    including Monte Carlo samplers.

    The ``rng_policy`` controls random streams:

    - ``"spawn"``: each replica gets a child generator spawned from the run
      generator and replicas advance concurrently; results do not depend on
      the thread budget.
    - ``"shared"``: all replicas draw from the run generator and advance
      one after another, so the draw order is fixed.
    """

    dt: float
    simulators: tuple[Any, ...]
    exchange_time: float
    rng_policy: str

    def _validate(self, n_parameters: int, parameter_name: str) -> None:
        object.__setattr__(self, "simulators", tuple(self.simulators))
        if not self.simulators:
            raise ConfigurationError("At least one simulator is required")
        if n_parameters != len(self.simulators):
            raise ConfigurationError(
                f"Number of {parameter_name} ({n_parameters}) does not match "
                f"number of simulators ({len(self.simulators)})"
            )
        if not (math.isfinite(self.dt) and self.dt > 0):
            raise ConfigurationError(f"dt must be positive and finite, got {self.dt}")
        if not self.exchange_time > self.dt:
            raise ConfigurationError(
                f"exchange_time ({self.exchange_time}) must be greater than dt ({self.dt})"
            )
        if self.rng_policy not in RNG_POLICIES:
            raise ConfigurationError(
                f"Unknown rng_policy {self.rng_policy!r}. Available: {', '.join(RNG_POLICIES)}"
            )

    @property
    def n_replicas(self) -> int:
        """Return the number of replicas."""
        return len(self.simulators)

    @abstractmethod
    def replica_temperature(self, index: int) -> float:
        """Return the temperature of replica ``index``."""
        ...

    @abstractmethod
    def exchange(
        self,
        replica_system: ReplicaSystem,
        n: int,
        m: int,
        rng: np.random.Generator,
        n_threads: int = 1,
    ) -> tuple[float, bool]:
        """
        Attempt an exchange between replicas n and m.

        Args:
            replica_system: Replicas, modified in place on acceptance.
            n: First replica index.
            m: Second replica index.
            rng: Random generator for the acceptance test.
            n_threads: Thread budget for energy evaluation.

        Returns:
            Tuple of (delta, exchanged) where delta is the exchange exponent.
        """
        ...

    def simulate(
        self,
        replica_system: ReplicaSystem,
        n_steps: int,
        assign_velocities: bool = False,
        rng: SeedLike = None,
        n_threads: int | None = None,
    ) -> ReplicaSystem:
        """
        Run replica exchange.

        Args:
            replica_system: Replicas to advance in place.
            n_steps: Steps per replica.
            assign_velocities: Draw Maxwell-Boltzmann velocities for each
                               replica at its temperature first.
            rng: Random generator or seed.
            n_threads: Total thread budget.

        Returns:
            The same replica system.
        """
        check_n_steps(n_steps)
        _check_replica_count(replica_system, self)
        rng = np.random.default_rng(rng)
        if assign_velocities:
            for index, replica in enumerate(replica_system.replicas):
                replica.random_velocities(self.replica_temperature(index), rng)
        return simulate_remd(replica_system, self, n_steps, rng=rng, n_threads=n_threads)


def _check_replica_count(replica_system: ReplicaSystem, remd: ReplicaExchange) -> None:
    if replica_system.n_replicas != remd.n_replicas:
        raise ConfigurationError(
            f"Number of replicas in ReplicaSystem ({replica_system.n_replicas}) and "
            f"simulators in the exchange simulator ({remd.n_replicas}) do not match"
        )


@dataclass(frozen=True)
class TemperatureREMD(ReplicaExchange):
    """
    Temperature replica exchange.

    Replica i runs at temperatures[i]. An exchange of replicas n and m is
    accepted with probability min(1, exp(-delta)) where

        delta = (beta_m - beta_n) * (V_n - V_m)

    On acceptance coordinates and velocities swap, and each replica's new
    velocities are rescaled by sqrt(T_own / T_other).

    Attributes:
        dt: Timestep of the simulators.
        temperatures: Temperature of each replica in K.
        simulators: Simulator of each replica.
        exchange_time: Simulated time between exchange attempts.
        rng_policy: "spawn" or "shared".
    """

    dt: float
    temperatures: Sequence[float]
    simulators: Sequence[Any]
    exchange_time: float
    rng_policy: str = "spawn"

    def __post_init__(self) -> None:
        object.__setattr__(self, "temperatures", tuple(float(t) for t in self.temperatures))
        self._validate(len(self.temperatures), "temperatures")
        if any(not t > 0 for t in self.temperatures):
            raise ConfigurationError(f"temperatures must be positive, got {self.temperatures}")

    def replica_temperature(self, index: int) -> float:
        return self.temperatures[index]

    def exchange(
        self,
        replica_system: ReplicaSystem,
        n: int,
        m: int,
        rng: np.random.Generator,
        n_threads: int = 1,
    ) -> tuple[float, bool]:
        replica_n = replica_system.replicas[n]
        replica_m = replica_system.replicas[m]
        t_n = self.temperatures[n]
        t_m = self.temperatures[m]
        beta_n = 1.0 / (replica_n.k * t_n)
        beta_m = 1.0 / (replica_m.k * t_m)

        neighbors_n = replica_n.find_neighbors()
        neighbors_m = replica_m.find_neighbors()
        v_n = replica_n.potential_energy(neighbors_n, n_threads)
        v_m = replica_m.potential_energy(neighbors_m, n_threads)

        delta = (beta_m - beta_n) * (v_n - v_m)
        exchanged = metropolis_accept(delta, rng)
        if exchanged:
            replica_n.positions, replica_m.positions = (
                replica_m.positions,
                replica_n.positions,
            )
            replica_n.velocities, replica_m.velocities = (
                replica_m.velocities * math.sqrt(t_n / t_m),
                replica_n.velocities * math.sqrt(t_m / t_n),
            )
        return delta, exchanged


@dataclass(frozen=True)
class HamiltonianREMD(ReplicaExchange):
    """
    Hamiltonian replica exchange.

    All replicas share one temperature but carry their own interactions.
    An exchange of replicas n and m swaps coordinates provisionally and is
    accepted with probability min(1, exp(-delta)) where

        delta = beta * [(V_n(x_m) - V_n(x_n)) + (V_m(x_n) - V_m(x_m))]

    Energies after the swap reuse the neighbor list built for the swapped-in
    coordinates. On acceptance velocities swap too; on rejection the
    coordinates are restored.

    Attributes:
        dt: Timestep of the simulators.
        temperature: Common temperature in K.
        simulators: Simulator of each replica.
        exchange_time: Simulated time between exchange attempts.
        rng_policy: "spawn" or "shared".
    """

    dt: float
    temperature: float
    simulators: Sequence[Any]
    exchange_time: float
    rng_policy: str = "spawn"

    def __post_init__(self) -> None:
        self._validate(len(self.simulators), "simulators")
        if not self.temperature > 0:
            raise ConfigurationError(f"temperature must be positive, got {self.temperature}")

    def replica_temperature(self, index: int) -> float:
        return self.temperature

    def exchange(
        self,
        replica_system: ReplicaSystem,
        n: int,
        m: int,
        rng: np.random.Generator,
        n_threads: int = 1,
    ) -> tuple[float, bool]:
        replica_n = replica_system.replicas[n]
        replica_m = replica_system.replicas[m]
        beta = 1.0 / (replica_n.k * self.temperature)

        neighbors_n = replica_n.find_neighbors()
        neighbors_m = replica_m.find_neighbors()
        v_n_i = replica_n.potential_energy(neighbors_n, n_threads)
        v_m_i = replica_m.potential_energy(neighbors_m, n_threads)

        def swap_positions() -> None:
            replica_n.positions, replica_m.positions = (
                replica_m.positions,
                replica_n.positions,
            )

        swap_positions()
        try:
            v_n_f = replica_n.potential_energy(neighbors_m, n_threads)
            v_m_f = replica_m.potential_energy(neighbors_n, n_threads)
        except Exception:
            swap_positions()
            raise

        delta = beta * ((v_n_f - v_n_i) + (v_m_f - v_m_i))
        exchanged = metropolis_accept(delta, rng)
        if exchanged:
            replica_n.velocities, replica_m.velocities = (
                replica_m.velocities,
                replica_n.velocities,
            )
        else:
            swap_positions()
        return delta, exchanged


def simulate_remd(
    replica_system: ReplicaSystem,
    remd: ReplicaExchange,
    n_steps: int,
    rng: SeedLike = None,
    n_threads: int | None = None,
) -> ReplicaSystem:
    """
    Run the replica-exchange cycle loop.

    The run is split into floor(n_steps * dt / exchange_time) cycles of
    n_steps // n_cycles steps each, and the remainder runs once at the end
    without exchanges. Within a cycle all replica runs finish before any
    exchange is attempted; exchanges are applied one pair at a time.

    Args:
        replica_system: Replicas to advance in place.
        remd: Orchestrator configuration.
        n_steps: Steps per replica.
        rng: Random generator or seed.
        n_threads: Total thread budget, split over replicas when it
                   exceeds the replica count.

    Returns:
        The same replica system.

    Raises:
        ConfigurationError: If replica and simulator counts differ.
    """
    check_n_steps(n_steps)
    _check_replica_count(replica_system, remd)
    n_threads = resolve_n_threads(n_threads)
    rng = np.random.default_rng(rng)
    n_replicas = replica_system.n_replicas

    n_cycles = int((n_steps * remd.dt) // remd.exchange_time)
    if n_cycles > 0:
        cycle_length, remaining_steps = divmod(n_steps, n_cycles)
    else:
        cycle_length, remaining_steps = 0, n_steps

    if n_threads > n_replicas:
        thread_div = equal_parts(n_threads, n_replicas)
    else:
        thread_div = [1] * n_replicas

    backend: ParallelBackend
    if remd.rng_policy == "spawn":
        replica_rngs = rng.spawn(n_replicas)
        backend = ThreadBackend(n_replicas)
    else:
        replica_rngs = [rng] * n_replicas
        backend = SerialBackend()

    def run_replicas(n_run: int) -> None:
        backend.parallel_map(
            lambda i: remd.simulators[i].simulate(
                replica_system.replicas[i],
                n_run,
                n_threads=thread_div[i],
                rng=replica_rngs[i],
            ),
            range(n_replicas),
        )

    logger.debug(
        "Replica exchange: %d replicas, %d cycles of %d steps, %d remaining",
        n_replicas,
        n_cycles,
        cycle_length,
        remaining_steps,
    )

    exchange_reporter = replica_system.exchange_reporter
    n_attempts = 0
    for cycle in range(n_cycles):
        run_replicas(cycle_length)

        for n, m in exchange_pairs(cycle, n_replicas):
            n_attempts += 1
            delta, exchanged = remd.exchange(replica_system, n, m, rng, n_threads)
            logger.debug(
                "Cycle %d: exchange %d <-> %d delta=%.6g %s",
                cycle,
                n,
                m,
                delta,
                "accepted" if exchanged else "rejected",
            )
            if exchanged and exchange_reporter is not None:
                exchange_reporter.report(
                    replica_system,
                    (cycle + 1) * cycle_length,
                    indices=(n, m),
                    delta=delta,
                )

    if remaining_steps > 0:
        run_replicas(remaining_steps)

    if exchange_reporter is not None:
        exchange_reporter.finalize(n_steps=n_steps, n_attempts=n_attempts)

    return replica_system
