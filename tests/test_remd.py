"""Tests for replica systems and replica exchange."""

import math
import threading

import numpy as np
import pytest
from openmm import unit

from mdsampler.errors import ConfigurationError
from mdsampler.forcefields import HarmonicPositionRestraint
from mdsampler.integrators import Langevin, VelocityVerlet
from mdsampler.reporters import ReplicaExchangeReporter
from mdsampler.replica import (
    HamiltonianREMD,
    ReplicaSystem,
    TemperatureREMD,
    exchange_pairs,
    simulate_remd,
)
from mdsampler.system import Box, ParticleState, System


class RecordingSimulator:
    """Simulator stand-in that records the arguments of every run."""

    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail
        self._lock = threading.Lock()

    def simulate(self, system, n_steps, n_threads=None, rng=None):
        with self._lock:
            self.calls.append((n_steps, n_threads))
        if self.fail:
            raise RuntimeError("replica failed")
        return system


def make_system(positions, force_field=None):
    positions = np.asarray(positions, dtype=np.float64)
    state = ParticleState.create(positions, np.ones(len(positions)), Box.unbounded())
    return System(state, force_field=force_field)


def make_replicas(n_replicas, n_atoms=2, exchange_reporter=None):
    template = make_system(np.zeros((n_atoms, 3)))
    return ReplicaSystem.from_system(template, n_replicas, exchange_reporter=exchange_reporter)


class TestExchangePairs:
    """Test neighbouring pair alternation."""

    def test_eight_replicas(self):
        """Test both parities for eight replicas."""
        assert exchange_pairs(0, 8) == [(1, 2), (3, 4), (5, 6)]
        assert exchange_pairs(1, 8) == [(0, 1), (2, 3), (4, 5), (6, 7)]
        assert exchange_pairs(2, 8) == exchange_pairs(0, 8)

    def test_two_replicas(self):
        """Test that two replicas only exchange on odd cycles."""
        assert exchange_pairs(0, 2) == []
        assert exchange_pairs(1, 2) == [(0, 1)]

    def test_single_replica(self):
        """Test that a single replica never exchanges."""
        assert exchange_pairs(0, 1) == []
        assert exchange_pairs(1, 1) == []


class TestReplicaSystem:
    """Test replica container validation."""

    def test_from_system_copies(self):
        """Test that replicas share no arrays with each other."""
        replicas = make_replicas(3)
        assert replicas.n_replicas == 3
        assert len(replicas) == 3
        replicas[0].positions[0, 0] = 1.0
        assert replicas[1].positions[0, 0] == 0.0

    def test_shared_arrays_rejected(self):
        """Test that the same system cannot appear twice."""
        system = make_system(np.zeros((2, 3)))
        with pytest.raises(ConfigurationError):
            ReplicaSystem([system, system])

    def test_mismatched_atoms_rejected(self):
        """Test that replicas must have equal atom counts."""
        with pytest.raises(ConfigurationError):
            ReplicaSystem([make_system(np.zeros((2, 3))), make_system(np.zeros((3, 3)))])

    def test_mismatched_units_rejected(self):
        """Test that replicas must agree on units."""
        a = make_system(np.zeros((2, 3)))
        b = System(
            a.state.copy(),
            force_units=unit.kilojoule / unit.nanometer,
            energy_units=unit.kilojoule,
        )
        with pytest.raises(ConfigurationError):
            ReplicaSystem([a, b])

    def test_empty_rejected(self):
        """Test that at least one replica is required."""
        with pytest.raises(ConfigurationError):
            ReplicaSystem([])

    def test_per_replica_force_fields(self):
        """Test Hamiltonian replicas built from one template."""
        template = make_system(np.zeros((1, 3)))
        restraints = [[HarmonicPositionRestraint([[float(i), 0.0, 0.0]], 2.0)] for i in range(3)]
        replicas = ReplicaSystem.from_system(template, 3, force_fields=restraints)
        energies = [replica.potential_energy() for replica in replicas]
        assert energies == pytest.approx([0.0, 1.0, 4.0])

    def test_force_field_count_mismatch(self):
        """Test that per-replica inputs must match the replica count."""
        template = make_system(np.zeros((1, 3)))
        with pytest.raises(ConfigurationError):
            ReplicaSystem.from_system(template, 3, force_fields=[[], []])


class TestConfiguration:
    """Test orchestrator validation."""

    def test_parameter_count_mismatch(self):
        """Test that temperatures and simulators must pair up."""
        with pytest.raises(ConfigurationError):
            TemperatureREMD(
                dt=0.001,
                temperatures=[300.0, 350.0, 400.0],
                simulators=[RecordingSimulator(), RecordingSimulator()],
                exchange_time=0.01,
            )

    @pytest.mark.parametrize("exchange_time", [0.001, 0.0005])
    def test_exchange_time_must_exceed_dt(self, exchange_time):
        """Test that exchange_time <= dt is rejected."""
        with pytest.raises(ConfigurationError):
            HamiltonianREMD(
                dt=0.001,
                temperature=300.0,
                simulators=[RecordingSimulator(), RecordingSimulator()],
                exchange_time=exchange_time,
            )

    def test_unknown_rng_policy(self):
        """Test that the rng policy is validated."""
        with pytest.raises(ConfigurationError):
            HamiltonianREMD(
                dt=0.001,
                temperature=300.0,
                simulators=[RecordingSimulator()],
                exchange_time=0.01,
                rng_policy="global",
            )

    def test_replica_count_mismatch(self):
        """Test that four replicas cannot run with three simulators."""
        simulators = [RecordingSimulator() for _ in range(3)]
        remd = TemperatureREMD(
            dt=0.5, temperatures=[300.0, 350.0, 400.0], simulators=simulators, exchange_time=1.0
        )
        with pytest.raises(ConfigurationError):
            remd.simulate(make_replicas(4), 4)
        assert all(not simulator.calls for simulator in simulators)


class TestTemperatureExchange:
    """Test the temperature exchange rule."""

    @pytest.fixture
    def remd(self):
        """Two replicas at 300 K and 600 K."""
        return TemperatureREMD(
            dt=0.001,
            temperatures=[300.0, 600.0],
            simulators=[RecordingSimulator(), RecordingSimulator()],
            exchange_time=0.01,
        )

    def make_pair(self, x_n, x_m):
        restraint = [HarmonicPositionRestraint(np.zeros((1, 3)), 2.0)]
        n = make_system([[x_n, 0.0, 0.0]], restraint)
        m = make_system([[x_m, 0.0, 0.0]], restraint)
        n.velocities[:] = [[1.0, 0.0, 0.0]]
        m.velocities[:] = [[0.0, 2.0, 0.0]]
        return ReplicaSystem([n, m])

    def test_accepted_exchange(self, remd, fixed_random):
        """Test swap and velocity rescaling on acceptance."""
        replicas = self.make_pair(1.0, 2.0)
        k = replicas[0].k
        expected = (1.0 / (k * 600.0) - 1.0 / (k * 300.0)) * (1.0 - 4.0)
        assert math.exp(-expected) == pytest.approx(0.548, abs=0.01)

        delta, exchanged = remd.exchange(replicas, 0, 1, fixed_random(0.5))
        assert exchanged
        assert delta == pytest.approx(expected)
        assert np.allclose(replicas[0].positions, [[2.0, 0.0, 0.0]])
        assert np.allclose(replicas[1].positions, [[1.0, 0.0, 0.0]])
        assert np.allclose(replicas[0].velocities, [[0.0, 2.0 * math.sqrt(0.5), 0.0]])
        assert np.allclose(replicas[1].velocities, [[math.sqrt(2.0), 0.0, 0.0]])

    def test_rejected_exchange(self, remd, fixed_random):
        """Test that rejection leaves both replicas untouched."""
        replicas = self.make_pair(1.0, 2.0)
        delta, exchanged = remd.exchange(replicas, 0, 1, fixed_random(0.6))
        assert not exchanged
        assert np.array_equal(replicas[0].positions, [[1.0, 0.0, 0.0]])
        assert np.array_equal(replicas[1].velocities, [[0.0, 2.0, 0.0]])

    def test_favourable_exchange_draws_nothing(self, remd, fixed_random):
        """Test that negative deltas accept without a random draw."""
        replicas = self.make_pair(2.0, 1.0)
        rng = fixed_random()
        delta, exchanged = remd.exchange(replicas, 0, 1, rng)
        assert delta < 0
        assert exchanged
        assert rng.calls == 0


class TestHamiltonianExchange:
    """Test the Hamiltonian exchange rule."""

    @pytest.fixture
    def remd(self):
        """Two replicas at a common temperature."""
        return HamiltonianREMD(
            dt=0.001,
            temperature=300.0,
            simulators=[RecordingSimulator(), RecordingSimulator()],
            exchange_time=0.01,
        )

    @pytest.fixture
    def replicas(self):
        """Replicas restrained to different centres, each sitting at its own."""
        n = make_system([[0.0, 0.0, 0.0]], [HarmonicPositionRestraint([[0.0, 0.0, 0.0]], 2.0)])
        m = make_system([[1.0, 0.0, 0.0]], [HarmonicPositionRestraint([[1.0, 0.0, 0.0]], 2.0)])
        n.velocities[:] = [[1.0, 0.0, 0.0]]
        m.velocities[:] = [[0.0, 1.0, 0.0]]
        return ReplicaSystem([n, m])

    def test_accepted_exchange(self, remd, replicas, fixed_random):
        """Test coordinate and velocity swap on acceptance."""
        beta = 1.0 / (replicas[0].k * 300.0)
        delta, exchanged = remd.exchange(replicas, 0, 1, fixed_random(0.4))
        assert delta == pytest.approx(2.0 * beta)
        assert exchanged
        assert np.allclose(replicas[0].positions, [[1.0, 0.0, 0.0]])
        assert np.allclose(replicas[1].positions, [[0.0, 0.0, 0.0]])
        assert np.allclose(replicas[0].velocities, [[0.0, 1.0, 0.0]])
        assert np.allclose(replicas[1].velocities, [[1.0, 0.0, 0.0]])

    def test_rejected_exchange_restores(self, remd, replicas, fixed_random):
        """Test that a rejected swap is reverted."""
        delta, exchanged = remd.exchange(replicas, 0, 1, fixed_random(0.5))
        assert not exchanged
        assert np.array_equal(replicas[0].positions, [[0.0, 0.0, 0.0]])
        assert np.array_equal(replicas[1].positions, [[1.0, 0.0, 0.0]])
        assert np.array_equal(replicas[0].velocities, [[1.0, 0.0, 0.0]])


class TestCycleLoop:
    """Test the replica-exchange cycle loop."""

    def make_remd(self, n_replicas, simulators=None, **kwargs):
        if simulators is None:
            simulators = [RecordingSimulator() for _ in range(n_replicas)]
        return TemperatureREMD(
            dt=0.5,
            temperatures=[300.0 + 10.0 * i for i in range(n_replicas)],
            simulators=simulators,
            exchange_time=1.0,
            **kwargs,
        )

    def test_pair_parity(self, monkeypatch):
        """Test that cycles alternate between the two pair sets."""
        attempted = []

        def fake_exchange(self, replica_system, n, m, rng, n_threads=1):
            attempted.append((n, m))
            return 0.0, False

        monkeypatch.setattr(TemperatureREMD, "exchange", fake_exchange)
        simulate_remd(make_replicas(8), self.make_remd(8), 8, rng=0, n_threads=1)

        odd = [(1, 2), (3, 4), (5, 6)]
        even = [(0, 1), (2, 3), (4, 5), (6, 7)]
        assert attempted == odd + even + odd + even

    def test_exchange_reporter(self, monkeypatch):
        """Test exchange records and run totals."""
        monkeypatch.setattr(
            TemperatureREMD, "exchange", lambda self, rs, n, m, rng, n_threads=1: (0.25, True)
        )
        reporter = ReplicaExchangeReporter()
        replicas = make_replicas(3, exchange_reporter=reporter)
        simulate_remd(replicas, self.make_remd(3), 8, rng=0, n_threads=1)

        assert reporter.steps == [2, 4, 6, 8]
        assert reporter.indices == [(1, 2), (0, 1), (1, 2), (0, 1)]
        assert reporter.n_steps == 8
        assert reporter.n_attempts == 4
        assert reporter.acceptance_rate == 1.0
        assert reporter.deltas == [0.25] * 4

    def test_remaining_steps(self):
        """Test cycle lengths and the trailing remainder."""
        remd = self.make_remd(2)
        simulate_remd(make_replicas(2), remd, 9, rng=0, n_threads=1)
        for simulator in remd.simulators:
            assert [n for n, _ in simulator.calls] == [2, 2, 2, 2, 1]

    def test_no_complete_cycle(self):
        """Test that short runs skip exchanges entirely."""
        reporter = ReplicaExchangeReporter()
        remd = self.make_remd(2)
        simulate_remd(make_replicas(2, exchange_reporter=reporter), remd, 1, rng=0, n_threads=1)
        assert [n for n, _ in remd.simulators[0].calls] == [1]
        assert reporter.n_attempts == 0

    @pytest.mark.parametrize(
        "n_threads, expected", [(8, [3, 3, 2]), (3, [1, 1, 1]), (2, [1, 1, 1])]
    )
    def test_thread_budget(self, n_threads, expected):
        """Test how the thread budget is split over replicas."""
        remd = self.make_remd(3)
        simulate_remd(make_replicas(3), remd, 1, rng=0, n_threads=n_threads)
        assert [simulator.calls[0][1] for simulator in remd.simulators] == expected

    def test_replica_errors_propagate(self):
        """Test that a failing replica aborts the run."""
        simulators = [RecordingSimulator(), RecordingSimulator(fail=True)]
        with pytest.raises(RuntimeError, match="replica failed"):
            simulate_remd(make_replicas(2), self.make_remd(2, simulators), 4, rng=0, n_threads=2)

    def test_assign_velocities(self):
        """Test that velocities are drawn at each replica's temperature."""
        replicas = make_replicas(2, n_atoms=50)
        self.make_remd(2).simulate(replicas, 0, assign_velocities=True, rng=0)
        assert all(np.any(replica.velocities != 0.0) for replica in replicas)


class TestReproducibility:
    """Test seeded replica-exchange runs."""

    def run(self, rng_policy, n_threads, seed=3):
        template = make_system(
            np.random.default_rng(0).uniform(-0.5, 0.5, (4, 3)),
            [HarmonicPositionRestraint(np.zeros((4, 3)), 500.0)],
        )
        replicas = ReplicaSystem.from_system(template, 3)
        temperatures = [300.0, 400.0, 500.0]
        remd = TemperatureREMD(
            dt=0.002,
            temperatures=temperatures,
            simulators=[Langevin(dt=0.002, temperature=t, friction=5.0) for t in temperatures],
            exchange_time=0.02,
            rng_policy=rng_policy,
        )
        remd.simulate(replicas, 50, assign_velocities=True, rng=seed, n_threads=n_threads)
        return np.concatenate([replica.positions for replica in replicas])

    def test_spawn_independent_of_threads(self):
        """Test that spawned streams give the same result for any thread budget."""
        assert np.array_equal(self.run("spawn", 1), self.run("spawn", 4))

    def test_shared_reproducible(self):
        """Test that the shared policy is reproducible with a seed."""
        assert np.array_equal(self.run("shared", 1), self.run("shared", 1))

    def test_seeds_differ(self):
        """Test that different seeds give different runs."""
        assert not np.array_equal(self.run("spawn", 1, seed=3), self.run("spawn", 1, seed=4))

    def test_velocity_verlet_replicas(self):
        """Test deterministic replicas driven by velocity Verlet."""
        template = make_system(
            [[0.1, 0.0, 0.0], [-0.1, 0.0, 0.0]],
            [HarmonicPositionRestraint(np.zeros((2, 3)), 100.0)],
        )
        replicas = ReplicaSystem.from_system(template, 2)
        remd = HamiltonianREMD(
            dt=0.001,
            temperature=300.0,
            simulators=[VelocityVerlet(dt=0.001), VelocityVerlet(dt=0.001)],
            exchange_time=0.01,
        )
        remd.simulate(replicas, 40, rng=0, n_threads=2)
        np.testing.assert_allclose(replicas[0].positions, replicas[1].positions)
