"""
mdsampler - integrators, Monte Carlo and replica exchange for particle systems.

Design Principles:
- Integrators are immutable configurations; all mutable state lives in the System
- Forces summed from pairwise, specific and general interactions
- Deterministic given a seeded random generator
- Shared-memory parallelism for forces and replicas

Quick Start:
    >>> import numpy as np
    >>> from mdsampler import Box, ParticleState, System, VelocityVerlet
    >>> from mdsampler.forcefields import HarmonicBond
    >>> state = ParticleState.create([[0.0, 0.0, 0.0], [0.12, 0.0, 0.0]],
    ...                              masses=[1.0, 1.0], box=Box.unbounded())
    >>> system = System(state, force_field=[HarmonicBond([[0, 1]], 1000.0, 0.1)])
    >>> VelocityVerlet(dt=0.001).simulate(system, n_steps=100, rng=0)
"""

__version__ = "0.1.0"

from .errors import ConfigurationError, NumericalInstabilityWarning, UnitMismatchError
from .forcefields import ForceField
from .integrators import (
    Langevin,
    LangevinSplitting,
    MetropolisMonteCarlo,
    NoseHoover,
    SteepestDescentMinimizer,
    StormerVerlet,
    VelocityVerlet,
    Verlet,
)
from .neighborlists import DistanceNeighborFinder, NoNeighborFinder, VerletNeighborFinder
from .replica import HamiltonianREMD, ReplicaSystem, TemperatureREMD
from .system import Box, ParticleState, System

__all__ = [
    "Box",
    "ParticleState",
    "System",
    "ForceField",
    "VelocityVerlet",
    "Verlet",
    "StormerVerlet",
    "Langevin",
    "LangevinSplitting",
    "NoseHoover",
    "SteepestDescentMinimizer",
    "MetropolisMonteCarlo",
    "NoNeighborFinder",
    "DistanceNeighborFinder",
    "VerletNeighborFinder",
    "ReplicaSystem",
    "TemperatureREMD",
    "HamiltonianREMD",
    "ConfigurationError",
    "UnitMismatchError",
    "NumericalInstabilityWarning",
]
