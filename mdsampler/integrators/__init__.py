"""Integrators, couplings, constraints, minimization and Monte Carlo."""

from .base import Integrator
from .constraints import Constraint, FixedParticles, apply_constraints
from .coupling import (
    AndersenThermostat,
    BerendsenThermostat,
    Coupling,
    NoCoupling,
    RescaleThermostat,
)
from .langevin import Langevin, LangevinSplitting, SplittingOperation, compile_splitting
from .minimizers import SteepestDescentMinimizer
from .monte_carlo import (
    MetropolisMonteCarlo,
    metropolis_accept,
    random_normal_translation,
    random_uniform_translation,
    random_unit_vector,
)
from .nose_hoover import NoseHoover
from .velocity_verlet import StormerVerlet, VelocityVerlet, Verlet

__all__ = [
    "Integrator",
    "VelocityVerlet",
    "Verlet",
    "StormerVerlet",
    "Langevin",
    "LangevinSplitting",
    "SplittingOperation",
    "compile_splitting",
    "NoseHoover",
    "SteepestDescentMinimizer",
    "MetropolisMonteCarlo",
    "metropolis_accept",
    "random_uniform_translation",
    "random_normal_translation",
    "random_unit_vector",
    "Coupling",
    "NoCoupling",
    "AndersenThermostat",
    "RescaleThermostat",
    "BerendsenThermostat",
    "Constraint",
    "FixedParticles",
    "apply_constraints",
]
