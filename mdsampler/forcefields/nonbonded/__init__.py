"""Nonbonded pair interactions."""

from .coulomb import COULOMB_CONSTANT, Coulomb
from .lj import LennardJones

__all__ = ["COULOMB_CONSTANT", "Coulomb", "LennardJones"]
