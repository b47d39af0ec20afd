"""Bonded (specific) interactions."""

from .angles import HarmonicAngle
from .bonds import HarmonicBond
from .dihedrals import PeriodicTorsion

__all__ = ["HarmonicAngle", "HarmonicBond", "PeriodicTorsion"]
