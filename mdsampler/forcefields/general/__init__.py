"""Whole-system interactions."""

from .restraints import HarmonicPositionRestraint

__all__ = ["HarmonicPositionRestraint"]
