"""Interactions, the force field collection and the force aggregator."""

from . import aggregator
from .base import GeneralInteraction, Interaction, PairwiseInteraction, SpecificInteraction
from .bonded import HarmonicAngle, HarmonicBond, PeriodicTorsion
from .composite import ForceField
from .general import HarmonicPositionRestraint
from .nonbonded import COULOMB_CONSTANT, Coulomb, LennardJones

__all__ = [
    "aggregator",
    "Interaction",
    "PairwiseInteraction",
    "SpecificInteraction",
    "GeneralInteraction",
    "ForceField",
    "LennardJones",
    "Coulomb",
    "COULOMB_CONSTANT",
    "HarmonicBond",
    "HarmonicAngle",
    "PeriodicTorsion",
    "HarmonicPositionRestraint",
]
