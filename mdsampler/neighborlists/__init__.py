"""Neighbor list construction and refresh policies."""

from .base import (
    NeighborFinder,
    NeighborList,
    NoNeighborFinder,
    PairScanFinder,
    exclusion_mask,
)
from .distance import DistanceNeighborFinder
from .verlet import VerletNeighborFinder

__all__ = [
    "NeighborFinder",
    "NeighborList",
    "NoNeighborFinder",
    "PairScanFinder",
    "DistanceNeighborFinder",
    "VerletNeighborFinder",
    "exclusion_mask",
]
