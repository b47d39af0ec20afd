"""Verlet neighbor finder with skin distance."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np

from .base import NeighborList, PairScanFinder

if TYPE_CHECKING:
    from ..system import System


class VerletNeighborFinder(PairScanFinder):
    """
    Verlet neighbor finder with skin distance.

    Uses a larger cutoff (cutoff + skin) for list construction, allowing
    the list to remain valid as atoms move small distances. The list is
    rebuilt when any atom has moved more than skin/2 since the last build.
    """

    def __init__(
        self,
        cutoff: float,
        skin: float = 0.3,
        exclusions: Iterable[tuple[int, int]] | None = None,
    ) -> None:
        """
        Initialize Verlet neighbor finder.

        Args:
            cutoff: Interaction cutoff distance.
            skin: Buffer distance for neighbor list validity.
            exclusions: Pairs never listed.
        """
        super().__init__(cutoff, exclusions)
        if skin < 0:
            raise ValueError(f"skin must be non-negative, got {skin}")
        self.skin = float(skin)

    @property
    def list_cutoff(self) -> float:
        """Return the neighbor list cutoff (cutoff + skin)."""
        return self.cutoff + self.skin

    def needs_rebuild(self, system: System, current: NeighborList) -> bool:
        """Check whether any atom moved more than skin/2 since the build."""
        if current.positions_at_build is None:
            return True
        dr = system.box.minimum_image(current.positions_at_build, system.positions)
        max_displacement = np.max(np.linalg.norm(dr, axis=1), initial=0.0)
        # Two atoms could move toward each other
        return bool(max_displacement > self.skin / 2)

    def find_neighbors(
        self,
        system: System,
        current: NeighborList | None = None,
        step: int = 0,
    ) -> NeighborList:
        if current is not None and not self.needs_rebuild(system, current):
            return current
        return self.build(system.positions, system.box, self.list_cutoff, step)
