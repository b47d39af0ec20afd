"""Neighbor finder refreshed on a fixed step interval."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .base import NeighborList, PairScanFinder

if TYPE_CHECKING:
    from ..system import System


class DistanceNeighborFinder(PairScanFinder):
    """
    Lists pairs within a cutoff, rebuilt every n_steps steps.

    Between rebuilds the previous list is reused as is, so the cutoff
    should carry a margin over the interaction cutoff.
    """

    def __init__(
        self,
        cutoff: float,
        n_steps: int = 10,
        exclusions: Iterable[tuple[int, int]] | None = None,
    ) -> None:
        """
        Initialize distance neighbor finder.

        Args:
            cutoff: Neighbor distance cutoff.
            n_steps: Rebuild interval in steps.
            exclusions: Pairs never listed.
        """
        super().__init__(cutoff, exclusions)
        if n_steps < 1:
            raise ValueError(f"n_steps must be at least 1, got {n_steps}")
        self.n_steps = n_steps

    def find_neighbors(
        self,
        system: System,
        current: NeighborList | None = None,
        step: int = 0,
    ) -> NeighborList:
        if current is not None and step % self.n_steps != 0:
            return current
        return self.build(system.positions, system.box, self.cutoff, step)
