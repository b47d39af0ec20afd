"""Neighbor list container and the neighbor-finder interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from ..system import Box, System


@dataclass
class NeighborList:
    """
    Cached neighbor pairs.

    Attributes:
        pairs: Pair indices (i, j) with i < j, shape (P, 2).
        positions_at_build: Positions the list was built from, shape (N, D).
        step: Step index at which the list was built.
    """

    pairs: NDArray[np.integer]
    positions_at_build: NDArray[np.floating] | None = None
    step: int = 0

    def __post_init__(self) -> None:
        self.pairs = np.asarray(self.pairs, dtype=np.intp).reshape(-1, 2)

    def __len__(self) -> int:
        return len(self.pairs)

    @property
    def n_pairs(self) -> int:
        """Return the number of neighbor pairs."""
        return len(self.pairs)

    def get_neighbors(self, atom_index: int) -> NDArray[np.integer]:
        """
        Get neighbors of a specific atom.

        Args:
            atom_index: Index of the atom to query.

        Returns:
            Sorted array of neighbor atom indices.
        """
        as_i = self.pairs[self.pairs[:, 0] == atom_index, 1]
        as_j = self.pairs[self.pairs[:, 1] == atom_index, 0]
        return np.sort(np.concatenate([as_i, as_j]))


class NeighborFinder(ABC):
    """
    Abstract base class for neighbor finders.

    A finder decides when a neighbor list is due for a refresh and builds
    it. Integrators call it once with no current list before the step loop
    and again after every step except the last.
    """

    @abstractmethod
    def find_neighbors(
        self,
        system: System,
        current: NeighborList | None = None,
        step: int = 0,
    ) -> NeighborList | None:
        """
        Return a neighbor list for the current configuration.

        Args:
            system: System whose positions and boundary are scanned.
            current: Previous list. Returned unchanged when no refresh is
                     due; a new list is always built when None.
            step: Step index driving the refresh policy.

        Returns:
            Neighbor list, or None if the finder does not produce one.
        """
        ...


class NoNeighborFinder(NeighborFinder):
    """Finder for systems without neighbor-list interactions."""

    def find_neighbors(
        self,
        system: System,
        current: NeighborList | None = None,
        step: int = 0,
    ) -> None:
        return None


class PairScanFinder(NeighborFinder):
    """
    Common base for finders that build lists by a brute-force distance scan.

    Attributes:
        cutoff: Pairs closer than this distance are listed.
        exclusions: Pairs (i, j) never listed, in either order.
    """

    def __init__(
        self,
        cutoff: float,
        exclusions: Iterable[tuple[int, int]] | None = None,
    ) -> None:
        if cutoff <= 0:
            raise ValueError(f"cutoff must be positive, got {cutoff}")
        self.cutoff = float(cutoff)
        self.exclusions = {
            (min(i, j), max(i, j)) for i, j in (exclusions if exclusions else ())
        }

    def build(
        self,
        positions: NDArray[np.floating],
        box: Box,
        list_cutoff: float,
        step: int = 0,
    ) -> NeighborList:
        """
        Build a neighbor list from scratch.

        Uses O(N^2) vectorised minimum-image distances.

        Args:
            positions: Atomic positions, shape (N, D).
            box: Simulation boundary.
            list_cutoff: Distance below which pairs are listed.
            step: Step index recorded on the list.
        """
        n_atoms = len(positions)
        i_indices, j_indices = np.triu_indices(n_atoms, k=1)
        dr = box.minimum_image(positions[i_indices], positions[j_indices])
        mask = np.sum(dr**2, axis=1) < list_cutoff**2

        pairs = np.column_stack([i_indices[mask], j_indices[mask]])
        if self.exclusions and len(pairs):
            pairs = pairs[~exclusion_mask(pairs, self.exclusions, n_atoms)]

        return NeighborList(pairs=pairs, positions_at_build=positions.copy(), step=step)


def exclusion_mask(
    pairs: NDArray[np.integer],
    exclusions: Iterable[tuple[int, int]],
    n_atoms: int,
) -> NDArray[np.bool_]:
    """
    Flag pairs that appear in an exclusion set.

    Args:
        pairs: Pair indices with i < j, shape (P, 2).
        exclusions: Excluded pairs, each with i < j.
        n_atoms: Number of atoms (used to key pairs).

    Returns:
        Boolean mask of shape (P,), True for excluded pairs.
    """
    excluded = np.array(sorted(exclusions), dtype=np.intp).reshape(-1, 2)
    if len(excluded) == 0:
        return np.zeros(len(pairs), dtype=bool)
    keys = pairs[:, 0] * n_atoms + pairs[:, 1]
    excluded_keys = excluded[:, 0] * n_atoms + excluded[:, 1]
    return np.isin(keys, excluded_keys)
