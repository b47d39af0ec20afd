"""Interaction kinds evaluated by the force aggregator."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import ArrayLike, NDArray
from openmm import unit

from ..errors import ConfigurationError
from ..neighborlists import exclusion_mask
from ..units import DEFAULT_ENERGY_UNITS, DEFAULT_FORCE_UNITS

if TYPE_CHECKING:
    from ..neighborlists import NeighborList
    from ..system import Box


class Interaction(ABC):
    """
    Abstract base class for everything that contributes forces and energy.

    An interaction declares its work items through ``select`` and evaluates
    forces or energy over any subset of those items. The aggregator may split
    the items across threads, so ``forces`` and ``potential_energy`` must not
    mutate the interaction.

    Attributes:
        force_units: Units of the forces returned.
        energy_units: Units of the energies returned.
    """

    force_units: unit.Unit = DEFAULT_FORCE_UNITS
    energy_units: unit.Unit = DEFAULT_ENERGY_UNITS

    def __deepcopy__(self, memo: dict[int, Any]) -> Interaction:
        """Deep copy everything except units, which are shared."""
        clone = copy.copy(self)
        memo[id(self)] = clone
        for name, value in vars(self).items():
            if not isinstance(value, unit.Unit):
                setattr(clone, name, copy.deepcopy(value, memo))
        return clone

    @abstractmethod
    def select(
        self, n_atoms: int, neighbors: NeighborList | None
    ) -> NDArray[np.integer] | None:
        """
        Return the work items for this configuration.

        Args:
            n_atoms: Number of atoms in the system.
            neighbors: Current neighbor list, if any.

        Returns:
            Array of work items along the first axis, or None when the
            interaction is evaluated once over the whole system.
        """
        ...

    @abstractmethod
    def forces(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: NDArray[np.integer] | None,
    ) -> NDArray[np.floating]:
        """
        Compute forces from a subset of work items.

        Args:
            coords: Positions, shape (N, D).
            box: Simulation boundary.
            items: Work items returned by ``select`` (or a chunk of them).

        Returns:
            Forces array of shape (N, D) in ``force_units``.
        """
        ...

    @abstractmethod
    def potential_energy(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: NDArray[np.integer] | None,
    ) -> float:
        """Compute the energy of a subset of work items in ``energy_units``."""
        ...


class PairwiseInteraction(Interaction):
    """
    Interaction defined by a function of each particle pair.

    Subclasses implement ``pair_forces`` and ``pair_energies``. With
    ``nl_only`` set, only pairs on the neighbor list are evaluated;
    otherwise every pair i < j is. Self pairs are never produced.

    Attributes:
        nl_only: Restrict evaluation to neighbor-list pairs.
        exclusions: Pairs (i, j) never evaluated, in either order.
    """

    nl_only: bool = False
    exclusions: frozenset[tuple[int, int]] = frozenset()

    def set_exclusions(self, exclusions: Iterable[tuple[int, int]] | None) -> None:
        """Store exclusions normalised to i < j."""
        self.exclusions = frozenset(
            (min(i, j), max(i, j)) for i, j in (exclusions if exclusions else ())
        )

    @abstractmethod
    def pair_forces(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        """
        Compute pair forces.

        Args:
            dr: Minimum image displacements x_j - x_i, shape (P, D).
            i: First atom of each pair, shape (P,).
            j: Second atom of each pair, shape (P,).

        Returns:
            Force on atom j from atom i, shape (P, D).
        """
        ...

    @abstractmethod
    def pair_energies(
        self,
        dr: NDArray[np.floating],
        i: NDArray[np.integer],
        j: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        """Compute pair energies, shape (P,)."""
        ...

    def select(
        self, n_atoms: int, neighbors: NeighborList | None
    ) -> NDArray[np.integer]:
        if self.nl_only:
            if neighbors is None:
                raise ConfigurationError(
                    f"{type(self).__name__} uses the neighbor list but the system "
                    "has no neighbor finder"
                )
            pairs = neighbors.pairs
        else:
            pairs = np.column_stack(np.triu_indices(n_atoms, k=1))

        if self.exclusions and len(pairs):
            pairs = pairs[~exclusion_mask(pairs, self.exclusions, n_atoms)]
        return pairs

    def forces(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: NDArray[np.integer] | None,
    ) -> NDArray[np.floating]:
        forces = np.zeros_like(coords)
        if items is None or len(items) == 0:
            return forces

        i_indices = items[:, 0]
        j_indices = items[:, 1]
        dr = box.minimum_image(coords[i_indices], coords[j_indices])
        force_vectors = self.pair_forces(dr, i_indices, j_indices)

        # Newton's third law
        np.add.at(forces, j_indices, force_vectors)
        np.add.at(forces, i_indices, -force_vectors)
        return forces

    def potential_energy(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: NDArray[np.integer] | None,
    ) -> float:
        if items is None or len(items) == 0:
            return 0.0
        i_indices = items[:, 0]
        j_indices = items[:, 1]
        dr = box.minimum_image(coords[i_indices], coords[j_indices])
        return float(np.sum(self.pair_energies(dr, i_indices, j_indices)))


class SpecificInteraction(Interaction):
    """
    Interaction over a fixed list of atom groups (bonds, angles, torsions).

    Subclasses set ``groups`` to an integer array of shape (G, k) and
    implement ``group_forces`` and ``group_energies`` over any subset of
    rows. Forces within a group must sum to zero.
    """

    groups: NDArray[np.integer]

    @staticmethod
    def _as_groups(indices: ArrayLike, size: int) -> NDArray[np.integer]:
        return np.asarray(indices, dtype=np.intp).reshape(-1, size)

    @staticmethod
    def _broadcast(values: ArrayLike, n_groups: int, name: str) -> NDArray[np.floating]:
        values = np.asarray(values, dtype=np.float64)
        if values.ndim == 0:
            return np.full(n_groups, float(values))
        if len(values) != n_groups:
            raise ValueError(f"{name} length {len(values)} != number of groups {n_groups}")
        return values

    @abstractmethod
    def group_forces(
        self,
        coords: NDArray[np.floating],
        box: Box,
        rows: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        """
        Compute per-atom forces for selected groups.

        Args:
            coords: Positions, shape (N, D).
            box: Simulation boundary.
            rows: Row indices into ``groups``, shape (G',).

        Returns:
            Forces on each group member, shape (G', k, D).
        """
        ...

    @abstractmethod
    def group_energies(
        self,
        coords: NDArray[np.floating],
        box: Box,
        rows: NDArray[np.integer],
    ) -> NDArray[np.floating]:
        """Compute the energy of each selected group, shape (G',)."""
        ...

    def select(
        self, n_atoms: int, neighbors: NeighborList | None
    ) -> NDArray[np.integer]:
        return np.arange(len(self.groups))

    def forces(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: NDArray[np.integer] | None,
    ) -> NDArray[np.floating]:
        forces = np.zeros_like(coords)
        if items is None or len(items) == 0:
            return forces

        group_forces = self.group_forces(coords, box, items)
        np.add.at(
            forces,
            self.groups[items].ravel(),
            group_forces.reshape(-1, coords.shape[1]),
        )
        return forces

    def potential_energy(
        self,
        coords: NDArray[np.floating],
        box: Box,
        items: NDArray[np.integer] | None,
    ) -> float:
        if items is None or len(items) == 0:
            return 0.0
        return float(np.sum(self.group_energies(coords, box, items)))


class GeneralInteraction(Interaction):
    """
    Interaction evaluated once over the whole system.

    Subclasses override ``forces`` and ``potential_energy``; ``items`` is
    always None.
    """

    def select(self, n_atoms: int, neighbors: NeighborList | None) -> None:
        return None
