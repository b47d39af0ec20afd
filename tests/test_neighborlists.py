"""Tests for neighbor lists and finders."""

import numpy as np
import pytest

from mdsampler.neighborlists import (
    DistanceNeighborFinder,
    NeighborList,
    NoNeighborFinder,
    VerletNeighborFinder,
)
from mdsampler.system import Box, ParticleState, System


@pytest.fixture
def system():
    """Four atoms in a periodic cubic box."""
    positions = np.array(
        [
            [0.1, 0.1, 0.1],
            [0.5, 0.1, 0.1],
            [2.9, 0.1, 0.1],
            [1.5, 1.5, 1.5],
        ]
    )
    state = ParticleState.create(positions, np.ones(4), Box.cubic(3.0))
    return System(state)


def pair_set(neighbors):
    return {tuple(int(x) for x in pair) for pair in neighbors.pairs}


class TestNeighborList:
    """Test the neighbor list container."""

    def test_pairs_shape(self):
        """Test that empty pair lists keep two columns."""
        neighbors = NeighborList(pairs=[])
        assert neighbors.pairs.shape == (0, 2)
        assert neighbors.n_pairs == 0
        assert len(neighbors) == 0

    def test_get_neighbors(self):
        """Test neighbor lookup for one atom."""
        neighbors = NeighborList(pairs=[[0, 1], [0, 2], [1, 3]])
        assert np.array_equal(neighbors.get_neighbors(0), [1, 2])
        assert np.array_equal(neighbors.get_neighbors(1), [0, 3])
        assert np.array_equal(neighbors.get_neighbors(3), [1])


class TestDistanceNeighborFinder:
    """Test the interval-refreshed finder."""

    def test_periodic_pairs(self, system):
        """Test that pairs are found through the boundary."""
        finder = DistanceNeighborFinder(cutoff=0.5)
        neighbors = finder.find_neighbors(system)
        assert pair_set(neighbors) == {(0, 1), (0, 2)}

    def test_exclusions(self, system):
        """Test that excluded pairs are never listed."""
        finder = DistanceNeighborFinder(cutoff=0.5, exclusions=[(1, 0)])
        assert pair_set(finder.find_neighbors(system)) == {(0, 2)}

    def test_refresh_interval(self, system):
        """Test that the list is reused between refresh steps."""
        finder = DistanceNeighborFinder(cutoff=0.5, n_steps=5)
        neighbors = finder.find_neighbors(system)
        assert finder.find_neighbors(system, neighbors, step=3) is neighbors

        rebuilt = finder.find_neighbors(system, neighbors, step=5)
        assert rebuilt is not neighbors
        assert rebuilt.step == 5

    def test_unbounded_box(self):
        """Test that unbounded systems use plain distances."""
        positions = np.array([[0.0, 0.0], [0.3, 0.0], [10.0, 0.0]])
        system = System(ParticleState.create(positions, np.ones(3), Box.unbounded(2)))
        neighbors = DistanceNeighborFinder(cutoff=1.0).find_neighbors(system)
        assert pair_set(neighbors) == {(0, 1)}

    def test_invalid_parameters(self):
        """Test parameter validation."""
        with pytest.raises(ValueError):
            DistanceNeighborFinder(cutoff=0.0)
        with pytest.raises(ValueError):
            DistanceNeighborFinder(cutoff=1.0, n_steps=0)


class TestVerletNeighborFinder:
    """Test the skin-based finder."""

    def test_list_cutoff_includes_skin(self, system):
        """Test that pairs within cutoff + skin are listed."""
        finder = VerletNeighborFinder(cutoff=0.3, skin=0.2)
        assert finder.list_cutoff == pytest.approx(0.5)
        assert pair_set(finder.find_neighbors(system)) == {(0, 1), (0, 2)}

    def test_small_moves_keep_list(self, system):
        """Test that moves below half the skin reuse the list."""
        finder = VerletNeighborFinder(cutoff=0.3, skin=0.2)
        neighbors = finder.find_neighbors(system)
        system.positions[3] += [0.05, 0.0, 0.0]
        assert not finder.needs_rebuild(system, neighbors)
        assert finder.find_neighbors(system, neighbors, step=1) is neighbors

    def test_large_moves_rebuild(self, system):
        """Test that moves beyond half the skin rebuild the list."""
        finder = VerletNeighborFinder(cutoff=0.3, skin=0.2)
        neighbors = finder.find_neighbors(system)
        system.positions[1] += [0.15, 0.0, 0.0]
        assert finder.needs_rebuild(system, neighbors)
        rebuilt = finder.find_neighbors(system, neighbors, step=4)
        assert rebuilt is not neighbors
        assert pair_set(rebuilt) == {(0, 2)}

    def test_wrapped_atoms_do_not_rebuild(self, system):
        """Test that displacements use the minimum image."""
        finder = VerletNeighborFinder(cutoff=0.3, skin=0.2)
        neighbors = finder.find_neighbors(system)
        system.positions[2] = [-0.05, 0.1, 0.1]
        assert not finder.needs_rebuild(system, neighbors)


class TestNoNeighborFinder:
    """Test the null finder."""

    def test_returns_none(self, system):
        """Test that no list is produced."""
        assert NoNeighborFinder().find_neighbors(system) is None
        assert system.find_neighbors() is None
