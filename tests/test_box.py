"""Tests for Box class."""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from mdsampler.system.box import Box


class TestBoxCreation:
    """Test box creation methods."""

    def test_cubic_box(self):
        """Test creating a cubic box."""
        box = Box.cubic(10.0)
        assert np.allclose(box.lengths, [10.0, 10.0, 10.0])
        assert box.is_orthorhombic
        assert np.isclose(box.volume, 1000.0)

    def test_orthorhombic_box(self):
        """Test creating an orthorhombic box."""
        box = Box.orthorhombic(10.0, 20.0, 30.0)
        assert np.allclose(box.lengths, [10.0, 20.0, 30.0])
        assert box.is_orthorhombic
        assert np.isclose(box.volume, 6000.0)

    def test_triclinic_box(self):
        """Test creating a triclinic box."""
        vectors = [
            [10.0, 0.0, 0.0],
            [2.0, 10.0, 0.0],
            [1.0, 1.0, 10.0],
        ]
        box = Box.triclinic(vectors)
        assert not box.is_orthorhombic
        assert np.isclose(box.volume, 1000.0)

    def test_two_dimensional_box(self):
        """Test creating a 2D rectangular box."""
        box = Box.rectangular([4.0, 5.0])
        assert box.n_dims == 2
        assert np.isclose(box.volume, 20.0)

    def test_unbounded_box(self):
        """Test a box without periodic dimensions."""
        box = Box.unbounded(3)
        assert box.n_dims == 3
        assert not box.is_periodic
        assert box.volume == float("inf")

    def test_invalid_shape(self):
        """Test that invalid shapes raise errors."""
        with pytest.raises(ValueError):
            Box(np.ones((2, 3)))
        with pytest.raises(ValueError):
            Box(np.ones(4))

    def test_non_finite_off_diagonal(self):
        """Test that infinite tilt vectors are rejected."""
        with pytest.raises(ValueError):
            Box([[10.0, np.inf], [0.0, 10.0]])


class TestPeriodicBoundaries:
    """Test periodic boundary condition methods."""

    def test_wrap_positions_orthorhombic(self):
        """Test position wrapping for orthorhombic box."""
        box = Box.cubic(10.0)

        pos = np.array([[5.0, 5.0, 5.0]])
        assert np.allclose(box.wrap_positions(pos), pos)

        pos = np.array([[15.0, -3.0, 25.0]])
        assert np.allclose(box.wrap_positions(pos), [[5.0, 7.0, 5.0]])

    def test_wrap_mixed_periodicity(self):
        """Non-periodic dimensions are left untouched."""
        box = Box.rectangular([10.0, np.inf, 10.0])
        wrapped = box.wrap_positions([[12.0, 50.0, -1.0]])
        assert np.allclose(wrapped, [[2.0, 50.0, 9.0]])

    def test_wrap_unbounded_is_identity(self):
        """Unbounded boxes never move positions."""
        box = Box.unbounded(2)
        pos = np.array([[123.0, -45.0]])
        assert np.array_equal(box.wrap_positions(pos), pos)

    def test_wrap_triclinic(self):
        """Test wrapping through fractional coordinates."""
        box = Box.triclinic([[10.0, 0.0, 0.0], [2.0, 10.0, 0.0], [0.0, 0.0, 10.0]])
        wrapped = box.wrap_positions([[11.0, 1.0, 1.0]])
        assert np.allclose(wrapped, [[1.0, 1.0, 1.0]])

    def test_triclinic_requires_periodicity(self):
        """Test that a partly infinite triclinic box cannot wrap."""
        box = Box([[10.0, 0.0], [1.0, np.inf]])
        with pytest.raises(ValueError):
            box.wrap_positions([[1.0, 1.0]])

    def test_minimum_image_orthorhombic(self):
        """Test minimum image displacement for orthorhombic box."""
        box = Box.cubic(10.0)

        dr = box.minimum_image([1.0, 1.0, 1.0], [2.0, 1.0, 1.0])
        assert np.allclose(dr, [1.0, 0.0, 0.0])

        dr = box.minimum_image([1.0, 1.0, 1.0], [9.0, 1.0, 1.0])
        assert np.allclose(dr, [-2.0, 0.0, 0.0])

    def test_minimum_image_distance(self):
        """Test minimum image distance calculation."""
        box = Box.cubic(10.0)
        dist = box.minimum_image_distance([1.0, 1.0, 1.0], [9.0, 1.0, 1.0])
        assert np.isclose(dist, 2.0)

    def test_minimum_image_batch(self):
        """Test minimum image for multiple pairs."""
        box = Box.cubic(10.0)

        r1 = np.array([[1.0, 1.0, 1.0], [0.0, 0.0, 0.0]])
        r2 = np.array([[9.0, 1.0, 1.0], [9.5, 0.0, 0.0]])

        expected = np.array([[-2.0, 0.0, 0.0], [-0.5, 0.0, 0.0]])
        assert np.allclose(box.minimum_image(r1, r2), expected)

    def test_minimum_image_unbounded(self):
        """Test that unbounded boxes give the plain difference."""
        box = Box.unbounded(3)
        dr = box.minimum_image([0.0, 0.0, 0.0], [100.0, -7.0, 3.0])
        assert np.allclose(dr, [100.0, -7.0, 3.0])

    def test_minimum_image_triclinic(self):
        """Test minimum image through a tilted boundary."""
        box = Box.triclinic([[10.0, 0.0, 0.0], [2.0, 10.0, 0.0], [0.0, 0.0, 10.0]])
        dr = box.minimum_image([0.0, 0.5, 0.0], [2.0, 9.5, 0.0])
        assert np.allclose(dr, [0.0, -1.0, 0.0])


class TestBoxImmutability:
    """Test that Box is immutable."""

    def test_frozen_dataclass(self):
        """Test that box attributes cannot be modified."""
        box = Box.cubic(10.0)

        with pytest.raises(FrozenInstanceError):
            box.vectors = np.eye(3)
