"""Simulation box (boundary) representation."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray


@dataclass(frozen=True)
class Box:
    """
    Simulation boundary.

    Supports rectangular and triclinic boxes in 1 to 3 dimensions via a
    (D, D) matrix whose rows are the box vectors. For rectangular boxes the
    matrix is diagonal; an infinite length makes that dimension non-periodic,
    so ``Box.unbounded(3)`` describes a system with no boundary at all.

    Attributes:
        vectors: (D, D) array where rows are box vectors.
    """

    vectors: NDArray[np.floating]

    def __post_init__(self) -> None:
        """Validate and convert vectors to proper shape."""
        vectors = np.asarray(self.vectors, dtype=np.float64)
        if vectors.ndim == 1:
            # Rectangular box specified by lengths
            vectors = np.diag(vectors)
        if vectors.ndim != 2 or vectors.shape[0] != vectors.shape[1]:
            raise ValueError(f"Box vectors must be (D,) or (D, D), got {vectors.shape}")
        if not 1 <= vectors.shape[0] <= 3:
            raise ValueError(f"Box must have 1 to 3 dimensions, got {vectors.shape[0]}")

        off_diag = vectors.copy()
        np.fill_diagonal(off_diag, 0)
        if not np.all(np.isfinite(off_diag)):
            raise ValueError("Triclinic box vectors must be finite")

        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(self, "vectors", vectors)

    @classmethod
    def rectangular(cls, lengths: ArrayLike) -> Box:
        """Create a rectangular box from side lengths (inf for non-periodic)."""
        return cls(np.asarray(lengths, dtype=np.float64))

    @classmethod
    def orthorhombic(cls, lx: float, ly: float, lz: float) -> Box:
        """Create an orthorhombic box with given side lengths."""
        return cls(np.array([lx, ly, lz]))

    @classmethod
    def cubic(cls, length: float) -> Box:
        """Create a cubic box with given side length."""
        return cls.orthorhombic(length, length, length)

    @classmethod
    def triclinic(cls, vectors: ArrayLike) -> Box:
        """Create a triclinic box from (D, D) matrix of box vectors."""
        return cls(np.asarray(vectors))

    @classmethod
    def unbounded(cls, n_dims: int = 3) -> Box:
        """Create a boundary-free box."""
        return cls(np.full(n_dims, np.inf))

    @property
    def n_dims(self) -> int:
        """Return the number of spatial dimensions."""
        return self.vectors.shape[0]

    @property
    def lengths(self) -> NDArray[np.floating]:
        """Return box vector lengths."""
        return np.linalg.norm(self.vectors, axis=1)

    @property
    def periodic(self) -> NDArray[np.bool_]:
        """Return per-dimension periodicity flags."""
        return np.isfinite(np.diag(self.vectors))

    @property
    def is_periodic(self) -> bool:
        """Check if any dimension wraps."""
        return bool(np.any(self.periodic))

    @property
    def volume(self) -> float:
        """Return box volume (inf when any dimension is non-periodic)."""
        if not np.all(self.periodic):
            return float("inf")
        return float(np.abs(np.linalg.det(self.vectors)))

    @property
    def is_orthorhombic(self) -> bool:
        """Check if box is rectangular (diagonal matrix)."""
        off_diag = self.vectors.copy()
        np.fill_diagonal(off_diag, 0)
        return np.allclose(off_diag, 0)

    def _check_triclinic(self) -> None:
        if not np.all(self.periodic):
            raise ValueError("Triclinic boxes must be periodic in every dimension")

    def wrap_positions(self, positions: ArrayLike) -> NDArray[np.floating]:
        """
        Wrap positions into the primary box using periodic boundary conditions.

        Non-periodic dimensions are returned unchanged.

        Args:
            positions: Positions array of shape (N, D) or (D,).

        Returns:
            Wrapped positions array with the input shape.
        """
        positions = np.asarray(positions, dtype=np.float64)
        if self.is_orthorhombic:
            # Fast path for rectangular boxes
            lengths = np.diag(self.vectors)
            periodic = self.periodic
            if not np.any(periodic):
                return positions.copy()
            wrapped = positions.copy()
            wrapped[..., periodic] = positions[..., periodic] - lengths[
                periodic
            ] * np.floor(positions[..., periodic] / lengths[periodic])
            return wrapped
        else:
            # General triclinic case: convert to fractional, wrap, convert back
            self._check_triclinic()
            inv_vectors = np.linalg.inv(self.vectors)
            fractional = positions @ inv_vectors
            fractional = fractional - np.floor(fractional)
            return fractional @ self.vectors

    def minimum_image(self, r1: ArrayLike, r2: ArrayLike) -> NDArray[np.floating]:
        """
        Compute minimum image displacement vector r2 - r1.

        Args:
            r1: First position(s), shape (D,) or (N, D).
            r2: Second position(s), shape (D,) or (N, D).

        Returns:
            Displacement vector(s) under minimum image convention.
        """
        dr = np.asarray(r2, dtype=np.float64) - np.asarray(r1, dtype=np.float64)
        if self.is_orthorhombic:
            lengths = np.diag(self.vectors)
            periodic = self.periodic
            if not np.any(periodic):
                return dr
            dr[..., periodic] -= lengths[periodic] * np.round(
                dr[..., periodic] / lengths[periodic]
            )
            return dr
        else:
            self._check_triclinic()
            inv_vectors = np.linalg.inv(self.vectors)
            fractional = dr @ inv_vectors
            fractional = fractional - np.round(fractional)
            return fractional @ self.vectors

    def minimum_image_distance(
        self, r1: ArrayLike, r2: ArrayLike
    ) -> float | NDArray[np.floating]:
        """
        Compute minimum image distance between positions.

        Args:
            r1: First position(s), shape (D,) or (N, D).
            r2: Second position(s), shape (D,) or (N, D).

        Returns:
            Distance(s) under minimum image convention.
        """
        dr = self.minimum_image(r1, r2)
        return np.linalg.norm(dr, axis=-1)
