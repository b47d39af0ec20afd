"""Ordered collection of interactions."""

from __future__ import annotations

from collections.abc import Iterator

from .base import GeneralInteraction, Interaction, PairwiseInteraction, SpecificInteraction


class ForceField:
    """
    Ordered collection of interactions applied to one system.

    Implements the composite pattern: the aggregator walks the terms in
    insertion order, so the order is stable across calls.

    Example:
        ff = ForceField([
            HarmonicBond(bonds, k_b, r0),
            LennardJones(epsilon, sigma, nl_only=True),
            Coulomb(charges),
        ])
    """

    def __init__(self, terms: list[Interaction] | None = None) -> None:
        """
        Initialize force field.

        Args:
            terms: List of interactions to combine.
        """
        self.terms: list[Interaction] = list(terms) if terms is not None else []
        for term in self.terms:
            self._check(term)

    @staticmethod
    def _check(term: Interaction) -> None:
        if not isinstance(term, Interaction):
            raise TypeError(f"Expected an Interaction, got {type(term).__name__}")

    def add(self, term: Interaction) -> None:
        """Add an interaction."""
        self._check(term)
        self.terms.append(term)

    def remove(self, term: Interaction) -> None:
        """Remove an interaction."""
        self.terms.remove(term)

    def __iter__(self) -> Iterator[Interaction]:
        return iter(self.terms)

    def __len__(self) -> int:
        return len(self.terms)

    @property
    def pairwise(self) -> list[PairwiseInteraction]:
        """Pairwise interactions, in order."""
        return [t for t in self.terms if isinstance(t, PairwiseInteraction)]

    @property
    def specific(self) -> list[SpecificInteraction]:
        """Specific (group) interactions, in order."""
        return [t for t in self.terms if isinstance(t, SpecificInteraction)]

    @property
    def general(self) -> list[GeneralInteraction]:
        """General interactions, in order."""
        return [t for t in self.terms if isinstance(t, GeneralInteraction)]
