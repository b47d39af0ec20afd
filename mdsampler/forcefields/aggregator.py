"""
Force aggregator: totals forces, accelerations and potential energy.

Every interaction in the system's force field contributes in insertion
order. Contributions are summed as plain float64 arrays after being scaled
into the system's unit convention. Large systems split pair and group work
items across a thread pool, each chunk filling its own (N, D) accumulator.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from ..errors import NumericalInstabilityWarning
from ..parallel import ParallelBackend, get_backend
from ..units import conversion_factor

if TYPE_CHECKING:
    from ..neighborlists import NeighborList
    from ..system import System
    from .base import Interaction

logger = logging.getLogger(__name__)

# Minimum atom count for threaded evaluation
PARALLEL_THRESHOLD = 100

# Force magnitude above which an instability warning is issued
FORCE_WARNING_THRESHOLD = 1.0e8


def _backend(n_atoms: int, n_threads: int) -> ParallelBackend:
    if n_threads > 1 and n_atoms >= PARALLEL_THRESHOLD:
        return get_backend("threads", n_workers=n_threads)
    return get_backend("serial")


def _evaluate(
    term: Interaction,
    evaluate: Callable[[NDArray[Any] | None], Any],
    n_atoms: int,
    neighbors: NeighborList | None,
    backend: ParallelBackend,
) -> list[Any]:
    items = term.select(n_atoms, neighbors)
    if items is None:
        return [evaluate(None)]
    return backend.parallel_map(evaluate, backend.partition(items))


def _check_forces(forces: NDArray[np.floating]) -> None:
    if not np.all(np.isfinite(forces)):
        message = "Non-finite forces encountered"
    else:
        max_force = float(np.max(np.abs(forces), initial=0.0))
        if max_force <= FORCE_WARNING_THRESHOLD:
            return
        message = f"Maximum force component {max_force:.3e} exceeds {FORCE_WARNING_THRESHOLD:.1e}"
    logger.warning(message)
    warnings.warn(message, NumericalInstabilityWarning, stacklevel=3)


def forces(
    system: System,
    neighbors: NeighborList | None = None,
    n_threads: int = 1,
) -> NDArray[np.floating]:
    """
    Compute total forces on all atoms.

    Args:
        system: System to evaluate. Not mutated.
        neighbors: Current neighbor list, required by neighbor-list
                   interactions.
        n_threads: Thread budget for this evaluation.

    Returns:
        Forces array of shape (N, D) in the system's force units.

    Raises:
        UnitMismatchError: If an interaction's force units are incompatible.
        ConfigurationError: If a neighbor-list interaction gets no list.
    """
    coords = system.positions
    box = system.box
    backend = _backend(system.n_atoms, n_threads)
    total = np.zeros_like(coords)

    for term in system.force_field:
        factor = conversion_factor(term.force_units, system.force_units)
        chunks = _evaluate(
            term,
            lambda items: term.forces(coords, box, items),
            system.n_atoms,
            neighbors,
            backend,
        )
        for contribution in chunks:
            if np.shape(contribution) != coords.shape:
                raise ValueError(
                    f"{type(term).__name__} returned forces of shape "
                    f"{np.shape(contribution)}, expected {coords.shape}"
                )
        total += factor * backend.reduce_sum(chunks, np.zeros_like(coords))

    _check_forces(total)
    return total


def accelerations(
    system: System,
    neighbors: NeighborList | None = None,
    n_threads: int = 1,
) -> NDArray[np.floating]:
    """
    Compute accelerations of all atoms (forces divided by masses).

    Args:
        system: System to evaluate. Not mutated.
        neighbors: Current neighbor list.
        n_threads: Thread budget for this evaluation.

    Returns:
        Accelerations array of shape (N, D).
    """
    return forces(system, neighbors, n_threads) / system.masses[:, np.newaxis]


def potential_energy(
    system: System,
    neighbors: NeighborList | None = None,
    n_threads: int = 1,
) -> float:
    """
    Compute the total potential energy.

    Args:
        system: System to evaluate. Not mutated.
        neighbors: Current neighbor list.
        n_threads: Thread budget for this evaluation.

    Returns:
        Potential energy in the system's energy units.
    """
    coords = system.positions
    box = system.box
    backend = _backend(system.n_atoms, n_threads)
    total = 0.0

    for term in system.force_field:
        factor = conversion_factor(term.energy_units, system.energy_units)
        chunks = _evaluate(
            term,
            lambda items: term.potential_energy(coords, box, items),
            system.n_atoms,
            neighbors,
            backend,
        )
        total += factor * float(backend.reduce_sum(chunks, 0.0))

    return total
