"""
Physical units and the per-amount-of-substance normalization.

Arrays inside the engine are plain float64 values. Units are carried as
``openmm.unit`` units on the system and on each interaction, e.g.
``unit.kilojoule_per_mole / unit.nanometer``. Before contributions are
summed, each one is scaled into the system's units: compatible units are
converted, and a per-mole quantity combined with an absolute one is
divided by Avogadro's number (the reverse multiplies by it). Any other
difference in dimension is a programming error.
"""

from __future__ import annotations

import math

from openmm import unit

from .errors import ConfigurationError, UnitMismatchError

AVOGADRO = unit.AVOGADRO_CONSTANT_NA.value_in_unit(unit.mole**-1)

kB = unit.BOLTZMANN_CONSTANT_kB * unit.AVOGADRO_CONSTANT_NA  # Boltzmann constant

# Boltzmann constant in MD units (kJ/mol/K)
K_BOLTZMANN = kB.value_in_unit(unit.kilojoule_per_mole / unit.kelvin)

DEFAULT_FORCE_UNITS = unit.kilojoule_per_mole / unit.nanometer
DEFAULT_ENERGY_UNITS = unit.kilojoule_per_mole


def check_units(units: unit.Unit, name: str) -> unit.Unit:
    """Reject anything that is not an ``openmm.unit`` unit."""
    if not isinstance(units, unit.Unit):
        raise ConfigurationError(
            f"{name} must be an openmm.unit Unit, got {type(units).__name__} {units!r}"
        )
    return units


def same_units(a: unit.Unit, b: unit.Unit) -> bool:
    """Return True if two units share a dimension and convert with factor 1."""
    return a.is_compatible(b) and math.isclose(a.conversion_factor_to(b), 1.0)


def _normalized_value(quantity: unit.Quantity, target: unit.Unit) -> float | None:
    for candidate in (
        quantity,
        quantity / unit.AVOGADRO_CONSTANT_NA,
        quantity * unit.AVOGADRO_CONSTANT_NA,
    ):
        if candidate.unit.is_compatible(target):
            return candidate.value_in_unit(target)
    return None


def conversion_factor(source: unit.Unit, target: unit.Unit) -> float:
    """
    Return the factor that brings a quantity in ``source`` units into ``target``.

    Compatible units convert directly. A mol^-1 factor present on only one
    side is removed with Avogadro's number first.

    Raises:
        UnitMismatchError: If the dimensions differ by more than a mol^-1 factor.
    """
    if source is target:
        return 1.0

    factor = _normalized_value(1.0 * source, target)
    if factor is None:
        raise UnitMismatchError(
            f"Simulation unit is {target} but encountered unit {source}"
        )
    return factor


def boltzmann_constant(energy_units: unit.Unit) -> float:
    """
    Boltzmann constant expressed in ``energy_units`` per kelvin.

    Raises:
        ConfigurationError: If ``energy_units`` is not an energy, optionally
            per mole; pass an explicit ``k`` to the system in that case.
    """
    check_units(energy_units, "energy_units")
    k = _normalized_value(unit.BOLTZMANN_CONSTANT_kB * unit.kelvin, energy_units)
    if k is None:
        raise ConfigurationError(
            f"Cannot derive the Boltzmann constant for energy units {energy_units}"
        )
    return k
