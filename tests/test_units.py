"""Tests for unit conversions and the Boltzmann constant."""

import pytest
from openmm import unit

from mdsampler.errors import ConfigurationError, UnitMismatchError
from mdsampler.units import (
    AVOGADRO,
    DEFAULT_ENERGY_UNITS,
    DEFAULT_FORCE_UNITS,
    K_BOLTZMANN,
    boltzmann_constant,
    check_units,
    conversion_factor,
    same_units,
)


class TestConversionFactor:
    """Test conversion and per-mole normalization between units."""

    def test_identical_units(self):
        """Test that identical units need no conversion."""
        assert conversion_factor(DEFAULT_FORCE_UNITS, DEFAULT_FORCE_UNITS) == 1.0

    def test_equivalent_compositions(self):
        """Test that differently composed but equal units need no conversion."""
        composed = unit.kilojoule / (unit.mole * unit.nanometer)
        assert conversion_factor(composed, DEFAULT_FORCE_UNITS) == pytest.approx(1.0)
        assert same_units(composed, DEFAULT_FORCE_UNITS)

    def test_compatible_units_convert(self):
        """Test conversion between units of the same dimension."""
        assert conversion_factor(
            unit.kilocalorie_per_mole, DEFAULT_ENERGY_UNITS
        ) == pytest.approx(4.184)
        assert conversion_factor(
            unit.kilojoule_per_mole / unit.angstrom, DEFAULT_FORCE_UNITS
        ) == pytest.approx(10.0)

    def test_per_mole_to_absolute(self):
        """Test division by Avogadro's number."""
        assert conversion_factor(unit.kilojoule_per_mole, unit.kilojoule) == pytest.approx(
            1.0 / AVOGADRO
        )

    def test_absolute_to_per_mole(self):
        """Test multiplication by Avogadro's number."""
        assert conversion_factor(unit.kilojoule, unit.kilojoule_per_mole) == pytest.approx(
            AVOGADRO
        )

    def test_per_mole_and_scale_combined(self):
        """Test a per-mole normalization together with a unit conversion."""
        factor = conversion_factor(unit.kilocalorie_per_mole, unit.joule)
        assert factor == pytest.approx(4184.0 / AVOGADRO)

    def test_mismatch(self):
        """Test that differing dimensions raise."""
        with pytest.raises(UnitMismatchError):
            conversion_factor(unit.kilojoule_per_mole, DEFAULT_FORCE_UNITS)
        with pytest.raises(UnitMismatchError):
            conversion_factor(unit.nanometer, unit.kilojoule)

    def test_avogadro(self):
        """Test the Avogadro constant value."""
        assert AVOGADRO == pytest.approx(6.02214076e23)


class TestUnitChecks:
    """Test unit validation helpers."""

    def test_same_units(self):
        """Test that scaled or per-mole variants are not the same units."""
        assert same_units(unit.kilojoule_per_mole, DEFAULT_ENERGY_UNITS)
        assert not same_units(unit.kilocalorie_per_mole, DEFAULT_ENERGY_UNITS)
        assert not same_units(unit.kilojoule, DEFAULT_ENERGY_UNITS)

    def test_check_units_rejects_strings(self):
        """Test that plain strings are not accepted as units."""
        assert check_units(unit.kilojoule, "energy_units") is unit.kilojoule
        with pytest.raises(ConfigurationError):
            check_units("kJ/mol", "energy_units")


class TestBoltzmannConstant:
    """Test the Boltzmann constant in different energy units."""

    def test_default_units(self):
        """Test kJ/mol/K."""
        assert boltzmann_constant(DEFAULT_ENERGY_UNITS) == pytest.approx(K_BOLTZMANN)
        assert K_BOLTZMANN == pytest.approx(0.0083144626, rel=1e-6)

    def test_kcal_per_mole(self):
        """Test kcal/mol/K."""
        assert boltzmann_constant(unit.kilocalorie_per_mole) == pytest.approx(
            0.0019872043, rel=1e-6
        )

    def test_absolute_joules(self):
        """Test J/K."""
        assert boltzmann_constant(unit.joule) == pytest.approx(1.380649e-23, rel=1e-6)

    def test_not_an_energy(self):
        """Test that non-energy units raise."""
        with pytest.raises(ConfigurationError):
            boltzmann_constant(unit.nanometer)
        with pytest.raises(ConfigurationError):
            boltzmann_constant(unit.kilojoule * unit.nanometer)
        with pytest.raises(ConfigurationError):
            boltzmann_constant("kJ/mol")
