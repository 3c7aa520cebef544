# -*- coding: utf-8 -*-
"""
Unit Conversion Engine

All conversions are deterministic mathematical operations over a fixed
whitelist. Fail loudly on any pair outside it: the engine never assumes two
units are compatible.

Supports:
- Distance: miles <-> km
- Mass: kg <-> lb
- Volume: gallons <-> liters
- Identity for any unit converted to itself (kWh, therms, minutes, items, ...)

Factor unit strings look like "kgCO2_per_kWh", "kgCO2e_per_kg",
"kgCO2_per_passenger_mile" or "kgCO2e_per_pkm". Only the denominator (right
of "_per_") matters to the engine.
"""

from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

from footprint_engine.exceptions import UnsupportedConversion

KM_PER_MI = Decimal('1.609344')
LB_PER_KG = Decimal('2.20462262185')
LITER_PER_GAL = Decimal('3.785411784')

PER_MARKER = "_per_"


class UnitConverter:
    """
    Whitelisted unit converter.

    GUARANTEES:
    - Same input -> Same output (Decimal arithmetic, float result)
    - Pairs outside the whitelist -> UnsupportedConversion
    - Spelling variants ("lbs", "Miles", "gal") are normalized before lookup
    """

    # Spelling variants -> canonical token
    UNIT_ALIASES: Dict[str, str] = {
        'mile': 'miles',
        'miles': 'miles',
        'mi': 'miles',
        'km': 'km',
        'kms': 'km',
        'kilometer': 'km',
        'kilometers': 'km',
        'kilometre': 'km',
        'kilometres': 'km',
        'kg': 'kg',
        'kgs': 'kg',
        'kilogram': 'kg',
        'kilograms': 'kg',
        'lb': 'lb',
        'lbs': 'lb',
        'pound': 'lb',
        'pounds': 'lb',
        'gallon': 'gallons',
        'gallons': 'gallons',
        'gal': 'gallons',
        'liter': 'liters',
        'liters': 'liters',
        'litre': 'liters',
        'litres': 'liters',
        'l': 'liters',
        'kwh': 'kWh',
        'therm': 'therms',
        'therms': 'therms',
        'minute': 'minutes',
        'minutes': 'minutes',
        'min': 'minutes',
        'item': 'items',
        'items': 'items',
    }

    # (from, to) -> multiplier applied to the value
    CONVERSIONS: Dict[Tuple[str, str], Decimal] = {
        ('miles', 'km'): KM_PER_MI,
        ('km', 'miles'): Decimal(1) / KM_PER_MI,
        ('kg', 'lb'): LB_PER_KG,
        ('lb', 'kg'): Decimal(1) / LB_PER_KG,
        ('gallons', 'liters'): LITER_PER_GAL,
        ('liters', 'gallons'): Decimal(1) / LITER_PER_GAL,
    }

    def normalize(self, unit: str) -> str:
        """Map a unit spelling to its canonical token (unknown units pass through stripped)."""
        stripped = unit.strip()
        return self.UNIT_ALIASES.get(stripped.lower(), stripped)

    def to_match_unit(
        self,
        value: Union[float, int, Decimal],
        from_unit: str,
        to_unit: str,
    ) -> float:
        """
        Convert value from one unit to another.

        Args:
            value: Numerical value to convert
            from_unit: Source unit (e.g., 'miles', 'lbs')
            to_unit: Target unit (e.g., 'km', 'kg')

        Returns:
            Converted value as float

        Raises:
            UnsupportedConversion: If the pair is not whitelisted
        """
        source = self.normalize(from_unit)
        target = self.normalize(to_unit)

        if source == target:
            return float(value)

        factor = self.CONVERSIONS.get((source, target))
        if factor is None:
            raise UnsupportedConversion(
                f"No conversion rule: {from_unit} -> {to_unit}",
                from_unit=from_unit,
                to_unit=to_unit,
            )

        if not isinstance(value, Decimal):
            value = Decimal(str(value))

        return float(value * factor)

    def is_compatible(self, unit1: str, unit2: str) -> bool:
        """Check whether unit1 can be converted into unit2."""
        source = self.normalize(unit1)
        target = self.normalize(unit2)
        return source == target or (source, target) in self.CONVERSIONS

    @staticmethod
    def denominator_unit(factor_units: Optional[str]) -> Optional[str]:
        """
        Extract the denominator from a factor unit string.

        Args:
            factor_units: e.g. "kgCO2_per_passenger_mile"

        Returns:
            "passenger_mile", or None if the string has no "_per_" marker
        """
        if not factor_units or PER_MARKER not in factor_units:
            return None
        return factor_units.split(PER_MARKER, 1)[1]


_default_converter = UnitConverter()


def to_match_unit(value: Union[float, int, Decimal], from_unit: str, to_unit: str) -> float:
    """Module-level shortcut for UnitConverter().to_match_unit."""
    return _default_converter.to_match_unit(value, from_unit, to_unit)


def denominator_unit(factor_units: Optional[str]) -> Optional[str]:
    """Module-level shortcut for UnitConverter.denominator_unit."""
    return UnitConverter.denominator_unit(factor_units)
