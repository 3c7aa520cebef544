# -*- coding: utf-8 -*-
"""
Activity Modifiers

Maps activity attributes (fuel type, flight class, food type, ...) to
multiplicative adjustment factors, so the engine itself stays declarative.

Every attribute is a typed enumeration with its own multiplier table.
Unrecognized values take the explicit no-match branch (multiplier 1.0) and
are never errors: clients may send attribute values this table does not know
yet.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

logger = logging.getLogger(__name__)


class FuelType(str, Enum):
    PETROL = "petrol"
    DIESEL = "diesel"
    CNG = "cng"
    ELECTRIC = "electric"
    HYBRID = "hybrid"


class FlightClass(str, Enum):
    ECONOMY = "economy"
    BUSINESS = "business"
    FIRST = "first"


class EnergySource(str, Enum):
    GRID = "grid"
    SOLAR = "solar"
    WIND = "wind"
    HYDRO = "hydro"


class FoodType(str, Enum):
    BEEF = "beef"
    PORK = "pork"
    CHICKEN = "chicken"
    FISH = "fish"
    MILK = "milk"
    CHEESE = "cheese"
    YOGURT = "yogurt"
    GRASS_FED = "grass-fed"
    ORGANIC = "organic"
    LOCAL = "local"


class WasteType(str, Enum):
    GENERAL = "general"
    PLASTIC = "plastic"
    PAPER = "paper"
    GLASS = "glass"
    METAL = "metal"
    ORGANIC = "organic"
    ELECTRONICS = "electronics"


class WaterTemperature(str, Enum):
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"


class ClothingType(str, Enum):
    T_SHIRT = "t-shirt"
    JEANS = "jeans"
    DRESS = "dress"
    JACKET = "jacket"
    SHOES = "shoes"
    UNDERWEAR = "underwear"
    SYNTHETIC = "synthetic"
    COTTON = "cotton"
    WOOL = "wool"


class ElectronicsType(str, Enum):
    SMARTPHONE = "smartphone"
    LAPTOP = "laptop"
    TABLET = "tablet"
    TV = "tv"
    APPLIANCE = "appliance"
    GAMING = "gaming"
    CAMERA = "camera"


class FurnitureType(str, Enum):
    CHAIR = "chair"
    TABLE = "table"
    SOFA = "sofa"
    BED = "bed"
    DRESSER = "dresser"
    BOOKSHELF = "bookshelf"
    DESK = "desk"


FUEL_TYPE_MULTIPLIERS: Dict[FuelType, float] = {
    FuelType.PETROL: 1.0,
    FuelType.DIESEL: 1.2,
    FuelType.CNG: 0.7,
    FuelType.ELECTRIC: 0.3,
    FuelType.HYBRID: 0.6,
}

FLIGHT_CLASS_MULTIPLIERS: Dict[FlightClass, float] = {
    FlightClass.ECONOMY: 1.0,
    FlightClass.BUSINESS: 2.5,
    FlightClass.FIRST: 4.0,
}

ENERGY_SOURCE_MULTIPLIERS: Dict[EnergySource, float] = {
    EnergySource.GRID: 1.0,
    EnergySource.SOLAR: 0.1,
    EnergySource.WIND: 0.1,
    EnergySource.HYDRO: 0.2,
}

FOOD_TYPE_MULTIPLIERS: Dict[FoodType, float] = {
    FoodType.BEEF: 1.5,
    FoodType.PORK: 1.0,
    FoodType.CHICKEN: 0.6,
    FoodType.FISH: 0.5,
    FoodType.MILK: 1.0,
    FoodType.CHEESE: 1.2,
    FoodType.YOGURT: 0.8,
    FoodType.GRASS_FED: 1.2,
    FoodType.ORGANIC: 0.9,
    FoodType.LOCAL: 0.7,
}

WASTE_TYPE_MULTIPLIERS: Dict[WasteType, float] = {
    WasteType.GENERAL: 1.0,
    WasteType.PLASTIC: 1.2,
    WasteType.PAPER: 0.8,
    WasteType.GLASS: 0.6,
    WasteType.METAL: 0.5,
    WasteType.ORGANIC: 1.1,
    WasteType.ELECTRONICS: 2.0,
}

WATER_TEMPERATURE_MULTIPLIERS: Dict[WaterTemperature, float] = {
    WaterTemperature.COLD: 0.5,
    WaterTemperature.WARM: 1.0,
    WaterTemperature.HOT: 1.5,
}

CLOTHING_TYPE_MULTIPLIERS: Dict[ClothingType, float] = {
    ClothingType.T_SHIRT: 0.8,
    ClothingType.JEANS: 2.0,
    ClothingType.DRESS: 1.5,
    ClothingType.JACKET: 3.0,
    ClothingType.SHOES: 1.8,
    ClothingType.UNDERWEAR: 0.3,
    ClothingType.SYNTHETIC: 1.2,
    ClothingType.COTTON: 1.0,
    ClothingType.WOOL: 1.8,
}

ELECTRONICS_TYPE_MULTIPLIERS: Dict[ElectronicsType, float] = {
    ElectronicsType.SMARTPHONE: 0.8,
    ElectronicsType.LAPTOP: 1.5,
    ElectronicsType.TABLET: 0.6,
    ElectronicsType.TV: 2.0,
    ElectronicsType.APPLIANCE: 3.0,
    ElectronicsType.GAMING: 1.2,
    ElectronicsType.CAMERA: 0.9,
}

FURNITURE_TYPE_MULTIPLIERS: Dict[FurnitureType, float] = {
    FurnitureType.CHAIR: 0.8,
    FurnitureType.TABLE: 1.2,
    FurnitureType.SOFA: 2.0,
    FurnitureType.BED: 1.8,
    FurnitureType.DRESSER: 1.5,
    FurnitureType.BOOKSHELF: 1.0,
    FurnitureType.DESK: 1.1,
}

#: Application order: (python attribute, wire name, enum, table).
MODIFIER_TABLES: Tuple[Tuple[str, str, Type[Enum], Dict[Any, float]], ...] = (
    ("fuel_type", "fuelType", FuelType, FUEL_TYPE_MULTIPLIERS),
    ("flight_class", "flightClass", FlightClass, FLIGHT_CLASS_MULTIPLIERS),
    ("energy_source", "energySource", EnergySource, ENERGY_SOURCE_MULTIPLIERS),
    ("food_type", "foodType", FoodType, FOOD_TYPE_MULTIPLIERS),
    ("waste_type", "wasteType", WasteType, WASTE_TYPE_MULTIPLIERS),
    ("water_temp", "waterTemp", WaterTemperature, WATER_TEMPERATURE_MULTIPLIERS),
    ("clothing_type", "clothingType", ClothingType, CLOTHING_TYPE_MULTIPLIERS),
    ("electronics_type", "electronicsType", ElectronicsType, ELECTRONICS_TYPE_MULTIPLIERS),
    ("furniture_type", "furnitureType", FurnitureType, FURNITURE_TYPE_MULTIPLIERS),
)


@dataclass(frozen=True)
class ModifierResult:
    """Combined multiplier and a human-readable record of what applied."""
    multiplier: float = 1.0
    note: str = ""


def _format_factor(value: float) -> str:
    # 1.0 -> "1", 2.5 -> "2.5"
    return f"{value:g}"


class ModifierResolver:
    """Resolve the multiplicative adjustment for an activity's attributes."""

    def __init__(self, tables: Tuple[Tuple[str, str, Type[Enum], Dict[Any, float]], ...] = MODIFIER_TABLES):
        self.tables = tables

    @staticmethod
    def _raw_value(activity: Any, attr: str, wire_name: str) -> Optional[Any]:
        if isinstance(activity, Mapping):
            value = activity.get(attr)
            return value if value is not None else activity.get(wire_name)
        return getattr(activity, attr, None)

    @staticmethod
    def lookup(enum_cls: Type[Enum], table: Dict[Any, float], raw: Any) -> Optional[float]:
        """
        Look up one attribute value.

        Returns:
            The table multiplier, or None when the value is not a member
            of the enumeration (the no-match branch).
        """
        try:
            member = enum_cls(raw)
        except ValueError:
            return None
        return table.get(member)

    def multiplier_from(self, activity: Any) -> ModifierResult:
        """
        Combine every recognized attribute multiplier on the activity.

        Args:
            activity: ActivityRecord, or a mapping with snake_case or
                camelCase attribute keys

        Returns:
            ModifierResult with the running product and a comma-joined note
        """
        multiplier = 1.0
        notes: List[str] = []

        for attr, wire_name, enum_cls, table in self.tables:
            raw = self._raw_value(activity, attr, wire_name)
            if not raw:
                continue
            factor = self.lookup(enum_cls, table, raw)
            if factor is None:
                logger.debug("Ignoring unrecognized %s=%r", wire_name, raw)
                continue
            multiplier *= factor
            notes.append(f"{wire_name}={raw} (x{_format_factor(factor)})")

        return ModifierResult(multiplier=multiplier, note=", ".join(notes))


_default_resolver = ModifierResolver()


def multiplier_from(activity: Any) -> ModifierResult:
    """Module-level shortcut using the default modifier tables."""
    return _default_resolver.multiplier_from(activity)


__all__ = [
    "FuelType",
    "FlightClass",
    "EnergySource",
    "FoodType",
    "WasteType",
    "WaterTemperature",
    "ClothingType",
    "ElectronicsType",
    "FurnitureType",
    "MODIFIER_TABLES",
    "ModifierResult",
    "ModifierResolver",
    "multiplier_from",
]
