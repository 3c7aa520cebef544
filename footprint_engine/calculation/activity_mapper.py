# -*- coding: utf-8 -*-
"""
Activity Mapper

Maps user-facing activity type keys ("transport-car", "food-beef", ...) to
the engine's canonical (category, subtype) pair, and selects the haul-length
factor subtype for flights.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple, Union

from footprint_engine.calculation.unit_converter import KM_PER_MI, UnitConverter
from footprint_engine.exceptions import UnknownActivityType

logger = logging.getLogger(__name__)

#: Distance (km) at and above which a flight is long-haul.
LONG_HAUL_THRESHOLD_KM = Decimal('3700')

FLIGHT_SUBTYPE = "flight"
FLIGHT_SHORTHAUL = "flight_shorthaul_economy"
FLIGHT_LONGHAUL = "flight_longhaul_economy"


@dataclass(frozen=True)
class ActivityMapping:
    """Canonical engine coordinates for an activity type."""
    category: str
    subtype: str

    @property
    def is_flight(self) -> bool:
        return self.category == "transportation" and self.subtype == FLIGHT_SUBTYPE


DEFAULT_ACTIVITY_MAP: Dict[str, Tuple[str, str]] = {
    # Transportation
    "transport-car": ("transportation", "car_private"),
    "transport-bus": ("transportation", "bus"),
    # Metro is the rail proxy until a rail factor is published
    "transport-train": ("transportation", "metro_subway"),
    "transport-subway": ("transportation", "metro_subway"),
    "transport-taxi": ("transportation", "taxi_rideshare"),
    "transport-motorcycle": ("transportation", "motorcycle_two_wheeler"),
    "transport-flight": ("transportation", FLIGHT_SUBTYPE),
    "transport-ferry": ("transportation", "ferry"),
    "transport-bicycle": ("transportation", "bicycle"),
    "transport-walking": ("transportation", "walking"),

    # Energy
    "energy-electricity": ("energy", "electricity_grid"),
    "energy-gas": ("energy", "natural_gas"),
    "energy-heating-oil": ("energy", "heating_oil"),
    "energy-propane": ("energy", "propane_LPG"),
    "energy-coal": ("energy", "coal_generic"),
    "energy-wood": ("energy", "wood_burning"),

    # Food
    "food-beef": ("food", "beef"),
    "food-pork": ("food", "pork"),
    "food-chicken": ("food", "chicken"),
    "food-fish": ("food", "fish_seafood"),
    "food-dairy": ("food", "dairy_mixed"),
    "food-eggs": ("food", "eggs"),
    "food-rice": ("food", "rice"),
    "food-vegetables": ("food", "vegetables"),
    "food-fruits": ("food", "fruits"),

    # Waste
    "waste-general": ("waste", "municipal_solid_waste"),
    "waste-recycling": ("waste", "recycling_credit"),
    "waste-compost": ("waste", "composting"),

    # Water
    "water-usage": ("water", "treatment_pumping"),
    "water-shower": ("water", "shower"),
    "water-dishwasher": ("water", "treatment_pumping"),
    "water-laundry": ("water", "treatment_pumping"),

    # Shopping
    "shopping-clothing": ("shopping", "clothing_item"),
    "shopping-electronics": ("shopping", "electronics_item"),
    "shopping-books": ("shopping", "books_media"),
    "shopping-furniture": ("shopping", "furniture_item"),
}


def flight_distance_km(quantity: Union[float, int, Decimal], units: Optional[str]) -> Decimal:
    """
    Flight distance in km.

    Only miles are converted; any other (or missing) unit is taken as km.
    """
    distance = quantity if isinstance(quantity, Decimal) else Decimal(str(quantity))
    if units and UnitConverter().normalize(units) == "miles":
        return distance * KM_PER_MI
    return distance


def select_flight_subtype(distance_km: Union[float, int, Decimal]) -> str:
    """Long-haul at or above the threshold, short-haul below it."""
    if not isinstance(distance_km, Decimal):
        distance_km = Decimal(str(distance_km))
    return FLIGHT_LONGHAUL if distance_km >= LONG_HAUL_THRESHOLD_KM else FLIGHT_SHORTHAUL


class ActivityMapper:
    """
    Static activity type lookup.

    Example:
        >>> mapper = ActivityMapper()
        >>> mapper.resolve("food-beef")
        ActivityMapping(category='food', subtype='beef')
    """

    def __init__(self, extra_mappings: Optional[Mapping[str, Tuple[str, str]]] = None):
        table = dict(DEFAULT_ACTIVITY_MAP)
        if extra_mappings:
            table.update(extra_mappings)
        self._table: Dict[str, ActivityMapping] = {
            activity_type: ActivityMapping(category=category, subtype=subtype)
            for activity_type, (category, subtype) in table.items()
        }

    def __contains__(self, activity_type: object) -> bool:
        return activity_type in self._table

    @property
    def activity_types(self) -> Tuple[str, ...]:
        return tuple(self._table)

    def category_of(self, activity_type: Optional[str]) -> Optional[str]:
        """Mapped category, or None for unknown types."""
        mapping = self._table.get(activity_type) if activity_type is not None else None
        return mapping.category if mapping else None

    def resolve(self, activity_type: str) -> ActivityMapping:
        """
        Resolve an activity type.

        Raises:
            UnknownActivityType: If the type has no mapping
        """
        mapping = self._table.get(activity_type)
        if mapping is None:
            raise UnknownActivityType(
                f"Unknown activityType: {activity_type}",
                activity_type=activity_type,
            )
        return mapping


__all__ = [
    "ActivityMapper",
    "ActivityMapping",
    "DEFAULT_ACTIVITY_MAP",
    "FLIGHT_LONGHAUL",
    "FLIGHT_SHORTHAUL",
    "LONG_HAUL_THRESHOLD_KM",
    "flight_distance_km",
    "select_flight_subtype",
]
