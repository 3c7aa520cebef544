# -*- coding: utf-8 -*-
"""
Fallback Calculator (degraded mode)

Static, self-contained estimates used when the factor-table engine cannot
produce a result. Never consults the FactorStore and never raises: unknown
inputs fall back to documented defaults, and every output is clamped to
zero or above and rounded to 3 decimal places.

Models:
- Flat per-unit factor by activity type (client configuration values)
- Annual diet: baseline by diet type x red-meat x dairy factors
- Annual home energy: (sqft x 2.5 x usage multiplier) / household members
- Annual transport: weekly car miles and yearly flights
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Any, Dict, Mapping, Optional

from footprint_engine import metrics
from footprint_engine.calculation.modifiers import ModifierResolver
from footprint_engine.exceptions import error_message

logger = logging.getLogger(__name__)

#: kgCO2e per UI unit, keyed by activity type.
FLAT_FACTORS: Dict[str, float] = {
    # Transportation (per mile)
    "transport-car": 0.4,
    "transport-bus": 0.15,
    "transport-train": 0.12,
    "transport-subway": 0.08,
    "transport-taxi": 0.45,
    "transport-motorcycle": 0.25,
    "transport-flight": 0.2,
    "transport-ferry": 0.35,
    "transport-bicycle": 0.0,
    "transport-walking": 0.0,
    # Energy
    "energy-electricity": 0.5,     # kWh
    "energy-gas": 5.3,             # therms
    "energy-heating-oil": 22.4,    # gallons
    "energy-propane": 12.7,        # gallons
    "energy-coal": 2.0,            # lbs
    "energy-wood": 4200.0,         # cords
    # Food (per lb unless noted)
    "food-beef": 27.0,
    "food-pork": 12.1,
    "food-chicken": 6.9,
    "food-fish": 5.4,
    "food-dairy": 3.2,
    "food-eggs": 4.8,              # dozen
    "food-rice": 2.7,
    "food-vegetables": 0.4,
    "food-fruits": 0.3,
    # Waste (per lb); credits clamp to zero
    "waste-general": 0.94,
    "waste-recycling": -0.5,
    "waste-compost": -0.2,
    # Water
    "water-usage": 0.006,          # gallons
    "water-shower": 0.125,         # minutes
    "water-dishwasher": 1.8,       # loads
    "water-laundry": 2.3,          # loads
    # Shopping (per item)
    "shopping-clothing": 15.0,
    "shopping-electronics": 300.0,
    "shopping-books": 2.5,
    "shopping-furniture": 250.0,
}

DEFAULT_FLAT_FACTOR = 0.0

# Annual diet model (kgCO2e / year)
DIET_BASELINES: Dict[str, float] = {
    "vegan": 550.0,
    "vegetarian": 650.0,
    "pescatarian": 750.0,
    "flexitarian": 850.0,
    "omnivore": 1000.0,
}
UNKNOWN_DIET_BASELINE = 800.0
RED_MEAT_DIETS = frozenset({"omnivore", "flexitarian"})
RED_MEAT_FACTORS: Dict[str, float] = {
    "never": 0.7,
    "rarely": 0.85,
    "sometimes": 1.0,
    "often": 1.2,
    "daily": 1.4,
}
DAIRY_FACTORS: Dict[str, float] = {
    "none": 0.8,
    "low": 0.9,
    "moderate": 1.0,
    "high": 1.2,
    "very_high": 1.4,
}

# Annual home-energy model
HOME_SIZE_SQFT: Dict[str, float] = {
    "small": 1000.0,
    "medium": 2000.0,
    "large": 3000.0,
}
DEFAULT_HOME_SIZE = "medium"
KG_PER_SQFT_YEAR = 2.5
ENERGY_USAGE_MULTIPLIERS: Dict[str, float] = {
    "low": 0.7,
    "average": 1.0,
    "high": 1.3,
    "very_high": 1.6,
}

# Annual transport model
CAR_TYPE_KG_PER_MILE: Dict[str, float] = {
    "gas": 0.4,
    "hybrid": 0.25,
    "electric": 0.1,
}
DEFAULT_CAR_KG_PER_MILE = 0.1
WEEKS_PER_YEAR = 52
SHORT_FLIGHT_MILES = 1000
SHORT_FLIGHT_KG_PER_MILE = 0.2
LONG_FLIGHT_MILES = 2000
LONG_FLIGHT_KG_PER_MILE = 0.25

# Equivalents
KG_PER_TREE_YEAR = 21.0
KG_PER_CAR_YEAR = 170.0 * 1000
KG_PER_KWH = 0.82


def _number(value: Any) -> float:
    """Finite non-negative number, or 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.0
    if not isinstance(value, (Real, Decimal)):
        return 0.0
    value = float(value)
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def _key(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _field(source: Any, snake: str, camel: str) -> Any:
    if isinstance(source, Mapping):
        value = source.get(camel)
        return value if value is not None else source.get(snake)
    return getattr(source, snake, None)


def _finalize(value: float) -> float:
    """Clamp to >= 0 and round to 3 places."""
    if not isinstance(value, (Real, Decimal)) or not math.isfinite(value) or value <= 0:
        return 0.0
    return float(Decimal(str(value)).quantize(Decimal('0.001'), rounding=ROUND_HALF_UP))


@dataclass
class AnnualFootprint:
    """Annual estimate with a per-model breakdown (kgCO2e)."""
    transportation: float = 0.0
    diet: float = 0.0
    home_energy: float = 0.0
    total_kgCO2e: float = field(init=False, default=0.0)

    def __post_init__(self):
        self.total_kgCO2e = _finalize(self.transportation + self.diet + self.home_energy)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_kgCO2e": self.total_kgCO2e,
            "breakdown": {
                "transportation": self.transportation,
                "diet": self.diet,
                "home_energy": self.home_energy,
            },
        }


class FallbackCalculator:
    """
    Degraded-mode estimator.

    GUARANTEES:
    - Never raises
    - Never returns a negative, NaN or infinite value
    """

    def __init__(
        self,
        flat_factors: Optional[Mapping[str, float]] = None,
        modifier_resolver: Optional[ModifierResolver] = None,
    ):
        self.flat_factors = dict(FLAT_FACTORS if flat_factors is None else flat_factors)
        self.modifier_resolver = modifier_resolver or ModifierResolver()

    def _multiplier(self, activity: Any) -> float:
        try:
            return self.modifier_resolver.multiplier_from(activity).multiplier
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring modifiers on fallback estimate: %s", e)
            return 1.0

    def estimate_activity(self, activity: Any) -> float:
        """
        Flat-factor estimate for one activity.

        Args:
            activity: ActivityRecord or JSON-like mapping

        Returns:
            kgCO2e (>= 0, 3 decimals)
        """
        activity_type = _field(activity, "activity_type", "activityType")
        quantity = _number(_field(activity, "quantity", "quantity"))
        factor = self.flat_factors.get(activity_type, DEFAULT_FLAT_FACTOR) \
            if isinstance(activity_type, str) else DEFAULT_FLAT_FACTOR

        emission = quantity * factor * self._multiplier(activity)

        passengers = _number(_field(activity, "passengers", "passengers"))
        if passengers > 1:
            emission /= passengers

        return _finalize(emission)

    def annual_diet(
        self,
        diet_type: Optional[str],
        red_meat_frequency: Optional[str] = None,
        dairy_consumption: Optional[str] = None,
    ) -> float:
        """
        Annual diet emissions.

        The red-meat factor applies to omnivore and flexitarian diets only;
        the dairy factor applies to every diet except vegan. Unknown values
        use a factor of 1.0; an unknown diet uses an 800 kg baseline.
        """
        diet = _key(diet_type)
        emission = DIET_BASELINES.get(diet, UNKNOWN_DIET_BASELINE)

        if diet in RED_MEAT_DIETS:
            emission *= RED_MEAT_FACTORS.get(_key(red_meat_frequency), 1.0)
        if diet != "vegan":
            emission *= DAIRY_FACTORS.get(_key(dairy_consumption), 1.0)

        return _finalize(emission)

    def annual_home_energy(
        self,
        home_size: Optional[str] = None,
        household_members: Any = 1,
        square_footage: Any = None,
        energy_usage: Optional[str] = None,
    ) -> float:
        """
        Annual home-energy emissions per household member.

        Square footage defaults by home size (small 1000, medium 2000,
        large 3000; unknown is medium) when not given explicitly.
        """
        sqft = _number(square_footage)
        if sqft <= 0:
            sqft = HOME_SIZE_SQFT.get(_key(home_size), HOME_SIZE_SQFT[DEFAULT_HOME_SIZE])

        multiplier = ENERGY_USAGE_MULTIPLIERS.get(_key(energy_usage), 1.0)

        members = _number(household_members)
        if members < 1:
            members = 1.0

        return _finalize((sqft * KG_PER_SQFT_YEAR * multiplier) / members)

    def annual_transport(
        self,
        weekly_car_miles: Any = 0,
        car_type: Optional[str] = None,
        short_flights: Any = 0,
        long_flights: Any = 0,
    ) -> float:
        """Annual car and flight emissions."""
        per_mile = CAR_TYPE_KG_PER_MILE.get(_key(car_type), DEFAULT_CAR_KG_PER_MILE)
        emission = _number(weekly_car_miles) * per_mile * WEEKS_PER_YEAR
        emission += _number(short_flights) * SHORT_FLIGHT_MILES * SHORT_FLIGHT_KG_PER_MILE
        emission += _number(long_flights) * LONG_FLIGHT_MILES * LONG_FLIGHT_KG_PER_MILE
        return _finalize(emission)

    def annual_footprint(self, profile: Mapping[str, Any]) -> AnnualFootprint:
        """
        Combined annual estimate from an assessment profile.

        Profile keys (camelCase or snake_case): carMiles, carType,
        shortFlights, longFlights, diet, redMeat, dairy, homeSize,
        householdSize, squareFootage, energyUsage.
        """
        if not isinstance(profile, Mapping):
            profile = {}

        return AnnualFootprint(
            transportation=self.annual_transport(
                weekly_car_miles=_field(profile, "car_miles", "carMiles"),
                car_type=_field(profile, "car_type", "carType"),
                short_flights=_field(profile, "short_flights", "shortFlights"),
                long_flights=_field(profile, "long_flights", "longFlights"),
            ),
            diet=self.annual_diet(
                diet_type=_field(profile, "diet", "diet"),
                red_meat_frequency=_field(profile, "red_meat", "redMeat"),
                dairy_consumption=_field(profile, "dairy", "dairy"),
            ),
            home_energy=self.annual_home_energy(
                home_size=_field(profile, "home_size", "homeSize"),
                household_members=_field(profile, "household_size", "householdSize"),
                square_footage=_field(profile, "square_footage", "squareFootage"),
                energy_usage=_field(profile, "energy_usage", "energyUsage"),
            ),
        )

    @staticmethod
    def footprint_equivalents(kg_co2e: Any) -> Dict[str, float]:
        """Trees for a year, cars for a year and kWh of electricity."""
        kg = _number(kg_co2e)
        return {
            "trees": _finalize(kg / KG_PER_TREE_YEAR),
            "cars": _finalize(kg / KG_PER_CAR_YEAR),
            "kWh": _finalize(kg / KG_PER_KWH),
        }


def calculate_with_fallback(
    activity: Any,
    engine: Any = None,
    fallback: Optional[FallbackCalculator] = None,
) -> Dict[str, Any]:
    """
    Engine first, static estimate on error or an invalid emission.

    Returns:
        {"method": "engine"|"fallback", "emission": float, "result": dict|None,
        "error": str|None}; emission is never negative, NaN or None
    """
    if engine is None:
        # Import here to avoid circular dependency
        from footprint_engine.calculation.core_calculator import EmissionEngine
        engine = EmissionEngine()
    fallback = fallback or FallbackCalculator()

    try:
        result = engine.calculate(activity)
    except Exception as e:
        reason = type(e).__name__
        error = error_message(e)
    else:
        emission = result.calculated_kgCO2e
        if isinstance(emission, (Real, Decimal)) and math.isfinite(emission) and emission >= 0:
            return {
                "method": "engine",
                "emission": float(emission),
                "result": result.to_dict(),
                "error": None,
            }
        reason = "invalid_result"
        error = f"Engine returned invalid emission: {emission}"

    metrics.record_fallback(reason)
    logger.warning(
        "Falling back to static estimate for %s: %s",
        _field(activity, "activity_type", "activityType"), error,
    )
    return {
        "method": "fallback",
        "emission": fallback.estimate_activity(activity),
        "result": None,
        "error": error,
    }


__all__ = [
    "AnnualFootprint",
    "FLAT_FACTORS",
    "FallbackCalculator",
    "calculate_with_fallback",
]
