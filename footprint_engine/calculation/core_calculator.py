# -*- coding: utf-8 -*-
"""
Core Emission Calculation Engine

GUARANTEES:
- 100% deterministic (same input -> same output)
- Provenance hash over inputs, factor and output (SHA-256)
- Fail loudly on unknown activities, missing factors and unit mismatches

Pipeline for one activity:
    ActivityRecord -> ActivityMapper -> FactorStore -> UnitConverter
    -> passenger division -> ModifierResolver -> CalculationResult
"""

import hashlib
import json
import logging
import math
import time
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from numbers import Real
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from footprint_engine import metrics
from footprint_engine.calculation.activity_mapper import (
    ActivityMapper,
    ActivityMapping,
    flight_distance_km,
    select_flight_subtype,
    FLIGHT_LONGHAUL,
    FLIGHT_SHORTHAUL,
)
from footprint_engine.calculation.factor_store import EmissionFactor, FactorStore
from footprint_engine.calculation.modifiers import ModifierResolver
from footprint_engine.calculation.unit_converter import UnitConverter
from footprint_engine.config import FootprintEngineConfig, get_config
from footprint_engine.exceptions import (
    FactorNotFound,
    FootprintEngineException,
    InvalidActivity,
    UnitMismatch,
    UnsupportedCategory,
    UnsupportedConversion,
)

logger = logging.getLogger(__name__)

PRECISION = Decimal('0.001')

#: Factor denominator -> caller-facing unit of the reported quantity.
UNIT_FOR_DENOMINATOR: Dict[str, str] = {
    'passenger_mile': 'miles',
    'vehicle_mile': 'miles',
    'pkm': 'km',
    'kWh': 'kWh',
    'kg': 'kg',
    'gallon': 'gallons',
    'minute': 'minutes',
    'item': 'items',
    'lb': 'lbs',
    'therms': 'therms',
}

#: Denominators already expressed per passenger; never divided by passengers.
PER_PASSENGER_DENOMINATORS: FrozenSet[str] = frozenset({'passenger_mile', 'pkm', 'passenger_km'})

TRANSPORT_UNITS = 'kgCO2_per_passenger_mile'
TRANSPORT_REGIONS = ('IN_Delhi', 'IN')
FLIGHT_UNITS = 'kgCO2e_per_pkm'
FLIGHT_REGIONS = ('Global',)


def quantize(value: Decimal) -> Decimal:
    """Round to 3 decimal places, half up."""
    return value.quantize(PRECISION, rounding=ROUND_HALF_UP)


def _to_decimal(value: Union[float, int, Decimal]) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


class ActivityRecord(BaseModel):
    """
    One user-reported activity.

    Accepts both camelCase (wire) and snake_case field names. Unknown keys
    are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )

    activity_type: str
    quantity: float
    units: Optional[str] = None
    region: Optional[str] = None
    passengers: Optional[float] = None

    # Modifier attributes
    fuel_type: Optional[str] = None
    flight_class: Optional[str] = None
    energy_source: Optional[str] = None
    food_type: Optional[str] = None
    waste_type: Optional[str] = None
    water_temp: Optional[str] = None
    clothing_type: Optional[str] = None
    electronics_type: Optional[str] = None
    furniture_type: Optional[str] = None

    @field_validator('activity_type', mode='before')
    @classmethod
    def _check_activity_type(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError('activityType must be a non-empty string')
        return v

    @field_validator('quantity', mode='before')
    @classmethod
    def _check_quantity(cls, v: Any) -> float:
        if isinstance(v, bool) or not isinstance(v, (Real, Decimal)):
            raise ValueError('quantity must be a non-negative number')
        try:
            v = float(v)
        except OverflowError:
            raise ValueError('quantity must be a non-negative number')
        if not math.isfinite(v) or v < 0:
            raise ValueError('quantity must be a non-negative number')
        return v

    @field_validator('passengers', mode='before')
    @classmethod
    def _check_passengers(cls, v: Any) -> Optional[float]:
        # Unrecognised passenger counts mean no division
        if isinstance(v, bool) or not isinstance(v, (Real, Decimal)):
            return None
        try:
            v = float(v)
        except OverflowError:
            return None
        return v if math.isfinite(v) else None

    @field_validator(
        'units', 'region', 'fuel_type', 'flight_class', 'energy_source', 'food_type',
        'waste_type', 'water_temp', 'clothing_type', 'electronics_type', 'furniture_type',
        mode='before',
    )
    @classmethod
    def _drop_non_string(cls, v: Any) -> Optional[str]:
        # Unrecognised attribute values contribute no adjustment
        return v if isinstance(v, str) and v else None

    @classmethod
    def from_payload(cls, payload: Any) -> 'ActivityRecord':
        """
        Build a record from a JSON-like mapping (or pass a record through).

        Raises:
            InvalidActivity: If the payload is missing or malformed
        """
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, Mapping):
            raise InvalidActivity(
                'activity is required',
                context={'payload_type': type(payload).__name__},
            )
        try:
            return cls.model_validate(dict(payload))
        except ValidationError as e:
            invalid_fields = {}
            messages = []
            for err in e.errors():
                name = '.'.join(str(part) for part in err['loc']) or 'activity'
                if err['type'] == 'value_error':
                    reason = str(err['ctx']['error'])
                else:
                    reason = f"{name}: {err['msg']}"
                invalid_fields[name] = reason
                messages.append(reason)
            raise InvalidActivity(
                '; '.join(messages),
                invalid_fields=invalid_fields,
            ) from e

    def to_payload(self) -> Dict[str, Any]:
        """camelCase wire form, without unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class FactorSelection:
    """Factor chosen for an activity and how its quantity must be expressed."""
    factor: EmissionFactor
    denominator: str
    per_passenger: bool
    subtype: str
    flight: bool = False
    distance_km: Optional[Decimal] = None


@dataclass(frozen=True)
class CalculationResult:
    """
    Single-activity calculation result.

    IMMUTABLE and REPRODUCIBLE: the provenance hash covers inputs, factor and
    output, with no timestamps, so identical inputs hash identically.
    """
    activity_type: str
    category: str
    subtype: str
    input_quantity: float
    input_units: Optional[str]
    standardized_quantity: float
    standardized_units: str
    factor: EmissionFactor
    calculated_kgCO2e: float
    notes: Tuple[str, ...] = ()
    provenance_hash: str = field(default='', compare=False)

    def __post_init__(self):
        if not self.provenance_hash:
            object.__setattr__(self, 'provenance_hash', self._calculate_provenance_hash())

    @property
    def success(self) -> bool:
        return True

    def _factor_dict(self) -> Dict[str, Any]:
        return {
            'id': self.factor.id or 'inline',
            'value': self.factor.value,
            'units': self.factor.units,
            'source': self.factor.source,
            'region': self.factor.region,
            'vintage': self.factor.vintage,
        }

    def _calculate_provenance_hash(self) -> str:
        provenance_data = {
            'activityType': self.activity_type,
            'category': self.category,
            'subtype': self.subtype,
            'input_quantity': self.input_quantity,
            'input_units': self.input_units,
            'standardized_quantity': self.standardized_quantity,
            'standardized_units': self.standardized_units,
            'factor': self._factor_dict(),
            'calculated_kgCO2e': self.calculated_kgCO2e,
            'notes': list(self.notes),
        }
        # Sort keys for deterministic serialization
        provenance_str = json.dumps(provenance_data, sort_keys=True)
        return hashlib.sha256(provenance_str.encode()).hexdigest()

    def verify_provenance(self) -> bool:
        """True unless the result was altered after construction."""
        return self.provenance_hash == self._calculate_provenance_hash()

    def to_dict(self) -> Dict[str, Any]:
        """Wire form of the result."""
        return {
            'success': True,
            'activityType': self.activity_type,
            'category': self.category,
            'input_quantity': self.input_quantity,
            'input_units': self.input_units,
            'standardized_quantity': self.standardized_quantity,
            'standardized_units': self.standardized_units,
            'factor': self._factor_dict(),
            'calculated_kgCO2e': self.calculated_kgCO2e,
            'notes': list(self.notes),
            'provenance_hash': self.provenance_hash,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class EmissionEngine:
    """
    Activity emission calculator.

    Stateless per call: the FactorStore is read-only, so one engine can be
    shared across threads.

    Example:
        >>> engine = EmissionEngine()
        >>> result = engine.calculate({"activityType": "food-beef", "quantity": 2, "units": "lbs"})
        >>> result.calculated_kgCO2e
        54.0
    """

    def __init__(
        self,
        store: Optional[FactorStore] = None,
        mapper: Optional[ActivityMapper] = None,
        modifier_resolver: Optional[ModifierResolver] = None,
        unit_converter: Optional[UnitConverter] = None,
        config: Optional[FootprintEngineConfig] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Factor store (the shared default store is loaded lazily if None)
            mapper: Activity type mapper
            modifier_resolver: Attribute multiplier resolver
            unit_converter: Unit converter
            config: Engine configuration (global config if None)
        """
        self._store = store
        self.mapper = mapper or ActivityMapper()
        self.modifier_resolver = modifier_resolver or ModifierResolver()
        self.unit_converter = unit_converter or UnitConverter()
        self.config = config or get_config()

    @property
    def store(self) -> FactorStore:
        if self._store is None:
            # Import here to avoid circular dependency
            from footprint_engine.data.loader import get_default_store
            self._store = get_default_store()
        return self._store

    # ------------------------------------------------------------------
    # Factor selection
    # ------------------------------------------------------------------

    def select_factor(
        self,
        activity: ActivityRecord,
        mapping: ActivityMapping,
        store: FactorStore,
    ) -> FactorSelection:
        """
        Pick the factor for an activity by category rule.

        Raises:
            FactorNotFound: If the store has nothing suitable
            UnsupportedCategory: If the category has no rule
        """
        category, subtype = mapping.category, mapping.subtype

        if category == 'transportation':
            if mapping.is_flight:
                return self._select_flight_factor(activity, store)
            factor = store.require(category, subtype, TRANSPORT_UNITS, TRANSPORT_REGIONS, label='Transport')
            return self._selection(factor, 'passenger_mile', subtype)

        if category == 'energy':
            regions = (activity.region or self.config.default_region, 'Global')
            factor = store.require(category, subtype, None, regions, label='Energy')
            return self._selection(factor, factor.denominator, subtype)

        if category == 'food':
            factor = store.require(category, subtype, 'kgCO2e_per_lb', ('Global',), label='Food')
            return self._selection(factor, 'lb', subtype)

        if category == 'waste':
            factor = store.require(category, subtype, 'kgCO2e_per_kg', ('Default', 'IN', 'Global'), label='Waste')
            return self._selection(factor, 'kg', subtype)

        if category == 'water':
            # Usage, dishwasher and laundry all share the treatment factor
            if subtype == 'shower':
                factor = store.require(category, 'shower', 'kgCO2e_per_minute', ('IN',), label='Water')
                return self._selection(factor, 'minute', 'shower')
            factor = store.require(category, 'treatment_pumping', 'kgCO2e_per_gallon', ('IN',), label='Water')
            return self._selection(factor, 'gallon', 'treatment_pumping')

        if category == 'shopping':
            factor = store.require(category, subtype, 'kgCO2e_per_item', ('Global',), label='Shopping')
            return self._selection(factor, 'item', subtype)

        raise UnsupportedCategory(f'Unsupported category: {category}', category=category)

    def _select_flight_factor(self, activity: ActivityRecord, store: FactorStore) -> FactorSelection:
        distance_km = flight_distance_km(activity.quantity, activity.units)
        long_haul = store.resolve_preferring('transportation', FLIGHT_LONGHAUL, FLIGHT_UNITS, FLIGHT_REGIONS)
        short_haul = store.resolve_preferring('transportation', FLIGHT_SHORTHAUL, FLIGHT_UNITS, FLIGHT_REGIONS)

        subtype = select_flight_subtype(distance_km)
        factor = long_haul if subtype == FLIGHT_LONGHAUL else short_haul
        if factor is None:
            raise FactorNotFound(
                'Flight factor not found.',
                category='transportation',
                subtype=subtype,
                desired_units=FLIGHT_UNITS,
            )
        selection = self._selection(factor, 'pkm', subtype)
        return FactorSelection(
            factor=selection.factor,
            denominator=selection.denominator,
            per_passenger=selection.per_passenger,
            subtype=subtype,
            flight=True,
            distance_km=distance_km,
        )

    @staticmethod
    def _selection(factor: EmissionFactor, requested: Optional[str], subtype: str) -> FactorSelection:
        # The factor's own denominator decides the quantity unit
        denominator = factor.denominator or requested
        return FactorSelection(
            factor=factor,
            denominator=denominator,
            per_passenger=denominator in PER_PASSENGER_DENOMINATORS,
            subtype=subtype,
        )

    # ------------------------------------------------------------------
    # Calculation
    # ------------------------------------------------------------------

    def standardize_quantity(self, activity: ActivityRecord, denominator: str) -> Decimal:
        """
        Convert the reported quantity into the factor's denominator unit.

        Raises:
            UnitMismatch: If no conversion rule exists
        """
        target = UNIT_FOR_DENOMINATOR.get(denominator, denominator)
        source = activity.units or target
        try:
            converted = self.unit_converter.to_match_unit(activity.quantity, source, target)
        except UnsupportedConversion as e:
            raise UnitMismatch(
                f'Unit mismatch: activity has {activity.units}, factor requires {denominator}',
                activity_units=activity.units,
                required_units=denominator,
                cause=e,
            ) from e
        return _to_decimal(converted)

    def calculate(
        self,
        activity: Union[ActivityRecord, Mapping[str, Any]],
        store: Optional[FactorStore] = None,
    ) -> CalculationResult:
        """
        Calculate emissions for one activity.

        Args:
            activity: ActivityRecord or JSON-like mapping
            store: Factor store override for this call

        Returns:
            CalculationResult

        Raises:
            InvalidActivity: Malformed activity
            UnknownActivityType: Activity type has no mapping
            FactorNotFound: No factor could be resolved
            UnitMismatch: Quantity cannot be expressed in the factor's unit
            UnsupportedCategory: Mapped category has no rule
        """
        start = time.perf_counter()
        category = 'unknown'
        try:
            record = ActivityRecord.from_payload(activity)
            mapping = self.mapper.resolve(record.activity_type)
            category = mapping.category

            selection = self.select_factor(record, mapping, store if store is not None else self.store)
            quantity = self.standardize_quantity(record, selection.denominator)

            if not selection.per_passenger and record.passengers and record.passengers > 0:
                quantity = quantity / _to_decimal(record.passengers)

            modifier = self.modifier_resolver.multiplier_from(record)
            emission = quantize(
                quantity * _to_decimal(selection.factor.value) * _to_decimal(modifier.multiplier)
            )

            notes: List[str] = []
            if modifier.note:
                notes.append(f'modifiers: {modifier.note}')
            if selection.flight:
                if record.flight_class:
                    notes.append('flightClass applied')
                notes.append(f'haul={selection.subtype} ({selection.distance_km:.1f} km)')

        except FootprintEngineException as e:
            metrics.record_error(type(e).__name__)
            metrics.record_calculation(category, 'failed')
            raise

        result = CalculationResult(
            activity_type=record.activity_type,
            category=category,
            subtype=selection.subtype,
            input_quantity=record.quantity,
            input_units=record.units,
            standardized_quantity=float(quantity),
            standardized_units=selection.denominator,
            factor=selection.factor,
            calculated_kgCO2e=float(emission),
            notes=tuple(notes),
        )

        duration = time.perf_counter() - start
        metrics.record_calculation(category, 'success')
        metrics.record_duration('calculate', duration)
        logger.debug(
            "Calculated %s: %s %s -> %s kgCO2e (factor=%s)",
            record.activity_type, record.quantity, record.units or '',
            result.calculated_kgCO2e, selection.factor.id,
        )
        return result

    def calculate_batch(
        self,
        activities: Sequence[Any],
        store: Optional[FactorStore] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Calculate many activities; per-item failures are recorded, not raised.

        Returns:
            BatchResult
        """
        # Import here to avoid circular dependency
        from footprint_engine.calculation.batch_calculator import BatchCalculator

        workers = max_workers if max_workers is not None else self.config.batch_max_workers
        return BatchCalculator(self, max_workers=workers).calculate_batch(activities, store=store)


__all__ = [
    'ActivityRecord',
    'CalculationResult',
    'EmissionEngine',
    'FactorSelection',
    'PER_PASSENGER_DENOMINATORS',
    'UNIT_FOR_DENOMINATOR',
    'quantize',
]
