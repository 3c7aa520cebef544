"""
Emission Engine Tests

This test suite validates:
- Per-category factor selection rules
- Unit standardization and loud unit mismatches
- Passenger division, flight haul selection and modifiers
- ROUND_HALF_UP rounding and provenance hashing
- Activity validation
"""

import json
from dataclasses import FrozenInstanceError

import pytest

from footprint_engine.calculation.core_calculator import (
    ActivityRecord,
    CalculationResult,
    EmissionEngine,
)
from footprint_engine.calculation.activity_mapper import ActivityMapper, DEFAULT_ACTIVITY_MAP
from footprint_engine.calculation.factor_store import FactorStore
from footprint_engine.config import FootprintEngineConfig
from footprint_engine.exceptions import (
    FactorNotFound,
    InvalidActivity,
    UnitMismatch,
    UnknownActivityType,
    UnsupportedCategory,
)


class TestTransportation:
    """Tests for road transport."""

    def test_car_uses_delhi_factor_first(self, engine):
        result = engine.calculate({"activityType": "transport-car", "quantity": 10, "units": "miles"})

        assert result.calculated_kgCO2e == 2.0
        assert result.factor.id == "delhi_car"
        assert result.category == "transportation"
        assert result.standardized_units == "passenger_mile"

    def test_km_converted_to_miles(self, engine):
        result = engine.calculate({"activityType": "transport-car", "quantity": 16.09344, "units": "km"})

        assert result.standardized_quantity == pytest.approx(10.0)
        assert result.calculated_kgCO2e == 2.0

    def test_passengers_ignored_for_per_passenger_factor(self, engine):
        result = engine.calculate({
            "activityType": "transport-car", "quantity": 10, "units": "miles", "passengers": 4,
        })

        assert result.calculated_kgCO2e == 2.0

    def test_bicycle_is_zero(self, engine):
        result = engine.calculate({"activityType": "transport-bicycle", "quantity": 25, "units": "miles"})

        assert result.calculated_kgCO2e == 0.0
        assert result.factor.id == "zero"

    def test_walking_is_zero(self, engine):
        assert engine.calculate({"activityType": "transport-walking", "quantity": 3}).calculated_kgCO2e == 0.0

    def test_vehicle_factor_divided_by_passengers(self):
        store = FactorStore([{
            "id": "bus_vehicle", "category": "transportation", "subtype": "bus",
            "units": "kgCO2_per_vehicle_mile", "value": 2.0, "region": "IN",
        }])
        engine = EmissionEngine(store=store)

        solo = engine.calculate({"activityType": "transport-bus", "quantity": 100, "units": "miles"})
        shared = engine.calculate({
            "activityType": "transport-bus", "quantity": 100, "units": "miles", "passengers": 4,
        })

        assert solo.calculated_kgCO2e == 200.0
        assert solo.standardized_units == "vehicle_mile"
        assert shared.calculated_kgCO2e == 50.0

    @pytest.mark.parametrize("passengers", ["two", True, float("nan"), 10 ** 400, [2]])
    def test_unrecognized_passengers_not_divided(self, passengers):
        store = FactorStore([{
            "category": "transportation", "subtype": "bus",
            "units": "kgCO2_per_vehicle_mile", "value": 2.0,
        }])

        result = EmissionEngine(store=store).calculate({
            "activityType": "transport-bus", "quantity": 100, "units": "miles", "passengers": passengers,
        })

        assert result.calculated_kgCO2e == 200.0

    def test_unrecognized_passengers_on_car(self, engine):
        result = engine.calculate({
            "activityType": "transport-car", "quantity": 10, "units": "miles", "passengers": "two",
        })

        assert result.calculated_kgCO2e == 2.0

    def test_zero_passengers_not_divided(self):
        store = FactorStore([{
            "category": "transportation", "subtype": "bus",
            "units": "kgCO2_per_vehicle_mile", "value": 2.0,
        }])

        result = EmissionEngine(store=store).calculate({
            "activityType": "transport-bus", "quantity": 100, "units": "miles", "passengers": 0,
        })

        assert result.calculated_kgCO2e == 200.0

    def test_diesel_modifier(self, engine):
        result = engine.calculate({
            "activityType": "transport-car", "quantity": 10, "units": "miles", "fuelType": "diesel",
        })

        assert result.calculated_kgCO2e == 2.4
        assert result.notes == ("modifiers: fuelType=diesel (x1.2)",)

    def test_missing_transport_factor(self):
        engine = EmissionEngine(store=FactorStore([]))

        with pytest.raises(FactorNotFound) as exc_info:
            engine.calculate({"activityType": "transport-car", "quantity": 1})

        assert exc_info.value.message == "Transport factor not found for car_private"


class TestFlights:
    """Tests for haul selection and flight class."""

    def test_just_below_threshold_is_short_haul(self, engine):
        result = engine.calculate({"activityType": "transport-flight", "quantity": 3699, "units": "km"})

        assert result.subtype == "flight_shorthaul_economy"
        assert result.calculated_kgCO2e == 554.85

    def test_threshold_is_long_haul(self, engine):
        result = engine.calculate({"activityType": "transport-flight", "quantity": 3700, "units": "km"})

        assert result.subtype == "flight_longhaul_economy"
        assert result.calculated_kgCO2e == 370.0

    def test_miles_converted_before_haul_selection(self, engine):
        result = engine.calculate({"activityType": "transport-flight", "quantity": 2300, "units": "miles"})

        assert result.subtype == "flight_longhaul_economy"
        assert result.standardized_units == "pkm"
        assert result.calculated_kgCO2e == 370.149

    def test_flight_class_notes(self, engine):
        result = engine.calculate({
            "activityType": "transport-flight", "quantity": 1000, "units": "km", "flightClass": "business",
        })

        assert result.calculated_kgCO2e == 375.0
        assert result.notes == (
            "modifiers: flightClass=business (x2.5)",
            "flightClass applied",
            "haul=flight_shorthaul_economy (1000.0 km)",
        )

    def test_haul_note_without_class(self, engine):
        result = engine.calculate({"activityType": "transport-flight", "quantity": 5000})

        assert result.notes == ("haul=flight_longhaul_economy (5000.0 km)",)

    def test_missing_long_haul_uses_short_haul(self, factor_rows):
        rows = [r for r in factor_rows if r["id"] != "long_haul"]
        engine = EmissionEngine(store=FactorStore(rows))

        result = engine.calculate({"activityType": "transport-flight", "quantity": 8000, "units": "km"})

        assert result.subtype == "flight_longhaul_economy"
        assert result.factor.id == "short_haul"
        assert result.calculated_kgCO2e == 1200.0

    @pytest.mark.parametrize("rows", [
        [],
        [{"category": "energy", "subtype": "electricity_grid", "units": "kgCO2_per_kWh", "value": 0.7}],
    ])
    def test_missing_flight_factor(self, rows):
        engine = EmissionEngine(store=FactorStore(rows))

        with pytest.raises(FactorNotFound) as exc_info:
            engine.calculate({"activityType": "transport-flight", "quantity": 8000, "units": "km"})

        assert exc_info.value.message == "Flight factor not found."

    def test_passengers_ignored_for_flights(self, engine):
        result = engine.calculate({
            "activityType": "transport-flight", "quantity": 1000, "units": "km", "passengers": 3,
        })

        assert result.calculated_kgCO2e == 150.0


class TestEnergy:
    """Tests for native-unit energy factors."""

    def test_explicit_region(self, engine):
        result = engine.calculate({
            "activityType": "energy-electricity", "quantity": 100, "units": "kWh", "region": "Global",
        })

        assert result.calculated_kgCO2e == 50.0
        assert result.factor.id == "global_grid"

    def test_default_region(self, engine):
        result = engine.calculate({"activityType": "energy-electricity", "quantity": 100, "units": "kWh"})

        assert result.calculated_kgCO2e == 70.0
        assert result.factor.region == "IN"

    def test_unknown_region_falls_back_to_global(self, engine):
        result = engine.calculate({
            "activityType": "energy-electricity", "quantity": 100, "units": "kWh", "region": "FR",
        })

        assert result.factor.id == "global_grid"

    def test_blank_default_region_prefers_global(self, store):
        config = FootprintEngineConfig(default_region="", enable_metrics=False)
        engine = EmissionEngine(store=store, config=config)

        result = engine.calculate({"activityType": "energy-electricity", "quantity": 100, "units": "kWh"})

        assert result.factor.id == "global_grid"
        assert result.calculated_kgCO2e == 50.0

    def test_gas_in_therms(self, engine):
        result = engine.calculate({"activityType": "energy-gas", "quantity": 10, "units": "therms"})

        assert result.calculated_kgCO2e == 53.0
        assert result.standardized_units == "therms"

    def test_energy_source_modifier(self, engine):
        result = engine.calculate({
            "activityType": "energy-electricity", "quantity": 100, "units": "kWh", "energySource": "solar",
        })

        assert result.calculated_kgCO2e == 7.0

    def test_incompatible_units_raise(self, engine):
        with pytest.raises(UnitMismatch) as exc_info:
            engine.calculate({"activityType": "energy-electricity", "quantity": 100, "units": "miles"})

        assert exc_info.value.message == "Unit mismatch: activity has miles, factor requires kWh"
        assert exc_info.value.context["cause_type"] == "UnsupportedConversion"


class TestFoodWasteWaterShopping:
    """Tests for fixed-unit categories."""

    def test_beef_in_lbs(self, engine):
        assert engine.calculate({"activityType": "food-beef", "quantity": 2, "units": "lbs"}).calculated_kgCO2e == 54.0

    def test_beef_in_kg(self, engine):
        result = engine.calculate({"activityType": "food-beef", "quantity": 1, "units": "kg"})

        assert result.calculated_kgCO2e == 59.525
        assert result.standardized_units == "lb"

    def test_grass_fed_modifier(self, engine):
        result = engine.calculate({
            "activityType": "food-beef", "quantity": 2, "units": "lbs", "foodType": "grass-fed",
        })

        assert result.calculated_kgCO2e == 64.8

    def test_waste_in_kg(self, engine):
        assert engine.calculate({"activityType": "waste-general", "quantity": 10, "units": "kg"}).calculated_kgCO2e == 5.0

    def test_shower_minutes(self, engine):
        result = engine.calculate({"activityType": "water-shower", "quantity": 10, "units": "minutes"})

        assert result.calculated_kgCO2e == 0.4
        assert result.subtype == "shower"

    def test_dishwasher_uses_treatment_factor(self, engine):
        result = engine.calculate({"activityType": "water-dishwasher", "quantity": 100, "units": "gallons"})

        assert result.calculated_kgCO2e == 0.2
        assert result.subtype == "treatment_pumping"

    def test_hot_laundry(self, engine):
        result = engine.calculate({
            "activityType": "water-laundry", "quantity": 100, "units": "gallons", "waterTemp": "hot",
        })

        assert result.calculated_kgCO2e == 0.3

    def test_clothing_items(self, engine):
        result = engine.calculate({
            "activityType": "shopping-clothing", "quantity": 2, "units": "items", "clothingType": "t-shirt",
        })

        assert result.calculated_kgCO2e == 24.0

    def test_liters_to_gallons(self, engine):
        result = engine.calculate({"activityType": "water-usage", "quantity": 378.5411784, "units": "liters"})

        assert result.standardized_quantity == pytest.approx(100.0)


class TestRounding:
    """Emission values are rounded to 3 decimals, half up."""

    def test_half_up(self):
        store = FactorStore([{
            "category": "waste", "subtype": "municipal_solid_waste",
            "units": "kgCO2e_per_kg", "value": 0.0125, "region": "Default",
        }])

        result = EmissionEngine(store=store).calculate({"activityType": "waste-general", "quantity": 1, "units": "kg"})

        assert result.calculated_kgCO2e == 0.013

    def test_no_float_drift(self, engine):
        result = engine.calculate({"activityType": "transport-bus", "quantity": 3, "units": "miles"})

        assert result.calculated_kgCO2e == 0.15


class TestValidation:
    """Tests for activity validation."""

    def test_missing_activity(self, engine):
        with pytest.raises(InvalidActivity) as exc_info:
            engine.calculate(None)

        assert exc_info.value.message == "activity is required"

    def test_unknown_activity_type(self, engine):
        with pytest.raises(UnknownActivityType):
            engine.calculate({"activityType": "transport-rocket", "quantity": 1})

    @pytest.mark.parametrize("quantity", [-1, "10", True, float("nan"), float("inf"), None, 10 ** 400])
    def test_bad_quantity(self, engine, quantity):
        with pytest.raises(InvalidActivity) as exc_info:
            engine.calculate({"activityType": "transport-car", "quantity": quantity})

        assert "quantity" in exc_info.value.message

    def test_negative_quantity_message(self, engine):
        with pytest.raises(InvalidActivity) as exc_info:
            engine.calculate({"activityType": "transport-car", "quantity": -5})

        assert exc_info.value.message == "quantity must be a non-negative number"
        assert "quantity" in exc_info.value.context["invalid_fields"]

    def test_missing_activity_type(self, engine):
        with pytest.raises(InvalidActivity):
            engine.calculate({"quantity": 1})

    def test_zero_quantity(self, engine):
        assert engine.calculate({"activityType": "food-beef", "quantity": 0}).calculated_kgCO2e == 0.0

    def test_unsupported_category(self, store):
        mapper = ActivityMapper({"travel-space": ("space", "rocket")})
        engine = EmissionEngine(store=store, mapper=mapper)

        with pytest.raises(UnsupportedCategory) as exc_info:
            engine.calculate({"activityType": "travel-space", "quantity": 1})

        assert exc_info.value.context["category"] == "space"

    def test_snake_case_payload(self, engine):
        result = engine.calculate({"activity_type": "food-beef", "quantity": 1, "food_type": "organic"})

        assert result.calculated_kgCO2e == 24.3

    def test_record_round_trip(self):
        record = ActivityRecord.from_payload({
            "activityType": "transport-car", "quantity": 5, "fuelType": "cng", "extra": "ignored",
        })

        assert record.to_payload() == {"activityType": "transport-car", "quantity": 5.0, "fuelType": "cng"}


class TestResultProvenance:
    """Tests for result serialization and provenance."""

    def test_to_dict_shape(self, engine):
        result = engine.calculate({"activityType": "food-beef", "quantity": 2, "units": "lbs"}).to_dict()

        assert result["success"] is True
        assert result["activityType"] == "food-beef"
        assert result["category"] == "food"
        assert result["input_quantity"] == 2.0
        assert result["input_units"] == "lbs"
        assert result["standardized_quantity"] == 2.0
        assert result["standardized_units"] == "lb"
        assert result["factor"] == {
            "id": "global_beef",
            "value": 27.0,
            "units": "kgCO2e_per_lb",
            "source": "Poore & Nemecek",
            "region": "Global",
            "vintage": "2018",
        }
        assert result["notes"] == []
        assert len(result["provenance_hash"]) == 64

    def test_hash_is_deterministic(self, engine):
        activity = {"activityType": "transport-car", "quantity": 10, "units": "miles"}

        assert engine.calculate(activity).provenance_hash == engine.calculate(activity).provenance_hash

    def test_hash_changes_with_input(self, engine):
        first = engine.calculate({"activityType": "transport-car", "quantity": 10, "units": "miles"})
        second = engine.calculate({"activityType": "transport-car", "quantity": 11, "units": "miles"})

        assert first.provenance_hash != second.provenance_hash

    def test_verify_provenance(self, engine):
        result = engine.calculate({"activityType": "transport-car", "quantity": 10, "units": "miles"})

        assert result.verify_provenance()
        object.__setattr__(result, "calculated_kgCO2e", 0.0)
        assert not result.verify_provenance()

    def test_result_is_immutable(self, engine):
        result = engine.calculate({"activityType": "transport-car", "quantity": 10, "units": "miles"})

        with pytest.raises(FrozenInstanceError):
            result.calculated_kgCO2e = 1.0

    def test_to_json(self, engine):
        result = engine.calculate({"activityType": "waste-general", "quantity": 10, "units": "kg"})

        assert json.loads(result.to_json())["calculated_kgCO2e"] == 5.0

    def test_inline_factor_id(self, engine):
        store = FactorStore([{
            "category": "food", "subtype": "rice", "units": "kgCO2e_per_lb", "value": 1.5,
        }])

        result = EmissionEngine(store=store).calculate({"activityType": "food-rice", "quantity": 2})

        assert isinstance(result, CalculationResult)
        assert result.to_dict()["factor"]["id"] == "inline"


class TestPackagedTable:
    """Every mapped activity type calculates against the packaged table."""

    @pytest.mark.parametrize("activity_type", sorted(DEFAULT_ACTIVITY_MAP))
    def test_default_activity_types(self, activity_type):
        result = EmissionEngine().calculate({"activityType": activity_type, "quantity": 1})

        assert result.calculated_kgCO2e >= 0

    def test_packaged_delhi_car(self):
        result = EmissionEngine().calculate({"activityType": "transport-car", "quantity": 100, "units": "miles"})

        assert result.calculated_kgCO2e == 22.53
        assert result.factor.region == "IN_Delhi"
