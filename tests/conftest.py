# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

import pytest

from footprint_engine.calculation.core_calculator import EmissionEngine
from footprint_engine.calculation.factor_store import FactorStore
from footprint_engine.config import FootprintEngineConfig, reset_config, set_config
from footprint_engine.data.loader import reset_default_store


@pytest.fixture(autouse=True)
def engine_config():
    """Install a known configuration for every test."""
    config = FootprintEngineConfig(enable_metrics=False)
    set_config(config)
    yield config
    reset_config()
    reset_default_store()


@pytest.fixture
def factor_rows():
    """Small factor table covering every category rule."""
    return [
        {"id": "delhi_car", "category": "transportation", "subtype": "car_private",
         "units": "kgCO2_per_passenger_mile", "value": 0.2, "region": "IN_Delhi",
         "source": "TERI", "vintage": "2019"},
        {"id": "in_car", "category": "transportation", "subtype": "car_private",
         "units": "kgCO2_per_passenger_mile", "value": 0.3, "region": "IN",
         "source": "GHG Program", "vintage": "2019"},
        {"id": "in_bus", "category": "transportation", "subtype": "bus",
         "units": "kgCO2_per_passenger_mile", "value": 0.05, "region": "IN",
         "source": "GHG Program", "vintage": "2019"},
        {"id": "short_haul", "category": "transportation", "subtype": "flight_shorthaul_economy",
         "units": "kgCO2e_per_pkm", "value": 0.15, "region": "Global",
         "source": "DEFRA", "vintage": "2023"},
        {"id": "long_haul", "category": "transportation", "subtype": "flight_longhaul_economy",
         "units": "kgCO2e_per_pkm", "value": 0.1, "region": "Global",
         "source": "DEFRA", "vintage": "2023"},
        {"id": "in_grid", "category": "energy", "subtype": "electricity_grid",
         "units": "kgCO2_per_kWh", "value": 0.7, "region": "IN",
         "source": "CEA", "vintage": "2023"},
        {"id": "global_grid", "category": "energy", "subtype": "electricity_grid",
         "units": "kgCO2_per_kWh", "value": 0.5, "region": "Global",
         "source": "IEA", "vintage": "2023"},
        {"id": "global_gas", "category": "energy", "subtype": "natural_gas",
         "units": "kgCO2e_per_therms", "value": 5.3, "region": "Global",
         "source": "EPA", "vintage": "2023"},
        {"id": "global_beef", "category": "food", "subtype": "beef",
         "units": "kgCO2e_per_lb", "value": 27.0, "region": "Global",
         "source": "Poore & Nemecek", "vintage": "2018"},
        {"id": "default_msw", "category": "waste", "subtype": "municipal_solid_waste",
         "units": "kgCO2e_per_kg", "value": 0.5, "region": "Default",
         "source": "DEFRA", "vintage": "2023"},
        {"id": "in_shower", "category": "water", "subtype": "shower",
         "units": "kgCO2e_per_minute", "value": 0.04, "region": "IN",
         "source": "Derived", "vintage": "2021"},
        {"id": "in_water", "category": "water", "subtype": "treatment_pumping",
         "units": "kgCO2e_per_gallon", "value": 0.002, "region": "IN",
         "source": "Derived", "vintage": "2021"},
        {"id": "global_clothing", "category": "shopping", "subtype": "clothing_item",
         "units": "kgCO2e_per_item", "value": 15.0, "region": "Global",
         "source": "Lifecycle", "vintage": "2022"},
    ]


@pytest.fixture
def store(factor_rows):
    """FactorStore over the small factor table."""
    return FactorStore(factor_rows)


@pytest.fixture
def engine(store, engine_config):
    """Engine bound to the small factor table."""
    return EmissionEngine(store=store, config=engine_config)
