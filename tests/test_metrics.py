"""Tests for Prometheus metric recording."""

import pytest
from prometheus_client import REGISTRY

from footprint_engine import metrics
from footprint_engine.calculation.fallback_calculator import calculate_with_fallback


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.fixture
def metrics_on(engine_config):
    engine_config.enable_metrics = True
    return engine_config


class TestRecording:
    """Helpers record only when metrics are enabled."""

    def test_disabled_is_noop(self):
        before = _sample("fpe_calculations_total", category="food", status="success")

        metrics.record_calculation("food", "success")

        assert _sample("fpe_calculations_total", category="food", status="success") == before

    def test_calculation_counted(self, metrics_on, engine):
        before = _sample("fpe_calculations_total", category="food", status="success")

        engine.calculate({"activityType": "food-beef", "quantity": 1})

        assert _sample("fpe_calculations_total", category="food", status="success") == before + 1

    def test_error_counted(self, metrics_on, engine):
        before = _sample("fpe_calculation_errors_total", error_type="UnknownActivityType")
        failed_before = _sample("fpe_calculations_total", category="unknown", status="failed")

        with pytest.raises(Exception):
            engine.calculate({"activityType": "bogus", "quantity": 1})

        assert _sample("fpe_calculation_errors_total", error_type="UnknownActivityType") == before + 1
        assert _sample("fpe_calculations_total", category="unknown", status="failed") == failed_before + 1

    def test_fallback_counted(self, metrics_on, engine):
        before = _sample("fpe_fallback_uses_total", reason="UnknownActivityType")

        calculate_with_fallback({"activityType": "bogus", "quantity": 1}, engine=engine)

        assert _sample("fpe_fallback_uses_total", reason="UnknownActivityType") == before + 1

    def test_batch_size_observed(self, metrics_on, engine):
        before = _sample("fpe_batch_size_count")

        engine.calculate_batch([{"activityType": "food-beef", "quantity": 1}] * 3)

        assert _sample("fpe_batch_size_count") == before + 1
