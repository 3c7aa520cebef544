"""Tests for the fpe command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from footprint_engine import __version__
from footprint_engine.cli.main import app

runner = CliRunner()


@pytest.fixture
def table_file(tmp_path, factor_rows):
    path = tmp_path / "factors.json"
    path.write_text(json.dumps(factor_rows), encoding="utf-8")
    return str(path)


@pytest.fixture
def empty_table(tmp_path):
    path = tmp_path / "empty.json"
    path.write_text("[]", encoding="utf-8")
    return str(path)


@pytest.fixture
def batch_file(tmp_path):
    path = tmp_path / "activities.json"
    path.write_text(json.dumps([
        {"activityType": "transport-car", "quantity": 10, "units": "miles"},
        {"activityType": "bogus", "quantity": 1},
        {"activityType": "food-beef", "quantity": 2, "units": "lbs"},
    ]), encoding="utf-8")
    return str(path)


class TestCalculateCommand:
    """Tests for `fpe calculate`."""

    def test_json_output(self, table_file):
        result = runner.invoke(app, [
            "calculate", "food-beef", "2", "--units", "lbs", "--json", "--factor-table", table_file,
        ])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["calculated_kgCO2e"] == 54.0
        assert payload["factor"]["id"] == "global_beef"

    def test_table_output(self, table_file):
        result = runner.invoke(app, [
            "calculate", "transport-car", "10", "-u", "miles", "--fuel-type", "diesel",
            "--factor-table", table_file,
        ])

        assert result.exit_code == 0
        assert "2.400 kgCO2e" in result.output
        assert "fuelType=diesel" in result.output

    def test_unknown_activity_fails(self, table_file):
        result = runner.invoke(app, ["calculate", "bogus", "1", "--factor-table", table_file])

        assert result.exit_code == 1
        assert "[FAIL] Unknown activityType: bogus" in result.output

    def test_fallback(self, empty_table):
        result = runner.invoke(app, [
            "calculate", "transport-car", "10", "--fallback", "--json", "--factor-table", empty_table,
        ])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["method"] == "fallback"
        assert payload["emission"] == 4.0

    def test_fallback_uses_engine_when_possible(self, table_file):
        result = runner.invoke(app, [
            "calculate", "transport-car", "10", "-u", "miles", "--fallback", "--factor-table", table_file,
        ])

        assert result.exit_code == 0
        assert "2.000 kgCO2e" in result.output


class TestBatchCommand:
    """Tests for `fpe batch`."""

    def test_summary(self, batch_file, table_file):
        result = runner.invoke(app, ["batch", batch_file, "--factor-table", table_file])

        assert result.exit_code == 0
        assert "Total: 56.000 kgCO2e (2 ok, 1 failed)" in result.output

    def test_json_output(self, batch_file, table_file):
        result = runner.invoke(app, ["batch", batch_file, "--json", "-w", "2", "--factor-table", table_file])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["total_kgCO2e"] == 56.0
        assert payload["failed_count"] == 1

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[{", encoding="utf-8")

        result = runner.invoke(app, ["batch", str(path)])

        assert result.exit_code == 1
        assert "[FAIL]" in result.output

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "object.json"
        path.write_text(json.dumps({"activityType": "food-beef"}), encoding="utf-8")

        result = runner.invoke(app, ["batch", str(path)])

        assert result.exit_code == 1
        assert "JSON array" in result.output


class TestInfoCommands:
    """Tests for `fpe factors` and `fpe version`."""

    def test_factors_by_category(self, table_file):
        result = runner.invoke(app, ["factors", "--category", "energy", "--factor-table", table_file])

        assert result.exit_code == 0
        assert "Total: 3 factors" in result.output

    def test_factors_packaged_table(self):
        result = runner.invoke(app, ["factors", "-c", "food"])

        assert result.exit_code == 0
        assert "Total: 9 factors" in result.output

    def test_factors_empty_category(self, table_file):
        result = runner.invoke(app, ["factors", "-c", "space", "--factor-table", table_file])

        assert result.exit_code == 0
        assert "No factors found" in result.output

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert f"Footprint Engine v{__version__}" in result.output
