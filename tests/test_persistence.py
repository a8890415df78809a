"""
Unit tests for loading, saving and validating parameter documents.

Run tests with: pytest tests/test_persistence.py -v
"""

import json

import pytest

from capacity_model.core.parameters import Parameters, default_parameters
from capacity_model.persistence.parameters_io import (
    ParameterValidationError,
    load_parameters,
    parameters_from_dict,
    save_parameters,
)


def _document() -> dict:
    return default_parameters().to_dict()


class TestRoundTrip:
    """Tests for document conversion and files."""

    def test_dict_round_trip(self):
        """Test to_dict then from_dict reproduces the defaults."""
        params = default_parameters()
        assert parameters_from_dict(params.to_dict()) == params
        assert Parameters.from_dict(params.to_dict()) == params

    def test_file_round_trip(self, tmp_path):
        """Test save then load reproduces the defaults."""
        params = default_parameters()
        path = save_parameters(params, tmp_path / "plant.json")

        assert path.exists()
        assert load_parameters(path) == params

    def test_camel_case_document(self, tmp_path):
        """Test saved documents use the camelCase field names."""
        path = save_parameters(default_parameters(), tmp_path / "plant.json")
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["yearConfig"] == {"startYear": 2023, "duration": 35}
        assert data["variableCosts"][0]["unitCost"] == pytest.approx(30659.61)
        assert data["loans"][0]["startDate"] == "2023-01"
        assert "customGrowthRates" not in data

    def test_custom_ramp_round_trip(self):
        """Test optional ramp overrides survive conversion."""
        document = _document()
        document["customGrowthRates"] = [20, 15, 10]
        document["customMonthlyVolumes"] = [240, 500]
        params = parameters_from_dict(document)

        assert params.custom_growth_rates == (20.0, 15.0, 10.0)
        assert params.custom_monthly_volumes == (240.0, 500.0)
        assert parameters_from_dict(params.to_dict()) == params

    def test_year_range(self):
        """Test with_year_range updates the horizon and model years."""
        params = default_parameters().with_year_range(2025, 3)

        assert params.year_config.years() == [2025, 2026, 2027]
        assert params.model_data.years == (2025, 2026, 2027)
        assert default_parameters().with_year_range(2025, 80).year_config.duration == 50
        assert default_parameters().with_year_range(2025, 0).year_config.duration == 1


class TestValidation:
    """Tests for document validation."""

    def test_error_is_value_error(self):
        """Test callers can catch ValueError."""
        assert issubclass(ParameterValidationError, ValueError)

    def test_missing_field(self):
        """Test a missing top-level field is named."""
        document = _document()
        del document["priceTiers"]
        with pytest.raises(ParameterValidationError, match="priceTiers"):
            parameters_from_dict(document)

    def test_non_numeric_capacity(self):
        """Test non-numeric values are rejected."""
        document = _document()
        document["modelData"]["capacity"] = "lots"
        with pytest.raises(ParameterValidationError, match="capacity"):
            parameters_from_dict(document)

    @pytest.mark.parametrize("duration", [0, 51])
    def test_duration_range(self, duration):
        """Test duration outside 1..50 is rejected."""
        document = _document()
        document["yearConfig"]["duration"] = duration
        with pytest.raises(ParameterValidationError, match="duration"):
            parameters_from_dict(document)

    @pytest.mark.parametrize("yield_loss", [-1, 100, 150])
    def test_yield_loss_range(self, yield_loss):
        """Test yield loss outside [0, 100) is rejected."""
        document = _document()
        document["yieldLoss"] = yield_loss
        with pytest.raises(ParameterValidationError, match="yieldLoss"):
            parameters_from_dict(document)

    def test_variable_cost_needs_one_target(self):
        """Test a variable cost must set exactly one of tier or all."""
        document = _document()
        document["variableCosts"][0]["all"] = True
        with pytest.raises(ParameterValidationError, match="tier"):
            parameters_from_dict(document)

        document = _document()
        del document["variableCosts"][0]["tier"]
        with pytest.raises(ParameterValidationError, match="tier"):
            parameters_from_dict(document)

    def test_fixed_cost_needs_one_period(self):
        """Test a fixed cost must be monthly or annual."""
        document = _document()
        document["fixedCosts"][3]["monthly"] = False
        with pytest.raises(ParameterValidationError, match="monthly"):
            parameters_from_dict(document)

        document = _document()
        document["fixedCosts"][3]["annual"] = True
        with pytest.raises(ParameterValidationError, match="monthly"):
            parameters_from_dict(document)

    def test_loan_start_date(self):
        """Test loan start dates must be YYYY-MM."""
        document = _document()
        document["loans"][0]["startDate"] = "2023/01"
        with pytest.raises(ParameterValidationError, match="startDate"):
            parameters_from_dict(document)

    def test_missing_item_field(self):
        """Test a missing per-item field names the item."""
        document = _document()
        del document["loans"][1]["interestRate"]
        with pytest.raises(ParameterValidationError, match=r"loans\[1\]\.interestRate"):
            parameters_from_dict(document)

    def test_invalid_file(self, tmp_path):
        """Test loading a structurally invalid file raises."""
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"modelData": {"capacity": 8000}}), encoding="utf-8")
        with pytest.raises(ParameterValidationError):
            load_parameters(path)
