"""
Integration tests for the model pipeline.

Run tests with: pytest tests/test_engine.py -v
"""

import math
from dataclasses import replace

import pytest

from capacity_model import ScenarioAdjuster, default_parameters, run_model
from capacity_model.core.parameters import (
    FixedCost,
    Loan,
    ModelData,
    Parameters,
    PriceTier,
    VariableCost,
    YearConfig,
)
from capacity_model.finance.metrics_calculator import InvestmentMetrics


def _plant() -> Parameters:
    return Parameters(
        model_data=ModelData(capacity=10000, capacity_annual=120000),
        year_config=YearConfig(start_year=2024, duration=5),
        capacity_usage=10,
        capacity_growth=20,
        price_tiers=[PriceTier("Standard", 40000, 100)],
        price_growth=2,
        fixed_costs=[FixedCost("Overhead", 1_000_000, monthly=True)],
        variable_costs=[VariableCost("Material", 20000, applies_to_all=True)],
        loans=[Loan("Machine Loan", 1_200_000, "Test Bank", 12.0, 12, "2025-01")],
        yield_loss=0,
    )


class TestRunModel:
    """Tests for run_model()."""

    def test_simple_plant(self):
        """Test the pipeline wires all stages together."""
        result = run_model(_plant())

        assert result.years == [2024, 2025, 2026, 2027, 2028]
        assert result.metrics.break_even_volume == pytest.approx(50.0)
        assert result.metrics.npv == pytest.approx(InvestmentMetrics.compute_npv(result.projections, 0.10))
        assert [row.year for row in result.amortization] == [2025]
        assert len(result.debt_coverage) == 5
        assert result.debt_coverage[1].dscr is not None
        assert result.debt_coverage[0].dscr is None
        assert result.margin_of_safety['safety_pct'] == pytest.approx(95.0)
        assert len(result.sensitivity) == 7

    def test_linear_scan_method(self):
        """Test the break-even method can be switched."""
        result = run_model(_plant(), break_even_method="linear_scan")
        assert result.metrics.break_even_volume == 50.0

    def test_default_plant(self):
        """Test the default configuration produces a complete result."""
        result = run_model(default_parameters())

        assert len(result.projections) == 35
        assert len(result.debt_coverage) == 35
        assert result.amortization[0].year == 2023
        assert result.amortization[-1].remaining_balance == 0
        assert math.isfinite(result.metrics.npv)
        assert result.metrics.break_even_volume is not None

    @pytest.mark.parametrize("capacity_usage", [None, 0])
    def test_total_yield_loss_stays_finite(self, capacity_usage):
        """Test 100% yield loss gives finite rows and sentinel metrics instead of NaN."""
        params = replace(default_parameters(), yield_loss=100)
        if capacity_usage is not None:
            params = replace(params, capacity_usage=capacity_usage)
        result = run_model(params)

        for row in result.projections:
            assert math.isfinite(row.revenue)
            assert row.total_variable_costs == 0.0
            assert math.isfinite(row.operating_profit)
            assert math.isfinite(row.net_cash_flow)

        m = result.metrics
        assert math.isfinite(m.total_profit)
        assert math.isfinite(m.npv)
        assert not math.isnan(m.payback_period)
        assert isinstance(m.irr_converged, bool)
        assert m.break_even_volume is None
        assert m.weighted_variable_cost is None
        assert m.contribution_margin is None
        assert m.contribution_margin_ratio is None
        assert result.margin_of_safety['safety_pct'] is None
        assert result.sensitivity == []

    def test_scenarios_change_outcome(self):
        """Test optimistic beats pessimistic on NPV."""
        adjuster = ScenarioAdjuster(default_parameters())
        optimistic = run_model(adjuster.apply_scenario("optimistic"))
        pessimistic = run_model(adjuster.apply_scenario("pessimistic"))

        assert optimistic.metrics.npv > pessimistic.metrics.npv

    def test_to_dataframe(self):
        """Test the projection table indexed by year."""
        pytest.importorskip("pandas")
        df = run_model(_plant()).to_dataframe()

        assert list(df.index) == [2024, 2025, 2026, 2027, 2028]
        assert df.loc[2024, 'revenue'] == pytest.approx(480.0)
        assert df.loc[2025, 'debt_service'] > 0
        assert {'net_cash_flow', 'profit_margin', 'cash_flow_after_debt', 'dscr'} <= set(df.columns)
