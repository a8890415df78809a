"""
Unit tests for the cost model.

Tests cover:
    1. effective_unit_cost: Volume discount, yield loss, reduction floor
    2. Aggregation helpers: Weighted price, monthly fixed cost, tier shares
    3. CostAggregator: Parameters-bound view

Run tests with: pytest tests/test_cost_model.py -v
"""

import math

import pytest

from capacity_model.core.cost_model import (
    CostAggregator,
    effective_unit_cost,
    monthly_fixed_cost,
    normalized_weighted_price,
    tier_share,
    total_variable_cost_per_unit,
    weighted_price,
)
from capacity_model.core.parameters import (
    FixedCost,
    ModelData,
    Parameters,
    PriceTier,
    VariableCost,
    YearConfig,
    default_parameters,
)


def _single_tier_params(**overrides) -> Parameters:
    values = dict(
        model_data=ModelData(capacity=10000, capacity_annual=120000),
        year_config=YearConfig(start_year=2024, duration=5),
        capacity_usage=10,
        capacity_growth=20,
        price_tiers=[PriceTier("Standard", 40000, 100)],
        price_growth=2,
        fixed_costs=[FixedCost("Overhead", 1_000_000, monthly=True)],
        variable_costs=[VariableCost("Material", 20000, applies_to_all=True)],
        yield_loss=0,
    )
    values.update(overrides)
    return Parameters(**values)


class TestEffectiveUnitCost:
    """Tests for the per-ton value of a single variable cost line."""

    def test_no_reduction_no_yield_loss(self):
        """Test that the unit cost passes through unchanged."""
        cost = VariableCost("Labour", 8000, applies_to_all=True)
        assert effective_unit_cost(cost, monthly_volume=5000, yield_loss=0) == pytest.approx(8000)

    def test_volume_reduction(self):
        """Test 5% per 1000 tons at 2000 tons/month gives a 10% discount."""
        cost = VariableCost("Paint", 1000, tier="A", volume_reduction=5)
        assert effective_unit_cost(cost, monthly_volume=2000, yield_loss=0) == pytest.approx(900)

    def test_yield_loss_inflates_cost(self):
        """Test that 10% yield loss divides the reduced cost by 0.9."""
        cost = VariableCost("Paint", 1000, tier="A", volume_reduction=5)
        assert effective_unit_cost(cost, monthly_volume=2000, yield_loss=10) == pytest.approx(1000)

    def test_reduction_floored_at_zero_cost(self):
        """Test that a discount above 100% is capped by default."""
        cost = VariableCost("Raw", 1000, tier="A", volume_reduction=10)
        # 10% per 1000 t at 20000 t -> 200% discount
        assert effective_unit_cost(cost, monthly_volume=20000, yield_loss=0) == pytest.approx(0.0)

    def test_reduction_floor_can_be_disabled(self):
        """Test that the raw formula goes negative without the floor."""
        cost = VariableCost("Raw", 1000, tier="A", volume_reduction=10)
        value = effective_unit_cost(cost, monthly_volume=20000, yield_loss=0, floor_reduction=False)
        assert value == pytest.approx(-1000)

    def test_total_yield_loss_is_infinite(self):
        """Test that 100% yield loss reports an infinite cost instead of raising."""
        cost = VariableCost("Raw", 1000, applies_to_all=True)
        assert math.isinf(effective_unit_cost(cost, monthly_volume=100, yield_loss=100))


class TestAggregationHelpers:
    """Tests for weighted price, fixed cost and variable cost aggregation."""

    def test_weighted_price_default_tiers(self):
        """Test the weighted price of the default sales mix."""
        params = default_parameters()
        # 74000*0.1 + 52000*0.1 + 45000*0.6 + 37000*0.2
        assert weighted_price(params.price_tiers) == pytest.approx(47000)

    def test_weighted_price_is_not_normalized(self):
        """Test that a mix summing to 90% is not rescaled."""
        tiers = [PriceTier("A", 100, 90)]
        assert weighted_price(tiers) == pytest.approx(90)
        assert normalized_weighted_price(tiers) == pytest.approx(100)

    def test_normalized_weighted_price_zero_mix(self):
        """Test that an all-zero mix gives 0 instead of dividing by zero."""
        tiers = [PriceTier("A", 100, 0), PriceTier("B", 200, 0)]
        assert normalized_weighted_price(tiers) == 0.0

    def test_monthly_fixed_cost_includes_depreciation(self):
        """Test default fixed costs: 2.3M regular plus depreciation spread monthly."""
        params = default_parameters()
        depreciation = 20_800_000 / 25 / 12 + 22_500_000 / 20 / 12 + 1_000_000 / 20 / 12
        expected = 1_500_000 + 450_000 + 350_000 + depreciation

        assert monthly_fixed_cost(params.fixed_costs) == pytest.approx(expected)

    def test_monthly_fixed_cost_cash_only(self):
        """Test excluding depreciation leaves only regular items."""
        params = default_parameters()
        total = monthly_fixed_cost(params.fixed_costs, include_depreciation=False)
        assert total == pytest.approx(2_300_000)

    def test_annual_regular_cost_spread_monthly(self):
        """Test that an annual regular item counts as cost / 12."""
        costs = [FixedCost("Lease", 1_200_000, annual=True)]
        assert monthly_fixed_cost(costs) == pytest.approx(100_000)

    def test_depreciation_without_life_counts_one_year(self):
        """Test that a missing depreciation life defaults to one year."""
        costs = [FixedCost("Tooling", 1_200_000, annual=True, type="depreciation")]
        assert monthly_fixed_cost(costs) == pytest.approx(100_000)

    def test_tier_share(self):
        """Test share for all-volume, tiered and unmatched cost lines."""
        tiers = default_parameters().price_tiers

        assert tier_share(VariableCost("Labour", 1, applies_to_all=True), tiers) == 1.0
        assert tier_share(VariableCost("Paint", 1, tier="Em-Pro"), tiers) == pytest.approx(0.6)
        assert tier_share(VariableCost("Ghost", 1, tier="Missing"), tiers) == 0.0

    def test_total_variable_cost_weights_by_tier(self):
        """Test tiered lines weighted by mix share plus an all-volume line."""
        tiers = [PriceTier("A", 100, 60), PriceTier("B", 80, 40)]
        costs = [
            VariableCost("a", 100, tier="A"),
            VariableCost("b", 50, tier="B"),
            VariableCost("all", 10, applies_to_all=True),
        ]
        # 100*0.6 + 50*0.4 + 10
        assert total_variable_cost_per_unit(costs, 1000, tiers, yield_loss=0) == pytest.approx(90)

    def test_unmatched_tier_is_ignored(self):
        """Test that a cost line for an unknown tier contributes nothing."""
        tiers = [PriceTier("A", 100, 100)]
        costs = [VariableCost("ghost", 500, tier="Z")]
        assert total_variable_cost_per_unit(costs, 1000, tiers, yield_loss=0) == 0.0


class TestCostAggregator:
    """Tests for the Parameters-bound cost view."""

    def test_simple_plant(self):
        """Test unit economics of a single-tier plant."""
        costs = CostAggregator(_single_tier_params())

        assert costs.weighted_price() == pytest.approx(40000)
        assert costs.monthly_fixed_cost() == pytest.approx(1_000_000)
        assert costs.variable_cost_per_unit() == pytest.approx(20000)
        assert costs.contribution_margin() == pytest.approx(20000)

    def test_initial_monthly_volume(self):
        """Test the first-year volume is capacity * usage / 100."""
        costs = CostAggregator(_single_tier_params())
        assert costs.initial_monthly_volume() == pytest.approx(1000)

    def test_default_volume_is_initial_volume(self):
        """Test that volume discounts default to the first-year volume."""
        params = _single_tier_params(
            variable_costs=[VariableCost("Material", 20000, applies_to_all=True, volume_reduction=5)],
        )
        costs = CostAggregator(params)

        # 1000 t/month -> 5% discount
        assert costs.variable_cost_per_unit() == pytest.approx(19000)
        assert costs.variable_cost_per_unit(monthly_volume=2000) == pytest.approx(18000)

    def test_exclude_depreciation(self):
        """Test that include_depreciation=False drops asset write-offs."""
        params = _single_tier_params(
            fixed_costs=[
                FixedCost("Overhead", 1_000_000, monthly=True),
                FixedCost("Machine", 12_000_000, annual=True, type="depreciation", years=10),
            ],
        )

        assert CostAggregator(params).monthly_fixed_cost() == pytest.approx(1_100_000)
        assert CostAggregator(params, include_depreciation=False).monthly_fixed_cost() == pytest.approx(1_000_000)
