"""
Cost model: per-unit and per-month cost aggregation.

This module turns the price and cost collections of a Parameters record into
the handful of numbers the rest of the engine works with:

    - weighted price [per ton]
    - monthly fixed cost [per month]
    - effective variable cost of one cost line [per ton]
    - total variable cost per ton at a given monthly volume

DESIGN PHILOSOPHY
-----------------
Pure functions:
    - Every function takes plain values (or Parameters parts) and returns floats
    - Nothing is cached; callers recompute whenever an input changes

One canonical definition per quantity:
    - weighted_price() is NOT normalized by the sum of tier percentages.
      If the mix sums to 90%, the weighted price is 10% below the mix average.
      normalized_weighted_price() is the normalized variant for callers that
      want a true average.
    - monthly_fixed_cost() includes depreciation, amortized monthly over the
      asset life (cost / years / 12). Pass include_depreciation=False for a
      cash-only view.
    - Tiered variable costs are weighted by the tier's sales-mix share,
      consistent with the weighted price.

EFFECTIVE UNIT COST
-------------------
A variable cost line gets cheaper with volume and more expensive with yield
loss:

    reduction      = volume_reduction * (monthly_volume / 1000)      [%]
    reduced_cost   = unit_cost * (1 - reduction / 100)
    effective_cost = reduced_cost / (1 - yield_loss / 100)

The reduction is unbounded in the formula, so by default it is capped at 100%
(reduced cost floored at 0). A yield loss of 100% means no good output at all;
the effective cost is then reported as infinite.

TYPICAL WORKFLOW
----------------
    aggregator = CostAggregator(params)
    price = aggregator.weighted_price()
    fixed = aggregator.monthly_fixed_cost()
    variable = aggregator.variable_cost_per_unit(monthly_volume=2400.0)
    margin = price - variable
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence

from capacity_model.core.parameters import FixedCost, Parameters, PriceTier, VariableCost
from capacity_model.settings import FLOOR_VOLUME_REDUCTION, VOLUME_REDUCTION_BASIS_TONS

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Effective unit cost
# ----------------------------------------------------------------------

def effective_unit_cost(
    cost: VariableCost,
    monthly_volume: float,
    yield_loss: float,
    floor_reduction: bool = FLOOR_VOLUME_REDUCTION,
) -> float:
    """
    Per-ton value of a variable cost line after volume discount and yield loss.

    Args:
        cost:
            The variable cost line.

        monthly_volume:
            Production volume [tons/month] the discount is evaluated at.

        yield_loss:
            Material lost in production [%].

        floor_reduction:
            Cap the volume discount at 100% so the cost never turns negative.

    Returns:
        Effective cost [per ton]. math.inf if yield_loss >= 100.
    """
    reduced_cost = cost.unit_cost
    if cost.volume_reduction:
        reduction = cost.volume_reduction * (monthly_volume / VOLUME_REDUCTION_BASIS_TONS)
        if floor_reduction:
            reduction = min(reduction, 100.0)
        reduced_cost = cost.unit_cost * (1 - reduction / 100)

    yield_factor = 1 - yield_loss / 100
    if yield_factor <= 0:
        logger.warning(
            "Yield loss of %.1f%% leaves no good output; cost '%s' is not calculable",
            yield_loss,
            cost.name,
        )
        return math.inf

    return reduced_cost / yield_factor


# ----------------------------------------------------------------------
# Aggregation helpers
# ----------------------------------------------------------------------

def weighted_price(price_tiers: Iterable[PriceTier]) -> float:
    """Sum of price * percentage / 100 over all tiers (not normalized)."""
    return sum(tier.price * tier.percentage / 100 for tier in price_tiers)


def normalized_weighted_price(price_tiers: Sequence[PriceTier]) -> float:
    """
    Sales-mix average price, normalized by the total tier percentage.

    Returns 0.0 if the percentages sum to zero.
    """
    total_percentage = sum(tier.percentage for tier in price_tiers)
    if total_percentage == 0:
        return 0.0
    return sum(tier.price * tier.percentage / total_percentage for tier in price_tiers)


def monthly_fixed_cost(
    fixed_costs: Iterable[FixedCost],
    include_depreciation: bool = True,
) -> float:
    """
    Total fixed cost per month.

    Monthly items count as-is, annual regular items as cost / 12, annual
    depreciation items as cost / years / 12.
    """
    total = 0.0
    for item in fixed_costs:
        if item.is_depreciation and not include_depreciation:
            continue
        if item.monthly:
            total += item.cost
        elif item.annual:
            if item.is_depreciation:
                total += item.cost / item.life_years / 12
            else:
                total += item.cost / 12
    return total


def tier_share(
    cost: VariableCost,
    price_tiers: Sequence[PriceTier],
) -> float:
    """
    Fraction of the volume a variable cost line applies to [0-1].

    1.0 for lines that apply to all volume, the tier's percentage / 100 for
    tiered lines, 0.0 when the referenced tier does not exist.
    """
    if cost.applies_to_all:
        return 1.0
    for tier in price_tiers:
        if tier.name == cost.tier:
            return tier.percentage / 100
    return 0.0


def total_variable_cost_per_unit(
    variable_costs: Iterable[VariableCost],
    volume: float,
    price_tiers: Sequence[PriceTier],
    yield_loss: float,
    floor_reduction: bool = FLOOR_VOLUME_REDUCTION,
) -> float:
    """
    Variable cost per ton of sales mix at a monthly volume.

    Args:
        variable_costs:
            Variable cost lines.

        volume:
            Monthly production volume [tons/month].

        price_tiers:
            Tiers used to weight tiered cost lines.

        yield_loss:
            Material lost in production [%].

        floor_reduction:
            Passed through to effective_unit_cost().

    Returns:
        Weighted variable cost [per ton].
    """
    total = 0.0
    for cost in variable_costs:
        share = tier_share(cost, price_tiers)
        if share == 0.0:
            continue
        total += effective_unit_cost(cost, volume, yield_loss, floor_reduction) * share
    return total


class CostAggregator:
    """
    Cost view of a Parameters record.

    Thin convenience wrapper that binds the aggregation helpers above to one
    Parameters value, so callers do not have to thread tiers and yield loss
    through every call.
    """

    def __init__(
        self,
        params: Parameters,
        include_depreciation: bool = True,
        floor_reduction: bool = FLOOR_VOLUME_REDUCTION,
    ) -> None:
        self.params = params
        self.include_depreciation = include_depreciation
        self.floor_reduction = floor_reduction

    def weighted_price(self) -> float:
        return weighted_price(self.params.price_tiers)

    def normalized_weighted_price(self) -> float:
        return normalized_weighted_price(self.params.price_tiers)

    def monthly_fixed_cost(self) -> float:
        return monthly_fixed_cost(self.params.fixed_costs, self.include_depreciation)

    def variable_cost_per_unit(self, monthly_volume: Optional[float] = None) -> float:
        """
        Weighted variable cost per ton.

        Args:
            monthly_volume:
                Volume [tons/month] to evaluate volume discounts at. Defaults to
                the initial-year volume (capacity * capacityUsage / 100).
        """
        if monthly_volume is None:
            monthly_volume = self.initial_monthly_volume()
        return total_variable_cost_per_unit(
            self.params.variable_costs,
            monthly_volume,
            self.params.price_tiers,
            self.params.yield_loss,
            self.floor_reduction,
        )

    def initial_monthly_volume(self) -> float:
        """Monthly volume in the first projection year [tons/month]."""
        return self.params.capacity * self.params.capacity_usage / 100

    def contribution_margin(self, monthly_volume: Optional[float] = None) -> float:
        """Weighted price minus variable cost per ton."""
        return self.weighted_price() - self.variable_cost_per_unit(monthly_volume)
