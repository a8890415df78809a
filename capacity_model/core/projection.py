"""
ProjectionBuilder: year-by-year revenue, cost, profit and cash flow.

For every year Y of the horizon [start_year, start_year + duration) with
n = Y - start_year:

    1. usage(n)       = min(capacity_usage * (1 + capacity_growth/100)^n, 100)
                        (usage(0) = capacity_usage exactly)
    2. monthly volume = capacity * usage(n) / 100, annual volume = 12 * monthly
    3. price(n)       = weighted_price * (1 + price_growth/100)^n
       revenue        = annual volume * price(n) / 1e6
    4. variable costs = annual volume * sum(share * effective unit cost) / 1e6,
                        effective cost evaluated at this year's monthly volume
                        (lines whose effective cost is not calculable, e.g. at 100%
                        yield loss, are left out and logged)
    5. operating fixed costs = non-depreciation items annualized / 1e6
    6. depreciation   = sum(cost / years) over depreciation items with n < years, / 1e6
                        (window counted from the project start, not the item's startYear)
    7. operating profit = revenue - variable - fixed - depreciation
    8. net cash flow    = operating profit + depreciation - initial investment,
                          initial investment = sum of depreciation item costs / 1e6, year 0 only

Money values in rows are in millions of the base currency.

The capacity ramp can be overridden with Parameters.custom_growth_rates (one
growth rate per year, compounded) or Parameters.custom_monthly_volumes
(explicit monthly volume per year).
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Set

from capacity_model.core.cost_model import effective_unit_cost, tier_share, weighted_price as _weighted_price
from capacity_model.core.parameters import Parameters
from capacity_model.settings import FLOOR_VOLUME_REDUCTION, MILLION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionRow:
    """One projection year. Money values in millions, volumes in tons."""

    year: int
    revenue: float
    operating_profit: float
    net_cash_flow: float
    yearly_capacity_usage: float
    monthly_volume: float
    annual_volume: float
    total_variable_costs: float
    operating_fixed_costs: float
    annual_depreciation: float

    @property
    def profit_margin(self) -> Optional[float]:
        """Operating profit as % of revenue; None without revenue."""
        if self.revenue == 0:
            return None
        return self.operating_profit / self.revenue * 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ----------------------------------------------------------------------
# Capacity ramp
# ----------------------------------------------------------------------

def yearly_capacity_usage(params: Parameters, years_since_start: int) -> float:
    """
    Capacity utilization [%] in the n-th projection year.

    Order of precedence: custom monthly volumes, custom growth rates, then the
    single compounding capacity_growth.
    """
    volumes = params.custom_monthly_volumes
    if volumes is not None and years_since_start < len(volumes):
        if params.capacity <= 0:
            return 0.0
        return volumes[years_since_start] / params.capacity * 100

    if years_since_start == 0:
        return params.capacity_usage

    if params.custom_growth_rates is not None:
        usage = params.capacity_usage
        rates = params.custom_growth_rates
        for y in range(years_since_start):
            rate = rates[y] if y < len(rates) else 0.0
            usage *= 1 + rate / 100
        return min(usage, 100.0)

    usage = params.capacity_usage * (1 + params.capacity_growth / 100) ** years_since_start
    return min(usage, 100.0)


def monthly_volume(params: Parameters, years_since_start: int) -> float:
    """Monthly production volume [tons/month] in the n-th projection year."""
    volumes = params.custom_monthly_volumes
    if volumes is not None and years_since_start < len(volumes):
        return volumes[years_since_start]
    return params.capacity * yearly_capacity_usage(params, years_since_start) / 100


# ----------------------------------------------------------------------
# Fixed cost components
# ----------------------------------------------------------------------

def annual_operating_fixed_costs(params: Parameters) -> float:
    """Non-depreciation fixed costs per year [base currency]."""
    total = 0.0
    for item in params.fixed_costs:
        if item.is_depreciation:
            continue
        if item.monthly:
            total += item.cost * 12
        elif item.annual:
            total += item.cost
    return total


def annual_depreciation(params: Parameters, years_since_start: int) -> float:
    """Depreciation charged in the n-th projection year [base currency]."""
    return sum(
        item.cost / item.life_years
        for item in params.fixed_costs
        if item.is_depreciation and years_since_start < item.life_years
    )


def initial_investment(params: Parameters) -> float:
    """Total cost of all depreciable assets, spent in year 0 [base currency]."""
    return sum(item.cost for item in params.fixed_costs if item.is_depreciation)


# ----------------------------------------------------------------------
# Projection
# ----------------------------------------------------------------------

def build_projections(
    params: Parameters,
    weighted_price: Optional[float] = None,
    floor_reduction: bool = FLOOR_VOLUME_REDUCTION,
) -> List[ProjectionRow]:
    """
    Build the yearly projection series over the configured horizon.

    Args:
        params:
            Model parameters.

        weighted_price:
            Year-0 weighted price [per ton]. Defaults to weighted_price(params.price_tiers).

        floor_reduction:
            Cap volume discounts at 100% (see cost_model.effective_unit_cost).

    Returns:
        One ProjectionRow per year, in year order.
    """
    if weighted_price is None:
        weighted_price = _weighted_price(params.price_tiers)

    start_year = params.year_config.start_year
    fixed_per_year = annual_operating_fixed_costs(params)
    investment = initial_investment(params)

    logger.debug(
        "Building projections for %d years from %d (weighted price %.2f)",
        params.year_config.duration,
        start_year,
        weighted_price,
    )

    rows: List[ProjectionRow] = []
    uncalculable: Set[str] = set()
    for year in params.year_config.years():
        n = year - start_year

        usage = yearly_capacity_usage(params, n)
        volume = monthly_volume(params, n)
        annual_volume = volume * 12

        yearly_price = weighted_price * (1 + params.price_growth / 100) ** n
        revenue = annual_volume * yearly_price / MILLION

        variable = 0.0
        for cost in params.variable_costs:
            share = tier_share(cost, params.price_tiers)
            if share == 0.0:
                continue
            unit_cost = effective_unit_cost(cost, volume, params.yield_loss, floor_reduction)
            if not math.isfinite(unit_cost):
                # Not calculable at this yield loss
                uncalculable.add(cost.name)
                continue
            variable += annual_volume * share * unit_cost
        variable /= MILLION

        fixed = fixed_per_year / MILLION
        depreciation = annual_depreciation(params, n) / MILLION
        operating_profit = revenue - variable - fixed - depreciation

        cash_flow = operating_profit + depreciation
        if n == 0:
            cash_flow -= investment / MILLION

        rows.append(ProjectionRow(
            year=year,
            revenue=revenue,
            operating_profit=operating_profit,
            net_cash_flow=cash_flow,
            yearly_capacity_usage=usage,
            monthly_volume=volume,
            annual_volume=annual_volume,
            total_variable_costs=variable,
            operating_fixed_costs=fixed,
            annual_depreciation=depreciation,
        ))

    if uncalculable:
        logger.warning(
            "Variable costs %s are not calculable (yield loss %.1f%%) and were left out of the projection",
            sorted(uncalculable),
            params.yield_loss,
        )
    return rows
