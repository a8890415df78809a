"""
Core model: parameters, cost aggregation, break-even and projections.
"""

from capacity_model.core.parameters import (
    FixedCost,
    Loan,
    ModelData,
    Parameters,
    PriceTier,
    VariableCost,
    YearConfig,
    default_parameters,
)
from capacity_model.core.cost_model import (
    CostAggregator,
    effective_unit_cost,
    monthly_fixed_cost,
    normalized_weighted_price,
    total_variable_cost_per_unit,
    weighted_price,
)
from capacity_model.core.break_even import BreakEvenSolver, monthly_profit
from capacity_model.core.projection import ProjectionRow, build_projections, yearly_capacity_usage

__all__ = [
    'FixedCost',
    'Loan',
    'ModelData',
    'Parameters',
    'PriceTier',
    'VariableCost',
    'YearConfig',
    'default_parameters',
    'CostAggregator',
    'effective_unit_cost',
    'monthly_fixed_cost',
    'normalized_weighted_price',
    'total_variable_cost_per_unit',
    'weighted_price',
    'BreakEvenSolver',
    'monthly_profit',
    'ProjectionRow',
    'build_projections',
    'yearly_capacity_usage',
]
