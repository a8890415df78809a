"""
Model pipeline: parameters in, projection, metrics and tables out.

Data flow:
    Parameters
        -> CostAggregator (weighted price, monthly fixed cost)
        -> build_projections() (yearly rows)
        -> InvestmentMetrics.compute_summary() (NPV, IRR, payback, break-even)
        -> amortization_schedule() (yearly debt service)
        -> supporting tables (debt coverage, margin of safety, sensitivity)

Every stage is a pure function of its inputs, so the whole pipeline is rerun
whenever a parameter changes.

Usage:
    from capacity_model import default_parameters, run_model

    result = run_model(default_parameters())
    print(result.metrics.npv, result.metrics.irr)
    df = result.to_dataframe()   # requires pandas
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from capacity_model.core.cost_model import CostAggregator
from capacity_model.core.parameters import Parameters
from capacity_model.core.projection import ProjectionRow, build_projections
from capacity_model.finance.amortization import AmortizationYearRow, amortization_schedule
from capacity_model.finance.metrics_calculator import (
    DebtCoverageRow,
    InvestmentMetrics,
    Metrics,
    SensitivityRow,
)
from capacity_model.settings import DEFAULT_BREAK_EVEN_METHOD, DEFAULT_DISCOUNT_RATE

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionResult:
    """
    Everything one model run produces.

    Attributes:
        params: Parameters the run was computed from
        projections: Yearly projection rows [millions]
        metrics: Summary metrics
        amortization: Yearly debt service of all loans [base currency]
        debt_coverage: Cash flow after debt and DSCR per projection year [millions]
        margin_of_safety: See InvestmentMetrics.compute_margin_of_safety()
        sensitivity: Monthly profit at each capacity level of the grid
    """

    params: Parameters
    projections: List[ProjectionRow]
    metrics: Metrics
    amortization: List[AmortizationYearRow]
    debt_coverage: List[DebtCoverageRow]
    margin_of_safety: Dict[str, Optional[float]]
    sensitivity: List[SensitivityRow]

    @property
    def years(self) -> List[int]:
        return [row.year for row in self.projections]

    def to_dataframe(self) -> Any:
        """
        Projection rows joined with debt coverage, as a DataFrame indexed by year.

        Raises:
            ImportError: If pandas is not installed.
        """
        if not PANDAS_AVAILABLE:
            raise ImportError("pandas required for to_dataframe(). Install with: pip install pandas")

        coverage = {row.year: row for row in self.debt_coverage}
        data = []
        for row in self.projections:
            record = row.to_dict()
            record['profit_margin'] = row.profit_margin
            debt = coverage.get(row.year)
            record['debt_service'] = debt.debt_service if debt else 0.0
            record['cash_flow_after_debt'] = debt.cash_flow_after_debt if debt else row.net_cash_flow
            record['dscr'] = debt.dscr if debt else None
            data.append(record)

        df = pd.DataFrame(data)
        if not df.empty:
            df = df.set_index('year')
        return df


def run_model(
    params: Parameters,
    discount_rate: float = DEFAULT_DISCOUNT_RATE,
    break_even_method: str = DEFAULT_BREAK_EVEN_METHOD,
) -> ProjectionResult:
    """
    Run the full model for one parameter set.

    Args:
        params:
            Model parameters.

        discount_rate:
            Discount rate per year for NPV (0.10 = 10%).

        break_even_method:
            'bisection' or 'linear_scan'.

    Returns:
        ProjectionResult with projections, metrics and supporting tables.
    """
    costs = CostAggregator(params)
    projections = build_projections(params, weighted_price=costs.weighted_price())
    metrics = InvestmentMetrics.compute_summary(
        params,
        projections,
        discount_rate=discount_rate,
        break_even_method=break_even_method,
    )
    schedule = amortization_schedule(params.loans)

    result = ProjectionResult(
        params=params,
        projections=projections,
        metrics=metrics,
        amortization=schedule,
        debt_coverage=InvestmentMetrics.compute_debt_coverage(projections, schedule),
        margin_of_safety=InvestmentMetrics.compute_margin_of_safety(params, metrics.break_even_volume),
        sensitivity=InvestmentMetrics.compute_sensitivity_table(params, metrics),
    )

    logger.debug(
        "Model run: NPV %.2f M, IRR %.2f%% (converged=%s), payback %.2f years, break-even volume %s",
        metrics.npv,
        metrics.irr,
        metrics.irr_converged,
        metrics.payback_period,
        metrics.break_even_volume,
    )
    return result
