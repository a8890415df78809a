"""
InvestmentMetrics: Calculator for capital-budgeting KPIs.

This module provides methods for computing net present value (NPV), internal
rate of return (IRR), payback period and the summary metrics of a projection,
plus the break-even support tables (margin of safety, capacity sensitivity)
and debt service coverage.

All cash-flow series are yearly, index 0 being the first projection year, in
millions of the base currency as produced by build_projections().
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from scipy.optimize import newton

from capacity_model.core.break_even import BreakEvenSolver
from capacity_model.core.cost_model import CostAggregator
from capacity_model.core.parameters import Parameters
from capacity_model.core.projection import ProjectionRow
from capacity_model.finance.amortization import AmortizationYearRow, debt_service_by_year
from capacity_model.settings import (
    DEFAULT_BREAK_EVEN_METHOD,
    DEFAULT_DISCOUNT_RATE,
    IRR_INITIAL_GUESS,
    IRR_TOLERANCE,
    MAX_ITERATIONS,
    MILLION,
    SENSITIVITY_CAPACITY_GRID,
)

logger = logging.getLogger(__name__)

CashFlowSeries = Union[Sequence[float], Sequence[ProjectionRow]]


@dataclass(frozen=True)
class IRRResult:
    """
    Outcome of an IRR calculation.

    rate_pct is 0.0 whenever converged is False, so a caller reading only the
    number sees the usual "not calculable" 0; converged tells a real 0% IRR
    apart from a failed search.
    """

    rate_pct: float
    converged: bool
    iterations: int = 0


@dataclass(frozen=True)
class Metrics:
    """Summary metrics of one projection run."""

    npv: float
    irr: float
    irr_converged: bool
    payback_period: float
    total_revenue: float
    total_profit: float
    break_even_year: Optional[float]
    weighted_price: float
    monthly_fixed_cost: float
    weighted_variable_cost: Optional[float]
    contribution_margin: Optional[float]
    break_even_volume: Optional[float]
    break_even_capacity: Optional[float]

    @property
    def contribution_margin_ratio(self) -> Optional[float]:
        """Contribution margin as % of weighted price."""
        if self.weighted_price == 0 or self.contribution_margin is None:
            return None
        return self.contribution_margin / self.weighted_price * 100

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SensitivityRow:
    """Monthly profit at one capacity utilization [base currency per month]."""

    capacity_pct: float
    monthly_volume: float
    revenue: float
    variable_costs: float
    contribution: float
    fixed_costs: float
    profit: float


@dataclass(frozen=True)
class DebtCoverageRow:
    """Cash flow against debt service in one projection year [millions]."""

    year: int
    net_cash_flow: float
    debt_service: float
    cash_flow_after_debt: float
    dscr: Optional[float]


def _cash_flow_values(series: CashFlowSeries) -> List[float]:
    """Accept either plain numbers or ProjectionRows."""
    return [item.net_cash_flow if isinstance(item, ProjectionRow) else float(item) for item in series]


class InvestmentMetrics:
    """
    Calculator for investment and break-even metrics.

    All methods are static; the class only groups them.
    """

    @staticmethod
    def compute_npv(cash_flows: CashFlowSeries, rate: float) -> float:
        """
        Calculate net present value.

        Formula:
            NPV = Σ cf_t / (1 + rate)^t,  t = 0 .. N-1

        Year 0 is not discounted; any initial investment must already be part of
        cash_flows[0].

        Args:
            cash_flows:
                Yearly cash flows (numbers or ProjectionRows).

            rate:
                Discount rate per year (0.10 = 10%).

        Returns:
            NPV in the unit of the cash flows. math.nan if rate <= -1 or any
            cash flow is not finite.

        Example:
            >>> round(InvestmentMetrics.compute_npv([-1000, 300, 400, 500, 600], 0.10), 2)
            388.77
        """
        if rate <= -1:
            logger.warning("NPV undefined for discount rate %.4f (must be > -1)", rate)
            return math.nan

        values = np.asarray(_cash_flow_values(cash_flows), dtype=float)
        if not np.all(np.isfinite(values)):
            logger.warning("NPV not calculable: cash flows contain non-finite values")
            return math.nan
        periods = np.arange(len(values))
        discount_factors = 1 / (1 + rate) ** periods
        return float(np.sum(values * discount_factors))

    @staticmethod
    def compute_irr(
        cash_flows: CashFlowSeries,
        initial_guess: float = IRR_INITIAL_GUESS,
        tolerance: float = IRR_TOLERANCE,
        max_iterations: int = MAX_ITERATIONS,
    ) -> IRRResult:
        """
        Calculate internal rate of return with Newton-Raphson.

        IRR is the discount rate that makes NPV = 0.

        Args:
            cash_flows:
                Yearly cash flows. Must contain at least one positive and one
                negative value, otherwise IRR is not calculable.

            initial_guess:
                Starting rate (0.10 = 10%).

            tolerance:
                Convergence tolerance on the rate.

            max_iterations:
                Iteration limit.

        Returns:
            IRRResult with rate_pct in percent (e.g. 24.9 for 24.9%).
        """
        values = np.asarray(_cash_flow_values(cash_flows), dtype=float)
        if not np.all(np.isfinite(values)):
            logger.warning("IRR not calculable: cash flows contain non-finite values")
            return IRRResult(rate_pct=0.0, converged=False)
        if not (np.any(values > 0) and np.any(values < 0)):
            return IRRResult(rate_pct=0.0, converged=False)

        periods = np.arange(len(values))

        def npv_func(rate: float) -> float:
            """NPV as function of discount rate."""
            return float(np.sum(values / (1 + rate) ** periods))

        def npv_derivative(rate: float) -> float:
            return float(np.sum(-periods * values / (1 + rate) ** (periods + 1)))

        # Overflow or a zero derivative only mean "no convergence" here
        with np.errstate(all="ignore"), warnings.catch_warnings():
            warnings.simplefilter("ignore", RuntimeWarning)
            root, info = newton(
                npv_func,
                x0=initial_guess,
                fprime=npv_derivative,
                tol=tolerance,
                maxiter=max_iterations,
                full_output=True,
                disp=False,
            )

        if not info.converged or not np.isfinite(root) or root <= -1:
            logger.warning("IRR did not converge after %d iterations", info.iterations)
            return IRRResult(rate_pct=0.0, converged=False, iterations=info.iterations)

        return IRRResult(rate_pct=float(root) * 100, converged=True, iterations=info.iterations)

    @staticmethod
    def compute_payback_period(cash_flows: CashFlowSeries) -> float:
        """
        Calculate payback period in years from cumulative net cash flow.

        The first year t whose cumulative cash flow reaches >= 0 gives

            payback = t - 1 + (-cumulative_{t-1} / cf_t)

        If the cumulative flow never recovers within the horizon, the final
        year's cash flow is extrapolated:

            payback = N - 1 + remaining / cf_{N-1}

        Returns:
            Payback period [years]; 0.0 if nothing needs recovering in year 0;
            math.inf if the final cash flow is <= 0 and payback is never reached,
            or if any cash flow is not finite.

        Example:
            >>> InvestmentMetrics.compute_payback_period([-1000, 300, 400, 500, 600])
            2.6
        """
        values = _cash_flow_values(cash_flows)
        if not values:
            return math.inf
        if not all(math.isfinite(v) for v in values):
            logger.warning("Payback not calculable: cash flows contain non-finite values")
            return math.inf

        cumulative = 0.0
        for index, cash_flow in enumerate(values):
            previous = cumulative
            cumulative += cash_flow
            if cumulative >= 0:
                if index == 0:
                    return 0.0
                return index - 1 + (-previous / cash_flow)

        last = values[-1]
        if last <= 0:
            return math.inf
        return len(values) - 1 + (-cumulative) / last

    @staticmethod
    def compute_summary(
        params: Parameters,
        projections: Sequence[ProjectionRow],
        discount_rate: float = DEFAULT_DISCOUNT_RATE,
        break_even_method: str = DEFAULT_BREAK_EVEN_METHOD,
    ) -> Metrics:
        """
        Calculate the summary metrics of a projection.

        Unit economics (weighted variable cost, contribution margin) are
        evaluated at the first-year volume. NPV uses ``discount_rate``.

        Args:
            params:
                Parameters the projection was built from.

            projections:
                Output of build_projections(params).

            discount_rate:
                Discount rate per year for NPV.

            break_even_method:
                'bisection' or 'linear_scan'.

        Returns:
            Metrics record.
        """
        costs = CostAggregator(params)
        weighted_price = costs.weighted_price()
        monthly_fixed = costs.monthly_fixed_cost()
        weighted_variable: Optional[float] = costs.variable_cost_per_unit(costs.initial_monthly_volume())
        if not math.isfinite(weighted_variable):
            weighted_variable = None

        solver = BreakEvenSolver(params)
        break_even_volume = solver.solve(break_even_method)

        irr = InvestmentMetrics.compute_irr(projections)

        return Metrics(
            npv=InvestmentMetrics.compute_npv(projections, discount_rate),
            irr=irr.rate_pct,
            irr_converged=irr.converged,
            payback_period=InvestmentMetrics.compute_payback_period(projections),
            total_revenue=sum(row.revenue for row in projections),
            total_profit=sum(row.operating_profit for row in projections),
            break_even_year=solver.break_even_year(break_even_volume),
            weighted_price=weighted_price,
            monthly_fixed_cost=monthly_fixed,
            weighted_variable_cost=weighted_variable,
            contribution_margin=weighted_price - weighted_variable if weighted_variable is not None else None,
            break_even_volume=break_even_volume,
            break_even_capacity=solver.break_even_capacity(break_even_volume),
        )

    @staticmethod
    def compute_margin_of_safety(
        params: Parameters,
        break_even_volume: Optional[float],
    ) -> Dict[str, Optional[float]]:
        """
        How far first-year volume can drop before reaching break-even.

        Returns:
            {
                'current_volume': float,          # tons/month
                'break_even_volume': float|None,  # tons/month
                'safety_volume': float|None,      # tons/month
                'safety_pct': float|None,         # % of current volume
            }
        """
        current_volume = params.capacity * params.capacity_usage / 100
        if break_even_volume is None:
            return {
                'current_volume': current_volume,
                'break_even_volume': None,
                'safety_volume': None,
                'safety_pct': None,
            }

        safety_volume = current_volume - break_even_volume
        safety_pct = safety_volume / current_volume * 100 if current_volume > 0 else None
        return {
            'current_volume': current_volume,
            'break_even_volume': break_even_volume,
            'safety_volume': safety_volume,
            'safety_pct': safety_pct,
        }

    @staticmethod
    def compute_sensitivity_table(
        params: Parameters,
        metrics: Metrics,
        capacity_grid: Sequence[float] = SENSITIVITY_CAPACITY_GRID,
    ) -> List[SensitivityRow]:
        """
        Monthly profit and loss at each capacity utilization in the grid.

        Uses the unit economics of ``metrics`` (weighted price, weighted
        variable cost, monthly fixed cost). Empty if the variable cost is not
        calculable.
        """
        if metrics.weighted_variable_cost is None or metrics.contribution_margin is None:
            logger.warning("Sensitivity table not calculable: variable unit cost is not finite")
            return []

        rows = []
        for capacity_pct in capacity_grid:
            volume = params.capacity * capacity_pct / 100
            contribution = volume * metrics.contribution_margin
            rows.append(SensitivityRow(
                capacity_pct=capacity_pct,
                monthly_volume=volume,
                revenue=volume * metrics.weighted_price,
                variable_costs=volume * metrics.weighted_variable_cost,
                contribution=contribution,
                fixed_costs=metrics.monthly_fixed_cost,
                profit=contribution - metrics.monthly_fixed_cost,
            ))
        return rows

    @staticmethod
    def compute_debt_coverage(
        projections: Sequence[ProjectionRow],
        schedule: Sequence[AmortizationYearRow],
    ) -> List[DebtCoverageRow]:
        """
        Debt service coverage per projection year.

        Formula:
            DSCR = net cash flow / total loan payments

        Loan payments are converted to millions to match the projection.
        DSCR is None in years without debt service.
        """
        payments = {year: total / MILLION for year, total in debt_service_by_year(schedule).items()}
        rows = []
        for projection in projections:
            debt_service = payments.get(projection.year, 0.0)
            dscr = projection.net_cash_flow / debt_service if debt_service > 0 else None
            rows.append(DebtCoverageRow(
                year=projection.year,
                net_cash_flow=projection.net_cash_flow,
                debt_service=debt_service,
                cash_flow_after_debt=projection.net_cash_flow - debt_service,
                dscr=dscr,
            ))
        return rows
