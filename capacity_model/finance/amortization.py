"""
AmortizationEngine: loan payments and yearly debt-service schedules.

Loans are standard annuity loans with monthly payments:

    r       = annual_rate_pct / 100 / 12
    payment = principal * a(r, n),  a(r, n) = r * (1 + r)^n / ((1 + r)^n - 1)

with a(0, n) = 1 / n for interest-free loans. Each month the interest on the
outstanding balance is paid first and the rest of the payment reduces the
balance; the final payment clears whatever balance is left.

The yearly schedule aggregates the monthly simulation of every loan by
calendar year, starting at the loan's "YYYY-MM" start date. A loan
contributes nothing to years before its first or after its last payment.
Yearly amounts are rounded to whole currency units.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Sequence

from capacity_model.core.parameters import Loan

try:
    import pandas as pd
    PANDAS_AVAILABLE = True
except ImportError:
    PANDAS_AVAILABLE = False

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoanPeriod:
    """One monthly payment of a single loan (unrounded)."""

    period: int
    year: int
    month: int
    payment: float
    principal: float
    interest: float
    balance: float


@dataclass(frozen=True)
class AmortizationYearRow:
    """Debt service of all loans in one calendar year [base currency, rounded]."""

    year: int
    principal: float
    interest: float
    total_payment: float
    remaining_balance: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def round_unit(value: float) -> float:
    """Round half up to the nearest currency unit."""
    return float(math.floor(value + 0.5))


def annuity_factor(rate: float, periods: int) -> float:
    """
    Capital recovery factor a = r*(1+r)^n / ((1+r)^n - 1).

    Args:
        rate: Interest rate per period (0.01 = 1%).
        periods: Number of periods.

    Returns:
        Payment per unit of principal. 0.0 for periods <= 0.
    """
    if periods <= 0:
        return 0.0
    if rate == 0:
        # Special case: no interest
        return 1.0 / periods
    growth = (1 + rate) ** periods
    return rate * growth / (growth - 1)


def _exact_payment(principal: float, annual_rate_pct: float, term_months: int) -> float:
    return principal * annuity_factor(annual_rate_pct / 100 / 12, term_months)


def monthly_payment(principal: float, annual_rate_pct: float, term_months: int) -> float:
    """
    Monthly annuity payment, rounded to the nearest unit.

    Example:
        >>> monthly_payment(1_200_000, 12.0, 12)
        106619.0
    """
    return round_unit(_exact_payment(principal, annual_rate_pct, term_months))


def total_interest(principal: float, annual_rate_pct: float, term_months: int) -> float:
    """Interest paid over the loan term: monthly_payment * term - principal, rounded."""
    return round_unit(monthly_payment(principal, annual_rate_pct, term_months) * term_months - principal)


def loan_schedule(loan: Loan) -> List[LoanPeriod]:
    """
    Month-by-month simulation of one loan from its start date.

    Returns:
        One LoanPeriod per payment; empty for loans with a non-positive term.
    """
    if loan.term <= 0:
        logger.warning("Loan '%s' has a term of %d months; no payments scheduled", loan.name, loan.term)
        return []

    rate = loan.interest_rate / 100 / 12
    payment = _exact_payment(loan.amount, loan.interest_rate, loan.term)
    balance = loan.amount
    month_index = loan.start_month - 1

    periods: List[LoanPeriod] = []
    for period in range(1, loan.term + 1):
        interest = balance * rate
        if period == loan.term:
            principal = balance
        else:
            principal = payment - interest
        balance -= principal

        periods.append(LoanPeriod(
            period=period,
            year=loan.start_year + month_index // 12,
            month=month_index % 12 + 1,
            payment=principal + interest,
            principal=principal,
            interest=interest,
            balance=max(balance, 0.0),
        ))
        month_index += 1

    return periods


def amortization_schedule(loans: Iterable[Loan]) -> List[AmortizationYearRow]:
    """
    Yearly debt service across all loans.

    Covers every calendar year in which any loan has a payment. For each
    year, principal and interest are summed over the payments falling in that
    year, and the remaining balance is the sum of each active loan's balance
    after its last payment of the year.

    Returns:
        Rows in ascending year order, values rounded to whole units.
    """
    totals: Dict[int, Dict[str, float]] = {}

    for loan in loans:
        year_end_balance: Dict[int, float] = {}
        for p in loan_schedule(loan):
            bucket = totals.setdefault(p.year, {"principal": 0.0, "interest": 0.0, "balance": 0.0})
            bucket["principal"] += p.principal
            bucket["interest"] += p.interest
            # Later periods overwrite, leaving the balance after the year's last payment
            year_end_balance[p.year] = p.balance
        for year, balance in year_end_balance.items():
            totals[year]["balance"] += balance

    rows = []
    for year in sorted(totals):
        bucket = totals[year]
        rows.append(AmortizationYearRow(
            year=year,
            principal=round_unit(bucket["principal"]),
            interest=round_unit(bucket["interest"]),
            total_payment=round_unit(bucket["principal"] + bucket["interest"]),
            remaining_balance=round_unit(bucket["balance"]),
        ))
    return rows


def debt_service_by_year(schedule: Sequence[AmortizationYearRow]) -> Dict[int, float]:
    """Map calendar year -> total loan payments [base currency]."""
    return {row.year: row.total_payment for row in schedule}


def amortization_dataframe(schedule: Sequence[AmortizationYearRow]) -> Any:
    """
    Return the schedule as a pandas DataFrame indexed by year.

    Raises:
        ImportError: If pandas is not installed.
    """
    if not PANDAS_AVAILABLE:
        raise ImportError("pandas required for amortization_dataframe(). Install with: pip install pandas")
    data = [row.to_dict() for row in schedule]
    columns = ["year", "principal", "interest", "total_payment", "remaining_balance"]
    return pd.DataFrame(data, columns=columns).set_index("year")
