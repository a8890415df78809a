"""
Financial evaluation: investment metrics and loan amortization.

Key Components:
    - InvestmentMetrics: NPV, IRR, payback period, summary and support tables
    - amortization_schedule: Yearly principal, interest and balance of all loans
"""

from capacity_model.finance.amortization import (
    AmortizationYearRow,
    LoanPeriod,
    amortization_dataframe,
    amortization_schedule,
    loan_schedule,
    monthly_payment,
    total_interest,
)
from capacity_model.finance.metrics_calculator import (
    DebtCoverageRow,
    InvestmentMetrics,
    IRRResult,
    Metrics,
    SensitivityRow,
)

__all__ = [
    'AmortizationYearRow',
    'LoanPeriod',
    'amortization_dataframe',
    'amortization_schedule',
    'loan_schedule',
    'monthly_payment',
    'total_interest',
    'DebtCoverageRow',
    'InvestmentMetrics',
    'IRRResult',
    'Metrics',
    'SensitivityRow',
]
