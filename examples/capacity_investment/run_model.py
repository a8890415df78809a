"""
Capacity Investment Scenario Comparison.

Runs the default plant configuration through the full model and compares
three scenarios:
    A. Base: the default parameters
    B. Optimistic: faster growth, cheaper costs
    C. Pessimistic: slower growth, dearer costs

Then stresses the base case with a what-if price cut and prints the loan
schedule and break-even sensitivity table.

Optionally pass a JSON parameter document as the first argument.
"""

from pathlib import Path
import logging
import math
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from capacity_model import ScenarioAdjuster, default_parameters, load_parameters, run_model
from capacity_model.finance import total_interest

# What-if stress test [%]
WHAT_IF_PRICE_DELTA = -5.0
WHAT_IF_VARIABLE_DELTA = 3.0
WHAT_IF_FIXED_DELTA = 0.0


def _fmt_optional(value, fmt: str = "{:.2f}", missing: str = "Not Achieved") -> str:
    if value is None:
        return missing
    if isinstance(value, float) and math.isinf(value):
        return "Never"
    return fmt.format(value)


def run_scenario():
    """Run base, optimistic and pessimistic scenarios and print the comparison."""

    print("=" * 70)
    print("CAPACITY INVESTMENT - FINANCIAL PROJECTION")
    print("=" * 70)

    # ========================================================================
    # 1. Load Parameters
    # ========================================================================
    print("\n[1/4] Loading parameters...")
    if len(sys.argv) > 1:
        params = load_parameters(sys.argv[1])
        print(f"  > Loaded {sys.argv[1]}")
    else:
        params = default_parameters()
        print("  > Using default plant configuration")

    years = params.year_config.years()
    print(f"  > Capacity:     {params.capacity:,.0f} t/month")
    print(f"  > Horizon:      {years[0]}-{years[-1]} ({len(years)} years)")
    print(f"  > Price tiers:  {len(params.price_tiers)}")
    print(f"  > Loans:        {len(params.loans)}")

    # ========================================================================
    # 2. Run Scenarios
    # ========================================================================
    print("\n[2/4] Running scenarios...")
    adjuster = ScenarioAdjuster(params)
    results = {}
    for scenario in ("base", "optimistic", "pessimistic"):
        results[scenario] = run_model(adjuster.apply_scenario(scenario))
        print(f"  > {scenario} done")

    # Restore base before the what-if run
    adjuster.apply_scenario("base")
    stressed = run_model(adjuster.apply_what_if(
        delta_price_pct=WHAT_IF_PRICE_DELTA,
        delta_variable_pct=WHAT_IF_VARIABLE_DELTA,
        delta_fixed_pct=WHAT_IF_FIXED_DELTA,
    ))

    # ========================================================================
    # 3. Scenario Comparison
    # ========================================================================
    print("\n[3/4] Results:")
    print("\n" + "=" * 70)
    print("SCENARIO COMPARISON")
    print("=" * 70)

    print(f"\n{'':28s}{'Base':>14s}{'Optimistic':>14s}{'Pessimistic':>14s}")
    rows = [
        ("NPV @10% [M]", lambda m: f"{m.npv:14.1f}"),
        ("IRR [%]", lambda m: f"{m.irr:14.2f}" if m.irr_converged else f"{'n/a':>14s}"),
        ("Payback [years]", lambda m: f"{_fmt_optional(m.payback_period):>14s}"),
        ("Total revenue [M]", lambda m: f"{m.total_revenue:14.1f}"),
        ("Total profit [M]", lambda m: f"{m.total_profit:14.1f}"),
        ("Break-even volume [t/mo]", lambda m: f"{_fmt_optional(m.break_even_volume, '{:.0f}'):>14s}"),
        ("Break-even capacity [%]", lambda m: f"{_fmt_optional(m.break_even_capacity, '{:.1f}'):>14s}"),
        ("Break-even year", lambda m: f"{_fmt_optional(m.break_even_year, '{:.1f}'):>14s}"),
    ]
    for label, render in rows:
        cells = "".join(render(results[s].metrics) for s in ("base", "optimistic", "pessimistic"))
        print(f"  {label:26s}{cells}")

    base = results["base"]
    print(f"\nWhat-if on base (price {WHAT_IF_PRICE_DELTA:+.0f}%, variable costs {WHAT_IF_VARIABLE_DELTA:+.0f}%):")
    print(f"  NPV:                          {stressed.metrics.npv:10.1f} M (base {base.metrics.npv:.1f} M)")
    print(f"  Break-even volume:            {_fmt_optional(stressed.metrics.break_even_volume, '{:.0f}')} t/month")

    safety = base.margin_of_safety
    print("\nMargin of safety (base, first year):")
    print(f"  Current volume:               {safety['current_volume']:10.0f} t/month")
    print(f"  Safety margin:                {_fmt_optional(safety['safety_pct'], '{:.1f}%')}")

    # ========================================================================
    # 4. Loans and Sensitivity
    # ========================================================================
    print("\n[4/4] Loans and break-even sensitivity (base):")
    print("\n  Loans:")
    for loan in params.loans:
        interest = total_interest(loan.amount, loan.interest_rate, loan.term)
        print(f"    {loan.name:22s} {loan.amount / 1e6:8.1f} M  {loan.interest_rate:5.2f}%  "
              f"{loan.term:3d} months  interest {interest / 1e6:6.1f} M")

    print(f"\n  {'Year':>6s}{'Principal [M]':>16s}{'Interest [M]':>15s}{'Balance [M]':>14s}")
    for row in base.amortization:
        print(f"  {row.year:6d}{row.principal / 1e6:16.1f}{row.interest / 1e6:15.1f}{row.remaining_balance / 1e6:14.1f}")

    print(f"\n  {'Capacity':>10s}{'Volume [t]':>12s}{'Profit [M/month]':>18s}")
    for row in base.sensitivity:
        print(f"  {row.capacity_pct:9.0f}%{row.monthly_volume:12.0f}{row.profit / 1e6:18.2f}")

    print("=" * 70)


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    run_scenario()
