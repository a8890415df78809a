"""
Global calculation settings for the Capacity Investment Model.

These settings define constants that should be consistent across all engine
functions. Tolerances, iteration limits and policies can also be overridden
per call through keyword arguments.
"""

# Money values in projection rows are reported in millions of the base currency
MILLION = 1_000_000.0

# Bound for every iterative loop in the engine (bisection, Newton-Raphson)
MAX_ITERATIONS = 100

# Break-even bisection stops once |required volume - midpoint| < tolerance [tons/month]
BISECTION_TOLERANCE_TONS = 0.1

# Linear-scan break-even step = max(1, floor(capacity / divisor)) [tons/month]
#   - 200: coarse, used for interactive sensitivity sweeps
#   - 1000: default
#   - 2000: fine
LINEAR_SCAN_STEP_DIVISORS = (200, 1000, 2000)
DEFAULT_STEP_DIVISOR = 1000

# "bisection" or "linear_scan"
DEFAULT_BREAK_EVEN_METHOD = "bisection"

# IRR (Newton-Raphson)
IRR_INITIAL_GUESS = 0.10
IRR_TOLERANCE = 1e-5

# Discount rate used for the NPV in the summary metrics (0.10 = 10% per year)
DEFAULT_DISCOUNT_RATE = 0.10

# Volume-based reduction of variable costs is capped at 100% so that unit costs
# never become negative at very high volumes
FLOOR_VOLUME_REDUCTION = True

# Volume-based reduction is quoted as % discount per this many tons of monthly volume
VOLUME_REDUCTION_BASIS_TONS = 1000.0

# Capacity utilization grid [%] for the break-even sensitivity table
SENSITIVITY_CAPACITY_GRID = (40, 50, 60, 70, 80, 90, 100)

# Projection horizon limits [years]
MIN_DURATION = 1
MAX_DURATION = 50

# Scenario presets: additive deltas on growth rates [percentage points],
# multiplicative factors on cost items
SCENARIO_PRESETS = {
    "optimistic": {
        "price_growth_delta": 2.0,
        "capacity_growth_delta": 5.0,
        "variable_cost_factor": 0.95,
        "fixed_cost_factor": 0.97,
    },
    "pessimistic": {
        "price_growth_delta": -1.0,
        "capacity_growth_delta": -3.0,
        "variable_cost_factor": 1.07,
        "fixed_cost_factor": 1.05,
    },
}
