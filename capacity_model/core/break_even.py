"""
BreakEvenSolver: monthly volume at which contribution covers fixed costs.

Monthly profit at volume v is

    profit(v) = v * (weighted_price - variable_cost_per_unit(v)) - monthly_fixed_cost

and the break-even volume is the smallest v >= 0 with profit(v) >= 0. Because
variable costs depend on volume (volume discounts), there is no closed form in
general, so two bounded search algorithms are provided:

Bisection (default):
    Searches [0, capacity] for the fixed point v = F / (P - VC(v)). Stops when
    the midpoint and the required volume agree within 0.1 ton and returns the
    required volume, so constant costs give the exact F / (P - VC). Profit is
    never negative at the returned volume: if rounding leaves the required
    volume just short, the midpoint or the upper bracket is returned instead,
    as is the upper bracket when the search does not settle within 100
    iterations.

Linear scan:
    Steps v = 0, s, 2s, ... up to capacity with s = max(1, floor(capacity /
    step_divisor)) and returns the first v where profit(v) >= 0. Precision is
    one step; step_divisor trades precision for speed (200, 1000 or 2000).

Both report None ("not achieved") when profit stays negative up to capacity.

Break-even year:
    Follows the same capacity ramp as the projection (compounding growth capped
    at 100%, or the custom ramp) and returns the first year whose monthly volume
    reaches the break-even volume, linearly interpolated between the previous
    and current year's volumes.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from capacity_model.core.cost_model import CostAggregator
from capacity_model.core.parameters import Parameters
from capacity_model.core.projection import monthly_volume
from capacity_model.settings import (
    BISECTION_TOLERANCE_TONS,
    DEFAULT_BREAK_EVEN_METHOD,
    DEFAULT_STEP_DIVISOR,
    FLOOR_VOLUME_REDUCTION,
    MAX_ITERATIONS,
)

logger = logging.getLogger(__name__)


class BreakEvenSolver:
    """
    Break-even search over monthly production volume.

    The solver binds one Parameters value; fixed cost and weighted price are
    computed once at construction.
    """

    def __init__(
        self,
        params: Parameters,
        include_depreciation: bool = True,
        floor_reduction: bool = FLOOR_VOLUME_REDUCTION,
    ) -> None:
        """
        Args:
            params:
                Model parameters.

            include_depreciation:
                Count depreciation as a monthly fixed cost (default: True).

            floor_reduction:
                Cap volume discounts at 100% (default: settings.FLOOR_VOLUME_REDUCTION).
        """
        self.params = params
        self.costs = CostAggregator(params, include_depreciation, floor_reduction)
        self.weighted_price = self.costs.weighted_price()
        self.monthly_fixed_cost = self.costs.monthly_fixed_cost()

    @property
    def capacity(self) -> float:
        return self.params.capacity

    # ------------------------------------------------------------------
    # Profit function
    # ------------------------------------------------------------------

    def margin(self, volume: float) -> float:
        """Contribution margin per ton at a monthly volume."""
        return self.weighted_price - self.costs.variable_cost_per_unit(volume)

    def monthly_profit(self, volume: float) -> float:
        """Monthly profit at a monthly volume (fixed costs included)."""
        return volume * self.margin(volume) - self.monthly_fixed_cost

    # ------------------------------------------------------------------
    # Search algorithms
    # ------------------------------------------------------------------

    def solve(self, method: str = DEFAULT_BREAK_EVEN_METHOD, **kwargs) -> Optional[float]:
        """
        Break-even volume [tons/month] using the named method.

        Args:
            method: 'bisection' or 'linear_scan'.
            **kwargs: Forwarded to the chosen solver.

        Returns:
            Break-even volume, or None if not achieved within capacity.

        Raises:
            ValueError: If method is unknown.
        """
        if method == "bisection":
            return self.solve_bisection(**kwargs)
        if method == "linear_scan":
            return self.solve_linear_scan(**kwargs)
        raise ValueError(f"Unknown break-even method '{method}'. Use 'bisection' or 'linear_scan'")

    def solve_bisection(
        self,
        tolerance: float = BISECTION_TOLERANCE_TONS,
        max_iterations: int = MAX_ITERATIONS,
    ) -> Optional[float]:
        """
        Fixed-point bisection on [0, capacity].

        Returns:
            Break-even volume [tons/month], or None if profit at full capacity
            is still negative.
        """
        if self.monthly_profit(0.0) >= 0:
            return 0.0
        if not self.monthly_profit(self.capacity) >= 0:
            return None

        low, high = 0.0, self.capacity
        for _ in range(max_iterations):
            mid = (low + high) / 2
            margin = self.margin(mid)
            if margin <= 0:
                # No contribution at this volume; break-even lies higher
                low = mid
                continue

            required = self.monthly_fixed_cost / margin
            if abs(required - mid) < tolerance:
                # profit(high) >= 0 holds throughout the search
                for candidate in (required, mid):
                    if self.monthly_profit(candidate) >= 0:
                        return candidate
                return high
            if required > mid:
                low = mid
            else:
                high = mid

        logger.warning(
            "Break-even bisection did not converge in %d iterations; using upper bound %.2f",
            max_iterations,
            high,
        )
        return high

    def solve_linear_scan(
        self,
        step_divisor: int = DEFAULT_STEP_DIVISOR,
    ) -> Optional[float]:
        """
        First volume on a uniform grid over [0, capacity] with profit >= 0.

        Args:
            step_divisor:
                Grid step is max(1, floor(capacity / step_divisor)).

        Returns:
            Break-even volume [tons/month] on the grid, or None.
        """
        step = self.scan_step(step_divisor)
        volume = 0.0
        while volume <= self.capacity:
            if self.monthly_profit(volume) >= 0:
                return volume
            volume += step
        return None

    def scan_step(self, step_divisor: int = DEFAULT_STEP_DIVISOR) -> float:
        """Grid step [tons/month] used by solve_linear_scan()."""
        return float(max(1, math.floor(self.capacity / step_divisor)))

    # ------------------------------------------------------------------
    # Derived quantities
    # ------------------------------------------------------------------

    def break_even_capacity(self, break_even_volume: Optional[float]) -> Optional[float]:
        """Break-even volume as % of monthly capacity."""
        if break_even_volume is None or self.capacity <= 0:
            return None
        return break_even_volume / self.capacity * 100

    def break_even_year(self, break_even_volume: Optional[float]) -> Optional[float]:
        """
        Fractional calendar year in which the capacity ramp reaches break-even.

        Returns:
            e.g. 2026.4 if the volume crosses break-even 40% of the way from the
            2026 to the 2027 volume; start_year if the first year already
            reaches it; None if never within the horizon.
        """
        if break_even_volume is None:
            return None

        params = self.params
        start_year = params.year_config.start_year
        previous_volume = None
        for index in range(params.year_config.duration):
            volume = monthly_volume(params, index)

            if volume >= break_even_volume:
                if previous_volume is None:
                    return float(start_year)
                fraction = 0.0
                if volume > previous_volume:
                    fraction = (break_even_volume - previous_volume) / (volume - previous_volume)
                return start_year + index - 1 + fraction
            previous_volume = volume

        return None


def monthly_profit(params: Parameters, volume: float) -> float:
    """Monthly profit of ``params`` at a monthly volume [tons/month]."""
    return BreakEvenSolver(params).monthly_profit(volume)
