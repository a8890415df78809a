"""
ScenarioAdjuster: scenario presets and what-if deltas on a Parameters record.

Two layers of adjustment, always derived from stored values so that nothing
compounds across repeated calls:

    original baseline --apply_scenario()--> scenario base --apply_what_if()--> adjusted

Scenarios (settings.SCENARIO_PRESETS):
    - base:        the original baseline, returned unchanged
    - optimistic:  price growth +2 pp, capacity growth +5 pp,
                   variable costs x0.95, fixed costs x0.97
    - pessimistic: price growth -1 pp, capacity growth -3 pp,
                   variable costs x1.07, fixed costs x1.05

What-if:
    Scales every tier price, variable unit cost and fixed cost by
    (1 + delta / 100), against the current scenario base. Applying the same
    deltas twice gives the same result as applying them once.

Usage:
    adjuster = ScenarioAdjuster(default_parameters())
    optimistic = adjuster.apply_scenario("optimistic")
    stressed = adjuster.apply_what_if(delta_price_pct=-5.0)
    baseline = adjuster.apply_scenario("base")   # the original record
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional

from capacity_model.core.parameters import Parameters
from capacity_model.settings import SCENARIO_PRESETS

BASE_SCENARIO = "base"


def _preset(scenario: str) -> Optional[Dict[str, float]]:
    if scenario == BASE_SCENARIO:
        return None
    try:
        return SCENARIO_PRESETS[scenario]
    except KeyError:
        available = [BASE_SCENARIO] + list(SCENARIO_PRESETS)
        raise ValueError(f"Unknown scenario '{scenario}'. Available: {available}") from None


def scale_costs(
    params: Parameters,
    price_factor: float = 1.0,
    variable_cost_factor: float = 1.0,
    fixed_cost_factor: float = 1.0,
) -> Parameters:
    """Return a copy with tier prices, variable unit costs and fixed costs scaled."""
    return replace(
        params,
        price_tiers=tuple(replace(t, price=t.price * price_factor) for t in params.price_tiers),
        variable_costs=tuple(
            replace(c, unit_cost=c.unit_cost * variable_cost_factor) for c in params.variable_costs
        ),
        fixed_costs=tuple(replace(c, cost=c.cost * fixed_cost_factor) for c in params.fixed_costs),
    )


def scenario_from_baseline(params: Parameters, scenario: str) -> Parameters:
    """
    Apply a scenario preset, treating ``params`` as the baseline.

    Not round-trip safe: the result does not remember its baseline, so
    passing it back in with "base" returns it unchanged, and chaining two
    presets compounds them. Use ScenarioAdjuster to switch between scenarios.

    Raises:
        ValueError: If the scenario name is unknown.
    """
    preset = _preset(scenario)
    if preset is None:
        return params

    adjusted = scale_costs(
        params,
        variable_cost_factor=preset["variable_cost_factor"],
        fixed_cost_factor=preset["fixed_cost_factor"],
    )
    return replace(
        adjusted,
        price_growth=params.price_growth + preset["price_growth_delta"],
        capacity_growth=params.capacity_growth + preset["capacity_growth_delta"],
    )


def apply_what_if(
    params: Parameters,
    delta_price_pct: float = 0.0,
    delta_variable_pct: float = 0.0,
    delta_fixed_pct: float = 0.0,
) -> Parameters:
    """Scale prices and costs of ``params`` by (1 + delta / 100)."""
    return scale_costs(
        params,
        price_factor=1 + delta_price_pct / 100,
        variable_cost_factor=1 + delta_variable_pct / 100,
        fixed_cost_factor=1 + delta_fixed_pct / 100,
    )


class ScenarioAdjuster:
    """
    Keeps the original baseline and the current scenario base.

    Every call derives its result from one of these two stored records, never
    from the previous result.
    """

    def __init__(self, original: Parameters) -> None:
        """
        Args:
            original:
                Baseline parameters, restored exactly by apply_scenario('base').
        """
        self._original = original
        self._scenario = BASE_SCENARIO
        self._scenario_base = original

    @property
    def original(self) -> Parameters:
        return self._original

    @property
    def scenario(self) -> str:
        """Name of the currently applied scenario."""
        return self._scenario

    @property
    def scenario_base(self) -> Parameters:
        """Parameters of the current scenario, before what-if deltas."""
        return self._scenario_base

    def apply_scenario(self, scenario: str) -> Parameters:
        """
        Switch to a scenario and return its parameters.

        Raises:
            ValueError: If the scenario name is unknown.
        """
        self._scenario_base = scenario_from_baseline(self._original, scenario)
        self._scenario = scenario
        return self._scenario_base

    def apply_what_if(
        self,
        delta_price_pct: float = 0.0,
        delta_variable_pct: float = 0.0,
        delta_fixed_pct: float = 0.0,
    ) -> Parameters:
        """Apply what-if deltas [%] on top of the current scenario base."""
        return apply_what_if(self._scenario_base, delta_price_pct, delta_variable_pct, delta_fixed_pct)
