"""
Capacity Investment Model for manufacturing plants.

This package projects the financial outcome of investing in production
capacity: year-by-year revenue, costs, profit and cash flow, the investment
metrics that summarize them, break-even analysis and loan amortization.

Architecture:
    - core.parameters: Immutable input record (Parameters) and defaults
    - core.cost_model: Effective unit costs and cost aggregation
    - core.break_even: Break-even volume, capacity and year (BreakEvenSolver)
    - core.projection: Yearly projection rows
    - finance.metrics_calculator: NPV, IRR, payback and summary metrics
    - finance.amortization: Loan payments and yearly debt service
    - scenarios: Scenario presets and what-if adjustments
    - persistence: Validated JSON load/save of parameter documents
    - engine: The pipeline tying the above together (run_model)

Quick start:
    from capacity_model import ScenarioAdjuster, default_parameters, run_model

    params = default_parameters()
    result = run_model(params)
    print(f"NPV: {result.metrics.npv:.1f} M, IRR: {result.metrics.irr:.1f}%")

    # Compare against the pessimistic scenario
    adjuster = ScenarioAdjuster(params)
    pessimistic = run_model(adjuster.apply_scenario("pessimistic"))
"""

from capacity_model.core.parameters import Parameters, default_parameters
from capacity_model.engine import ProjectionResult, run_model
from capacity_model.persistence.parameters_io import load_parameters, save_parameters
from capacity_model.scenarios.scenario_adjuster import ScenarioAdjuster

__version__ = "0.1.0"

__all__ = [
    'Parameters',
    'default_parameters',
    'ProjectionResult',
    'run_model',
    'load_parameters',
    'save_parameters',
    'ScenarioAdjuster',
]
