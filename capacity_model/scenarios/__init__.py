from capacity_model.scenarios.scenario_adjuster import ScenarioAdjuster, apply_what_if, scenario_from_baseline

__all__ = [
    'ScenarioAdjuster',
    'scenario_from_baseline',
    'apply_what_if',
]
