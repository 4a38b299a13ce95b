"""
Behavioral assumptions — what drives a projection month to month.
"""

from .base import AssumptionSet
from .seasonal import SeasonalAdjuster
from .scenario import (
    CANONICAL_SCENARIOS,
    ConfidenceBand,
    ScenarioDefinition,
    get_named_scenario,
)

__all__ = [
    "AssumptionSet",
    "SeasonalAdjuster",
    "CANONICAL_SCENARIOS",
    "ConfidenceBand",
    "ScenarioDefinition",
    "get_named_scenario",
]
