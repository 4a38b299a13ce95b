"""
Canonical revenue scenarios.

Each scenario is a fixed set of monthly rates plus new-customer MRR expressed
as a share of the MRR the projection starts from, and a confidence band that
is wrapped around every projected month:

  best_case   growth 10 %, churn 1 %, expansion 5 %,   new 15 % of MRR, band ±15 %
  expected    growth  5 %, churn 3 %, expansion 2 %,   new  8 % of MRR, band ±10 %
  worst_case  growth  1 %, churn 7 %, expansion 0.5 %, new  2 % of MRR, band ±20 %
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from core.utils import money

from .base import AssumptionSet


@dataclass(frozen=True)
class ConfidenceBand:
    lower: float
    upper: float


@dataclass(frozen=True)
class ScenarioDefinition:
    name: str
    monthly_growth_rate: float
    monthly_churn_rate: float
    expansion_rate: float
    new_customer_ratio: float
    band_lower: float
    band_upper: float

    def assumptions_for(self, current_mrr: float) -> AssumptionSet:
        return AssumptionSet(
            monthly_growth_rate=self.monthly_growth_rate,
            monthly_churn_rate=self.monthly_churn_rate,
            expansion_rate=self.expansion_rate,
            new_customer_mrr=current_mrr * self.new_customer_ratio,
        )

    def band(self, mrr: float) -> ConfidenceBand:
        return ConfidenceBand(
            lower=money(mrr * self.band_lower),
            upper=money(mrr * self.band_upper),
        )


CANONICAL_SCENARIOS: Dict[str, ScenarioDefinition] = {
    "best_case": ScenarioDefinition(
        name="optimistic",
        monthly_growth_rate=0.10,
        monthly_churn_rate=0.01,
        expansion_rate=0.05,
        new_customer_ratio=0.15,
        band_lower=0.85,
        band_upper=1.15,
    ),
    "expected": ScenarioDefinition(
        name="expected",
        monthly_growth_rate=0.05,
        monthly_churn_rate=0.03,
        expansion_rate=0.02,
        new_customer_ratio=0.08,
        band_lower=0.90,
        band_upper=1.10,
    ),
    "worst_case": ScenarioDefinition(
        name="pessimistic",
        monthly_growth_rate=0.01,
        monthly_churn_rate=0.07,
        expansion_rate=0.005,
        new_customer_ratio=0.02,
        band_lower=0.80,
        band_upper=1.20,
    ),
}


def get_named_scenario(name: str) -> ScenarioDefinition:
    """
    Look up a canonical scenario by result key ("best_case", "expected",
    "worst_case") or by its descriptive name ("optimistic", "pessimistic").
    """
    if name in CANONICAL_SCENARIOS:
        return CANONICAL_SCENARIOS[name]
    for definition in CANONICAL_SCENARIOS.values():
        if definition.name == name:
            return definition
    raise KeyError(
        f"Unknown scenario '{name}'. "
        f"Available: {list(CANONICAL_SCENARIOS.keys())}"
    )
