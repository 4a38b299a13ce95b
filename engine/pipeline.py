"""
Sales pipeline -> probability-weighted revenue expectations.

  expected    Σ amount × stage weight
  best case   full amount of every deal at or beyond "discovery" (weight ≥ 0.25)
  worst case  full amount of near-certain deals only (weight ≥ 0.90)

best_case ≥ expected ≥ worst_case is NOT guaranteed: best/worst use raw
amounts at threshold weights. best_case ≥ worst_case always holds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from core.tables import DEFAULT_STAGE_WEIGHTS, StageWeightTable
from core.utils import money, require_non_negative

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineDeal:
    stage: str
    amount: float

    def __post_init__(self):
        require_non_negative(self.amount, "PipelineDeal.amount")

    @property
    def normalized_stage(self) -> str:
        return (self.stage or "lead").strip().lower()


@dataclass
class StageSummary:
    count: int = 0
    total_value: float = 0.0
    weighted_value: float = 0.0


@dataclass(frozen=True)
class PipelineForecast:
    expected_value: float = 0.0
    best_case: float = 0.0
    worst_case: float = 0.0
    per_stage: Dict[str, StageSummary] = field(default_factory=dict)
    total_deals: int = 0
    total_value: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "expected": self.expected_value,
            "bestCase": self.best_case,
            "worstCase": self.worst_case,
            "byStage": {
                stage: {
                    "count": s.count,
                    "totalValue": s.total_value,
                    "weightedValue": s.weighted_value,
                }
                for stage, s in self.per_stage.items()
            },
            "totalDeals": self.total_deals,
            "totalPipelineValue": self.total_value,
        }


def aggregate(
    deals: Iterable[PipelineDeal],
    *,
    weights: Optional[StageWeightTable] = None,
) -> PipelineForecast:
    table = weights or DEFAULT_STAGE_WEIGHTS

    weighted_total = 0.0
    best_case = 0.0
    worst_case = 0.0
    total_value = 0.0
    n_deals = 0
    by_stage: Dict[str, StageSummary] = {}

    for deal in deals:
        stage = deal.normalized_stage
        if not table.is_known(stage):
            logger.warning("Unmapped pipeline stage %r, using weight %.2f", stage, table.default_weight)
        weight = table.weight_for(stage)
        weighted = deal.amount * weight

        weighted_total += weighted
        total_value += deal.amount
        n_deals += 1
        if weight >= table.best_case_threshold:
            best_case += deal.amount
        if weight >= table.worst_case_threshold:
            worst_case += deal.amount

        s = by_stage.setdefault(stage, StageSummary())
        s.count += 1
        s.total_value += deal.amount
        s.weighted_value += weighted

    for s in by_stage.values():
        s.total_value = money(s.total_value)
        s.weighted_value = money(s.weighted_value)

    return PipelineForecast(
        expected_value=money(weighted_total),
        best_case=money(best_case),
        worst_case=money(worst_case),
        per_stage=by_stage,
        total_deals=n_deals,
        total_value=money(total_value),
    )
