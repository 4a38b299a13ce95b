"""
Acquisition target screening: a quick revenue-multiple valuation and a
0-100 attractiveness score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.tables import DEFAULT_TABLES, EngineTables

from .multiples import ZERO_RANGE, Adjustments, MultipleValuation, by_revenue

logger = logging.getLogger(__name__)

# assumed when a target profile does not say
DEFAULT_RECURRING_REVENUE_PCT = 30.0
DEFAULT_CUSTOMER_CONCENTRATION_PCT = 20.0

BASELINE_SCORE = 50


@dataclass(frozen=True)
class AcquisitionTarget:
    name: str
    industry: str = "generic"
    annual_revenue: float = 0.0
    growth_rate: float = 0.0
    recurring_revenue_pct: Optional[float] = None
    customer_concentration_pct: Optional[float] = None
    market_position: str = "average"
    strategic_fit: str = ""
    customer_overlap: str = ""
    has_proprietary_tech: bool = False
    is_distressed: bool = False
    is_profitable: bool = False
    is_domestic: bool = False

    def adjustments(self) -> Adjustments:
        return Adjustments(
            growth_rate=self.growth_rate,
            recurring_revenue_pct=(
                DEFAULT_RECURRING_REVENUE_PCT
                if self.recurring_revenue_pct is None else self.recurring_revenue_pct
            ),
            customer_concentration_pct=(
                DEFAULT_CUSTOMER_CONCENTRATION_PCT
                if self.customer_concentration_pct is None else self.customer_concentration_pct
            ),
            market_position=self.market_position or "average",
        )


def valuate_target(
    target: AcquisitionTarget,
    *,
    tables: EngineTables = DEFAULT_TABLES,
) -> MultipleValuation:
    """Revenue-multiple valuation of a target; no revenue gives a zero range with a note."""
    industry = target.industry or "generic"
    if target.annual_revenue <= 0:
        logger.debug("No revenue for target %r, returning zero valuation", target.name)
        return MultipleValuation(
            method="Revenue Multiple",
            industry=industry,
            base_value=0.0,
            multiples=ZERO_RANGE,
            valuation=ZERO_RANGE,
            note="Insufficient revenue data for valuation",
        )
    return by_revenue(
        target.annual_revenue,
        industry,
        target.adjustments(),
        table=tables.revenue_multiples,
    )


def score_target(target: AcquisitionTarget) -> int:
    score = BASELINE_SCORE

    if target.annual_revenue > 1_000_000:
        score += 10
    elif target.annual_revenue > 500_000:
        score += 5

    if target.strategic_fit == "high":
        score += 15
    elif target.strategic_fit == "medium":
        score += 8

    if target.growth_rate > 0.20:
        score += 10
    elif target.growth_rate > 0:
        score += 5
    elif target.growth_rate < 0:
        score -= 10

    if target.customer_overlap == "complementary":
        score += 10
    elif target.customer_overlap == "overlapping":
        score -= 5

    if target.has_proprietary_tech:
        score += 10
    # distress is a discount opportunity
    if target.is_distressed:
        score += 5
    if target.is_profitable:
        score += 5
    if target.is_domestic:
        score += 5

    return max(0, min(100, score))
