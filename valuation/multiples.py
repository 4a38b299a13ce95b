"""
Multiple-based valuation.

Key design principles:
  1. Industry multiples come from lookup tables (core.tables); an unmapped
     industry uses the table's fallback row ("generic").
  2. Revenue valuations carry an adjustment factor that starts at 1.0 and
     receives additive bumps for growth, recurring revenue, customer
     concentration and market position. The factor is NOT clamped: enough
     negative bumps take it to zero or below.
  3. Valuations are rounded to whole currency units; reported multiples to
     2 decimals.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict

from core.tables import DEFAULT_EBITDA_MULTIPLES, DEFAULT_REVENUE_MULTIPLES, MultipleTable
from core.utils import money, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValuationRange:
    low: float
    mid: float
    high: float

    def to_dict(self) -> Dict:
        return asdict(self)


ZERO_RANGE = ValuationRange(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Adjustments:
    growth_rate: float = 0.0
    recurring_revenue_pct: float = 0.0
    customer_concentration_pct: float = 0.0
    market_position: str = "average"

    def factor(self) -> float:
        adj = 1.0

        if self.growth_rate > 0.30:
            adj += 0.30
        elif self.growth_rate > 0.15:
            adj += 0.15
        elif self.growth_rate < 0:
            adj -= 0.20

        if self.recurring_revenue_pct > 80:
            adj += 0.25
        elif self.recurring_revenue_pct > 50:
            adj += 0.10

        if self.customer_concentration_pct > 50:
            adj -= 0.30
        elif self.customer_concentration_pct > 30:
            adj -= 0.15

        if self.market_position == "leader":
            adj += 0.20
        elif self.market_position == "weak":
            adj -= 0.20

        return adj


@dataclass(frozen=True)
class MultipleValuation:
    method: str
    industry: str
    base_value: float
    multiples: ValuationRange
    valuation: ValuationRange
    adjustment_factor: float = 1.0
    note: str = ""

    def to_dict(self) -> Dict:
        out = {
            "method": self.method,
            "industry": self.industry,
            "baseValue": self.base_value,
            "multiples": self.multiples.to_dict(),
            "valuation": self.valuation.to_dict(),
            "adjustmentFactor": self.adjustment_factor,
        }
        if self.note:
            out["note"] = self.note
        return out


def _whole(x: float) -> float:
    return float(round_half_up(x, 0))


def by_revenue(
    annual_revenue: float,
    industry: str,
    adjustments: Adjustments = Adjustments(),
    *,
    table: MultipleTable = DEFAULT_REVENUE_MULTIPLES,
) -> MultipleValuation:
    """valuation = revenue × industry multiple × adjustment factor, per tier."""
    matched, m = table.lookup(industry)
    if matched != industry:
        logger.debug("Industry %r not in revenue table, using %r multiples", industry, matched)
    adj = adjustments.factor()

    return MultipleValuation(
        method="Revenue Multiple",
        industry=industry,
        base_value=annual_revenue,
        multiples=ValuationRange(
            low=money(m.low * adj),
            mid=money(m.mid * adj),
            high=money(m.high * adj),
        ),
        valuation=ValuationRange(
            low=_whole(annual_revenue * m.low * adj),
            mid=_whole(annual_revenue * m.mid * adj),
            high=_whole(annual_revenue * m.high * adj),
        ),
        adjustment_factor=money(adj),
    )


def by_ebitda(
    ebitda: float,
    industry: str,
    *,
    table: MultipleTable = DEFAULT_EBITDA_MULTIPLES,
) -> MultipleValuation:
    matched, m = table.lookup(industry)
    if matched != industry:
        logger.debug("Industry %r not in EBITDA table, using %r multiples", industry, matched)

    return MultipleValuation(
        method="EBITDA Multiple",
        industry=industry,
        base_value=ebitda,
        multiples=ValuationRange(low=m.low, mid=m.mid, high=m.high),
        valuation=ValuationRange(
            low=_whole(ebitda * m.low),
            mid=_whole(ebitda * m.mid),
            high=_whole(ebitda * m.high),
        ),
    )


@dataclass(frozen=True)
class Synergies:
    revenue_upside: float = 0.0
    cost_savings: float = 0.0
    customer_base_value: float = 0.0
    technology_value: float = 0.0
    talent_value: float = 0.0
    time_to_market_savings: float = 0.0

    @property
    def total(self) -> float:
        return (
            self.revenue_upside
            + self.cost_savings
            + self.customer_base_value
            + self.technology_value
            + self.talent_value
            + self.time_to_market_savings
        )


@dataclass(frozen=True)
class SynergyValuation:
    base: ValuationRange
    synergies: Synergies
    total_synergies: float
    adjusted: ValuationRange

    def to_dict(self) -> Dict:
        return {
            "baseValuation": self.base.to_dict(),
            "synergies": {**asdict(self.synergies), "total": self.total_synergies},
            "adjustedValuation": self.adjusted.to_dict(),
        }


# share of total synergies credited to each tier
SYNERGY_WEIGHTS = (0.5, 0.75, 1.0)


def with_synergies(base: ValuationRange, synergies: Synergies) -> SynergyValuation:
    total = synergies.total
    w_low, w_mid, w_high = SYNERGY_WEIGHTS
    return SynergyValuation(
        base=base,
        synergies=synergies,
        total_synergies=money(total),
        adjusted=ValuationRange(
            low=money(base.low + total * w_low),
            mid=money(base.mid + total * w_mid),
            high=money(base.high + total * w_high),
        ),
    )
