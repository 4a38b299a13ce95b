"""
Recurring-revenue math: MRR/ARR, growth and retention, forward projection.

Key conventions:
  1. Intermediate arithmetic is unrounded; money is rounded to 2 decimals
     (half away from zero) only when a result record is built.
  2. project_forward applies churn, expansion, new business and organic growth
     SIMULTANEOUSLY: all four deltas are computed from the MRR at the start of
     the month, then summed. They do not compound on each other within a month.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from behaviors.base import AssumptionSet
from behaviors.scenario import ConfidenceBand
from behaviors.seasonal import SeasonalAdjuster
from core.errors import InvalidArgument
from core.schema import BILLING_CYCLES
from core.utils import (
    calendar_month_sequence,
    money,
    require_count,
    require_non_negative,
    round_half_up,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subscription:
    amount: float
    billing_cycle: str = "monthly"
    plan: str = "standard"

    def __post_init__(self):
        require_non_negative(self.amount, "Subscription.amount")
        if self.billing_cycle not in BILLING_CYCLES:
            raise InvalidArgument(
                f"Unknown billing cycle {self.billing_cycle!r}; expected one of {BILLING_CYCLES}"
            )

    @property
    def monthly_value(self) -> float:
        if self.billing_cycle == "annual":
            return self.amount / 12
        return self.amount


@dataclass(frozen=True)
class MRRSummary:
    mrr: float
    arr: float
    per_plan_breakdown: Dict[str, float]
    customer_count: int
    avg_per_customer: float

    def to_dict(self) -> Dict:
        return {
            "mrr": self.mrr,
            "arr": self.arr,
            "breakdown": dict(self.per_plan_breakdown),
            "customerCount": self.customer_count,
            "avgMRRPerCustomer": self.avg_per_customer,
        }


def compute_mrr(subscriptions: Iterable[Subscription]) -> MRRSummary:
    """Sum monthly-equivalent subscription values into MRR / ARR."""
    subs = list(subscriptions)
    total = 0.0
    breakdown: Dict[str, float] = {}
    for sub in subs:
        value = sub.monthly_value
        total += value
        breakdown[sub.plan] = breakdown.get(sub.plan, 0.0) + value

    mrr = money(total)
    count = len(subs)
    return MRRSummary(
        mrr=mrr,
        arr=money(mrr * 12),
        per_plan_breakdown={plan: money(v) for plan, v in breakdown.items()},
        customer_count=count,
        avg_per_customer=money(total / count) if count > 0 else 0.0,
    )


def growth_rate(current: float, previous: float) -> float:
    """
    Period-over-period growth in percent.

    previous == 0 is a product policy, not math: 100 % if anything was
    earned, else 0 %.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return float(round_half_up((current - previous) / previous * 100, 2))


@dataclass(frozen=True)
class NRRInputs:
    beginning_mrr: float
    expansion_mrr: float = 0.0
    contraction_mrr: float = 0.0
    churned_mrr: float = 0.0


def net_revenue_retention(data: NRRInputs) -> float:
    """(beginning + expansion - contraction - churned) / beginning, in percent."""
    if data.beginning_mrr == 0:
        return 0.0
    retained = (
        data.beginning_mrr
        + data.expansion_mrr
        - data.contraction_mrr
        - data.churned_mrr
    )
    return float(round_half_up(retained / data.beginning_mrr * 100, 2))


@dataclass(frozen=True)
class ProjectionMonth:
    month: int
    mrr: float
    arr: float
    churn_loss: float
    expansion: float
    new_revenue: float
    organic_growth: float
    # set when seasonality is applied
    calendar_month: Optional[int] = None
    unadjusted_mrr: Optional[float] = None
    seasonal_factor: Optional[float] = None
    # set by the scenario runner
    confidence_interval: Optional[ConfidenceBand] = None

    def to_dict(self) -> Dict:
        out = {
            "month": self.month,
            "mrr": self.mrr,
            "arr": self.arr,
            "churnLoss": self.churn_loss,
            "expansion": self.expansion,
            "newRevenue": self.new_revenue,
            "organicGrowth": self.organic_growth,
        }
        if self.calendar_month is not None:
            out["seasonalMonth"] = self.calendar_month
            out["unadjustedMRR"] = self.unadjusted_mrr
            out["seasonalFactor"] = self.seasonal_factor
        if self.confidence_interval is not None:
            out["confidenceInterval"] = {
                "lower": self.confidence_interval.lower,
                "upper": self.confidence_interval.upper,
            }
        return out


def project_forward(
    starting_mrr: float,
    months: int,
    assumptions: AssumptionSet,
) -> List[ProjectionMonth]:
    """
    Project MRR forward month by month under one assumption set.

    Each month, from the MRR at the start of that month:
        mrr = mrr - mrr*churn + mrr*expansion + new_customer_mrr + mrr*growth
    """
    starting_mrr = require_non_negative(starting_mrr, "starting_mrr")
    months = require_count(months, "months")

    projections: List[ProjectionMonth] = []
    mrr = starting_mrr
    for month in range(1, months + 1):
        churn_loss = mrr * assumptions.monthly_churn_rate
        expansion = mrr * assumptions.expansion_rate
        new_revenue = assumptions.new_customer_mrr
        organic_growth = mrr * assumptions.monthly_growth_rate

        mrr = mrr - churn_loss + expansion + new_revenue + organic_growth

        projections.append(ProjectionMonth(
            month=month,
            mrr=money(mrr),
            arr=money(mrr * 12),
            churn_loss=money(churn_loss),
            expansion=money(expansion),
            new_revenue=money(new_revenue),
            organic_growth=money(organic_growth),
        ))

    return projections


def apply_seasonal_factors(
    projections: Sequence[ProjectionMonth],
    start_month: int,
    adjuster: Optional[SeasonalAdjuster] = None,
) -> List[ProjectionMonth]:
    """
    Re-weight projected MRR by calendar month, keeping the unadjusted value.

    Projection month 1 falls in `start_month` (1..12); later months follow
    the calendar, wrapping at December.
    """
    if not 1 <= start_month <= 12:
        raise InvalidArgument(f"start_month must be 1..12, got {start_month}")
    adjuster = adjuster or SeasonalAdjuster()
    calendar = calendar_month_sequence(start_month, len(projections))

    adjusted = []
    for p, cal_month in zip(projections, calendar):
        adjusted.append(replace(
            p,
            mrr=adjuster.apply(cal_month, p.mrr),
            calendar_month=cal_month,
            unadjusted_mrr=p.mrr,
            seasonal_factor=adjuster.factor(cal_month),
        ))
    return adjusted


def projections_to_dataframe(projections: Sequence[ProjectionMonth]) -> pd.DataFrame:
    return pd.DataFrame([p.to_dict() for p in projections])
