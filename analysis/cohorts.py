"""
Cohort analysis: customers grouped by signup month, retention tracked over time.

Per cohort:
  customer retention  currently active / customers who signed up
  revenue retention   current MRR of active customers / MRR at signup
  expansion rate      active customers now paying more than at signup / signups
  churn rate          churned customers / signups
  age                 whole calendar months from cohort start to the as-of date
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, Optional

import pandas as pd

from core.utils import (
    datedif_months,
    money,
    parse_period,
    require_non_negative,
    round_half_up,
    to_date,
)

logger = logging.getLogger(__name__)

UNKNOWN_COHORT = "unknown"


@dataclass(frozen=True)
class Customer:
    signup_period: Optional[str]
    status: str
    current_mrr: float
    initial_mrr: float
    churn_date: Optional[date] = None

    def __post_init__(self):
        require_non_negative(self.current_mrr, "Customer.current_mrr")
        require_non_negative(self.initial_mrr, "Customer.initial_mrr")
        if self.signup_period is not None:
            period = parse_period(self.signup_period).strftime("%Y-%m")
            object.__setattr__(self, "signup_period", period)
        if self.churn_date is not None:
            object.__setattr__(self, "churn_date", to_date(self.churn_date))

    @property
    def cohort_key(self) -> str:
        return self.signup_period if self.signup_period is not None else UNKNOWN_COHORT

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_churned(self) -> bool:
        return self.status == "churned"


@dataclass(frozen=True)
class CohortStats:
    cohort: str
    initial_count: int
    current_active: int
    churned_count: int
    expanded_count: int
    contracted_count: int
    initial_mrr: float
    current_mrr: float
    customer_retention_pct: float
    revenue_retention_pct: float
    expansion_rate: float
    churn_rate: float
    avg_mrr_per_active_customer: float
    age_months: Optional[int]

    def to_dict(self) -> Dict:
        return {
            "signupMonth": self.cohort,
            "initialCount": self.initial_count,
            "currentActive": self.current_active,
            "churnedCount": self.churned_count,
            "expandedCount": self.expanded_count,
            "contractedCount": self.contracted_count,
            "initialMRR": self.initial_mrr,
            "currentMRR": self.current_mrr,
            "customerRetention": self.customer_retention_pct,
            "revenueRetention": self.revenue_retention_pct,
            "expansionRate": self.expansion_rate,
            "churnRate": self.churn_rate,
            "avgMRRPerCustomer": self.avg_mrr_per_active_customer,
            "ageMonths": self.age_months,
        }


def _pct(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return float(round_half_up(numerator / denominator * 100, 2))


def customers_to_dataframe(customers: Iterable[Customer]) -> pd.DataFrame:
    rows = []
    for c in customers:
        rows.append({
            "cohort": c.cohort_key,
            "initial_mrr": c.initial_mrr,
            "active_mrr": c.current_mrr if c.is_active else 0.0,
            "is_active": c.is_active,
            "is_churned": c.is_churned,
            "expanded": c.is_active and c.current_mrr > c.initial_mrr,
            "contracted": c.is_active and c.current_mrr < c.initial_mrr,
        })
    return pd.DataFrame(
        rows,
        columns=[
            "cohort", "initial_mrr", "active_mrr",
            "is_active", "is_churned", "expanded", "contracted",
        ],
    )


def analyze(customers: Iterable[Customer], *, as_of_date) -> Dict[str, CohortStats]:
    """
    Group customers by signup month ("YYYY-MM", or "unknown") and compute
    retention, expansion and churn for each cohort.
    """
    df = customers_to_dataframe(customers)
    if df.empty:
        return {}

    as_of = pd.Timestamp(as_of_date)
    grouped = df.groupby("cohort", sort=True).agg(
        initial_count=("initial_mrr", "size"),
        current_active=("is_active", "sum"),
        churned_count=("is_churned", "sum"),
        expanded_count=("expanded", "sum"),
        contracted_count=("contracted", "sum"),
        initial_mrr=("initial_mrr", "sum"),
        current_mrr=("active_mrr", "sum"),
    )

    cohorts: Dict[str, CohortStats] = {}
    for key, row in grouped.iterrows():
        initial_count = int(row["initial_count"])
        active = int(row["current_active"])
        initial_mrr = float(row["initial_mrr"])
        current_mrr = float(row["current_mrr"])

        age = None
        if key != UNKNOWN_COHORT:
            age = datedif_months(parse_period(key), as_of)

        cohorts[key] = CohortStats(
            cohort=key,
            initial_count=initial_count,
            current_active=active,
            churned_count=int(row["churned_count"]),
            expanded_count=int(row["expanded_count"]),
            contracted_count=int(row["contracted_count"]),
            initial_mrr=money(initial_mrr),
            current_mrr=money(current_mrr),
            customer_retention_pct=_pct(active, initial_count),
            revenue_retention_pct=_pct(current_mrr, initial_mrr),
            expansion_rate=_pct(int(row["expanded_count"]), initial_count),
            churn_rate=_pct(int(row["churned_count"]), initial_count),
            avg_mrr_per_active_customer=money(current_mrr / active) if active > 0 else 0.0,
            age_months=age,
        )

    logger.debug("Analyzed %d customers into %d cohorts", len(df), len(cohorts))
    return cohorts
