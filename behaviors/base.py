"""
Assumption sets: the parameter bundle that drives one revenue projection.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.utils import require_non_negative


@dataclass(frozen=True)
class AssumptionSet:
    """
    Monthly rates applied to the current MRR, plus a flat amount of new MRR.

    Rates are decimals (0.05 == 5 % per month). new_customer_mrr is an absolute
    amount added every month.
    """

    monthly_growth_rate: float = 0.05
    monthly_churn_rate: float = 0.03
    expansion_rate: float = 0.02
    new_customer_mrr: float = 0.0

    def __post_init__(self):
        require_non_negative(self.new_customer_mrr, "new_customer_mrr")
