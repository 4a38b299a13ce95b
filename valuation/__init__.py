"""
Valuation — industry revenue / EBITDA multiples, synergies, target screening.
"""

from .multiples import (
    Adjustments,
    MultipleValuation,
    Synergies,
    SynergyValuation,
    ValuationRange,
    by_ebitda,
    by_revenue,
    with_synergies,
)
from .scoring import AcquisitionTarget, score_target, valuate_target

__all__ = [
    "Adjustments",
    "MultipleValuation",
    "Synergies",
    "SynergyValuation",
    "ValuationRange",
    "by_ebitda",
    "by_revenue",
    "with_synergies",
    "AcquisitionTarget",
    "score_target",
    "valuate_target",
]
