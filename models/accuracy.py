"""
Forecast accuracy: compare past predictions against realized actuals.

Periods present on only one side, or with an actual of zero, are skipped
rather than treated as errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from core.utils import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastPoint:
    period: str
    predicted: float


@dataclass(frozen=True)
class ActualPoint:
    period: str
    actual: float


@dataclass(frozen=True)
class PeriodError:
    period: str
    predicted: float
    actual: float
    error: float
    percent_error: float


@dataclass(frozen=True)
class AccuracyReport:
    per_period_error: List[PeriodError] = field(default_factory=list)
    mape: float = 0.0
    rmse: float = 0.0
    accuracy_score: float = 0.0
    matched_count: int = 0

    def to_dict(self) -> Dict:
        return {
            "results": [
                {
                    "period": e.period,
                    "predicted": e.predicted,
                    "actual": e.actual,
                    "error": e.error,
                    "percentError": e.percent_error,
                }
                for e in self.per_period_error
            ],
            "mape": self.mape,
            "rmse": self.rmse,
            "accuracy": self.accuracy_score,
            "count": self.matched_count,
        }


def accuracy(
    forecasts: Sequence[ForecastPoint],
    actuals: Sequence[ActualPoint],
) -> AccuracyReport:
    """
    MAPE, RMSE and a simple accuracy score (100 - MAPE, floored at 0).

    Forecasts are joined to actuals by period key; the first actual for a
    period wins if the caller supplies duplicates.
    """
    actual_by_period: Dict[str, float] = {}
    for a in actuals:
        actual_by_period.setdefault(a.period, float(a.actual))

    rows: List[PeriodError] = []
    abs_pct = []
    sq = []
    for f in forecasts:
        if f.period not in actual_by_period:
            continue
        actual_value = actual_by_period[f.period]
        if actual_value == 0:
            logger.warning("Skipping period %s: actual is zero", f.period)
            continue

        predicted = float(f.predicted)
        error = actual_value - predicted
        pct = abs(error / actual_value) * 100
        abs_pct.append(pct)
        sq.append(error ** 2)
        rows.append(PeriodError(
            period=f.period,
            predicted=predicted,
            actual=actual_value,
            error=error,
            percent_error=float(round_half_up(pct, 2)),
        ))

    if not rows:
        return AccuracyReport()

    mape = float(np.mean(abs_pct))
    rmse = float(np.sqrt(np.mean(sq)))
    return AccuracyReport(
        per_period_error=rows,
        mape=float(round_half_up(mape, 2)),
        rmse=float(round_half_up(rmse, 2)),
        accuracy_score=float(round_half_up(max(0.0, 100.0 - mape), 2)),
        matched_count=len(rows),
    )
