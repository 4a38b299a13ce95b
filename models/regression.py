"""
Linear trend model for historical MRR.

Ordinary least squares on (period_index, value) pairs using closed-form sums.
Used by the scenario runner as an independent quality signal next to the
assumption-driven projections; it never feeds back into them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np

from core.errors import InvalidArgument
from core.utils import money, require_count, round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonthlyObservation:
    """One historical data point, e.g. MRR for a month."""
    period_index: int
    value: float


@dataclass(frozen=True)
class RegressionModel:
    """Fitted line y = slope * x + intercept plus goodness of fit."""
    slope: float = 0.0
    intercept: float = 0.0
    r_squared: float = 0.0
    n_points: int = 0

    def predict(self, x: int) -> float:
        return predict(self, x)

    def to_dict(self) -> Dict[str, float]:
        return {
            "slope": float(round_half_up(self.slope, 2)),
            "intercept": float(round_half_up(self.intercept, 2)),
            "rSquared": float(round_half_up(self.r_squared, 4)),
        }


ZERO_MODEL = RegressionModel()


@dataclass(frozen=True)
class RegressionPoint:
    month: int
    mrr: float
    method: str = "linear_regression"


@dataclass(frozen=True)
class RegressionForecast:
    predictions: List[RegressionPoint] = field(default_factory=list)
    model: RegressionModel = ZERO_MODEL

    @property
    def confidence(self) -> float:
        # R² doubles as the confidence signal
        return float(round_half_up(self.model.r_squared, 4))


def _check_ordered(points: Sequence[MonthlyObservation]) -> None:
    for prev, cur in zip(points, points[1:]):
        if cur.period_index <= prev.period_index:
            raise InvalidArgument(
                "Observations must be strictly ascending by period_index; "
                f"got {prev.period_index} followed by {cur.period_index}"
            )


def fit(points: Sequence[MonthlyObservation]) -> RegressionModel:
    """
    Fit y = slope * x + intercept.

    Fewer than 2 points yields the zero model. r_squared is 0 when every value
    is identical (no variance to explain).
    """
    points = list(points)
    _check_ordered(points)
    n = len(points)
    if n < 2:
        logger.debug("Regression skipped: %d point(s)", n)
        return ZERO_MODEL

    x = np.array([p.period_index for p in points], dtype=float)
    y = np.array([p.value for p in points], dtype=float)

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = (x * y).sum()
    sum_x2 = (x * x).sum()

    denom = n * sum_x2 - sum_x * sum_x
    if denom == 0:
        return RegressionModel(n_points=n)

    slope = (n * sum_xy - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n

    if np.all(y == y[0]):
        r_squared = 0.0
    else:
        predicted = slope * x + intercept
        ss_tot = float(((y - sum_y / n) ** 2).sum())
        ss_res = float(((y - predicted) ** 2).sum())
        r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
        r_squared = min(max(r_squared, 0.0), 1.0)

    return RegressionModel(
        slope=float(slope),
        intercept=float(intercept),
        r_squared=float(r_squared),
        n_points=n,
    )


def predict(model: RegressionModel, x: int) -> float:
    """Point forecast, floored at zero (revenue cannot be negative)."""
    return max(0.0, model.slope * x + model.intercept)


def predict_ahead(points: Sequence[MonthlyObservation], months: int) -> RegressionForecast:
    """Fit on history and predict `months` periods after the last observation."""
    months = require_count(months, "months")
    points = list(points)
    model = fit(points)
    last_index = points[-1].period_index if points else -1

    predictions = [
        RegressionPoint(month=i, mrr=money(predict(model, last_index + i)))
        for i in range(1, months + 1)
    ]
    return RegressionForecast(predictions=predictions, model=model)
