from __future__ import annotations

from dataclasses import dataclass

from core.tables import DEFAULT_SEASONAL_CURVE, SeasonalCurve
from core.utils import money


@dataclass(frozen=True)
class SeasonalAdjuster:
    """Applies a fixed calendar-month seasonality curve to a value."""

    curve: SeasonalCurve = DEFAULT_SEASONAL_CURVE

    def factor(self, calendar_month: int) -> float:
        """Factor for month 1..12; anything else is neutral (1.0 by default)."""
        return self.curve.factor(calendar_month)

    def apply(self, calendar_month: int, base_value: float) -> float:
        return money(base_value * self.factor(calendar_month))
