"""
Scenario runner: best / expected / worst revenue projections.

Three modes of output, all from one call:
  1. Assumption scenarios: project_forward under each canonical scenario,
     optionally re-weighted by the seasonal curve starting at the as-of month.
  2. Confidence bands:     every projected month wrapped in the scenario's band.
  3. Trend check:          with enough history, an OLS trend path plus R²/slope
                           reported alongside. It never feeds back into 1 or 2.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from behaviors.scenario import CANONICAL_SCENARIOS, ScenarioDefinition
from behaviors.seasonal import SeasonalAdjuster
from core.config import ForecastConfig
from core.tables import DEFAULT_TABLES, EngineTables
from core.utils import require_count, require_non_negative, round_half_up
from models.regression import MonthlyObservation, RegressionPoint, predict_ahead

from .cashflow import (
    CashWindowSummary,
    DailyCashEntry,
    OneTimeCashEvent,
    RecurringCashEvent,
    simulate,
    summarize,
)
from .pipeline import PipelineDeal, PipelineForecast, aggregate
from .revenue import ProjectionMonth, apply_seasonal_factors, project_forward

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionQuality:
    r_squared: float
    slope: float
    confidence: float


@dataclass(frozen=True)
class ScenarioForecast:
    best_case: List[ProjectionMonth] = field(default_factory=list)
    expected: List[ProjectionMonth] = field(default_factory=list)
    worst_case: List[ProjectionMonth] = field(default_factory=list)
    linear_regression: Optional[List[RegressionPoint]] = None
    regression_quality: Optional[RegressionQuality] = None

    def scenarios(self) -> Dict[str, List[ProjectionMonth]]:
        return {
            "best_case": self.best_case,
            "expected": self.expected,
            "worst_case": self.worst_case,
        }

    def to_dict(self) -> Dict:
        out = {
            "bestCase": [m.to_dict() for m in self.best_case],
            "expected": [m.to_dict() for m in self.expected],
            "worstCase": [m.to_dict() for m in self.worst_case],
        }
        if self.linear_regression is not None:
            out["linearRegression"] = [
                {"month": p.month, "mrr": p.mrr, "method": p.method}
                for p in self.linear_regression
            ]
        if self.regression_quality is not None:
            out["regressionQuality"] = {
                "r2": self.regression_quality.r_squared,
                "slope": self.regression_quality.slope,
                "confidence": self.regression_quality.confidence,
            }
        return out

    def to_dataframe(self) -> pd.DataFrame:
        """Long format: one row per (scenario, month) with band bounds."""
        rows = []
        for name, months in self.scenarios().items():
            for m in months:
                rows.append({
                    "scenario": name,
                    "month": m.month,
                    "mrr": m.mrr,
                    "lower": m.confidence_interval.lower if m.confidence_interval else None,
                    "upper": m.confidence_interval.upper if m.confidence_interval else None,
                })
        return pd.DataFrame(rows, columns=["scenario", "month", "mrr", "lower", "upper"])


def _run_one(
    definition: ScenarioDefinition,
    current_mrr: float,
    months: int,
    seasonal_start: Optional[int],
    adjuster: SeasonalAdjuster,
) -> List[ProjectionMonth]:
    path = project_forward(current_mrr, months, definition.assumptions_for(current_mrr))
    if seasonal_start is not None:
        path = apply_seasonal_factors(path, seasonal_start, adjuster)
    return [replace(m, confidence_interval=definition.band(m.mrr)) for m in path]


def run_scenarios(
    current_mrr: float,
    months: int,
    historical_observations: Sequence[MonthlyObservation] = (),
    apply_seasonality: bool = True,
    *,
    as_of_date: pd.Timestamp,
    tables: EngineTables = DEFAULT_TABLES,
    min_regression_points: int = 3,
) -> ScenarioForecast:
    """
    Run the three canonical scenarios from the current MRR.

    Parameters
    ----------
    current_mrr : float
        MRR the projections start from; new-customer MRR in each scenario is a
        share of this value.
    months : int
        Projection horizon.
    historical_observations : sequence of MonthlyObservation
        Optional MRR history (ascending). With at least `min_regression_points`
        points a linear trend path and its quality are attached.
    apply_seasonality : bool
        Multiply each month by the seasonal factor of its calendar month.
    as_of_date : pd.Timestamp
        Reference date; its calendar month is projection month 1.
    """
    current_mrr = require_non_negative(current_mrr, "current_mrr")
    months = require_count(months, "months")
    adjuster = SeasonalAdjuster(tables.seasonal_curve)
    seasonal_start = pd.Timestamp(as_of_date).month if apply_seasonality else None

    paths = {
        key: _run_one(definition, current_mrr, months, seasonal_start, adjuster)
        for key, definition in CANONICAL_SCENARIOS.items()
    }

    linear_regression = None
    regression_quality = None
    history = list(historical_observations)
    if len(history) >= min_regression_points:
        trend = predict_ahead(history, months)
        linear_regression = trend.predictions
        regression_quality = RegressionQuality(
            r_squared=float(round_half_up(trend.model.r_squared, 4)),
            slope=float(round_half_up(trend.model.slope, 2)),
            confidence=trend.confidence,
        )
    else:
        logger.debug(
            "Trend check skipped: %d observation(s), need %d",
            len(history), min_regression_points,
        )

    return ScenarioForecast(
        best_case=paths["best_case"],
        expected=paths["expected"],
        worst_case=paths["worst_case"],
        linear_regression=linear_regression,
        regression_quality=regression_quality,
    )


def run_from_config(
    current_mrr: float,
    historical_observations: Sequence[MonthlyObservation],
    config: ForecastConfig,
    *,
    tables: EngineTables = DEFAULT_TABLES,
) -> ScenarioForecast:
    return run_scenarios(
        current_mrr,
        config.horizon_months,
        historical_observations,
        config.apply_seasonality,
        as_of_date=config.as_of,
        tables=tables,
        min_regression_points=config.min_regression_points,
    )


def forecast_from_pipeline(
    deals: Iterable[PipelineDeal],
    *,
    tables: EngineTables = DEFAULT_TABLES,
) -> PipelineForecast:
    """Probability-weighted pipeline forecast (see engine.pipeline.aggregate)."""
    return aggregate(deals, weights=tables.stage_weights)


@dataclass(frozen=True)
class CashProjection:
    ledger: List[DailyCashEntry]
    summaries: Dict[str, CashWindowSummary]


def project_cash_from_config(
    starting_balance: float,
    config: ForecastConfig,
    one_time_inflows: Iterable[OneTimeCashEvent] = (),
    one_time_outflows: Iterable[OneTimeCashEvent] = (),
    recurring_events: Iterable[RecurringCashEvent] = (),
) -> CashProjection:
    """Cash ledger over config.projection_days from the as-of date, with window summaries."""
    ledger = simulate(
        starting_balance,
        config.projection_days,
        one_time_inflows,
        one_time_outflows,
        recurring_events,
        start_date=config.as_of,
    )
    return CashProjection(ledger=ledger, summaries=summarize(ledger, windows=config.summary_windows))
