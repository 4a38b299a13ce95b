"""
Projection engine — recurring revenue, pipeline weighting, scenario runs, daily cash ledger.
"""

from .revenue import (
    MRRSummary,
    NRRInputs,
    ProjectionMonth,
    Subscription,
    apply_seasonal_factors,
    compute_mrr,
    growth_rate,
    net_revenue_retention,
    project_forward,
)
from .pipeline import PipelineDeal, PipelineForecast, aggregate
from .cashflow import (
    BurnRate,
    DailyCashEntry,
    OneTimeCashEvent,
    RecurringCashEvent,
    Runway,
    burn_rate,
    runway,
    simulate,
    summarize,
)
from .runner import (
    CashProjection,
    ScenarioForecast,
    forecast_from_pipeline,
    project_cash_from_config,
    run_from_config,
    run_scenarios,
)

__all__ = [
    "MRRSummary",
    "NRRInputs",
    "ProjectionMonth",
    "Subscription",
    "apply_seasonal_factors",
    "compute_mrr",
    "growth_rate",
    "net_revenue_retention",
    "project_forward",
    "PipelineDeal",
    "PipelineForecast",
    "aggregate",
    "BurnRate",
    "DailyCashEntry",
    "OneTimeCashEvent",
    "RecurringCashEvent",
    "Runway",
    "burn_rate",
    "runway",
    "simulate",
    "summarize",
    "ScenarioForecast",
    "forecast_from_pipeline",
    "run_from_config",
    "project_cash_from_config",
    "CashProjection",
    "run_scenarios",
]
