"""
Statistical models for revenue history.

  regression.py  closed-form OLS trend fit + floored prediction
  accuracy.py    MAPE / RMSE tracking of past forecasts against actuals
"""

from .regression import (
    MonthlyObservation,
    RegressionModel,
    RegressionForecast,
    RegressionPoint,
    ZERO_MODEL,
    fit,
    predict,
    predict_ahead,
)
from .accuracy import ActualPoint, AccuracyReport, ForecastPoint, PeriodError, accuracy

__all__ = [
    "MonthlyObservation",
    "RegressionModel",
    "RegressionForecast",
    "RegressionPoint",
    "ZERO_MODEL",
    "fit",
    "predict",
    "predict_ahead",
    "ActualPoint",
    "AccuracyReport",
    "ForecastPoint",
    "PeriodError",
    "accuracy",
]
