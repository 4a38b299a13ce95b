"""
Forecast configuration.
Lookup tables (stage weights, seasonality, multiples) live in core/tables.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import pandas as pd

from .tables import EngineTables

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastConfig:
    # reference "now" for period labels, cohort ages and cash-out dates
    as_of_date: pd.Timestamp
    horizon_months: int = 12
    projection_days: int = 90

    apply_seasonality: bool = True
    # fewer historical points than this skips the regression path
    min_regression_points: int = 3

    summary_windows: Tuple[int, ...] = (30, 60, 90)

    @property
    def as_of(self) -> pd.Timestamp:
        return pd.Timestamp(self.as_of_date).normalize()


def load_engine_tables(path: Union[str, Path]) -> EngineTables:
    """
    Load per-deployment table overrides from a JSON file.

    Sections missing from the file keep their defaults, e.g.
    {"stage_weights": {"weights": {"lead": 0.02, "demo": 0.3}}}
    """
    raw = Path(path).read_text(encoding="utf-8")
    tables = EngineTables.model_validate_json(raw)
    logger.debug("Loaded engine tables from %s", path)
    return tables
