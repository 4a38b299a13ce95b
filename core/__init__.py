"""
Core package — configuration, lookup tables, record schema, shared utilities.
No business logic lives here.
"""

from .errors import InvalidArgument
from .config import ForecastConfig, load_engine_tables
from .tables import (
    DEFAULT_TABLES,
    DepartmentMapping,
    EngineTables,
    MultipleRange,
    MultipleTable,
    SeasonalCurve,
    StageWeightTable,
)
from .utils import require_columns, round_half_up, datedif_months, parse_period

__all__ = [
    "InvalidArgument",
    "ForecastConfig",
    "load_engine_tables",
    "DEFAULT_TABLES",
    "DepartmentMapping",
    "EngineTables",
    "MultipleRange",
    "MultipleTable",
    "SeasonalCurve",
    "StageWeightTable",
    "require_columns",
    "round_half_up",
    "datedif_months",
    "parse_period",
]
