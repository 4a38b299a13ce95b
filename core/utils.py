from __future__ import annotations

import math
import re
from datetime import date
from typing import Iterable, Optional

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from .errors import InvalidArgument

_PERIOD_RE = re.compile(r"^(\d{4})-(\d{2})$")


def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")


def round_half_up(x, decimals: int = 2):
    """Half away from zero, like spreadsheet ROUND (vectorized for arrays)."""
    m = 10 ** decimals
    if np.ndim(x) == 0:
        x = float(x)
        if math.isinf(x) or math.isnan(x):
            return x
        return math.copysign(math.floor(abs(x) * m + 0.5) / m, x) + 0.0
    x = np.asarray(x, dtype=float)
    return np.sign(x) * (np.floor(np.abs(x) * m + 0.5) / m)


def money(x) -> float:
    return float(round_half_up(x, 2))


def require_non_negative(value: float, name: str) -> float:
    value = float(value)
    if math.isnan(value) or value < 0:
        raise InvalidArgument(f"{name} must be >= 0, got {value!r}")
    return value


def require_count(value: int, name: str) -> int:
    if isinstance(value, bool) or int(value) != value:
        raise InvalidArgument(f"{name} must be a whole number, got {value!r}")
    if value < 0:
        raise InvalidArgument(f"{name} must be >= 0, got {value!r}")
    return int(value)


def parse_period(label: str) -> pd.Timestamp:
    """Parse a 'YYYY-MM' cohort/period label to its month-start Timestamp."""
    m = _PERIOD_RE.match(str(label).strip())
    if m is None or not 1 <= int(m.group(2)) <= 12:
        raise InvalidArgument(f"Malformed period {label!r}; expected 'YYYY-MM'")
    return pd.Timestamp(year=int(m.group(1)), month=int(m.group(2)), day=1)


def to_date(value) -> date:
    """Coerce a date-like value (str, date, Timestamp) to a datetime.date."""
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise InvalidArgument(f"Unparseable date {value!r}")
    return ts.date()


def datedif_months(start, end) -> Optional[int]:
    """DATEDIF(start, end, "m"): complete calendar months between two dates."""
    if pd.isna(start) or pd.isna(end):
        return None
    s = pd.Timestamp(start)
    e = pd.Timestamp(end)
    months = (e.year - s.year) * 12 + (e.month - s.month)
    if e.day < s.day:
        months -= 1
    return int(months)


def add_months(start, n_months: int) -> date:
    return to_date(start) + relativedelta(months=int(n_months))


def calendar_month_sequence(start_month: int, n: int) -> list:
    """Calendar months (1..12) for n consecutive periods starting at start_month."""
    return [((start_month + i - 1) % 12) + 1 for i in range(n)]
