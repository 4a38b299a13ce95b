"""
Data quality validation for record frames before they are turned into engine records.

Catches problems early:
- Missing required columns
- Negative amounts / MRR
- Dates and periods that don't parse
- Unknown billing cycles, directions or days of month
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

import pandas as pd

from core.schema import BILLING_CYCLES, CASH_DIRECTIONS, REQUIRED_COLUMNS

from .records import canonicalize_columns

_PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"


@dataclass
class ValidationResult:
    """Findings for one record frame. Errors block loading; warnings flag values read as defaults."""
    kind: str
    rows: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def summary(self) -> str:
        header = f"{self.kind} frame, {self.rows} rows"
        if self.is_valid and not self.warnings:
            return f"{header}: ready to load"
        lines = [f"{header}: {len(self.errors)} error(s), {len(self.warnings)} warning(s)"]
        lines.extend(f"  error: {e}" for e in self.errors)
        lines.extend(f"  warning: {w}" for w in self.warnings)
        return "\n".join(lines)


def _check_non_negative(df: pd.DataFrame, col: str, result: ValidationResult) -> None:
    if col not in df.columns:
        return
    vals = pd.to_numeric(df[col], errors="coerce")
    n_neg = int((vals < 0).sum())
    n_bad = int((vals.isna() & df[col].notna()).sum())
    if n_neg > 0:
        result.error(f"{n_neg} rows have negative {col}.")
    if n_bad > 0:
        result.warn(f"{n_bad} rows have unparseable {col} (treated as 0).")


def _check_dates(df: pd.DataFrame, col: str, result: ValidationResult) -> None:
    if col not in df.columns:
        return
    dts = pd.to_datetime(df[col], errors="coerce")
    n_bad = int((dts.isna() & df[col].notna()).sum())
    if n_bad > 0:
        result.warn(f"{n_bad} rows have unparseable {col}.")


def validate_frame(df: pd.DataFrame, kind: str) -> ValidationResult:
    """
    Run all checks for one record kind ("subscriptions", "deals", "customers",
    "observations", "cash_events"). Nothing is raised for bad data; errors are
    blocking for the *_from_frame builders, warnings are informational.
    """
    if kind not in REQUIRED_COLUMNS:
        raise ValueError(f"Unknown record kind {kind!r}; expected one of {sorted(REQUIRED_COLUMNS)}")

    d = canonicalize_columns(df, kind)
    result = ValidationResult(kind=kind, rows=len(d))

    # --- Schema checks ---
    missing = [c for c in REQUIRED_COLUMNS[kind] if c not in d.columns]
    if missing:
        result.error(f"Missing required columns: {missing}")
        return result

    if len(d) == 0:
        result.warn("Frame is empty (0 rows).")
        return result

    # --- Amounts ---
    for col in ("amount", "current_mrr", "initial_mrr"):
        _check_non_negative(d, col, result)

    # --- Subscriptions ---
    if kind == "subscriptions" and "billing_cycle" in d.columns:
        cycles = d["billing_cycle"].dropna().astype(str).str.strip().str.lower()
        unknown = sorted(set(cycles) - set(BILLING_CYCLES) - {""})
        if unknown:
            result.error(f"Unknown billing cycles: {unknown}")

    # --- Customers ---
    if kind == "customers":
        _check_dates(d, "signup_date", result)
        _check_dates(d, "churn_date", result)
        if "signup_period" in d.columns:
            labels = d["signup_period"].dropna().astype(str).str.strip()
            n_bad = int((~labels.str.match(_PERIOD_PATTERN)).sum())
            if n_bad > 0:
                result.error(f"{n_bad} rows have malformed signup_period (expected YYYY-MM).")
        if "signup_period" not in d.columns and "signup_date" not in d.columns:
            result.warn("No signup date column; all customers fall in the 'unknown' cohort.")

    # --- Observations ---
    if kind == "observations" and "period" in d.columns:
        n_dup = int(d["period"].dropna().duplicated().sum())
        if n_dup > 0:
            result.warn(f"{n_dup} duplicate periods found.")

    # --- Cash events ---
    if kind == "cash_events":
        directions = d["direction"].dropna().astype(str).str.strip().str.lower()
        unknown = sorted(set(directions) - set(CASH_DIRECTIONS))
        if unknown:
            result.error(f"Unknown cash directions: {unknown}")
        _check_dates(d, "trigger_date", result)
        if "day_of_month" in d.columns:
            days = pd.to_numeric(d["day_of_month"], errors="coerce").dropna()
            n_bad = int(((days < 1) | (days > 31) | (days != days.round())).sum())
            if n_bad > 0:
                result.error(f"{n_bad} rows have day_of_month outside 1..31.")

    return result
