"""
DataFrame -> engine records.

Record-store exports use their own field names (Amount, BillingCycle,
SignupDate, MRR, ...). canonicalize_columns maps them to the canonical
columns in core.schema; the *_from_frame builders then apply the record-store
fallbacks and construct the engine's input records.

Fallbacks:
- missing plan -> "standard", missing billing cycle -> "monthly"
- missing stage -> "lead"
- missing initial MRR -> current MRR
- signup date truncated to its "YYYY-MM" month
"""

from __future__ import annotations

import logging
from typing import Dict, List, NamedTuple, Optional

import pandas as pd

from analysis.cohorts import Customer
from core.schema import REQUIRED_COLUMNS
from core.utils import require_columns
from engine.cashflow import OneTimeCashEvent, RecurringCashEvent
from engine.pipeline import PipelineDeal
from engine.revenue import Subscription
from models.regression import MonthlyObservation

logger = logging.getLogger(__name__)


_COLUMN_ALIASES: Dict[str, str] = {
    # money
    "Amount": "amount",
    "Price": "amount",
    # subscriptions
    "BillingCycle": "billing_cycle",
    "Billing Cycle": "billing_cycle",
    "Plan": "plan",
    # pipeline
    "Stage": "stage",
    # customers
    "Status": "status",
    "SignupDate": "signup_date",
    "Signup Date": "signup_date",
    "CreatedAt": "signup_date",
    "InitialMRR": "initial_mrr",
    "Initial MRR": "initial_mrr",
    "ChurnDate": "churn_date",
    # history
    "Period": "period",
    # cash events
    "Direction": "direction",
    "Date": "trigger_date",
    "DueDate": "trigger_date",
    "DayOfMonth": "day_of_month",
    "Day Of Month": "day_of_month",
}

# Names whose meaning depends on the record kind.
_KIND_ALIASES: Dict[str, Dict[str, str]] = {
    "deals": {"Value": "amount"},
    "customers": {"MRR": "current_mrr", "MonthlyRevenue": "current_mrr"},
    "observations": {"MRR": "value", "Value": "value"},
}


def canonicalize_columns(df: pd.DataFrame, kind: Optional[str] = None) -> pd.DataFrame:
    """Return a copy with record-store aliases renamed and duplicates coalesced."""
    if df.empty and len(df.columns) == 0:
        return df.copy()

    aliases = dict(_COLUMN_ALIASES)
    if kind is not None:
        aliases.update(_KIND_ALIASES.get(kind, {}))

    out = df.rename(columns={c: aliases.get(c, c) for c in df.columns}).copy()

    # e.g. both "Amount" and "Price" present: first non-null wins
    if out.columns.duplicated().any():
        new_cols: List[str] = []
        parts: List[pd.Series] = []
        cols = list(out.columns)
        for name in dict.fromkeys(cols):
            idxs = [i for i, c in enumerate(cols) if c == name]
            s = out.iloc[:, idxs[0]]
            for j in idxs[1:]:
                s = s.combine_first(out.iloc[:, j])
            new_cols.append(name)
            parts.append(s)
        out = pd.concat(parts, axis=1)
        out.columns = new_cols

    return out


def _numeric(df: pd.DataFrame, col: str, default: float = 0.0) -> pd.Series:
    if col not in df.columns:
        return pd.Series(default, index=df.index, dtype=float)
    return pd.to_numeric(df[col], errors="coerce").fillna(default)


def _text(df: pd.DataFrame, col: str, default: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(default, index=df.index, dtype=object)
    s = df[col].astype("string").str.strip()
    return s.mask(s.isna() | (s == ""), default).astype(object)


def _optional_dates(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(pd.NaT, index=df.index)
    return pd.to_datetime(df[col], errors="coerce")


def subscriptions_from_frame(df: pd.DataFrame) -> List[Subscription]:
    d = canonicalize_columns(df, "subscriptions")
    require_columns(d, REQUIRED_COLUMNS["subscriptions"])

    amounts = _numeric(d, "amount")
    cycles = _text(d, "billing_cycle", "monthly").str.lower()
    plans = _text(d, "plan", "standard")

    return [
        Subscription(amount=float(a), billing_cycle=c, plan=p)
        for a, c, p in zip(amounts, cycles, plans)
    ]


def deals_from_frame(df: pd.DataFrame) -> List[PipelineDeal]:
    d = canonicalize_columns(df, "deals")
    require_columns(d, REQUIRED_COLUMNS["deals"])

    amounts = _numeric(d, "amount")
    stages = _text(d, "stage", "lead")
    return [PipelineDeal(stage=s, amount=float(a)) for s, a in zip(stages, amounts)]


def customers_from_frame(df: pd.DataFrame) -> List[Customer]:
    d = canonicalize_columns(df, "customers")
    require_columns(d, REQUIRED_COLUMNS["customers"])

    current = _numeric(d, "current_mrr")
    if "initial_mrr" in d.columns:
        initial = pd.to_numeric(d["initial_mrr"], errors="coerce").fillna(current)
    else:
        initial = current.copy()

    if "signup_period" in d.columns:
        periods = d["signup_period"].where(d["signup_period"].notna(), None)
    else:
        signup = _optional_dates(d, "signup_date")
        periods = signup.dt.strftime("%Y-%m").where(signup.notna(), None)

    statuses = _text(d, "status", "").str.lower()
    churn_dates = _optional_dates(d, "churn_date")

    customers = []
    for period, status, cur, ini, churned in zip(periods, statuses, current, initial, churn_dates):
        customers.append(Customer(
            signup_period=None if period is None or pd.isna(period) else str(period).strip(),
            status=status,
            current_mrr=float(cur),
            initial_mrr=float(ini),
            churn_date=None if pd.isna(churned) else churned.date(),
        ))
    return customers


def observations_from_frame(df: pd.DataFrame) -> List[MonthlyObservation]:
    """MRR history ordered by period label; period_index is the position (0, 1, ...)."""
    d = canonicalize_columns(df, "observations")
    require_columns(d, REQUIRED_COLUMNS["observations"])

    if "period" in d.columns:
        d = d.assign(_period=d["period"].astype("string").fillna(""))
        d = d.sort_values("_period", kind="mergesort")
    values = _numeric(d, "value")
    return [MonthlyObservation(period_index=i, value=float(v)) for i, v in enumerate(values)]


class CashEvents(NamedTuple):
    inflows: List[OneTimeCashEvent]
    outflows: List[OneTimeCashEvent]
    recurring: List[RecurringCashEvent]


def cash_events_from_frame(df: pd.DataFrame) -> CashEvents:
    """
    Split transaction rows into one-time inflows, one-time outflows and
    recurring events. A row with a day_of_month is recurring; otherwise it
    needs a trigger_date, and rows with neither are dropped with a warning.
    """
    d = canonicalize_columns(df, "cash_events")
    require_columns(d, REQUIRED_COLUMNS["cash_events"])

    amounts = _numeric(d, "amount")
    directions = _text(d, "direction", "outflow").str.lower()
    days = _numeric(d, "day_of_month", default=float("nan"))
    dates = _optional_dates(d, "trigger_date")

    events = CashEvents([], [], [])
    dropped = 0
    for amount, direction, day, when in zip(amounts, directions, days, dates):
        if not pd.isna(day):
            events.recurring.append(
                RecurringCashEvent(amount=float(amount), day_of_month=float(day), direction=direction)
            )
        elif not pd.isna(when):
            target = events.inflows if direction == "inflow" else events.outflows
            target.append(OneTimeCashEvent(amount=float(amount), trigger_date=when.date()))
        else:
            dropped += 1

    if dropped:
        logger.warning("Dropped %d cash event row(s) with neither a date nor a day of month", dropped)
    return events
