"""
Daily cash ledger simulation, burn rate and runway.

Key design principles:
  1. The simulation is a fold over a fixed run of calendar days starting at the
     caller's start date; nothing reads the system clock.
  2. One-time events fire on an exact date match; recurring events fire on a
     day-of-month match (a day 31 event does not fire in 30-day months).
  3. The running balance is rounded to 2 decimals after every day, so small
     rounding drift over long horizons is expected.
  4. Window summaries (30/60/90 days) are prefixes of the ledger and are
     skipped when the ledger is shorter than the window.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from core.errors import InvalidArgument
from core.schema import CASH_DIRECTIONS
from core.utils import add_months, money, require_count, round_half_up, to_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OneTimeCashEvent:
    amount: float
    trigger_date: date

    def __post_init__(self):
        object.__setattr__(self, "trigger_date", to_date(self.trigger_date))


@dataclass(frozen=True)
class RecurringCashEvent:
    amount: float
    day_of_month: int
    direction: str = "outflow"

    def __post_init__(self):
        day = require_count(self.day_of_month, "day_of_month")
        if not 1 <= day <= 31:
            raise InvalidArgument(f"day_of_month must be 1..31, got {self.day_of_month}")
        object.__setattr__(self, "day_of_month", day)
        if self.direction not in CASH_DIRECTIONS:
            raise InvalidArgument(
                f"Unknown direction {self.direction!r}; expected one of {CASH_DIRECTIONS}"
            )


@dataclass(frozen=True)
class DailyCashEntry:
    date: date
    day: int
    inflow: float
    outflow: float
    net_flow: float
    balance: float

    def to_dict(self) -> Dict:
        return {
            "date": self.date.isoformat(),
            "day": self.day,
            "inflows": self.inflow,
            "outflows": self.outflow,
            "netCashFlow": self.net_flow,
            "balance": self.balance,
        }


def _sum_by_date(events: Iterable[OneTimeCashEvent]) -> Dict[date, float]:
    totals: Dict[date, float] = defaultdict(float)
    for e in events:
        totals[e.trigger_date] += e.amount
    return totals


def simulate(
    starting_balance: float,
    days: int,
    one_time_inflows: Iterable[OneTimeCashEvent] = (),
    one_time_outflows: Iterable[OneTimeCashEvent] = (),
    recurring_events: Iterable[RecurringCashEvent] = (),
    *,
    start_date,
) -> List[DailyCashEntry]:
    """
    Simulate the cash balance day by day for `days` days from start_date (day 1).

    Returns one DailyCashEntry per simulated day.
    """
    days = require_count(days, "days")
    inflows_by_date = _sum_by_date(one_time_inflows)
    outflows_by_date = _sum_by_date(one_time_outflows)
    recurring = list(recurring_events)

    recurring_in: Dict[int, float] = defaultdict(float)
    recurring_out: Dict[int, float] = defaultdict(float)
    for item in recurring:
        if item.direction == "inflow":
            recurring_in[item.day_of_month] += item.amount
        else:
            recurring_out[item.day_of_month] += item.amount

    calendar = pd.date_range(pd.Timestamp(to_date(start_date)), periods=days, freq="D")

    ledger: List[DailyCashEntry] = []
    balance = float(starting_balance)
    for i, ts in enumerate(calendar):
        d = ts.date()
        inflow = inflows_by_date.get(d, 0.0) + recurring_in.get(d.day, 0.0)
        outflow = outflows_by_date.get(d, 0.0) + recurring_out.get(d.day, 0.0)

        balance = money(balance + inflow - outflow)
        ledger.append(DailyCashEntry(
            date=d,
            day=i + 1,
            inflow=money(inflow),
            outflow=money(outflow),
            net_flow=money(inflow - outflow),
            balance=balance,
        ))

    logger.debug(
        "Simulated %d days: %d recurring events, ending balance %.2f",
        days, len(recurring), balance,
    )
    return ledger


def ledger_to_dataframe(entries: Sequence[DailyCashEntry]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "date": e.date,
                "day": e.day,
                "inflow": e.inflow,
                "outflow": e.outflow,
                "net_flow": e.net_flow,
                "balance": e.balance,
            }
            for e in entries
        ],
        columns=["date", "day", "inflow", "outflow", "net_flow", "balance"],
    )


@dataclass(frozen=True)
class CashWindowSummary:
    period: str
    total_inflows: float
    total_outflows: float
    net_cash_flow: float
    ending_balance: float
    lowest_balance: float
    lowest_balance_date: date
    is_negative: bool

    def to_dict(self) -> Dict:
        return {
            "period": self.period,
            "totalInflows": self.total_inflows,
            "totalOutflows": self.total_outflows,
            "netCashFlow": self.net_cash_flow,
            "endingBalance": self.ending_balance,
            "lowestBalance": self.lowest_balance,
            "lowestBalanceDate": self.lowest_balance_date.isoformat(),
            "isNegative": self.is_negative,
        }


def summarize(
    entries: Sequence[DailyCashEntry],
    *,
    windows: Tuple[int, ...] = (30, 60, 90),
) -> Dict[str, CashWindowSummary]:
    """30/60/90-day prefix summaries of a simulated ledger, keyed "30day" etc."""
    frame = ledger_to_dataframe(entries)
    summaries: Dict[str, CashWindowSummary] = {}

    for window in windows:
        window = require_count(window, "window")
        if window == 0:
            raise InvalidArgument("summary window must be at least one day")
        if len(frame) < window:
            continue
        part = frame.iloc[:window]
        total_in = float(part["inflow"].sum())
        total_out = float(part["outflow"].sum())
        # idxmin returns the first occurrence on ties
        low_idx = part["balance"].idxmin()
        lowest = float(part.loc[low_idx, "balance"])

        summaries[f"{window}day"] = CashWindowSummary(
            period=f"{window} days",
            total_inflows=money(total_in),
            total_outflows=money(total_out),
            net_cash_flow=money(total_in - total_out),
            ending_balance=money(part["balance"].iloc[-1]),
            lowest_balance=money(lowest),
            lowest_balance_date=part.loc[low_idx, "date"],
            is_negative=lowest < 0,
        )

    return summaries


@dataclass(frozen=True)
class BurnRate:
    gross_burn: float
    revenue: float
    net_burn: float
    is_profitable: bool

    def to_dict(self) -> Dict:
        return {
            "grossBurn": self.gross_burn,
            "revenue": self.revenue,
            "netBurn": self.net_burn,
            "isProfitable": self.is_profitable,
        }


def burn_rate(
    monthly_expenses: Iterable[float],
    monthly_revenue: Iterable[float],
) -> BurnRate:
    gross = float(sum(monthly_expenses))
    revenue = float(sum(monthly_revenue))
    net = gross - revenue
    return BurnRate(
        gross_burn=money(gross),
        revenue=money(revenue),
        net_burn=money(net),
        is_profitable=net <= 0,
    )


@dataclass(frozen=True)
class Runway:
    months: float
    status: str
    message: str
    cash_out_date: Optional[date] = None

    def to_dict(self) -> Dict:
        out = {"months": self.months, "status": self.status, "message": self.message}
        if self.cash_out_date is not None:
            out["cashOutDate"] = self.cash_out_date.isoformat()
        return out


def _runway_status(months: float) -> str:
    if months < 6:
        return "critical"
    if months < 12:
        return "warning"
    if months < 18:
        return "moderate"
    return "healthy"


def _format_months(months: float) -> str:
    return f"{months:.1f}".rstrip("0").rstrip(".")


def runway(cash_balance: float, burn: BurnRate, *, as_of_date) -> Runway:
    """Months of cash left at the current net burn, with status and cash-out date."""
    if burn.net_burn <= 0:
        return Runway(
            months=math.inf,
            status="profitable",
            message="Company is cash-flow positive - infinite runway",
        )

    raw_months = cash_balance / burn.net_burn
    months = float(round_half_up(raw_months, 1))
    start = to_date(as_of_date)
    try:
        cash_out = add_months(start, math.floor(raw_months))
    except (OverflowError, ValueError):
        # past date.max; the runway is still reported in months
        cash_out = None
    return Runway(
        months=months,
        status=_runway_status(raw_months),
        message=f"{_format_months(months)} months of runway at current burn rate",
        cash_out_date=cash_out,
    )


@dataclass(frozen=True)
class CashPosition:
    bank_balance: float
    accounts_receivable: float
    accounts_payable: float
    net_working_capital: float
    pending_inflows: float
    pending_outflows: float


def cash_position(
    bank_balance: float,
    accounts_receivable: float,
    accounts_payable: float,
    pending_invoices: Iterable[float] = (),
    upcoming_expenses: Iterable[float] = (),
) -> CashPosition:
    return CashPosition(
        bank_balance=money(bank_balance),
        accounts_receivable=money(accounts_receivable),
        accounts_payable=money(accounts_payable),
        net_working_capital=money(bank_balance + accounts_receivable - accounts_payable),
        pending_inflows=money(sum(pending_invoices)),
        pending_outflows=money(sum(upcoming_expenses)),
    )


@dataclass(frozen=True)
class ExpenseItem:
    amount: float
    category: str = ""
    description: str = ""


@dataclass
class ExpenseCategory:
    items: List[ExpenseItem] = field(default_factory=list)
    total: float = 0.0


FIXED_EXPENSE_KEYWORDS = ("rent", "salaries", "insurance", "subscriptions", "loan")
VARIABLE_EXPENSE_KEYWORDS = ("api", "hosting", "infrastructure", "freelancer", "cloud")


def categorize_expenses(expenses: Iterable[ExpenseItem]) -> Dict[str, ExpenseCategory]:
    """Split expenses into fixed / variable / discretionary by category keyword."""
    categories = {
        "fixed": ExpenseCategory(),
        "variable": ExpenseCategory(),
        "discretionary": ExpenseCategory(),
    }
    for exp in expenses:
        cat = exp.category.lower()
        if any(k in cat for k in FIXED_EXPENSE_KEYWORDS):
            bucket = categories["fixed"]
        elif any(k in cat for k in VARIABLE_EXPENSE_KEYWORDS):
            bucket = categories["variable"]
        else:
            bucket = categories["discretionary"]
        bucket.items.append(exp)
        bucket.total += exp.amount

    for bucket in categories.values():
        bucket.total = money(bucket.total)
    return categories
