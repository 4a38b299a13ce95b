"""
Tests for the daily cash ledger, window summaries, burn and runway.
"""

import math
from datetime import date

import pandas as pd
import pytest

from core.config import ForecastConfig
from core.errors import InvalidArgument
from engine.cashflow import (
    BurnRate,
    ExpenseItem,
    OneTimeCashEvent,
    RecurringCashEvent,
    burn_rate,
    cash_position,
    categorize_expenses,
    ledger_to_dataframe,
    runway,
    simulate,
    summarize,
)
from engine.runner import project_cash_from_config


# =============================================================================
# simulate
# =============================================================================

class TestSimulate:

    def test_one_time_and_recurring_events(self):
        ledger = simulate(
            1000.0,
            5,
            one_time_inflows=[OneTimeCashEvent(500.0, "2024-03-02")],
            one_time_outflows=[OneTimeCashEvent(200.0, "2024-03-03")],
            recurring_events=[RecurringCashEvent(100.0, day_of_month=4)],
            start_date="2024-03-01",
        )

        assert len(ledger) == 5
        assert [e.balance for e in ledger] == [1000.0, 1500.0, 1300.0, 1200.0, 1200.0]
        assert ledger[0].date == date(2024, 3, 1)
        assert ledger[0].day == 1
        assert ledger[3].outflow == 100.0
        assert ledger[1].net_flow == 500.0

    def test_recurring_inflow(self):
        ledger = simulate(
            0.0, 3,
            recurring_events=[RecurringCashEvent(250.0, day_of_month=2, direction="inflow")],
            start_date="2024-01-01",
        )
        assert [e.inflow for e in ledger] == [0.0, 250.0, 0.0]
        assert ledger[-1].balance == 250.0

    def test_same_day_events_summed(self):
        ledger = simulate(
            0.0, 1,
            one_time_inflows=[OneTimeCashEvent(10.0, "2024-01-01"), OneTimeCashEvent(15.0, "2024-01-01")],
            start_date="2024-01-01",
        )
        assert ledger[0].inflow == 25.0

    def test_day_31_does_not_fire_in_30_day_month(self):
        ledger = simulate(
            1000.0, 30,
            recurring_events=[RecurringCashEvent(100.0, day_of_month=31)],
            start_date="2024-04-01",
        )
        assert all(e.outflow == 0.0 for e in ledger)

    def test_recurring_fires_every_month(self):
        ledger = simulate(
            1000.0, 90,
            recurring_events=[RecurringCashEvent(100.0, day_of_month=15)],
            start_date="2024-01-01",
        )
        fired = [e.date for e in ledger if e.outflow > 0]
        assert fired == [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)]
        assert ledger[-1].balance == 700.0

    def test_zero_days(self):
        assert simulate(1000.0, 0, start_date="2024-01-01") == []

    def test_negative_days_rejected(self):
        with pytest.raises(InvalidArgument):
            simulate(1000.0, -1, start_date="2024-01-01")

    def test_invalid_recurring_event(self):
        with pytest.raises(InvalidArgument):
            RecurringCashEvent(10.0, day_of_month=0)
        with pytest.raises(InvalidArgument):
            RecurringCashEvent(10.0, day_of_month=32)
        with pytest.raises(InvalidArgument, match="direction"):
            RecurringCashEvent(10.0, day_of_month=1, direction="sideways")

    def test_fractional_day_of_month_rejected(self):
        with pytest.raises(InvalidArgument, match="whole number"):
            RecurringCashEvent(100.0, day_of_month=15.5)

    def test_whole_float_day_of_month_stored_as_int(self):
        event = RecurringCashEvent(100.0, day_of_month=15.0)
        assert event.day_of_month == 15
        assert isinstance(event.day_of_month, int)

    def test_no_events_conserves_balance(self):
        ledger = simulate(1234.56, 120, start_date="2024-01-01")
        assert len(ledger) == 120
        assert all(e.balance == 1234.56 for e in ledger)
        assert all(e.net_flow == 0.0 for e in ledger)

    def test_balance_rounded_daily(self):
        # sub-cent inflows are lost each day instead of accumulating to 0.01
        ledger = simulate(
            0.0, 3,
            recurring_events=[
                RecurringCashEvent(0.004, day_of_month=d, direction="inflow") for d in (1, 2, 3)
            ],
            start_date="2024-01-01",
        )
        assert [e.balance for e in ledger] == [0.0, 0.0, 0.0]

    def test_ledger_dataframe(self):
        df = ledger_to_dataframe(simulate(10.0, 3, start_date="2024-01-01"))
        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["date", "day", "inflow", "outflow", "net_flow", "balance"]
        assert len(df) == 3

    def test_entry_to_dict(self):
        d = simulate(10.0, 1, start_date="2024-01-01")[0].to_dict()
        assert d["date"] == "2024-01-01"
        assert d["netCashFlow"] == 0.0


# =============================================================================
# summarize
# =============================================================================

class TestSummarize:

    def test_windows_skipped_when_ledger_short(self):
        ledger = simulate(1000.0, 45, start_date="2024-01-01")
        assert list(summarize(ledger)) == ["30day"]

    def test_all_windows(self):
        ledger = simulate(1000.0, 90, start_date="2024-01-01")
        assert list(summarize(ledger)) == ["30day", "60day", "90day"]

    def test_lowest_balance_tie_takes_first_date(self):
        ledger = simulate(1000.0, 30, start_date="2024-01-01")
        window = summarize(ledger)["30day"]
        assert window.lowest_balance == 1000.0
        assert window.lowest_balance_date == date(2024, 1, 1)
        assert window.is_negative is False

    def test_dip_below_zero(self):
        ledger = simulate(
            100.0, 30,
            one_time_inflows=[OneTimeCashEvent(500.0, "2024-01-20")],
            one_time_outflows=[OneTimeCashEvent(300.0, "2024-01-10")],
            start_date="2024-01-01",
        )
        window = summarize(ledger)["30day"]

        assert window.total_inflows == 500.0
        assert window.total_outflows == 300.0
        assert window.net_cash_flow == 200.0
        assert window.ending_balance == 300.0
        assert window.lowest_balance == -200.0
        assert window.lowest_balance_date == date(2024, 1, 10)
        assert window.is_negative is True
        assert window.to_dict()["lowestBalanceDate"] == "2024-01-10"

    def test_custom_windows(self):
        ledger = simulate(1000.0, 10, start_date="2024-01-01")
        assert list(summarize(ledger, windows=(7, 14))) == ["7day"]

    def test_zero_window_rejected(self):
        ledger = simulate(1000.0, 10, start_date="2024-01-01")
        with pytest.raises(InvalidArgument, match="at least one day"):
            summarize(ledger, windows=(0,))

    def test_fractional_window_rejected(self):
        ledger = simulate(1000.0, 10, start_date="2024-01-01")
        with pytest.raises(InvalidArgument):
            summarize(ledger, windows=(7.5,))


class TestProjectCashFromConfig:

    def test_uses_config_days_and_windows(self):
        config = ForecastConfig(
            as_of_date=pd.Timestamp("2024-03-15 09:30"),
            projection_days=45,
            summary_windows=(7, 30, 60),
        )
        projection = project_cash_from_config(
            5000.0, config,
            recurring_events=[RecurringCashEvent(1000.0, day_of_month=1)],
        )

        assert len(projection.ledger) == 45
        assert projection.ledger[0].date == date(2024, 3, 15)
        assert list(projection.summaries) == ["7day", "30day"]
        assert projection.summaries["30day"].ending_balance == 4000.0
        assert projection.summaries["30day"].lowest_balance_date == date(2024, 4, 1)

    def test_default_config_covers_ninety_days(self):
        config = ForecastConfig(as_of_date=pd.Timestamp("2024-01-01"))
        projection = project_cash_from_config(100.0, config)
        assert len(projection.ledger) == 90
        assert list(projection.summaries) == ["30day", "60day", "90day"]

# =============================================================================
# burn rate / runway
# =============================================================================

class TestBurnAndRunway:

    def test_burn_rate(self):
        burn = burn_rate([5000.0, 3000.0], [2000.0])
        assert burn.gross_burn == 8000.0
        assert burn.revenue == 2000.0
        assert burn.net_burn == 6000.0
        assert burn.is_profitable is False

    def test_burn_rate_profitable(self):
        assert burn_rate([1000.0], [1500.0]).is_profitable is True

    def test_runway_twelve_months_is_moderate(self, as_of):
        burn = BurnRate(gross_burn=15000.0, revenue=5000.0, net_burn=10000.0, is_profitable=False)
        result = runway(120000.0, burn, as_of_date=as_of)

        assert result.months == 12.0
        assert result.status == "moderate"
        assert result.message == "12 months of runway at current burn rate"
        assert result.cash_out_date == date(2025, 3, 15)

    @pytest.mark.parametrize(
        "cash, status",
        [(50000.0, "critical"), (100000.0, "warning"), (170000.0, "moderate"), (180000.0, "healthy")],
    )
    def test_runway_status_thresholds(self, as_of, cash, status):
        burn = BurnRate(gross_burn=10000.0, revenue=0.0, net_burn=10000.0, is_profitable=False)
        assert runway(cash, burn, as_of_date=as_of).status == status

    def test_fractional_runway(self, as_of):
        burn = BurnRate(gross_burn=10000.0, revenue=0.0, net_burn=10000.0, is_profitable=False)
        result = runway(25000.0, burn, as_of_date=as_of)
        assert result.months == 2.5
        assert result.message.startswith("2.5 months")
        assert result.cash_out_date == date(2024, 5, 15)

    def test_runway_beyond_calendar_has_no_cash_out_date(self, as_of):
        burn = BurnRate(gross_burn=0.01, revenue=0.0, net_burn=0.01, is_profitable=False)
        result = runway(5000.0, burn, as_of_date=as_of)
        assert result.months == 500000.0
        assert result.status == "healthy"
        assert result.cash_out_date is None
        assert "cashOutDate" not in result.to_dict()

    def test_runway_bad_as_of_date_still_raises(self):
        burn = BurnRate(gross_burn=10.0, revenue=0.0, net_burn=10.0, is_profitable=False)
        with pytest.raises(ValueError):
            runway(100.0, burn, as_of_date="not a date")

    def test_profitable_runway_is_infinite(self, as_of):
        burn = burn_rate([1000.0], [2000.0])
        result = runway(0.0, burn, as_of_date=as_of)
        assert math.isinf(result.months)
        assert result.status == "profitable"
        assert result.cash_out_date is None
        assert "cashOutDate" not in result.to_dict()


# =============================================================================
# cash position / expense categories
# =============================================================================

class TestCashPosition:

    def test_position(self):
        pos = cash_position(10000.0, 5000.0, 3000.0, [1000.0, 500.0], [200.0])
        assert pos.net_working_capital == 12000.0
        assert pos.pending_inflows == 1500.0
        assert pos.pending_outflows == 200.0


class TestCategorizeExpenses:

    def test_keyword_buckets(self):
        items = [
            ExpenseItem(3000.0, "Rent"),
            ExpenseItem(12000.0, "Salaries"),
            ExpenseItem(400.0, "Cloud Hosting"),
            ExpenseItem(150.0, "API usage"),
            ExpenseItem(80.0, "Team lunch"),
            ExpenseItem(20.0),
        ]
        cats = categorize_expenses(items)

        assert cats["fixed"].total == 15000.0
        assert cats["variable"].total == 550.0
        assert cats["discretionary"].total == 100.0
        assert len(cats["discretionary"].items) == 2
