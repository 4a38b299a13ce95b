"""
Tests for recurring-revenue math, seasonality and forward projection.
"""

import math

import pandas as pd
import pytest

from behaviors.base import AssumptionSet
from behaviors.seasonal import SeasonalAdjuster
from core.errors import InvalidArgument
from core.tables import SeasonalCurve
from engine.revenue import (
    NRRInputs,
    Subscription,
    apply_seasonal_factors,
    compute_mrr,
    growth_rate,
    net_revenue_retention,
    project_forward,
    projections_to_dataframe,
)


# =============================================================================
# MRR / ARR
# =============================================================================

class TestComputeMRR:

    def test_mixed_billing_cycles(self, subscriptions):
        summary = compute_mrr(subscriptions)

        assert summary.mrr == 700.0
        assert summary.arr == 8400.0
        assert summary.per_plan_breakdown == {"starter": 200.0, "pro": 500.0}
        assert summary.customer_count == 3
        assert summary.avg_per_customer == 233.33

    def test_empty(self):
        summary = compute_mrr([])
        assert summary.mrr == 0.0
        assert summary.arr == 0.0
        assert summary.customer_count == 0
        assert summary.avg_per_customer == 0.0

    def test_default_plan(self):
        summary = compute_mrr([Subscription(amount=50.0)])
        assert summary.per_plan_breakdown == {"standard": 50.0}

    def test_unknown_billing_cycle_rejected(self):
        with pytest.raises(InvalidArgument, match="billing cycle"):
            Subscription(amount=10.0, billing_cycle="weekly")

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidArgument):
            Subscription(amount=-1.0)

    def test_to_dict_keys(self, subscriptions):
        d = compute_mrr(subscriptions).to_dict()
        assert set(d) == {"mrr", "arr", "breakdown", "customerCount", "avgMRRPerCustomer"}


# =============================================================================
# Growth and retention
# =============================================================================

class TestGrowthAndRetention:

    def test_growth_rate(self):
        assert growth_rate(110.0, 100.0) == 10.0
        assert growth_rate(90.0, 100.0) == -10.0

    def test_growth_rate_from_zero(self):
        assert growth_rate(5.0, 0.0) == 100.0
        assert growth_rate(0.0, 0.0) == 0.0

    def test_nrr(self):
        data = NRRInputs(beginning_mrr=1000.0, expansion_mrr=100.0,
                         contraction_mrr=50.0, churned_mrr=50.0)
        assert net_revenue_retention(data) == 100.0

    def test_nrr_with_net_expansion(self):
        data = NRRInputs(beginning_mrr=1000.0, expansion_mrr=250.0, churned_mrr=100.0)
        assert net_revenue_retention(data) == 115.0

    def test_nrr_zero_beginning(self):
        assert net_revenue_retention(NRRInputs(beginning_mrr=0.0, expansion_mrr=10.0)) == 0.0


# =============================================================================
# Seasonality
# =============================================================================

class TestSeasonalAdjuster:

    def test_default_factors(self):
        adj = SeasonalAdjuster()
        assert adj.factor(1) == 1.15
        assert adj.factor(8) == 0.95
        assert adj.factor(12) == 0.85

    def test_out_of_range_month_is_neutral(self):
        adj = SeasonalAdjuster()
        assert adj.factor(0) == 1.0
        assert adj.factor(13) == 1.0

    def test_apply_rounds(self):
        assert SeasonalAdjuster().apply(11, 1000.555) == 880.49

    def test_custom_curve(self):
        adj = SeasonalAdjuster(SeasonalCurve(factors={6: 2.0}))
        assert adj.apply(6, 10.0) == 20.0
        assert adj.apply(7, 10.0) == 10.0


# =============================================================================
# project_forward
# =============================================================================

class TestProjectForward:

    def test_simultaneous_update(self):
        assumptions = AssumptionSet(
            monthly_growth_rate=0.05, monthly_churn_rate=0.03,
            expansion_rate=0.02, new_customer_mrr=0.0,
        )
        months = project_forward(1000.0, 2, assumptions)

        # every delta is taken from the start-of-month MRR: 1000 * (1 - .03 + .02 + .05)
        assert months[0].mrr == 1040.0
        assert months[0].churn_loss == 30.0
        assert months[0].expansion == 20.0
        assert months[0].organic_growth == 50.0
        assert months[1].mrr == 1081.6
        assert months[1].arr == pytest.approx(12979.2)

    def test_new_customer_mrr_added_flat(self):
        assumptions = AssumptionSet(0.0, 0.0, 0.0, new_customer_mrr=100.0)
        months = project_forward(0.0, 3, assumptions)
        assert [m.mrr for m in months] == [100.0, 200.0, 300.0]
        assert all(m.new_revenue == 100.0 for m in months)

    def test_zero_months(self):
        assert project_forward(1000.0, 0, AssumptionSet()) == []

    def test_negative_months_rejected(self):
        with pytest.raises(InvalidArgument):
            project_forward(1000.0, -1, AssumptionSet())

    def test_negative_starting_mrr_rejected(self):
        with pytest.raises(InvalidArgument):
            project_forward(-1.0, 3, AssumptionSet())

    def test_dataframe(self):
        df = projections_to_dataframe(project_forward(1000.0, 4, AssumptionSet()))
        assert isinstance(df, pd.DataFrame)
        assert list(df["month"]) == [1, 2, 3, 4]
        assert "churnLoss" in df.columns


class TestApplySeasonalFactors:

    def test_wraps_at_december(self):
        flat = project_forward(1000.0, 3, AssumptionSet(0.0, 0.0, 0.0, 0.0))
        adjusted = apply_seasonal_factors(flat, start_month=11)

        assert [m.calendar_month for m in adjusted] == [11, 12, 1]
        assert [m.seasonal_factor for m in adjusted] == [0.88, 0.85, 1.15]
        assert [m.mrr for m in adjusted] == [880.0, 850.0, 1150.0]
        assert all(m.unadjusted_mrr == 1000.0 for m in adjusted)

    def test_arr_left_unadjusted(self):
        flat = project_forward(1000.0, 1, AssumptionSet(0.0, 0.0, 0.0, 0.0))
        adjusted = apply_seasonal_factors(flat, start_month=1)
        assert adjusted[0].arr == 12000.0

    def test_input_not_mutated(self):
        flat = project_forward(1000.0, 2, AssumptionSet(0.0, 0.0, 0.0, 0.0))
        apply_seasonal_factors(flat, start_month=1)
        assert flat[0].mrr == 1000.0
        assert flat[0].calendar_month is None

    def test_invalid_start_month(self):
        with pytest.raises(InvalidArgument):
            apply_seasonal_factors([], start_month=13)

    def test_to_dict_includes_seasonal_fields(self):
        flat = project_forward(1000.0, 1, AssumptionSet(0.0, 0.0, 0.0, 0.0))
        d = apply_seasonal_factors(flat, start_month=3)[0].to_dict()
        assert d["seasonalMonth"] == 3
        assert d["unadjustedMRR"] == 1000.0
        assert math.isclose(d["seasonalFactor"], 1.10)
