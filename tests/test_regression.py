"""
Tests for the linear trend model and forecast accuracy tracking.
"""

import pytest

from core.errors import InvalidArgument
from models.accuracy import ActualPoint, ForecastPoint, accuracy
from models.regression import (
    MonthlyObservation,
    RegressionModel,
    ZERO_MODEL,
    fit,
    predict,
    predict_ahead,
)


def _obs(*values):
    return [MonthlyObservation(period_index=i, value=v) for i, v in enumerate(values)]


# =============================================================================
# fit
# =============================================================================

class TestFit:

    def test_perfect_line(self, linear_history):
        model = fit(linear_history)
        assert model.slope == pytest.approx(100.0)
        assert model.intercept == pytest.approx(1000.0)
        assert model.r_squared == pytest.approx(1.0)
        assert model.n_points == 6

    def test_fewer_than_two_points_is_zero_model(self):
        assert fit([]) == ZERO_MODEL
        assert fit(_obs(500.0)) == ZERO_MODEL

    def test_constant_series_has_zero_r_squared(self):
        model = fit(_obs(700.0, 700.0, 700.0))
        assert model.slope == pytest.approx(0.0)
        assert model.intercept == pytest.approx(700.0)
        assert model.r_squared == 0.0

    def test_noisy_series_r_squared_between_zero_and_one(self):
        model = fit(_obs(100.0, 130.0, 110.0, 160.0, 150.0))
        assert 0.0 < model.r_squared < 1.0
        assert model.slope > 0

    def test_fit_is_deterministic(self):
        history = _obs(100.0, 130.0, 110.0, 160.0, 150.0, 175.0)
        first = fit(history)
        assert all(fit(history) == first for _ in range(5))
        assert fit(list(history)).to_dict() == first.to_dict()

    def test_predict_ahead_is_deterministic(self, linear_history):
        assert predict_ahead(linear_history, 6) == predict_ahead(linear_history, 6)

    def test_out_of_order_observations_rejected(self):
        points = [MonthlyObservation(1, 10.0), MonthlyObservation(0, 20.0)]
        with pytest.raises(InvalidArgument, match="ascending"):
            fit(points)

    def test_duplicate_period_index_rejected(self):
        points = [MonthlyObservation(0, 10.0), MonthlyObservation(0, 20.0)]
        with pytest.raises(InvalidArgument):
            fit(points)

    def test_to_dict_rounds(self):
        model = RegressionModel(slope=1.23456, intercept=9.87654, r_squared=0.123456, n_points=3)
        assert model.to_dict() == {"slope": 1.23, "intercept": 9.88, "rSquared": 0.1235}


# =============================================================================
# predict / predict_ahead
# =============================================================================

class TestPredict:

    def test_predict_on_line(self):
        model = RegressionModel(slope=2.0, intercept=10.0, r_squared=1.0, n_points=2)
        assert predict(model, 5) == pytest.approx(20.0)

    def test_predict_floors_at_zero(self):
        model = RegressionModel(slope=-100.0, intercept=50.0, r_squared=1.0, n_points=2)
        assert predict(model, 10) == 0.0

    def test_predict_ahead_continues_after_last_index(self, linear_history):
        result = predict_ahead(linear_history, 3)
        assert [p.month for p in result.predictions] == [1, 2, 3]
        # last index is 5, so the next points are x = 6, 7, 8
        assert [p.mrr for p in result.predictions] == [1600.0, 1700.0, 1800.0]
        assert all(p.method == "linear_regression" for p in result.predictions)
        assert result.confidence == pytest.approx(1.0)

    def test_predict_ahead_without_history(self):
        result = predict_ahead([], 2)
        assert [p.mrr for p in result.predictions] == [0.0, 0.0]
        assert result.model == ZERO_MODEL

    def test_predict_ahead_negative_months_rejected(self, linear_history):
        with pytest.raises(InvalidArgument):
            predict_ahead(linear_history, -1)


# =============================================================================
# accuracy
# =============================================================================

class TestAccuracy:

    def test_basic_metrics(self):
        forecasts = [ForecastPoint("2024-01", 90.0), ForecastPoint("2024-02", 220.0)]
        actuals = [ActualPoint("2024-01", 100.0), ActualPoint("2024-02", 200.0)]

        report = accuracy(forecasts, actuals)

        assert report.matched_count == 2
        assert report.mape == pytest.approx(10.0)
        # errors 10 and -20 -> sqrt((100 + 400) / 2)
        assert report.rmse == pytest.approx(15.81)
        assert report.accuracy_score == pytest.approx(90.0)
        assert [e.percent_error for e in report.per_period_error] == [10.0, 10.0]

    def test_unmatched_and_zero_actual_periods_skipped(self):
        forecasts = [
            ForecastPoint("2024-01", 100.0),
            ForecastPoint("2024-02", 50.0),
            ForecastPoint("2024-03", 80.0),
        ]
        actuals = [ActualPoint("2024-01", 100.0), ActualPoint("2024-02", 0.0)]

        report = accuracy(forecasts, actuals)

        assert report.matched_count == 1
        assert report.mape == 0.0
        assert report.accuracy_score == 100.0

    def test_no_matches_gives_zero_report(self):
        report = accuracy([ForecastPoint("2024-01", 1.0)], [])
        assert report.matched_count == 0
        assert report.mape == 0.0
        assert report.rmse == 0.0
        assert report.accuracy_score == 0.0
        assert report.per_period_error == []

    def test_accuracy_score_floored_at_zero(self):
        report = accuracy([ForecastPoint("p", 500.0)], [ActualPoint("p", 100.0)])
        assert report.mape == pytest.approx(400.0)
        assert report.accuracy_score == 0.0

    def test_first_actual_wins_on_duplicate_periods(self):
        report = accuracy(
            [ForecastPoint("p", 100.0)],
            [ActualPoint("p", 100.0), ActualPoint("p", 50.0)],
        )
        assert report.mape == 0.0
