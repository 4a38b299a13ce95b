"""
Shared fixtures for the forecasting engine tests.
"""

import pandas as pd
import pytest

from analysis.cohorts import Customer
from engine.pipeline import PipelineDeal
from engine.revenue import Subscription
from models.regression import MonthlyObservation


@pytest.fixture
def as_of():
    """Fixed reference date; nothing in the engine reads the clock."""
    return pd.Timestamp("2024-03-15")


@pytest.fixture
def subscriptions():
    return [
        Subscription(amount=100.0, billing_cycle="monthly", plan="starter"),
        Subscription(amount=1200.0, billing_cycle="annual", plan="starter"),
        Subscription(amount=500.0, billing_cycle="monthly", plan="pro"),
    ]


@pytest.fixture
def deals():
    return [
        PipelineDeal(stage="Proposal", amount=10000.0),
        PipelineDeal(stage="negotiation", amount=20000.0),
        PipelineDeal(stage="verbal-commit", amount=5000.0),
        PipelineDeal(stage="lead", amount=8000.0),
    ]


@pytest.fixture
def customers():
    return [
        # 2024-01: one expanded, one contracted, one churned
        Customer("2024-01", "active", current_mrr=150.0, initial_mrr=100.0),
        Customer("2024-01", "active", current_mrr=80.0, initial_mrr=100.0),
        Customer("2024-01", "churned", current_mrr=0.0, initial_mrr=100.0,
                 churn_date="2024-03-01"),
        # 2024-02: flat
        Customer("2024-02", "active", current_mrr=200.0, initial_mrr=200.0),
        # no signup month
        Customer(None, "active", current_mrr=50.0, initial_mrr=50.0),
    ]


@pytest.fixture
def linear_history():
    """Perfect line y = 100x + 1000 over six months."""
    return [MonthlyObservation(period_index=i, value=1000.0 + 100.0 * i) for i in range(6)]
