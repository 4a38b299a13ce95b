"""
Data preparation — loading record-store exports, mapping them to engine records, validation.
"""

from .loader import load_records_csv
from .records import (
    CashEvents,
    canonicalize_columns,
    cash_events_from_frame,
    customers_from_frame,
    deals_from_frame,
    observations_from_frame,
    subscriptions_from_frame,
)
from .validators import ValidationResult, validate_frame

__all__ = [
    "load_records_csv",
    "CashEvents",
    "canonicalize_columns",
    "cash_events_from_frame",
    "customers_from_frame",
    "deals_from_frame",
    "observations_from_frame",
    "subscriptions_from_frame",
    "ValidationResult",
    "validate_frame",
]
