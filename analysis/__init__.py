"""
Customer analytics — signup cohorts, retention inputs, unit economics, P&L, break-even.
"""

from .cohorts import CohortStats, Customer, analyze
from .metrics import (
    BreakEven,
    DepartmentCost,
    GrowthSummary,
    Invoice,
    ProfitAndLoss,
    RevenueMix,
    UnitEconomics,
    allocate_department_costs,
    break_even,
    break_even_from_pnl,
    growth_metrics_summary,
    profit_and_loss,
    retention_inputs_from_customers,
    unit_economics,
)

__all__ = [
    "CohortStats",
    "Customer",
    "analyze",
    "BreakEven",
    "DepartmentCost",
    "GrowthSummary",
    "Invoice",
    "ProfitAndLoss",
    "RevenueMix",
    "UnitEconomics",
    "allocate_department_costs",
    "break_even",
    "break_even_from_pnl",
    "profit_and_loss",
    "growth_metrics_summary",
    "retention_inputs_from_customers",
    "unit_economics",
]
