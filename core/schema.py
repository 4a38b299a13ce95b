from __future__ import annotations

from typing import Dict, Tuple

# Columns a frame must carry, after alias canonicalization, to build each record kind.
REQUIRED_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "subscriptions": ("amount",),
    "deals": ("amount",),
    "customers": ("status", "current_mrr"),
    "observations": ("value",),
    "cash_events": ("amount", "direction"),
}

BILLING_CYCLES: Tuple[str, ...] = ("monthly", "annual")
CASH_DIRECTIONS: Tuple[str, ...] = ("inflow", "outflow")
