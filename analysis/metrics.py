"""
Business-level metrics built on the engine and cohort records.

  growth_metrics_summary          MRR/ARR, MoM growth, NRR, pipeline totals, time to double
  retention_inputs_from_customers expansion / contraction / churn MRR for NRR
  unit_economics                  CAC, LTV, LTV/CAC, payback, churn and conversion
  allocate_department_costs       expense totals per department via the department mapping
  profit_and_loss                 revenue mix, COGS, gross margin, opex, EBITDA and net margin
  break_even                      revenue needed to cover fixed costs at the current COGS ratio
  break_even_from_pnl             break-even with fixed costs taken from overhead departments
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import pandas as pd

from core.tables import DEFAULT_DEPARTMENT_MAPPING, DEFAULT_TABLES, DepartmentMapping, EngineTables
from core.utils import money, require_non_negative, round_half_up
from engine.cashflow import ExpenseItem
from engine.pipeline import PipelineDeal, aggregate
from engine.revenue import NRRInputs, growth_rate, net_revenue_retention

from .cohorts import Customer

logger = logging.getLogger(__name__)

# lifespan assumed when no customer has churned yet
DEFAULT_LIFESPAN_MONTHS = 24.0
# COGS share of revenue assumed when there is no revenue to derive it from
DEFAULT_VARIABLE_COST_RATIO = 0.20
# departments whose spend does not scale with revenue
OVERHEAD_DEPARTMENTS = ("finance", "operations", "general")
REVENUE_TYPES = ("Service", "Subscription", "Consulting")


@dataclass(frozen=True)
class GrowthSummary:
    mrr: float
    arr: float
    mom_growth: float
    nrr: float
    pipeline_weighted_value: float
    total_pipeline_value: float
    pipeline_deals: int
    run_rate: float
    months_to_double: float

    def to_dict(self) -> Dict:
        return {
            "mrr": self.mrr,
            "arr": self.arr,
            "momGrowth": self.mom_growth,
            "nrr": self.nrr,
            "pipelineWeightedValue": self.pipeline_weighted_value,
            "totalPipelineValue": self.total_pipeline_value,
            "pipelineDeals": self.pipeline_deals,
            "runRate": self.run_rate,
            "monthsToDouble": self.months_to_double,
        }


def growth_metrics_summary(
    current_mrr: float,
    previous_mrr: float,
    nrr_inputs: NRRInputs,
    deals: Iterable[PipelineDeal] = (),
    *,
    tables: EngineTables = DEFAULT_TABLES,
) -> GrowthSummary:
    """
    One-line growth snapshot. Months to double uses the rule of 72 on the
    month-over-month growth percentage and is infinite without growth.
    """
    mom = growth_rate(current_mrr, previous_mrr)
    pipeline = aggregate(deals, weights=tables.stage_weights)
    return GrowthSummary(
        mrr=money(current_mrr),
        arr=money(current_mrr * 12),
        mom_growth=mom,
        nrr=net_revenue_retention(nrr_inputs),
        pipeline_weighted_value=pipeline.expected_value,
        total_pipeline_value=pipeline.total_value,
        pipeline_deals=pipeline.total_deals,
        run_rate=money(current_mrr * 12),
        months_to_double=float(math.ceil(72 / mom)) if mom > 0 else math.inf,
    )


def retention_inputs_from_customers(
    customers: Iterable[Customer],
    beginning_mrr: float,
) -> NRRInputs:
    """
    Derive NRR inputs from customer records.

    Expansion and contraction come from active customers' MRR change since
    signup; churned MRR is the signup MRR of churned customers.
    """
    expansion = 0.0
    contraction = 0.0
    churned = 0.0
    for c in customers:
        if c.is_active:
            delta = c.current_mrr - c.initial_mrr
            if delta > 0:
                expansion += delta
            else:
                contraction += -delta
        elif c.is_churned:
            churned += c.initial_mrr

    return NRRInputs(
        beginning_mrr=require_non_negative(beginning_mrr, "beginning_mrr"),
        expansion_mrr=money(expansion),
        contraction_mrr=money(contraction),
        churned_mrr=money(churned),
    )


@dataclass(frozen=True)
class UnitEconomics:
    cac: float
    ltv: float
    ltv_cac_ratio: float
    payback_months: float
    avg_mrr_per_customer: float
    avg_lifespan_months: float
    churn_rate_pct: float
    conversion_rate_pct: float
    cost_per_lead: float
    total_leads: int
    active_customers: int
    marketing_spend: float

    def to_dict(self) -> Dict:
        return {
            "cac": self.cac,
            "ltv": self.ltv,
            "ltvCacRatio": self.ltv_cac_ratio,
            "paybackPeriod": self.payback_months,
            "avgMRRPerCustomer": self.avg_mrr_per_customer,
            "avgLifespanMonths": self.avg_lifespan_months,
            "monthlyChurnRate": self.churn_rate_pct,
            "conversionRate": self.conversion_rate_pct,
            "costPerLead": self.cost_per_lead,
            "totalLeads": self.total_leads,
            "totalCustomers": self.active_customers,
            "totalMarketingSpend": self.marketing_spend,
        }


def _lifespan_months(customer: Customer, as_of: pd.Timestamp) -> Optional[float]:
    # 30-day months, measured from the first day of the signup month
    if customer.signup_period is None:
        return None
    start = pd.Timestamp(customer.signup_period + "-01")
    end = pd.Timestamp(customer.churn_date) if customer.churn_date is not None else as_of
    return (end - start).days / 30


def unit_economics(
    customers: Iterable[Customer],
    marketing_spend: float,
    lead_count: int,
    *,
    as_of_date,
) -> UnitEconomics:
    """
    Customer acquisition cost against lifetime value.

    CAC is marketing spend per active customer. LTV is average active MRR
    times the average lifespan of churned customers (24 months when nobody
    has churned). Churned customers without a churn date are treated as
    churning on `as_of_date`; those without a signup month are left out of
    the lifespan average.
    """
    marketing_spend = require_non_negative(marketing_spend, "marketing_spend")
    customers = list(customers)
    as_of = pd.Timestamp(as_of_date).normalize()

    active = [c for c in customers if c.is_active]
    churned = [c for c in customers if c.is_churned]
    n_active = len(active)

    cac = marketing_spend / n_active if n_active > 0 else 0.0
    avg_mrr = sum(c.current_mrr for c in active) / n_active if n_active > 0 else 0.0

    spans = [s for s in (_lifespan_months(c, as_of) for c in churned) if s is not None]
    if spans:
        lifespan = sum(spans) / len(spans)
    else:
        logger.debug("No churn history, using default lifespan of %.0f months", DEFAULT_LIFESPAN_MONTHS)
        lifespan = DEFAULT_LIFESPAN_MONTHS

    ltv = avg_mrr * lifespan

    return UnitEconomics(
        cac=money(cac),
        ltv=money(ltv),
        ltv_cac_ratio=money(ltv / cac) if cac > 0 else 0.0,
        payback_months=float(round_half_up(cac / avg_mrr, 1)) if avg_mrr > 0 else 0.0,
        avg_mrr_per_customer=money(avg_mrr),
        avg_lifespan_months=float(round_half_up(lifespan, 1)),
        churn_rate_pct=money(len(churned) / len(customers) * 100) if customers else 0.0,
        conversion_rate_pct=money(n_active / lead_count * 100) if lead_count > 0 else 0.0,
        cost_per_lead=money(marketing_spend / lead_count) if lead_count > 0 else 0.0,
        total_leads=int(lead_count),
        active_customers=n_active,
        marketing_spend=money(marketing_spend),
    )


@dataclass(frozen=True)
class BreakEven:
    fixed_costs: float
    variable_cost_ratio_pct: float
    break_even_revenue: float
    current_revenue: float
    margin_of_safety_pct: float
    is_profitable: bool

    def to_dict(self) -> Dict:
        return {
            "fixedCosts": self.fixed_costs,
            "variableCostRatio": self.variable_cost_ratio_pct,
            "breakEvenRevenue": self.break_even_revenue,
            "currentRevenue": self.current_revenue,
            "marginOfSafety": self.margin_of_safety_pct,
            "isProfitable": self.is_profitable,
        }


def break_even(fixed_costs: float, cogs: float, revenue: float) -> BreakEven:
    """
    Break-even revenue = fixed costs / (1 - variable cost ratio).

    The variable cost ratio is COGS / revenue, or 20 % when there is no
    revenue. A ratio of 100 % or more has no break-even point (infinite).
    """
    fixed_costs = require_non_negative(fixed_costs, "fixed_costs")
    cogs = require_non_negative(cogs, "cogs")
    revenue = require_non_negative(revenue, "revenue")

    ratio = cogs / revenue if revenue > 0 else DEFAULT_VARIABLE_COST_RATIO
    if ratio >= 1:
        be_revenue = math.inf
    else:
        be_revenue = fixed_costs / (1 - ratio)

    if revenue > 0:
        margin = (revenue - be_revenue) / revenue * 100
    else:
        margin = 0.0

    return BreakEven(
        fixed_costs=money(fixed_costs),
        variable_cost_ratio_pct=money(ratio * 100),
        break_even_revenue=money(be_revenue),
        current_revenue=money(revenue),
        margin_of_safety_pct=money(margin),
        is_profitable=revenue - cogs - fixed_costs > 0,
    )


@dataclass
class DepartmentCost:
    total: float = 0.0
    categories: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {"total": self.total, "categories": dict(self.categories)}


def allocate_department_costs(
    expenses: Iterable[ExpenseItem],
    *,
    mapping: DepartmentMapping = DEFAULT_DEPARTMENT_MAPPING,
) -> Dict[str, DepartmentCost]:
    """
    Sum expenses per department. Every department in the mapping is present,
    with a per-category breakdown keyed by the lower-cased category.
    """
    departments = {dept: DepartmentCost() for dept in mapping.departments}
    for exp in expenses:
        category = exp.category.strip().lower()
        dept = departments[mapping.department_for(category)]
        dept.total += exp.amount
        dept.categories[category] = dept.categories.get(category, 0.0) + exp.amount

    for dept in departments.values():
        dept.total = money(dept.total)
        dept.categories = {c: money(v) for c, v in dept.categories.items()}
    return departments


@dataclass(frozen=True)
class Invoice:
    amount: float
    type: str = ""


@dataclass(frozen=True)
class RevenueMix:
    services: float
    subscriptions: float
    consulting: float
    other: float

    @property
    def total(self) -> float:
        return money(self.services + self.subscriptions + self.consulting + self.other)

    def to_dict(self) -> Dict:
        return {
            "services": self.services,
            "subscriptions": self.subscriptions,
            "consulting": self.consulting,
            "other": self.other,
            "total": self.total,
        }


def _revenue_mix(invoices: List[Invoice]) -> RevenueMix:
    by_type = {t: 0.0 for t in REVENUE_TYPES}
    other = 0.0
    for inv in invoices:
        if inv.type in by_type:
            by_type[inv.type] += inv.amount
        else:
            other += inv.amount
    return RevenueMix(
        services=money(by_type["Service"]),
        subscriptions=money(by_type["Subscription"]),
        consulting=money(by_type["Consulting"]),
        other=money(other),
    )


@dataclass(frozen=True)
class ProfitAndLoss:
    period: str
    revenue: RevenueMix
    cogs: float
    gross_profit: float
    gross_margin_pct: float
    department_costs: Dict[str, DepartmentCost]
    opex: float
    ebitda: float
    ebitda_margin_pct: float
    net_income: float
    net_margin_pct: float

    def to_dict(self) -> Dict:
        return {
            "period": self.period,
            "revenue": self.revenue.to_dict(),
            "cogs": self.cogs,
            "grossProfit": self.gross_profit,
            "grossMargin": self.gross_margin_pct,
            "departmentCosts": {k: v.to_dict() for k, v in self.department_costs.items()},
            "opex": self.opex,
            "ebitda": self.ebitda,
            "ebitdaMargin": self.ebitda_margin_pct,
            "netIncome": self.net_income,
            "netMargin": self.net_margin_pct,
        }


def _margin(amount: float, revenue: float) -> float:
    return money(amount / revenue * 100) if revenue > 0 else 0.0


def profit_and_loss(
    invoices: Iterable[Invoice],
    expenses: Iterable[ExpenseItem],
    *,
    period: str = "",
    tables: EngineTables = DEFAULT_TABLES,
) -> ProfitAndLoss:
    """
    Profit and loss statement for one period's paid invoices and expenses.

    Expenses in the mapping's COGS categories are cost of goods sold; the rest
    are operating expenses, allocated by department. Net income equals EBITDA
    (no depreciation, interest or tax).
    """
    invoices = list(invoices)
    expenses = list(expenses)
    mapping = tables.department_mapping
    for inv in invoices:
        require_non_negative(inv.amount, "Invoice.amount")
    for exp in expenses:
        require_non_negative(exp.amount, "ExpenseItem.amount")

    revenue = _revenue_mix(invoices)
    total_revenue = revenue.total
    cogs = sum(e.amount for e in expenses if mapping.is_cogs(e.category))
    departments = allocate_department_costs(
        (e for e in expenses if not mapping.is_cogs(e.category)), mapping=mapping
    )
    opex = sum(d.total for d in departments.values())

    gross_profit = total_revenue - cogs
    ebitda = gross_profit - opex
    logger.debug(
        "P&L %s: revenue %.2f, cogs %.2f, opex %.2f",
        period or "(unlabelled)", total_revenue, cogs, opex,
    )
    return ProfitAndLoss(
        period=period,
        revenue=revenue,
        cogs=money(cogs),
        gross_profit=money(gross_profit),
        gross_margin_pct=_margin(gross_profit, total_revenue),
        department_costs=departments,
        opex=money(opex),
        ebitda=money(ebitda),
        ebitda_margin_pct=_margin(ebitda, total_revenue),
        net_income=money(ebitda),
        net_margin_pct=_margin(ebitda, total_revenue),
    )


def break_even_from_pnl(pnl: ProfitAndLoss) -> BreakEven:
    """Break-even where fixed costs are the overhead departments' spend."""
    fixed = sum(
        pnl.department_costs[d].total
        for d in OVERHEAD_DEPARTMENTS
        if d in pnl.department_costs
    )
    return break_even(fixed, pnl.cogs, pnl.revenue.total)
