"""
Versionable lookup tables used by the engine.

Stage weights, seasonal factors, industry multiples and the expense
department mapping are business assumptions, not math. They live here as
validated pydantic models so a deployment can override them (see
core.config.load_engine_tables) and tests can pin them down explicitly.
"""

from __future__ import annotations

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class StageWeightTable(BaseModel):
    """Sales stage -> close probability. Stage names are matched lower-cased."""

    model_config = ConfigDict(frozen=True)

    weights: Dict[str, float]
    default_weight: float = Field(default=0.10, ge=0.0, le=1.0)
    # best case counts deals at or above this weight at full amount
    best_case_threshold: float = Field(default=0.25, ge=0.0, le=1.0)
    # worst case counts only near-certain deals
    worst_case_threshold: float = Field(default=0.90, ge=0.0, le=1.0)

    @field_validator("weights")
    @classmethod
    def _normalize_weights(cls, v: Dict[str, float]) -> Dict[str, float]:
        out = {}
        for stage, w in v.items():
            if not 0.0 <= w <= 1.0:
                raise ValueError(f"Stage weight for {stage!r} must be in [0, 1], got {w}")
            out[stage.strip().lower()] = float(w)
        return out

    @model_validator(mode="after")
    def _check_thresholds(self) -> "StageWeightTable":
        if self.worst_case_threshold < self.best_case_threshold:
            raise ValueError("worst_case_threshold must be >= best_case_threshold")
        return self

    def is_known(self, stage: str) -> bool:
        return stage.strip().lower() in self.weights

    def weight_for(self, stage: str) -> float:
        return self.weights.get(stage.strip().lower(), self.default_weight)


class SeasonalCurve(BaseModel):
    """Calendar month (1..12) -> multiplicative seasonal factor."""

    model_config = ConfigDict(frozen=True)

    factors: Dict[int, float]
    default_factor: float = Field(default=1.0, gt=0.0)

    @field_validator("factors")
    @classmethod
    def _check_factors(cls, v: Dict[int, float]) -> Dict[int, float]:
        for month, f in v.items():
            if not 1 <= month <= 12:
                raise ValueError(f"Seasonal month must be 1..12, got {month}")
            if f <= 0:
                raise ValueError(f"Seasonal factor for month {month} must be > 0, got {f}")
        return v

    def factor(self, month: int) -> float:
        return self.factors.get(month, self.default_factor)


class MultipleRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    low: float = Field(ge=0.0)
    mid: float = Field(ge=0.0)
    high: float = Field(ge=0.0)

    @model_validator(mode="after")
    def _ordered(self) -> "MultipleRange":
        if not self.low <= self.mid <= self.high:
            raise ValueError(f"Multiples must satisfy low <= mid <= high, got {self}")
        return self


class MultipleTable(BaseModel):
    """Industry -> (low, mid, high) multiple, with a fallback row for unmapped industries."""

    model_config = ConfigDict(frozen=True)

    rows: Dict[str, MultipleRange]
    fallback: str = "generic"

    @model_validator(mode="after")
    def _fallback_present(self) -> "MultipleTable":
        if self.fallback not in self.rows:
            raise ValueError(f"Fallback row {self.fallback!r} missing from multiple table")
        return self

    def lookup(self, industry: str) -> Tuple[str, MultipleRange]:
        """Return (matched key, multiples); unmapped industries use the fallback row."""
        if industry in self.rows:
            return industry, self.rows[industry]
        return self.fallback, self.rows[self.fallback]


def _ranges(table: Dict[str, Tuple[float, float, float]]) -> Dict[str, MultipleRange]:
    return {k: MultipleRange(low=lo, mid=mid, high=hi) for k, (lo, mid, hi) in table.items()}


DEFAULT_STAGE_WEIGHTS = StageWeightTable(
    weights={
        "lead": 0.05,
        "qualified": 0.15,
        "discovery": 0.25,
        "proposal": 0.50,
        "negotiation": 0.70,
        "verbal-commit": 0.90,
        "closed-won": 1.00,
        "closed-lost": 0.00,
    },
)

# Two strong quarters at the start of the year, summer dip, slow Q4.
DEFAULT_SEASONAL_CURVE = SeasonalCurve(
    factors={
        1: 1.15,
        2: 1.12,
        3: 1.10,
        4: 1.08,
        5: 1.05,
        6: 1.03,
        7: 0.98,
        8: 0.95,
        9: 1.00,
        10: 0.92,
        11: 0.88,
        12: 0.85,
    },
)

DEFAULT_REVENUE_MULTIPLES = MultipleTable(
    rows=_ranges({
        "saas": (4.0, 8.0, 15.0),
        "saas-growing": (8.0, 15.0, 30.0),
        "translation-bureau": (0.5, 1.0, 2.0),
        "digital-agency": (0.8, 1.5, 3.0),
        "marketing-agency": (0.6, 1.2, 2.5),
        "consulting": (0.8, 1.5, 2.5),
        "it-services": (1.0, 2.0, 4.0),
        "ai-startup": (5.0, 12.0, 25.0),
        "generic": (0.5, 1.5, 3.0),
    }),
)

DEFAULT_EBITDA_MULTIPLES = MultipleTable(
    rows=_ranges({
        "saas": (10, 20, 40),
        "saas-growing": (20, 40, 80),
        "translation-bureau": (3, 5, 8),
        "digital-agency": (4, 6, 10),
        "marketing-agency": (3, 5, 8),
        "consulting": (4, 7, 12),
        "it-services": (5, 8, 14),
        "ai-startup": (15, 30, 60),
        "generic": (3, 6, 10),
    }),
)


class DepartmentMapping(BaseModel):
    """
    Expense category -> department, plus the categories booked as cost of
    goods sold. Categories are matched lower-cased and exactly; anything
    unmapped lands in the fallback department.
    """

    model_config = ConfigDict(frozen=True)

    departments: Tuple[str, ...]
    categories: Dict[str, str]
    cogs_categories: Tuple[str, ...] = ()
    fallback: str = "general"

    @field_validator("categories")
    @classmethod
    def _normalize_categories(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {c.strip().lower(): dept for c, dept in v.items()}

    @field_validator("cogs_categories")
    @classmethod
    def _normalize_cogs(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(c.strip().lower() for c in v)

    @model_validator(mode="after")
    def _departments_known(self) -> "DepartmentMapping":
        if self.fallback not in self.departments:
            raise ValueError(f"Fallback department {self.fallback!r} missing from departments")
        unknown = sorted(set(self.categories.values()) - set(self.departments))
        if unknown:
            raise ValueError(f"Categories map to unknown departments: {unknown}")
        return self

    def department_for(self, category: str) -> str:
        return self.categories.get(category.strip().lower(), self.fallback)

    def is_cogs(self, category: str) -> bool:
        return category.strip().lower() in self.cogs_categories


def _by_department(table: Dict[str, Tuple[str, ...]]) -> Dict[str, str]:
    return {category: dept for dept, categories in table.items() for category in categories}


DEFAULT_DEPARTMENT_MAPPING = DepartmentMapping(
    departments=("engineering", "sales", "marketing", "operations", "finance", "general"),
    categories=_by_department({
        "engineering": (
            "api", "anthropic", "openai", "deepl", "infrastructure",
            "hosting", "cloud", "tools", "saas",
        ),
        "marketing": ("marketing", "advertising", "content", "seo"),
        "sales": ("sales", "crm", "commission"),
        "finance": ("accounting", "legal", "professional"),
        "operations": ("office", "rent", "utilities", "insurance"),
    }),
    # usage-priced delivery costs
    cogs_categories=("api", "anthropic", "openai", "deepl", "infrastructure", "hosting", "cloud"),
)


class EngineTables(BaseModel):
    """All lookup tables for one deployment. Omitted sections keep the defaults."""

    model_config = ConfigDict(frozen=True)

    stage_weights: StageWeightTable = DEFAULT_STAGE_WEIGHTS
    seasonal_curve: SeasonalCurve = DEFAULT_SEASONAL_CURVE
    revenue_multiples: MultipleTable = DEFAULT_REVENUE_MULTIPLES
    ebitda_multiples: MultipleTable = DEFAULT_EBITDA_MULTIPLES
    department_mapping: DepartmentMapping = DEFAULT_DEPARTMENT_MAPPING


DEFAULT_TABLES = EngineTables()
