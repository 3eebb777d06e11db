"""Result dataclasses for budget calculations.

These are internal types consumed by formatters — lightweight dataclasses
rather than Pydantic models since they don't need validation.
"""

from dataclasses import dataclass
from datetime import date


@dataclass
class Balance:
    """Income against everything allocated from it, for one income period."""
    income: float
    expenses: float
    savings: float
    debt: float
    surplus: float         # income - expenses - savings - debt (negative = overspent)
    balanced: bool         # abs(surplus) < 0.01


@dataclass
class FrequencyBreakdown:
    """One amount expressed in every supported pay frequency."""
    weekly: float
    fortnightly: float
    monthly: float
    yearly: float


@dataclass
class AllocationSummary:
    """How monthly income splits between expenses, savings, debt and the rest."""
    frequency: str
    currency: str
    income: float                  # per income period
    monthly_income: float
    fortnightly_income: float
    expenses_monthly: float
    savings_monthly: float
    debt_monthly: float
    remaining_monthly: float       # never negative
    leftover_after_savings: float  # per income period, debt not deducted
    savings_rate_pct: float        # savings as % of income
    expenses_pct: int
    savings_pct: int
    debt_pct: int
    remaining_pct: int


@dataclass
class BucketStatus:
    """Spending progress for one bucket in the current period."""
    bucket_id: str
    name: str
    bucket_type: str
    planned: float         # per income period
    spent: float
    pct_of_income: int
    ratio: float           # spent / planned
    level: str             # "ok", "warning" or "over"
    progress_pct: float    # 0-100
    remaining: float       # planned - spent (can be negative)


@dataclass
class SavingsPlan:
    """What a savings bucket needs per period to reach its target on time."""
    bucket_name: str
    target_amount: float
    current_amount: float
    target_date: str | None
    months_remaining: int | None
    monthly_needed: float
    per_period_needed: float
    frequency: str


@dataclass
class PayoffProjection:
    """How long a debt bucket takes to clear at its minimum payment."""
    bucket_name: str
    balance: float
    apr_pct: float
    payment_monthly: float
    months: int | None = None          # None = never (payment below interest)
    payoff_month: date | None = None


@dataclass
class GoalProjection:
    """Savings calculator output."""
    target: float
    starting_balance: float
    monthly_contribution: float
    annual_rate_pct: float
    months: int | None = None          # None = unreachable
    reach_month: date | None = None
    savings_rate_pct: float | None = None
