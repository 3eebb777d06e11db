"""Pydantic models for budget documents and MCP tool inputs."""

import math
import numbers
import random
import string
import time
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# --- Budget documents store money as decimal amounts, goals as cents ---

def cents_to_dollars(cents: float) -> float:
    """Convert integer cents to currency units."""
    return cents / 100.0


def dollars_to_cents(dollars: float) -> int:
    """Convert currency units to integer cents."""
    return round(dollars * 100)


def coerce_number(value: Any, minimum: Optional[float] = 0.0) -> float:
    """Read a number out of loosely typed document data.

    Real numbers (``Decimal`` included) and numeric strings are accepted;
    anything else (``None``, booleans, junk strings, NaN, infinities) reads
    as ``0.0``.  The result is clamped to *minimum* unless *minimum* is ``None``.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
    elif not isinstance(value, (numbers.Real, Decimal)):
        return 0.0
    try:
        number = float(value)
    except (ValueError, OverflowError):
        # Junk strings, signalling Decimal NaNs and ints too large for a float.
        return 0.0
    if not math.isfinite(number):
        return 0.0
    if minimum is not None:
        return max(number, minimum)
    return number


def coerce_text(value: Any, fallback: str = "") -> str:
    if value is None:
        return fallback
    return str(value).strip()


_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Client-side document id: ``id_<epoch ms>_<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"id_{int(time.time() * 1000)}_{suffix}"


# --- Enums ---

class Frequency(str, Enum):
    WEEKLY = "Weekly"
    FORTNIGHTLY = "Fortnightly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class BucketType(str, Enum):
    EXPENSE = "expense"
    SAVING = "saving"
    DEBT = "debt"


Section = Literal["expenses", "savings", "debt"]

SECTIONS: tuple[str, ...] = ("expenses", "savings", "debt")

MAX_BUCKETS_PER_SECTION = 50
MAX_ITEMS_PER_BUCKET = 200
DEFAULT_OVERSPEND_THRESHOLD_PCT = 80.0


# --- Budget document models ---
#
# Field names are snake_case in Python and camelCase on the wire.  Every
# field sanitizes in a "before" validator so that stored junk loads as
# neutral defaults instead of failing validation.

_DOCUMENT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
)


def _cents(value: Any) -> int:
    return round(coerce_number(value))


class BudgetSettings(BaseModel):
    model_config = _DOCUMENT_CONFIG

    income_amount: float = 0.0
    income_frequency: Frequency = Frequency.FORTNIGHTLY
    currency: str = "AUD"

    @field_validator("income_amount", mode="before")
    @classmethod
    def clean_income(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("income_frequency", mode="before")
    @classmethod
    def clean_frequency(cls, v: Any) -> Any:
        if isinstance(v, Frequency):
            return v
        if isinstance(v, str) and v in {f.value for f in Frequency}:
            return v
        return Frequency.FORTNIGHTLY

    @field_validator("currency", mode="before")
    @classmethod
    def clean_currency(cls, v: Any) -> str:
        return coerce_text(v).upper() or "AUD"


class BudgetItem(BaseModel):
    model_config = _DOCUMENT_CONFIG

    id: str = Field(default_factory=generate_id)
    name: str = ""
    amount: float = 0.0
    include: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def clean_id(cls, v: Any) -> str:
        return coerce_text(v) or generate_id()

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("amount", mode="before")
    @classmethod
    def clean_amount(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("include", mode="before")
    @classmethod
    def clean_include(cls, v: Any) -> bool:
        # Only an explicit ``false`` excludes an item.
        return v is not False


class SavingsGoal(BaseModel):
    model_config = _DOCUMENT_CONFIG

    amount_cents: int = 0
    target_date: Optional[str] = None
    saved_so_far_cents: int = 0
    contribution_per_period_cents: int = 0
    auto_calc: bool = False

    @field_validator(
        "amount_cents", "saved_so_far_cents", "contribution_per_period_cents", mode="before"
    )
    @classmethod
    def clean_cents(cls, v: Any) -> int:
        return _cents(v)

    @field_validator("target_date", mode="before")
    @classmethod
    def clean_date(cls, v: Any) -> Optional[str]:
        return coerce_text(v) or None

    @field_validator("auto_calc", mode="before")
    @classmethod
    def clean_flag(cls, v: Any) -> bool:
        return bool(v)

    @property
    def contribution_per_period(self) -> float:
        return cents_to_dollars(self.contribution_per_period_cents)


class SavingsTarget(BaseModel):
    """Older per-bucket savings target, kept for documents that still carry it."""
    model_config = _DOCUMENT_CONFIG

    amount_cents: int = 0
    target_date: Optional[str] = None
    auto_contribution_enabled: bool = False

    @field_validator("amount_cents", mode="before")
    @classmethod
    def clean_cents(cls, v: Any) -> int:
        return _cents(v)

    @field_validator("target_date", mode="before")
    @classmethod
    def clean_date(cls, v: Any) -> Optional[str]:
        return coerce_text(v) or None

    @field_validator("auto_contribution_enabled", mode="before")
    @classmethod
    def clean_flag(cls, v: Any) -> bool:
        return bool(v)


class DebtDetails(BaseModel):
    model_config = _DOCUMENT_CONFIG

    apr_pct: float = 0.0
    min_payment_cents: int = 0

    @field_validator("apr_pct", mode="before")
    @classmethod
    def clean_apr(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator("min_payment_cents", mode="before")
    @classmethod
    def clean_cents(cls, v: Any) -> int:
        return _cents(v)

    @property
    def min_payment(self) -> float:
        return cents_to_dollars(self.min_payment_cents)


class Bucket(BaseModel):
    model_config = _DOCUMENT_CONFIG

    id: str = Field(default_factory=generate_id)
    name: str = ""
    bank_account: str = ""
    include: bool = False
    color: str = ""
    type: BucketType = BucketType.EXPENSE
    order_index: int = 0
    notes: str = ""
    overspend_threshold_pct: float = DEFAULT_OVERSPEND_THRESHOLD_PCT
    spent_this_period_cents: int = 0
    items: list[BudgetItem] = []
    goal: Optional[SavingsGoal] = None
    target: Optional[SavingsTarget] = None
    debt: Optional[DebtDetails] = None
    goal_enabled: Optional[bool] = None
    goal_amount: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def clean_id(cls, v: Any) -> str:
        return coerce_text(v) or generate_id()

    @field_validator("name", "bank_account", "color", "notes", mode="before")
    @classmethod
    def clean_text(cls, v: Any) -> str:
        return coerce_text(v)

    @field_validator("include", mode="before")
    @classmethod
    def clean_include(cls, v: Any) -> bool:
        # Only a real ``true`` includes a bucket; 1 or "yes" do not.
        return v is True

    @field_validator("type", mode="before")
    @classmethod
    def clean_type(cls, v: Any) -> Any:
        if isinstance(v, BucketType):
            return v
        if isinstance(v, str) and v in {t.value for t in BucketType}:
            return v
        return BucketType.EXPENSE

    @field_validator("order_index", "spent_this_period_cents", mode="before")
    @classmethod
    def clean_whole(cls, v: Any) -> int:
        return round(coerce_number(v))

    @field_validator("overspend_threshold_pct", mode="before")
    @classmethod
    def clean_threshold(cls, v: Any) -> float:
        return coerce_number(v) or DEFAULT_OVERSPEND_THRESHOLD_PCT

    @field_validator("items", mode="before")
    @classmethod
    def clean_items(cls, v: Any) -> list:
        if not isinstance(v, (list, tuple)):
            return []
        return [
            item for item in v[:MAX_ITEMS_PER_BUCKET]
            if isinstance(item, (Mapping, BudgetItem))
        ]

    @field_validator("items")
    @classmethod
    def drop_blank_items(cls, v: list[BudgetItem]) -> list[BudgetItem]:
        return [item for item in v if item.name or item.amount > 0]

    @field_validator("goal", "target", "debt", mode="before")
    @classmethod
    def clean_nested(cls, v: Any) -> Any:
        if isinstance(v, (Mapping, BaseModel)):
            return v
        return None

    @field_validator("goal_enabled", mode="before")
    @classmethod
    def clean_legacy_flag(cls, v: Any) -> Optional[bool]:
        return None if v is None else bool(v)

    @field_validator("goal_amount", mode="before")
    @classmethod
    def clean_legacy_amount(cls, v: Any) -> Optional[float]:
        return None if v is None else coerce_number(v)

    @property
    def spent_this_period(self) -> float:
        return cents_to_dollars(self.spent_this_period_cents)


def _buckets(v: Any) -> list:
    if not isinstance(v, (list, tuple)):
        return []
    # Non-object entries become blank, excluded buckets.
    return [
        b if isinstance(b, (Mapping, Bucket)) else {}
        for b in v[:MAX_BUCKETS_PER_SECTION]
    ]


class BudgetState(BaseModel):
    model_config = _DOCUMENT_CONFIG

    id: Optional[str] = None
    name: str = "My Budget"
    settings: BudgetSettings = Field(default_factory=BudgetSettings)
    expenses: list[Bucket] = []
    savings: list[Bucket] = []
    debt: list[Bucket] = []

    @field_validator("name", mode="before")
    @classmethod
    def clean_name(cls, v: Any) -> str:
        return coerce_text(v) or "My Budget"

    @field_validator("settings", mode="before")
    @classmethod
    def clean_settings(cls, v: Any) -> Any:
        if isinstance(v, (Mapping, BudgetSettings)):
            return v
        return {}

    @field_validator("expenses", "savings", "debt", mode="before")
    @classmethod
    def clean_sections(cls, v: Any) -> list:
        return _buckets(v)

    def section(self, name: str) -> list[Bucket]:
        if name not in SECTIONS:
            raise ValueError(f"Unknown section '{name}'. Expected one of: {', '.join(SECTIONS)}")
        return getattr(self, name)

    def all_buckets(self) -> list[Bucket]:
        return [*self.expenses, *self.savings, *self.debt]

    def to_document(self) -> dict[str, Any]:
        """Serialize with camelCase keys, the shape budgets are stored in."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- MCP Tool Input Models ---


class AddBucketInput(BaseModel):
    """Input for adding a bucket to a budget section."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., description="Bucket name (e.g. 'Housing', 'Emergency Fund')", min_length=1, max_length=50)
    section: Section = Field(
        default="expenses", description="Section to add to: 'expenses', 'savings' or 'debt'"
    )
    bucket_type: Optional[BucketType] = Field(
        None, description="Bucket type. Defaults to 'expense', 'saving' or 'debt' by section."
    )
    bank_account: Optional[str] = Field(None, description="Bank account the money lives in", max_length=100)
    color: Optional[str] = Field(None, description="Display color, e.g. '#00cdd6'", max_length=20)
    notes: Optional[str] = Field(None, description="Free-form notes", max_length=500)


class AddItemInput(BaseModel):
    """Input for adding a line item to a bucket."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    bucket_name: str = Field(..., description="Bucket to add the item to (partial match)")
    name: str = Field(..., description="Item name (e.g. 'Rent')", min_length=1, max_length=100)
    amount: float = Field(..., description="Amount per income period", ge=0, le=999999)
    include: bool = Field(default=True, description="Whether the item counts toward totals")


class SetIncomeInput(BaseModel):
    """Input for changing the budget's income settings."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    amount: float = Field(..., description="Income per period", ge=0, le=999999)
    frequency: Optional[Frequency] = Field(
        None, description="Income frequency: Weekly, Fortnightly, Monthly or Yearly"
    )
    currency: Optional[str] = Field(
        None, description="ISO 4217 currency code (e.g. 'AUD')", min_length=3, max_length=3
    )


class SetSavingsGoalInput(BaseModel):
    """Input for configuring a savings bucket's goal."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    bucket_name: str = Field(..., description="Savings bucket (partial match)")
    contribution_per_period: float = Field(..., description="Amount contributed each income period", ge=0)
    goal_amount: float = Field(default=0, description="Goal target amount", ge=0)
    saved_so_far: float = Field(default=0, description="Amount already saved", ge=0)
    target_date: Optional[str] = Field(None, description="Goal date (YYYY-MM-DD)")


class SetDebtDetailsInput(BaseModel):
    """Input for configuring a debt bucket's interest and minimum payment."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    bucket_name: str = Field(..., description="Debt bucket (partial match)")
    apr_pct: float = Field(..., description="Annual percentage rate", ge=0, le=100)
    min_payment: float = Field(..., description="Minimum payment per income period", ge=0)


class RecordSpendingInput(BaseModel):
    """Input for recording what was spent from a bucket this period."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    bucket_name: str = Field(..., description="Bucket (partial match)")
    amount: float = Field(..., description="Total spent so far this period", ge=0)


class SavingsCalculatorInput(BaseModel):
    """Input for the standalone savings-goal calculator."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    target: float = Field(..., description="Savings target", gt=0)
    contribution: float = Field(..., description="Contribution per frequency period", ge=0)
    frequency: Frequency = Field(default=Frequency.FORTNIGHTLY, description="Contribution frequency")
    starting_balance: float = Field(default=0, description="Amount saved already", ge=0)
    annual_rate_pct: float = Field(default=0, description="Expected annual return in percent", ge=0, le=100)
    income: Optional[float] = Field(None, description="Optional income, to report a savings rate", ge=0)
    income_frequency: Frequency = Field(default=Frequency.FORTNIGHTLY, description="Income frequency")


class ConvertFrequencyInput(BaseModel):
    """Input for converting an amount between pay frequencies."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    amount: float = Field(..., description="Amount to convert")
    frequency: Frequency = Field(..., description="Frequency the amount is expressed in")
