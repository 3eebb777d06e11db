"""Shared test fixtures for budget bucket tests."""

import pytest

from budget_buckets.core.budget_store import BudgetStore
from budget_buckets.models.schemas import (
    Bucket,
    BucketType,
    BudgetItem,
    BudgetSettings,
    BudgetState,
    DebtDetails,
    Frequency,
    SavingsGoal,
    SavingsTarget,
)


def make_item(name: str = "Rent", amount: float = 100.0, include: bool = True) -> BudgetItem:
    return BudgetItem(
        id=f"item-{name.lower().replace(' ', '-')}",
        name=name,
        amount=amount,
        include=include,
    )


def make_bucket(
    name: str = "Housing",
    items: list[BudgetItem] | None = None,
    include: bool = True,
    type_: str = "expense",
    goal: SavingsGoal | None = None,
    target: SavingsTarget | None = None,
    debt: DebtDetails | None = None,
    spent_cents: int = 0,
    threshold_pct: float = 80.0,
) -> Bucket:
    return Bucket(
        id=f"bucket-{name.lower().replace(' ', '-')}",
        name=name,
        include=include,
        type=BucketType(type_),
        items=items if items is not None else [],
        goal=goal,
        target=target,
        debt=debt,
        spent_this_period_cents=spent_cents,
        overspend_threshold_pct=threshold_pct,
    )


def make_goal(
    contribution_cents: int = 5000,
    amount_cents: int = 100000,
    saved_cents: int = 0,
    target_date: str | None = None,
) -> SavingsGoal:
    return SavingsGoal(
        amount_cents=amount_cents,
        saved_so_far_cents=saved_cents,
        contribution_per_period_cents=contribution_cents,
        target_date=target_date,
    )


def make_state(
    income: float = 1000.0,
    frequency: str = "Fortnightly",
    currency: str = "AUD",
    expenses: list[Bucket] | None = None,
    savings: list[Bucket] | None = None,
    debt: list[Bucket] | None = None,
    name: str = "Test Budget",
) -> BudgetState:
    return BudgetState(
        name=name,
        settings=BudgetSettings(
            income_amount=income,
            income_frequency=Frequency(frequency),
            currency=currency,
        ),
        expenses=expenses or [],
        savings=savings or [],
        debt=debt or [],
    )


def make_document(
    income=1000,
    expenses: list | None = None,
    savings: list | None = None,
    debt: list | None = None,
) -> dict:
    """A raw camelCase budget document, the shape budgets are stored in."""
    document = {
        "settings": {"incomeAmount": income, "incomeFrequency": "Fortnightly", "currency": "AUD"},
        "expenses": expenses if expenses is not None else [],
        "savings": savings if savings is not None else [],
    }
    if debt is not None:
        document["debt"] = debt
    return document


def raw_bucket(items: list | None = None, include=True, type_: str = "expense", **extra) -> dict:
    return {"include": include, "type": type_, "items": items if items is not None else [], **extra}


def raw_item(amount, include=True) -> dict:
    return {"name": "Item", "amount": amount, "include": include}


@pytest.fixture
def store(tmp_path) -> BudgetStore:
    return BudgetStore(data_file=str(tmp_path / "budgets.json"))
