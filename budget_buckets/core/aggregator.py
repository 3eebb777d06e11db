"""Budget balance aggregation.

Pure functions that reduce a budget's buckets to per-section totals and an
overall balance. They accept either a raw budget document (the camelCase
mapping budgets are stored as) or the models from
:mod:`budget_buckets.models.schemas`, and never raise on malformed input:
unreadable amounts count as zero and missing lists as empty.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel

from budget_buckets.models.results import Balance
from budget_buckets.models.schemas import cents_to_dollars, coerce_number

# Surplus below this (in currency units) counts as balanced.
BALANCE_TOLERANCE = 0.01


def _as_document(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


def _has_goal(bucket: Mapping) -> bool:
    return bucket.get("type") == "saving" and isinstance(bucket.get("goal"), Mapping)


def _goal_contribution(goal: Mapping) -> float:
    return cents_to_dollars(coerce_number(goal.get("contributionPerPeriodCents")))


def _included_buckets(state: Any, section: str) -> Iterator[Mapping]:
    if not isinstance(state, Mapping):
        return
    buckets = state.get(section)
    if not isinstance(buckets, (list, tuple)):
        return
    for bucket in buckets:
        if isinstance(bucket, Mapping) and bucket.get("include") is True:
            yield bucket


def sum_included_items(bucket: Any) -> float:
    """Return a bucket's contribution to its section total.

    A ``saving`` bucket with a goal contributes its per-period goal
    contribution and its items are ignored. Otherwise the included items
    (``include`` anything but ``False``) are summed, with negative or
    unreadable amounts counted as zero.
    """
    bucket = _as_document(bucket)
    if not isinstance(bucket, Mapping):
        return 0.0
    if _has_goal(bucket):
        return _goal_contribution(bucket["goal"])

    items = bucket.get("items")
    if not isinstance(items, (list, tuple)):
        return 0.0

    total = 0.0
    for item in items:
        if not isinstance(item, Mapping) or item.get("include", True) is False:
            continue
        total += coerce_number(item.get("amount"))
    return total


def get_total_expenses(state: Any) -> float:
    """Sum the included buckets in ``expenses``."""
    state = _as_document(state)
    return sum(
        (sum_included_items(b) for b in _included_buckets(state, "expenses")), 0.0
    )


def get_total_savings(state: Any) -> float:
    """Sum the included, non-debt buckets in ``savings``."""
    state = _as_document(state)
    total = 0.0
    for bucket in _included_buckets(state, "savings"):
        if bucket.get("type") == "debt":
            continue
        if _has_goal(bucket):
            total += _goal_contribution(bucket["goal"])
        else:
            total += sum_included_items(bucket)
    return total


def get_total_debt(state: Any) -> float:
    """Sum the included buckets in ``debt``; an absent section is empty."""
    state = _as_document(state)
    return sum(
        (sum_included_items(b) for b in _included_buckets(state, "debt")), 0.0
    )


def calculate_budget_balance(state: Any) -> Balance:
    """Compute income, section totals, surplus and whether the budget balances.

    A missing state or missing settings gives an all-zero, unbalanced result.
    """
    state = _as_document(state)
    if not isinstance(state, Mapping) or not isinstance(state.get("settings"), Mapping):
        return Balance(income=0.0, expenses=0.0, savings=0.0, debt=0.0, surplus=0.0, balanced=False)

    income = coerce_number(state["settings"].get("incomeAmount"), minimum=None)
    expenses = get_total_expenses(state)
    savings = get_total_savings(state)
    debt = get_total_debt(state)
    surplus = income - expenses - savings - debt

    return Balance(
        income=income,
        expenses=expenses,
        savings=savings,
        debt=debt,
        surplus=surplus,
        balanced=abs(surplus) < BALANCE_TOLERANCE,
    )
