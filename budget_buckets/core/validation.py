"""Loading, cleaning and converting budget documents.

Everything here works on plain JSON-like data on one side and
:class:`BudgetState` on the other. Stored data is cleaned rather than
rejected; only explicit imports raise :class:`BudgetDataError`.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from budget_buckets.core.analyzers import add_months
from budget_buckets.models.schemas import (
    DEFAULT_OVERSPEND_THRESHOLD_PCT,
    Bucket,
    BudgetItem,
    BudgetSettings,
    BudgetState,
    BucketType,
    DebtDetails,
    Frequency,
    SavingsTarget,
    coerce_number,
    coerce_text,
    generate_id,
)

_SECTION_TYPES = {
    "expenses": BucketType.EXPENSE.value,
    "savings": BucketType.SAVING.value,
    "debt": BucketType.DEBT.value,
}


class BudgetDataError(Exception):
    """Raised when imported budget data cannot be understood at all."""


def sanitize_budget(data: Any) -> BudgetState:
    """Load any payload as a :class:`BudgetState`, replacing junk with defaults."""
    if isinstance(data, BudgetState):
        return data
    if not isinstance(data, Mapping):
        return BudgetState()
    return BudgetState.model_validate(data)


def empty_budget(name: str = "My Budget") -> BudgetState:
    return BudgetState(name=name)


# --- Migration of older documents ---


def migrate_buckets(document: Mapping[str, Any]) -> tuple[dict[str, Any], bool]:
    """Fill in bucket fields that older budget documents lack.

    Returns a migrated copy of *document* and whether anything changed.
    Missing types are inferred from the section the bucket sits in.
    """
    migrated = copy.deepcopy(dict(document))
    changed = False

    for section, default_type in _SECTION_TYPES.items():
        buckets = migrated.get(section)
        if not isinstance(buckets, list):
            continue
        for index, bucket in enumerate(buckets):
            if not isinstance(bucket, dict):
                continue
            defaults = {
                "orderIndex": index,
                "notes": "",
                "overspendThresholdPct": DEFAULT_OVERSPEND_THRESHOLD_PCT,
                "spentThisPeriodCents": 0,
                "type": default_type,
            }
            for key, value in defaults.items():
                if bucket.get(key) is None or (key == "type" and not bucket[key]):
                    bucket[key] = value
                    changed = True

            if bucket["type"] == BucketType.SAVING.value and not bucket.get("target"):
                bucket["target"] = SavingsTarget().model_dump(by_alias=True)
                changed = True
            if bucket["type"] == BucketType.DEBT.value and not bucket.get("debt"):
                bucket["debt"] = DebtDetails().model_dump(by_alias=True)
                changed = True

    return migrated, changed


# --- Legacy local export ---


def _is_legacy_payload(data: Any) -> bool:
    return (
        isinstance(data, Mapping)
        and isinstance(data.get("settings"), Mapping)
        and isinstance(data.get("expenses"), list)
        and isinstance(data.get("savings"), list)
    )


def _legacy_bucket(raw: Any, section: str) -> dict[str, Any]:
    raw = raw if isinstance(raw, Mapping) else {}
    items = raw.get("items") if isinstance(raw.get("items"), list) else []
    bucket: dict[str, Any] = {
        "id": coerce_text(raw.get("id")) or generate_id(),
        "name": coerce_text(raw.get("name")) or "Unnamed",
        "bankAccount": coerce_text(raw.get("bankAccount")),
        "include": bool(raw.get("include")),
        "color": coerce_text(raw.get("color")),
        "type": _SECTION_TYPES[section],
        "items": [
            {
                "id": coerce_text(item.get("id")) or generate_id(),
                "name": coerce_text(item.get("name")) or "New item",
                "amount": coerce_number(item.get("amount"), minimum=None),
                "include": bool(item.get("include")),
            }
            for item in items
            if isinstance(item, Mapping)
        ],
    }
    if "goalEnabled" in raw or section == "savings":
        bucket["goalEnabled"] = bool(raw.get("goalEnabled"))
        bucket["goalAmount"] = coerce_number(raw.get("goalAmount"), minimum=None)
    return bucket


def import_legacy_budget(data: Any) -> BudgetState:
    """Convert a budget exported by the old local-only app.

    The payload must hold a ``settings`` object plus ``expenses`` and
    ``savings`` lists; anything else raises :class:`BudgetDataError`.
    """
    if not _is_legacy_payload(data):
        raise BudgetDataError("Invalid local data format: expected settings, expenses and savings.")

    settings = data["settings"]
    document = {
        "name": "Imported Budget",
        "settings": {
            "incomeAmount": coerce_number(settings.get("incomeAmount")),
            "incomeFrequency": settings.get("incomeFrequency") or Frequency.FORTNIGHTLY.value,
            "currency": settings.get("currency") or "AUD",
        },
        "expenses": [_legacy_bucket(b, "expenses") for b in data["expenses"]],
        "savings": [_legacy_bucket(b, "savings") for b in data["savings"]],
    }
    return BudgetState.model_validate(document)


# --- JSON export / import ---


def export_budget(state: BudgetState, exported_at: datetime | None = None) -> dict[str, Any]:
    """Build the JSON-ready export payload for a budget."""
    document = state.to_document()
    when = exported_at or datetime.now(timezone.utc)
    return {
        "settings": document["settings"],
        "expenses": document["expenses"],
        "savings": document["savings"],
        "debt": document["debt"],
        "exportDate": when.isoformat(),
    }


def import_budget(payload: str | bytes | Mapping[str, Any], current: BudgetState | None = None) -> BudgetState:
    """Apply an exported payload on top of *current*.

    Sections missing from the payload keep their current contents.
    Raises :class:`BudgetDataError` for non-JSON or non-object payloads.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise BudgetDataError(f"Invalid file format: {e.msg}") from e
    if not isinstance(payload, Mapping):
        raise BudgetDataError("Invalid file format: expected a JSON object.")

    base = (current or BudgetState()).to_document()
    for key in ("settings", "expenses", "savings", "debt"):
        if payload.get(key) is not None:
            base[key] = payload[key]
    return BudgetState.model_validate(base)


# --- Demo data ---


def demo_budget(reference_date: date | None = None) -> BudgetState:
    """A small, fully populated budget for trying things out."""
    today = reference_date or date.today()
    return BudgetState(
        name="Demo Budget",
        settings=BudgetSettings(
            income_amount=3200, income_frequency=Frequency.FORTNIGHTLY, currency="AUD"
        ),
        expenses=[
            Bucket(
                name="Housing",
                include=True,
                color="#ff6b6b",
                bank_account="Main Account",
                type=BucketType.EXPENSE,
                order_index=0,
                notes="Monthly housing costs",
                spent_this_period_cents=85000,
                items=[
                    BudgetItem(name="Rent", amount=900),
                    BudgetItem(name="Utilities", amount=150),
                ],
            ),
            Bucket(
                name="Transport",
                include=True,
                color="#4ecdc4",
                bank_account="Main Account",
                type=BucketType.EXPENSE,
                order_index=1,
                notes="Car expenses",
                spent_this_period_cents=15000,
                items=[
                    BudgetItem(name="Fuel", amount=120),
                    BudgetItem(name="Insurance", amount=80),
                ],
            ),
        ],
        savings=[
            Bucket(
                name="Emergency Fund",
                include=True,
                color="#5eead4",
                bank_account="Savings Account",
                type=BucketType.SAVING,
                order_index=0,
                notes="Building emergency fund",
                items=[BudgetItem(name="Emergency savings", amount=300)],
                target=SavingsTarget(
                    amount_cents=2000000,
                    target_date=add_months(today, 24).isoformat(),
                ),
            ),
        ],
        debt=[
            Bucket(
                name="Credit Card Debt",
                include=True,
                color="#ff9f43",
                bank_account="Credit Card",
                type=BucketType.DEBT,
                order_index=0,
                notes="Paying off credit card",
                items=[BudgetItem(name="Credit card payment", amount=200)],
                debt=DebtDetails(apr_pct=18.9, min_payment_cents=15000),
            ),
        ],
    )
