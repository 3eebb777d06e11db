"""Entity resolution helpers for budget buckets.

Pure functions that resolve user-friendly names (partial, case-insensitive)
to budget domain objects. No I/O — they operate on already-loaded data.
"""

from __future__ import annotations

from budget_buckets.models.schemas import Bucket, BudgetItem, BudgetState, BucketType


class ResolverError(Exception):
    """Raised when an entity cannot be resolved by name."""

    def __init__(
        self,
        entity_type: str,
        query: str,
        available: list[str] | None = None,
    ):
        self.entity_type = entity_type
        self.query = query
        self.available = available or []
        detail = f"No {entity_type} found matching '{query}'."
        if self.available:
            detail += f" Available: {', '.join(self.available)}"
        super().__init__(detail)


def _match(name: str, candidates: list, entity_type: str):
    query = name.strip().lower()
    # Exact name wins over a partial match elsewhere in the list.
    for c in candidates:
        if c.name.lower() == query:
            return c
    for c in candidates:
        if query and query in c.name.lower():
            return c
    raise ResolverError(
        entity_type,
        name,
        available=[c.name for c in candidates if c.name],
    )


def resolve_bucket(
    state: BudgetState,
    name: str,
    bucket_type: BucketType | None = None,
) -> Bucket:
    """Find a bucket by name across all sections.

    If *bucket_type* is given, only buckets of that type are considered.
    Raises :class:`ResolverError` if nothing matches.
    """
    buckets = state.all_buckets()
    if bucket_type is not None:
        buckets = [b for b in buckets if b.type == bucket_type]
    return _match(name, buckets, f"{bucket_type.value} bucket" if bucket_type else "bucket")


def resolve_item(bucket: Bucket, name: str) -> BudgetItem:
    """Find an item in *bucket* by name.

    Raises :class:`ResolverError` if nothing matches.
    """
    return _match(name, bucket.items, f"item in '{bucket.name}'")


def find_bucket_section(state: BudgetState, bucket_id: str) -> str | None:
    """Name of the section holding *bucket_id*, or ``None``."""
    for section in ("expenses", "savings", "debt"):
        if any(b.id == bucket_id for b in state.section(section)):
            return section
    return None
