"""Local JSON-file storage for budgets.

One file holds every budget plus a running bucket counter. A store is
constructed once (by the server lifespan, or a test) and passed to whoever
needs it; there is no module-level handle.

Every mutation rewrites the whole file through a temp file and
``os.replace``, so a bucket document and the counter that tracks it always
change together.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from budget_buckets.core.validation import migrate_buckets, sanitize_budget
from budget_buckets.models.schemas import (
    MAX_BUCKETS_PER_SECTION,
    MAX_ITEMS_PER_BUCKET,
    SECTIONS,
    Bucket,
    BudgetState,
    generate_id,
)

logger = logging.getLogger("budget_buckets.store")

DEFAULT_DATA_FILE = Path.home() / ".budget-buckets" / "budgets.json"


class BudgetStoreError(Exception):
    """Base exception for budget storage errors."""


class BudgetNotFoundError(BudgetStoreError):
    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Budget '{budget_id}' not found.")


class BucketNotFoundError(BudgetStoreError):
    def __init__(self, bucket_id: str):
        self.bucket_id = bucket_id
        super().__init__(f"Bucket '{bucket_id}' not found.")


class BudgetLimitError(BudgetStoreError):
    """Raised when a write would exceed the bucket or item limits."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _count_buckets(document: dict[str, Any]) -> int:
    return sum(len(document.get(section) or []) for section in SECTIONS)


def _check_limits(state: BudgetState):
    # Reads truncate anything past the caps, so such writes would be lost.
    for section in SECTIONS:
        buckets = state.section(section)
        if len(buckets) > MAX_BUCKETS_PER_SECTION:
            raise BudgetLimitError(
                f"Section '{section}' is full ({MAX_BUCKETS_PER_SECTION} buckets)."
            )
        for bucket in buckets:
            if len(bucket.items) > MAX_ITEMS_PER_BUCKET:
                raise BudgetLimitError(
                    f"Bucket '{bucket.name}' is full ({MAX_ITEMS_PER_BUCKET} items)."
                )


class BudgetStore:
    """Budgets persisted to a single JSON file."""

    def __init__(self, data_file: Optional[str] = None):
        self._data_file = Path(data_file) if data_file else DEFAULT_DATA_FILE
        self._data: dict[str, Any] = {"budgets": {}, "meta": {"bucketCount": 0}}
        self._load()

    @property
    def data_file(self) -> Path:
        return self._data_file

    def _load(self):
        """Load budgets from disk; a missing or unreadable file starts empty."""
        if not self._data_file.exists():
            return
        try:
            raw = json.loads(self._data_file.read_text())
        except (json.JSONDecodeError, OSError):
            logger.warning("Could not read %s; starting with an empty store", self._data_file)
            return
        if not isinstance(raw, dict) or not isinstance(raw.get("budgets"), dict):
            logger.warning("Ignoring malformed store file %s", self._data_file)
            return

        budgets: dict[str, Any] = {}
        migrated_any = False
        for budget_id, document in raw["budgets"].items():
            if not isinstance(document, dict):
                continue
            document, migrated = migrate_buckets(document)
            migrated_any = migrated_any or migrated
            budgets[budget_id] = document
        meta = raw.get("meta") if isinstance(raw.get("meta"), dict) else {}
        self._data = {"budgets": budgets, "meta": {"bucketCount": 0, **meta}}

        actual = sum(_count_buckets(d) for d in budgets.values())
        if self._data["meta"]["bucketCount"] != actual:
            logger.warning(
                "Bucket counter was %s but %s buckets are stored; repairing",
                self._data["meta"]["bucketCount"],
                actual,
            )
            self._data["meta"]["bucketCount"] = actual
            migrated_any = True

        if migrated_any:
            logger.info("Migrated older bucket fields in %s", self._data_file)
            self._save()

    def _save(self):
        """Write the whole store atomically."""
        self._data_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self._data_file.parent, prefix=".budgets-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp_path, self._data_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def _document(self, budget_id: str) -> dict[str, Any]:
        document = self._data["budgets"].get(budget_id)
        if document is None:
            raise BudgetNotFoundError(budget_id)
        return document

    def _commit(self, budget_id: str, document: Optional[dict[str, Any]]):
        """Store (or with ``None`` remove) one budget and save.

        The bucket counter moves with the document. If the file cannot be
        written, memory is rolled back to match what is on disk.
        """
        budgets = self._data["budgets"]
        previous = budgets.get(budget_id)
        previous_meta = dict(self._data["meta"])

        delta = (_count_buckets(document) if document else 0) - (
            _count_buckets(previous) if previous else 0
        )
        if document is None:
            budgets.pop(budget_id, None)
        else:
            budgets[budget_id] = document
        meta = self._data["meta"]
        meta["bucketCount"] = max(0, int(meta.get("bucketCount", 0)) + delta)
        meta["updatedAt"] = _now()

        try:
            self._save()
        except OSError:
            if previous is None:
                budgets.pop(budget_id, None)
            else:
                budgets[budget_id] = previous
            self._data["meta"] = previous_meta
            raise

    # --- Budgets ---

    def list_budgets(self) -> list[BudgetState]:
        """All budgets, most recently updated first."""
        documents = sorted(
            self._data["budgets"].values(),
            key=lambda d: d.get("updatedAt", ""),
            reverse=True,
        )
        return [sanitize_budget(d) for d in documents]

    def create_budget(self, state: BudgetState) -> BudgetState:
        _check_limits(state)
        budget_id = state.id or generate_id()
        document = state.model_copy(update={"id": budget_id}).to_document()
        timestamp = _now()
        document["createdAt"] = timestamp
        document["updatedAt"] = timestamp

        self._commit(budget_id, document)
        logger.info("Created budget %s", budget_id)
        return sanitize_budget(document)

    def read_budget(self, budget_id: str) -> BudgetState:
        return sanitize_budget(self._document(budget_id))

    def update_budget(self, budget_id: str, state: BudgetState) -> BudgetState:
        """Replace a budget's contents, keeping its id and creation time.

        Raises :class:`BudgetLimitError` if a section or bucket is over its cap.
        """
        existing = self._document(budget_id)
        _check_limits(state)
        document = state.model_copy(update={"id": budget_id}).to_document()
        document["createdAt"] = existing.get("createdAt", _now())
        document["updatedAt"] = _now()

        self._commit(budget_id, document)
        return sanitize_budget(document)

    def delete_budget(self, budget_id: str):
        self._document(budget_id)
        self._commit(budget_id, None)
        logger.info("Deleted budget %s", budget_id)

    # --- Buckets ---

    def add_bucket(self, budget_id: str, section: str, bucket: Bucket) -> BudgetState:
        """Append *bucket* to a section and bump the bucket counter."""
        state = self.read_budget(budget_id)
        buckets = state.section(section)
        if len(buckets) >= MAX_BUCKETS_PER_SECTION:
            raise BudgetLimitError(
                f"Section '{section}' is full ({MAX_BUCKETS_PER_SECTION} buckets)."
            )
        bucket = bucket.model_copy(update={"order_index": len(buckets)})
        buckets.append(bucket)
        return self.update_budget(budget_id, state)

    def delete_bucket(self, budget_id: str, bucket_id: str) -> BudgetState:
        """Remove a bucket from whichever section holds it."""
        state = self.read_budget(budget_id)
        for section in SECTIONS:
            buckets = state.section(section)
            remaining = [b for b in buckets if b.id != bucket_id]
            if len(remaining) != len(buckets):
                setattr(state, section, remaining)
                return self.update_budget(budget_id, state)
        raise BucketNotFoundError(bucket_id)

    def bucket_count(self) -> int:
        return int(self._data["meta"].get("bucketCount", 0))
