"""In-process row store with the same query semantics as the REST backend."""

from __future__ import annotations

import copy
from datetime import datetime
from threading import Lock
from typing import Any, Sequence

from trivia_app.core.models import format_timestamp, parse_timestamp, utcnow
from trivia_app.persistence.gateway import (
    ATTEMPTS_TABLE,
    RESPONSES_TABLE,
    Filter,
    GatewayError,
    Order,
    PersistenceGateway,
)

# child table -> (foreign key column, parent table)
_CASCADES: dict[str, tuple[str, str]] = {
    RESPONSES_TABLE: ("attempt_id", ATTEMPTS_TABLE),
}


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and len(value) >= 19 and value[4:5] == "-" and value[10:11] == "T":
        try:
            return parse_timestamp(value)
        except ValueError:
            return value
    return value


def _matches(row: dict[str, Any], flt: Filter) -> bool:
    current = row.get(flt.column)
    if flt.op == "in":
        return current in flt.value
    if flt.op == "eq":
        return current == flt.value
    if flt.op == "neq":
        return current != flt.value
    if current is None or flt.value is None:
        # SQL comparison with NULL is never true.
        return False
    left, right = _comparable(current), _comparable(flt.value)
    if flt.op == "gt":
        return left > right
    if flt.op == "gte":
        return left >= right
    if flt.op == "lt":
        return left < right
    return left <= right


class InMemoryGateway(PersistenceGateway):
    """Thread-safe dictionary tables with auto-increment ids and cascades."""

    def __init__(self, *, configured: bool = True) -> None:
        self._lock = Lock()
        self._tables: dict[str, list[dict[str, Any]]] = {}
        self._counters: dict[str, int] = {}
        self._configured = configured
        self._failures: dict[tuple[str, str], GatewayError] = {}

    def is_configured(self) -> bool:
        return self._configured

    def fail_next(self, operation: str, table: str, error: GatewayError | None = None) -> None:
        """Make the next ``operation`` on ``table`` raise (used to simulate outages)."""
        with self._lock:
            self._failures[(operation, table)] = error or GatewayError(
                f"{operation} on {table} failed", code="SIMULATED"
            )

    def _maybe_fail(self, operation: str, table: str) -> None:
        error = self._failures.pop((operation, table), None)
        if error is not None:
            raise error

    def rows(self, table: str) -> list[dict[str, Any]]:
        """Return a deep copy of every row in ``table`` (test helper)."""
        with self._lock:
            return copy.deepcopy(self._tables.get(table, []))

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        with self._lock:
            self._maybe_fail("select", table)
            matched = [row for row in self._tables.get(table, []) if all(_matches(row, f) for f in filters)]
            # Stable sorts applied from the least significant key keep the
            # multi-column ordering; NULLs sort last like PostgreSQL defaults.
            for order in reversed(order_by):
                present = [row for row in matched if row.get(order.column) is not None]
                missing = [row for row in matched if row.get(order.column) is None]
                present.sort(key=lambda row: _comparable(row[order.column]), reverse=order.descending)
                matched = present + missing
            if limit is not None:
                matched = matched[:limit]
            return copy.deepcopy(matched)

    def insert(self, table: str, rows: dict[str, Any] | Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        batch = [rows] if isinstance(rows, dict) else list(rows)
        with self._lock:
            self._maybe_fail("insert", table)
            stored: list[dict[str, Any]] = []
            target = self._tables.setdefault(table, [])
            for row in batch:
                record = copy.deepcopy(row)
                self._counters[table] = self._counters.get(table, 0) + 1
                record.setdefault("id", self._counters[table])
                record.setdefault("created_at", format_timestamp(utcnow()))
                target.append(record)
                stored.append(copy.deepcopy(record))
            return stored

    def update(self, table: str, filters: Sequence[Filter], patch: dict[str, Any]) -> list[dict[str, Any]]:
        with self._lock:
            self._maybe_fail("update", table)
            updated: list[dict[str, Any]] = []
            for row in self._tables.get(table, []):
                if all(_matches(row, f) for f in filters):
                    row.update(copy.deepcopy(patch))
                    updated.append(copy.deepcopy(row))
            return updated

    def delete(self, table: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        with self._lock:
            self._maybe_fail("delete", table)
            removed = self._delete_locked(table, filters)
            return copy.deepcopy(removed)

    def _delete_locked(self, table: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        rows = self._tables.get(table, [])
        removed = [row for row in rows if all(_matches(row, f) for f in filters)]
        if not removed:
            return []
        removed_ids = tuple(row["id"] for row in removed)
        self._tables[table] = [row for row in rows if row["id"] not in removed_ids]
        for child_table, (foreign_key, parent_table) in _CASCADES.items():
            if parent_table == table:
                self._delete_locked(child_table, [Filter(foreign_key, "in", removed_ids)])
        return removed
