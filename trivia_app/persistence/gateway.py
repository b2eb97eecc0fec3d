"""Row-store contract shared by the REST backend and the in-memory store.

Architecture note:
    The game only ever needs filter/sort/limit queries plus row inserts,
    patches and deletes over four tables, so the gateway exposes exactly that
    and nothing resembling an ORM. Services own the mapping between rows and
    domain dataclasses; gateways only move dictionaries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from typing import Any, Iterable, Sequence

QUESTIONS_TABLE = "questions"
LEADERBOARD_TABLE = "leaderboard"
ATTEMPTS_TABLE = "quiz_attempts"
RESPONSES_TABLE = "quiz_attempt_responses"

FILTER_OPERATORS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "in"})


class GatewayError(Exception):
    """Raised when the backend rejects or cannot complete a request."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


@dataclass(frozen=True, slots=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True, slots=True)
class Order:
    column: str
    descending: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, "neq", value)


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lt(column: str, value: Any) -> Filter:
    return Filter(column, "lt", value)


def in_(column: str, values: Iterable[Any]) -> Filter:
    return Filter(column, "in", tuple(values))


def desc(column: str) -> Order:
    return Order(column, descending=True)


def asc(column: str) -> Order:
    return Order(column, descending=False)


class PersistenceGateway(ABC):
    """Generic key-indexed row store reachable through request/response calls."""

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials are present; callers degrade to no-ops otherwise."""

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def insert(self, table: str, rows: dict[str, Any] | Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert one or more rows and return them as stored (ids, defaults)."""

    @abstractmethod
    def update(self, table: str, filters: Sequence[Filter], patch: dict[str, Any]) -> list[dict[str, Any]]:
        """Apply ``patch`` to every matching row and return the updated rows."""

    @abstractmethod
    def delete(self, table: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        """Delete every matching row and return the deleted rows."""

    def close(self) -> None:
        """Release network resources, if any."""


def diagnose(error: GatewayError) -> str | None:
    """Translate common backend failures into an operator-facing hint."""
    message = (error.message or "").lower()
    code = error.code or ""
    if code == "PGRST116" or "relation" in message or "does not exist" in message:
        return "The table does not exist. Create the schema in the backend before playing."
    if code == "42501" or "permission denied" in message or "policy" in message:
        return "Row level security rejected the request. Check the table policies."
    if "jwt" in message or "invalid" in message:
        return "The backend key looks invalid. Check TRIVIA_BACKEND_KEY."
    return None


def log_gateway_error(logger: logging.Logger, action: str, error: GatewayError) -> None:
    """Log a failed backend call together with the operator hint, if any."""
    logger.error("Failed to %s: %s", action, error)
    if error.details:
        logger.error("Details: %s", error.details)
    hint = diagnose(error)
    if hint:
        logger.error("Hint: %s", hint)
