"""PostgREST (Supabase-style) gateway built on httpx."""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Sequence

import httpx

from trivia_app.config import is_valid_backend_key
from trivia_app.core.models import format_timestamp
from trivia_app.persistence.gateway import Filter, GatewayError, Order, PersistenceGateway

logger = logging.getLogger(__name__)

_REST_PREFIX = "/rest/v1"


def _encode_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_timestamp(value)
    return str(value)


def _encode_list_item(value: Any) -> str:
    text = _encode_scalar(value)
    if any(char in text for char in ',()"'):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


def encode_filter(flt: Filter) -> tuple[str, str]:
    """Render a filter in PostgREST query syntax, e.g. ``("score", "gte.5")``."""
    if flt.op == "in":
        items = ",".join(_encode_list_item(item) for item in flt.value)
        return flt.column, f"in.({items})"
    if flt.value is None and flt.op in ("eq", "neq"):
        return flt.column, "is.null" if flt.op == "eq" else "not.is.null"
    return flt.column, f"{flt.op}.{_encode_scalar(flt.value)}"


def encode_order(order_by: Sequence[Order]) -> str:
    return ",".join(f"{order.column}.{'desc' if order.descending else 'asc'}" for order in order_by)


class RestGateway(PersistenceGateway):
    """Talks to ``{base_url}/rest/v1/{table}`` with an API key."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._configured = bool(self._base_url) and is_valid_backend_key(api_key)
        if not self._configured:
            logger.warning(
                "Backend credentials missing or invalid; persistence is disabled. "
                "Set TRIVIA_BACKEND_URL and TRIVIA_BACKEND_KEY."
            )
        self._client = httpx.Client(
            base_url=f"{self._base_url or 'http://localhost'}{_REST_PREFIX}",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Prefer": "return=representation",
            },
            timeout=timeout,
            transport=transport,
        )

    def is_configured(self) -> bool:
        return self._configured

    def close(self) -> None:
        self._client.close()

    def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order_by: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: list[tuple[str, str]] = [("select", "*")]
        params.extend(encode_filter(flt) for flt in filters)
        if order_by:
            params.append(("order", encode_order(order_by)))
        if limit is not None:
            params.append(("limit", str(limit)))
        return self._request("GET", table, params=params)

    def insert(self, table: str, rows: dict[str, Any] | Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
        payload = rows if isinstance(rows, dict) else list(rows)
        return self._request("POST", table, json=payload)

    def update(self, table: str, filters: Sequence[Filter], patch: dict[str, Any]) -> list[dict[str, Any]]:
        params = [encode_filter(flt) for flt in filters]
        return self._request("PATCH", table, params=params, json=patch)

    def delete(self, table: str, filters: Sequence[Filter]) -> list[dict[str, Any]]:
        params = [encode_filter(flt) for flt in filters]
        return self._request("DELETE", table, params=params)

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
    ) -> list[dict[str, Any]]:
        try:
            response = self._client.request(method, f"/{table}", params=params, json=json)
        except httpx.HTTPError as exc:
            raise GatewayError(f"{method} {table} failed: {exc}", code="NETWORK") from exc

        if response.is_error:
            raise self._error_from_response(response)
        if not response.content:
            return []
        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayError(
                f"{method} {table} returned a body that is not JSON",
                code="INVALID_RESPONSE",
                details=response.text[:200],
            ) from exc
        if isinstance(body, dict):
            return [body]
        return list(body)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> GatewayError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return GatewayError(
            body.get("message") or f"HTTP {response.status_code}",
            code=body.get("code") or str(response.status_code),
            details=body.get("details"),
            hint=body.get("hint"),
        )
