"""Hosted backend handle speaking the PostgREST dialect over HTTPS.

Requests go to ``<base_url>/rest/v1/<table>`` with equality filters encoded
as ``column=eq.value`` query parameters. HTTP failures and transport
exceptions are mapped into the error taxonomy so the executor can decide
whether to retry.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

import requests

from ats_resume_store.backend.handle import BackendHandle, Order, QueryResponse, Row
from ats_resume_store.errors import PermanentRequestError, error_from_status

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROBE_TABLE = "resumes"


def _encode_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class RestHandle(BackendHandle):
    """Handle wrapping one ``requests.Session``.

    Args:
        base_url: Project URL, e.g. ``https://xyz.supabase.co``.
        api_key: Access key sent as ``apikey`` and bearer token.
        headers: Extra headers applied to every request.
        schema: Database schema selected via ``Accept-Profile``.
        timeout: Per-request timeout in seconds.
        events_per_second: Maximum request rate for this handle.
        session: Optional pre-built session (tests inject a mock here).
    """

    name = "rest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        headers: dict[str, str] | None = None,
        schema: str = "public",
        timeout: float = 10.0,
        events_per_second: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._min_interval = 1.0 / events_per_second if events_per_second > 0 else 0.0
        self._next_slot = 0.0
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Accept-Profile": schema,
                "Content-Profile": schema,
                "Content-Type": "application/json",
                **(headers or {}),
            }
        )

    async def _run(self, func: Callable[..., T], *args: Any) -> QueryResponse:
        await self._throttle()
        return await super()._run(func, *args)

    async def _throttle(self) -> None:
        if not self._min_interval:
            return
        now = time.monotonic()
        slot = max(now, self._next_slot)
        self._next_slot = slot + self._min_interval
        if slot > now:
            await asyncio.sleep(slot - now)

    def close(self) -> None:
        self._session.close()

    def _url(self, table: str) -> str:
        return f"{self._base_url}/rest/v1/{table}"

    def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str = "return=representation",
    ) -> list[Row]:
        if not self._base_url or not self._api_key:
            raise PermanentRequestError("Backend credentials are not configured", code="CFG_MISSING")

        response = self._session.request(
            method,
            self._url(table),
            params=params,
            json=json,
            headers={"Prefer": prefer},
            timeout=self._timeout,
        )
        if response.status_code >= 400:
            raise self._error_for(response)
        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    @staticmethod
    def _error_for(response: requests.Response):
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or f"{response.status_code} {response.reason or 'error'}"
        details = {k: body[k] for k in ("details", "hint") if body.get(k)}
        return error_from_status(
            response.status_code, message, code=body.get("code"), details=details
        )

    def _select(
        self, table: str, filters: Row, order_by: tuple[Order, ...], limit: int | None
    ) -> list[Row]:
        params = {"select": "*"}
        params.update({column: _encode_value(value) for column, value in filters.items()})
        if order_by:
            params["order"] = ",".join(
                f"{o.column}.{'asc' if o.ascending else 'desc'}" for o in order_by
            )
        if limit is not None:
            params["limit"] = str(limit)
        return self._request("GET", table, params=params)

    def _upsert(self, table: str, row: Row, conflict_key: str) -> list[Row]:
        return self._request(
            "POST",
            table,
            params={"on_conflict": conflict_key},
            json=row,
            prefer="resolution=merge-duplicates,return=representation",
        )

    def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        return self._request("POST", table, json=rows)

    def _delete(self, table: str, filters: Row) -> list[Row]:
        if not filters:
            raise PermanentRequestError("DELETE requires a filter")
        params = {column: _encode_value(value) for column, value in filters.items()}
        return self._request("DELETE", table, params=params, prefer="return=minimal")

    def _probe(self) -> bool:
        self._request("GET", PROBE_TABLE, params={"select": "id", "limit": "1"})
        return True
