"""Backend query capability shared by every handle implementation.

A handle exposes four table-scoped operations plus a cheap reachability
probe. Every operation returns a ``QueryResponse`` carrying either data or
an error; nothing raises out of a handle. Callers that prefer exceptions use
``QueryResponse.unwrap()``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, TypeVar

from ats_resume_store.errors import ResumeStoreError, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

Row = dict[str, Any]
Filters = Mapping[str, Any]


class Order(NamedTuple):
    """Sort key for ``select``."""

    column: str
    ascending: bool = True


@dataclass(slots=True)
class QueryResponse:
    """The ``(data, error)`` pair returned by every handle operation."""

    data: Any = None
    error: ResumeStoreError | None = None

    def unwrap(self) -> Any:
        """Return ``data`` or raise ``error``."""
        if self.error is not None:
            raise self.error
        return self.data


class BackendHandle(ABC):
    """Base class for handles built by the handle factory.

    Subclasses implement the blocking ``_select``/``_upsert``/``_insert``/
    ``_delete``/``_probe`` methods. The public coroutines run them in a worker
    thread and convert raised exceptions into ``QueryResponse.error``.
    """

    name = "backend"

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order_by: Sequence[Order] = (),
        limit: int | None = None,
    ) -> QueryResponse:
        return await self._run(self._select, table, dict(filters or {}), tuple(order_by), limit)

    async def upsert(self, table: str, row: Row, conflict_key: str = "id") -> QueryResponse:
        return await self._run(self._upsert, table, dict(row), conflict_key)

    async def insert(self, table: str, rows: Sequence[Row]) -> QueryResponse:
        if not rows:
            return QueryResponse(data=[])
        return await self._run(self._insert, table, [dict(r) for r in rows])

    async def delete(self, table: str, filters: Filters) -> QueryResponse:
        return await self._run(self._delete, table, dict(filters))

    async def probe(self) -> QueryResponse:
        """Issue the cheapest possible read to confirm the backend answers."""
        return await self._run(self._probe)

    def close(self) -> None:
        """Release transport resources. Safe to call more than once."""

    async def _run(self, func: Callable[..., T], *args: Any) -> QueryResponse:
        try:
            data = await asyncio.to_thread(func, *args)
        except Exception as exc:
            error = classify_error(exc)
            logger.debug("%s handle call %s failed: %r", self.name, func.__name__, error)
            return QueryResponse(error=error)
        return QueryResponse(data=data)

    @abstractmethod
    def _select(
        self, table: str, filters: Row, order_by: tuple[Order, ...], limit: int | None
    ) -> list[Row]: ...

    @abstractmethod
    def _upsert(self, table: str, row: Row, conflict_key: str) -> list[Row]: ...

    @abstractmethod
    def _insert(self, table: str, rows: list[Row]) -> list[Row]: ...

    @abstractmethod
    def _delete(self, table: str, filters: Row) -> list[Row]: ...

    @abstractmethod
    def _probe(self) -> bool: ...
