"""Local backend handle backed by SQLAlchemy.

Implements the table-scoped capability directly against the ORM tables in
``data.models`` so the repository runs unchanged against a local database.
Cascade on delete is left to the database's foreign keys.
"""

from __future__ import annotations

from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.engine import Engine

from ats_resume_store.backend.handle import BackendHandle, Order, Row
from ats_resume_store.data.db import Base, get_session
from ats_resume_store.errors import PermanentRequestError

PROBE_TABLE = "resumes"


class SqlHandle(BackendHandle):
    """Handle issuing queries through a shared SQLAlchemy engine."""

    name = "sql"

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _table(self, name: str) -> Table:
        table = Base.metadata.tables.get(name)
        if table is None:
            raise PermanentRequestError(f"Unknown table '{name}'", code="42P01")
        return table

    def _where(self, table: Table, filters: Row) -> list:
        clauses = []
        for column, value in filters.items():
            if column not in table.c:
                raise PermanentRequestError(
                    f"Column '{column}' does not exist on '{table.name}'", code="42703"
                )
            clauses.append(table.c[column] == value)
        return clauses

    def _select(
        self, table: str, filters: Row, order_by: tuple[Order, ...], limit: int | None
    ) -> list[Row]:
        tbl = self._table(table)
        stmt = select(tbl).where(*self._where(tbl, filters))
        for order in order_by:
            column = tbl.c[order.column]
            stmt = stmt.order_by(column.asc() if order.ascending else column.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with get_session(self._engine) as session:
            return [dict(row._mapping) for row in session.execute(stmt)]

    def _upsert(self, table: str, row: Row, conflict_key: str) -> list[Row]:
        tbl = self._table(table)
        if conflict_key not in row:
            raise PermanentRequestError(f"Upsert row is missing conflict key '{conflict_key}'")
        key_clause = tbl.c[conflict_key] == row[conflict_key]
        with get_session(self._engine) as session:
            exists = session.execute(select(tbl.c[conflict_key]).where(key_clause)).first()
            if exists:
                values = {k: v for k, v in row.items() if k != conflict_key}
                if values:
                    session.execute(update(tbl).where(key_clause).values(**values))
            else:
                session.execute(insert(tbl).values(**row))
        return [row]

    def _insert(self, table: str, rows: list[Row]) -> list[Row]:
        tbl = self._table(table)
        with get_session(self._engine) as session:
            session.execute(insert(tbl), rows)
        return rows

    def _delete(self, table: str, filters: Row) -> list[Row]:
        if not filters:
            raise PermanentRequestError("DELETE requires a filter")
        tbl = self._table(table)
        with get_session(self._engine) as session:
            session.execute(delete(tbl).where(*self._where(tbl, filters)))
        return []

    def _probe(self) -> bool:
        tbl = self._table(PROBE_TABLE)
        with get_session(self._engine) as session:
            session.execute(select(func.count()).select_from(tbl).limit(1)).scalar()
        return True
