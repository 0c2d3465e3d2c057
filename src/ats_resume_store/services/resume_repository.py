"""Resume repository: save, get, list and delete resume aggregates.

Every remote call goes through the resilient executor and is tagged with an
operation name for the logs. Operations return result pairs and never raise;
failures are logged and handed back in the ``error`` field.

Saving is full replace: the parent row is upserted by id, then each child
collection is deleted and re-inserted with dense ``order_index`` values.
There is no transaction spanning these calls, so a failure part-way through
can leave a partial write behind; the error is still reported.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from ats_resume_store.backend.handle import BackendHandle, Order, QueryResponse
from ats_resume_store.connection.executor import ResilientExecutor
from ats_resume_store.errors import NotFoundError
from ats_resume_store.models import (
    CertificationEntry,
    EducationEntry,
    ExperienceEntry,
    GetResult,
    ListResult,
    ResumeRecord,
    SaveResult,
)

logger = logging.getLogger(__name__)

__all__ = ["CHILD_KINDS", "RESUMES_TABLE", "ChildKind", "ResumeRepository"]

RESUMES_TABLE = "resumes"

# Scalar columns of the resumes table, besides id and created_at
_PROFILE_FIELDS = (
    "name",
    "email",
    "phone",
    "location",
    "linkedin",
    "website",
    "summary",
    "skills",
)


@dataclass(frozen=True, slots=True)
class ChildKind:
    """One ordered child collection of a resume."""

    label: str
    table: str
    attr: str
    model: type[BaseModel]


CHILD_KINDS = (
    ChildKind("experience", "resume_experiences", "experience", ExperienceEntry),
    ChildKind("education", "resume_education", "education", EducationEntry),
    ChildKind("certifications", "resume_certifications", "certifications", CertificationEntry),
)

_BY_ORDER = (Order("order_index"),)


def _resume_to_row(resume_id: str, record: ResumeRecord) -> dict[str, Any]:
    """Build the parent row for ``record``.

    created_at is left to the store so an update keeps the original value.
    """
    return {"id": resume_id, **record.model_dump(include=set(_PROFILE_FIELDS))}


def _children_to_rows(resume_id: str, entries: list[BaseModel]) -> list[dict[str, Any]]:
    return [
        {
            "id": str(uuid.uuid4()),
            "resume_id": resume_id,
            **entry.model_dump(),
            "order_index": index,
        }
        for index, entry in enumerate(entries)
    ]


def _row_to_resume(row: dict[str, Any], children: list[list[dict[str, Any]]]) -> ResumeRecord:
    data = {"id": row["id"], **{f: row.get(f) for f in _PROFILE_FIELDS}}
    if data["name"] is None:
        data["name"] = ""
    for kind, rows in zip(CHILD_KINDS, children, strict=True):
        data[kind.attr] = [kind.model.model_validate(r) for r in rows]
    return ResumeRecord.model_validate(data)


async def _gather(*aws: Awaitable[Any]) -> list[Any]:
    """Run ``aws`` concurrently, wait for all of them, then raise the first error."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class ResumeRepository:
    """Resume persistence over a backend reached through ``executor``."""

    def __init__(self, executor: ResilientExecutor) -> None:
        self._executor = executor

    async def _call(
        self, name: str, operation: Callable[[BackendHandle], Awaitable[QueryResponse]]
    ) -> Any:
        async def attempt(handle: BackendHandle) -> Any:
            return (await operation(handle)).unwrap()

        return await self._executor.execute(attempt, name)

    # --- save -----------------------------------------------------------

    async def save(self, record: ResumeRecord) -> SaveResult:
        """Insert or fully replace ``record``.

        Args:
            record: Aggregate to store. A missing id is generated.

        Returns:
            SaveResult with the resolved id, or with ``error`` set.
        """
        try:
            resume_id = await self._save(record)
        except Exception as exc:
            logger.exception("Error saving resume %s", record.id or "<new>")
            return SaveResult(error=exc)
        return SaveResult(id=resume_id)

    async def _save(self, record: ResumeRecord) -> str:
        resume_id = record.id or str(uuid.uuid4())
        row = _resume_to_row(resume_id, record)
        await self._call(
            "saveResume.resume", lambda h: h.upsert(RESUMES_TABLE, row, conflict_key="id")
        )
        await _gather(
            *(
                self._replace_children(resume_id, kind, getattr(record, kind.attr))
                for kind in CHILD_KINDS
            )
        )
        return resume_id

    async def _replace_children(
        self, resume_id: str, kind: ChildKind, entries: list[BaseModel]
    ) -> None:
        # The insert must not start before the delete has completed.
        await self._call(
            f"saveResume.{kind.label}.delete",
            lambda h: h.delete(kind.table, {"resume_id": resume_id}),
        )
        rows = _children_to_rows(resume_id, entries)
        if rows:
            await self._call(
                f"saveResume.{kind.label}.insert", lambda h: h.insert(kind.table, rows)
            )

    # --- get ------------------------------------------------------------

    async def get(self, resume_id: str) -> GetResult:
        """Load one resume with all three child collections.

        Returns:
            GetResult with the aggregate, or with ``error`` set
            (``NotFoundError`` when no such resume exists).
        """
        try:
            resume = await self._get(resume_id)
        except Exception as exc:
            if isinstance(exc, NotFoundError):
                logger.info("Resume %s not found", resume_id)
            else:
                logger.exception("Error fetching resume %s", resume_id)
            return GetResult(error=exc)
        return GetResult(resume=resume)

    async def _get(self, resume_id: str) -> ResumeRecord:
        parent_rows, *children = await _gather(
            self._call(
                "getResume.resume",
                lambda h: h.select(RESUMES_TABLE, {"id": resume_id}, limit=1),
            ),
            *(self._fetch_children("getResume", resume_id, kind) for kind in CHILD_KINDS),
        )
        if not parent_rows:
            raise NotFoundError(f"Resume '{resume_id}' not found", details={"id": resume_id})
        return _row_to_resume(parent_rows[0], children)

    async def _fetch_children(
        self, operation: str, resume_id: str, kind: ChildKind
    ) -> list[dict[str, Any]]:
        return await self._call(
            f"{operation}.{kind.label}",
            lambda h: h.select(kind.table, {"resume_id": resume_id}, order_by=_BY_ORDER),
        )

    # --- get_all --------------------------------------------------------

    async def get_all(self) -> ListResult:
        """Load every resume, newest first."""
        try:
            resumes = await self._get_all()
        except Exception as exc:
            logger.exception("Error fetching all resumes")
            return ListResult(error=exc)
        return ListResult(resumes=resumes)

    async def _get_all(self) -> list[ResumeRecord]:
        parent_rows = await self._call(
            "getAllResumes.resumes",
            lambda h: h.select(RESUMES_TABLE, order_by=(Order("created_at", ascending=False),)),
        )
        return list(await _gather(*(self._load(row) for row in parent_rows)))

    async def _load(self, row: dict[str, Any]) -> ResumeRecord:
        children = await _gather(
            *(self._fetch_children("getAllResumes", row["id"], kind) for kind in CHILD_KINDS)
        )
        return _row_to_resume(row, list(children))

    # --- delete ---------------------------------------------------------

    async def delete(self, resume_id: str) -> Exception | None:
        """Delete a resume; child rows go with it through the store's cascade.

        Returns:
            None on success, otherwise the error.
        """
        try:
            await self._call(
                "deleteResume", lambda h: h.delete(RESUMES_TABLE, {"id": resume_id})
            )
        except Exception as exc:
            logger.exception("Error deleting resume %s", resume_id)
            return exc
        return None
