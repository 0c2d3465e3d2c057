"""Result pairs returned by the repository.

Repository operations never raise past their own boundary; callers check
``error`` (or ``ok``) instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ats_resume_store.models.resume import ResumeRecord


@dataclass(slots=True)
class SaveResult:
    """Outcome of ``save``: the resolved identifier, or ``""`` on failure."""

    id: str = ""
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class GetResult:
    """Outcome of ``get``: the aggregate, or ``None`` on failure."""

    resume: ResumeRecord | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class ListResult:
    """Outcome of ``get_all``: every aggregate, or ``[]`` on failure."""

    resumes: list[ResumeRecord] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
