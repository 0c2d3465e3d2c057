"""Resume data-transfer models.

These are plain records with validation only. Row-level columns
(``resume_id``, ``order_index`` and child ``id``) live in the storage
mapping, not here, so an aggregate read back compares equal to the one that
was saved.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Entry(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ExperienceEntry(_Entry):
    """A single position held, dates as ISO strings."""

    company: str = ""
    position: str = ""
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None


class EducationEntry(_Entry):
    """A single course of study, dates as ISO strings."""

    institution: str = ""
    degree: str = ""
    field_of_study: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    description: str | None = None


class CertificationEntry(_Entry):
    """A certification or license."""

    name: str = ""
    issuer: str | None = None
    date: str | None = None
    description: str | None = None


class ResumeRecord(BaseModel):
    """A resume aggregate: profile fields plus three ordered child collections.

    Attributes:
        id: Stable identifier. ``None`` until the record is first saved.
        skills: Skill tags in display order.
        experience: Work history in display order.
        education: Education history in display order.
        certifications: Certifications in display order.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str = ""
    email: str | None = None
    phone: str | None = None
    location: str | None = None
    linkedin: str | None = None
    website: str | None = None
    summary: str | None = None
    skills: list[str] = Field(default_factory=list)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    certifications: list[CertificationEntry] = Field(default_factory=list)

    @field_validator("skills", "experience", "education", "certifications", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return [] if value is None else value
