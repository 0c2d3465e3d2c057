"""Data models and type definitions"""

from ats_resume_store.models.resume import (
    CertificationEntry,
    EducationEntry,
    ExperienceEntry,
    ResumeRecord,
)
from ats_resume_store.models.results import GetResult, ListResult, SaveResult

__all__ = [
    "CertificationEntry",
    "EducationEntry",
    "ExperienceEntry",
    "GetResult",
    "ListResult",
    "ResumeRecord",
    "SaveResult",
]
