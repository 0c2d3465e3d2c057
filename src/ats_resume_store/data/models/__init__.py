"""ORM models package for the local backend tables.

This package provides SQLAlchemy ORM models mirroring the hosted schema:
- Resume: profile fields and skill tags
- ResumeExperience: ordered work history rows
- ResumeEducation: ordered education rows
- ResumeCertification: ordered certification rows

All models inherit from the shared Base declarative class defined in data.db.
"""

from ats_resume_store.data.db import Base
from ats_resume_store.data.models.resume import (
    Resume,
    ResumeCertification,
    ResumeEducation,
    ResumeExperience,
)

__all__ = ["Base", "Resume", "ResumeCertification", "ResumeEducation", "ResumeExperience"]
