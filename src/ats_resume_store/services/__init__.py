"""Services"""

from ats_resume_store.services.resume_repository import ResumeRepository

__all__ = ["ResumeRepository"]
