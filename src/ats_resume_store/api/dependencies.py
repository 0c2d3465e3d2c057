"""Shared dependencies for API routes."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from ats_resume_store.errors import NotFoundError, PermanentRequestError, TransientNetworkError
from ats_resume_store.store import ResumeStore


def get_store(request: Request) -> ResumeStore:
    """Return the store created by the application lifespan."""
    return request.app.state.store


def raise_for_error(error: Exception) -> None:
    """Translate a repository error into an HTTP error response.

    Raises:
        HTTPException: 404 for missing resumes, 503 when the backend is
            unreachable, 400 for rejected requests, 500 otherwise.
    """
    if isinstance(error, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, TransientNetworkError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, PermanentRequestError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    raise HTTPException(status_code=code, detail=str(error))
