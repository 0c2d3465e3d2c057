"""Resume routes for the API."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi import Path as PathParam

from ats_resume_store.api.dependencies import get_store, raise_for_error
from ats_resume_store.api.schemas.resumes import ResumeSaveResponse
from ats_resume_store.models import ResumeRecord
from ats_resume_store.store import ResumeStore

router = APIRouter(prefix="/resumes", tags=["resumes"])

StoreDep = Annotated[ResumeStore, Depends(get_store)]


@router.get("", response_model=list[ResumeRecord])
async def list_resumes(store: StoreDep) -> list[ResumeRecord]:
    """List all resumes, newest first."""
    result = await store.repository.get_all()
    if result.error is not None:
        raise_for_error(result.error)
    return result.resumes


@router.post("", response_model=ResumeSaveResponse, status_code=status.HTTP_201_CREATED)
async def create_resume(data: ResumeRecord, store: StoreDep) -> ResumeSaveResponse:
    """Store a resume, generating an id when none is supplied."""
    result = await store.repository.save(data)
    if result.error is not None:
        raise_for_error(result.error)
    return ResumeSaveResponse(id=result.id)


@router.get("/{resume_id}", response_model=ResumeRecord)
async def get_resume(
    resume_id: Annotated[str, PathParam(description="Resume ID")], store: StoreDep
) -> ResumeRecord:
    """Get one resume with its experience, education and certifications."""
    result = await store.repository.get(resume_id)
    if result.error is not None:
        raise_for_error(result.error)
    return result.resume


@router.put("/{resume_id}", response_model=ResumeSaveResponse)
async def replace_resume(
    resume_id: Annotated[str, PathParam(description="Resume ID")],
    data: ResumeRecord,
    store: StoreDep,
) -> ResumeSaveResponse:
    """Replace a resume and all of its child entries."""
    result = await store.repository.save(data.model_copy(update={"id": resume_id}))
    if result.error is not None:
        raise_for_error(result.error)
    return ResumeSaveResponse(id=result.id)


@router.delete("/{resume_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resume(
    resume_id: Annotated[str, PathParam(description="Resume ID")], store: StoreDep
) -> Response:
    """Delete a resume; its child entries are removed by the store."""
    error = await store.repository.delete(resume_id)
    if error is not None:
        raise_for_error(error)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
