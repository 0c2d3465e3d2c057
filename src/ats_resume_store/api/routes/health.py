"""Health check and reachability routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from ats_resume_store.api.dependencies import get_store
from ats_resume_store.api.schemas.status import ProbeResponse, ReachabilityResponse
from ats_resume_store.store import ResumeStore

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict[str, str]:
    """Return the current status of the API."""
    return {"status": "healthy"}


@router.get("/status", response_model=ReachabilityResponse)
def reachability_status(store: Annotated[ResumeStore, Depends(get_store)]) -> ReachabilityResponse:
    """Return the last observed backend reachability."""
    current = store.monitor.status
    return ReachabilityResponse(
        state=current.state.value,
        last_checked_at=current.last_checked_at,
        error=current.error,
        checking=store.monitor.is_checking,
    )


@router.post("/status/probe", response_model=ProbeResponse)
async def probe_backend(store: Annotated[ResumeStore, Depends(get_store)]) -> ProbeResponse:
    """Re-check backend reachability now (the UI's retry action)."""
    reachable = await store.monitor.probe_now()
    current = store.monitor.status
    return ProbeResponse(
        reachable=reachable,
        state=current.state.value,
        last_checked_at=current.last_checked_at,
        error=current.error,
        checking=store.monitor.is_checking,
    )
