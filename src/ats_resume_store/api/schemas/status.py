"""Pydantic schemas for reachability endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ReachabilityResponse(BaseModel):
    """Current backend reachability as seen by the monitor."""

    state: Literal["unknown", "active", "lost"]
    last_checked_at: datetime | None = None
    error: str | None = None
    checking: bool = Field(False, description="Whether a probe is in flight")


class ProbeResponse(ReachabilityResponse):
    """Result of a manual re-check."""

    reachable: bool
