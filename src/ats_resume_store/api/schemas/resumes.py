"""Pydantic schemas for resume API endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ResumeSaveResponse(BaseModel):
    """Response schema for a saved resume."""

    id: str = Field(description="Identifier of the stored resume")
