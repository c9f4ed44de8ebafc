"""
Pydantic schemas for the /api/jobs endpoints.

These are NOT database models — they define the HTTP API contract. Every
successful response is wrapped in Envelope: {"success": true, "data": ...}.
Errors never go through these models; api/main.py's exception handlers
produce {"success": false, "error": "..."} directly.
"""

from datetime import datetime
from typing import Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


class JobResponse(BaseModel):
    """A single print job as returned by every job endpoint."""

    id: UUID
    file_ref: str
    original_filename: Optional[str] = None
    content_type: Optional[str] = None
    status: str
    copies: int
    page_range: str
    created_at: datetime
    updated_at: datetime

    # read from SQLAlchemy model attributes (job.status) instead of a dict
    model_config = {"from_attributes": True}


class StatusUpdate(BaseModel):
    """Request body for PUT /api/jobs/{id}/status. Checked against ALLOWED_STATUS_UPDATES."""

    status: str = ""


class QueuePositionResponse(BaseModel):
    position: int            # APPROVED/PRINTING jobs created before this one
    estimated_seconds: int


class QueueSummaryResponse(BaseModel):
    people_ahead: int
    estimated_seconds: int


class HourlyCount(BaseModel):
    hour: str                # "HH:00", UTC
    count: int


class JobStatsResponse(BaseModel):
    counts: dict[str, int]
    today_counts: dict[str, int]
    today_trend: list[HourlyCount]


class FailedJobEntry(BaseModel):
    job_id: str
    file_ref: Optional[str] = None
    copies: Optional[int] = None
    page_range: Optional[str] = None
    error: Optional[str] = None
    failed_at: Optional[str] = None
