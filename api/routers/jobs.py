"""
Print job endpoints.

POST /api/jobs/upload            → Upload a document, create a PENDING job
GET  /api/jobs/                  → List jobs, optional ?status= filter (newest first)
GET  /api/jobs/stats             → Status counts + last-24h hourly trend
GET  /api/jobs/queue/summary     → How many jobs are ahead of a new upload
GET  /api/jobs/failures          → FAILED jobs awaiting operator follow-up
GET  /api/jobs/{job_id}          → A single job
GET  /api/jobs/{job_id}/queue    → Queue position and ETA for one job
PUT  /api/jobs/{job_id}/approve  → PENDING → APPROVED
PUT  /api/jobs/{job_id}/reject   → PENDING → REJECTED
PUT  /api/jobs/{job_id}/status   → worker-writable transitions (PRINTING/DONE/FAILED)

The API layer is intentionally thin: validate input, hand over to the
lifecycle manager, wrap the result. Errors are raised as PrintQueueError
subclasses and turned into {"success": false, "error": ...} by the handlers
in api/main.py.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from redis.asyncio import Redis

from api.dependencies import get_blob_store, get_job_store, get_lifecycle, get_redis
from api.schemas.job import (
    Envelope,
    FailedJobEntry,
    JobResponse,
    JobStatsResponse,
    QueuePositionResponse,
    QueueSummaryResponse,
    StatusUpdate,
)
from config.settings import settings
from lifecycle.errors import InvalidRequestError, JobNotFoundError
from lifecycle.intake import submit_job, validate_submission
from lifecycle.manager import AsyncJobLifecycleManager
from lifecycle.queue import job_stats, queue_position, queue_summary
from lifecycle.status import ALLOWED_STATUS_VALUES
from models.job import utcnow
from store.blob_store import BlobStore
from store.job_store import AsyncJobStore
from store.ledger import list_failed_jobs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"])


@router.post("/upload", response_model=Envelope[JobResponse], status_code=201)
async def upload_job(
    file: Optional[UploadFile] = File(None),
    copies: Optional[str] = Form(None),
    page_range: Optional[str] = Form(None, alias="pageRange"),
    store: AsyncJobStore = Depends(get_job_store),
    blob_store: BlobStore = Depends(get_blob_store),
    redis: Redis = Depends(get_redis),
) -> Envelope[JobResponse]:
    """
    Upload a document and create a PENDING job.

    The file goes to the blob store first, then the row is inserted. If the
    insert fails, the blob is removed again (or recorded for the sweeper).
    """
    if file is None:
        raise InvalidRequestError('No file uploaded. Use form-data key "file".')

    parsed_copies, parsed_range = validate_submission(copies, page_range)
    data = await file.read()

    job = await submit_job(
        store,
        blob_store,
        redis,
        data=data,
        filename=file.filename or "document",
        content_type=file.content_type,
        copies=parsed_copies,
        page_range=parsed_range,
    )
    return Envelope(data=JobResponse.model_validate(job))


@router.get("/stats", response_model=Envelope[JobStatsResponse])
async def get_job_stats(
    store: AsyncJobStore = Depends(get_job_store),
) -> Envelope[JobStatsResponse]:
    """Counts per status, overall and for the last 24 hours, plus an hourly trend."""
    stats = await job_stats(store, utcnow())
    return Envelope(data=JobStatsResponse(**stats))


@router.get("/queue/summary", response_model=Envelope[QueueSummaryResponse])
async def get_queue_summary(
    store: AsyncJobStore = Depends(get_job_store),
) -> Envelope[QueueSummaryResponse]:
    """Live queue pressure, shown to customers before they upload."""
    summary = await queue_summary(store, settings.AVG_PRINT_TIME_SECONDS)
    return Envelope(data=QueueSummaryResponse(**summary))


@router.get("/failures", response_model=Envelope[list[FailedJobEntry]])
async def get_failed_jobs(
    redis: Redis = Depends(get_redis),
) -> Envelope[list[FailedJobEntry]]:
    """
    Jobs a worker marked FAILED. Print failures are never retried
    automatically; this list is where an operator picks them up.
    """
    entries = await list_failed_jobs(redis)
    return Envelope(data=[FailedJobEntry(**entry) for entry in entries])


@router.get("/", response_model=Envelope[list[JobResponse]])
async def list_jobs(
    status: Optional[str] = Query(None, description="Filter by job status"),
    store: AsyncJobStore = Depends(get_job_store),
) -> Envelope[list[JobResponse]]:
    if status and status not in ALLOWED_STATUS_VALUES:
        raise InvalidRequestError(
            f"Invalid status filter. Allowed values: {', '.join(ALLOWED_STATUS_VALUES)}"
        )

    jobs = await store.list(statuses=[status] if status else None, oldest_first=False)
    logger.info(f"Fetched {len(jobs)} job(s) (status={status or 'ALL'})")
    return Envelope(data=[JobResponse.model_validate(j) for j in jobs])


@router.get("/{job_id}/queue", response_model=Envelope[QueuePositionResponse])
async def get_job_queue_position(
    job_id: UUID,
    store: AsyncJobStore = Depends(get_job_store),
) -> Envelope[QueuePositionResponse]:
    position = await queue_position(store, job_id, settings.AVG_PRINT_TIME_SECONDS)
    return Envelope(data=QueuePositionResponse(
        position=position.position,
        estimated_seconds=position.estimated_seconds,
    ))


@router.get("/{job_id}", response_model=Envelope[JobResponse])
async def get_job(
    job_id: UUID,
    store: AsyncJobStore = Depends(get_job_store),
) -> Envelope[JobResponse]:
    job = await store.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return Envelope(data=JobResponse.model_validate(job))


@router.put("/{job_id}/approve", response_model=Envelope[JobResponse])
async def approve_job(
    job_id: UUID,
    lifecycle: AsyncJobLifecycleManager = Depends(get_lifecycle),
) -> Envelope[JobResponse]:
    job = await lifecycle.approve(job_id)
    return Envelope(data=JobResponse.model_validate(job))


@router.put("/{job_id}/reject", response_model=Envelope[JobResponse])
async def reject_job(
    job_id: UUID,
    lifecycle: AsyncJobLifecycleManager = Depends(get_lifecycle),
) -> Envelope[JobResponse]:
    job = await lifecycle.reject(job_id)
    return Envelope(data=JobResponse.model_validate(job))


@router.put("/{job_id}/status", response_model=Envelope[JobResponse])
async def update_job_status(
    job_id: UUID,
    update: StatusUpdate,
    lifecycle: AsyncJobLifecycleManager = Depends(get_lifecycle),
) -> Envelope[JobResponse]:
    """
    Worker-facing transitions: APPROVED → PRINTING, PRINTING → DONE | FAILED.
    Approve/reject are deliberately not reachable from here.
    """
    logger.info(f"Status request for job {job_id}: {update.status or None}")
    job = await lifecycle.update_status(job_id, update.status)
    return Envelope(data=JobResponse.model_validate(job))
