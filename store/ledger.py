"""
Reconciliation ledger — Redis lists for things a human or a later sweep must
come back to.

Two lists:
- ORPHAN_BLOBS_KEY: storage paths uploaded for a job whose row was never
  inserted, and whose compensating delete also failed. The retention sweeper
  drains this list on every run.
- FAILED_JOBS_KEY: one JSON entry per job a worker marked FAILED. Print
  failures are never retried automatically; this is the operator's to-do
  list, exposed at GET /api/jobs/failures.

Orphans are read with LRANGE and only removed from the list after the blobs
are gone, so a crash between the two leaves the entries in place for the next
sweep. Each removed path is dropped with LREM by value, never by position:
another sweeper may have drained the same entries already, and paths pushed
meanwhile must survive.

Every client is built with socket timeouts, so a hung Redis fails the call
instead of stalling a poll cycle, a sweep or an upload.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Iterable

from redis import Redis
from redis.asyncio import Redis as AsyncRedis

from config.settings import settings
from models.job import PrintJob

logger = logging.getLogger(__name__)

ORPHAN_BLOBS_KEY = "printqueue:orphan_blobs"
FAILED_JOBS_KEY = "printqueue:failed_jobs"


def connect_redis() -> Redis:
    """Sync client for worker and sweeper processes."""
    return Redis.from_url(
        settings.redis_url,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )


def connect_async_redis() -> AsyncRedis:
    """Async client for the API."""
    return AsyncRedis.from_url(
        settings.redis_url,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )


def _decode(raw) -> str:
    return raw.decode() if isinstance(raw, bytes) else raw


def failed_job_entry(job: PrintJob, reason: str) -> str:
    return json.dumps({
        "job_id": str(job.id),
        "file_ref": job.file_ref,
        "copies": job.copies,
        "page_range": job.page_range,
        "error": reason,
        "failed_at": datetime.now(timezone.utc).isoformat(),
    })


def record_failed_job(redis_client: Redis, job: PrintJob, reason: str) -> None:
    redis_client.rpush(FAILED_JOBS_KEY, failed_job_entry(job, reason))


def pending_orphans(redis_client: Redis, limit: int) -> list[str]:
    return [_decode(raw) for raw in redis_client.lrange(ORPHAN_BLOBS_KEY, 0, limit - 1)]


def acknowledge_orphans(redis_client: Redis, paths: Iterable[str]) -> int:
    """Drop one ledger entry per path whose blob is gone. Returns entries dropped."""
    pipe = redis_client.pipeline()
    for path in paths:
        pipe.lrem(ORPHAN_BLOBS_KEY, 1, path)
    return sum(pipe.execute())


async def record_orphan_blob(redis_client: AsyncRedis, path: str) -> None:
    await redis_client.rpush(ORPHAN_BLOBS_KEY, path)
    logger.warning(f"Recorded orphaned blob {path} for the next retention sweep")


async def list_failed_jobs(redis_client: AsyncRedis) -> list[dict]:
    raw_entries = await redis_client.lrange(FAILED_JOBS_KEY, 0, -1)
    return [json.loads(entry) for entry in raw_entries]
