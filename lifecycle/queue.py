"""
Queue metrics for the customer-facing endpoints.

"Ahead of you" means every job a worker could still pick up or is printing
right now (APPROVED or PRINTING) that was created before yours. The ETA is a
flat AVG_PRINT_TIME_SECONDS per job; it is an estimate for a waiting screen,
not a promise.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from lifecycle.errors import JobNotFoundError
from lifecycle.status import ALLOWED_STATUS_VALUES
from models.enums import JobStatus
from models.job import as_utc
from store.job_store import AsyncJobStore

QUEUED_STATUSES = (JobStatus.APPROVED.value, JobStatus.PRINTING.value)


@dataclass
class QueuePosition:
    position: int
    estimated_seconds: int


async def queue_position(store: AsyncJobStore, job_id: uuid.UUID, avg_print_seconds: int) -> QueuePosition:
    job = await store.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)

    ahead = await store.count(QUEUED_STATUSES, created_before=job.created_at)
    return QueuePosition(position=ahead, estimated_seconds=ahead * avg_print_seconds)


async def queue_summary(store: AsyncJobStore, avg_print_seconds: int) -> dict:
    ahead = await store.count(QUEUED_STATUSES)
    return {"people_ahead": ahead, "estimated_seconds": ahead * avg_print_seconds}


def hourly_trend(created: list[datetime]) -> list[dict]:
    """Bucket creation times by UTC hour, oldest first: [{"hour": "09:00", "count": 4}, ...]"""
    buckets: dict[datetime, int] = {}
    for created_at in created:
        hour = as_utc(created_at).replace(minute=0, second=0, microsecond=0)
        buckets[hour] = buckets.get(hour, 0) + 1
    return [
        {"hour": f"{hour.hour:02d}:00", "count": count}
        for hour, count in sorted(buckets.items())
    ]


async def job_stats(store: AsyncJobStore, now: datetime) -> dict:
    counts = {status: 0 for status in ALLOWED_STATUS_VALUES}
    counts.update(await store.count_by_status())

    recent = await store.list_created_since(now - timedelta(hours=24))
    today_counts = {status: 0 for status in ALLOWED_STATUS_VALUES}
    for _, status in recent:
        if status in today_counts:
            today_counts[status] += 1

    return {
        "counts": counts,
        "today_counts": today_counts,
        "today_trend": hourly_trend([created_at for created_at, _ in recent]),
    }
