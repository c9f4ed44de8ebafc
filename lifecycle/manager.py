"""
Job lifecycle manager — the only way a job's status changes.

Every operation follows the same three steps:

    1. Fetch the current row                        → JobNotFoundError
    2. Check the edge against lifecycle/status.py   → InvalidTransitionError
    3. Conditional write guarded on the status we just read
                                                    → ConcurrentConflictError
                                                      if zero rows matched

Step 3 is what makes the whole system safe without locks. Two workers can
both read APPROVED in step 1, but only one UPDATE ... WHERE status='APPROVED'
can match. The loser gets ConcurrentConflictError: for a worker claim that
means "someone else got it, skip"; for an approver it means "retry".

updated_at is strictly increasing per job: a transition never writes a
timestamp at or before the previous one, even if two transitions land within
the same clock tick.

JobLifecycleManager runs on the sync store (worker threads);
AsyncJobLifecycleManager runs on the async store (FastAPI). The decision logic
is shared through the module-level helpers.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from lifecycle.errors import (
    ConcurrentConflictError,
    InvalidRequestError,
    InvalidTransitionError,
    JobNotFoundError,
)
from lifecycle.status import ALLOWED_STATUS_UPDATES, can_transition
from models.enums import JobStatus
from models.job import PrintJob, as_utc, utcnow
from store.job_store import AsyncJobStore, JobStore

logger = logging.getLogger(__name__)

FINISH_OUTCOMES = (JobStatus.DONE.value, JobStatus.FAILED.value)


def next_updated_at(previous: Optional[datetime], now: datetime) -> datetime:
    """`now`, unless that would not move past `previous`."""
    if previous is None:
        return now
    return max(as_utc(now), as_utc(previous) + timedelta(microseconds=1))


def _plan_transition(job: Optional[PrintJob], job_id, target: str, now: datetime) -> dict:
    """Validate the edge and return the fields for the conditional write."""
    if job is None:
        raise JobNotFoundError(job_id)
    if not can_transition(job.status, target):
        raise InvalidTransitionError(job.status, target)
    return {"status": target, "updated_at": next_updated_at(job.updated_at, now)}


def _check_outcome(outcome) -> str:
    value = outcome.value if isinstance(outcome, JobStatus) else str(outcome)
    if value not in FINISH_OUTCOMES:
        raise InvalidTransitionError(JobStatus.PRINTING.value, value)
    return value


def _check_status_update(status) -> str:
    value = status.value if isinstance(status, JobStatus) else str(status)
    if value not in ALLOWED_STATUS_UPDATES:
        raise InvalidRequestError(
            f"Invalid status. Allowed values: {', '.join(ALLOWED_STATUS_UPDATES)}"
        )
    return value


class JobLifecycleManager:

    def __init__(self, job_store: JobStore, clock: Callable[[], datetime] = utcnow):
        self._store = job_store
        self._clock = clock

    def approve(self, job_id: uuid.UUID) -> PrintJob:
        return self._transition(job_id, JobStatus.APPROVED.value)

    def reject(self, job_id: uuid.UUID) -> PrintJob:
        return self._transition(job_id, JobStatus.REJECTED.value)

    def claim(self, job_id: uuid.UUID) -> PrintJob:
        """APPROVED → PRINTING. Workers only."""
        return self._transition(job_id, JobStatus.PRINTING.value)

    def finish(self, job_id: uuid.UUID, outcome) -> PrintJob:
        """PRINTING → DONE | FAILED."""
        return self._transition(job_id, _check_outcome(outcome))

    def update_status(self, job_id: uuid.UUID, status) -> PrintJob:
        value = _check_status_update(status)
        if value == JobStatus.PRINTING.value:
            return self.claim(job_id)
        return self.finish(job_id, value)

    def _transition(self, job_id: uuid.UUID, target: str) -> PrintJob:
        job = self._store.get(job_id)
        fields = _plan_transition(job, job_id, target, self._clock())

        updated = self._store.conditional_update(job_id, job.status, **fields)
        if updated is None:
            raise ConcurrentConflictError(job_id, job.status)

        logger.info(f"Job {job_id}: {job.status} -> {updated.status}")
        return updated


class AsyncJobLifecycleManager:

    def __init__(self, job_store: AsyncJobStore, clock: Callable[[], datetime] = utcnow):
        self._store = job_store
        self._clock = clock

    async def approve(self, job_id: uuid.UUID) -> PrintJob:
        return await self._transition(job_id, JobStatus.APPROVED.value)

    async def reject(self, job_id: uuid.UUID) -> PrintJob:
        return await self._transition(job_id, JobStatus.REJECTED.value)

    async def claim(self, job_id: uuid.UUID) -> PrintJob:
        return await self._transition(job_id, JobStatus.PRINTING.value)

    async def finish(self, job_id: uuid.UUID, outcome) -> PrintJob:
        return await self._transition(job_id, _check_outcome(outcome))

    async def update_status(self, job_id: uuid.UUID, status) -> PrintJob:
        value = _check_status_update(status)
        if value == JobStatus.PRINTING.value:
            return await self.claim(job_id)
        return await self.finish(job_id, value)

    async def _transition(self, job_id: uuid.UUID, target: str) -> PrintJob:
        job = await self._store.get(job_id)
        fields = _plan_transition(job, job_id, target, self._clock())
        previous = job.status

        updated = await self._store.conditional_update(job_id, previous, **fields)
        if updated is None:
            raise ConcurrentConflictError(job_id, previous)

        logger.info(f"Job {job_id}: {previous} -> {updated.status}")
        return updated
