"""
Stale-job recovery — gives crashed workers' jobs back to the queue.

A worker only touches updated_at twice per job: when it claims (→ PRINTING)
and when it finishes (→ DONE / FAILED). So a job that has sat in PRINTING
for longer than STALE_PRINTING_MINUTES belongs to a worker that died or hung.

Every worker runs reset_stale() at the start of every poll cycle:

    SELECT * FROM print_jobs
    WHERE status = 'PRINTING' AND updated_at < :cutoff

    -- for each row
    UPDATE print_jobs SET status = 'APPROVED', updated_at = :now
    WHERE id = :id AND status = 'PRINTING' AND updated_at < :cutoff

The UPDATE repeats both conditions. If the job finished, or was reset and
re-claimed by another worker, between the SELECT and the UPDATE, nothing
matches and the live claim is left alone.

If workers ever start sending progress heartbeats through updated_at, this
predicate stops detecting hung workers and must be redefined.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from lifecycle.errors import StoreError
from lifecycle.manager import next_updated_at
from lifecycle.status import RECOVERY_TRANSITION
from models.job import utcnow
from store.job_store import JobStore

logger = logging.getLogger(__name__)


class StaleJobRecovery:

    def __init__(
        self,
        job_store: JobStore,
        threshold_minutes: float,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = job_store
        self._threshold = timedelta(minutes=threshold_minutes)
        self._clock = clock

    def cutoff(self, now: datetime) -> datetime:
        return now - self._threshold

    def reset_stale(self, now: Optional[datetime] = None) -> int:
        """
        Move stale PRINTING jobs back to APPROVED. Returns how many were reset.

        A failure to list stale jobs propagates (the caller's cycle is
        meaningless without it). A failure on one job is logged and the
        sweep moves on to the next.
        """
        from_status, to_status = RECOVERY_TRANSITION
        now = now or self._clock()
        cutoff = self.cutoff(now)

        stale_jobs = self._store.list(statuses=[from_status], updated_before=cutoff)
        if not stale_jobs:
            return 0

        reset = 0
        for job in stale_jobs:
            try:
                updated = self._store.conditional_update(
                    job.id,
                    from_status,
                    updated_before=cutoff,
                    status=to_status,
                    updated_at=next_updated_at(job.updated_at, now),
                )
            except StoreError as e:
                logger.error(f"Failed to reset stale PRINTING job {job.id}: {e}")
                continue

            if updated is None:
                logger.info(f"Job {job.id} moved on before it could be reset, leaving it")
                continue

            reset += 1
            logger.info(f"Reset stale {from_status} -> {to_status} for job {job.id}")

        return reset
