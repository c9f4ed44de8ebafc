"""
Retention sweeper — deletes finished jobs and their files after a while.

Each run:

    1. SELECT up to RETENTION_BATCH_SIZE jobs
       WHERE status IN (RETENTION_STATUSES) AND updated_at < now - retention
    2. Remove their blobs from storage
    3. DELETE the rows
    4. Remove orphaned blobs recorded in the Redis ledger by failed uploads

Blobs go before rows. If the process dies between (2) and (3), the rows are
still there and the next run removes them (blob removal is idempotent). The
other order could leave files in the bucket with nothing pointing at them.

Any error aborts the run. There is no partial success to report: the next
tick starts from scratch.

By default only DONE jobs are swept. REJECTED and FAILED jobs stay until
someone looks at them; add them to RETENTION_STATUSES to sweep them too.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from redis import Redis

from config.settings import settings
from models.job import utcnow
from store.blob_store import BlobStore
from store.job_store import JobStore
from store.ledger import acknowledge_orphans, pending_orphans

logger = logging.getLogger(__name__)


def retention_cutoff(now: datetime, retention_minutes: float) -> datetime:
    return now - timedelta(minutes=retention_minutes)


@dataclass
class SweepResult:
    deleted_jobs: int = 0
    deleted_files: int = 0
    orphans_removed: int = 0

    @property
    def empty(self) -> bool:
        return not (self.deleted_jobs or self.deleted_files or self.orphans_removed)


class RetentionSweeper:

    def __init__(
        self,
        job_store: JobStore,
        blob_store: BlobStore,
        redis_client: Optional[Redis] = None,
        retention_minutes: Optional[float] = None,
        statuses: Optional[Iterable[str]] = None,
        batch_size: Optional[int] = None,
        interval: Optional[float] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = job_store
        self._blobs = blob_store
        self._redis = redis_client
        self._retention = settings.DONE_RETENTION_MINUTES if retention_minutes is None else retention_minutes
        self._statuses = list(settings.RETENTION_STATUSES if statuses is None else statuses)
        self._batch_size = settings.RETENTION_BATCH_SIZE if batch_size is None else batch_size
        self._interval = settings.RETENTION_SWEEP_INTERVAL if interval is None else interval
        self._clock = clock

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="retention-sweeper", daemon=True)
        self._thread.start()
        logger.info(
            f"Retention sweeper started: {self._statuses} older than "
            f"{self._retention} minute(s), every {self._interval}s"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Retention sweeper stopped")

    def _run_loop(self) -> None:
        while not self._stop_event.wait(self._interval):
            try:
                result = self.sweep_once()
                if not result.empty:
                    logger.info(
                        f"Retention sweep: {result.deleted_jobs} job(s), "
                        f"{result.deleted_files} file(s), {result.orphans_removed} orphan(s) removed"
                    )
            except Exception as e:
                logger.error(f"Retention sweep aborted: {e}", exc_info=True)

    def sweep_once(self, now: Optional[datetime] = None) -> SweepResult:
        now = now or self._clock()
        cutoff = retention_cutoff(now, self._retention)
        result = SweepResult()

        expired = self._store.list(
            statuses=self._statuses,
            updated_before=cutoff,
            limit=self._batch_size,
        )
        if expired:
            file_refs = [job.file_ref for job in expired if job.file_ref]
            if file_refs:
                result.deleted_files = self._blobs.remove(file_refs)
            result.deleted_jobs = self._store.delete([job.id for job in expired])

        result.orphans_removed = self._sweep_orphans()
        return result

    def _sweep_orphans(self) -> int:
        if self._redis is None:
            return 0

        paths = pending_orphans(self._redis, self._batch_size)
        if not paths:
            return 0

        removed = self._blobs.remove(paths)
        cleared = acknowledge_orphans(self._redis, paths)
        logger.info(f"Cleared {cleared} orphaned blob record(s)")
        return removed
