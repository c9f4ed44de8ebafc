"""
Print worker — the polling loop that turns APPROVED jobs into paper.

Each poll cycle:

    1. Stale-job recovery          (PRINTING too long → APPROVED)
    2. List APPROVED jobs          (oldest first, FIFO)
    3. For each job:
         claim                     (APPROVED → PRINTING, compare-and-swap)
           lost the race?          → skip, another worker has it
         download to a temp file
         print
         finish                    (PRINTING → DONE, or FAILED on any error)
         remove the temp file      (always)

Jobs inside a cycle run one after another. Scaling out means running more
worker processes; they coordinate only through the claim.

Only one cycle runs at a time per worker. The state is an explicit
PollState (IDLE / POLLING) behind a lock; a trigger that arrives while
POLLING is dropped, not queued.

Failure policy:
- download/print failure → job FAILED, pushed to the Redis failure list for
  an operator. Never retried automatically.
- cannot even mark FAILED → logged; the job stays PRINTING until stale-job
  recovery hands it back.
- store failure while listing jobs → the cycle is abandoned, the loop logs it
  and tries again next tick.
"""

import logging
import os
import tempfile
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from redis import Redis
from redis.exceptions import RedisError

from config.settings import settings
from lifecycle.errors import (
    ConcurrentConflictError,
    InvalidTransitionError,
    JobNotFoundError,
    PrintQueueError,
    StoreError,
)
from lifecycle.manager import JobLifecycleManager
from models.enums import JobOutcome, JobStatus, PollState
from models.job import PrintJob
from printing.base import AbstractPrinter
from printing.options import options_for_job
from store.blob_store import BlobStore
from store.job_store import JobStore
from store.ledger import record_failed_job
from worker.recovery import StaleJobRecovery

logger = logging.getLogger(__name__)


@contextmanager
def working_copy(job_id, file_ref: str, temp_dir: Optional[str] = None) -> Iterator[str]:
    """
    Yield a temp file path for one job and remove it on every exit path.

    A failed removal is logged and swallowed: it must never change the job's
    outcome.
    """
    ext = os.path.splitext(file_ref)[1] or ".pdf"
    directory = temp_dir or tempfile.gettempdir()
    path = os.path.join(directory, f"print-job-{job_id}-{int(time.time() * 1000)}{ext}")
    try:
        yield path
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove working copy {path}: {e}")


class PrintWorker:

    def __init__(
        self,
        lifecycle: JobLifecycleManager,
        job_store: JobStore,
        blob_store: BlobStore,
        printer: AbstractPrinter,
        recovery: StaleJobRecovery,
        redis_client: Optional[Redis] = None,
        printer_name: str = "",
        poll_interval: Optional[float] = None,
        temp_dir: Optional[str] = None,
    ):
        self._lifecycle = lifecycle
        self._store = job_store
        self._blobs = blob_store
        self._printer = printer
        self._recovery = recovery
        self._redis = redis_client
        self._printer_name = printer_name
        self._poll_interval = settings.WORKER_POLL_INTERVAL if poll_interval is None else poll_interval
        self._temp_dir = temp_dir

        self._state = PollState.IDLE
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> PollState:
        return self._state

    # ── Timer ───────────────────────────────────────────────────

    def start(self) -> None:
        """Run poll cycles on a daemon thread, the first one immediately."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="print-poller", daemon=True)
        self._thread.start()
        logger.info(
            f"Print worker started ({self._printer.backend_name} backend), "
            f"polling every {self._poll_interval}s"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to stop. A cycle in progress finishes first."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Print worker stopped")

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.error(f"Poll cycle aborted: {e}", exc_info=not isinstance(e, StoreError))
            self._stop_event.wait(self._poll_interval)

    # ── Poll cycle ──────────────────────────────────────────────

    def poll_once(self) -> bool:
        """Run one cycle. Returns False if a cycle was already running (dropped)."""
        with self._lock:
            if self._state == PollState.POLLING:
                logger.debug("Poll trigger dropped, a cycle is already running")
                return False
            self._state = PollState.POLLING

        try:
            self._cycle()
        finally:
            with self._lock:
                self._state = PollState.IDLE
        return True

    def _cycle(self) -> None:
        self._recovery.reset_stale()

        jobs = self._store.list(statuses=[JobStatus.APPROVED.value], oldest_first=True)
        if not jobs:
            return

        logger.info(f"Found {len(jobs)} approved job(s)")
        for job in jobs:
            self.process_job(job)

    # ── Single job ──────────────────────────────────────────────

    def process_job(self, job: PrintJob) -> JobOutcome:
        try:
            claimed = self._lifecycle.claim(job.id)
        except (ConcurrentConflictError, InvalidTransitionError, JobNotFoundError):
            logger.info(f"Skip job {job.id} (already claimed by another worker)")
            return JobOutcome.SKIPPED
        except StoreError as e:
            logger.error(f"Could not claim job {job.id}: {e}")
            return JobOutcome.SKIPPED

        try:
            self._print(claimed)
            self._lifecycle.finish(claimed.id, JobStatus.DONE)
        except Exception as e:
            logger.error(
                f"Print failed for job {claimed.id}: {e}",
                exc_info=not isinstance(e, PrintQueueError),
            )
            self._mark_failed(claimed, str(e) or type(e).__name__)
            return JobOutcome.FAILED

        logger.info(f"Print success for job {claimed.id} (DONE)")
        return JobOutcome.DONE

    def _print(self, job: PrintJob) -> None:
        options = options_for_job(job.copies, job.page_range, self._printer_name)

        with working_copy(job.id, job.file_ref, self._temp_dir) as path:
            logger.info(f"Processing job {job.id} in {path}")
            data = self._blobs.get(job.file_ref)
            with open(path, "wb") as f:
                f.write(data)

            logger.info(
                f"Sending job {job.id} to printer "
                f"(copies={options.copies}, pages={options.page_range}, "
                f"printer={options.printer or 'default'})"
            )
            self._printer.print_file(path, options)

    def _mark_failed(self, job: PrintJob, reason: str) -> None:
        try:
            self._lifecycle.finish(job.id, JobStatus.FAILED)
            logger.info(f"Job {job.id} marked as FAILED")
        except PrintQueueError as e:
            logger.error(f"Failed to mark FAILED for job {job.id}: {e}")
            return

        if self._redis is None:
            return
        try:
            record_failed_job(self._redis, job, reason)
        except RedisError as e:
            logger.error(f"Could not record job {job.id} for operator follow-up: {e}")
