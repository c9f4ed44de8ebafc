"""
Tests for stale-job recovery.

A job stuck in PRINTING past the threshold goes back to APPROVED; one inside
the threshold is somebody's live print and must be left alone.
"""

from datetime import timedelta

from lifecycle.errors import StoreError
from models.enums import JobStatus
from models.job import as_utc, utcnow
from worker.recovery import StaleJobRecovery


class FlakyUpdateStore:
    """Fails the conditional update for one specific job."""

    def __init__(self, store, failing_id):
        self._store = store
        self._failing_id = failing_id

    def list(self, **kwargs):
        return self._store.list(**kwargs)

    def conditional_update(self, job_id, *args, **kwargs):
        if job_id == self._failing_id:
            raise StoreError()
        return self._store.conditional_update(job_id, *args, **kwargs)


def test_stale_printing_job_is_reset(job_store, make_job):
    now = utcnow()
    stale = make_job(JobStatus.PRINTING, updated_at=now - timedelta(minutes=11))

    recovery = StaleJobRecovery(job_store, threshold_minutes=10)
    assert recovery.reset_stale(now) == 1

    job = job_store.get(stale.id)
    assert job.status == "APPROVED"
    assert as_utc(job.updated_at) >= now


def test_fresh_printing_job_is_untouched(job_store, make_job):
    now = utcnow()
    fresh = make_job(JobStatus.PRINTING, updated_at=now - timedelta(minutes=9))

    recovery = StaleJobRecovery(job_store, threshold_minutes=10)
    assert recovery.reset_stale(now) == 0
    assert job_store.get(fresh.id).status == "PRINTING"


def test_only_printing_jobs_are_considered(job_store, make_job):
    now = utcnow()
    old = now - timedelta(hours=2)
    approved = make_job(JobStatus.APPROVED, updated_at=old)
    done = make_job(JobStatus.DONE, updated_at=old)

    assert StaleJobRecovery(job_store, threshold_minutes=10).reset_stale(now) == 0
    assert job_store.get(approved.id).status == "APPROVED"
    assert job_store.get(done.id).status == "DONE"


def test_reset_is_guarded_against_fresh_claims(job_store, make_job):
    """
    If the job was re-claimed after the stale list was read, its updated_at
    moved past the cutoff and the guarded update matches nothing.
    """
    now = utcnow()
    job = make_job(JobStatus.PRINTING, updated_at=now - timedelta(minutes=30))
    cutoff = now - timedelta(minutes=10)

    # another worker's fresh claim bumps updated_at
    job_store.conditional_update(job.id, "PRINTING", updated_at=now)

    result = job_store.conditional_update(
        job.id, "PRINTING", updated_before=cutoff, status="APPROVED", updated_at=now
    )
    assert result is None
    assert job_store.get(job.id).status == "PRINTING"


def test_one_failing_job_does_not_abort_the_sweep(job_store, make_job):
    now = utcnow()
    broken = make_job(JobStatus.PRINTING, updated_at=now - timedelta(minutes=20))
    healthy = make_job(JobStatus.PRINTING, updated_at=now - timedelta(minutes=20))

    recovery = StaleJobRecovery(FlakyUpdateStore(job_store, broken.id), threshold_minutes=10)
    assert recovery.reset_stale(now) == 1

    assert job_store.get(broken.id).status == "PRINTING"
    assert job_store.get(healthy.id).status == "APPROVED"


def test_uses_clock_when_now_is_omitted(job_store, make_job):
    now = utcnow()
    stale = make_job(JobStatus.PRINTING, updated_at=now - timedelta(minutes=15))

    recovery = StaleJobRecovery(job_store, threshold_minutes=10, clock=lambda: now)
    assert recovery.reset_stale() == 1
    assert job_store.get(stale.id).status == "APPROVED"
