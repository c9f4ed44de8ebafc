"""
Tests for the JobStore against in-memory SQLite.

The async flavour issues the same statements; its endpoints are covered
through the API tests, its reporting queries here.
"""

import uuid
from datetime import timedelta

import pytest

from models.enums import JobStatus
from models.job import utcnow
from store.job_store import AsyncJobStore


def test_insert_and_get(job_store, make_job):
    job = make_job(JobStatus.PENDING, copies=2, page_range="1-3")

    loaded = job_store.get(job.id)
    assert loaded.status == "PENDING"
    assert loaded.copies == 2
    assert loaded.page_range == "1-3"
    assert loaded.original_filename == "doc.pdf"


def test_get_unknown_returns_none(job_store):
    assert job_store.get(uuid.uuid4()) is None


def test_conditional_update_applies_on_match(job_store, make_job):
    job = make_job(JobStatus.APPROVED)

    updated = job_store.conditional_update(job.id, "APPROVED", status=JobStatus.PRINTING)

    assert updated is not None
    assert updated.status == "PRINTING"


def test_conditional_update_returns_none_on_mismatch(job_store, make_job):
    job = make_job(JobStatus.PENDING)

    assert job_store.conditional_update(job.id, "APPROVED", status="PRINTING") is None
    assert job_store.get(job.id).status == "PENDING"


def test_conditional_update_respects_updated_before(job_store, make_job):
    now = utcnow()
    job = make_job(JobStatus.PRINTING, updated_at=now)

    assert job_store.conditional_update(
        job.id, "PRINTING", updated_before=now - timedelta(minutes=1), status="APPROVED"
    ) is None
    assert job_store.conditional_update(
        job.id, "PRINTING", updated_before=now + timedelta(minutes=1), status="APPROVED"
    ).status == "APPROVED"


def test_list_filters_and_orders(job_store, make_job):
    now = utcnow()
    second = make_job(JobStatus.APPROVED, created_at=now - timedelta(minutes=1))
    first = make_job(JobStatus.APPROVED, created_at=now - timedelta(minutes=2))
    make_job(JobStatus.PENDING)

    oldest_first = job_store.list(statuses=["APPROVED"])
    assert [j.id for j in oldest_first] == [first.id, second.id]

    newest_first = job_store.list(statuses=[JobStatus.APPROVED], oldest_first=False)
    assert [j.id for j in newest_first] == [second.id, first.id]

    assert len(job_store.list()) == 3
    assert len(job_store.list(limit=1)) == 1


def test_list_updated_before(job_store, make_job):
    now = utcnow()
    old = make_job(JobStatus.DONE, updated_at=now - timedelta(minutes=10))
    make_job(JobStatus.DONE, updated_at=now)

    found = job_store.list(statuses=["DONE"], updated_before=now - timedelta(minutes=5))
    assert [j.id for j in found] == [old.id]


def test_delete_and_count(job_store, make_job):
    a = make_job(JobStatus.DONE)
    b = make_job(JobStatus.DONE)
    make_job(JobStatus.PENDING)

    assert job_store.count(["DONE"]) == 2
    assert job_store.delete([a.id, b.id]) == 2
    assert job_store.count(["DONE"]) == 0
    assert job_store.count(["PENDING", "DONE"]) == 1
    assert job_store.delete([]) == 0


# ── Async store ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_async_store_reports_and_lists_recent_jobs(async_session):
    store = AsyncJobStore(async_session, max_retries=0)
    now = utcnow()
    await store.insert(file_ref="jobs/1-a.pdf", status="PENDING", created_at=now - timedelta(hours=1))
    await store.insert(file_ref="jobs/2-b.pdf", status="DONE", created_at=now - timedelta(minutes=5))
    await store.insert(file_ref="jobs/3-c.pdf", status="DONE", created_at=now - timedelta(days=2))

    recent = await store.list_created_since(now - timedelta(hours=24))
    assert [status for _, status in recent] == ["PENDING", "DONE"]

    assert await store.count_by_status() == {"PENDING": 1, "DONE": 2}
    assert len(await store.list(statuses=["DONE"])) == 2
