"""
Job store — the only code that reads or writes the print_jobs table.

The contract the rest of the project relies on:

    get(id)                                   → PrintJob | None
    insert(**fields)                          → PrintJob
    conditional_update(id, expected, **f)     → PrintJob | None   (None ⇒ conflict)
    list(statuses, updated_before, ...)       → [PrintJob]
    delete(ids)                               → rows deleted
    count(statuses, created_before)           → int

conditional_update() is the compare-and-swap every transition goes through:

    UPDATE print_jobs SET status = :new, updated_at = :now
    WHERE id = :id AND status = :expected

If another worker (or an approver in another request) changed the row first,
the WHERE clause matches nothing and we return None. No locks, no broker:
the database row is the arbiter.

Two flavours with identical semantics:
- JobStore: sync sessions, one session per call (worker and sweeper threads)
- AsyncJobStore: wraps the request's AsyncSession (FastAPI)

Statements are built by the module-level helpers so both flavours issue the
same SQL.
"""

import logging
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from models.enums import JobStatus
from models.job import PrintJob
from store.retry import run_with_retry, run_with_retry_async

logger = logging.getLogger(__name__)


def _status_value(status) -> str:
    return status.value if isinstance(status, JobStatus) else str(status)


# ── Statement builders ──────────────────────────────────────────

def _list_stmt(
    statuses: Optional[Iterable] = None,
    updated_before: Optional[datetime] = None,
    oldest_first: bool = True,
    limit: Optional[int] = None,
):
    stmt = select(PrintJob).execution_options(populate_existing=True)
    if statuses is not None:
        stmt = stmt.where(PrintJob.status.in_([_status_value(s) for s in statuses]))
    if updated_before is not None:
        stmt = stmt.where(PrintJob.updated_at < updated_before)
    order = PrintJob.created_at.asc() if oldest_first else PrintJob.created_at.desc()
    stmt = stmt.order_by(order)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


def _conditional_update_stmt(
    job_id: uuid.UUID,
    expected_status,
    fields: dict,
    updated_before: Optional[datetime] = None,
):
    values = dict(fields)
    if "status" in values:
        values["status"] = _status_value(values["status"])
    stmt = update(PrintJob).where(
        PrintJob.id == job_id, PrintJob.status == _status_value(expected_status)
    )
    if updated_before is not None:
        stmt = stmt.where(PrintJob.updated_at < updated_before)
    return stmt.values(**values).execution_options(synchronize_session=False)


def _count_stmt(statuses: Iterable, created_before: Optional[datetime] = None):
    stmt = select(func.count(PrintJob.id)).where(
        PrintJob.status.in_([_status_value(s) for s in statuses])
    )
    if created_before is not None:
        stmt = stmt.where(PrintJob.created_at < created_before)
    return stmt


def _count_by_status_stmt():
    return select(PrintJob.status, func.count(PrintJob.id)).group_by(PrintJob.status)


def _created_since_stmt(since: datetime):
    return (
        select(PrintJob.created_at, PrintJob.status)
        .where(PrintJob.created_at >= since)
        .order_by(PrintJob.created_at.asc())
    )


# ── Sync store (worker + sweeper) ───────────────────────────────

class JobStore:

    def __init__(self, db_session_factory, max_retries: Optional[int] = None):
        self._db_session_factory = db_session_factory
        self._max_retries = max_retries

    def _run(self, operation, description: str):
        return run_with_retry(operation, description, max_retries=self._max_retries)

    def get(self, job_id: uuid.UUID) -> Optional[PrintJob]:
        def op():
            with self._db_session_factory() as session:
                return session.get(PrintJob, job_id, populate_existing=True)

        return self._run(op, f"get job {job_id}")

    def insert(self, **fields) -> PrintJob:
        def op():
            with self._db_session_factory() as session:
                job = PrintJob(**fields)
                session.add(job)
                session.flush()
                session.expunge(job)
                session.commit()
                return job

        return self._run(op, "insert job")

    def conditional_update(
        self,
        job_id: uuid.UUID,
        expected_status,
        updated_before: Optional[datetime] = None,
        **fields,
    ) -> Optional[PrintJob]:
        """
        Apply `fields` only if the row is still in `expected_status` (and, when
        given, was last updated before `updated_before`). None means no match.
        """
        stmt = _conditional_update_stmt(job_id, expected_status, fields, updated_before)

        def op():
            with self._db_session_factory() as session:
                result = session.execute(stmt)
                if result.rowcount == 0:
                    session.rollback()
                    return None
                job = session.get(PrintJob, job_id, populate_existing=True)
                session.expunge(job)
                session.commit()
                return job

        return self._run(op, f"conditional update of job {job_id}")

    def list(
        self,
        statuses: Optional[Iterable] = None,
        updated_before: Optional[datetime] = None,
        oldest_first: bool = True,
        limit: Optional[int] = None,
    ) -> list[PrintJob]:
        stmt = _list_stmt(statuses, updated_before, oldest_first, limit)

        def op():
            with self._db_session_factory() as session:
                return list(session.scalars(stmt).all())

        return self._run(op, "list jobs")

    def delete(self, job_ids: Sequence[uuid.UUID]) -> int:
        if not job_ids:
            return 0

        def op():
            with self._db_session_factory() as session:
                result = session.execute(
                    delete(PrintJob)
                    .where(PrintJob.id.in_(list(job_ids)))
                    .execution_options(synchronize_session=False)
                )
                session.commit()
                return result.rowcount

        return self._run(op, f"delete {len(job_ids)} job(s)")

    def count(self, statuses: Iterable, created_before: Optional[datetime] = None) -> int:
        stmt = _count_stmt(statuses, created_before)

        def op():
            with self._db_session_factory() as session:
                return session.execute(stmt).scalar() or 0

        return self._run(op, "count jobs")


# ── Async store (API) ───────────────────────────────────────────

class AsyncJobStore:
    """
    Same contract as JobStore, bound to one request's AsyncSession.

    Failed attempts roll the session back before retrying, so a transient
    error mid-request does not poison the rest of the request.
    """

    def __init__(self, session: AsyncSession, max_retries: Optional[int] = None):
        self._session = session
        self._max_retries = max_retries

    async def _run(self, operation, description: str):
        return await run_with_retry_async(
            operation,
            description,
            on_error=self._session.rollback,
            max_retries=self._max_retries,
        )

    async def get(self, job_id: uuid.UUID) -> Optional[PrintJob]:
        async def op():
            return await self._session.get(PrintJob, job_id, populate_existing=True)

        return await self._run(op, f"get job {job_id}")

    async def insert(self, **fields) -> PrintJob:
        async def op():
            job = PrintJob(**fields)
            self._session.add(job)
            await self._session.commit()
            await self._session.refresh(job)  # reload server-visible state (id, timestamps)
            return job

        return await self._run(op, "insert job")

    async def conditional_update(
        self,
        job_id: uuid.UUID,
        expected_status,
        updated_before: Optional[datetime] = None,
        **fields,
    ) -> Optional[PrintJob]:
        stmt = _conditional_update_stmt(job_id, expected_status, fields, updated_before)

        async def op():
            result = await self._session.execute(stmt)
            if result.rowcount == 0:
                await self._session.rollback()
                return None
            await self._session.commit()
            return await self._session.get(PrintJob, job_id, populate_existing=True)

        return await self._run(op, f"conditional update of job {job_id}")

    async def list(
        self,
        statuses: Optional[Iterable] = None,
        updated_before: Optional[datetime] = None,
        oldest_first: bool = True,
        limit: Optional[int] = None,
    ) -> list[PrintJob]:
        stmt = _list_stmt(statuses, updated_before, oldest_first, limit)

        async def op():
            result = await self._session.scalars(stmt)
            return list(result.all())

        return await self._run(op, "list jobs")

    async def count(self, statuses: Iterable, created_before: Optional[datetime] = None) -> int:
        stmt = _count_stmt(statuses, created_before)

        async def op():
            return (await self._session.execute(stmt)).scalar() or 0

        return await self._run(op, "count jobs")

    async def count_by_status(self) -> dict[str, int]:
        async def op():
            rows = (await self._session.execute(_count_by_status_stmt())).all()
            return {status: total for status, total in rows}

        return await self._run(op, "count jobs by status")

    # `list` in this class body is the method above, hence typing.List
    async def list_created_since(self, since: datetime) -> List[Tuple[datetime, str]]:
        async def op():
            rows = (await self._session.execute(_created_since_stmt(since))).all()
            return [(created_at, status) for created_at, status in rows]

        return await self._run(op, "list recent jobs")
