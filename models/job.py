"""
PrintJob ORM model — maps to the "print_jobs" table in PostgreSQL.

Key design decisions:
- UUID primary key: prevents enumeration, no sequential IDs to guess
- file_ref stores the blob-store path, never the file bytes
- copies/page_range are fixed at upload time; the worker only reads them
- status is written exclusively through conditional updates in store/job_store.py
- created_at orders the queue (FIFO); updated_at drives stale-job recovery
  and retention, so it only moves on status transitions
- Timestamps come from Python rather than the server clock so that SQLite
  (tests) and PostgreSQL keep microsecond ordering
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base
from models.enums import JobStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PrintJob(Base):
    __tablename__ = "print_jobs"

    # ── Identity ────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    file_ref: Mapped[str] = mapped_column(String(512), nullable=False)
    original_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content_type: Mapped[str | None] = mapped_column(String(127), nullable=True)

    # ── Lifecycle ───────────────────────────────────────────────
    status: Mapped[str] = mapped_column(
        String(20), default=JobStatus.PENDING.value, nullable=False, index=True
    )

    # ── Print options ───────────────────────────────────────────
    copies: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    page_range: Mapped[str] = mapped_column(String(255), default="ALL", nullable=False)

    # ── Timestamps ──────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<PrintJob {self.id} {self.status} copies={self.copies} pages={self.page_range}>"
