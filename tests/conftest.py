"""
Shared test fixtures.

These replace real infrastructure with lightweight in-memory alternatives:
- PostgreSQL → SQLite in memory (aiosqlite for the API, StaticPool for the
  sync store used by workers and the sweeper)
- Redis → fakeredis (pure Python Redis mock)
- Blob storage → LocalBlobStore in a pytest tmp_path
- HTTP server → httpx.AsyncClient with ASGI transport (no network)

This means tests:
- Run without Docker
- Run in milliseconds (no network)
- Are fully isolated (each test gets a fresh database)
"""

import uuid
from datetime import datetime

import fakeredis
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fakeredis.aioredis import FakeRedis

from models.base import Base
from models.enums import JobStatus
from models.job import utcnow
from api.main import create_app
from api.dependencies import get_blob_store, get_db, get_redis
from lifecycle.manager import JobLifecycleManager
from store.blob_store import LocalBlobStore
from store.job_store import JobStore

# SQLite in-memory database — created fresh for each test
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


# ── Async side (API) ────────────────────────────────────────────

@pytest_asyncio.fixture
async def async_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(async_engine):
    """Create a database session bound to the test engine."""
    factory = async_sessionmaker(async_engine, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def fake_redis():
    """Create a fake Redis instance (in-memory, no real Redis needed)."""
    r = FakeRedis()
    yield r
    await r.flushall()


@pytest.fixture
def blob_store(tmp_path):
    return LocalBlobStore(str(tmp_path / "blobs"))


@pytest.fixture
def app(async_session, fake_redis, blob_store):
    """
    The FastAPI app with infrastructure swapped for test doubles.

    Tests may add more dependency_overrides after the client is created;
    FastAPI reads them on every request.
    """
    application = create_app()

    async def override_get_db():
        yield async_session

    async def override_get_redis():
        return fake_redis

    async def override_get_blob_store():
        return blob_store

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_redis] = override_get_redis
    application.dependency_overrides[get_blob_store] = override_get_blob_store
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    Test HTTP client that talks directly to the FastAPI app.

    ASGITransport means requests go directly to the app in-process,
    no HTTP server or network involved.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ── Sync side (worker + sweeper) ────────────────────────────────

@pytest.fixture
def session_factory():
    """
    In-memory SQLite shared by every session of one test.

    StaticPool keeps a single connection, so separate sessions (one per store
    call, like in production) all see the same database.
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def job_store(session_factory):
    return JobStore(session_factory, max_retries=0)


@pytest.fixture
def lifecycle(job_store):
    return JobLifecycleManager(job_store)


@pytest.fixture
def sync_redis():
    return fakeredis.FakeRedis()


@pytest.fixture
def make_job(job_store, blob_store):
    """
    Insert a job directly, bypassing the lifecycle (tests need jobs that are
    already APPROVED, PRINTING, DONE...). Stores a small blob for it too.
    """

    def _make(
        status: JobStatus = JobStatus.PENDING,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        copies: int = 1,
        page_range: str = "ALL",
        content: bytes = b"%PDF-1.4 test document",
    ):
        file_ref = f"jobs/{uuid.uuid4().hex}-doc.pdf"
        blob_store.put(file_ref, content, "application/pdf")
        now = utcnow()
        return job_store.insert(
            file_ref=file_ref,
            original_filename="doc.pdf",
            content_type="application/pdf",
            status=status.value,
            copies=copies,
            page_range=page_range,
            created_at=created_at or now,
            updated_at=updated_at or now,
        )

    return _make
