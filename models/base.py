"""
SQLAlchemy engine and session factories.

Two separate engines exist because:
- FastAPI is async → needs asyncpg driver + async sessions
- The print worker and the retention sweeper run in plain threads → need
  psycopg2 driver + sync sessions

Both engines carry connect and pool timeouts so that no store round-trip can
block a poll cycle or a request forever.
"""

from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy import create_engine

from config.settings import settings


class Base(DeclarativeBase):
    """Base class for all ORM models. SQLAlchemy uses this to track table metadata."""
    pass


# ── Async engine (for FastAPI) ──────────────────────────────────
async_engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    pool_timeout=settings.STORE_TIMEOUT_SECONDS,
    connect_args={"timeout": settings.STORE_TIMEOUT_SECONDS},
)
AsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False)

# ── Sync engine (for worker and sweeper threads) ────────────────
_sync_connect_args = (
    {"connect_timeout": int(settings.STORE_TIMEOUT_SECONDS)}
    if settings.sync_database_url.startswith("postgresql")
    else {}
)
sync_engine = create_engine(
    settings.sync_database_url,
    echo=False,
    pool_pre_ping=True,
    pool_timeout=settings.STORE_TIMEOUT_SECONDS,
    connect_args=_sync_connect_args,
)
SyncSessionLocal = sessionmaker(sync_engine, expire_on_commit=False)
