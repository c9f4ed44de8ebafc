"""
FastAPI dependency injection.

How this works:
- An endpoint declares `lifecycle: AsyncJobLifecycleManager = Depends(get_lifecycle)`
- FastAPI builds the chain get_db → get_job_store → get_lifecycle per request
- After the endpoint returns (or raises), the session is automatically closed

Tests override get_db, get_redis and get_blob_store; everything built on top
of them follows automatically.
"""

from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from redis.asyncio import Redis

from lifecycle.manager import AsyncJobLifecycleManager
from models.base import AsyncSessionLocal
from store.blob_store import BlobStore
from store.job_store import AsyncJobStore


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yields an async database session, auto-closes when the request ends."""
    async with AsyncSessionLocal() as session:
        yield session


async def get_redis(request: Request) -> Redis:
    """Returns the Redis client stored on the app during startup."""
    return request.app.state.redis


async def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


async def get_job_store(db: AsyncSession = Depends(get_db)) -> AsyncJobStore:
    return AsyncJobStore(db)


async def get_lifecycle(store: AsyncJobStore = Depends(get_job_store)) -> AsyncJobLifecycleManager:
    return AsyncJobLifecycleManager(store)
