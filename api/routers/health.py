"""
Health check endpoint.

Checks both the job store (Postgres) and the ledger (Redis). Uptime monitors
and container orchestrators use this to decide if the API is ready.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from redis.asyncio import Redis

from api.dependencies import get_db, get_redis

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
) -> dict:
    """Check that Postgres and Redis are reachable."""
    await db.execute(text("SELECT 1"))
    await redis.ping()

    return {"success": True, "status": "healthy", "postgres": "ok", "redis": "ok"}


@router.get("/")
async def index() -> dict:
    """Endpoint index for quick browser checks."""
    return {
        "success": True,
        "message": "Print queue API is running",
        "endpoints": [
            "GET /health",
            "POST /api/jobs/upload",
            "GET /api/jobs",
            "GET /api/jobs/stats",
            "GET /api/jobs/queue/summary",
            "GET /api/jobs/failures",
            "GET /api/jobs/:id",
            "GET /api/jobs/:id/queue",
            "PUT /api/jobs/:id/approve",
            "PUT /api/jobs/:id/reject",
            "PUT /api/jobs/:id/status",
        ],
    }
