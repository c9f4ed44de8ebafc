"""
FastAPI application factory.

This file:
1. Creates the FastAPI app
2. Runs startup logic (create DB tables, connect to Redis, build the blob store)
3. Registers the routers (jobs, health)
4. Maps the error taxonomy onto the {"success": false, "error": ...} envelope
5. Runs shutdown logic (close connections)

Status codes:
    400  malformed input (validation errors, bad copies/pageRange/status)
    404  job not found
    409  illegal transition, or the job changed concurrently
    500  store failure / anything unexpected

Store error text never reaches the caller, only the categorized message.

To run:  uvicorn api.main:app --host 0.0.0.0 --port 8000 --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import settings
from lifecycle.errors import (
    ConcurrentConflictError,
    InvalidRequestError,
    InvalidTransitionError,
    JobNotFoundError,
    PrintQueueError,
    StoreError,
)
from models.base import async_engine, Base
from api.routers import jobs, health
from store.blob_store import create_blob_store
from store.ledger import connect_async_redis

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[PrintQueueError], int]] = [
    (InvalidRequestError, 400),
    (JobNotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrentConflictError, 409),
    (StoreError, 500),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ─────────────────────────────────────────────────
    logger.info("Creating database tables...")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.state.redis = connect_async_redis()
    app.state.blob_store = create_blob_store()
    logger.info(
        f"API ready — storage: {settings.STORAGE_BACKEND} ({settings.PRINT_BUCKET}), "
        f"max copies: {settings.MAX_COPIES}"
    )

    yield

    # ── Shutdown ────────────────────────────────────────────────
    await app.state.redis.close()
    await async_engine.dispose()
    logger.info("API shut down")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query")]
    if "job_id" in location:
        return "Invalid job id format"
    field = ".".join(location) or "request"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(PrintQueueError)
    async def handle_print_queue_error(request: Request, exc: PrintQueueError) -> JSONResponse:
        for error_cls, status_code in _STATUS_BY_ERROR:
            if isinstance(exc, error_cls):
                if status_code >= 500:
                    logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc)
                return _error(status_code, str(exc))
        logger.error(f"{request.method} {request.url.path} failed: {exc!r}", exc_info=exc)
        return _error(500, "Internal server error")

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return _error(exc.status_code, message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path} crashed: {exc!r}", exc_info=exc)
        return _error(500, "Internal server error")


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    app = FastAPI(
        title="Print Queue",
        description="Print job intake, approval and exactly-once dispatch to polling print workers",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(jobs.router)
    register_error_handlers(app)

    return app


# This is what uvicorn imports: `uvicorn api.main:app`
app = create_app()
