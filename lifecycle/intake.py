"""
Job intake — turns an upload into a PENDING job.

Two writes to two different stores, with no transaction spanning them:

    1. put the file in the blob store
    2. insert the row

If (2) fails, the blob from (1) has no row pointing at it. We compensate by
removing it right away. If that removal fails too, the path goes into the
Redis orphan ledger and the next retention sweep removes it. The upload
request still fails with a store error either way; the ledger is only about
not leaking storage.
"""

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from redis.asyncio import Redis
from redis.exceptions import RedisError

from config.settings import settings
from lifecycle.errors import BlobStoreError, InvalidRequestError, StoreError
from models.enums import JobStatus
from models.job import PrintJob
from printing.options import is_valid_page_range, normalize_page_range, parse_copies
from store.blob_store import BlobStore, build_storage_path
from store.job_store import AsyncJobStore
from store.ledger import record_orphan_blob

logger = logging.getLogger(__name__)


def validate_submission(raw_copies, raw_page_range) -> tuple[int, str]:
    """Strict intake validation. Raises InvalidRequestError with a caller-facing message."""
    copies = parse_copies(raw_copies)
    if copies is None:
        raise InvalidRequestError(
            f"Invalid copies value. Must be an integer between 1 and {settings.MAX_COPIES}."
        )

    page_range = normalize_page_range(raw_page_range)
    if not is_valid_page_range(page_range):
        raise InvalidRequestError("Invalid pageRange. Use ALL or formats like 1-3, 2,4,6, 1-2,5.")

    return copies, page_range


async def submit_job(
    store: AsyncJobStore,
    blob_store: BlobStore,
    redis_client: Redis,
    data: bytes,
    filename: str,
    content_type: Optional[str],
    copies: int,
    page_range: str,
) -> PrintJob:
    path = build_storage_path(filename)
    logger.info(f"Uploading {filename} to {path}")
    await run_in_threadpool(blob_store.put, path, data, content_type)

    try:
        job = await store.insert(
            file_ref=path,
            original_filename=filename,
            content_type=content_type,
            status=JobStatus.PENDING.value,
            copies=copies,
            page_range=page_range,
        )
    except StoreError:
        await _discard_blob(blob_store, redis_client, path)
        raise

    logger.info(
        f"Job {job.id} created: file={path} copies={job.copies} pages={job.page_range}"
    )
    return job


async def _discard_blob(blob_store: BlobStore, redis_client: Redis, path: str) -> None:
    try:
        await run_in_threadpool(blob_store.remove, [path])
        logger.info(f"Removed {path} after failed job insert")
        return
    except BlobStoreError as e:
        logger.error(f"Could not remove {path} after failed job insert: {e}")

    try:
        await record_orphan_blob(redis_client, path)
    except RedisError as e:
        logger.error(f"Reconciliation debt not recorded for {path}: {e}")
