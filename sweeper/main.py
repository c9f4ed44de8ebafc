"""
Retention sweeper process entry point.

Independent of the API and the workers: it only needs the database, the blob
store and Redis. Run exactly one (running two is safe, just wasteful: they
would race to delete the same rows and blobs, both idempotently).

To run:
    python -m sweeper.main
"""

import logging
import signal
import threading

from config.settings import settings
from models.base import Base, sync_engine, SyncSessionLocal
from store.blob_store import create_blob_store
from store.job_store import JobStore
from store.ledger import connect_redis
from sweeper.retention import RetentionSweeper

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    Base.metadata.create_all(sync_engine)

    sweeper = RetentionSweeper(
        job_store=JobStore(SyncSessionLocal),
        blob_store=create_blob_store(),
        redis_client=connect_redis(),
    )
    sweeper.start()

    shutdown_event = threading.Event()

    def shutdown(signum, frame):
        logger.info("Shutdown signal received, stopping...")
        shutdown_event.set()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    shutdown_event.wait()
    sweeper.stop()
    logger.info("Sweeper process exited")


if __name__ == "__main__":
    main()
