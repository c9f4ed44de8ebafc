"""
Print worker process entry point.

This is a SEPARATE process from the FastAPI API server. Run as many of them
as you have printers (or hosts); they never talk to each other. The claim
protocol in the database decides which worker prints which job.

The poll loop runs on a daemon thread. The main thread just waits for
Ctrl+C (SIGINT) or a kill signal (SIGTERM) to shut down gracefully. A job in
the middle of printing finishes its cycle first; if the process is killed
harder than that, the job stays PRINTING until another worker's stale-job
recovery hands it back.

To run:
    python -m worker.main
"""

import logging
import os
import signal
import threading

from config.settings import settings
from lifecycle.manager import JobLifecycleManager
from models.base import Base, sync_engine, SyncSessionLocal
from printing.registry import get_printer
from store.blob_store import create_blob_store
from store.job_store import JobStore
from store.ledger import connect_redis
from worker.poller import PrintWorker
from worker.recovery import StaleJobRecovery

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _add_file_log(path: str) -> None:
    """Mirror the worker log into a file next to the printer host."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    logging.getLogger().addHandler(handler)


def build_worker() -> PrintWorker:
    job_store = JobStore(SyncSessionLocal)
    return PrintWorker(
        lifecycle=JobLifecycleManager(job_store),
        job_store=job_store,
        blob_store=create_blob_store(),
        printer=get_printer(settings.PRINTER_BACKEND),
        recovery=StaleJobRecovery(job_store, settings.STALE_PRINTING_MINUTES),
        redis_client=connect_redis(),
        printer_name=settings.PRINTER_NAME,
    )


def main():
    if settings.WORKER_LOG_FILE:
        _add_file_log(settings.WORKER_LOG_FILE)
        logger.info(f"Log file: {os.path.abspath(settings.WORKER_LOG_FILE)}")

    # Safe to call multiple times — if the API already created the tables,
    # this is a no-op.
    logger.info("Ensuring database tables exist...")
    Base.metadata.create_all(sync_engine)

    worker = build_worker()
    logger.info(f"Stale PRINTING reset threshold: {settings.STALE_PRINTING_MINUTES} minute(s)")
    logger.info(f"Using printer: {settings.PRINTER_NAME or 'default'}")
    worker.start()

    # ── Graceful shutdown on Ctrl+C or SIGTERM ──────────────────
    shutdown_event = threading.Event()

    def shutdown(signum, frame):
        logger.info("Shutdown signal received, stopping...")
        shutdown_event.set()

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    logger.info("Worker process running. Press Ctrl+C to stop.")

    # Event.wait() instead of signal.pause() for Windows compatibility
    shutdown_event.wait()
    worker.stop()

    logger.info("Worker process exited")


if __name__ == "__main__":
    main()
