"""
Centralized configuration using pydantic-settings.

How it works:
- Reads environment variables automatically (e.g., STALE_PRINTING_MINUTES env var → Settings.STALE_PRINTING_MINUTES)
- Falls back to defaults defined here if env vars are not set
- Can also read from a .env file in the project root

The API, the print workers and the retention sweeper all import `settings`
from here, so the three processes agree on bucket names, thresholds and
retention windows without passing them around.
"""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── PostgreSQL ──────────────────────────────────────────────
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "printqueue"
    POSTGRES_PASSWORD: str = "printqueue"
    POSTGRES_DB: str = "printqueue"
    DATABASE_URL: Optional[str] = None  # full sync URL, overrides POSTGRES_*

    # ── Redis (reconciliation ledger) ───────────────────────────
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_SOCKET_TIMEOUT: float = 5.0  # seconds, connect and per-command

    # ── Store resilience ────────────────────────────────────────
    STORE_MAX_RETRIES: int = 2         # retries after the first attempt
    STORE_RETRY_DELAY: float = 0.4     # seconds, multiplied by the attempt number
    STORE_TIMEOUT_SECONDS: float = 20.0

    # ── Blob storage ────────────────────────────────────────────
    STORAGE_BACKEND: str = "local"     # "local" or "s3"
    LOCAL_STORAGE_DIR: str = "uploads"
    PRINT_BUCKET: str = "print-files"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_REGION: str = "auto"

    # ── Print worker ────────────────────────────────────────────
    WORKER_POLL_INTERVAL: float = 4.0  # seconds between poll cycles
    STALE_PRINTING_MINUTES: float = 10.0
    PRINTER_BACKEND: str = "cups"      # "cups" or "dry_run"
    PRINTER_NAME: str = ""             # empty → system default printer
    PRINT_TIMEOUT_SECONDS: float = 300.0
    WORKER_LOG_FILE: str = "logs/agent.log"

    # ── Retention sweeper ───────────────────────────────────────
    DONE_RETENTION_MINUTES: float = 2.0
    RETENTION_SWEEP_INTERVAL: float = 60.0
    RETENTION_BATCH_SIZE: int = 200
    RETENTION_STATUSES: list[str] = ["DONE"]

    # ── Intake & queue estimates ────────────────────────────────
    MAX_COPIES: int = 100
    AVG_PRINT_TIME_SECONDS: int = 30

    # ── App ─────────────────────────────────────────────────────
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        """Async connection string for FastAPI (uses asyncpg driver)."""
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def sync_database_url(self) -> str:
        """Sync connection string for worker and sweeper threads (uses psycopg2 driver)."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import this everywhere
settings = Settings()
