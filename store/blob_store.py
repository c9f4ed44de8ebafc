"""
Blob store — where uploaded documents live between upload and retention.

Contract:
    put(path, data, content_type) → path
    get(path)                     → bytes
    remove(paths)                 → number of blobs actually removed

Two backends:
- LocalBlobStore: a directory on disk. Good for a single host and for tests.
- S3BlobStore: any S3-compatible bucket (AWS, Cloudflare R2, MinIO) via boto3.

remove() is idempotent: a path that is already gone is not an error, because
the retention sweeper may retry a batch whose blobs were removed by a run
that crashed before deleting the rows.
"""

import logging
import os
import re
import time
from abc import ABC, abstractmethod
from typing import Iterable

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from config.settings import settings
from lifecycle.errors import BlobStoreError
from models.enums import StorageBackend

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def build_storage_path(original_name: str, now_ms: int | None = None) -> str:
    """jobs/<epoch-ms>-<sanitized name>, e.g. jobs/1740218400000-my_thesis.pdf"""
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    safe_name = _UNSAFE_CHARS.sub("_", original_name or "document")
    return f"jobs/{stamp}-{safe_name}"


def _safe_join(*parts: str) -> str:
    return "/".join([p.strip("/").replace("\\", "/") for p in parts if p])


class BlobStore(ABC):

    @abstractmethod
    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        ...

    @abstractmethod
    def get(self, path: str) -> bytes:
        ...

    @abstractmethod
    def remove(self, paths: Iterable[str]) -> int:
        ...


class LocalBlobStore(BlobStore):

    def __init__(self, base_dir: str = "uploads"):
        self.base_dir = os.path.abspath(base_dir)

    def _resolve(self, path: str) -> str:
        full = os.path.abspath(os.path.join(self.base_dir, _safe_join(path)))
        if os.path.commonpath([full, self.base_dir]) != self.base_dir:
            raise BlobStoreError(f"Invalid storage path: {path}")
        return full

    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        full = self._resolve(path)
        try:
            os.makedirs(os.path.dirname(full), exist_ok=True)
            with open(full, "wb") as f:
                f.write(data)
        except OSError as e:
            raise BlobStoreError("Failed to store file") from e
        return path

    def get(self, path: str) -> bytes:
        full = self._resolve(path)
        try:
            with open(full, "rb") as f:
                return f.read()
        except OSError as e:
            raise BlobStoreError(f"Failed to read file {path}") from e

    def remove(self, paths: Iterable[str]) -> int:
        removed = 0
        for path in paths:
            try:
                os.remove(self._resolve(path))
                removed += 1
            except FileNotFoundError:
                logger.debug(f"Blob {path} already gone")
            except OSError as e:
                raise BlobStoreError(f"Failed to remove file {path}") from e
        return removed


class S3BlobStore(BlobStore):

    # delete_objects accepts at most 1000 keys per request
    DELETE_CHUNK = 1000

    def __init__(self, bucket: str, client=None):
        self.bucket = bucket
        self.s3 = client or boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
            config=BotoConfig(
                signature_version="s3v4",
                connect_timeout=settings.STORE_TIMEOUT_SECONDS,
                read_timeout=settings.STORE_TIMEOUT_SECONDS,
                retries={"max_attempts": settings.STORE_MAX_RETRIES + 1, "mode": "standard"},
            ),
            region_name=settings.S3_REGION,
        )

    def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.s3.put_object(Bucket=self.bucket, Key=path, Body=data, **extra)
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError("Failed to upload file to storage") from e
        return path

    def get(self, path: str) -> bytes:
        try:
            response = self.s3.get_object(Bucket=self.bucket, Key=path)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            raise BlobStoreError(f"Failed to download {path}") from e

    def remove(self, paths: Iterable[str]) -> int:
        keys = [p for p in paths if p]
        removed = 0
        for start in range(0, len(keys), self.DELETE_CHUNK):
            chunk = keys[start:start + self.DELETE_CHUNK]
            try:
                response = self.s3.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": [{"Key": k} for k in chunk], "Quiet": False},
                )
            except (BotoCoreError, ClientError) as e:
                raise BlobStoreError("Failed to remove files from storage") from e
            if response.get("Errors"):
                first = response["Errors"][0]
                raise BlobStoreError(
                    f"Failed to remove {len(response['Errors'])} file(s), "
                    f"first: {first.get('Key')} ({first.get('Code')})"
                )
            removed += len(response.get("Deleted", []))
        return removed


def create_blob_store() -> BlobStore:
    """Build the backend selected by STORAGE_BACKEND."""
    backend = StorageBackend(settings.STORAGE_BACKEND)
    if backend == StorageBackend.S3:
        return S3BlobStore(settings.PRINT_BUCKET)
    return LocalBlobStore(os.path.join(settings.LOCAL_STORAGE_DIR, settings.PRINT_BUCKET))
