"""Storage strategies: turn a stored file record into a downloadable URL.

Config (via .env):
    STORAGE_BACKEND=local   # local | s3
    FILES_BASE_URL=https://chat.example.com   # host serving local uploads
    S3_BUCKET=...           # required when STORAGE_BACKEND=s3
    S3_REGION=us-east-1
    S3_URL_EXPIRY_SECONDS=900
"""
from __future__ import annotations

import asyncio
import logging

from scan_convert.core.config import settings
from scan_convert.files.registry import FileRecord

logger = logging.getLogger(__name__)


def join_url(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


class StorageStrategy:
    async def get_download_url(self, record: FileRecord) -> str:
        raise NotImplementedError


class LocalStorageStrategy(StorageStrategy):
    """Uploads served by the host itself; the stored path is the URL path."""

    def __init__(self, base_url: str | None = None) -> None:
        self._base_url = base_url

    async def get_download_url(self, record: FileRecord) -> str:
        if self._base_url and not record.filepath.startswith(("http://", "https://")):
            return join_url(self._base_url, record.filepath)
        return record.filepath


class S3StorageStrategy(StorageStrategy):
    """Mints presigned GET URLs for objects stored in S3.

    Install dependency:
        pip install boto3
    """

    def __init__(self, bucket: str, region: str = "us-east-1", expires_in: int = 900) -> None:
        self._bucket = bucket
        self._region = region
        self._expires_in = expires_in
        self._client = None

    def _get_client(self):
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", region_name=self._region)
        return self._client

    @staticmethod
    def object_key(filepath: str) -> str:
        """Object key from a stored path, which may be a full (expired) S3 URL."""
        if filepath.startswith(("http://", "https://")):
            path = filepath.split("://", 1)[1].split("?", 1)[0]
            key = path.split("/", 1)[1] if "/" in path else ""
            return key
        return filepath.lstrip("/")

    def _presign(self, key: str) -> str:
        return self._get_client().generate_presigned_url(
            "get_object",
            Params={"Bucket": self._bucket, "Key": key},
            ExpiresIn=self._expires_in,
        )

    async def get_download_url(self, record: FileRecord) -> str:
        key = self.object_key(record.filepath)
        if key.startswith(f"{self._bucket}/"):
            # path-style URL: bucket is the first path segment
            key = key[len(self._bucket) + 1:]
        loop = asyncio.get_running_loop()
        url = await loop.run_in_executor(None, self._presign, key)
        logger.info("s3_url_signed", extra={"file_id": record.file_id, "expires_in": self._expires_in})
        return url


def get_storage_strategy() -> StorageStrategy:
    backend = settings.storage_backend.lower().strip()

    if backend == "local":
        return LocalStorageStrategy(base_url=settings.files_base_url)

    if backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3_BUCKET is required when STORAGE_BACKEND=s3")
        return S3StorageStrategy(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            expires_in=settings.s3_url_expiry_seconds,
        )

    raise ValueError(f"Unknown STORAGE_BACKEND={settings.storage_backend!r}")
