"""MinIO / S3 implementation of blob storage."""

import asyncio
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from minio import Minio
from minio.error import S3Error

from src.commons.infrastructure.blob.base import BlobStorageBase, HealthStatus

T = TypeVar("T")

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchBucket", "NoSuchObject"})


class BlobNotFoundError(Exception):
    def __init__(self, bucket: str, path: str) -> None:
        self.bucket = bucket
        self.path = path
        super().__init__(f"Blob not found: {bucket}/{path}")


def _is_missing(error: S3Error) -> bool:
    return error.code in _MISSING_CODES


class MinioBlobStorage(BlobStorageBase):
    """Blob storage over the MinIO SDK.

    Talks to MinIO locally and to S3 in production. The SDK is blocking,
    so each call runs in the default executor.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint

    async def _run(self, fn: Callable[[], T]) -> T:
        return await asyncio.get_running_loop().run_in_executor(None, fn)

    async def download_to_file(self, bucket: str, path: str, local_path: Path) -> None:
        def fetch() -> None:
            try:
                self._client.fget_object(bucket, path, str(local_path))
            except S3Error as e:
                if _is_missing(e):
                    raise BlobNotFoundError(bucket, path) from e
                raise

        await self._run(fetch)

    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob; a missing blob is reported, not raised.

        ``remove_object`` succeeds silently for absent keys, so the object
        is stat'ed first to tell the two cases apart.
        """

        def remove() -> bool:
            try:
                self._client.stat_object(bucket, path)
            except S3Error as e:
                if _is_missing(e):
                    return False
                raise
            self._client.remove_object(bucket, path)
            return True

        return await self._run(remove)

    async def ensure_bucket(self, bucket: str) -> bool:
        def create() -> bool:
            if self._client.bucket_exists(bucket):
                return False
            self._client.make_bucket(bucket)
            return True

        return await self._run(create)

    async def health_check(self) -> HealthStatus:
        """List buckets as a connectivity and credentials check."""
        start = time.perf_counter()
        try:
            await self._run(self._client.list_buckets)
        except Exception as e:
            healthy, message = False, f"MinIO health check failed: {e}"
        else:
            healthy, message = True, "MinIO is healthy"
        return HealthStatus(
            healthy=healthy,
            latency_ms=(time.perf_counter() - start) * 1000,
            message=message,
            details={"endpoint": self._endpoint},
        )
