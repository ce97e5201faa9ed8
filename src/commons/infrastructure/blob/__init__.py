"""Blob storage abstractions and implementations."""

from src.commons.infrastructure.blob.base import BlobStorageBase, HealthStatus
from src.commons.infrastructure.blob.minio_provider import (
    BlobNotFoundError,
    MinioBlobStorage,
)

__all__ = [
    "BlobStorageBase",
    "HealthStatus",
    "MinioBlobStorage",
    "BlobNotFoundError",
]
