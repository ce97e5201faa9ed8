"""Abstract base class for blob storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass
class HealthStatus:
    """Outcome of a backend probe, shared by every storage client."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Object storage holding uploaded conversation media and thumbnails."""

    @abstractmethod
    async def download_to_file(self, bucket: str, path: str, local_path: Path) -> None:
        """Stream a blob to ``local_path``.

        Raises:
            BlobNotFoundError: If the blob does not exist.
        """

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> bool:
        """Delete a blob; False when it was already gone."""

    @abstractmethod
    async def ensure_bucket(self, bucket: str) -> bool:
        """Create ``bucket`` if missing; True when it was created."""

    @abstractmethod
    async def health_check(self) -> HealthStatus: ...
