"""Abstract base class for vector database operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from src.commons.infrastructure.blob.base import HealthStatus

DistanceMetric = Literal["cosine", "euclidean", "dot"]


@dataclass
class VectorPoint:
    id: str
    vector: list[float]
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    id: str
    score: float
    payload: dict[str, Any]


class VectorDBBase(ABC):
    """Vector index storing one point per transcript chunk.

    Search filters are ``{"field": value}`` equality pairs; all must match.
    """

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance_metric: DistanceMetric = "cosine",
        keyword_fields: list[str] | None = None,
    ) -> bool:
        """Create a collection with keyword payload indexes.

        Args:
            name: Collection name.
            vector_size: Dimension of vectors.
            distance_metric: Similarity metric.
            keyword_fields: Payload fields filtered by exact match.

        Returns:
            True if created, False if it already existed.
        """

    @abstractmethod
    async def collection_exists(self, name: str) -> bool: ...

    @abstractmethod
    async def is_collection_ready(self, name: str) -> bool:
        """Whether the collection accepts reads and writes yet."""

    @abstractmethod
    async def upsert(self, collection: str, points: list[VectorPoint]) -> int:
        """Insert or replace points by id; returns how many were written."""

    @abstractmethod
    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        """Nearest neighbours of ``query_vector``, best first."""

    @abstractmethod
    async def health_check(self) -> HealthStatus: ...

    async def close(self) -> None:  # noqa: B027
        """Release client resources. No-op by default."""
