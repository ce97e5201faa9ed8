"""Qdrant implementation of vector database."""

import time
from typing import Any

from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import UnexpectedResponse

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.infrastructure.vectordb.base import (
    DistanceMetric,
    SearchResult,
    VectorDBBase,
    VectorPoint,
)

_DISTANCES = {
    "cosine": models.Distance.COSINE,
    "euclidean": models.Distance.EUCLID,
    "dot": models.Distance.DOT,
}


def build_filter(filters: dict[str, Any]) -> models.Filter:
    """Translate ``{"field": value}`` equality pairs into a Filter; all must hold."""
    conditions: list[models.Condition] = [
        models.FieldCondition(key=key, match=models.MatchValue(value=value))
        for key, value in filters.items()
    ]
    return models.Filter(must=conditions)


class QdrantVectorDB(VectorDBBase):
    """Local Qdrant or Qdrant Cloud (when ``url`` is given)."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6333,
        grpc_port: int = 6334,
        api_key: str | None = None,
        url: str | None = None,
        prefer_grpc: bool = True,
    ) -> None:
        location: dict[str, Any] = (
            {"url": url} if url else {"host": host, "port": port, "grpc_port": grpc_port}
        )
        self._client = AsyncQdrantClient(
            **location, api_key=api_key, prefer_grpc=prefer_grpc
        )
        self._target = url or f"{host}:{port}"

    async def create_collection(
        self,
        name: str,
        vector_size: int,
        distance_metric: DistanceMetric = "cosine",
        keyword_fields: list[str] | None = None,
    ) -> bool:
        if await self.collection_exists(name):
            return False

        await self._client.create_collection(
            collection_name=name,
            vectors_config=models.VectorParams(
                size=vector_size, distance=_DISTANCES[distance_metric]
            ),
        )
        for field_name in keyword_fields or ():
            await self._client.create_payload_index(
                collection_name=name,
                field_name=field_name,
                field_schema=models.PayloadSchemaType.KEYWORD,
            )
        return True

    async def collection_exists(self, name: str) -> bool:
        return bool(await self._client.collection_exists(collection_name=name))

    async def is_collection_ready(self, name: str) -> bool:
        """A collection is ready once Qdrant reports it green."""
        try:
            info = await self._client.get_collection(collection_name=name)
        except UnexpectedResponse:
            return False
        return info.status == models.CollectionStatus.GREEN

    async def upsert(self, collection: str, points: list[VectorPoint]) -> int:
        """Write points and wait until Qdrant has applied them."""
        if not points:
            return 0
        await self._client.upsert(
            collection_name=collection,
            points=[
                models.PointStruct(id=p.id, vector=p.vector, payload=p.payload)
                for p in points
            ],
            wait=True,
        )
        return len(points)

    async def search(
        self,
        collection: str,
        query_vector: list[float],
        limit: int = 10,
        filters: dict[str, Any] | None = None,
        score_threshold: float | None = None,
    ) -> list[SearchResult]:
        response = await self._client.query_points(
            collection_name=collection,
            query=query_vector,
            limit=limit,
            query_filter=build_filter(filters) if filters else None,
            score_threshold=score_threshold,
            with_payload=True,
        )
        return [
            SearchResult(id=str(p.id), score=p.score or 0.0, payload=p.payload or {})
            for p in response.points
        ]

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._client.get_collections()
        except Exception as e:
            healthy, message = False, f"Qdrant health check failed: {e}"
        else:
            healthy, message = True, "Qdrant is healthy"
        return HealthStatus(
            healthy=healthy,
            latency_ms=(time.perf_counter() - start) * 1000,
            message=message,
            details={"target": self._target},
        )

    async def close(self) -> None:
        await self._client.close()
