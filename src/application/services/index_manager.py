"""Shared vector index: readiness, namespaced upserts and search."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import ValidationError as PydanticValidationError

from src.application.services.embedding import EmbeddedChunk
from src.commons.infrastructure.vectordb.base import DistanceMetric, VectorDBBase, VectorPoint
from src.commons.telemetry import get_logger
from src.domain.exceptions import IndexUnavailableError, IndexUpsertError
from src.domain.models.vector import (
    VectorMetadata,
    VectorRecord,
    build_vector_id,
    point_uuid,
)

NAMESPACE_FIELD = "namespace"
VECTOR_ID_FIELD = "vector_id"
KEYWORD_FIELDS = [NAMESPACE_FIELD, "videoId"]


@dataclass
class IndexMatch:
    """A ranked search hit."""

    id: str
    score: float
    metadata: VectorMetadata


class VectorIndexManager:
    """Owns the single index shared by every conversation.

    Conversations are isolated only by the namespace payload field, which
    always equals the conversation id. Every write sets it and every read
    filters on it.
    """

    def __init__(
        self,
        vector_db: VectorDBBase,
        index_name: str,
        dimensions: int = 1536,
        metric: DistanceMetric = "cosine",
        batch_size: int = 100,
        ready_poll_attempts: int = 30,
        ready_poll_interval_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._vector_db = vector_db
        self._index_name = index_name
        self._dimensions = dimensions
        self._metric = metric
        self._batch_size = batch_size
        self._poll_attempts = ready_poll_attempts
        self._poll_interval = ready_poll_interval_seconds
        self._sleep = sleep
        self._ready = False
        self._logger = get_logger(__name__)

    @property
    def index_name(self) -> str:
        return self._index_name

    async def ensure_ready(self, video_id: str = "") -> None:
        """Create the index if missing and wait until it is usable.

        An index that already exists is trusted as ready.

        Raises:
            IndexUnavailableError: If a new index never reports ready.
        """
        if self._ready:
            return

        if await self._vector_db.collection_exists(self._index_name):
            self._ready = True
            return

        self._logger.info(
            "Creating vector index",
            extra={
                "index_name": self._index_name,
                "dimensions": self._dimensions,
                "metric": self._metric,
            },
        )
        await self._vector_db.create_collection(
            self._index_name,
            vector_size=self._dimensions,
            distance_metric=self._metric,
            keyword_fields=KEYWORD_FIELDS,
        )

        for attempt in range(1, self._poll_attempts + 1):
            if await self._vector_db.is_collection_ready(self._index_name):
                self._ready = True
                self._logger.info(
                    "Vector index ready",
                    extra={"index_name": self._index_name, "attempts": attempt},
                )
                return
            self._logger.info(f"Waiting for index to be ready... attempt {attempt}")
            if attempt < self._poll_attempts:
                await self._sleep(self._poll_interval)

        raise IndexUnavailableError(
            video_id,
            f"index {self._index_name} not ready after {self._poll_attempts} attempts",
        )

    def build_records(
        self,
        embedded: list[EmbeddedChunk],
        video_id: str,
        conversation_id: str,
    ) -> list[VectorRecord]:
        """Turn embedded chunks into records with deterministic ids."""
        indexed_at = int(datetime.now(UTC).timestamp() * 1000)
        return [
            VectorRecord(
                id=build_vector_id(video_id, item.chunk.chunk_index),
                vector=item.vector,
                metadata=VectorMetadata(
                    text=item.chunk.text,
                    video_id=video_id,
                    conversation_id=conversation_id,
                    start_time=item.chunk.start_time,
                    end_time=item.chunk.end_time,
                    timestamp=indexed_at,
                    chunk_index=item.chunk.chunk_index,
                ),
            )
            for item in embedded
        ]

    async def upsert(self, records: list[VectorRecord], video_id: str) -> int:
        """Write records in sequential batches.

        Re-running with the same records overwrites the same points.

        Raises:
            IndexUpsertError: On the first failed batch; later batches are skipped.
        """
        total_batches = (len(records) + self._batch_size - 1) // self._batch_size
        written = 0

        for batch_number, start in enumerate(
            range(0, len(records), self._batch_size), start=1
        ):
            batch = records[start : start + self._batch_size]
            points = [
                VectorPoint(
                    id=point_uuid(record.id),
                    vector=record.vector,
                    payload={
                        VECTOR_ID_FIELD: record.id,
                        NAMESPACE_FIELD: record.namespace,
                        **record.payload(),
                    },
                )
                for record in batch
            ]
            try:
                written += await self._vector_db.upsert(self._index_name, points)
            except Exception as e:
                raise IndexUpsertError(
                    video_id,
                    f"batch {batch_number}/{total_batches}: {e}",
                    batch_number=batch_number,
                ) from e

            self._logger.info(
                f"Upserted batch {batch_number} for video {video_id}",
                extra={"batch_size": len(batch), "total_batches": total_batches},
            )

        return written

    async def search(
        self,
        query_vector: list[float],
        namespace: str,
        top_k: int = 5,
    ) -> list[IndexMatch]:
        """Rank chunks of one conversation against a query vector.

        Read-only. An empty or unknown namespace yields no matches.
        """
        if not namespace:
            return []

        results = await self._vector_db.search(
            self._index_name,
            query_vector=query_vector,
            limit=top_k,
            filters={NAMESPACE_FIELD: namespace},
        )

        matches: list[IndexMatch] = []
        for result in results:
            try:
                metadata = VectorMetadata.model_validate(result.payload)
            except PydanticValidationError:
                self._logger.warning(
                    "Skipping match with malformed payload",
                    extra={"point_id": result.id, "namespace": namespace},
                )
                continue
            matches.append(
                IndexMatch(
                    id=str(result.payload.get(VECTOR_ID_FIELD, result.id)),
                    score=result.score,
                    metadata=metadata,
                )
            )
        return matches
