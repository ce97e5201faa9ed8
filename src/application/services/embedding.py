"""Sequential chunk embedding with an inter-call delay."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.commons.telemetry import get_logger
from src.domain.exceptions import EmbeddingError
from src.domain.models.chunk import Chunk
from src.infrastructure.embeddings.base import EmbeddingServiceBase


@dataclass
class EmbeddedChunk:
    """A chunk with its embedding vector."""

    chunk: Chunk
    vector: list[float]


class ChunkEmbedder:
    """Embeds chunks one at a time, pausing between calls.

    Calls are deliberately serialized to stay under provider rate limits.
    The pause sits between calls only, never after the last one. Any
    failure aborts the whole batch; nothing computed so far is returned.
    """

    def __init__(
        self,
        embedding_service: EmbeddingServiceBase,
        dimensions: int = 1536,
        inter_call_delay_ms: int = 20,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the embedder.

        Args:
            embedding_service: Text embedding provider.
            dimensions: Expected vector length.
            inter_call_delay_ms: Pause between consecutive calls.
            sleep: Awaitable sleep, replaceable in tests.
        """
        self._embedding_service = embedding_service
        self._dimensions = dimensions
        self._delay_seconds = inter_call_delay_ms / 1000
        self._sleep = sleep
        self._logger = get_logger(__name__)

    async def embed_chunks(self, chunks: list[Chunk], video_id: str) -> list[EmbeddedChunk]:
        """Embed every chunk of one video.

        Args:
            chunks: Chunks in index order.
            video_id: Owning video, used for errors and logs.

        Returns:
            One embedded chunk per input chunk, same order.

        Raises:
            EmbeddingError: On the first failed or malformed embedding.
        """
        embedded: list[EmbeddedChunk] = []

        for position, chunk in enumerate(chunks):
            if position > 0 and self._delay_seconds > 0:
                await self._sleep(self._delay_seconds)

            try:
                result = await self._embedding_service.embed_text(chunk.text)
            except Exception as e:
                self._logger.error(
                    "Chunk embedding failed",
                    extra={
                        "video_id": video_id,
                        "chunk_index": chunk.chunk_index,
                        "error": str(e),
                    },
                )
                raise EmbeddingError(
                    video_id, f"chunk {chunk.chunk_index}: {e}"
                ) from e

            if len(result.vector) != self._dimensions:
                raise EmbeddingError(
                    video_id,
                    f"chunk {chunk.chunk_index}: expected {self._dimensions} "
                    f"dimensions, got {len(result.vector)}",
                )
            embedded.append(EmbeddedChunk(chunk=chunk, vector=result.vector))

        self._logger.info(
            f"Generated {len(embedded)} embeddings",
            extra={"video_id": video_id, "chunk_count": len(chunks)},
        )
        return embedded

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query string with the same model as the chunks."""
        result = await self._embedding_service.embed_text(text)
        return result.vector
