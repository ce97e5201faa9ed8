"""Transcript chunking into overlapping, token-bounded windows."""

from collections.abc import Sequence

from src.commons.settings.models import ChunkingSettings
from src.commons.telemetry import get_logger
from src.domain.models.chunk import Chunk, TranscriptSegment
from src.domain.value_objects.chunking_config import ChunkingConfig


class TranscriptChunker:
    """Groups transcript segments into chunks for embedding.

    Works on whole segments so every chunk keeps exact start and end times;
    a segment is never split, even when it alone exceeds ``chunk_size``.
    When a chunk closes, its last ``overlap_segments`` segments seed the
    next window so neighbouring chunks share context.
    """

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        """Initialize chunker.

        Args:
            config: Window parameters. Defaults to 250 tokens with 50 overlap.
        """
        self._config = config or ChunkingConfig()
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(cls, settings: ChunkingSettings) -> "TranscriptChunker":
        return cls(ChunkingConfig(**settings.model_dump()))

    @property
    def config(self) -> ChunkingConfig:
        return self._config

    def chunk(
        self,
        segments: Sequence[TranscriptSegment],
        video_id: str | None = None,
    ) -> list[Chunk]:
        """Split segments into overlapping chunks.

        Args:
            segments: Transcript segments ordered by start time.
            video_id: Only used for logging.

        Returns:
            Chunks with contiguous indices starting at 0; empty for no input.
        """
        estimate = self._config.estimate_tokens
        chunk_size = self._config.chunk_size
        overlap = self._config.overlap_segments

        chunks: list[Chunk] = []
        window: list[TranscriptSegment] = []
        window_tokens = 0

        for segment in segments:
            segment_tokens = estimate(segment.text)

            if window and window_tokens + segment_tokens > chunk_size:
                chunks.append(self._emit(window, len(chunks)))
                window = window[-overlap:] if overlap else []
                window_tokens = sum(estimate(s.text) for s in window)

            window.append(segment)
            window_tokens += segment_tokens

        if window:
            chunks.append(self._emit(window, len(chunks)))

        self._logger.debug(
            "Transcript chunked",
            extra={
                "video_id": video_id,
                "segment_count": len(segments),
                "chunk_count": len(chunks),
                "chunk_size": chunk_size,
                "overlap_segments": overlap,
            },
        )
        return chunks

    @staticmethod
    def _emit(window: list[TranscriptSegment], index: int) -> Chunk:
        return Chunk(
            text=" ".join(s.text for s in window),
            start_time=window[0].start,
            end_time=window[-1].end,
            chunk_index=index,
            segment_count=len(window),
        )
