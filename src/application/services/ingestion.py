"""Video ingestion orchestration service."""

import asyncio
import time
from collections.abc import Awaitable
from datetime import UTC, datetime, timedelta
from typing import TypeVar

from pydantic import ValidationError as PydanticValidationError

from src.application.dtos.ingestion import (
    IngestionTrigger,
    PipelineOutcome,
    VideoStatusDTO,
)
from src.application.services.chunking import TranscriptChunker
from src.application.services.embedding import ChunkEmbedder
from src.application.services.index_manager import VectorIndexManager
from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import Settings
from src.commons.telemetry import LogContext, get_logger, timed
from src.domain.exceptions import (
    EmbeddingError,
    IndexUnavailableError,
    IndexUpsertError,
    MediaDecodeError,
    PipelineStageError,
    TranscriptionError,
    VideoNotFoundException,
)
from src.domain.models.chunk import TranscriptSegment
from src.domain.models.video import VideoRecord, claimable_filter
from src.infrastructure.audio.base import AudioExtractorBase
from src.infrastructure.transcription.base import (
    TranscriptionResult,
    TranscriptionServiceBase,
)

T = TypeVar("T")

class IngestionOrchestrator:
    """Runs the ingestion pipeline for one video record at a time.

    Pipeline steps:
    1. Claim the record (UNPROCESSED, or FAILED past the cool-down, to
       PROCESSING, atomically)
    2. Extract mono 16 kHz audio from the stored media
    3. Transcribe audio into timed segments
    4. Chunk segments into overlapping windows
    5. Embed every chunk
    6. Upsert vectors into the conversation namespace
    7. Persist the transcript and mark the record PROCESSED

    Every run ends in a ``PipelineOutcome``; stage errors are recorded on
    the record and never escape ``process``.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        audio_extractor: AudioExtractorBase,
        transcription_service: TranscriptionServiceBase,
        chunker: TranscriptChunker,
        embedder: ChunkEmbedder,
        index_manager: VectorIndexManager,
        settings: Settings,
    ) -> None:
        """Initialize orchestrator with dependencies.

        Args:
            document_db: Record store holding video records.
            audio_extractor: Media to audio decoder.
            transcription_service: Speech-to-text provider.
            chunker: Transcript chunker.
            embedder: Sequential chunk embedder.
            index_manager: Shared vector index manager.
            settings: Application settings.
        """
        self._document_db = document_db
        self._extractor = audio_extractor
        self._transcriber = transcription_service
        self._chunker = chunker
        self._embedder = embedder
        self._index = index_manager
        self._settings = settings
        self._logger = get_logger(__name__)

        self._videos_collection = settings.document_db.collections.videos
        self._stage_timeouts = settings.processing.stage_timeouts
        self._pipeline_timeout = settings.processing.pipeline_timeout_seconds
        self._cooldown = timedelta(hours=settings.backlog.failure_cooldown_hours)

    async def trigger(self, trigger: IngestionTrigger) -> VideoRecord:
        """Persist a newly announced video as UNPROCESSED.

        The caller is expected to schedule ``run`` for the returned record.
        """
        record = trigger.to_record()
        await self._document_db.insert(
            self._videos_collection,
            record.to_document(),
        )
        self._logger.info(
            "Video record created",
            extra={"video_id": record.id, "conversation_id": record.conversation_id},
        )
        return record

    async def get_record(self, video_id: str) -> VideoRecord:
        """Load a video record.

        Raises:
            VideoNotFoundException: If no record has this id.
        """
        doc = await self._document_db.find_by_id(self._videos_collection, video_id)
        if doc is None:
            raise VideoNotFoundException(video_id)
        return VideoRecord.model_validate(doc)

    async def get_status(self, video_id: str) -> VideoStatusDTO:
        """Get the processing status of a video."""
        return VideoStatusDTO.from_record(await self.get_record(video_id))

    async def run(self, video_id: str) -> PipelineOutcome:
        """Load a record by id and process it.

        Raises:
            VideoNotFoundException: If no record has this id.
        """
        return await self.process(await self.get_record(video_id))

    @timed()
    async def process(self, record: VideoRecord) -> PipelineOutcome:
        """Run the pipeline for one record.

        A PROCESSED record is a no-op, as is a FAILED record inside the
        failure cool-down. Otherwise the record is claimed with a
        compare-and-set that re-checks status and cool-down in the store, so
        two concurrent runs never both proceed.

        Args:
            record: The record as last read from the store.

        Returns:
            Outcome of the run.
        """
        if record.is_processed:
            self._logger.info(
                f"Video {record.id} already processed, skipping",
                extra={"video_id": record.id},
            )
            return PipelineOutcome.skipped(record.id, "already processed")

        now = datetime.now(UTC)
        if record.is_failed and record.failed_within(self._cooldown, now):
            self._logger.info(
                f"Video {record.id} failed recently, skipping",
                extra={"video_id": record.id},
            )
            return PipelineOutcome.skipped(record.id, "failed recently")

        claimed = await self._document_db.update_where(
            self._videos_collection,
            record.id,
            claimable_filter(self._cooldown, now),
            record.processing_update(),
        )
        if not claimed:
            self._logger.info(
                f"Video {record.id} not claimable, skipping",
                extra={"video_id": record.id},
            )
            return PipelineOutcome.skipped(
                record.id, "claimed by another run or failed recently"
            )

        started = time.perf_counter()
        with LogContext(video_id=record.id, conversation_id=record.conversation_id):
            self._logger.info(f"Starting RAG processing for video {record.id}")
            try:
                async with asyncio.timeout(self._pipeline_timeout):
                    transcription, segments, chunk_count = await self._run_stages(
                        record
                    )
            except PipelineStageError as e:
                return await self._record_failure(record, e, started)
            except TimeoutError:
                error = PipelineStageError(
                    record.id,
                    f"exceeded pipeline budget of {self._pipeline_timeout}s",
                )
                return await self._record_failure(record, error, started)

            await self._document_db.update(
                self._videos_collection,
                record.id,
                record.completion_update(
                    transcript=transcription.full_text,
                    segments=segments,
                    duration=transcription.duration_seconds,
                    chunk_count=chunk_count,
                ),
            )
            duration_ms = (time.perf_counter() - started) * 1000
            self._logger.info(
                f"Successfully processed video {record.id} for RAG",
                extra={"chunk_count": chunk_count, "duration_ms": round(duration_ms, 2)},
            )
            return PipelineOutcome.processed(record.id, chunk_count, duration_ms)

    async def _run_stages(
        self, record: VideoRecord
    ) -> tuple[TranscriptionResult, list[TranscriptSegment], int]:
        video_id = record.id

        audio = await self._stage(
            MediaDecodeError,
            video_id,
            self._stage_timeouts.extract,
            self._extractor.extract(self._media_ref(record)),
        )
        self._logger.debug(
            "Audio extracted", extra={"audio_bytes": audio.size_bytes}
        )

        transcription = await self._stage(
            TranscriptionError,
            video_id,
            self._stage_timeouts.transcribe,
            self._transcriber.transcribe(
                audio.data,
                filename=audio.filename,
                language_hint=self._settings.transcription.language,
            ),
        )
        try:
            segments = [
                TranscriptSegment(start=s.start_time, end=s.end_time, text=s.text)
                for s in transcription.segments
            ]
        except PydanticValidationError as e:
            raise TranscriptionError(video_id, f"malformed segment: {e}") from e

        chunks = self._chunker.chunk(segments, video_id=video_id)
        self._logger.info(f"Created {len(chunks)} chunks for video {video_id}")

        embedded = await self._stage(
            EmbeddingError,
            video_id,
            self._stage_timeouts.embed,
            self._embedder.embed_chunks(chunks, video_id),
        )

        await self._stage(
            IndexUnavailableError,
            video_id,
            self._stage_timeouts.index,
            self._index.ensure_ready(video_id),
        )
        vectors = self._index.build_records(embedded, video_id, record.conversation_id)
        await self._stage(
            IndexUpsertError,
            video_id,
            self._stage_timeouts.index,
            self._index.upsert(vectors, video_id),
        )
        return transcription, segments, len(chunks)

    async def _stage(
        self,
        error_cls: type[PipelineStageError],
        video_id: str,
        timeout: float | None,
        work: Awaitable[T],
    ) -> T:
        """Await one stage, converting any failure into its typed error."""
        try:
            async with asyncio.timeout(timeout):
                return await work
        except PipelineStageError:
            raise
        except TimeoutError as e:
            raise error_cls(video_id, f"timed out after {timeout}s") from e
        except Exception as e:
            raise error_cls(video_id, str(e)) from e

    async def _record_failure(
        self,
        record: VideoRecord,
        error: PipelineStageError,
        started: float,
    ) -> PipelineOutcome:
        duration_ms = (time.perf_counter() - started) * 1000
        self._logger.error(
            f"Error processing video {record.id} for RAG",
            extra={
                "stage": error.stage,
                "error_type": type(error).__name__,
                "error": error.reason,
            },
        )
        await self._document_db.update(
            self._videos_collection,
            record.id,
            record.failure_update(str(error)),
        )
        return PipelineOutcome.failed(error, duration_ms)

    def _media_ref(self, record: VideoRecord) -> str:
        if record.media_ref:
            return record.media_ref
        return self._settings.blob_storage.media_path_template.format(
            conversation_id=record.conversation_id,
            video_id=record.id,
        )
