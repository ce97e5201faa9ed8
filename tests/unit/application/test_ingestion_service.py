"""Unit tests for IngestionOrchestrator."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.dtos.ingestion import IngestionTrigger, OutcomeKind
from src.application.services.chunking import TranscriptChunker
from src.application.services.embedding import EmbeddedChunk
from src.application.services.ingestion import IngestionOrchestrator
from src.commons.settings.models import Settings
from src.domain.exceptions import EmbeddingError, VideoNotFoundException
from src.domain.models.video import ProcessingStatus, VideoRecord
from src.infrastructure.audio.base import ExtractedAudio
from src.infrastructure.transcription.base import (
    TranscriptionResult,
    TranscriptionSegment,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def record() -> VideoRecord:
    return VideoRecord(
        id="vid-1",
        conversation_id="conv-1",
        sender_id="alice",
        recipient_id="bob",
        duration_seconds=42.0,
    )


@pytest.fixture
def mock_document_db(record):
    """Record store where the claim always succeeds."""
    document_db = AsyncMock()
    document_db.find_by_id.return_value = record.model_dump(mode="json")
    document_db.update_where.return_value = True
    document_db.update.return_value = True
    document_db.insert.return_value = "vid-1"
    return document_db


@pytest.fixture
def mock_extractor():
    extractor = AsyncMock()
    extractor.extract.return_value = ExtractedAudio(
        data=b"RIFF....WAVE", filename="vid-1.wav", sample_rate=16000, channels=1
    )
    return extractor


@pytest.fixture
def transcription() -> TranscriptionResult:
    return TranscriptionResult(
        segments=[
            TranscriptionSegment(text="Hey, how was the hike?", start_time=0.0, end_time=2.5),
            TranscriptionSegment(text="It was great, we saw a lake.", start_time=2.5, end_time=6.0),
        ],
        full_text="Hey, how was the hike? It was great, we saw a lake.",
        language="en",
        duration_seconds=6.0,
    )


@pytest.fixture
def mock_transcriber(transcription):
    transcriber = AsyncMock()
    transcriber.transcribe.return_value = transcription
    return transcriber


@pytest.fixture
def mock_embedder():
    embedder = AsyncMock()

    async def embed_chunks(chunks, video_id):
        return [EmbeddedChunk(chunk=c, vector=[0.1] * 1536) for c in chunks]

    embedder.embed_chunks.side_effect = embed_chunks
    return embedder


@pytest.fixture
def mock_index():
    index = MagicMock()
    index.ensure_ready = AsyncMock()
    index.upsert = AsyncMock(return_value=1)
    index.build_records.return_value = ["record"]
    return index


@pytest.fixture
def orchestrator(
    mock_document_db,
    mock_extractor,
    mock_transcriber,
    mock_embedder,
    mock_index,
    settings,
) -> IngestionOrchestrator:
    return IngestionOrchestrator(
        document_db=mock_document_db,
        audio_extractor=mock_extractor,
        transcription_service=mock_transcriber,
        chunker=TranscriptChunker(),
        embedder=mock_embedder,
        index_manager=mock_index,
        settings=settings,
    )


def last_update(mock_document_db) -> dict:
    return mock_document_db.update.await_args.args[2]


# =============================================================================
# Test: Successful run
# =============================================================================


class TestSuccessfulRun:
    """Tests for a pipeline where every stage succeeds."""

    async def test_run_marks_record_processed(
        self, orchestrator, record, mock_document_db
    ):
        outcome = await orchestrator.process(record)

        assert outcome.kind == OutcomeKind.PROCESSED
        assert outcome.succeeded
        assert outcome.chunk_count == 1
        update = last_update(mock_document_db)
        assert update["processing_status"] == "processed"
        assert update["transcript"].startswith("Hey, how was the hike?")
        assert len(update["transcript_segments"]) == 2
        assert update["transcript_duration"] == 6.0
        assert update["chunk_count"] == 1
        assert update["processed_at"] is not None

    async def test_claim_is_a_conditional_update(
        self, orchestrator, record, mock_document_db
    ):
        await orchestrator.process(record)

        collection, video_id, conditions, updates = (
            mock_document_db.update_where.await_args.args
        )
        assert collection == "videos"
        assert video_id == "vid-1"
        clauses = conditions["$or"]
        assert {"processing_status": "unprocessed"} in clauses
        aged = next(c for c in clauses if isinstance(c.get("error_at"), dict))
        cutoff = aged["error_at"]["$lte"]
        assert datetime.now(UTC) - cutoff >= timedelta(hours=6)
        assert updates["processing_status"] == "processing"

    async def test_stages_receive_expected_inputs(
        self,
        orchestrator,
        record,
        mock_extractor,
        mock_transcriber,
        mock_embedder,
        mock_index,
    ):
        await orchestrator.process(record)

        mock_extractor.extract.assert_awaited_once_with("chats/conv-1/videos/vid-1.mp4")
        mock_transcriber.transcribe.assert_awaited_once_with(
            b"RIFF....WAVE", filename="vid-1.wav", language_hint="en"
        )
        chunks = mock_embedder.embed_chunks.await_args.args[0]
        assert chunks[0].text == "Hey, how was the hike? It was great, we saw a lake."
        mock_index.ensure_ready.assert_awaited_once_with("vid-1")
        mock_index.upsert.assert_awaited_once_with(["record"], "vid-1")
        assert mock_index.build_records.call_args.args[1:] == ("vid-1", "conv-1")

    async def test_explicit_media_ref_is_used(
        self, orchestrator, record, mock_extractor
    ):
        await orchestrator.process(record.model_copy(update={"media_ref": "custom/path.mov"}))

        mock_extractor.extract.assert_awaited_once_with("custom/path.mov")


# =============================================================================
# Test: Failures
# =============================================================================


class TestStageFailures:
    """Tests for failures recorded on the record."""

    async def test_transcription_failure_stops_pipeline(
        self,
        orchestrator,
        record,
        mock_transcriber,
        mock_embedder,
        mock_index,
        mock_document_db,
    ):
        """A transcription error marks FAILED and skips later stages."""
        mock_transcriber.transcribe.side_effect = RuntimeError("whisper unavailable")

        outcome = await orchestrator.process(record)

        assert outcome.kind == OutcomeKind.FAILED
        assert outcome.stage == "transcribe"
        assert outcome.error == "TranscriptionError"
        assert outcome.retryable is True
        update = last_update(mock_document_db)
        assert update["processing_status"] == "failed"
        assert "whisper unavailable" in update["error_message"]
        assert update["error_at"] is not None
        assert "transcript" not in update
        assert "transcript_segments" not in update
        mock_embedder.embed_chunks.assert_not_awaited()
        mock_index.ensure_ready.assert_not_awaited()
        mock_index.upsert.assert_not_awaited()

    async def test_extraction_failure_is_media_decode_error(
        self, orchestrator, record, mock_extractor, mock_transcriber
    ):
        mock_extractor.extract.side_effect = RuntimeError("blob missing")

        outcome = await orchestrator.process(record)

        assert outcome.stage == "extract"
        assert outcome.error == "MediaDecodeError"
        mock_transcriber.transcribe.assert_not_awaited()

    async def test_typed_stage_error_passes_through(
        self, orchestrator, record, mock_embedder, mock_index
    ):
        mock_embedder.embed_chunks.side_effect = EmbeddingError("vid-1", "chunk 0: 429")

        outcome = await orchestrator.process(record)

        assert outcome.error == "EmbeddingError"
        assert "chunk 0: 429" in outcome.message
        mock_index.upsert.assert_not_awaited()

    async def test_index_readiness_failure(self, orchestrator, record, mock_index):
        mock_index.ensure_ready.side_effect = RuntimeError("connection refused")

        outcome = await orchestrator.process(record)

        assert outcome.stage == "index"
        assert outcome.error == "IndexUnavailableError"
        assert outcome.retryable is False

    async def test_stage_timeout_fails_that_stage(
        self, orchestrator, record, mock_extractor, settings
    ):
        settings.processing.stage_timeouts.extract = 0.01

        async def slow_extract(media_ref):
            await asyncio.sleep(1)

        mock_extractor.extract.side_effect = slow_extract

        outcome = await orchestrator.process(record)

        assert outcome.error == "MediaDecodeError"
        assert "timed out" in outcome.message

    async def test_pipeline_budget_exceeded(
        self, mock_document_db, mock_extractor, mock_transcriber, mock_embedder,
        mock_index, settings, record,
    ):
        settings.processing.pipeline_timeout_seconds = 0.01

        async def slow_transcribe(*args, **kwargs):
            await asyncio.sleep(1)

        mock_transcriber.transcribe.side_effect = slow_transcribe
        orchestrator = IngestionOrchestrator(
            document_db=mock_document_db,
            audio_extractor=mock_extractor,
            transcription_service=mock_transcriber,
            chunker=TranscriptChunker(),
            embedder=mock_embedder,
            index_manager=mock_index,
            settings=settings,
        )

        outcome = await orchestrator.process(record)

        assert outcome.kind == OutcomeKind.FAILED
        assert outcome.stage == "pipeline"
        assert last_update(mock_document_db)["processing_status"] == "failed"


# =============================================================================
# Test: Idempotency
# =============================================================================


class TestIdempotency:
    """Tests for the processed guard and the claim."""

    async def test_processed_record_is_noop_twice(
        self, orchestrator, record, mock_document_db, mock_extractor, mock_transcriber
    ):
        processed = record.model_copy(
            update={"processing_status": ProcessingStatus.PROCESSED}
        )

        first = await orchestrator.process(processed)
        second = await orchestrator.process(processed)

        assert first.kind == OutcomeKind.SKIPPED
        assert second.kind == OutcomeKind.SKIPPED
        mock_document_db.update_where.assert_not_awaited()
        mock_document_db.update.assert_not_awaited()
        mock_extractor.extract.assert_not_awaited()
        mock_transcriber.transcribe.assert_not_awaited()

    async def test_lost_claim_skips_run(
        self, orchestrator, record, mock_document_db, mock_extractor
    ):
        """A concurrent run owning the record makes this run a no-op."""
        mock_document_db.update_where.return_value = False

        outcome = await orchestrator.process(record)

        assert outcome.kind == OutcomeKind.SKIPPED
        assert outcome.message == "claimed by another run or failed recently"
        mock_extractor.extract.assert_not_awaited()
        mock_document_db.update.assert_not_awaited()

    async def test_recent_failure_is_not_restarted(
        self, orchestrator, record, mock_document_db, mock_extractor
    ):
        """A manual re-run inside the failure cool-down leaves the record alone."""
        failed = record.model_copy(
            update={
                "processing_status": ProcessingStatus.FAILED,
                "error_at": datetime.now(UTC) - timedelta(minutes=1),
            }
        )
        mock_document_db.find_by_id.return_value = failed.model_dump(mode="json")

        outcome = await orchestrator.run("vid-1")

        assert outcome.kind == OutcomeKind.SKIPPED
        assert outcome.message == "failed recently"
        mock_document_db.update_where.assert_not_awaited()
        mock_extractor.extract.assert_not_awaited()

    async def test_aged_failure_is_retried(
        self, orchestrator, record, mock_document_db, mock_extractor
    ):
        failed = record.model_copy(
            update={
                "processing_status": ProcessingStatus.FAILED,
                "error_at": datetime.now(UTC) - timedelta(hours=7),
            }
        )

        outcome = await orchestrator.process(failed)

        assert outcome.kind == OutcomeKind.PROCESSED
        mock_extractor.extract.assert_awaited_once()

    async def test_failure_between_read_and_claim_loses_claim(
        self, orchestrator, record, mock_document_db, mock_extractor
    ):
        """The store re-checks the cool-down, so a stale read cannot restart it."""
        mock_document_db.update_where.return_value = False

        outcome = await orchestrator.process(record)

        assert outcome.kind == OutcomeKind.SKIPPED
        conditions = mock_document_db.update_where.await_args.args[2]
        assert any("error_at" in clause for clause in conditions["$or"])
        mock_extractor.extract.assert_not_awaited()

    async def test_run_loads_record_by_id(self, orchestrator, mock_document_db):
        outcome = await orchestrator.run("vid-1")

        mock_document_db.find_by_id.assert_awaited_once_with("videos", "vid-1")
        assert outcome.kind == OutcomeKind.PROCESSED

    async def test_run_unknown_video_raises(self, orchestrator, mock_document_db):
        mock_document_db.find_by_id.return_value = None

        with pytest.raises(VideoNotFoundException):
            await orchestrator.run("missing")


# =============================================================================
# Test: Trigger and status
# =============================================================================


class TestTriggerAndStatus:
    """Tests for record creation and status lookup."""

    async def test_trigger_inserts_unprocessed_record(self, orchestrator, mock_document_db):
        trigger = IngestionTrigger(
            id="vid-9",
            conversationId="conv-1",
            senderId="alice",
            recipientId="bob",
            durationSeconds=12.0,
        )

        record = await orchestrator.trigger(trigger)

        assert record.processing_status == ProcessingStatus.UNPROCESSED
        collection, document = mock_document_db.insert.await_args.args
        assert collection == "videos"
        assert document["id"] == "vid-9"
        assert document["processing_status"] == "unprocessed"
        assert document["conversation_id"] == "conv-1"
        assert isinstance(document["created_at"], datetime)

    async def test_get_status(self, orchestrator, mock_document_db, record):
        failed = record.model_copy(
            update={
                "processing_status": ProcessingStatus.FAILED,
                "error_message": "boom",
                "error_at": datetime.now(UTC),
            }
        )
        mock_document_db.find_by_id.return_value = failed.model_dump(mode="json")

        status = await orchestrator.get_status("vid-1")

        assert status.video_id == "vid-1"
        assert status.status == ProcessingStatus.FAILED
        assert status.error_message == "boom"
