"""Unit tests for domain exceptions."""

import pytest

from src.domain.exceptions import (
    AuthorizationError,
    DomainException,
    EmbeddingError,
    IndexUnavailableError,
    IndexUpsertError,
    MediaDecodeError,
    PipelineStageError,
    RateLimitExceededError,
    SynthesisError,
    TranscriptionError,
    ValidationError,
    VideoNotFoundException,
)


class TestPipelineStageErrors:
    """Tests for per-stage ingestion errors."""

    @pytest.mark.parametrize(
        ("error_cls", "stage"),
        [
            (MediaDecodeError, "extract"),
            (TranscriptionError, "transcribe"),
            (EmbeddingError, "embed"),
            (IndexUnavailableError, "index"),
            (IndexUpsertError, "index"),
            (PipelineStageError, "pipeline"),
        ],
    )
    def test_stage_names(self, error_cls, stage):
        error = error_cls("vid-1", "boom")

        assert error.stage == stage
        assert error.video_id == "vid-1"
        assert error.reason == "boom"
        assert str(error) == f"{stage} failed for video vid-1: boom"
        assert isinstance(error, DomainException)

    def test_only_index_readiness_is_not_retryable(self):
        assert IndexUnavailableError.retryable is False
        assert TranscriptionError.retryable is True
        assert IndexUpsertError.retryable is True

    def test_upsert_error_carries_batch(self):
        error = IndexUpsertError("vid-1", "timeout", batch_number=2)
        assert error.batch_number == 2


class TestRequestErrors:
    """Tests for query and request errors."""

    def test_video_not_found(self):
        error = VideoNotFoundException("vid-9")
        assert error.video_id == "vid-9"
        assert "vid-9" in str(error)

    def test_validation_error(self):
        error = ValidationError("maxResults", "must be between 1 and 20")
        assert error.field == "maxResults"
        assert str(error) == "Invalid maxResults: must be between 1 and 20"

    def test_authorization_error_anonymous(self):
        error = AuthorizationError(None, "conv-1")
        assert "<anonymous>" in str(error)
        assert error.conversation_id == "conv-1"

    def test_synthesis_error(self):
        error = SynthesisError("openai 500")
        assert error.reason == "openai 500"

    def test_rate_limit_error(self):
        error = RateLimitExceededError("query:alice", 42)
        assert error.retry_after_seconds == 42
        assert str(error) == "Too many requests, retry after 42s"
