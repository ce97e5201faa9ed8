"""Domain exceptions for the conversational video memory system."""

from typing import ClassVar


class DomainException(Exception):
    """Base exception for domain errors."""


class VideoNotFoundException(DomainException):
    """Raised when a requested video record is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class PipelineStageError(DomainException):
    """Base class for failures of a single ingestion stage.

    Every stage error aborts the pipeline for one video. The orchestrator
    records it on the video record and converts it into a failed outcome.
    """

    stage: ClassVar[str] = "pipeline"
    retryable: ClassVar[bool] = True

    def __init__(self, video_id: str, reason: str) -> None:
        self.video_id = video_id
        self.reason = reason
        super().__init__(f"{self.stage} failed for video {video_id}: {reason}")


class MediaDecodeError(PipelineStageError):
    """Raised when the source media is missing or cannot be decoded to audio."""

    stage = "extract"


class TranscriptionError(PipelineStageError):
    """Raised when speech-to-text fails or returns a malformed response."""

    stage = "transcribe"


class EmbeddingError(PipelineStageError):
    """Raised when any chunk embedding fails; partial vectors are discarded."""

    stage = "embed"


class IndexUnavailableError(PipelineStageError):
    """Raised when the shared vector index never becomes ready."""

    stage = "index"
    retryable = False


class IndexUpsertError(PipelineStageError):
    """Raised when a batch upsert into a conversation namespace fails."""

    stage = "index"

    def __init__(self, video_id: str, reason: str, batch_number: int = 0) -> None:
        self.batch_number = batch_number
        super().__init__(video_id, reason)


class SynthesisError(DomainException):
    """Raised when the chat completion model fails to produce an answer."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Response synthesis failed: {reason}")


class AuthorizationError(DomainException):
    """Raised when a caller is not a member of the conversation they query."""

    def __init__(self, user_id: str | None, conversation_id: str) -> None:
        self.user_id = user_id
        self.conversation_id = conversation_id
        super().__init__(
            f"User {user_id or '<anonymous>'} is not a member of conversation "
            f"{conversation_id}"
        )


class ValidationError(DomainException):
    """Raised when a request is missing fields or exceeds limits."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class RateLimitExceededError(DomainException):
    """Raised when a client exceeds its request budget for an endpoint."""

    def __init__(self, key: str, retry_after_seconds: int) -> None:
        self.key = key
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            f"Too many requests, retry after {retry_after_seconds}s"
        )
