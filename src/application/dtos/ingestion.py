"""DTOs for video ingestion, backlog and cleanup operations."""

from datetime import datetime
from enum import Enum
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.domain.exceptions import PipelineStageError
from src.domain.models.video import ProcessingStatus, VideoRecord


class IngestionTrigger(BaseModel):
    """A newly created video record announced by the chat backend."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    conversation_id: str = Field(alias="conversationId", min_length=1)
    sender_id: str = Field(alias="senderId", min_length=1)
    recipient_id: str = Field(alias="recipientId", min_length=1)
    media_ref: str | None = Field(default=None, alias="mediaRef")
    duration_seconds: float = Field(default=0.0, ge=0, alias="durationSeconds")
    expires_at: datetime | None = Field(default=None, alias="expiresAt")

    def to_record(self) -> VideoRecord:
        """Build the UNPROCESSED record to persist."""
        return VideoRecord(
            id=self.id,
            conversation_id=self.conversation_id,
            sender_id=self.sender_id,
            recipient_id=self.recipient_id,
            media_ref=self.media_ref,
            duration_seconds=self.duration_seconds,
            expires_at=self.expires_at,
        )


class OutcomeKind(str, Enum):
    """How a pipeline run ended."""

    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class PipelineOutcome(BaseModel):
    """Result of one pipeline run, returned instead of raising.

    ``stage`` and ``error`` are set only for failures; ``error`` carries the
    error variant name, e.g. ``TranscriptionError``.
    """

    video_id: str
    kind: OutcomeKind
    stage: str | None = None
    error: str | None = None
    message: str | None = None
    retryable: bool = False
    chunk_count: int = 0
    duration_ms: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.kind == OutcomeKind.PROCESSED

    @classmethod
    def processed(cls, video_id: str, chunk_count: int, duration_ms: float) -> Self:
        return cls(
            video_id=video_id,
            kind=OutcomeKind.PROCESSED,
            chunk_count=chunk_count,
            duration_ms=duration_ms,
        )

    @classmethod
    def skipped(cls, video_id: str, reason: str) -> Self:
        return cls(video_id=video_id, kind=OutcomeKind.SKIPPED, message=reason)

    @classmethod
    def failed(cls, error: PipelineStageError, duration_ms: float = 0.0) -> Self:
        return cls(
            video_id=error.video_id,
            kind=OutcomeKind.FAILED,
            stage=error.stage,
            error=type(error).__name__,
            message=str(error),
            retryable=error.retryable,
            duration_ms=duration_ms,
        )


class BacklogReport(BaseModel):
    """Aggregate result of one backlog pass."""

    scanned: int = Field(default=0, description="Candidate records read")
    selected: int = Field(default=0, description="Records whose pipeline ran")
    succeeded: int = 0
    failed: int = 0
    outcomes: list[PipelineOutcome] = Field(default_factory=list)


class CleanupReport(BaseModel):
    """Aggregate result of one expiry sweep."""

    expired: int = Field(default=0, description="Records marked expired")
    media_deleted: int = Field(default=0, description="Blobs removed")
    delete_failures: int = Field(default=0, description="Blob deletions that failed")


class VideoStatusDTO(BaseModel):
    """Processing state of one video record."""

    video_id: str
    conversation_id: str
    status: ProcessingStatus
    chunk_count: int = 0
    transcript_duration: float | None = None
    processed_at: datetime | None = None
    error_message: str | None = None
    error_at: datetime | None = None
    is_expired: bool = False

    @classmethod
    def from_record(cls, record: VideoRecord) -> Self:
        return cls(
            video_id=record.id,
            conversation_id=record.conversation_id,
            status=record.processing_status,
            chunk_count=record.chunk_count,
            transcript_duration=record.transcript_duration,
            processed_at=record.processed_at,
            error_message=record.error_message,
            error_at=record.error_at,
            is_expired=record.is_expired,
        )
