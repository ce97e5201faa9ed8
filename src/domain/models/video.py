"""Video record domain model."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from src.domain.models.chunk import TranscriptSegment


class ProcessingStatus(str, Enum):
    """Ingestion status of a video record."""

    UNPROCESSED = "unprocessed"  # Created, never picked up
    PROCESSING = "processing"  # Pipeline in flight
    PROCESSED = "processed"  # Transcript persisted and vectors indexed
    FAILED = "failed"  # Last run failed, retryable after cool-down


class VideoRecord(BaseModel):
    """A recorded video message exchanged inside a two-party conversation.

    This is the aggregate root for ingestion. Only the ingestion orchestrator
    mutates ``processing_status`` and the transcript fields.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Video identifier, also the MongoDB _id",
    )
    conversation_id: str = Field(description="Conversation owning this video")
    sender_id: str = Field(description="User who recorded the video")
    recipient_id: str = Field(description="User the video was sent to")
    media_ref: str | None = Field(
        default=None,
        description="Blob path of the media file; derived from ids when absent",
    )
    duration_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Recorded duration reported by the client",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the record was created",
    )
    expires_at: datetime | None = Field(
        default=None,
        description="When the media expires and is removed from storage",
    )
    is_expired: bool = Field(default=False, description="Expiry sweep has run")
    expired_at: datetime | None = Field(default=None)

    processing_status: ProcessingStatus = Field(
        default=ProcessingStatus.UNPROCESSED,
        description="Current ingestion status",
    )
    processing_started_at: datetime | None = Field(default=None)

    transcript: str | None = Field(default=None, description="Full transcript text")
    transcript_segments: list[TranscriptSegment] | None = Field(
        default=None,
        description="Time-aligned transcript segments",
    )
    transcript_duration: float | None = Field(
        default=None,
        description="Audio duration reported by the transcriber",
    )
    processed_at: datetime | None = Field(default=None)
    chunk_count: int = Field(default=0, ge=0, description="Indexed chunk count")

    error_message: str | None = Field(
        default=None,
        description="Error details if status is FAILED",
    )
    error_at: datetime | None = Field(default=None)

    @property
    def is_processed(self) -> bool:
        """Check if the video has been fully ingested."""
        return self.processing_status == ProcessingStatus.PROCESSED

    @property
    def is_processing(self) -> bool:
        """Check if a pipeline run is in flight."""
        return self.processing_status == ProcessingStatus.PROCESSING

    @property
    def is_failed(self) -> bool:
        """Check if the last pipeline run failed."""
        return self.processing_status == ProcessingStatus.FAILED

    def failed_within(self, cooldown: timedelta, now: datetime | None = None) -> bool:
        """Check whether the last failure is still inside the cool-down window.

        Args:
            cooldown: Length of the cool-down window.
            now: Reference time, defaults to the current UTC time.

        Returns:
            True if ``error_at`` is newer than ``now - cooldown``.
        """
        if self.error_at is None:
            return False
        reference = now or datetime.now(UTC)
        error_at = self.error_at
        if error_at.tzinfo is None:
            error_at = error_at.replace(tzinfo=UTC)
        return error_at > reference - cooldown

    def is_past_expiry(self, now: datetime | None = None) -> bool:
        """Check whether the media expiry time has passed."""
        if self.expires_at is None:
            return False
        reference = now or datetime.now(UTC)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= reference

    def processing_update(self) -> dict[str, Any]:
        """Fields written when a run claims the record."""
        return {
            "processing_status": ProcessingStatus.PROCESSING.value,
            "processing_started_at": datetime.now(UTC),
        }

    def completion_update(
        self,
        transcript: str,
        segments: list[TranscriptSegment],
        duration: float,
        chunk_count: int,
    ) -> dict[str, Any]:
        """Fields written after every stage succeeded.

        Args:
            transcript: Full transcript text.
            segments: Ordered transcript segments.
            duration: Audio duration in seconds.
            chunk_count: Number of indexed chunks.

        Returns:
            MongoDB ``$set`` document.
        """
        return {
            "processing_status": ProcessingStatus.PROCESSED.value,
            "transcript": transcript,
            "transcript_segments": [s.model_dump(mode="json") for s in segments],
            "transcript_duration": duration,
            "processed_at": datetime.now(UTC),
            "chunk_count": chunk_count,
            "error_message": None,
            "error_at": None,
        }

    def failure_update(self, error_message: str) -> dict[str, Any]:
        """Fields written when a run fails. Transcript fields stay untouched."""
        return {
            "processing_status": ProcessingStatus.FAILED.value,
            "error_message": error_message,
            "error_at": datetime.now(UTC),
        }

    def to_document(self) -> dict[str, Any]:
        """Store representation. Timestamps stay datetimes so range filters work."""
        document = self.model_dump()
        document["processing_status"] = self.processing_status.value
        return document


def claimable_filter(cooldown: timedelta, now: datetime | None = None) -> dict[str, Any]:
    """Mongo condition matching records a run may move to PROCESSING.

    UNPROCESSED records always match. FAILED records match once their last
    failure is at least ``cooldown`` old, or when no failure time was stored.

    Args:
        cooldown: Minimum age of a failure before it is retried.
        now: Reference time, defaults to the current UTC time.
    """
    cutoff = (now or datetime.now(UTC)) - cooldown
    failed = ProcessingStatus.FAILED.value
    return {
        "$or": [
            {"processing_status": ProcessingStatus.UNPROCESSED.value},
            {"processing_status": failed, "error_at": {"$lte": cutoff}},
            {"processing_status": failed, "error_at": None},
        ]
    }
