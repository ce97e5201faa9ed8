"""Transcript segment and chunk domain models."""

from typing import Self

from pydantic import BaseModel, Field, model_validator


class TranscriptSegment(BaseModel):
    """A time-aligned span of speech returned by the transcriber."""

    start: float = Field(ge=0, description="Start time in seconds")
    end: float = Field(ge=0, description="End time in seconds")
    text: str = Field(description="Spoken text")

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if self.end < self.start:
            raise ValueError(f"segment end {self.end} precedes start {self.start}")
        return self


class Chunk(BaseModel):
    """A token-bounded window of consecutive transcript segments.

    Chunks are the unit of embedding and retrieval. They are not persisted on
    their own; their text and timing live in the vector payload.
    """

    text: str = Field(description="Segment texts joined by single spaces")
    start_time: float = Field(ge=0, description="Start of the first segment")
    end_time: float = Field(ge=0, description="End of the last segment")
    chunk_index: int = Field(ge=0, description="Sequential index within the video")
    segment_count: int = Field(default=1, ge=1)

    @property
    def duration_seconds(self) -> float:
        """Calculate chunk duration."""
        return self.end_time - self.start_time

    def format_time_range(self) -> str:
        """Format time range as MM:SS - MM:SS for display."""

        def fmt(seconds: float) -> str:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes:02d}:{secs:02d}"

        return f"{fmt(self.start_time)} - {fmt(self.end_time)}"
