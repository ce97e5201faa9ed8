"""Domain models."""

from src.domain.models.chunk import Chunk, TranscriptSegment
from src.domain.models.vector import (
    VectorMetadata,
    VectorRecord,
    build_vector_id,
    point_uuid,
)
from src.domain.models.video import ProcessingStatus, VideoRecord, claimable_filter

__all__ = [
    # Video
    "VideoRecord",
    "ProcessingStatus",
    "claimable_filter",
    # Transcript
    "TranscriptSegment",
    "Chunk",
    # Vectors
    "VectorRecord",
    "VectorMetadata",
    "build_vector_id",
    "point_uuid",
]
