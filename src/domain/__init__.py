"""Domain layer - business models and logic."""

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
from src.domain.models import (
    Chunk,
    ProcessingStatus,
    TranscriptSegment,
    VectorMetadata,
    VectorRecord,
    VideoRecord,
    build_vector_id,
    point_uuid,
)
from src.domain.value_objects import ChunkingConfig

__all__ = [
    # Exceptions
    "DomainException",
    "VideoNotFoundException",
    "PipelineStageError",
    "MediaDecodeError",
    "TranscriptionError",
    "EmbeddingError",
    "IndexUnavailableError",
    "IndexUpsertError",
    "SynthesisError",
    "AuthorizationError",
    "ValidationError",
    "RateLimitExceededError",
    # Models
    "VideoRecord",
    "ProcessingStatus",
    "TranscriptSegment",
    "Chunk",
    "VectorRecord",
    "VectorMetadata",
    "build_vector_id",
    "point_uuid",
    # Value Objects
    "ChunkingConfig",
]
