"""Infrastructure layer - external service implementations."""

from src.infrastructure.audio import (
    AudioExtractionError,
    AudioExtractorBase,
    ExtractedAudio,
    FFmpegAudioExtractor,
)
from src.infrastructure.embeddings import (
    EmbeddingResult,
    EmbeddingServiceBase,
    OpenAIEmbeddingService,
)
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.llm import (
    AnthropicLLMService,
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
    OpenAILLMService,
)
from src.infrastructure.membership import (
    DocumentMembershipService,
    MembershipServiceBase,
)
from src.infrastructure.transcription import (
    OpenAIWhisperTranscription,
    TranscriptionResult,
    TranscriptionSegment,
    TranscriptionServiceBase,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Audio
    "AudioExtractorBase",
    "AudioExtractionError",
    "ExtractedAudio",
    "FFmpegAudioExtractor",
    # Transcription
    "TranscriptionServiceBase",
    "TranscriptionResult",
    "TranscriptionSegment",
    "OpenAIWhisperTranscription",
    # Embeddings
    "EmbeddingServiceBase",
    "EmbeddingResult",
    "OpenAIEmbeddingService",
    # LLM
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    "OpenAILLMService",
    "AnthropicLLMService",
    # Membership
    "MembershipServiceBase",
    "DocumentMembershipService",
]
