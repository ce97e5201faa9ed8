"""Application services for conversation ingestion and querying."""

from src.application.services.backlog import BacklogScheduler
from src.application.services.chunking import TranscriptChunker
from src.application.services.cleanup import ExpiredVideoCleanup
from src.application.services.embedding import ChunkEmbedder, EmbeddedChunk
from src.application.services.index_manager import IndexMatch, VectorIndexManager
from src.application.services.ingestion import IngestionOrchestrator
from src.application.services.query import ConversationQueryService
from src.application.services.security import RateLimiter, sanitize_input
from src.application.services.synthesis import (
    PromptMode,
    ResponseSynthesizer,
    build_context,
    extract_key_points,
    select_mode,
    summary_confidence,
)

__all__ = [
    "BacklogScheduler",
    "ChunkEmbedder",
    "ConversationQueryService",
    "EmbeddedChunk",
    "ExpiredVideoCleanup",
    "IndexMatch",
    "IngestionOrchestrator",
    "PromptMode",
    "RateLimiter",
    "ResponseSynthesizer",
    "TranscriptChunker",
    "VectorIndexManager",
    "build_context",
    "extract_key_points",
    "sanitize_input",
    "select_mode",
    "summary_confidence",
]
