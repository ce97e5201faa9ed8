"""Embedding services."""

from src.infrastructure.embeddings.base import EmbeddingResult, EmbeddingServiceBase
from src.infrastructure.embeddings.openai_embeddings import OpenAIEmbeddingService

__all__ = [
    "EmbeddingServiceBase",
    "EmbeddingResult",
    "OpenAIEmbeddingService",
]
