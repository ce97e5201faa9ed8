"""Vector database abstractions and implementations."""

from src.commons.infrastructure.vectordb.base import (
    DistanceMetric,
    SearchResult,
    VectorDBBase,
    VectorPoint,
)
from src.commons.infrastructure.vectordb.qdrant_provider import (
    QdrantVectorDB,
    build_filter,
)

__all__ = [
    "DistanceMetric",
    "SearchResult",
    "VectorDBBase",
    "VectorPoint",
    "QdrantVectorDB",
    "build_filter",
]
