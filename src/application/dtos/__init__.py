"""Data Transfer Objects for application layer."""

from src.application.dtos.ingestion import (
    BacklogReport,
    CleanupReport,
    IngestionTrigger,
    OutcomeKind,
    PipelineOutcome,
    VideoStatusDTO,
)
from src.application.dtos.query import (
    QueryBody,
    QueryRequest,
    QueryResult,
    SourceDTO,
    SummaryResult,
)

__all__ = [
    # Ingestion DTOs
    "IngestionTrigger",
    "OutcomeKind",
    "PipelineOutcome",
    "BacklogReport",
    "CleanupReport",
    "VideoStatusDTO",
    # Query DTOs
    "QueryBody",
    "QueryRequest",
    "QueryResult",
    "SourceDTO",
    "SummaryResult",
]
