"""Application layer - use cases and orchestration.

This layer contains:
- Services: ingestion pipeline, backlog and cleanup passes, querying
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    BacklogReport,
    CleanupReport,
    IngestionTrigger,
    PipelineOutcome,
    QueryRequest,
    QueryResult,
    SummaryResult,
)
from src.application.services import (
    BacklogScheduler,
    ConversationQueryService,
    ExpiredVideoCleanup,
    IngestionOrchestrator,
)

__all__ = [
    # DTOs
    "IngestionTrigger",
    "PipelineOutcome",
    "BacklogReport",
    "CleanupReport",
    "QueryRequest",
    "QueryResult",
    "SummaryResult",
    # Services
    "IngestionOrchestrator",
    "BacklogScheduler",
    "ExpiredVideoCleanup",
    "ConversationQueryService",
]
