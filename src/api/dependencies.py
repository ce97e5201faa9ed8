"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, Request

from src.application.services.backlog import BacklogScheduler
from src.application.services.chunking import TranscriptChunker
from src.application.services.cleanup import ExpiredVideoCleanup
from src.application.services.embedding import ChunkEmbedder
from src.application.services.index_manager import VectorIndexManager
from src.application.services.ingestion import IngestionOrchestrator
from src.application.services.query import ConversationQueryService
from src.application.services.security import RateLimiter
from src.application.services.synthesis import ResponseSynthesizer
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import LimitConfig, Settings
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

VIDEO_INDEXES: list[list[tuple[str, int]]] = [
    [("processing_status", 1), ("created_at", 1)],  # backlog selection
    [("expires_at", 1), ("is_expired", 1)],  # expiry sweep
    [("conversation_id", 1), ("created_at", -1)],
]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers."""
    return get_factory(settings)


# Service builders shared by routes and periodic jobs


@lru_cache(maxsize=1)
def build_index_manager(factory: InfrastructureFactory) -> VectorIndexManager:
    """Build the index manager once per factory so readiness is cached."""
    vector_settings = factory.settings.vector_db
    return VectorIndexManager(
        vector_db=factory.get_vector_db(),
        index_name=vector_settings.index_name,
        dimensions=vector_settings.dimensions,
        metric=vector_settings.metric,
        batch_size=vector_settings.upsert_batch_size,
        ready_poll_attempts=vector_settings.ready_poll_attempts,
        ready_poll_interval_seconds=vector_settings.ready_poll_interval_seconds,
    )


def build_embedder(factory: InfrastructureFactory) -> ChunkEmbedder:
    embed_settings = factory.settings.embeddings
    return ChunkEmbedder(
        embedding_service=factory.get_embedding_service(),
        dimensions=embed_settings.dimensions,
        inter_call_delay_ms=embed_settings.inter_call_delay_ms,
    )


def build_orchestrator(factory: InfrastructureFactory) -> IngestionOrchestrator:
    settings = factory.settings
    return IngestionOrchestrator(
        document_db=factory.get_document_db(),
        audio_extractor=factory.get_audio_extractor(),
        transcription_service=factory.get_transcription_service(),
        chunker=TranscriptChunker.from_settings(settings.chunking),
        embedder=build_embedder(factory),
        index_manager=build_index_manager(factory),
        settings=settings,
    )


def build_backlog_scheduler(factory: InfrastructureFactory) -> BacklogScheduler:
    return BacklogScheduler(
        document_db=factory.get_document_db(),
        orchestrator=build_orchestrator(factory),
        settings=factory.settings,
    )


def build_cleanup(factory: InfrastructureFactory) -> ExpiredVideoCleanup:
    return ExpiredVideoCleanup(
        document_db=factory.get_document_db(),
        blob_storage=factory.get_blob_storage(),
        settings=factory.settings,
    )


def build_query_service(factory: InfrastructureFactory) -> ConversationQueryService:
    settings = factory.settings
    synthesizer = ResponseSynthesizer(
        llm_service=factory.get_llm_service(),
        model=settings.llm.model,
        temperature=settings.llm.temperature,
        max_tokens=settings.llm.max_tokens,
        empty_completion_response=settings.query.empty_completion_response,
        source_preview_chars=settings.query.source_preview_chars,
    )
    return ConversationQueryService(
        embedder=build_embedder(factory),
        index_manager=build_index_manager(factory),
        synthesizer=synthesizer,
        membership=factory.get_membership_service(),
        settings=settings.query,
    )


# Route dependencies


def get_orchestrator(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> IngestionOrchestrator:
    return build_orchestrator(factory)


def get_query_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> ConversationQueryService:
    return build_query_service(factory)


def get_backlog_scheduler(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> BacklogScheduler:
    return build_backlog_scheduler(factory)


def get_cleanup_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> ExpiredVideoCleanup:
    return build_cleanup(factory)


class _RateLimiterHolder:
    """Holder for per-endpoint rate limiters to avoid global statements."""

    limiters: dict[str, RateLimiter] = {}


def get_rate_limiter(name: str, settings: Settings) -> RateLimiter | None:
    """Get the limiter for an endpoint group, or None when limiting is off."""
    rate_settings = settings.rate_limiting
    if not rate_settings.enabled:
        return None
    if name not in _RateLimiterHolder.limiters:
        limit = rate_settings.limits.get(
            name, LimitConfig(requests=100, window_seconds=60)
        )
        _RateLimiterHolder.limiters[name] = RateLimiter(limit)
    return _RateLimiterHolder.limiters[name]


def rate_limit(name: str):  # noqa: ANN201
    """Build a dependency enforcing the ``name`` limit per caller.

    The caller key is the ``X-User-ID`` header, falling back to the client
    address.
    """

    def dependency(
        request: Request,
        settings: Annotated[Settings, Depends(get_settings)],
        x_user_id: Annotated[str | None, Header()] = None,
    ) -> None:
        limiter = get_rate_limiter(name, settings)
        if limiter is None:
            return
        client = request.client.host if request.client else "unknown"
        limiter.check(f"{name}:{x_user_id or client}")

    return dependency


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
OrchestratorDep = Annotated[IngestionOrchestrator, Depends(get_orchestrator)]
QueryServiceDep = Annotated[ConversationQueryService, Depends(get_query_service)]
BacklogDep = Annotated[BacklogScheduler, Depends(get_backlog_scheduler)]
CleanupDep = Annotated[ExpiredVideoCleanup, Depends(get_cleanup_service)]


async def init_services(settings: Settings) -> InfrastructureFactory:
    """Initialize infrastructure clients on startup.

    Args:
        settings: Application settings.

    Returns:
        The process-wide factory.
    """
    factory = get_factory(settings)

    # Pre-initialize critical services to fail fast
    blob_storage = factory.get_blob_storage()
    factory.get_vector_db()
    document_db = factory.get_document_db()
    await blob_storage.ensure_bucket(settings.blob_storage.buckets.videos)

    videos = settings.document_db.collections.videos
    for fields in VIDEO_INDEXES:
        await document_db.create_index(videos, fields)
    return factory


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        build_index_manager.cache_clear()
        _RateLimiterHolder.limiters.clear()
        get_settings.cache_clear()
