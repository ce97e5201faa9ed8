"""Conversation query service answering questions over indexed transcripts."""

import time

from src.application.dtos.query import QueryRequest, QueryResult, SummaryResult
from src.application.services.embedding import ChunkEmbedder
from src.application.services.index_manager import IndexMatch, VectorIndexManager
from src.application.services.security import sanitize_input
from src.application.services.synthesis import (
    ResponseSynthesizer,
    extract_key_points,
    summary_confidence,
)
from src.commons.settings.models import QuerySettings
from src.commons.telemetry import get_logger, log_security_event
from src.domain.exceptions import AuthorizationError, SynthesisError, ValidationError
from src.infrastructure.membership.base import MembershipServiceBase

DEFAULT_KEY_POINT = "Recent conversation shared"


class ConversationQueryService:
    """Answers natural-language questions about one conversation's videos.

    Retrieval is always scoped to the conversation namespace. An empty
    retrieval is not an error: the caller gets a fixed fallback answer.
    """

    def __init__(
        self,
        embedder: ChunkEmbedder,
        index_manager: VectorIndexManager,
        synthesizer: ResponseSynthesizer,
        membership: MembershipServiceBase,
        settings: QuerySettings,
    ) -> None:
        """Initialize query service.

        Args:
            embedder: Embeds the query with the chunk embedding model.
            index_manager: Searches the shared vector index.
            synthesizer: Generates the grounded answer.
            membership: Conversation membership checks.
            settings: Query limits and fallback texts.
        """
        self._embedder = embedder
        self._index = index_manager
        self._synthesizer = synthesizer
        self._membership = membership
        self._settings = settings
        self._logger = get_logger(__name__)

    async def query(self, request: QueryRequest) -> QueryResult:
        """Answer a question over a conversation.

        Args:
            request: Query text, conversation and caller.

        Returns:
            Answer, grounding sources and processing time.

        Raises:
            ValidationError: If the query is missing, too long or
                ``max_results`` is out of range.
            AuthorizationError: If the caller is not a conversation member.
            SynthesisError: If retrieval or answer generation fails.
        """
        started = time.perf_counter()
        query = sanitize_input(request.query or "")
        conversation_id = sanitize_input(request.conversation_id or "")
        user_id = request.user_id

        log_security_event(
            "rag_query_request",
            user_id=user_id,
            conversation_id=conversation_id,
            query_length=len(query),
        )

        max_results = self._validate(query, conversation_id, request.max_results)
        await self._authorize(user_id, conversation_id)

        self._logger.info(
            f"RAG query from user {user_id} in conversation {conversation_id}",
            extra={"query_length": len(query), "max_results": max_results},
        )

        matches = await self._retrieve(query, conversation_id, max_results)
        if matches:
            response = await self._synthesizer.synthesize(
                query, matches, conversation_id
            )
            sources = self._synthesizer.to_sources(matches)
        else:
            response = self._settings.fallback_response
            sources = []

        processing_time_ms = int((time.perf_counter() - started) * 1000)
        self._logger.info(
            f"RAG query completed in {processing_time_ms}ms for user {user_id}",
            extra={"source_count": len(sources)},
        )
        return QueryResult(
            response=response,
            sources=sources,
            processing_time_ms=processing_time_ms,
        )

    async def summarize(self, conversation_id: str, user_id: str | None) -> SummaryResult:
        """Summarize the most recent videos of a conversation.

        Issues the canned summary query and splits the answer into bullet
        points.
        """
        result = await self.query(
            QueryRequest(
                query=self._settings.summary_query,
                conversation_id=conversation_id,
                max_results=self._settings.summary_max_results,
                user_id=user_id,
            )
        )

        if result.sources:
            summary = result.response
            bullet_points = extract_key_points(summary) or [DEFAULT_KEY_POINT]
        else:
            summary = self._settings.summary_fallback
            bullet_points = [DEFAULT_KEY_POINT]

        return SummaryResult(
            summary=summary,
            bullet_points=bullet_points,
            confidence=summary_confidence(len(result.sources)),
            sources=result.sources,
            processing_time_ms=result.processing_time_ms,
        )

    def _validate(
        self, query: str, conversation_id: str, max_results: int | None
    ) -> int:
        if not query:
            raise ValidationError("query", "query is required")
        if not conversation_id:
            raise ValidationError("conversationId", "conversationId is required")
        if len(query) > self._settings.max_query_length:
            raise ValidationError(
                "query",
                f"Query too long (max {self._settings.max_query_length} characters)",
            )

        if max_results is None:
            return self._settings.default_max_results
        if max_results < 1 or max_results > self._settings.max_results_cap:
            raise ValidationError(
                "maxResults",
                f"must be between 1 and {self._settings.max_results_cap}",
            )
        return max_results

    async def _authorize(self, user_id: str | None, conversation_id: str) -> None:
        if user_id and await self._membership.is_member(user_id, conversation_id):
            return
        log_security_event(
            "unauthorized_rag_query",
            user_id=user_id,
            conversation_id=conversation_id,
        )
        raise AuthorizationError(user_id, conversation_id)

    async def _retrieve(
        self, query: str, conversation_id: str, max_results: int
    ) -> list[IndexMatch]:
        try:
            vector = await self._embedder.embed_query(query)
            return await self._index.search(vector, conversation_id, top_k=max_results)
        except Exception as e:
            self._logger.error(
                "Error retrieving context for query",
                extra={"conversation_id": conversation_id, "error": str(e)},
            )
            raise SynthesisError(f"retrieval failed: {e}") from e
