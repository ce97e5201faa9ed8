"""Unit tests for ConversationQueryService."""

from unittest.mock import AsyncMock, patch

import pytest

from src.application.dtos.query import QueryRequest
from src.application.services.index_manager import IndexMatch
from src.application.services.query import ConversationQueryService
from src.application.services.synthesis import ResponseSynthesizer
from src.commons.settings.models import QuerySettings
from src.domain.exceptions import AuthorizationError, SynthesisError, ValidationError
from src.domain.models.vector import VectorMetadata
from src.infrastructure.llm.base import LLMResponse, LLMUsage

# =============================================================================
# Fixtures
# =============================================================================


def match(text: str, start: float, score: float) -> IndexMatch:
    return IndexMatch(
        id=f"vid-1_chunk_{int(start)}",
        score=score,
        metadata=VectorMetadata(
            text=text,
            video_id="vid-1",
            conversation_id="conv-1",
            start_time=start,
            end_time=start + 10,
            timestamp=1700000000000,
            chunk_index=int(start),
        ),
    )


def llm_response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        finish_reason="stop",
        usage=LLMUsage(prompt_tokens=100, completion_tokens=30, total_tokens=130),
        model="gpt-4",
    )


MATCHES = [
    match("We should book the cabin for the long weekend", 12.4, 0.91),
    match("Bring the blue tent and the camping stove", 30.0, 0.84),
]


@pytest.fixture
def mock_embedder():
    embedder = AsyncMock()
    embedder.embed_query.return_value = [0.1] * 1536
    return embedder


@pytest.fixture
def mock_index():
    index = AsyncMock()
    index.search.return_value = MATCHES
    return index


@pytest.fixture
def mock_llm():
    llm = AsyncMock()
    llm.generate.return_value = llm_response("Ask whether the cabin is booked.")
    return llm


@pytest.fixture
def mock_membership():
    membership = AsyncMock()
    membership.is_member.return_value = True
    return membership


@pytest.fixture
def service(mock_embedder, mock_index, mock_llm, mock_membership) -> ConversationQueryService:
    return ConversationQueryService(
        embedder=mock_embedder,
        index_manager=mock_index,
        synthesizer=ResponseSynthesizer(llm_service=mock_llm, model="gpt-4"),
        membership=mock_membership,
        settings=QuerySettings(),
    )


def request(query: str = "What did we plan?", **kwargs) -> QueryRequest:
    defaults = {"conversation_id": "conv-1", "user_id": "alice"}
    defaults.update(kwargs)
    return QueryRequest(query=query, **defaults)


# =============================================================================
# Test: Validation
# =============================================================================


class TestValidation:
    """Tests for request validation."""

    async def test_missing_query(self, service, mock_embedder):
        with pytest.raises(ValidationError) as exc_info:
            await service.query(request(query=""))

        assert exc_info.value.field == "query"
        mock_embedder.embed_query.assert_not_awaited()

    async def test_whitespace_only_query_is_missing(self, service):
        with pytest.raises(ValidationError):
            await service.query(request(query="   "))

    async def test_missing_conversation(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.query(request(conversation_id=""))

        assert exc_info.value.field == "conversationId"

    async def test_query_too_long(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.query(request(query="a" * 501))

        assert "max 500" in exc_info.value.reason

    async def test_query_at_limit_is_accepted(self, service):
        result = await service.query(request(query="a" * 500))

        assert result.response

    @pytest.mark.parametrize("max_results", [0, -1, 21])
    async def test_max_results_out_of_range(self, service, max_results):
        with pytest.raises(ValidationError) as exc_info:
            await service.query(request(max_results=max_results))

        assert exc_info.value.field == "maxResults"

    async def test_max_results_defaults_to_five(self, service, mock_index):
        await service.query(request())

        assert mock_index.search.await_args.kwargs["top_k"] == 5

    async def test_query_is_sanitized(self, service, mock_embedder):
        await service.query(request(query="<script>x</script> where do we meet? "))

        mock_embedder.embed_query.assert_awaited_once_with("where do we meet?")


# =============================================================================
# Test: Authorization
# =============================================================================


class TestAuthorization:
    """Tests for membership checks."""

    async def test_non_member_is_rejected(self, service, mock_membership, mock_embedder):
        mock_membership.is_member.return_value = False

        with (
            patch("src.application.services.query.log_security_event") as audit,
            pytest.raises(AuthorizationError),
        ):
            await service.query(request(user_id="mallory"))

        audit.assert_any_call(
            "unauthorized_rag_query", user_id="mallory", conversation_id="conv-1"
        )
        mock_embedder.embed_query.assert_not_awaited()

    async def test_anonymous_caller_is_rejected(self, service, mock_membership):
        with pytest.raises(AuthorizationError):
            await service.query(request(user_id=None))

        mock_membership.is_member.assert_not_awaited()

    async def test_request_is_audited(self, service):
        with patch("src.application.services.query.log_security_event") as audit:
            await service.query(request())

        audit.assert_any_call(
            "rag_query_request",
            user_id="alice",
            conversation_id="conv-1",
            query_length=len("What did we plan?"),
        )


# =============================================================================
# Test: Retrieval and answers
# =============================================================================


class TestQuery:
    """Tests for retrieval-grounded answers."""

    async def test_search_is_scoped_to_conversation(self, service, mock_index):
        await service.query(request(max_results=3))

        vector, namespace = mock_index.search.await_args.args
        assert len(vector) == 1536
        assert namespace == "conv-1"
        assert mock_index.search.await_args.kwargs["top_k"] == 3

    async def test_answer_with_sources(self, service):
        result = await service.query(request())

        assert result.response == "Ask whether the cabin is booked."
        assert [s.timestamp for s in result.sources] == [12.4, 30.0]
        assert [s.confidence for s in result.sources] == [0.91, 0.84]
        assert result.sources[0].video_id == "vid-1"
        assert result.processing_time_ms >= 0

    async def test_empty_namespace_returns_fallback(self, service, mock_index, mock_llm):
        mock_index.search.return_value = []

        result = await service.query(request())

        assert result.response == "I don't have enough context to help with that query."
        assert result.sources == []
        mock_llm.generate.assert_not_awaited()

    async def test_summary_keyword_uses_summary_prompt(self, service, mock_llm):
        await service.query(request(query="Can you summarize what we talked about?"))

        system_prompt = mock_llm.generate.await_args.args[0][0].content
        assert "3-4 standalone declarative sentences" in system_prompt
        assert "[12s] We should book the cabin" in system_prompt

    async def test_conversational_prompt_by_default(self, service, mock_llm):
        await service.query(request(query="What should I reply?"))

        system_prompt = mock_llm.generate.await_args.args[0][0].content
        assert "3-4 standalone declarative sentences" not in system_prompt
        assert "[30s] Bring the blue tent" in system_prompt

    async def test_embedding_failure_is_synthesis_error(self, service, mock_embedder):
        mock_embedder.embed_query.side_effect = RuntimeError("openai 500")

        with pytest.raises(SynthesisError):
            await service.query(request())

    async def test_search_failure_is_synthesis_error(self, service, mock_index):
        mock_index.search.side_effect = ConnectionError("qdrant down")

        with pytest.raises(SynthesisError):
            await service.query(request())

    async def test_llm_failure_propagates(self, service, mock_llm):
        mock_llm.generate.side_effect = RuntimeError("rate limited")

        with pytest.raises(SynthesisError):
            await service.query(request())


# =============================================================================
# Test: Summary
# =============================================================================


class TestSummarize:
    """Tests for conversation summaries."""

    async def test_summary_with_sources(self, service, mock_llm, mock_index):
        mock_llm.generate.return_value = llm_response(
            "You both planned a cabin trip for the long weekend. "
            "And you agreed to bring the blue tent and the stove."
        )

        result = await service.summarize("conv-1", "alice")

        assert mock_index.search.await_args.kwargs["top_k"] == 3
        assert result.summary.startswith("You both planned a cabin trip")
        assert result.bullet_points == [
            "You both planned a cabin trip for the long weekend",
            "You agreed to bring the blue tent and the stove",
        ]
        assert result.confidence == pytest.approx(0.9)
        assert len(result.sources) == 2

    async def test_summary_uses_summary_prompt(self, service, mock_llm):
        await service.summarize("conv-1", "alice")

        system_prompt = mock_llm.generate.await_args.args[0][0].content
        assert "3-4 standalone declarative sentences" in system_prompt

    async def test_summary_without_sources(self, service, mock_index):
        mock_index.search.return_value = []

        result = await service.summarize("conv-1", "alice")

        assert result.summary == "Recent conversation covered various topics."
        assert result.bullet_points == ["Recent conversation shared"]
        assert result.confidence == pytest.approx(0.5)
        assert result.sources == []

    async def test_summary_without_key_points(self, service, mock_llm, mock_index):
        mock_index.search.return_value = MATCHES[:1]
        mock_llm.generate.return_value = llm_response("Fun. Ok.")

        result = await service.summarize("conv-1", "alice")

        assert result.bullet_points == ["Recent conversation shared"]
        assert result.confidence == pytest.approx(0.8)

    async def test_summary_requires_membership(self, service, mock_membership):
        mock_membership.is_member.return_value = False

        with pytest.raises(AuthorizationError):
            await service.summarize("conv-1", "mallory")
