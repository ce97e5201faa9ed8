"""Unit tests for ResponseSynthesizer and its helpers."""

from unittest.mock import AsyncMock

import pytest

from src.application.services.index_manager import IndexMatch
from src.application.services.synthesis import (
    PromptMode,
    ResponseSynthesizer,
    build_context,
    extract_key_points,
    select_mode,
    summary_confidence,
)
from src.domain.exceptions import SynthesisError
from src.domain.models.vector import VectorMetadata
from src.infrastructure.llm.base import LLMResponse, LLMUsage, MessageRole


def match(text: str, start: float, score: float = 0.8765, video_id: str = "vid-1") -> IndexMatch:
    return IndexMatch(
        id=f"{video_id}_chunk_0",
        score=score,
        metadata=VectorMetadata(
            text=text,
            video_id=video_id,
            conversation_id="conv-1",
            start_time=start,
            end_time=start + 10,
            timestamp=1700000000000,
            chunk_index=0,
        ),
    )


def llm_response(content: str) -> LLMResponse:
    return LLMResponse(
        content=content,
        finish_reason="stop",
        usage=LLMUsage(prompt_tokens=120, completion_tokens=40, total_tokens=160),
        model="gpt-4",
    )


@pytest.fixture
def mock_llm():
    llm = AsyncMock()
    llm.generate.return_value = llm_response("- Ask how the trip went\n- Share a photo")
    return llm


@pytest.fixture
def synthesizer(mock_llm) -> ResponseSynthesizer:
    return ResponseSynthesizer(llm_service=mock_llm, model="gpt-4")


class TestModeSelection:
    """Tests for keyword-based prompt mode selection."""

    @pytest.mark.parametrize(
        "query",
        [
            "Summarize the conversation",
            "give me a SUMMARY",
            "What were the main topics?",
            "key takeaways please",
        ],
    )
    def test_summary_keywords(self, query):
        assert select_mode(query) == PromptMode.SUMMARY

    def test_other_queries_are_conversational(self):
        assert select_mode("What should I reply about dinner?") == PromptMode.CONVERSATIONAL


class TestHelpers:
    """Tests for context formatting, confidence and key points."""

    def test_context_rounds_start_time_and_keeps_order(self):
        context = build_context([match("second", 42.6), match("first", 3.2)])

        assert context == "[43s] second\n\n[3s] first"

    @pytest.mark.parametrize(("start", "label"), [(2.5, "[3s]"), (0.5, "[1s]"), (4.49, "[4s]")])
    def test_context_rounds_half_up(self, start, label):
        assert build_context([match("hi", start)]).startswith(label)

    def test_empty_context(self):
        assert build_context([]) == ""

    @pytest.mark.parametrize(
        ("sources", "expected"),
        [(0, 0.5), (1, 0.8), (2, 0.9), (5, 0.9)],
    )
    def test_summary_confidence(self, sources, expected):
        assert summary_confidence(sources) == pytest.approx(expected)

    def test_key_points_clean_and_limit(self):
        text = (
            "You both planned a hiking trip for next weekend. "
            "And you agreed to bring snacks for the long drive! "
            "Ok. "
            "So the weather looked uncertain for Saturday morning? "
            "Then you decided on the northern trail instead. "
            "Additionally a fifth sentence that should be dropped."
        )

        points = extract_key_points(text)

        assert points == [
            "You both planned a hiking trip for next weekend",
            "You agreed to bring snacks for the long drive",
            "The weather looked uncertain for Saturday morning",
            "You decided on the northern trail instead",
        ]

    def test_key_points_of_short_text(self):
        assert extract_key_points("Hi. Ok.") == []


class TestSynthesize:
    """Tests for the completion call."""

    async def test_conversational_prompt_and_parameters(self, synthesizer, mock_llm):
        answer = await synthesizer.synthesize(
            "What should I say back?", [match("we talked about dinner", 5.0)], "conv-1"
        )

        assert answer == "- Ask how the trip went\n- Share a photo"
        messages = mock_llm.generate.await_args.args[0]
        assert messages[0].role == MessageRole.SYSTEM
        assert "suggestions for replies" in messages[0].content
        assert "[5s] we talked about dinner" in messages[0].content
        assert messages[1].role == MessageRole.USER
        assert messages[1].content == "What should I say back?"
        kwargs = mock_llm.generate.await_args.kwargs
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 300
        assert kwargs["session_id"] == "conv-1"

    async def test_summary_prompt_for_summary_query(self, synthesizer, mock_llm):
        await synthesizer.synthesize("Summarize the conversation", [match("trip", 1.0)])

        system = mock_llm.generate.await_args.args[0][0].content
        assert "3-4 standalone declarative sentences" in system
        assert "15 and 25 words" in system

    async def test_empty_completion_uses_fallback(self, synthesizer, mock_llm):
        mock_llm.generate.return_value = llm_response("   ")

        answer = await synthesizer.synthesize("hello?", [match("x", 0.0)])

        assert answer == "No suggestions available."

    async def test_llm_failure_raises_synthesis_error(self, synthesizer, mock_llm):
        mock_llm.generate.side_effect = RuntimeError("upstream 500")

        with pytest.raises(SynthesisError, match="upstream 500"):
            await synthesizer.synthesize("hello?", [match("x", 0.0)])

    def test_sources_round_score_and_truncate_text(self, synthesizer):
        long_text = "a" * 200

        sources = synthesizer.to_sources([match(long_text, 12.5, score=0.87654)])

        assert sources[0].video_id == "vid-1"
        assert sources[0].timestamp == 12.5
        assert sources[0].confidence == 0.88
        assert sources[0].text == "a" * 150 + "..."
