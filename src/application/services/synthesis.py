"""Grounded answer generation from retrieved transcript chunks."""

import math
import re
from enum import Enum

from src.application.dtos.query import SourceDTO
from src.application.services.index_manager import IndexMatch
from src.commons.telemetry import get_logger
from src.domain.exceptions import SynthesisError
from src.infrastructure.llm.base import LLMServiceBase, Message, MessageRole

SUMMARY_KEYWORDS = ("summarize", "summary", "main topics", "key takeaways")

CONVERSATIONAL_PROMPT = """You are a helpful AI assistant that provides contextual responses based on video conversation transcripts between friends. Use the provided context to give relevant, concise, and helpful suggestions for replies in a casual conversation.

Context from recent conversations:
{context}

Guidelines:
- Keep responses conversational and friendly
- Suggest 2-3 brief reply options when appropriate
- Reference specific moments from the context when relevant
- If no relevant context exists, provide general conversation starters
- Keep suggestions under 50 words each
- Format as a simple list with bullet points or numbers"""  # noqa: E501

SUMMARY_PROMPT = """You are a helpful AI assistant that summarizes video conversation transcripts between friends.

Context from recent conversations:
{context}

Guidelines:
- Write exactly 3-4 standalone declarative sentences
- Each sentence must work on its own as a bullet point
- Keep each sentence between 15 and 25 words
- Be concrete: name the topics, plans and moments that came up
- Do not repeat a point across sentences
- Do not add a heading, numbering or bullet characters"""

_LEADING_CONJUNCTION = re.compile(r"^(and|but|so|then|also|additionally)\s+", re.IGNORECASE)
_SENTENCE_END = re.compile(r"[.!?]+")


class PromptMode(str, Enum):
    """Which system prompt template answers a query."""

    SUMMARY = "summary"
    CONVERSATIONAL = "conversational"


def select_mode(query: str) -> PromptMode:
    """Pick summary mode when the query asks for one, else conversational."""
    lowered = query.lower()
    if any(keyword in lowered for keyword in SUMMARY_KEYWORDS):
        return PromptMode.SUMMARY
    return PromptMode.CONVERSATIONAL


def build_context(matches: list[IndexMatch]) -> str:
    """Render matches as ``[{start}s] {text}`` blocks in ranking order.

    Start times round half up, so 2.5 renders as ``[3s]``.
    """
    return "\n\n".join(
        f"[{math.floor(m.metadata.start_time + 0.5)}s] {m.metadata.text}"
        for m in matches
    )


def summary_confidence(source_count: int) -> float:
    """Aggregate confidence of a summary: more sources, more confidence."""
    return min(0.5 + 0.3 * source_count, 0.9)


def extract_key_points(text: str, limit: int = 4) -> list[str]:
    """Split a summary into bullet-ready sentences.

    Sentences of 15 characters or fewer are dropped as fragments.
    """
    points: list[str] = []
    for sentence in _SENTENCE_END.split(text):
        point = sentence.strip()
        if len(point) <= 15:
            continue
        point = _LEADING_CONJUNCTION.sub("", point)
        points.append(point[:1].upper() + point[1:])
        if len(points) == limit:
            break
    return points


class ResponseSynthesizer:
    """Turns a query plus ranked chunks into a grounded answer.

    Chunks are used in the order the index ranked them.
    """

    def __init__(
        self,
        llm_service: LLMServiceBase,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 300,
        empty_completion_response: str = "No suggestions available.",
        source_preview_chars: int = 150,
    ) -> None:
        self._llm = llm_service
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._empty_completion_response = empty_completion_response
        self._preview_chars = source_preview_chars
        self._logger = get_logger(__name__)

    async def synthesize(
        self,
        query: str,
        matches: list[IndexMatch],
        conversation_id: str | None = None,
    ) -> str:
        """Generate the answer text.

        Args:
            query: The user's question.
            matches: Ranked chunks; may be empty.
            conversation_id: Used as the tracing session.

        Returns:
            Model output, or a fixed fallback when the model returns nothing.

        Raises:
            SynthesisError: If the completion call fails.
        """
        mode = select_mode(query)
        template = SUMMARY_PROMPT if mode == PromptMode.SUMMARY else CONVERSATIONAL_PROMPT
        messages = [
            Message(
                role=MessageRole.SYSTEM,
                content=template.format(context=build_context(matches)),
            ),
            Message(role=MessageRole.USER, content=query),
        ]

        try:
            response = await self._llm.generate(
                messages,
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                session_id=conversation_id,
            )
        except Exception as e:
            self._logger.error(
                "Error generating contextual response",
                extra={"mode": mode.value, "error": str(e)},
            )
            raise SynthesisError(str(e)) from e

        self._logger.debug(
            "Response synthesized",
            extra={
                "mode": mode.value,
                "context_chunks": len(matches),
                "completion_tokens": response.usage.completion_tokens,
            },
        )
        return response.content.strip() or self._empty_completion_response

    def to_sources(self, matches: list[IndexMatch]) -> list[SourceDTO]:
        """Describe matches as client-facing sources."""
        return [
            SourceDTO(
                video_id=m.metadata.video_id,
                timestamp=m.metadata.start_time,
                confidence=round(m.score, 2),
                text=m.metadata.text[: self._preview_chars] + "...",
            )
            for m in matches
        ]
