"""Abstract base class for LLM services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class MessageRole(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A message in the conversation."""

    role: MessageRole
    content: str


@dataclass
class LLMUsage:
    """Token usage statistics."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int

    def as_dict(self) -> dict[str, int]:
        """Usage in the shape expected by the tracing backend."""
        return {
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


@dataclass
class LLMResponse:
    """Response from LLM generation.

    ``content`` is empty when the provider returned no text.
    """

    content: str
    finish_reason: str
    usage: LLMUsage
    model: str


class LLMServiceBase(ABC):
    """Chat completion provider (OpenAI, Azure OpenAI, Anthropic)."""

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 300,
        session_id: str | None = None,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: Conversation messages, system prompt first.
            model: Optional model override.
            temperature: Sampling temperature (0.0-2.0).
            max_tokens: Maximum tokens to generate.
            session_id: Optional tracing session (the conversation id).

        Returns:
            LLM response with content and usage.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when no override is given."""
