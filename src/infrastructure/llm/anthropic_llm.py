"""Anthropic Messages API chat completions."""

from typing import Any

from anthropic import AsyncAnthropic

from src.commons.telemetry import traced_generation
from src.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)


def split_system_prompt(messages: list[Message]) -> tuple[str, list[dict[str, Any]]]:
    """Separate system messages, which Anthropic takes as a top-level field."""
    system = "\n\n".join(m.content for m in messages if m.role is MessageRole.SYSTEM)
    turns = [
        {"role": m.role.value, "content": m.content}
        for m in messages
        if m.role is not MessageRole.SYSTEM
    ]
    return system, turns


class AnthropicLLMService(LLMServiceBase):
    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        max_retries: int = 2,
    ) -> None:
        self._client = AsyncAnthropic(api_key=api_key, base_url=base_url, max_retries=max_retries)
        self._model = model

    @property
    def default_model(self) -> str:
        return self._model

    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 300,
        session_id: str | None = None,
    ) -> LLMResponse:
        model = model or self._model
        system, turns = split_system_prompt(messages)
        request: dict[str, Any] = {
            "model": model,
            "messages": turns,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system:
            request["system"] = system

        with traced_generation(
            name="anthropic_messages",
            model=model,
            input_messages=[{"role": "system", "content": system}, *turns] if system else turns,
            model_parameters={"temperature": temperature, "max_tokens": max_tokens},
            metadata={"provider": "anthropic"},
            session_id=session_id,
        ) as trace:
            message = await self._client.messages.create(**request)
            text = next((b.text for b in message.content if b.type == "text"), "")
            prompt, completion = message.usage.input_tokens, message.usage.output_tokens
            result = LLMResponse(
                content=text,
                finish_reason=message.stop_reason or "end_turn",
                usage=LLMUsage(prompt, completion, prompt + completion),
                model=message.model,
            )
            trace.record(result.content, result.usage.as_dict())
        return result
