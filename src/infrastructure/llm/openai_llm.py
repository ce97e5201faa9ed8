"""OpenAI (and Azure OpenAI compatible) chat completions."""

from typing import Any

from openai import AsyncOpenAI

from src.commons.telemetry import traced_generation
from src.infrastructure.llm.base import LLMResponse, LLMServiceBase, LLMUsage, Message


class OpenAILLMService(LLMServiceBase):
    """Chat completions client, GPT-4 unless configured otherwise."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds)
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
        payload: list[dict[str, Any]] = [
            {"role": m.role.value, "content": m.content} for m in messages
        ]

        with traced_generation(
            name="openai_chat_completion",
            model=model,
            input_messages=payload,
            model_parameters={"temperature": temperature, "max_tokens": max_tokens},
            metadata={"provider": "openai"},
            session_id=session_id,
        ) as trace:
            completion = await self._client.chat.completions.create(
                model=model,
                messages=payload,  # type: ignore[arg-type]
                temperature=temperature,
                max_tokens=max_tokens,
            )
            result = self._to_response(completion)
            trace.record(result.content, result.usage.as_dict())
        return result

    @staticmethod
    def _to_response(completion: Any) -> LLMResponse:
        """Map a completion onto ``LLMResponse``; no choices means empty content."""
        choice = completion.choices[0] if completion.choices else None
        usage = completion.usage
        return LLMResponse(
            content=(choice.message.content or "") if choice else "",
            finish_reason=(choice.finish_reason if choice else None) or "stop",
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            model=completion.model,
        )
