"""Unit tests for chat completion providers."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.infrastructure.llm.anthropic_llm import AnthropicLLMService, split_system_prompt
from src.infrastructure.llm.base import Message, MessageRole
from src.infrastructure.llm.openai_llm import OpenAILLMService

MESSAGES = [
    Message(role=MessageRole.SYSTEM, content="You suggest follow-up questions."),
    Message(role=MessageRole.USER, content="What did Bob say about the trip?"),
]


class TestOpenAILLMService:
    """Tests for the OpenAI provider."""

    @pytest.fixture
    def mock_client(self):
        with patch("src.infrastructure.llm.openai_llm.AsyncOpenAI") as client_class:
            client = MagicMock()
            client.chat.completions.create = AsyncMock()
            client_class.return_value = client
            yield client

    def completion(self, content="Ask about the hotel", choices=True):
        return SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content=content), finish_reason="stop"
                )
            ]
            if choices
            else [],
            usage=SimpleNamespace(prompt_tokens=40, completion_tokens=8, total_tokens=48),
            model="gpt-4-0613",
        )

    async def test_generate(self, mock_client):
        mock_client.chat.completions.create.return_value = self.completion()
        service = OpenAILLMService(api_key="sk-test")

        response = await service.generate(MESSAGES, temperature=0.2, max_tokens=50)

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4"
        assert kwargs["messages"][0] == {
            "role": "system",
            "content": "You suggest follow-up questions.",
        }
        assert kwargs["temperature"] == 0.2
        assert response.content == "Ask about the hotel"
        assert response.usage.total_tokens == 48
        assert response.model == "gpt-4-0613"

    async def test_model_override(self, mock_client):
        mock_client.chat.completions.create.return_value = self.completion()
        service = OpenAILLMService(api_key="sk-test", model="gpt-4")

        await service.generate(MESSAGES, model="gpt-4o-mini")

        assert mock_client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o-mini"

    async def test_no_choices_gives_empty_content(self, mock_client):
        mock_client.chat.completions.create.return_value = self.completion(choices=False)

        response = await OpenAILLMService(api_key="sk-test").generate(MESSAGES)

        assert response.content == ""
        assert response.finish_reason == "stop"

    async def test_errors_propagate(self, mock_client):
        mock_client.chat.completions.create.side_effect = RuntimeError("503")

        with pytest.raises(RuntimeError, match="503"):
            await OpenAILLMService(api_key="sk-test").generate(MESSAGES)


class TestAnthropicLLMService:
    """Tests for the Anthropic provider."""

    @pytest.fixture
    def mock_client(self):
        with patch("src.infrastructure.llm.anthropic_llm.AsyncAnthropic") as client_class:
            client = MagicMock()
            client.messages.create = AsyncMock(
                return_value=SimpleNamespace(
                    content=[SimpleNamespace(type="text", text="Ask about the hotel")],
                    stop_reason="end_turn",
                    usage=SimpleNamespace(input_tokens=30, output_tokens=6),
                    model="claude-sonnet-4-20250514",
                )
            )
            client_class.return_value = client
            yield client

    def test_split_system_prompt(self):
        system, turns = split_system_prompt(MESSAGES)

        assert system == "You suggest follow-up questions."
        assert turns == [{"role": "user", "content": "What did Bob say about the trip?"}]

    async def test_system_prompt_is_top_level(self, mock_client):
        response = await AnthropicLLMService(api_key="key").generate(MESSAGES)

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "You suggest follow-up questions."
        assert all(m["role"] != "system" for m in kwargs["messages"])
        assert response.content == "Ask about the hotel"
        assert response.usage.total_tokens == 36

    async def test_without_system_prompt(self, mock_client):
        await AnthropicLLMService(api_key="key").generate(MESSAGES[1:])

        assert "system" not in mock_client.messages.create.call_args.kwargs
