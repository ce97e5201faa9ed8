"""OpenAI implementation of text embedding service."""

from typing import Any

from openai import AsyncOpenAI

from src.infrastructure.embeddings.base import EmbeddingResult, EmbeddingServiceBase

# Only the text-embedding-3 family accepts a requested output size
_RESIZABLE_PREFIX = "text-embedding-3"


class OpenAIEmbeddingService(EmbeddingServiceBase):
    """OpenAI text embeddings, text-embedding-ada-002 unless configured."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-ada-002",
        base_url: str | None = None,
        dimensions: int | None = None,
    ) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model
        self._dimensions = dimensions

    async def embed_text(self, text: str) -> EmbeddingResult:
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        request: dict[str, Any] = {"model": self._model, "input": text}
        if self._dimensions and self._model.startswith(_RESIZABLE_PREFIX):
            request["dimensions"] = self._dimensions

        response = await self._client.embeddings.create(**request)
        return EmbeddingResult(
            vector=response.data[0].embedding,
            model=self._model,
            tokens_used=response.usage.total_tokens if response.usage else None,
        )
