"""Abstract base class for embedding services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class EmbeddingResult:
    vector: list[float]
    model: str
    tokens_used: int | None = None

    @property
    def dimensions(self) -> int:
        return len(self.vector)


class EmbeddingServiceBase(ABC):
    """Text embedding provider (OpenAI, Azure OpenAI)."""

    @abstractmethod
    async def embed_text(self, text: str) -> EmbeddingResult:
        """Embed one text with the configured model.

        Raises:
            ValueError: If ``text`` is blank.
        """
