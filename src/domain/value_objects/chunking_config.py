"""Chunking configuration value object."""

import math

from pydantic import BaseModel, Field


class ChunkingConfig(BaseModel):
    """Parameters of the token-bounded sliding window chunker.

    Token counts are estimated from character length, so the same
    configuration always yields the same chunks for the same segments.
    """

    chunk_size: int = Field(
        default=250,
        ge=1,
        le=8000,
        description="Maximum estimated tokens per chunk before a split",
    )
    overlap_size: int = Field(
        default=50,
        ge=0,
        le=1000,
        description="Target overlap between consecutive chunks in tokens",
    )
    chars_per_token: int = Field(
        default=4,
        ge=1,
        le=16,
        description="Characters per token used by the estimate",
    )
    tokens_per_overlap_segment: int = Field(
        default=50,
        ge=1,
        description="Assumed tokens per segment when sizing the overlap tail",
    )

    @property
    def overlap_segments(self) -> int:
        """Number of trailing segments carried into the next window."""
        return math.ceil(self.overlap_size / self.tokens_per_overlap_segment)

    def estimate_tokens(self, text: str) -> int:
        """Estimate the token count of a piece of text.

        Args:
            text: Text to measure.

        Returns:
            ``ceil(len(text) / chars_per_token)``.
        """
        return math.ceil(len(text) / self.chars_per_token)
