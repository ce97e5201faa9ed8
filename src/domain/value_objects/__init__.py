"""Domain value objects."""

from src.domain.value_objects.chunking_config import ChunkingConfig

__all__ = [
    "ChunkingConfig",
]
