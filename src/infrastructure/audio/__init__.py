"""Audio extraction services."""

from src.infrastructure.audio.base import (
    AudioExtractionError,
    AudioExtractorBase,
    ExtractedAudio,
)
from src.infrastructure.audio.ffmpeg_extractor import FFmpegAudioExtractor

__all__ = [
    "AudioExtractorBase",
    "AudioExtractionError",
    "ExtractedAudio",
    "FFmpegAudioExtractor",
]
