"""Transcription services."""

from src.infrastructure.transcription.base import (
    TranscriptionResult,
    TranscriptionSegment,
    TranscriptionServiceBase,
)
from src.infrastructure.transcription.openai_whisper import OpenAIWhisperTranscription

__all__ = [
    "TranscriptionServiceBase",
    "TranscriptionResult",
    "TranscriptionSegment",
    "OpenAIWhisperTranscription",
]
