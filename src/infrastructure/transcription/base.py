"""Abstract base class for transcription services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class TranscriptionSegment:
    """A timed span of transcribed speech."""

    text: str
    start_time: float
    end_time: float


@dataclass
class TranscriptionResult:
    """Complete transcription result."""

    segments: list[TranscriptionSegment]
    full_text: str
    language: str
    duration_seconds: float


class TranscriptionServiceBase(ABC):
    """Speech-to-text provider working on in-memory audio."""

    @abstractmethod
    async def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.wav",
        language_hint: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio buffer into timed segments.

        Args:
            audio: Encoded audio (WAV, 16 kHz mono).
            filename: Name reported to the provider; its extension tells
                the provider the container format.
            language_hint: Optional ISO language code (e.g., 'en').

        Returns:
            Transcription with segments in chronological order.
        """
