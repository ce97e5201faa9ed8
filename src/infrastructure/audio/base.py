"""Abstract base class for audio extraction."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class AudioExtractionError(Exception):
    """Raised when media cannot be fetched or decoded to audio."""

    def __init__(self, media_ref: str, reason: str) -> None:
        self.media_ref = media_ref
        self.reason = reason
        super().__init__(f"Audio extraction failed for {media_ref}: {reason}")


@dataclass
class ExtractedAudio:
    """Decoded audio held in memory."""

    data: bytes
    filename: str
    sample_rate: int
    channels: int

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class AudioExtractorBase(ABC):
    """Turns a stored video into a normalized mono PCM buffer."""

    @abstractmethod
    async def extract(self, media_ref: str) -> ExtractedAudio:
        """Fetch a media blob and decode its audio track.

        Temporary files are removed on every exit path.

        Args:
            media_ref: Blob path of the video inside the media bucket.

        Returns:
            WAV-encoded 16-bit PCM audio.

        Raises:
            AudioExtractionError: If the blob is missing or undecodable.
        """
