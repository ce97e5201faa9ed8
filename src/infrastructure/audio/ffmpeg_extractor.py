"""FFmpeg implementation of audio extraction."""

import asyncio
import subprocess
import tempfile
from pathlib import Path

from src.commons.infrastructure.blob import BlobNotFoundError, BlobStorageBase
from src.commons.telemetry import get_logger
from src.infrastructure.audio.base import (
    AudioExtractionError,
    AudioExtractorBase,
    ExtractedAudio,
)


class FFmpegAudioExtractor(AudioExtractorBase):
    """Downloads media from blob storage and decodes it with ffmpeg.

    Requires ffmpeg to be installed and available in PATH (or configured).
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        bucket: str,
        ffmpeg_path: str = "ffmpeg",
        sample_rate: int = 16000,
        channels: int = 1,
    ) -> None:
        """Initialize the extractor.

        Args:
            blob_storage: Storage holding the uploaded media.
            bucket: Bucket containing the media.
            ffmpeg_path: Path to ffmpeg executable.
            sample_rate: Output sample rate in Hz.
            channels: Output channel count.
        """
        self._blob_storage = blob_storage
        self._bucket = bucket
        self._ffmpeg = ffmpeg_path
        self._sample_rate = sample_rate
        self._channels = channels
        self._logger = get_logger(__name__)

    async def extract(self, media_ref: str) -> ExtractedAudio:
        """Fetch a media blob and decode its audio track."""
        with tempfile.TemporaryDirectory(prefix="video-memory-") as workdir:
            video_path = Path(workdir) / Path(media_ref).name
            audio_path = Path(workdir) / "audio.wav"

            try:
                await self._blob_storage.download_to_file(
                    self._bucket, media_ref, video_path
                )
            except BlobNotFoundError as e:
                raise AudioExtractionError(media_ref, "media not found") from e

            await self._decode(media_ref, video_path, audio_path)
            data = audio_path.read_bytes()

        if not data:
            raise AudioExtractionError(media_ref, "decoded audio is empty")

        self._logger.debug(
            "Audio extracted",
            extra={"media_ref": media_ref, "size_bytes": len(data)},
        )
        return ExtractedAudio(
            data=data,
            filename="audio.wav",
            sample_rate=self._sample_rate,
            channels=self._channels,
        )

    async def _decode(self, media_ref: str, video_path: Path, audio_path: Path) -> None:
        cmd = [
            self._ffmpeg,
            "-i",
            str(video_path),
            "-vn",  # No video
            "-acodec",
            "pcm_s16le",
            "-ar",
            str(self._sample_rate),
            "-ac",
            str(self._channels),
            "-y",
            str(audio_path),
        ]

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                lambda: subprocess.run(cmd, capture_output=True, check=True),
            )
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or b"").decode(errors="replace").strip()
            raise AudioExtractionError(
                media_ref, stderr.splitlines()[-1] if stderr else f"exit {e.returncode}"
            ) from e
        except FileNotFoundError as e:
            raise AudioExtractionError(media_ref, f"ffmpeg not found: {e}") from e
