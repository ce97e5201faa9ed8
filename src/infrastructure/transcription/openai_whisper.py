"""OpenAI Whisper implementation of transcription service."""

from typing import Any, cast

from openai import AsyncOpenAI

from src.infrastructure.transcription.base import (
    TranscriptionResult,
    TranscriptionSegment,
    TranscriptionServiceBase,
)


def _field(item: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK object or a plain dict."""
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


class OpenAIWhisperTranscription(TranscriptionServiceBase):
    """OpenAI Whisper API implementation of transcription service.

    Requests ``verbose_json`` with segment granularity so each segment
    carries its own start and end offsets.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self._model = model

    async def transcribe(
        self,
        audio: bytes,
        filename: str = "audio.wav",
        language_hint: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio buffer into timed segments."""
        # Cast to Any to work around strict overload typing in OpenAI SDK
        create_fn = cast("Any", self._client.audio.transcriptions.create)
        response = await create_fn(
            model=self._model,
            file=(filename, audio),
            language=language_hint,
            response_format="verbose_json",
            timestamp_granularities=["segment"],
        )

        segments = [
            TranscriptionSegment(
                text=str(_field(seg, "text", "")).strip(),
                start_time=float(_field(seg, "start", 0.0)),
                end_time=float(_field(seg, "end", 0.0)),
            )
            for seg in (_field(response, "segments") or [])
        ]

        duration = _field(response, "duration")
        if duration is None:
            duration = segments[-1].end_time if segments else 0.0

        return TranscriptionResult(
            segments=segments,
            full_text=str(_field(response, "text", "")).strip(),
            language=_field(response, "language") or language_hint or "en",
            duration_seconds=float(duration),
        )
