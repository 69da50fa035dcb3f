"""
OpenAI transcription dispatcher.

Sends each flushed WAV container to the OpenAI audio transcription endpoint
(whisper-1 by default) and reports the recognized text.

Role in the system:
- Receives a complete WAV container from the flush pipeline.
- Performs exactly one provider call per container.
- Wraps provider failures in DispatchError.

Architectural constraints:
- No retries, timers, or backpressure logic live here.
- The client is injected (one AsyncOpenAI per process).
"""

from __future__ import annotations

from typing import Any

from adapters.asr.base import DispatchError, DispatchResult, TranscriptionDispatcher
from constants import DEFAULT_STT_MODEL


class OpenAITranscriptionDispatcher(TranscriptionDispatcher):
    """Dispatch containers to OpenAI speech-to-text."""

    def __init__(
        self,
        *,
        client: Any,  # Type: openai.AsyncOpenAI
        model: str = DEFAULT_STT_MODEL,
        language: str | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._language = language

    async def dispatch(
        self,
        *,
        wav_bytes: bytes,
        session_id: str,
        flush_id: int,
    ) -> DispatchResult:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "file": (f"{session_id}-{flush_id}.wav", wav_bytes, "audio/wav"),
        }
        if self._language:
            kwargs["language"] = self._language

        try:
            transcription = await self._client.audio.transcriptions.create(**kwargs)
        except Exception as e:  # pylint: disable=broad-exception-caught
            raise DispatchError(f"OpenAI transcription failed: {e!r}") from e

        text = (getattr(transcription, "text", None) or "").strip()
        return DispatchResult(accepted=True, text=text or None)
