"""
Transcription dispatcher contract.

This module defines the *interface only*: no buffering, statistics, retries,
or acknowledgment logic live here.

Key invariants:
- A dispatcher accepts one complete WAV container per call.
- The caller never waits on a dispatch from the frame path; dispatch runs in
  the flush task.
- A dispatcher MAY raise; the caller treats any exception as a failed
  dispatch, logs it and moves on. Failures never roll back the drained buffer.
- Retries, if any, are the implementation's own business.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class DispatchError(RuntimeError):
    """Raised by dispatcher implementations when the provider call fails."""


@dataclass(frozen=True)
class DispatchResult:
    """
    Outcome of one dispatch.

    accepted:
        True if the provider took the audio.

    text:
        Recognized text, if the provider returned any.

    error:
        Human-readable failure reason when accepted is False.
    """
    accepted: bool
    text: str | None = None
    error: str | None = None


class TranscriptionDispatcher(ABC):
    """
    Abstract boundary to a speech-recognition provider.

    Implementations are responsible for:
    - Delivering the WAV container to the provider
    - Reporting accepted / failed

    Non-responsibilities:
    - No session or buffer access
    - No client messaging
    - No debug persistence
    """

    @abstractmethod
    async def dispatch(
        self,
        *,
        wav_bytes: bytes,
        session_id: str,
        flush_id: int,
    ) -> DispatchResult:
        """
        Forward one encoded container to the provider.

        Args:
            wav_bytes: Complete WAV container (header + PCM16 payload).
            session_id: Session identifier for logging/correlation.
            flush_id: Per-session flush number for logging/correlation.
        """
        raise NotImplementedError
