"""
Audio frame primitives.

Pure data containers only.
No behavior beyond normalization, no queues, no timing logic.
"""

from __future__ import annotations
from dataclasses import dataclass

from audio.pcm import even_length


@dataclass(frozen=True)
class AudioFrame:
    """
    One binary frame received from the client, normalized for buffering.

    pcm_bytes:
        Raw PCM16 little-endian mono audio bytes. Always even length and
        never empty once constructed via from_payload().

    ts_ms:
        Wall-clock timestamp (milliseconds) when the frame was received.
        Used for observability only (not control logic).
    """
    pcm_bytes: bytes
    ts_ms: int

    @staticmethod
    def from_payload(payload: bytes, *, ts_ms: int) -> AudioFrame | None:
        """
        Normalize a raw binary frame.

        Odd-length payloads lose exactly their last byte. Returns None when
        nothing remains, so the caller can discard the frame.
        """
        pcm = even_length(bytes(payload))
        if not pcm:
            return None
        return AudioFrame(pcm_bytes=pcm, ts_ms=ts_ms)

    def __len__(self) -> int:
        return len(self.pcm_bytes)


@dataclass(frozen=True)
class FlushBatch:
    """
    Audio drained from a session by one flush.

    Holds no reference back to the session: once built, it belongs to the
    downstream pipeline (stats -> encode -> sample -> dispatch).
    """
    session_id: str
    flush_id: int
    payload: bytes
    frame_count: int
