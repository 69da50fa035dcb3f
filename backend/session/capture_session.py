"""
Capture session container.

One session per WebSocket connection:
- Owns the buffered audio frames (exclusively)
- Owns the flush counter
- Owned and mutated by SessionGateway only, from the connection's own task
- Contains no I/O and no downstream pipeline logic

Buffer rules:
- Frames are appended in arrival order, always even length, never empty
- drain() takes the whole buffer and replaces it with an empty one in a single
  synchronous step, so flush batches never share data
- An optional byte ceiling applies an explicit overflow policy; without one the
  buffer is unbounded (no backpressure)
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque

from audio.frames import AudioFrame, FlushBatch
from constants import MIN_FLUSH_BYTES
from session.connection_status import ConnectionStatus


class OverflowPolicy(str, Enum):
    """
    What to do when a frame would push the buffer past max_buffered_bytes.
    """
    REJECT = "reject"            # drop the incoming frame
    DROP_OLDEST = "drop_oldest"  # drop buffered frames from the front until it fits
    FLUSH = "flush"              # flush the current buffer, then append


class AppendOutcome(str, Enum):
    """Result of accept_binary_frame()."""
    APPENDED = "appended"
    APPENDED_AFTER_DROP = "appended_after_drop"
    DISCARDED = "discarded"            # empty after truncation
    REJECTED = "rejected"              # overflow, REJECT policy
    FLUSH_REQUIRED = "flush_required"  # overflow, FLUSH policy; frame not appended
    CLOSED = "closed"


@dataclass
class DropCounters:
    """
    Drop counters for observability.
    """
    discarded: int = 0
    rejected: int = 0
    dropped_oldest: int = 0


# ---------------------------------------------------------------------
# CaptureSession
# ---------------------------------------------------------------------


@dataclass
class CaptureSession:
    """Mutable buffer container for a single capture connection."""

    # ------------------------------------------------------------------
    # Identity / lifecycle
    # ------------------------------------------------------------------

    session_id: str
    created_at: float = field(default_factory=time.time)
    connection_status: ConnectionStatus = ConnectionStatus.OPEN

    # ------------------------------------------------------------------
    # Buffer policy
    # ------------------------------------------------------------------

    max_buffered_bytes: int | None = None
    overflow_policy: OverflowPolicy = OverflowPolicy.REJECT

    # ------------------------------------------------------------------
    # Buffer state
    # ------------------------------------------------------------------

    flush_count: int = 0
    buffered_frames: Deque[bytes] = field(default_factory=deque)
    drops: DropCounters = field(default_factory=DropCounters)

    def __post_init__(self) -> None:
        if self.max_buffered_bytes is not None and self.max_buffered_bytes <= 0:
            raise ValueError("max_buffered_bytes must be > 0")
        self.overflow_policy = OverflowPolicy(self.overflow_policy)
        self._buffered_bytes = sum(len(f) for f in self.buffered_frames)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        """True until close() is called."""
        return self.connection_status is ConnectionStatus.OPEN

    @property
    def buffered_bytes(self) -> int:
        """Total bytes currently buffered."""
        return self._buffered_bytes

    def log_context(self) -> dict[str, Any]:
        """
        Return standard logging context for this session.
        """
        return {
            "session_id": self.session_id,
            "connection_status": self.connection_status.value,
            "flush_count": self.flush_count,
            "buffered_bytes": self._buffered_bytes,
        }

    # ------------------------------------------------------------------
    # Frame path
    # ------------------------------------------------------------------

    def accept_binary_frame(self, payload: bytes, *, ts_ms: int) -> AppendOutcome:
        """
        Buffer one binary frame.

        Odd-length payloads lose their last byte; empty results are discarded.
        Never raises for malformed input.
        """
        if not self.is_open:
            return AppendOutcome.CLOSED

        frame = AudioFrame.from_payload(payload, ts_ms=ts_ms)
        if frame is None:
            self.drops.discarded += 1
            return AppendOutcome.DISCARDED

        size = len(frame)
        outcome = AppendOutcome.APPENDED

        if self._would_overflow(size):
            if self.overflow_policy is OverflowPolicy.REJECT:
                self.drops.rejected += 1
                return AppendOutcome.REJECTED

            if self.overflow_policy is OverflowPolicy.FLUSH:
                # Oversized frame on an empty buffer is accepted alone
                if self.buffered_frames:
                    return AppendOutcome.FLUSH_REQUIRED

            elif self.overflow_policy is OverflowPolicy.DROP_OLDEST:
                while self.buffered_frames and self._would_overflow(size):
                    oldest = self.buffered_frames.popleft()
                    self._buffered_bytes -= len(oldest)
                    self.drops.dropped_oldest += 1
                outcome = AppendOutcome.APPENDED_AFTER_DROP

        self.buffered_frames.append(frame.pcm_bytes)
        self._buffered_bytes += size
        return outcome

    def _would_overflow(self, size: int) -> bool:
        if self.max_buffered_bytes is None:
            return False
        return self._buffered_bytes + size > self.max_buffered_bytes

    # ------------------------------------------------------------------
    # Flush path
    # ------------------------------------------------------------------

    def drain(self) -> FlushBatch | None:
        """
        Atomically take the buffered audio for one flush.

        Returns:
            A FlushBatch with the concatenated payload, or None when the
            buffer is empty or holds less than one sample (no side effects).

        After a non-None return the buffer is empty and flush_count has
        been incremented.
        """
        if not self.is_open:
            return None
        if not self.buffered_frames or self._buffered_bytes < MIN_FLUSH_BYTES:
            return None

        frames = self.buffered_frames
        self.buffered_frames = deque()
        self._buffered_bytes = 0
        self.flush_count += 1

        return FlushBatch(
            session_id=self.session_id,
            flush_id=self.flush_count,
            payload=b"".join(frames),
            frame_count=len(frames),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> int:
        """
        Release the session and its buffer. Idempotent.

        Returns:
            Number of buffered-but-unflushed bytes discarded.
        """
        discarded = self._buffered_bytes
        self.buffered_frames = deque()
        self._buffered_bytes = 0
        self.connection_status = ConnectionStatus.CLOSED
        return discarded
