"""
Debug sampler: persist every Nth encoded container for offline inspection.

Best-effort by contract:
- The counter advances on every flush that reached encoding
- A write failure is logged and swallowed; it never aborts a flush
- Files are written from a worker thread, never on the frame path

Files land in the scratch directory as
    pcm-<epoch_ms>-<session_id>-<flush_id>.wav
and are never read back by the service.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from constants import DEBUG_SAMPLE_EVERY_N_FLUSHES, DEBUG_SAMPLE_FILE_PREFIX
from observability.logger import log_event, now_ms


class DebugSampler:
    """
    Process-wide sampler shared by all sessions.

    every_n == 0 disables sampling (counter still advances).
    """

    def __init__(
        self,
        *,
        directory: str | Path,
        every_n: int = DEBUG_SAMPLE_EVERY_N_FLUSHES,
    ) -> None:
        if every_n < 0:
            raise ValueError("every_n must be >= 0")

        self._directory = Path(directory)
        self._every_n = every_n
        self._observed = 0

    @property
    def observed(self) -> int:
        """Number of encoded flushes seen so far."""
        return self._observed

    def _should_sample(self, n: int) -> bool:
        return self._every_n > 0 and n % self._every_n == 0

    def sample_path(self, *, session_id: str, flush_id: int) -> Path:
        """Timestamped destination for one sample."""
        name = f"{DEBUG_SAMPLE_FILE_PREFIX}-{now_ms()}-{session_id}-{flush_id}.wav"
        return self._directory / name

    async def observe(
        self,
        container: bytes,
        *,
        session_id: str,
        flush_id: int,
    ) -> Path | None:
        """
        Count one encoded flush and persist it if it is an Nth one.

        Returns the written path, or None if not sampled or the write failed.
        """
        # Counted before any await, on the event loop thread
        self._observed += 1
        n = self._observed

        if not self._should_sample(n):
            return None

        path = self.sample_path(session_id=session_id, flush_id=flush_id)

        try:
            await asyncio.to_thread(_write_file, path, container)
        except Exception as e:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "DEBUG_SAMPLE_FAILED",
                "session_id": session_id,
                "flush_id": flush_id,
                "sample_index": n,
                "path": str(path),
                "exception": type(e).__name__,
                "error": str(e),
            })
            return None

        log_event({
            "event_type": "DEBUG_SAMPLE_WRITTEN",
            "session_id": session_id,
            "flush_id": flush_id,
            "sample_index": n,
            "path": str(path),
            "bytes": len(container),
        })
        return path


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
