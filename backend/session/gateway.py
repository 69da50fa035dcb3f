"""
Session gateway.

Responsibilities:
- Owns CaptureSession lifecycle (one gateway == one connection)
- Routes inbound binary frames -> session buffer
- Routes inbound JSON control messages -> flush
- Runs the per-flush pipeline in its own task:
    stats -> WAV encode -> debug sample -> dispatch -> acknowledge
- Logs every dropped / ignored / failed step

NOT responsible for:
- WebSocket I/O (send_json is injected by the route)
- Speech recognition (dispatcher is injected)
- Retrying anything

Failure policy: nothing that happens inside a flush pipeline is surfaced to
the client or closes the connection.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TYPE_CHECKING

from uuid import uuid4

from adapters.asr.base import DispatchResult, TranscriptionDispatcher
from audio.debug_sampler import DebugSampler
from audio.frames import FlushBatch
from audio.stats import compute_audio_stats
from audio.wav import encode_wav
from constants import CAPTURE_AUDIO_FORMAT, LOG_PREVIEW_CHARS
from observability.logger import log_event, now_ms
from observability.metrics import timed
from protocol.messages import (
    ControlMessageError,
    UnknownControlType,
    build_diagnostic_ack,
    build_transcript_message,
    parse_control_message,
)
from session.capture_session import AppendOutcome, CaptureSession, OverflowPolicy

if TYPE_CHECKING:
    from config import AppConfig


SendJson = Callable[[dict[str, Any]], Awaitable[None]]


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _new_session_id() -> str:
    return f"sess_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# SessionGateway
# ------------------------------------------------------------------

class SessionGateway:
    """
    One gateway == one capture session.

    All on_* methods are called from the connection's single receive loop,
    so append and drain never interleave. Flush pipelines run as separate
    tasks and may overlap each other.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        dispatcher: TranscriptionDispatcher,
        sampler: DebugSampler,
        send_json: SendJson,
    ) -> None:
        self._config = config
        self._dispatcher = dispatcher
        self._sampler = sampler
        self._send_json = send_json

        self.session: CaptureSession | None = None

        # In-flight flush pipelines (strong refs until done)
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_flushes(self) -> int:
        """Number of flush pipelines still running."""
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def on_ws_connect(self) -> None:
        """Called when a WebSocket connection is established."""
        self.session = CaptureSession(
            session_id=_new_session_id(),
            max_buffered_bytes=self._config.max_buffered_bytes,
            overflow_policy=OverflowPolicy(self._config.buffer_overflow_policy),
        )

        log_event({
            "event_type": "WS_CONNECTED",
            **self.session.log_context(),
            "max_buffered_bytes": self._config.max_buffered_bytes,
        })

    async def on_ws_disconnect(self, reason: str | None = None) -> None:
        """
        Called when the WebSocket disconnects.

        Buffered-but-unflushed audio is discarded. In-flight pipelines are
        not cancelled: they complete or fail on their own, and their client
        messages are skipped because the session is closed.
        """
        if self.session is None:
            log_event({
                "event_type": "WS_DISCONNECT_WITHOUT_SESSION",
                "reason": reason,
            })
            return

        discarded = self.session.close()

        log_event({
            "event_type": "WS_DISCONNECTED",
            **self.session.log_context(),
            "reason": reason,
            "discarded_bytes": discarded,
            "pending_flushes": self.pending_flushes,
            "drops": {
                "discarded": self.session.drops.discarded,
                "rejected": self.session.drops.rejected,
                "dropped_oldest": self.session.drops.dropped_oldest,
            },
        })

        await self.drain_pending()

    async def drain_pending(self) -> None:
        """Wait for every in-flight flush pipeline to finish."""
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Inbound frames
    # ------------------------------------------------------------------

    async def on_binary_message(self, payload: bytes) -> None:
        """Buffer one binary audio frame (PCM16LE mono)."""
        if self.session is None:
            log_event({
                "event_type": "BINARY_WITHOUT_SESSION",
                "payload_len": len(payload),
            })
            return

        outcome = self.session.accept_binary_frame(payload, ts_ms=now_ms())

        if outcome is AppendOutcome.FLUSH_REQUIRED:
            log_event({
                "event_type": "BUFFER_OVERFLOW",
                **self.session.log_context(),
                "policy": OverflowPolicy.FLUSH.value,
                "payload_len": len(payload),
            })
            self.flush(reason="overflow")
            outcome = self.session.accept_binary_frame(payload, ts_ms=now_ms())

        if outcome is AppendOutcome.APPENDED:
            return

        if outcome is AppendOutcome.DISCARDED:
            event_type = "FRAME_DISCARDED"
        elif outcome is AppendOutcome.CLOSED:
            event_type = "FRAME_AFTER_CLOSE"
        else:
            event_type = "BUFFER_OVERFLOW"

        log_event({
            "event_type": event_type,
            **self.session.log_context(),
            "outcome": outcome.value,
            "policy": self.session.overflow_policy.value,
            "payload_len": len(payload),
        })

    async def on_text_message(self, payload: str) -> None:
        """Route an inbound JSON control message. Malformed input is ignored."""
        if self.session is None:
            log_event({
                "event_type": "MESSAGE_WITHOUT_SESSION",
                "payload_preview": payload[:LOG_PREVIEW_CHARS],
            })
            return

        try:
            parse_control_message(payload)
        except ControlMessageError as e:
            log_event({
                "event_type": "CONTROL_MESSAGE_IGNORED",
                "session_id": self.session.session_id,
                "reason": "unknown_type" if isinstance(e, UnknownControlType) else "invalid_json",
                "error": str(e),
                "payload_preview": payload[:LOG_PREVIEW_CHARS],
            })
            return

        # flush is the only recognized control type
        self.flush(reason="control")

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def flush(self, *, reason: str = "control") -> asyncio.Task[None] | None:
        """
        Drain the session buffer and start the downstream pipeline.

        The drain happens before this returns; frames received afterwards
        land in a fresh buffer. Returns the pipeline task, or None when
        there was nothing to flush.
        """
        if self.session is None:
            return None

        batch = self.session.drain()
        if batch is None:
            log_event({
                "event_type": "FLUSH_SKIPPED",
                **self.session.log_context(),
                "reason": reason,
            })
            return None

        log_event({
            "event_type": "FLUSH_STARTED",
            "session_id": batch.session_id,
            "flush_id": batch.flush_id,
            "reason": reason,
            "frames": batch.frame_count,
            "bytes": len(batch.payload),
        })

        task = asyncio.create_task(self._run_pipeline(batch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_pipeline(self, batch: FlushBatch) -> None:
        """Task boundary: nothing escapes from here."""
        try:
            await self._process_batch(batch)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "FLUSH_PIPELINE_ERROR",
                "session_id": batch.session_id,
                "flush_id": batch.flush_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })

    async def _process_batch(self, batch: FlushBatch) -> None:
        stats = compute_audio_stats(batch.payload)

        container = encode_wav(
            batch.payload,
            sample_rate=CAPTURE_AUDIO_FORMAT.sample_rate_hz,
            channels=CAPTURE_AUDIO_FORMAT.channels,
            bits_per_sample=CAPTURE_AUDIO_FORMAT.bits_per_sample,
        )

        log_event({
            "event_type": "FLUSH_ENCODED",
            "session_id": batch.session_id,
            "flush_id": batch.flush_id,
            "container_bytes": len(container),
            "stats": stats.as_log_fields(),
        })

        await self._sampler.observe(
            container,
            session_id=batch.session_id,
            flush_id=batch.flush_id,
        )

        dispatch_task = asyncio.create_task(self._dispatch(batch, container))

        await self._send(
            build_diagnostic_ack(stats),
            failure_event="ACK_SEND_FAILED",
            flush_id=batch.flush_id,
        )

        result = await dispatch_task
        if result is None or not result.text or not self._config.send_transcripts:
            return

        await self._send(
            build_transcript_message(result.text, flush_id=batch.flush_id),
            failure_event="TRANSCRIPT_SEND_FAILED",
            flush_id=batch.flush_id,
        )

    async def _dispatch(self, batch: FlushBatch, container: bytes) -> DispatchResult | None:
        """Forward the container; failures are logged and reported as None."""
        try:
            with timed(
                "transcription_dispatch",
                session_id=batch.session_id,
                details={"flush_id": batch.flush_id, "bytes": len(container)},
            ) as fields:
                result = await self._dispatcher.dispatch(
                    wav_bytes=container,
                    session_id=batch.session_id,
                    flush_id=batch.flush_id,
                )
                fields["accepted"] = result.accepted
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": "DISPATCH_FAILED",
                "session_id": batch.session_id,
                "flush_id": batch.flush_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return None

        if not result.accepted:
            log_event({
                "event_type": "DISPATCH_FAILED",
                "session_id": batch.session_id,
                "flush_id": batch.flush_id,
                "error": result.error,
            })
            return None

        log_event({
            "event_type": "DISPATCH_OK",
            "session_id": batch.session_id,
            "flush_id": batch.flush_id,
            "text_chars": len(result.text or ""),
        })
        return result

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _send(self, msg: dict[str, Any], *, failure_event: str, flush_id: int) -> None:
        """Best-effort delivery; never raises, never sends on a closed session."""
        if self.session is None or not self.session.is_open:
            log_event({
                "event_type": "SEND_SKIPPED_SESSION_CLOSED",
                "session_id": self.session.session_id if self.session else None,
                "flush_id": flush_id,
                "msg_type": msg.get("type"),
            })
            return

        try:
            await self._send_json(msg)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "event_type": failure_event,
                "session_id": self.session.session_id,
                "flush_id": flush_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
