"""
Latency metrics for the capture pipeline.

One measured operation == one METRIC_TIMER event, written through
observability.logger. Nothing is aggregated in process.

Durations come from the monotonic clock; the event's ts_ms is wall-clock.
"""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event, now_ms


# timer_id -> (metric_name, start_ns)
_active_timers: dict[str, tuple[str, int]] = {}


def start_timer(name: str) -> str:
    """Start timing `name`. The returned id must reach stop_timer()."""
    timer_id = f"timer_{uuid.uuid4().hex[:12]}"
    _active_timers[timer_id] = (name, time.monotonic_ns())
    return timer_id


def stop_timer(
    timer_id: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> int | None:
    """
    Stop a timer and emit its METRIC_TIMER event.

    Unknown or already-stopped ids are ignored (returns None).
    """
    entry = _active_timers.pop(timer_id, None)
    if entry is None:
        return None

    name, start_ns = entry
    elapsed_ms = (time.monotonic_ns() - start_ns) // 1_000_000

    log_event({
        "ts_ms": now_ms(),
        "event_type": "METRIC_TIMER",
        "metric": name,
        "value_ms": elapsed_ms,
        "session_id": session_id,
        "details": details or {},
    })
    return elapsed_ms


def active_timer_count() -> int:
    """Timers started and not yet stopped."""
    return len(_active_timers)


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Time the enclosed block and emit exactly one metric.

    Yields the metric's details dict so the block can record its outcome:

        with timed("transcription_dispatch", session_id=sid) as fields:
            result = await dispatcher.dispatch(...)
            fields["accepted"] = result.accepted

    If the block raises, the exception class name is stored under
    "error" and the exception propagates.
    """
    fields: dict[str, Any] = dict(details or {})
    timer_id = start_timer(name)
    try:
        yield fields
    except Exception as exc:
        fields["error"] = type(exc).__name__
        raise
    finally:
        stop_timer(timer_id, session_id=session_id, details=fields)
