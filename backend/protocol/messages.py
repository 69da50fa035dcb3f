# backend/protocol/messages.py
"""
JSON control / acknowledgment messages carried in WebSocket text frames.

Client -> Server:
    {"type": "flush"}          package and dispatch buffered audio
    anything else              ignored (no error response)

Server -> Client:
    {"type": "diagnostic", "stats": {"duration_ms": 6, "rms": 0.5, "peak": 0.5}}
    {"type": "stt", "text": "...", "final": true, "flush_id": 3}

Usage example:

    try:
        msg = parse_control_message(text)
    except ControlMessageError as e:
        log_event({"event_type": "CONTROL_MESSAGE_IGNORED", "error": str(e)})
        return

    if msg.type == CONTROL_TYPE_FLUSH:
        ...
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from audio.stats import AudioStats
from constants import (
    ACK_FLOAT_DIGITS,
    ACK_TYPE_DIAGNOSTIC,
    CONTROL_TYPE_FLUSH,
    TRANSCRIPT_TYPE,
)

KNOWN_CONTROL_TYPES: frozenset[str] = frozenset({CONTROL_TYPE_FLUSH})


# -------------------------
# Exceptions
# -------------------------

class ControlMessageError(Exception):
    """Base class for control message errors. Never surfaced to the client."""


class InvalidControlJSON(ControlMessageError):
    """Raised when a text frame is not a JSON object."""


class UnknownControlType(ControlMessageError):
    """
    Raised when the JSON object carries no recognized type discriminant.

    msg_type holds whatever was found (possibly None) for logging.
    """

    def __init__(self, msg_type: Any) -> None:
        super().__init__(f"Unknown control message type: {msg_type!r}")
        self.msg_type = msg_type


# -------------------------
# Client -> Server
# -------------------------

@dataclass(frozen=True)
class ControlMessage:
    """A recognized client control message."""
    type: str


def parse_control_message(text: str | bytes) -> ControlMessage:
    """
    Parse a text frame into a ControlMessage.

    Raises:
        InvalidControlJSON for undecodable / non-object payloads
        UnknownControlType for objects without a recognized type
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidControlJSON(str(e)) from e

    if not isinstance(data, dict):
        raise InvalidControlJSON(f"Expected a JSON object, got {type(data).__name__}")

    msg_type = data.get("type")
    if not isinstance(msg_type, str) or msg_type not in KNOWN_CONTROL_TYPES:
        raise UnknownControlType(msg_type)

    return ControlMessage(type=msg_type)


# -------------------------
# Server -> Client
# -------------------------

def build_diagnostic_ack(stats: AudioStats) -> dict[str, Any]:
    """Acknowledgment sent after a flush has been dispatched."""
    return {
        "type": ACK_TYPE_DIAGNOSTIC,
        "stats": {
            "duration_ms": stats.duration_ms,
            "rms": round(stats.rms, ACK_FLOAT_DIGITS),
            "peak": round(stats.peak, ACK_FLOAT_DIGITS),
        },
    }


def build_transcript_message(text: str, *, flush_id: int) -> dict[str, Any]:
    """Final transcript for one flush."""
    return {
        "type": TRANSCRIPT_TYPE,
        "text": text,
        "final": True,
        "flush_id": flush_id,
    }
