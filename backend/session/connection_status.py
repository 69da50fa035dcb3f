"""
Connection status tracking for capture sessions.

OPEN -> CLOSED, nothing else. There is no externally visible "flushing"
state: a flush drains the buffer synchronously and its downstream work runs
detached from the session.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Capture session lifecycle status.

    CLOSED is terminal: the buffer is released and no further frames,
    flushes or client messages are processed for the session.
    """
    OPEN = "OPEN"        # Accepting frames
    CLOSED = "CLOSED"    # Connection ended (terminal)
