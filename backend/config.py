"""
Application configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No pipeline logic
- No protocol constants
- No runtime mutation
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

from constants import (
    DEBUG_SAMPLE_EVERY_N_FLUSHES,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_STT_MODEL,
)


OVERFLOW_POLICIES: tuple[str, ...] = ("reject", "drop_oldest", "flush")

_TRUE_VALUES: frozenset[str] = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES: frozenset[str] = frozenset({"0", "false", "no", "off"})


def _optional_int_env(name: str) -> int | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _int_env(name: str, default: int) -> int:
    value = _optional_int_env(name)
    return default if value is None else value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got {raw!r}")


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable application configuration.

    Constructed once at process startup.
    Passed downward to the app factory and the per-connection gateway.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    # ------------------------------------------------------------------
    # Transcription
    # ------------------------------------------------------------------

    openai_api_key: str | None = None
    stt_model: str = DEFAULT_STT_MODEL
    stt_language: str | None = None
    send_transcripts: bool = True

    # ------------------------------------------------------------------
    # Debug sampling
    # ------------------------------------------------------------------

    debug_sample_every: int = DEBUG_SAMPLE_EVERY_N_FLUSHES
    debug_sample_dir: str = tempfile.gettempdir()

    # ------------------------------------------------------------------
    # Buffering
    # ------------------------------------------------------------------

    # None = unbounded (no backpressure)
    max_buffered_bytes: int | None = None
    buffer_overflow_policy: str = "reject"

    def __post_init__(self) -> None:
        if not 0 < self.port <= 65_535:
            raise ValueError(f"port out of range: {self.port}")
        if self.debug_sample_every < 0:
            raise ValueError("debug_sample_every must be >= 0")
        if self.max_buffered_bytes is not None and self.max_buffered_bytes <= 0:
            raise ValueError("max_buffered_bytes must be > 0 when set")
        if self.buffer_overflow_policy not in OVERFLOW_POLICIES:
            raise ValueError(
                f"buffer_overflow_policy must be one of {OVERFLOW_POLICIES}, "
                f"got {self.buffer_overflow_policy!r}"
            )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a variable is present but malformed.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),
            host=os.environ.get("HOST", DEFAULT_HOST),
            port=_int_env("PORT", DEFAULT_PORT),

            openai_api_key=os.environ.get("OPENAI_API_KEY"),
            stt_model=os.environ.get("OPENAI_STT_MODEL", DEFAULT_STT_MODEL),
            stt_language=os.environ.get("OPENAI_STT_LANGUAGE") or None,
            send_transcripts=_bool_env("SEND_TRANSCRIPTS", True),

            debug_sample_every=_int_env("DEBUG_SAMPLE_EVERY", DEBUG_SAMPLE_EVERY_N_FLUSHES),
            debug_sample_dir=os.environ.get("DEBUG_SAMPLE_DIR") or tempfile.gettempdir(),

            max_buffered_bytes=_optional_int_env("MAX_BUFFERED_BYTES"),
            buffer_overflow_policy=os.environ.get("BUFFER_OVERFLOW_POLICY", "reject"),
        )
