"""
CONSTANTS
---------
Single source of truth for all behavioral constants in the capture pipeline.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Deployment-specific knobs live in config.py, not here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

# =============================================================================
# Audio Format (PCM16 mono @ 16kHz)
# =============================================================================

AUDIO_SAMPLE_RATE_HZ: Final[int] = 16_000
AUDIO_CHANNELS: Final[int] = 1
AUDIO_SAMPLE_WIDTH_BYTES: Final[int] = 2  # PCM16 (signed 16-bit)
AUDIO_BITS_PER_SAMPLE: Final[int] = AUDIO_SAMPLE_WIDTH_BYTES * 8

PCM16_MIN: Final[int] = -32_768
PCM16_MAX: Final[int] = 32_767
PCM16_NORMALIZER: Final[float] = 32_768.0

# A flush needs at least one whole sample
MIN_FLUSH_BYTES: Final[int] = AUDIO_SAMPLE_WIDTH_BYTES

# =============================================================================
# WAV container (canonical single-subchunk PCM)
# =============================================================================

WAV_HEADER_BYTES: Final[int] = 44
WAV_FMT_CHUNK_BYTES: Final[int] = 16
WAV_FORMAT_PCM: Final[int] = 1
# RIFF size = header bytes after the 8-byte RIFF preamble + payload
WAV_RIFF_SIZE_OVERHEAD: Final[int] = WAV_HEADER_BYTES - 8

U16_MAX: Final[int] = 2**16 - 1
U32_MAX: Final[int] = 2**32 - 1

# =============================================================================
# Control protocol
# =============================================================================

CONTROL_TYPE_FLUSH: Final[str] = "flush"

ACK_TYPE_DIAGNOSTIC: Final[str] = "diagnostic"
TRANSCRIPT_TYPE: Final[str] = "stt"
ACK_FLOAT_DIGITS: Final[int] = 5

# Truncate logged payloads
LOG_PREVIEW_CHARS: Final[int] = 100

# =============================================================================
# Debug sampling
# =============================================================================

DEBUG_SAMPLE_EVERY_N_FLUSHES: Final[int] = 5
DEBUG_SAMPLE_FILE_PREFIX: Final[str] = "pcm"

# =============================================================================
# Server defaults
# =============================================================================

DEFAULT_PORT: Final[int] = 8080
DEFAULT_HOST: Final[str] = "0.0.0.0"
SERVICE_BANNER: Final[str] = "Instant Talk backend alive"
HEALTH_RESPONSE: Final[str] = "ok"

DEFAULT_STT_MODEL: Final[str] = "whisper-1"

# =============================================================================
# Helper Functions
# =============================================================================

def samples_to_ms(num_samples: int, *, sample_rate_hz: int = AUDIO_SAMPLE_RATE_HZ) -> int:
    """
    Convert a sample count to whole milliseconds, rounding half up.

    Non-positive input returns 0.
    """
    if num_samples <= 0:
        return 0
    # Integer arithmetic: floor(x + 0.5) with x = num_samples * 1000 / rate
    return (num_samples * 2000 + sample_rate_hz) // (2 * sample_rate_hz)


# =============================================================================
# Convenience Bundles
# =============================================================================

@dataclass(frozen=True)
class AudioFormat:
    """
    Immutable bundle describing the PCM audio format.

    This is a convenience wrapper for passing format metadata around;
    it is NOT a second source of truth.
    """
    sample_rate_hz: int = AUDIO_SAMPLE_RATE_HZ
    channels: int = AUDIO_CHANNELS
    bits_per_sample: int = AUDIO_BITS_PER_SAMPLE

    @property
    def block_align(self) -> int:
        """Bytes per sample frame across all channels."""
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        """Bytes per second of audio."""
        return self.sample_rate_hz * self.block_align


CAPTURE_AUDIO_FORMAT: Final[AudioFormat] = AudioFormat()
