"""
Sample statistics for a flushed PCM16 payload (pure).

Computed once per flush, used for the diagnostic acknowledgment and logs.

Invariants:
- Samples are little-endian signed 16-bit, mono, 16 kHz by convention
- rms / peak are computed over samples normalized by 32768
- min / max are raw int16 values
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from audio.pcm import pcm16le_samples, pcm16le_to_float64
from constants import (
    AUDIO_SAMPLE_RATE_HZ,
    PCM16_MAX,
    PCM16_MIN,
    samples_to_ms,
)


@dataclass(frozen=True)
class AudioStats:
    """
    Amplitude / energy metrics for one batch of audio.

    min_sample / max_sample:
        Raw extrema. For an empty payload these keep their seeds
        (PCM16_MAX / PCM16_MIN), since no sample overwrote them.

    rms / peak:
        Floats in [0, 1].
    """
    sample_count: int
    min_sample: int
    max_sample: int
    rms: float
    peak: float
    duration_ms: int

    def as_log_fields(self) -> dict[str, Any]:
        """Flat dict for JSONL logging."""
        return {
            "sample_count": self.sample_count,
            "min": self.min_sample,
            "max": self.max_sample,
            "rms": self.rms,
            "peak": self.peak,
            "duration_ms": self.duration_ms,
        }


def compute_audio_stats(
    payload: bytes,
    *,
    sample_rate_hz: int = AUDIO_SAMPLE_RATE_HZ,
) -> AudioStats:
    """
    Compute AudioStats over a contiguous PCM16LE payload.

    A trailing odd byte is ignored. Never raises for empty input.
    """
    samples = pcm16le_samples(payload)
    sample_count = int(samples.shape[0])

    if sample_count == 0:
        return AudioStats(
            sample_count=0,
            min_sample=PCM16_MAX,
            max_sample=PCM16_MIN,
            rms=0.0,
            peak=0.0,
            duration_ms=0,
        )

    normalized = pcm16le_to_float64(payload)
    sum_sq = float(np.dot(normalized, normalized))

    return AudioStats(
        sample_count=sample_count,
        min_sample=int(samples.min()),
        max_sample=int(samples.max()),
        rms=math.sqrt(sum_sq / max(1, sample_count)),
        peak=float(np.max(np.abs(normalized))),
        duration_ms=samples_to_ms(sample_count, sample_rate_hz=sample_rate_hz),
    )
