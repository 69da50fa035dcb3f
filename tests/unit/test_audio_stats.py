# pylint: disable=missing-module-docstring,missing-function-docstring

import struct

import pytest

from audio.stats import compute_audio_stats
from constants import PCM16_MAX, PCM16_MIN, samples_to_ms


def pcm(*samples: int) -> bytes:
    return struct.pack(f"<{len(samples)}h", *samples)


# ---------------------------------------------------------------------
# Known signals
# ---------------------------------------------------------------------

def test_all_zero_payload():
    stats = compute_audio_stats(b"\x00" * 200)

    assert stats.sample_count == 100
    assert stats.min_sample == 0
    assert stats.max_sample == 0
    assert stats.rms == 0.0
    assert stats.peak == 0.0
    assert stats.duration_ms == 6


def test_alternating_half_scale():
    stats = compute_audio_stats(pcm(*([16384, -16384] * 500)))

    assert stats.sample_count == 1000
    assert stats.peak == 0.5
    assert stats.rms == pytest.approx(0.5)
    assert stats.min_sample == -16384
    assert stats.max_sample == 16384


def test_full_scale_negative_peak_is_one():
    stats = compute_audio_stats(pcm(PCM16_MIN, 0, PCM16_MAX))

    assert stats.peak == 1.0
    assert stats.min_sample == PCM16_MIN
    assert stats.max_sample == PCM16_MAX


def test_extrema_are_raw_values():
    stats = compute_audio_stats(pcm(-3, 10, 7, -100, 42))

    assert stats.min_sample == -100
    assert stats.max_sample == 42
    assert stats.peak == pytest.approx(100 / 32768)


def test_trailing_odd_byte_is_ignored():
    stats = compute_audio_stats(pcm(1000, -1000) + b"\x7f")

    assert stats.sample_count == 2
    assert stats.max_sample == 1000


# ---------------------------------------------------------------------
# Degenerate input
# ---------------------------------------------------------------------

def test_empty_payload_keeps_seeds():
    stats = compute_audio_stats(b"")

    assert stats.sample_count == 0
    assert stats.min_sample == PCM16_MAX
    assert stats.max_sample == PCM16_MIN
    assert stats.rms == 0.0
    assert stats.peak == 0.0
    assert stats.duration_ms == 0


# ---------------------------------------------------------------------
# Duration rounding
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "samples, expected_ms",
    [
        (0, 0),
        (1, 0),        # 0.0625 ms
        (8, 1),        # 0.5 ms rounds half up
        (100, 6),      # 6.25 ms
        (16_000, 1000),
        (24, 2),       # 1.5 ms rounds half up
    ],
)
def test_duration_rounds_half_up(samples: int, expected_ms: int):
    assert samples_to_ms(samples) == expected_ms
