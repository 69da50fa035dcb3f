"""PCM conversion utilities."""
import numpy as np

from constants import AUDIO_SAMPLE_WIDTH_BYTES, PCM16_NORMALIZER


def even_length(pcm_bytes: bytes) -> bytes:
    """
    Drop a trailing odd byte so the buffer holds whole PCM16 samples only.

    Even-length input is returned unchanged.
    """
    remainder = len(pcm_bytes) % AUDIO_SAMPLE_WIDTH_BYTES
    if remainder:
        return pcm_bytes[: len(pcm_bytes) - remainder]
    return pcm_bytes


def pcm16le_samples(pcm_bytes: bytes) -> np.ndarray:
    """
    View PCM16 little-endian mono bytes as an int16 array.

    A truncated trailing sample is ignored.
    """
    return np.frombuffer(even_length(pcm_bytes), dtype="<i2")  # little-endian int16


def pcm16le_to_float64(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float64 in [-1.0, 1.0).

    Runtime-safe, adapter-agnostic utility.
    No resampling. No channel mixing.
    """
    audio_i16 = pcm16le_samples(pcm_bytes)
    return audio_i16.astype(np.float64) / PCM16_NORMALIZER
