# backend/audio/wav.py
"""
WAV container helpers (canonical 44-byte PCM header).

Layout (all integers little-endian):

     0  4  "RIFF"
     4  4  u32  36 + data_size
     8  4  "WAVE"
    12  4  "fmt "
    16  4  u32  16            (fmt chunk size)
    20  2  u16  1             (integer PCM)
    22  2  u16  channels
    24  4  u32  sample_rate
    28  4  u32  byte_rate     (sample_rate * block_align)
    32  2  u16  block_align   (channels * bits_per_sample / 8)
    34  2  u16  bits_per_sample
    36  4  "data"
    40  4  u32  data_size

Usage example:

    container = encode_wav(payload, sample_rate=16000, channels=1, bits_per_sample=16)
    header = parse_wav_header(container)
    assert header.data_size == len(payload)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from constants import (
    AUDIO_BITS_PER_SAMPLE,
    AUDIO_CHANNELS,
    AUDIO_SAMPLE_RATE_HZ,
    U16_MAX,
    U32_MAX,
    WAV_FMT_CHUNK_BYTES,
    WAV_FORMAT_PCM,
    WAV_RIFF_SIZE_OVERHEAD,
)


# -------------------------
# Exceptions
# -------------------------

class WavFormatError(ValueError):
    """
    Raised when WAV parameters cannot be represented in the canonical
    header, or when a byte sequence is not a canonical PCM WAV header.
    """


# -------------------------
# Header layout
# -------------------------

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    """Decoded canonical WAV header."""
    sample_rate: int
    channels: int
    bits_per_sample: int
    data_size: int

    @property
    def block_align(self) -> int:
        """Bytes per sample frame across all channels."""
        return self.channels * self.bits_per_sample // 8

    @property
    def byte_rate(self) -> int:
        """Bytes per second of audio."""
        return self.sample_rate * self.block_align


def _validate(
    *,
    sample_rate: int,
    channels: int,
    bits_per_sample: int,
    data_size: int,
) -> None:
    if sample_rate <= 0:
        raise WavFormatError(f"sample_rate must be > 0, got {sample_rate}")
    if not 0 < channels <= U16_MAX:
        raise WavFormatError(f"channels out of range: {channels}")
    if bits_per_sample <= 0 or bits_per_sample % 8 != 0 or bits_per_sample > U16_MAX:
        raise WavFormatError(f"bits_per_sample must be a positive multiple of 8, got {bits_per_sample}")

    block_align = channels * bits_per_sample // 8
    if block_align > U16_MAX:
        raise WavFormatError(f"block_align overflows u16: {block_align}")
    if sample_rate * block_align > U32_MAX:
        raise WavFormatError(f"byte_rate overflows u32: {sample_rate * block_align}")
    if data_size < 0 or data_size + WAV_RIFF_SIZE_OVERHEAD > U32_MAX:
        raise WavFormatError(f"data_size out of range: {data_size}")


# -------------------------
# Encoding
# -------------------------

def build_wav_header(
    *,
    data_size: int,
    sample_rate: int = AUDIO_SAMPLE_RATE_HZ,
    channels: int = AUDIO_CHANNELS,
    bits_per_sample: int = AUDIO_BITS_PER_SAMPLE,
) -> bytes:
    """
    Build the 44-byte canonical PCM WAV header for a payload of data_size bytes.
    """
    _validate(
        sample_rate=sample_rate,
        channels=channels,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )

    block_align = channels * bits_per_sample // 8

    return _HEADER.pack(
        b"RIFF",
        WAV_RIFF_SIZE_OVERHEAD + data_size,
        b"WAVE",
        b"fmt ",
        WAV_FMT_CHUNK_BYTES,
        WAV_FORMAT_PCM,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        bits_per_sample,
        b"data",
        data_size,
    )


def encode_wav(
    payload: bytes,
    *,
    sample_rate: int = AUDIO_SAMPLE_RATE_HZ,
    channels: int = AUDIO_CHANNELS,
    bits_per_sample: int = AUDIO_BITS_PER_SAMPLE,
) -> bytes:
    """
    Wrap raw PCM bytes in a WAV container (header + payload).
    """
    header = build_wav_header(
        data_size=len(payload),
        sample_rate=sample_rate,
        channels=channels,
        bits_per_sample=bits_per_sample,
    )
    return header + payload


# -------------------------
# Decoding
# -------------------------

def parse_wav_header(data: bytes) -> WavHeader:
    """
    Decode the first 44 bytes of a canonical PCM WAV container.

    Raises:
        WavFormatError if the bytes are short, carry the wrong markers,
        or have inconsistent derived fields.
    """
    if len(data) < _HEADER.size:
        raise WavFormatError(
            f"WAV header needs {_HEADER.size} bytes, got {len(data)}"
        )

    (
        riff, riff_size, wave, fmt, fmt_size, audio_format, channels,
        sample_rate, byte_rate, block_align, bits_per_sample, data_id, data_size,
    ) = _HEADER.unpack_from(data, 0)

    if riff != b"RIFF" or wave != b"WAVE" or fmt != b"fmt " or data_id != b"data":
        raise WavFormatError("Missing RIFF/WAVE/fmt/data markers")
    if fmt_size != WAV_FMT_CHUNK_BYTES or audio_format != WAV_FORMAT_PCM:
        raise WavFormatError(
            f"Not a canonical PCM fmt chunk (size={fmt_size}, format={audio_format})"
        )

    header = WavHeader(
        sample_rate=sample_rate,
        channels=channels,
        bits_per_sample=bits_per_sample,
        data_size=data_size,
    )

    if riff_size != WAV_RIFF_SIZE_OVERHEAD + data_size:
        raise WavFormatError(f"RIFF size {riff_size} inconsistent with data size {data_size}")
    if block_align != header.block_align or byte_rate != header.byte_rate:
        raise WavFormatError("block_align / byte_rate inconsistent with format fields")

    return header
