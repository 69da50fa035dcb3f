# tools/wav_info.py
"""Print the header and sample statistics of a debug WAV sample.

    python tools/wav_info.py /tmp/pcm-1760000000000-sess_abc-5.wav
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "backend"))

from audio.stats import compute_audio_stats  # pylint: disable=wrong-import-position
from audio.wav import parse_wav_header  # pylint: disable=wrong-import-position
from constants import WAV_HEADER_BYTES  # pylint: disable=wrong-import-position

data = Path(sys.argv[1]).read_bytes()
header = parse_wav_header(data)
stats = compute_audio_stats(data[WAV_HEADER_BYTES:WAV_HEADER_BYTES + header.data_size])

print("sample_rate:", header.sample_rate)
print("channels:", header.channels)
print("bits_per_sample:", header.bits_per_sample)
print("data_size:", header.data_size)
print("samples:", stats.sample_count, "min:", stats.min_sample, "max:", stats.max_sample)
print("duration_ms:", stats.duration_ms, "rms:", round(stats.rms, 5), "peak:", round(stats.peak, 5))
