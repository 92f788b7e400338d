"""Loudness metering for captured audio chunks."""

import numpy as np


def calculate_loudness(audio_chunk: bytes, gain: float = 10.0) -> float:
    """Return the normalized loudness of a 16-bit PCM chunk.

    RMS of the samples scaled to [-1, 1], multiplied by `gain` and clamped
    to [0, 1] so quiet speech still moves a level meter.
    """
    if not audio_chunk:
        return 0.0

    samples = np.frombuffer(audio_chunk, dtype=np.int16).astype(np.float32) / 32768.0
    if samples.size == 0:
        return 0.0

    rms = float(np.sqrt(np.mean(samples * samples)))
    return min(max(rms * gain, 0.0), 1.0)
