"""
Shared fixtures: in-memory WAV generation.
"""

import io
import wave

import pytest


def build_wav(seconds: float, sample_rate: int = 24000, channels: int = 1, sampwidth: int = 2) -> bytes:
    """Silent PCM WAV with the canonical 44-byte header."""
    frames = int(round(seconds * sample_rate))
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(channels)
        w.setsampwidth(sampwidth)
        w.setframerate(sample_rate)
        w.writeframes(b"\x00" * frames * channels * sampwidth)
    return buf.getvalue()


@pytest.fixture
def make_wav():
    return build_wav
