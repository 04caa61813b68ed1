"""
WAV container helpers: duration, format inspection and chunk concatenation.

Works on raw bytes so no decoder is needed. Chunks are assumed to carry the
canonical 44-byte header that the synthesis engine produces.
"""

import logging
import struct
from dataclasses import dataclass

logger = logging.getLogger("narrator")

WAV_HEADER_SIZE = 44
_RIFF_SIZE_OFFSET = 4
_DATA_SIZE_OFFSET = 40


class WavFormatError(ValueError):
    """Raised when WAV chunks cannot be merged into one container."""


@dataclass(frozen=True)
class WavFormat:
    sample_rate: int
    channels: int
    bits_per_sample: int

    @property
    def bytes_per_second(self) -> float:
        return self.sample_rate * self.channels * (self.bits_per_sample / 8)


def is_riff(data: bytes) -> bool:
    return len(data) >= 4 and data[:4] == b"RIFF"


def read_wav_format(data: bytes) -> WavFormat:
    """Read sample rate, channel count and bit depth from a canonical header."""
    if not is_riff(data) or len(data) < WAV_HEADER_SIZE:
        raise WavFormatError("Not a valid WAV file")
    channels = struct.unpack_from("<H", data, 22)[0]
    sample_rate = struct.unpack_from("<I", data, 24)[0]
    bits_per_sample = struct.unpack_from("<H", data, 34)[0]
    return WavFormat(sample_rate=sample_rate, channels=channels, bits_per_sample=bits_per_sample)


def _find_data_size(data: bytes) -> int:
    """Size of the `data` subchunk, scanning past any metadata chunks."""
    offset = 12
    while offset < len(data) - 8:
        chunk_id = data[offset : offset + 4]
        chunk_size = struct.unpack_from("<I", data, offset + 4)[0]
        if chunk_id == b"data":
            # Streaming writers may leave a placeholder size
            return min(chunk_size, len(data) - offset - 8)
        offset += 8 + chunk_size + (chunk_size & 1)
    return 0


def wav_duration(data: bytes) -> float:
    """Duration in seconds, or 0.0 if the container cannot be read."""
    if not is_riff(data):
        logger.warning("Not a valid WAV file")
        return 0.0
    try:
        fmt = read_wav_format(data)
        data_size = _find_data_size(data)
    except (WavFormatError, struct.error) as e:
        logger.warning(f"Error parsing WAV file: {e}")
        return 0.0

    if data_size == 0:
        data_size = max(0, len(data) - WAV_HEADER_SIZE)
    if fmt.bytes_per_second <= 0:
        logger.warning(f"WAV header has no usable byte rate: {fmt}")
        return 0.0
    return data_size / fmt.bytes_per_second


def concat_wav(chunks: list[bytes]) -> bytes:
    """
    Merge WAV chunks of identical format into one container.

    The first chunk's header is kept; its RIFF and data sizes are rewritten
    for the summed PCM payload, which follows in chunk order.
    """
    if not chunks:
        raise ValueError("No audio chunks to concatenate")
    if len(chunks) == 1:
        return chunks[0]

    formats = [read_wav_format(c) for c in chunks]
    first = formats[0]
    for index, fmt in enumerate(formats[1:], 1):
        if fmt != first:
            raise WavFormatError(f"Chunk {index} format {fmt} differs from chunk 0 format {first}")

    payloads = [c[WAV_HEADER_SIZE:] for c in chunks]
    data_size = sum(len(p) for p in payloads)

    header = bytearray(chunks[0][:WAV_HEADER_SIZE])
    struct.pack_into("<I", header, _RIFF_SIZE_OFFSET, WAV_HEADER_SIZE - 8 + data_size)
    struct.pack_into("<I", header, _DATA_SIZE_OFFSET, data_size)
    return bytes(header) + b"".join(payloads)
