"""
Per-section speech synthesis: chunking, sequential synthesis and WAV merging.
"""

import asyncio
import logging
import re

from .models import SynthesisResult
from .voicevox import SynthesisError, VoicevoxClient
from .wav import WavFormatError, concat_wav, is_riff, wav_duration

logger = logging.getLogger("narrator")

# Longest text sent in one audio_query
SPEECH_CHUNK_LIMIT = 500
# Pause between chunk requests so the engine is not flooded
CHUNK_DELAY_SECS = 0.1

# Split after Japanese/Latin sentence terminators and newlines; a Latin period
# only counts when followed by whitespace (keeps "3.14" and "e.g" intact)
_SENTENCE_END_RE = re.compile(r"(?<=[。！？!?\n])|(?<=\.)(?=\s)")


def split_text_for_speech(text: str, limit: int = SPEECH_CHUNK_LIMIT) -> list[str]:
    """
    Split text into chunks of at most limit characters, preferring sentence
    ends. A sentence longer than limit is cut into fixed-size slices.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    text = (text or "").strip()
    if not text:
        return []
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    buf = ""
    for sentence in _SENTENCE_END_RE.split(text):
        if not sentence.strip():
            continue
        if len(buf) + len(sentence) <= limit:
            buf += sentence
            continue
        if buf.strip():
            chunks.append(buf.strip())
        buf = ""
        if len(sentence) <= limit:
            buf = sentence
        else:
            for i in range(0, len(sentence), limit):
                piece = sentence[i : i + limit].strip()
                if piece:
                    chunks.append(piece)
    if buf.strip():
        chunks.append(buf.strip())
    return chunks


async def synthesize_section(
    tts: VoicevoxClient,
    text: str,
    speaker_id: int,
    chunk_limit: int = SPEECH_CHUNK_LIMIT,
    chunk_delay: float = CHUNK_DELAY_SECS,
) -> SynthesisResult:
    """
    Synthesize text as one waveform. Chunks are requested strictly in order
    with the same speaker; the first failure abandons the whole section.
    """
    chunks = split_text_for_speech(text, chunk_limit)
    if not chunks:
        return SynthesisResult(success=False, error="No text to synthesize")

    if len(chunks) > 1:
        logger.info(f"Splitting {len(text)} chars into {len(chunks)} chunks for synthesis")

    audio_chunks: list[bytes] = []
    for index, chunk in enumerate(chunks):
        if index > 0 and chunk_delay > 0:
            await asyncio.sleep(chunk_delay)
        try:
            query = await tts.create_audio_query(chunk, speaker_id)
            audio = await tts.synthesize(query, speaker_id)
        except SynthesisError as e:
            logger.error(f"Synthesis failed for chunk {index + 1}/{len(chunks)}: {e}")
            return SynthesisResult(success=False, error=f"chunk {index + 1}/{len(chunks)}: {e}")
        if not audio or not is_riff(audio):
            logger.error(f"Chunk {index + 1}/{len(chunks)} returned no usable WAV data")
            return SynthesisResult(
                success=False, error=f"chunk {index + 1}/{len(chunks)}: empty or invalid audio"
            )
        audio_chunks.append(audio)

    try:
        combined = concat_wav(audio_chunks)
    except WavFormatError as e:
        logger.error(f"Cannot merge synthesized chunks: {e}")
        return SynthesisResult(success=False, error=str(e))

    logger.debug(f"Synthesized {len(chunks)} chunks -> {wav_duration(combined):.2f}s")
    return SynthesisResult(success=True, audio=combined)
