"""
End-to-end narration pipeline: document -> scripts -> speech -> subtitles.
"""

import asyncio
import io
import logging

from openai import AsyncOpenAI
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError
from tqdm.asyncio import tqdm

from .config import PipelineConfig
from .models import PipelineResult, SectionFailure, SubtitleData, VideoSection
from .script_gen import generate_scripts_async
from .segmenter import segment
from .speech import CHUNK_DELAY_SECS, SPEECH_CHUNK_LIMIT, synthesize_section
from .subtitles import compose_subtitles
from .voicevox import VoicevoxClient
from .wav import wav_duration

logger = logging.getLogger("narrator")


async def synthesize_sections_async(
    tts: VoicevoxClient,
    sections: list[VideoSection],
    speaker_id: int,
    *,
    chunk_limit: int = SPEECH_CHUNK_LIMIT,
    chunk_delay: float = CHUNK_DELAY_SECS,
    max_concurrent: int = 1,
) -> list[SectionFailure]:
    """
    Synthesize every scripted section, attaching audio_data and audio_duration.
    A failed section keeps no audio and is reported; the others carry on.
    """
    semaphore = asyncio.Semaphore(max(1, max_concurrent))

    async def process_single(section: VideoSection) -> SectionFailure | None:
        async with semaphore:
            result = await synthesize_section(
                tts, section.script, speaker_id, chunk_limit=chunk_limit, chunk_delay=chunk_delay
            )
        if not result.success:
            section.audio_data = None
            section.audio_duration = None
            return SectionFailure(section.id, section.heading, result.error or "unknown error")
        section.audio_data = result.audio
        section.audio_duration = wav_duration(result.audio)
        return None

    scripted = [s for s in sections if s.script.strip()]
    for s in sections:
        if not s.script.strip():
            logger.debug(f"{s.id} has no script, leaving it silent")
    if not scripted:
        return []

    logger.info(f"Synthesizing {len(scripted)} sections with speaker {speaker_id}")
    results = await tqdm.gather(*(process_single(s) for s in scripted), desc="TTS sections")
    return [f for f in results if f is not None]


async def run_pipeline_async(
    html: str,
    llm_client: AsyncOpenAI,
    tts: VoicevoxClient,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """Run every stage for one document. Partial results are a normal outcome."""
    config = config or PipelineConfig()
    settings = config.subtitle_settings

    sections = segment(html)
    if not sections:
        logger.warning("Document has no extractable text")
        return PipelineResult(sections=[], subtitles=SubtitleData(settings=settings, entries=[]))

    video_sections = await generate_scripts_async(
        llm_client,
        sections,
        model=config.llm_model,
        max_chars=config.max_chars_per_batch,
        max_concurrent=config.max_concurrent_batches,
    )

    failures = await synthesize_sections_async(
        tts,
        video_sections,
        config.speaker_id,
        chunk_limit=config.speech_chunk_limit,
        chunk_delay=config.chunk_delay,
        max_concurrent=config.max_concurrent_sections,
    )
    for f in failures:
        logger.warning(f"Section '{f.heading}' ({f.section_id}) has no audio/subtitles: {f.error}")

    subtitles = compose_subtitles(video_sections, settings)
    return PipelineResult(sections=video_sections, subtitles=subtitles, failures=failures)


def compose_narration_track(sections: list[VideoSection]) -> AudioSegment:
    """Join per-section narration in document order, as the subtitle timeline does."""
    track = AudioSegment.empty()
    for section in sections:
        if not section.script or not section.audio_data:
            continue
        try:
            clip = AudioSegment.from_wav(io.BytesIO(section.audio_data))
        except CouldntDecodeError as e:
            logger.warning(f"Failed to load audio for {section.id}: {e}")
            continue
        track += clip
    return track
