"""
Command-line interface for the narration pipeline.
"""

import argparse
import asyncio
import logging
from pathlib import Path

from .config import PipelineConfig
from .estimates import estimate_audio_duration, estimate_script_cost, format_duration
from .models import SubtitleSettings, VideoSection
from .pipeline import compose_narration_track, synthesize_sections_async
from .script_gen import generate_scripts_async, make_client
from .segmenter import segment
from .storage import ProjectStore, build_project_data, project_data_file_name
from .subtitles import compose_subtitles
from .voicevox import POPULAR_SPEAKERS, VoicevoxClient

logger = logging.getLogger("narrator")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    # Keep request-level chatter out of INFO output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Turn an HTML article into narration, audio and subtitles")

    # Phase control
    ap.add_argument(
        "--stage",
        choices=["scripts", "audio", "subtitles"],
        default="audio",
        help="scripts: segment+LLM scripts; audio: TTS+subtitles (runs scripts first if needed); "
        "subtitles: recompute subtitles from a saved project",
    )

    # IO
    ap.add_argument("--input", default=None, help="HTML article to narrate")
    ap.add_argument("--project-id", default=None)
    ap.add_argument("--root", default=".", help="Folder holding the video/ artifacts")
    ap.add_argument("--env-file", default=None, help="Path to .env (default: search upwards)")

    # Script generation
    ap.add_argument("--model", default=None, help="Script model (default $NARRATOR_LLM_MODEL)")
    ap.add_argument("--batch-chars", type=int, default=None, help="Character budget per LLM request")
    ap.add_argument("--max-concurrent-batches", type=int, default=None)

    # Speech
    ap.add_argument("--voicevox-url", default=None)
    ap.add_argument("--speaker", type=int, default=None, help="VOICEVOX speaker/style id")
    ap.add_argument("--chunk-chars", type=int, default=None, help="Max characters per synthesis request")
    ap.add_argument("--max-concurrent-sections", type=int, default=None)
    ap.add_argument("--list-speakers", action="store_true", help="Show common speaker ids and exit")

    # Subtitles
    ap.add_argument("--max-chars-per-line", type=int, default=20)
    ap.add_argument("--playback-rate", type=float, default=None)
    ap.add_argument("--no-punct-split", action="store_true", help="Split subtitles by width only")

    # Logging
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = ap.parse_args(argv)
    if not args.project_id and not args.list_speakers:
        ap.error("--project-id is required")
    return args


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """Environment defaults, overridden by explicit flags."""
    config = PipelineConfig.from_env(args.env_file)
    if args.model:
        config.llm_model = args.model
    if args.batch_chars:
        config.max_chars_per_batch = args.batch_chars
    if args.max_concurrent_batches:
        config.max_concurrent_batches = args.max_concurrent_batches
    if args.voicevox_url:
        config.voicevox_url = args.voicevox_url
    if args.speaker is not None:
        config.speaker_id = args.speaker
    if args.chunk_chars:
        config.speech_chunk_limit = args.chunk_chars
    if args.max_concurrent_sections:
        config.max_concurrent_sections = args.max_concurrent_sections
    config.subtitle_settings = SubtitleSettings(
        max_chars_per_line=args.max_chars_per_line,
        playback_rate=args.playback_rate or config.subtitle_settings.playback_rate,
        split_by_punctuation=not args.no_punct_split,
    )
    return config


def save_project(
    store: ProjectStore,
    project_id: str,
    sections: list[VideoSection],
    config: PipelineConfig,
    source: str | None,
    custom_texts: dict[str, list[str]] | None = None,
) -> None:
    store.save_sections(project_id, sections)
    subtitles = compose_subtitles(sections, config.subtitle_settings, custom_texts)
    data = build_project_data(sections, config.speaker_id, subtitles, source, custom_texts)
    store.save_project_data(project_id, data)
    if subtitles.entries:
        srt_path = store.save_srt(project_id, subtitles)
        logger.info(f"Saved SRT -> {srt_path} ({len(subtitles.entries)} cues)")


async def generate_project_scripts(
    args: argparse.Namespace, config: PipelineConfig, store: ProjectStore
) -> list[VideoSection]:
    if not args.input:
        raise RuntimeError("--input is required to generate scripts")
    html = Path(args.input).read_text(encoding="utf-8")
    sections = segment(html)
    if not sections:
        raise RuntimeError(f"No text found in {args.input}")

    est = estimate_script_cost(sections, config.llm_model, max_chars=config.max_chars_per_batch)
    logger.info(f"=== Estimate for {len(sections)} sections ===")
    logger.info(f"LLM requests: {est['api_calls']}")
    cost_str = "n/a" if est["cost"] is None else f"${est['cost']:.4f}"
    logger.info(f"Script generation ({config.llm_model}): {cost_str}")

    client = make_client(config.llm_api_key, config.llm_base_url)
    video_sections = await generate_scripts_async(
        client,
        sections,
        model=config.llm_model,
        max_chars=config.max_chars_per_batch,
        max_concurrent=config.max_concurrent_batches,
    )
    narration = sum(estimate_audio_duration(s.script) for s in video_sections)
    logger.info(f"Estimated narration length: {format_duration(narration)}")

    save_project(store, args.project_id, video_sections, config, Path(args.input).name)
    return video_sections


def load_project_sections(store: ProjectStore, project_id: str) -> tuple[list[VideoSection], dict]:
    """Saved sections, with hand-edited script files taking precedence."""
    sections, _, custom_texts = store.load_project(project_id)
    for section in sections:
        if not section.script_file_name:
            continue
        try:
            _, script = store.load_script_file(section.script_file_name)
        except FileNotFoundError:
            logger.warning(f"Script file not found: {section.script_file_name}")
            continue
        section.script = script or section.script
    return sections, custom_texts


def speaker_lines(speakers: list[dict]) -> list[str]:
    return [f"{s['id']:>3}  {s['name']} ({s['style']})" for s in speakers]


async def main_async(argv: list[str] | None = None) -> None:
    """Main async CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)
    if args.list_speakers:
        for line in speaker_lines(POPULAR_SPEAKERS):
            logger.info(line)
        return

    config = build_config(args)
    store = ProjectStore(args.root)
    data_exists = (store.video_dir / project_data_file_name(args.project_id)).exists()

    if args.stage == "subtitles":
        if not data_exists:
            raise RuntimeError(f"No saved project '{args.project_id}' under {store.video_dir}")
        sections, custom_texts = load_project_sections(store, args.project_id)
        save_project(store, args.project_id, sections, config, None, custom_texts)
        logger.info("Stage 'subtitles' complete.")
        return

    custom_texts: dict = {}
    if args.stage == "scripts" or not data_exists:
        sections = await generate_project_scripts(args, config, store)
        if args.stage == "scripts":
            logger.info(
                f"Stage 'scripts' complete. Review the script files in {store.video_dir}, "
                "then run stage 'audio'."
            )
            return
    else:
        sections, custom_texts = load_project_sections(store, args.project_id)
        logger.info(f"Loaded {len(sections)} sections for project '{args.project_id}'")

    async with VoicevoxClient(config.voicevox_url) as tts:
        if not await tts.check_connection():
            raise RuntimeError(f"VOICEVOX engine is not reachable at {config.voicevox_url}")
        failures = await synthesize_sections_async(
            tts,
            sections,
            config.speaker_id,
            chunk_limit=config.speech_chunk_limit,
            chunk_delay=config.chunk_delay,
            max_concurrent=config.max_concurrent_sections,
        )

    save_project(store, args.project_id, sections, config, args.input and Path(args.input).name, custom_texts)

    track = compose_narration_track(sections)
    if len(track) > 0:
        track_path = store.video_dir / f"narration-{args.project_id}.wav"
        track.export(str(track_path), format="wav")
        logger.info(f"Exported narration track -> {track_path} ({len(track) / 1000:.2f}s)")

    for f in failures:
        logger.warning(f"Section '{f.heading}' ({f.section_id}) has no audio/subtitles: {f.error}")
    logger.info(f"Done ({len(sections) - len(failures)}/{len(sections)} sections narrated)")


def main() -> None:
    """Main CLI entry point."""
    asyncio.run(main_async())


if __name__ == "__main__":
    main()
