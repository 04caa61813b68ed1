"""
SRT export for subtitle entries.
"""

import logging

from .models import SubtitleEntry

logger = logging.getLogger("narrator")


def format_timestamp(t: float) -> str:
    """Seconds -> HH:MM:SS,mmm."""
    total_ms = int(round(max(0.0, t) * 1000))
    h, rem = divmod(total_ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms = divmod(rem, 1000)
    return f"{h:02}:{m:02}:{s:02},{ms:03}"


def render_srt(entries: list[SubtitleEntry]) -> str:
    return "".join(
        f"{i}\n{format_timestamp(e.start_time)} --> {format_timestamp(e.end_time)}\n{e.text}\n\n"
        for i, e in enumerate(entries, 1)
    )


def write_srt(entries: list[SubtitleEntry], path: str) -> None:
    """Write entries to an SRT file."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_srt(entries))
    logger.debug(f"Wrote {len(entries)} cues -> {path}")
