"""
Subtitle cue generation: line splitting, proportional timing and the
project-wide timeline.
"""

import logging
import re

from .models import SubtitleData, SubtitleEntry, SubtitleSettings, VideoSection
from .wav import wav_duration

logger = logging.getLogger("narrator")

# Shortest time a cue stays on screen
MIN_CUE_SECS = 0.3

# Sentence ends (terminator stays with its clause); a Latin period counts only
# before whitespace or at the end
_SENTENCE_END_RE = re.compile(r"(?<=[。！？!?\n])|(?<=\.)(?=\s|$)")
# Readable pauses inside a sentence
_PAUSE_SPLIT_RE = re.compile(r"(?<=[、,，;；:：])")
_PAUSE_END_RE = re.compile(r"[、,，;；:：]\s*$")


def _round2(value: float) -> float:
    return round(value, 2)


def _hard_cut(text: str, width: int) -> list[str]:
    pieces = (text[i : i + width].strip() for i in range(0, len(text), width))
    return [p for p in pieces if p]


def _wrap_words(text: str, max_chars: int) -> list[str]:
    """Greedy word wrap; words longer than max_chars are cut."""
    lines: list[str] = []
    cur: list[str] = []
    for w in text.split():
        if len(w) > max_chars:
            if cur:
                lines.append(" ".join(cur))
                cur = []
            lines.extend(_hard_cut(w, max_chars))
            continue
        if cur and sum(len(x) for x in cur) + len(cur) + len(w) > max_chars:
            lines.append(" ".join(cur))
            cur = []
        cur.append(w)
    if cur:
        lines.append(" ".join(cur))
    return lines


def _emit(line: str, max_chars: int, out: list[str]) -> None:
    line = line.strip()
    if not line:
        return
    if len(line) <= max_chars:
        out.append(line)
    elif " " in line:
        out.extend(_wrap_words(line, max_chars))
    else:
        out.extend(_hard_cut(line, max_chars))


def split_long_line(text: str, max_chars: int) -> list[str]:
    """Break an over-long sentence at commas/pauses, then spaces, then by width."""
    out: list[str] = []
    current = ""
    for piece in _PAUSE_SPLIT_RE.split(text):
        if not piece:
            continue
        if current and len(current) + len(piece) > max_chars:
            _emit(current, max_chars, out)
            current = piece
        else:
            current += piece
        # Break after a pause once the line is reasonably full
        if _PAUSE_END_RE.search(current) and len(current.strip()) >= max_chars * 0.5:
            _emit(current, max_chars, out)
            current = ""
    _emit(current, max_chars, out)
    return out


def split_text_for_subtitles(text: str, settings: SubtitleSettings | None = None) -> list[str]:
    """Split a script into caption lines according to settings."""
    settings = settings or SubtitleSettings()
    max_chars = settings.max_chars_per_line
    text = text or ""

    if not settings.split_by_punctuation:
        return _hard_cut(text, max_chars)

    lines: list[str] = []
    for sentence in _SENTENCE_END_RE.split(text):
        sentence = sentence.strip()
        if not sentence:
            continue
        if len(sentence) > max_chars:
            lines.extend(split_long_line(sentence, max_chars))
        else:
            lines.append(sentence)
    return lines


def assign_times(
    lines: list[str],
    duration: float,
    section_id: str,
    settings: SubtitleSettings | None = None,
) -> list[SubtitleEntry]:
    """
    Give each line a window proportional to its share of the characters.

    Times are on the section's local axis, scaled by the playback rate, and
    rounded when assigned. The last cue always ends at the adjusted duration.
    """
    settings = settings or SubtitleSettings()
    if not lines or duration <= 0:
        return []

    adjusted = duration / settings.playback_rate
    total_chars = sum(len(line) for line in lines)
    if total_chars == 0:
        return []

    windows = [max(len(line) / total_chars * adjusted, MIN_CUE_SECS) for line in lines]
    if _round2(sum(windows[:-1])) >= _round2(adjusted):
        # Minimum durations would push the last cue past the end; shrink all to fit
        span = sum(windows)
        windows = [w * adjusted / span for w in windows]

    entries: list[SubtitleEntry] = []
    current = 0.0
    for i, (line, window) in enumerate(zip(lines, windows)):
        entries.append(
            SubtitleEntry(
                id=f"{section_id}-sub-{i}",
                section_id=section_id,
                start_time=_round2(current),
                end_time=_round2(current + window),
                text=line,
            )
        )
        current += window

    entries[-1].end_time = _round2(adjusted)
    return entries


def allocate_subtitles(
    script: str,
    duration: float,
    section_id: str,
    settings: SubtitleSettings | None = None,
) -> list[SubtitleEntry]:
    """Split one section's script and time it against its audio duration."""
    return assign_times(split_text_for_subtitles(script, settings), duration, section_id, settings)


def _section_duration(section: VideoSection) -> float | None:
    if section.audio_duration is not None:
        return section.audio_duration
    if section.audio_data:
        return wav_duration(section.audio_data)
    return None


def compose_subtitles(
    sections: list[VideoSection],
    settings: SubtitleSettings | None = None,
    custom_texts: dict[str, list[str]] | None = None,
) -> SubtitleData:
    """
    Build the project timeline: sections in document order, each shifted by
    the running offset. Sections without script or audio take no time.
    """
    settings = settings or SubtitleSettings()
    custom_texts = custom_texts or {}
    all_entries: list[SubtitleEntry] = []
    offset = 0.0

    for section in sections:
        duration = _section_duration(section)
        if not section.script or duration is None:
            logger.debug(f"{section.id} has no script or audio, no subtitles")
            continue

        if section.id in custom_texts:
            lines = [line.strip() for line in custom_texts[section.id] if line.strip()]
            entries = assign_times(lines, duration, section.id, settings)
        else:
            entries = allocate_subtitles(section.script, duration, section.id, settings)

        for entry in entries:
            entry.start_time = _round2(entry.start_time + offset)
            entry.end_time = _round2(entry.end_time + offset)
        all_entries.extend(entries)
        offset += duration / settings.playback_rate

    logger.info(f"Composed {len(all_entries)} subtitle entries, {offset:.2f}s total")
    return SubtitleData(settings=settings, entries=all_entries)


def subtitle_at(entries: list[SubtitleEntry], time: float) -> SubtitleEntry | None:
    """The cue showing at time, if any."""
    for entry in entries:
        if entry.start_time <= time < entry.end_time:
            return entry
    return None


def adjust_for_playback_rate(
    entries: list[SubtitleEntry], original_rate: float, new_rate: float
) -> list[SubtitleEntry]:
    """Rescale existing cues from one playback rate to another."""
    if original_rate <= 0 or new_rate <= 0:
        raise ValueError("playback rates must be positive")
    ratio = original_rate / new_rate
    return [
        SubtitleEntry(
            id=e.id,
            section_id=e.section_id,
            start_time=_round2(e.start_time * ratio),
            end_time=_round2(e.end_time * ratio),
            text=e.text,
        )
        for e in entries
    ]
