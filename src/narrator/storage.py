"""
Project artifact storage rooted at an explicit directory.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from .models import SubtitleData, SubtitleEntry, SubtitleSettings, VideoSection
from .srt_utils import write_srt

logger = logging.getLogger("narrator")

VIDEO_SUBDIR = "video"


def script_file_name(project_id: str, section_id: str) -> str:
    return f"script-{project_id}-{section_id}.txt"


def audio_file_name(project_id: str, section_id: str) -> str:
    return f"audio-{project_id}-{section_id}.wav"


def project_data_file_name(project_id: str) -> str:
    return f"video-data-{project_id}.json"


def subtitles_srt_file_name(project_id: str) -> str:
    return f"subtitles-{project_id}.srt"


def render_script_file(script: str, heading: str) -> str:
    return f"# {heading}\n\n{script}"


def parse_script_file(content: str) -> tuple[str, str]:
    """Return (heading, script); files without a header keep an empty heading."""
    lines = content.split("\n")
    if lines and lines[0].startswith("# "):
        return lines[0][2:].strip(), "\n".join(lines[2:]).strip()
    return "", content


def build_project_data(
    sections: list[VideoSection],
    speaker_id: int,
    subtitles: SubtitleData | None = None,
    source_html_file_name: str | None = None,
    custom_subtitle_texts: dict[str, list[str]] | None = None,
) -> dict:
    """Project document in the renderer's JSON shape (audio stored separately)."""
    data: dict = {
        "sections": [s.to_dict() for s in sections],
        "speakerId": speaker_id,
        "updatedAt": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
    }
    if source_html_file_name:
        data["sourceHtmlFileName"] = source_html_file_name
    if subtitles is not None:
        data["subtitles"] = [e.to_dict() for e in subtitles.entries]
        data["subtitleSettings"] = subtitles.settings.to_dict()
    if custom_subtitle_texts:
        data["customSubtitleTexts"] = custom_subtitle_texts
    return data


class ProjectStore:
    """Reads and writes one folder's `video/` artifacts.

    Callers hand an instance to whatever needs persistence; nothing here is
    global, so several runs can use different roots side by side.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.video_dir = self.root / VIDEO_SUBDIR

    def _ensure_dir(self) -> Path:
        self.video_dir.mkdir(parents=True, exist_ok=True)
        return self.video_dir

    def save_script_file(self, project_id: str, section_id: str, script: str, heading: str) -> str:
        name = script_file_name(project_id, section_id)
        (self._ensure_dir() / name).write_text(render_script_file(script, heading), encoding="utf-8")
        return name

    def load_script_file(self, name: str) -> tuple[str, str]:
        return parse_script_file((self.video_dir / name).read_text(encoding="utf-8"))

    def load_script_files(self) -> dict[str, tuple[str, str]]:
        """All script-*.txt files in the folder, keyed by file name."""
        out: dict[str, tuple[str, str]] = {}
        if not self.video_dir.is_dir():
            return out
        for path in sorted(self.video_dir.glob("script-*.txt")):
            try:
                out[path.name] = parse_script_file(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to load script file {path.name}: {e}")
        return out

    def save_audio_file(self, project_id: str, section_id: str, audio: bytes) -> str:
        name = audio_file_name(project_id, section_id)
        (self._ensure_dir() / name).write_bytes(audio)
        return name

    def load_audio_file(self, name: str) -> bytes:
        return (self.video_dir / name).read_bytes()

    def save_project_data(self, project_id: str, data: dict) -> Path:
        path = self._ensure_dir() / project_data_file_name(project_id)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info(f"Saved project data -> {path}")
        return path

    def load_project_data(self, project_id: str) -> dict:
        path = self.video_dir / project_data_file_name(project_id)
        return json.loads(path.read_text(encoding="utf-8"))

    def save_srt(self, project_id: str, subtitles: SubtitleData) -> Path:
        path = self._ensure_dir() / subtitles_srt_file_name(project_id)
        write_srt(subtitles.entries, str(path))
        return path

    def save_sections(self, project_id: str, sections: list[VideoSection]) -> None:
        """Write script and audio files and record their names on the sections."""
        for section in sections:
            if section.script:
                section.script_file_name = self.save_script_file(
                    project_id, section.id, section.script, section.heading
                )
            if section.audio_data:
                section.audio_file_name = self.save_audio_file(project_id, section.id, section.audio_data)

    def load_project(
        self, project_id: str
    ) -> tuple[list[VideoSection], SubtitleData | None, dict[str, list[str]]]:
        """Sections (with audio re-attached), saved subtitles and custom subtitle texts."""
        data = self.load_project_data(project_id)
        sections = [VideoSection.from_dict(d) for d in data.get("sections", [])]
        for section in sections:
            if not section.audio_file_name:
                section.audio_duration = None
                continue
            try:
                section.audio_data = self.load_audio_file(section.audio_file_name)
            except FileNotFoundError:
                logger.warning(f"Audio file not found: {section.audio_file_name}")
                # A saved duration without its audio would shift the timeline
                section.audio_duration = None

        subtitles = None
        if "subtitles" in data:
            subtitles = SubtitleData(
                settings=SubtitleSettings.from_dict(data.get("subtitleSettings", {})),
                entries=[SubtitleEntry.from_dict(e) for e in data["subtitles"]],
                created_at=data.get("updatedAt", ""),
            )
        return sections, subtitles, data.get("customSubtitleTexts", {})
