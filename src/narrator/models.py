"""
Data models for the narration pipeline.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union

VISUAL_TYPES = ("ai-image", "slide", "none")


@dataclass
class Section:
    """A document fragment anchored at a heading."""

    id: str  # section-<n>
    heading: str
    heading_level: int  # 0 = introduction / no heading
    text_content: str

    def char_count(self) -> int:
        return len(self.text_content) + len(self.heading)


@dataclass
class VideoSection(Section):
    """A section plus everything the pipeline derives for it."""

    script: str = ""
    audio_data: bytes | None = None
    audio_duration: float | None = None  # seconds, raw (playback rate 1.0)
    visual_type: str = "none"
    selected_slide_id: str | None = None
    audio_file_name: str | None = None
    image_file_name: str | None = None
    script_file_name: str | None = None

    @classmethod
    def from_section(cls, section: Section, script: str) -> "VideoSection":
        return cls(
            id=section.id,
            heading=section.heading,
            heading_level=section.heading_level,
            text_content=section.text_content,
            script=script,
        )

    def to_dict(self) -> dict:
        """Project-file form (camelCase, audio bytes excluded)."""
        data = {
            "id": self.id,
            "heading": self.heading,
            "headingLevel": self.heading_level,
            "textContent": self.text_content,
            "script": self.script,
            "visualType": self.visual_type,
        }
        optional = {
            "selectedSlideId": self.selected_slide_id,
            "audioFileName": self.audio_file_name,
            "imageFileName": self.image_file_name,
            "scriptFileName": self.script_file_name,
            "duration": self.audio_duration,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "VideoSection":
        visual_type = data.get("visualType", "none")
        if visual_type not in VISUAL_TYPES:
            visual_type = "none"
        return cls(
            id=data["id"],
            heading=data.get("heading", ""),
            heading_level=int(data.get("headingLevel", 0)),
            text_content=data.get("textContent", ""),
            script=data.get("script", ""),
            audio_duration=data.get("duration"),
            visual_type=visual_type,
            selected_slide_id=data.get("selectedSlideId"),
            audio_file_name=data.get("audioFileName"),
            image_file_name=data.get("imageFileName"),
            script_file_name=data.get("scriptFileName"),
        )


@dataclass
class ScriptEntry:
    """One `{sectionId, script}` pair returned by the script generator."""

    section_id: str
    script: str


@dataclass
class StructuredScripts:
    """A response that carried a parseable fenced JSON block."""

    entries: list[ScriptEntry]


@dataclass
class UnstructuredScripts:
    """A response with no usable structured block."""

    raw_text: str


ScriptResponse = Union[StructuredScripts, UnstructuredScripts]


@dataclass
class SynthesisResult:
    """Outcome of synthesizing one section (or one text) to speech."""

    success: bool
    audio: bytes | None = None
    error: str | None = None


@dataclass
class SubtitleSettings:
    """Line splitting and timing configuration."""

    max_chars_per_line: int = 20  # typical broadcast / YouTube caption width
    playback_rate: float = 1.0
    split_by_punctuation: bool = True

    def __post_init__(self) -> None:
        if self.playback_rate <= 0:
            raise ValueError(f"playback_rate must be positive, got {self.playback_rate}")
        if self.max_chars_per_line < 1:
            raise ValueError(f"max_chars_per_line must be >= 1, got {self.max_chars_per_line}")

    def to_dict(self) -> dict:
        return {
            "maxCharsPerLine": self.max_chars_per_line,
            "playbackRate": self.playback_rate,
            "splitByPunctuation": self.split_by_punctuation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SubtitleSettings":
        return cls(
            max_chars_per_line=int(data.get("maxCharsPerLine", 20)),
            playback_rate=float(data.get("playbackRate", 1.0)),
            split_by_punctuation=bool(data.get("splitByPunctuation", True)),
        )


@dataclass
class SubtitleEntry:
    """A timed caption line (seconds, rounded to 2 decimals)."""

    id: str
    section_id: str
    start_time: float
    end_time: float
    text: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sectionId": self.section_id,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "text": self.text,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SubtitleEntry":
        return cls(
            id=data["id"],
            section_id=data["sectionId"],
            start_time=float(data["startTime"]),
            end_time=float(data["endTime"]),
            text=data["text"],
        )


@dataclass
class SubtitleData:
    """Project-wide subtitle artifact handed to the renderer."""

    settings: SubtitleSettings
    entries: list[SubtitleEntry]
    version: str = "1.0"
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    )

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "createdAt": self.created_at,
            "settings": self.settings.to_dict(),
            "entries": [e.to_dict() for e in self.entries],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> "SubtitleData":
        return cls(
            settings=SubtitleSettings.from_dict(data.get("settings", {})),
            entries=[SubtitleEntry.from_dict(e) for e in data.get("entries", [])],
            version=data.get("version", "1.0"),
            created_at=data.get("createdAt", ""),
        )

    @classmethod
    def from_json(cls, text: str) -> "SubtitleData":
        return cls.from_dict(json.loads(text))


@dataclass
class SectionFailure:
    """A section that finished the run without audio/subtitles."""

    section_id: str
    heading: str
    error: str


@dataclass
class PipelineResult:
    """Everything one document-to-video run produced."""

    sections: list[VideoSection]
    subtitles: SubtitleData
    failures: list[SectionFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures
