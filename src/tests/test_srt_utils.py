"""
Tests for SRT utilities.
"""

from narrator.models import SubtitleEntry
from narrator.srt_utils import format_timestamp, render_srt, write_srt


def test_write_srt(tmp_path):
    """Cues are numbered from 1 and separated by blank lines."""
    entries = [
        SubtitleEntry("section-0-sub-0", "section-0", 0.0, 2.57, "こんにちは。"),
        SubtitleEntry("section-0-sub-1", "section-0", 2.57, 6.0, "今日は晴れです。"),
        SubtitleEntry("section-1-sub-0", "section-1", 6.0, 3725.5, "Goodbye!"),
    ]
    srt_path = tmp_path / "out.srt"

    write_srt(entries, str(srt_path))

    assert srt_path.read_text(encoding="utf-8") == (
        "1\n00:00:00,000 --> 00:00:02,570\nこんにちは。\n\n"
        "2\n00:00:02,570 --> 00:00:06,000\n今日は晴れです。\n\n"
        "3\n00:00:06,000 --> 01:02:05,500\nGoodbye!\n\n"
    )


def test_format_timestamp():
    """Milliseconds are rounded, not truncated."""
    assert format_timestamp(2.57) == "00:00:02,570"
    assert format_timestamp(0.0) == "00:00:00,000"
    assert format_timestamp(-1.0) == "00:00:00,000"
    assert format_timestamp(3725.5) == "01:02:05,500"


def test_render_empty():
    assert render_srt([]) == ""
