"""
Tests for speech chunking and per-section synthesis.
"""

import asyncio

import pytest

from narrator.speech import split_text_for_speech, synthesize_section
from narrator.voicevox import SynthesisError
from narrator.wav import wav_duration


def test_short_text_is_one_chunk():
    assert split_text_for_speech("  こんにちは。  ") == ["こんにちは。"]
    assert split_text_for_speech("") == []
    assert split_text_for_speech("   ") == []


def test_chunks_break_at_sentence_ends():
    """Twelve 100-char sentences fill two 500-char chunks and a remainder."""
    text = ("あ" * 99 + "。") * 12

    chunks = split_text_for_speech(text, 500)

    assert [len(c) for c in chunks] == [500, 500, 200]
    assert "".join(chunks) == text
    assert all(c.endswith("。") for c in chunks)


def test_long_sentence_is_cut():
    chunks = split_text_for_speech("あ" * 1200, 500)

    assert [len(c) for c in chunks] == [500, 500, 200]


def test_latin_decimal_is_not_a_sentence_end():
    text = "Pi is 3.14 roughly. " * 3

    chunks = split_text_for_speech(text, 25)

    assert chunks == ["Pi is 3.14 roughly."] * 3


def test_invalid_limit():
    with pytest.raises(ValueError):
        split_text_for_speech("x", 0)


class FakeTTS:
    """Synthesizes len(text) / 100 seconds of silence per request."""

    def __init__(self, make_wav, fail_on=None, empty_on=None):
        self.make_wav = make_wav
        self.texts = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.fail_on = fail_on
        self.empty_on = empty_on

    async def create_audio_query(self, text, speaker):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.texts.append(text)
        await asyncio.sleep(0)
        return {"text": text, "speaker": speaker}

    async def synthesize(self, query, speaker):
        await asyncio.sleep(0)
        self.in_flight -= 1
        n = len(self.texts)
        if n == self.fail_on:
            raise SynthesisError("synthesis failed: 500")
        if n == self.empty_on:
            return b""
        return self.make_wav(len(query["text"]) / 100)


def test_section_chunks_are_synthesized_in_order(make_wav):
    tts = FakeTTS(make_wav)
    text = ("あ" * 99 + "。") * 12

    result = asyncio.run(synthesize_section(tts, text, 3, chunk_limit=500, chunk_delay=0))

    assert result.success
    assert [len(t) for t in tts.texts] == [500, 500, 200]
    assert tts.max_in_flight == 1
    assert wav_duration(result.audio) == pytest.approx(12.0)


def test_failed_chunk_abandons_section(make_wav):
    tts = FakeTTS(make_wav, fail_on=2)
    text = ("あ" * 99 + "。") * 12

    result = asyncio.run(synthesize_section(tts, text, 3, chunk_limit=500, chunk_delay=0))

    assert not result.success
    assert result.audio is None
    assert "chunk 2/3" in result.error
    assert len(tts.texts) == 2


def test_empty_audio_is_a_failure(make_wav):
    tts = FakeTTS(make_wav, empty_on=1)

    result = asyncio.run(synthesize_section(tts, "短い文。", 3, chunk_delay=0))

    assert not result.success
    assert "empty" in result.error


def test_empty_text_is_a_failure(make_wav):
    tts = FakeTTS(make_wav)

    result = asyncio.run(synthesize_section(tts, "  ", 3, chunk_delay=0))

    assert not result.success
    assert result.error == "No text to synthesize"
    assert tts.texts == []
