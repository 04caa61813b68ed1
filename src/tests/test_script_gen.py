"""
Tests for script prompt building, response parsing and batch merging.
"""

import asyncio
import json
import re
from types import SimpleNamespace

from narrator.models import ScriptEntry, Section, StructuredScripts, UnstructuredScripts
from narrator.script_gen import (
    build_batch_prompt,
    generate_scripts_async,
    parse_script_response,
    resolve_script_response,
)

SECTIONS = [
    Section(id="section-0", heading="はじめに", heading_level=0, text_content="導入の本文です。"),
    Section(id="section-1", heading="使い方", heading_level=2, text_content="使い方の本文です。"),
    Section(id="section-2", heading="まとめ", heading_level=2, text_content="まとめの本文です。"),
]


def fenced(payload) -> str:
    return "Here you go:\n```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```\n"


def test_prompt_embeds_ids_and_headings():
    prompt = build_batch_prompt(SECTIONS, 1, 1)

    for s in SECTIONS:
        assert s.id in prompt
        assert s.heading in prompt
        assert s.text_content in prompt
    assert "batch 1 of 1" not in prompt


def test_prompt_mentions_batch_position():
    prompt = build_batch_prompt(SECTIONS[:1], 2, 3)

    assert "batch 2 of 3" in prompt


def test_resolve_structured_and_unstructured():
    structured = resolve_script_response(fenced({"sections": [{"sectionId": "section-0", "script": "a"}]}))
    assert isinstance(structured, StructuredScripts)
    assert structured.entries == [ScriptEntry(section_id="section-0", script="a")]

    assert isinstance(resolve_script_response("no block at all"), UnstructuredScripts)
    assert isinstance(resolve_script_response("```json\n{broken\n```"), UnstructuredScripts)
    assert isinstance(resolve_script_response(fenced({"other": []})), UnstructuredScripts)


def test_parse_matches_by_section_id():
    raw = fenced(
        {
            "sections": [
                {"sectionId": "section-2", "script": "台本C"},
                {"sectionId": "section-0", "script": "台本A"},
                {"sectionId": "section-1", "script": "台本B"},
            ]
        }
    )

    result = parse_script_response(raw, SECTIONS)

    assert [r.id for r in result] == ["section-0", "section-1", "section-2"]
    assert [r.script for r in result] == ["台本A", "台本B", "台本C"]
    assert all(r.visual_type == "none" for r in result)


def test_parse_falls_back_to_position():
    raw = fenced({"sections": [{"sectionId": "s0", "script": "one"}, {"sectionId": "s1", "script": "two"}]})

    result = parse_script_response(raw, SECTIONS)

    assert [r.script for r in result] == ["one", "two", SECTIONS[2].text_content]


def test_parse_failure_uses_article_text():
    result = parse_script_response("Sorry, I cannot help with that.", SECTIONS)

    assert [r.script for r in result] == [s.text_content for s in SECTIONS]
    assert [r.heading for r in result] == [s.heading for s in SECTIONS]


def test_empty_script_falls_back():
    raw = fenced({"sections": [{"sectionId": "section-0", "script": "  "}]})

    assert parse_script_response(raw, SECTIONS[:1])[0].script == SECTIONS[0].text_content


class FakeCompletions:
    """Answers each prompt with scripts for the ids it contains."""

    def __init__(self, fail_ids=()):
        self.prompts = []
        self.fail_ids = set(fail_ids)

    async def create(self, model, messages):
        prompt = messages[-1]["content"]
        self.prompts.append(prompt)
        ids = re.findall(r"## Section: (section-\d+)", prompt)
        if self.fail_ids & set(ids):
            raise RuntimeError("upstream error")
        # Earlier batches finish last
        await asyncio.sleep(0.05 / (len(self.prompts)))
        content = fenced({"sections": [{"sectionId": i, "script": f"script for {i}"} for i in ids]})
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def long_sections(n: int) -> list[Section]:
    return [
        Section(id=f"section-{i}", heading=f"H{i}", heading_level=2, text_content="t" * 40)
        for i in range(n)
    ]


def test_generate_scripts_keeps_document_order():
    completions = FakeCompletions()
    sections = long_sections(7)

    result = asyncio.run(
        generate_scripts_async(fake_client(completions), sections, model="m", max_chars=100)
    )

    assert len(completions.prompts) == 4
    assert [r.id for r in result] == [s.id for s in sections]
    assert [r.script for r in result] == [f"script for {s.id}" for s in sections]
    assert "batch 1 of 4" in completions.prompts[0]


def test_failed_batch_falls_back_without_stopping_others():
    completions = FakeCompletions(fail_ids={"section-2"})
    sections = long_sections(4)

    result = asyncio.run(
        generate_scripts_async(fake_client(completions), sections, model="m", max_chars=100)
    )

    assert [r.script for r in result] == [
        "script for section-0",
        "script for section-1",
        sections[2].text_content,
        sections[3].text_content,
    ]


def test_generate_scripts_empty():
    assert asyncio.run(generate_scripts_async(fake_client(FakeCompletions()), [], model="m")) == []
