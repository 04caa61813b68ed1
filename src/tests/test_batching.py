"""
Tests for request batching.
"""

import pytest

from narrator.batching import batch_sections
from narrator.models import Section


def make_section(i: int, chars: int, heading: str = "") -> Section:
    return Section(id=f"section-{i}", heading=heading, heading_level=1, text_content="x" * (chars - len(heading)))


def test_greedy_packing():
    """Five 30-char sections under a 100-char budget pack 3 then 2."""
    sections = [make_section(i, 30) for i in range(5)]

    batches = batch_sections(sections, max_chars=100)

    assert [len(b) for b in batches] == [3, 2]
    assert [s.id for s in batches[0]] == ["section-0", "section-1", "section-2"]


def test_heading_counts_toward_budget():
    sections = [make_section(0, 60, heading="Heading"), make_section(1, 50, heading="H")]

    assert [len(b) for b in batch_sections(sections, max_chars=100)] == [1, 1]


def test_oversized_section_is_alone():
    sections = [make_section(0, 10), make_section(1, 250), make_section(2, 10), make_section(3, 10)]

    batches = batch_sections(sections, max_chars=100)

    assert [[s.id for s in b] for b in batches] == [
        ["section-0"],
        ["section-1"],
        ["section-2", "section-3"],
    ]


def test_batches_cover_sections_in_order():
    sizes = [5, 95, 40, 61, 100, 1, 150, 33, 33, 33, 2]
    sections = [make_section(i, n) for i, n in enumerate(sizes)]

    batches = batch_sections(sections, max_chars=100)

    assert [s for b in batches for s in b] == sections
    for b in batches:
        assert b
        if len(b) > 1:
            assert sum(s.char_count() for s in b) <= 100


def test_empty_input():
    assert batch_sections([]) == []


def test_invalid_budget():
    with pytest.raises(ValueError):
        batch_sections([make_section(0, 1)], max_chars=0)
