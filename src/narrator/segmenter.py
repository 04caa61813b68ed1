"""
Heading-based segmentation of HTML articles into ordered sections.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup, NavigableString, Tag

from .models import Section

logger = logging.getLogger("narrator")

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
# Containers whose text is never shown to a reader
_INVISIBLE_TAGS = {"script", "style", "template", "noscript", "head", "title"}
DEFAULT_INTRO_HEADING = "introduction"
# Leading text at or below this length is treated as boilerplate
MIN_INTRO_CHARS = 10

_WS_RE = re.compile(r"\s+")


@dataclass
class TextRun:
    """A piece of visible text in document order.

    heading_level is 1-6 for the full text of a heading element, 0 for body text.
    """

    text: str
    position: int
    heading_level: int = 0


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def _enclosing_heading(node) -> Tag | None:
    return node.find_parent(HEADING_TAGS)


def _is_invisible(node) -> bool:
    return node.find_parent(_INVISIBLE_TAGS) is not None


def iter_text_runs(html: str) -> Iterator[TextRun]:
    """Walk the document and yield heading and body text runs in order."""
    soup = BeautifulSoup(html or "", "html.parser")
    root = soup.body or soup
    position = 0
    for node in root.descendants:
        if isinstance(node, Tag):
            if node.name in HEADING_TAGS and _enclosing_heading(node) is None:
                yield TextRun(
                    text=node.get_text(),
                    position=position,
                    heading_level=int(node.name[1]),
                )
                position += 1
            continue
        if type(node) is not NavigableString:
            # comments, doctype, script/style strings
            continue
        if _enclosing_heading(node) is not None or _is_invisible(node):
            continue
        yield TextRun(text=str(node), position=position)
        position += 1


def extract_text(html: str) -> str:
    """Visible text of an HTML fragment, whitespace collapsed."""
    return collapse_whitespace(" ".join(r.text for r in iter_text_runs(html)))


def segment(html: str, intro_heading: str = DEFAULT_INTRO_HEADING) -> list[Section]:
    """Split an HTML document into sections at h1-h6 boundaries."""
    runs = list(iter_text_runs(html))
    heading_positions = [i for i, r in enumerate(runs) if r.heading_level > 0]

    if not heading_positions:
        text = collapse_whitespace(" ".join(r.text for r in runs))
        if not text:
            return []
        return [Section(id="section-0", heading=intro_heading, heading_level=0, text_content=text)]

    sections: list[Section] = []
    index = 0

    intro = collapse_whitespace(" ".join(r.text for r in runs[: heading_positions[0]]))
    if len(intro) > MIN_INTRO_CHARS:
        sections.append(
            Section(id=f"section-{index}", heading=intro_heading, heading_level=0, text_content=intro)
        )
        index += 1
    elif intro:
        logger.debug(f"Discarding short leading text: {intro!r}")

    bounds = heading_positions + [len(runs)]
    for start, end in zip(bounds, bounds[1:]):
        heading = runs[start]
        body = " ".join(r.text for r in runs[start + 1 : end])
        sections.append(
            Section(
                id=f"section-{index}",
                heading=collapse_whitespace(heading.text),
                heading_level=heading.heading_level,
                text_content=collapse_whitespace(body),
            )
        )
        index += 1

    sections = [s for s in sections if s.text_content or s.heading_level > 0]
    logger.info(f"Segmented document into {len(sections)} sections")
    return sections
