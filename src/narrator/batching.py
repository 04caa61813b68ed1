"""
Grouping of sections into request-sized batches for script generation.
"""

import logging

from .models import Section

logger = logging.getLogger("narrator")

# Upstream request budget in characters (heading + body), with headroom
MAX_CHARS_PER_REQUEST = 15000


def batch_sections(
    sections: list[Section], max_chars: int = MAX_CHARS_PER_REQUEST
) -> list[list[Section]]:
    """
    Greedily pack sections, in order, into batches of at most max_chars.
    A section that alone exceeds max_chars becomes its own batch; sections
    are never split, dropped or reordered.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be >= 1, got {max_chars}")

    batches: list[list[Section]] = []
    cur: list[Section] = []
    cur_chars = 0

    for section in sections:
        size = section.char_count()

        if size > max_chars:
            if cur:
                batches.append(cur)
                cur, cur_chars = [], 0
            logger.debug(f"{section.id} ({size} chars) exceeds budget, sending alone")
            batches.append([section])
            continue

        if cur and cur_chars + size > max_chars:
            batches.append(cur)
            cur, cur_chars = [], 0

        cur.append(section)
        cur_chars += size

    if cur:
        batches.append(cur)
    return batches
