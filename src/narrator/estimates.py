"""
Rough size, duration and cost estimates for a narration run.
"""

import math

from .batching import MAX_CHARS_PER_REQUEST, batch_sections
from .models import Section

# Japanese narration, on the slow side
CHARS_PER_SECOND = 5

# USD per 1M tokens (input, output)
MODEL_RATES: dict[str, tuple[float, float]] = {
    "google/gemini-2.0-flash-001": (0.10, 0.40),
    "google/gemini-2.5-flash-preview": (0.15, 0.60),
    "deepseek/deepseek-chat": (0.14, 0.28),
    "moonshotai/kimi-k2": (0.0, 0.0),
}

# Fixed instructions sent with every batch, in tokens
PROMPT_OVERHEAD_TOKENS = 400


def estimate_audio_duration(text: str) -> int:
    """Seconds of narration for text, rounded up."""
    return math.ceil(len(text) / CHARS_PER_SECOND)


def format_duration(seconds: float) -> str:
    """Seconds -> m:ss."""
    seconds = int(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def calculate_total_chars(sections: list[Section]) -> int:
    return sum(s.char_count() for s in sections)


def estimate_api_calls(sections: list[Section], max_chars: int = MAX_CHARS_PER_REQUEST) -> int:
    return len(batch_sections(sections, max_chars))


def estimate_script_cost(
    sections: list[Section],
    model: str,
    *,
    max_chars: int = MAX_CHARS_PER_REQUEST,
    chars_per_token: float = 1.0,
    rates: dict[str, tuple[float, float]] | None = None,
) -> dict[str, float | None]:
    """Estimate tokens and USD cost of generating scripts for sections."""
    rates = MODEL_RATES if rates is None else rates
    total_chars = calculate_total_chars(sections)
    calls = estimate_api_calls(sections, max_chars) if sections else 0
    input_tokens = total_chars / chars_per_token + calls * PROMPT_OVERHEAD_TOKENS
    # Scripts come back at roughly the length of the article
    output_tokens = total_chars / chars_per_token

    cost: float | None = None
    rate = rates.get(model)
    if rate is not None:
        rate_in, rate_out = rate
        cost = (input_tokens / 1_000_000.0) * rate_in + (output_tokens / 1_000_000.0) * rate_out
    return {
        "api_calls": calls,
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "cost": cost,
    }
