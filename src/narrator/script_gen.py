"""
Narration script generation with an LLM, batch by batch.
"""

import asyncio
import json
import logging
import re

from openai import AsyncOpenAI
from tqdm.asyncio import tqdm

from .batching import MAX_CHARS_PER_REQUEST, batch_sections
from .models import (
    ScriptEntry,
    ScriptResponse,
    Section,
    StructuredScripts,
    UnstructuredScripts,
    VideoSection,
)

logger = logging.getLogger("narrator")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_SCRIPT_MODEL = "google/gemini-2.0-flash-001"

_FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_FENCED_ANY_RE = re.compile(r"```[A-Za-z]*\s*([\s\S]*?)\s*```")

SYSTEM_PROMPT = (
    "You are a scriptwriter who turns blog articles into narration for explainer videos. "
    "You always answer with the requested JSON block."
)

_REQUIREMENTS = """- Write natural spoken language that reads aloud smoothly
- Convert plain form (である調) into polite form (です・ます調)
- Briefly explain technical terms where needed
- Each section should take roughly 30 seconds to 2 minutes to read
- Keep the sections separate and in the given order
- Address the viewer directly"""

_OUTPUT_FORMAT = """```json
{
  "sections": [
    {
      "sectionId": "section-0",
      "heading": "heading text",
      "script": "narration script for this section"
    }
  ]
}
```"""


def make_client(api_key: str, base_url: str = OPENROUTER_BASE_URL) -> AsyncOpenAI:
    """Create an OpenAI-compatible client for the script model."""
    if not api_key:
        raise RuntimeError("OPENROUTER_API_KEY is not set. Put it in .env or environment.")
    return AsyncOpenAI(api_key=api_key, base_url=base_url)


def build_batch_prompt(batch: list[Section], batch_number: int, total_batches: int) -> str:
    """Build the prompt for one batch; batch_number is 1-based."""
    sections_text = "\n\n".join(
        f"## Section: {s.id}\n### Heading: {s.heading}\n{s.text_content}" for s in batch
    )

    batch_info = ""
    if total_batches > 1:
        batch_info = (
            f"\n[Batch]\nThis is batch {batch_number} of {total_batches}. "
            "Keep the tone consistent with the other batches.\n"
        )

    return f"""Convert the following blog article into a narration script for a video.
{batch_info}
[Requirements]
{_REQUIREMENTS}
- Use each sectionId exactly as given

[Article]
{sections_text}

[Output format]
Answer with JSON in the following format:
{_OUTPUT_FORMAT}"""


def resolve_script_response(raw: str) -> ScriptResponse:
    """Classify a raw model answer as structured or unstructured, once."""
    match = _FENCED_JSON_RE.search(raw or "") or _FENCED_ANY_RE.search(raw or "")
    if not match:
        return UnstructuredScripts(raw_text=raw or "")
    try:
        payload = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        logger.warning(f"Script response JSON is malformed: {e}")
        return UnstructuredScripts(raw_text=raw)

    items = payload.get("sections") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        logger.warning("Script response has no 'sections' list")
        return UnstructuredScripts(raw_text=raw)

    entries = []
    for item in items:
        if not isinstance(item, dict):
            continue
        script = item.get("script")
        entries.append(
            ScriptEntry(
                section_id=str(item.get("sectionId", "")),
                script=script if isinstance(script, str) else "",
            )
        )
    return StructuredScripts(entries=entries)


def parse_script_response(raw: str, sections: list[Section]) -> list[VideoSection]:
    """
    Attach scripts from one batch response to its sections.

    Matching is by sectionId, then by position in the batch. Sections with no
    usable script keep their own extracted text.
    """
    response = resolve_script_response(raw)
    if isinstance(response, UnstructuredScripts):
        logger.warning(
            f"No structured scripts in response, using article text for {len(sections)} sections"
        )
        return [VideoSection.from_section(s, s.text_content) for s in sections]

    by_id = {e.section_id: e for e in response.entries}
    out: list[VideoSection] = []
    for index, section in enumerate(sections):
        entry = by_id.get(section.id)
        if entry is None and index < len(response.entries):
            entry = response.entries[index]
            logger.debug(f"{section.id} not found by id, using position {index}")
        script = entry.script.strip() if entry else ""
        out.append(VideoSection.from_section(section, script or section.text_content))
    return out


async def request_script(client: AsyncOpenAI, prompt: str, model: str) -> str:
    """Send one prompt and return the answer text."""
    if client is None:
        raise RuntimeError("LLM client is not initialized (missing OPENROUTER_API_KEY)")

    chat = await client.chat.completions.create(
        model=model,
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
    )
    message = chat.choices[0].message
    # Reasoning models (DeepSeek etc.) attach their thinking separately
    reasoning = getattr(message, "reasoning_details", None) or getattr(
        message, "reasoning_content", None
    )
    if reasoning:
        logger.debug(f"Model returned reasoning ({len(str(reasoning))} chars), ignored")
    return message.content or ""


async def generate_scripts_async(
    client: AsyncOpenAI,
    sections: list[Section],
    model: str = DEFAULT_SCRIPT_MODEL,
    max_chars: int = MAX_CHARS_PER_REQUEST,
    max_concurrent: int = 3,
) -> list[VideoSection]:
    """Generate scripts for all sections; result order always matches the document."""
    if not sections:
        return []

    batches = batch_sections(sections, max_chars)
    total = len(batches)
    semaphore = asyncio.Semaphore(max_concurrent)
    logger.info(f"Generating scripts for {len(sections)} sections in {total} batches using {model}")

    async def process_batch(number: int, batch: list[Section]) -> list[VideoSection]:
        prompt = build_batch_prompt(batch, number, total)
        async with semaphore:
            try:
                raw = await request_script(client, prompt, model)
            except Exception as e:
                logger.error(f"Script generation failed for batch {number}/{total}: {e}")
                return [VideoSection.from_section(s, s.text_content) for s in batch]
        return parse_script_response(raw, batch)

    tasks = [process_batch(i, batch) for i, batch in enumerate(batches, 1)]
    results = await tqdm.gather(*tasks, desc="Script batches")
    return [vs for batch_result in results for vs in batch_result]
