"""
Article Narrator - HTML articles to narrated, subtitled video scripts.

A pipeline for:
- Splitting an article into sections at its headings
- Generating narration scripts per section with an LLM (batched)
- Synthesizing speech per section with VOICEVOX (chunked, merged WAV)
- Measuring audio durations straight from the WAV container
- Allocating subtitle cues proportionally to text length and playback rate
- Composing a single project-wide subtitle timeline
"""

__version__ = "0.1.0"
