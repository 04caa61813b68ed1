"""
Pipeline configuration, with defaults overridable from the environment.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .batching import MAX_CHARS_PER_REQUEST
from .models import SubtitleSettings
from .script_gen import DEFAULT_SCRIPT_MODEL, OPENROUTER_BASE_URL
from .speech import CHUNK_DELAY_SECS, SPEECH_CHUNK_LIMIT
from .voicevox import DEFAULT_SPEAKER_ID, VOICEVOX_BASE_URL


@dataclass
class PipelineConfig:
    """Knobs for one document-to-video run."""

    llm_model: str = DEFAULT_SCRIPT_MODEL
    llm_base_url: str = OPENROUTER_BASE_URL
    llm_api_key: str | None = None
    max_chars_per_batch: int = MAX_CHARS_PER_REQUEST
    max_concurrent_batches: int = 3
    voicevox_url: str = VOICEVOX_BASE_URL
    speaker_id: int = DEFAULT_SPEAKER_ID
    speech_chunk_limit: int = SPEECH_CHUNK_LIMIT
    chunk_delay: float = CHUNK_DELAY_SECS
    max_concurrent_sections: int = 1
    subtitle_settings: SubtitleSettings = field(default_factory=SubtitleSettings)

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> "PipelineConfig":
        """Load .env (if any) and read NARRATOR_* / OPENROUTER_* variables."""
        load_dotenv(dotenv_path)
        defaults = cls()
        return cls(
            llm_model=os.getenv("NARRATOR_LLM_MODEL", defaults.llm_model),
            llm_base_url=os.getenv("NARRATOR_LLM_BASE_URL", defaults.llm_base_url),
            llm_api_key=os.getenv("OPENROUTER_API_KEY"),
            voicevox_url=os.getenv("VOICEVOX_URL", defaults.voicevox_url),
            speaker_id=int(os.getenv("NARRATOR_SPEAKER_ID", defaults.speaker_id)),
            subtitle_settings=SubtitleSettings(
                playback_rate=float(os.getenv("NARRATOR_PLAYBACK_RATE", 1.0)),
            ),
        )
