"""
VOICEVOX engine client (local HTTP API).
"""

import logging
from typing import Any

import httpx

from .models import SynthesisResult

logger = logging.getLogger("narrator")

VOICEVOX_BASE_URL = "http://localhost:50021"
DEFAULT_SPEAKER_ID = 3
CONNECT_PROBE_TIMEOUT = 3.0

# Frequently used speaker styles
POPULAR_SPEAKERS = [
    {"id": 3, "name": "ずんだもん", "style": "ノーマル"},
    {"id": 1, "name": "ずんだもん", "style": "あまあま"},
    {"id": 2, "name": "四国めたん", "style": "ノーマル"},
    {"id": 8, "name": "春日部つむぎ", "style": "ノーマル"},
    {"id": 10, "name": "雨晴はう", "style": "ノーマル"},
    {"id": 14, "name": "冥鳴ひまり", "style": "ノーマル"},
    {"id": 16, "name": "九州そら", "style": "ノーマル"},
    {"id": 47, "name": "ナースロボ＿タイプＴ", "style": "ノーマル"},
]


class SynthesisError(RuntimeError):
    """A VOICEVOX request failed or returned something unusable."""


class VoicevoxClient:
    """Async client for the two-step audio_query -> synthesis protocol."""

    def __init__(
        self,
        base_url: str = VOICEVOX_BASE_URL,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": "article-narrator/0.1"},
        )

    async def __aenter__(self) -> "VoicevoxClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def check_connection(self, timeout: float = CONNECT_PROBE_TIMEOUT) -> bool:
        """Probe the engine; False when it is not reachable within timeout."""
        try:
            r = await self._client.get("/version", timeout=timeout)
        except httpx.HTTPError as e:
            logger.debug(f"VOICEVOX probe failed: {e}")
            return False
        return r.is_success

    async def get_version(self) -> str | None:
        try:
            r = await self._client.get("/version")
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch VOICEVOX version: {e}")
            return None
        if not r.is_success:
            return None
        return r.text.strip().strip('"')

    async def get_speakers(self) -> list[dict[str, Any]]:
        try:
            r = await self._client.get("/speakers")
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch VOICEVOX speakers: {e}")
            return []
        if not r.is_success:
            logger.warning(f"Could not fetch speakers list ({r.status_code})")
            return []
        try:
            data = r.json()
        except ValueError:
            return []
        return data if isinstance(data, list) else []

    async def create_audio_query(self, text: str, speaker: int) -> dict[str, Any]:
        """Step 1: build the synthesis query for text and speaker."""
        try:
            r = await self._client.post("/audio_query", params={"text": text, "speaker": speaker})
        except httpx.HTTPError as e:
            raise SynthesisError(f"audio_query request failed: {e}") from e
        if not r.is_success:
            raise SynthesisError(f"audio_query failed: {r.status_code} {r.text[:300]}")
        try:
            query = r.json()
        except ValueError as e:
            raise SynthesisError(f"audio_query returned invalid JSON: {e}") from e
        if not isinstance(query, dict):
            raise SynthesisError("audio_query returned a non-object payload")
        return query

    async def synthesize(self, query: dict[str, Any], speaker: int) -> bytes:
        """Step 2: render a query to WAV bytes."""
        try:
            r = await self._client.post("/synthesis", params={"speaker": speaker}, json=query)
        except httpx.HTTPError as e:
            raise SynthesisError(f"synthesis request failed: {e}") from e
        if not r.is_success:
            raise SynthesisError(f"synthesis failed: {r.status_code} {r.text[:300]}")
        return r.content

    async def text_to_speech(self, text: str, speaker: int = DEFAULT_SPEAKER_ID) -> SynthesisResult:
        """Both steps for a single short text."""
        try:
            query = await self.create_audio_query(text, speaker)
            audio = await self.synthesize(query, speaker)
        except SynthesisError as e:
            return SynthesisResult(success=False, error=str(e))
        return SynthesisResult(success=True, audio=audio)
