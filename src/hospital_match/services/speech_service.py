"""Text-to-speech for assistant replies (ElevenLabs)."""

from __future__ import annotations

import asyncio
import base64
from dataclasses import dataclass

import aiohttp

from hospital_match.config import Settings
from hospital_match.core.exceptions import UpstreamUnavailableError
from hospital_match.core.logging import get_logger

logger = get_logger(__name__)

ELEVENLABS_TTS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


@dataclass(frozen=True)
class SpeechAudio:
    audio_base64: str
    content_type: str


class SpeechService:
    """Synthesizes reply audio. Disabled when no API key is configured."""

    def __init__(self, settings: Settings, session: aiohttp.ClientSession | None = None):
        self.api_key = settings.elevenlabs_api_key
        self.voice_id = settings.elevenlabs_voice_id
        self.model_id = settings.elevenlabs_model_id
        self.timeout = aiohttp.ClientTimeout(total=settings.elevenlabs_timeout)
        self._session = session

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def aclose(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def synthesize(self, text: str) -> SpeechAudio:
        """Convert ``text`` to MPEG audio.

        Raises:
            UpstreamUnavailableError: If the service is disabled or the call fails.
        """
        if not self.enabled:
            raise UpstreamUnavailableError("elevenlabs", "not configured")

        url = ELEVENLABS_TTS_URL.format(voice_id=self.voice_id)
        body = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.5},
        }
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": self.api_key or "",
        }

        try:
            async with self._get_session().post(url, json=body, headers=headers) as resp:
                if resp.status != 200:
                    detail = await resp.text()
                    raise UpstreamUnavailableError(
                        "elevenlabs", f"returned {resp.status}: {detail[:200]}"
                    )
                audio = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise UpstreamUnavailableError("elevenlabs", f"request failed: {exc}") from exc

        logger.debug("Synthesized %d bytes of audio for %d chars", len(audio), len(text))
        return SpeechAudio(
            audio_base64=base64.b64encode(audio).decode("ascii"),
            content_type="audio/mpeg",
        )
