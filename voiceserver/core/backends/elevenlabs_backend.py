"""
ElevenLabs TTS backend (cloud API).

Streams MP3 audio from the ElevenLabs text-to-speech endpoint and plays it.
Quality: Very high - Neural TTS
Requires: Internet connection and ELEVENLABS_API_KEY
"""

import os
from typing import Optional, List, Dict, Any

import httpx

from voiceserver.core.errors import BackendError
from .base import TTSBackend, logger
from .playback import play_bytes

API_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8Ikwcm"  # Rachel
DEFAULT_MODEL_ID = "eleven_turbo_v2_5"
REQUEST_TIMEOUT = 30.0


class ElevenLabsBackend(TTSBackend):
    """ElevenLabs API-based backend."""

    name = "elevenlabs"

    # Premade voices available on every account
    COMMON_VOICES = {
        "21m00Tcm4TlvDq8Ikwcm": "Rachel",
        "AZnzlk1XvdvUeBnXmlld": "Domi",
        "EXAVITQu4vr4xnSDxMaL": "Bella",
        "ErXwobaYiN019PkySvjV": "Antoni",
        "TxGEqnHWrfWFTfGW9XjX": "Josh",
        "pNInz6obpgDQGcFmaJgB": "Adam",
    }

    def __init__(self, api_key: Optional[str] = None, default_voice: Optional[str] = None,
                 model_id: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key or os.getenv("ELEVENLABS_API_KEY", "")
        self.default_voice = default_voice or os.getenv("ELEVENLABS_VOICE_ID", DEFAULT_VOICE_ID)
        self.model_id = model_id or os.getenv("ELEVENLABS_MODEL_ID", DEFAULT_MODEL_ID)
        self._transport = transport

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def _fetch_audio(self, text: str, voice: str) -> bytes:
        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        payload = {
            "text": text,
            "model_id": self.model_id,
            "voice_settings": {"stability": 0.5, "similarity_boost": 0.5},
        }

        audio = bytearray()
        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self._transport) as client:
                async with client.stream("POST", API_URL.format(voice_id=voice),
                                         headers=headers, json=payload) as response:
                    if response.status_code != 200:
                        body = (await response.aread()).decode(errors="replace")[:200]
                        raise BackendError(
                            self.name,
                            f"ElevenLabs API returned HTTP {response.status_code}: {body}"
                        )
                    async for chunk in response.aiter_bytes():
                        audio.extend(chunk)
        except httpx.HTTPError as e:
            raise BackendError(self.name, f"ElevenLabs request failed: {e}", e) from e

        return bytes(audio)

    async def speak(self, text: str, voice_id: Optional[str] = None) -> None:
        """Generate audio with ElevenLabs and play it."""
        if not self.api_key:
            raise BackendError(self.name, "ELEVENLABS_API_KEY is not set")

        voice = voice_id or self.default_voice
        audio = await self._fetch_audio(text, voice)
        if not audio:
            raise BackendError(self.name, "ElevenLabs returned no audio")

        logger.info(f"ElevenLabs TTS: generated {len(audio)} bytes with voice {voice}")
        await play_bytes(audio, ".mp3", self.name)

    def get_voices(self) -> List[str]:
        return list(self.COMMON_VOICES)

    def get_health_info(self) -> Dict[str, Any]:
        return {
            "api_key_configured": bool(self.api_key),
            "default_voice": self.default_voice,
            "model_id": self.model_id,
        }
