"""
Edge TTS backend (Microsoft cloud TTS).

Uses the edge-tts library for Microsoft's neural text-to-speech.
Quality: High - Neural TTS
Requires: Internet connection
"""

import io
import os
from typing import Optional, List, Dict, Any

from voiceserver.core.errors import BackendError
from .base import TTSBackend, logger
from .playback import play_bytes

try:
    import edge_tts
    EDGE_TTS_AVAILABLE = True
except ImportError:
    EDGE_TTS_AVAILABLE = False
    logger.warning("edge-tts not installed. Install with: pip install edge-tts")


class EdgeBackend(TTSBackend):
    """Edge TTS-based backend."""

    name = "edge"

    # Common high-quality voices
    COMMON_VOICES = [
        "en-US-AriaNeural",
        "en-US-GuyNeural",
        "en-GB-RyanNeural",
        "en-GB-SoniaNeural",
        "en-AU-NatashaNeural",
        "en-IN-NeerjaNeural"
    ]

    def __init__(self, default_voice: Optional[str] = None):
        self.default_voice = default_voice or os.getenv("EDGE_TTS_VOICE", "en-US-AriaNeural")

    def is_available(self) -> bool:
        return EDGE_TTS_AVAILABLE

    async def speak(self, text: str, voice_id: Optional[str] = None) -> None:
        """Generate audio using Edge TTS and play it."""
        if not EDGE_TTS_AVAILABLE:
            raise BackendError(self.name, "edge-tts is not installed")

        voice = voice_id or self.default_voice
        audio_data = io.BytesIO()

        try:
            tts = edge_tts.Communicate(text, voice)
            async for chunk in tts.stream():
                if chunk["type"] == "audio":
                    audio_data.write(chunk["data"])
        except Exception as e:
            raise BackendError(self.name, f"Edge TTS generation failed: {e}", e) from e

        if not audio_data.getbuffer().nbytes:
            raise BackendError(self.name, "Edge TTS returned no audio")

        logger.info(f"Edge TTS: generated audio with voice {voice}")
        await play_bytes(audio_data.getvalue(), ".mp3", self.name)

    def get_voices(self) -> List[str]:
        return list(self.COMMON_VOICES)

    def get_health_info(self) -> Dict[str, Any]:
        return {
            "edge_tts_installed": EDGE_TTS_AVAILABLE,
            "default_voice": self.default_voice,
        }
