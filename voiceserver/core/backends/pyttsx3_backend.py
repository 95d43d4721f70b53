"""
Pyttsx3 TTS backend (local, espeak/SAPI/nsss).

Uses the pyttsx3 library for offline text-to-speech.
Quality: Low (espeak) to Medium (SAPI on Windows)
"""

import asyncio
import os
import tempfile
from typing import Optional, List, Dict, Any

from voiceserver.core.errors import BackendError
from voiceserver.core.validation import is_valid_voice_id
from .base import TTSBackend, logger
from .playback import play_file

try:
    import pyttsx3
    PYTTSX3_AVAILABLE = True
except ImportError:
    PYTTSX3_AVAILABLE = False
    logger.warning("pyttsx3 not installed. Install with: pip install pyttsx3")


def resolve_voice(engine, voice_id: str) -> str:
    """Map a voice name to the driver's voice id. Unknown names pass through."""
    for voice in engine.getProperty("voices"):
        if voice_id in (voice.name, voice.id):
            return voice.id
    return voice_id


class Pyttsx3Backend(TTSBackend):
    """Pyttsx3-based backend."""

    name = "pyttsx3"

    def __init__(self, rate: int = 175):
        self.rate = rate
        self._voices: Optional[List[str]] = None

    def is_available(self) -> bool:
        return PYTTSX3_AVAILABLE

    def _discover_voices(self) -> List[str]:
        """
        Discover pyttsx3 voices by name.

        Driver ids (espeak "gmw/en-us", SAPI registry keys) are not usable as
        request voice ids, so names are listed and mapped back in speak().
        """
        try:
            engine = pyttsx3.init()
            voices = [voice.name for voice in engine.getProperty("voices") if is_valid_voice_id(voice.name)]
            del engine
            return voices
        except Exception as e:
            logger.error(f"Failed to discover pyttsx3 voices: {e}", exc_info=True)
            return []

    async def speak(self, text: str, voice_id: Optional[str] = None) -> None:
        """Render speech to a WAV file in a worker thread and play it."""
        if not PYTTSX3_AVAILABLE:
            raise BackendError(self.name, "pyttsx3 is not installed")

        loop = asyncio.get_running_loop()
        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".wav")
        temp_file.close()

        def generate_tts():
            engine = pyttsx3.init()
            engine.setProperty("rate", self.rate)
            if voice_id:
                engine.setProperty("voice", resolve_voice(engine, voice_id))
            engine.save_to_file(text, temp_file.name)
            engine.runAndWait()
            # Don't call stop() - causes segfaults

        try:
            try:
                await loop.run_in_executor(None, generate_tts)
            except Exception as e:
                raise BackendError(self.name, f"pyttsx3 generation failed: {e}", e) from e

            if os.path.getsize(temp_file.name) == 0:
                raise BackendError(self.name, "pyttsx3 produced no audio")

            await play_file(temp_file.name, self.name)
        finally:
            if os.path.exists(temp_file.name):
                os.unlink(temp_file.name)

    def get_voices(self) -> List[str]:
        if not PYTTSX3_AVAILABLE:
            return []
        if self._voices is None:
            self._voices = self._discover_voices()
        return self._voices

    def get_health_info(self) -> Dict[str, Any]:
        return {
            "pyttsx3_installed": PYTTSX3_AVAILABLE,
            "rate": self.rate,
        }
