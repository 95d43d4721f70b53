"""
Piper TTS backend (local neural TTS).

Runs the piper binary with the text on stdin and raw 16-bit mono PCM on stdout,
wraps the samples in a WAV header and plays the result.
Quality: High - Neural TTS, local
Requires: piper binary and at least one .onnx voice model
"""

import asyncio
import json
import os
import shutil
from pathlib import Path
from typing import Optional, List, Dict, Any

from voiceserver.core.errors import BackendError
from voiceserver.core.validation import is_valid_voice_id
from .base import TTSBackend, logger
from .playback import communicate, play_bytes, wav_wrap

DEFAULT_MODEL_DIR = "data/tts/piper/models"
DEFAULT_SAMPLE_RATE = 22050


class PiperBackend(TTSBackend):
    """Piper TTS-based backend."""

    name = "piper"

    # Common high-quality voices (model names)
    COMMON_VOICES = {
        "en_US-lessac-medium": "English (US) - Lessac (Medium)",
        "en_US-amy-medium": "English (US) - Amy (Medium)",
        "en_GB-alba-medium": "English (GB) - Alba (Medium)",
        "en_GB-danny-low": "English (GB) - Danny (Low)",
    }

    def __init__(self, model_dir: Optional[str] = None, binary: Optional[str] = None,
                 default_voice: Optional[str] = None):
        self.model_dir = Path(model_dir or os.getenv("PIPER_MODEL_DIR", DEFAULT_MODEL_DIR))
        self.binary = binary or os.getenv("PIPER_BINARY", "piper")
        self.default_voice = default_voice or os.getenv("PIPER_DEFAULT_VOICE", "en_US-lessac-medium")
        # voice -> sample rate, filled lazily from <model>.onnx.json
        self._sample_rates: Dict[str, int] = {}

    def _binary_path(self) -> Optional[str]:
        if os.path.isfile(self.binary) and os.access(self.binary, os.X_OK):
            return self.binary
        return shutil.which(self.binary)

    def _model_path(self, voice: str) -> Path:
        return self.model_dir / f"{voice}.onnx"

    def _sample_rate(self, voice: str) -> int:
        """Read the model's sample rate from its JSON config (cached)."""
        if voice not in self._sample_rates:
            config_path = self.model_dir / f"{voice}.onnx.json"
            sample_rate = DEFAULT_SAMPLE_RATE
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    sample_rate = int(json.load(f)["audio"]["sample_rate"])
            except (OSError, ValueError, KeyError, TypeError) as e:
                logger.debug(f"Piper config not readable for {voice} ({e}), using {DEFAULT_SAMPLE_RATE} Hz")
            self._sample_rates[voice] = sample_rate
        return self._sample_rates[voice]

    def is_available(self) -> bool:
        try:
            return self._binary_path() is not None and bool(self.get_voices())
        except OSError:
            return False

    async def speak(self, text: str, voice_id: Optional[str] = None) -> None:
        """Generate audio with Piper and play it."""
        voice = voice_id or self.default_voice
        model_path = self._model_path(voice)

        if not model_path.exists():
            raise BackendError(
                self.name,
                f"Piper model not found: {voice}. "
                f"Download from https://github.com/rhasspy/piper/releases/ "
                f"and place in {self.model_dir}"
            )

        binary = self._binary_path()
        if binary is None:
            raise BackendError(self.name, f"Piper binary not found: {self.binary}")

        cmd = [binary, "--model", str(model_path), "--output-raw"]

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise BackendError(self.name, f"Failed to start piper: {e}", e) from e

        pcm, stderr = await communicate(process, text.encode("utf-8"))

        if process.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown error"
            raise BackendError(self.name, f"piper exited with code {process.returncode}: {error_msg}")

        if not pcm:
            raise BackendError(self.name, "piper produced no audio")

        logger.info(f"Piper TTS: generated {len(pcm)} bytes with voice {voice}")
        await play_bytes(wav_wrap(pcm, self._sample_rate(voice)), ".wav", self.name)

    def get_voices(self) -> List[str]:
        """List downloaded Piper voices (models in directory)."""
        if not self.model_dir.is_dir():
            return []
        return sorted(
            model_file.stem for model_file in self.model_dir.glob("*.onnx") if is_valid_voice_id(model_file.stem)
        )

    def get_health_info(self) -> Dict[str, Any]:
        try:
            voices = self.get_voices()
        except OSError:
            voices = []
        return {
            "piper_binary": self._binary_path(),
            "model_dir": str(self.model_dir),
            "models_installed": len(voices),
            "default_voice": self.default_voice,
        }
