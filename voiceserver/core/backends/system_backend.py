"""
System TTS backend (OS speech command).

macOS: say
Linux: espeak-ng, espeak or spd-say

The command speaks directly, so no separate player is involved.
"""

import asyncio
import platform
import shutil
import subprocess
from typing import Optional, List, Dict, Any

from voiceserver.core.errors import BackendError
from voiceserver.core.validation import is_valid_voice_id
from .base import TTSBackend, logger
from .playback import communicate

LINUX_COMMANDS = ["espeak-ng", "espeak", "spd-say"]


class SystemBackend(TTSBackend):
    """OS-native speech command backend."""

    name = "system"

    def __init__(self, system: Optional[str] = None):
        self.system = system or platform.system()
        self._voices: Optional[List[str]] = None

    def _command(self) -> Optional[str]:
        if self.system == "Darwin":
            return shutil.which("say")
        if self.system == "Linux":
            for candidate in LINUX_COMMANDS:
                path = shutil.which(candidate)
                if path:
                    return path
        return None

    def build_command(self, command: str, text: str, voice_id: Optional[str] = None) -> List[str]:
        """Build argv for the speech command. Text is always a single argument."""
        argv = [command]
        program = command.rsplit("/", 1)[-1]
        if voice_id:
            if program == "spd-say":
                argv += ["-y", voice_id]
            else:
                argv += ["-v", voice_id]
        if program == "spd-say":
            argv.append("--wait")
        argv += ["--", text]
        return argv

    def is_available(self) -> bool:
        try:
            return self._command() is not None
        except OSError:
            return False

    async def speak(self, text: str, voice_id: Optional[str] = None) -> None:
        command = self._command()
        if command is None:
            raise BackendError(self.name, f"No speech command found for {self.system}")

        argv = self.build_command(command, text, voice_id)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise BackendError(self.name, f"Failed to start {argv[0]}: {e}", e) from e

        _, stderr = await communicate(process)
        if process.returncode != 0:
            error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown error"
            raise BackendError(self.name, f"{argv[0]} exited with code {process.returncode}: {error_msg}")

    def _discover_voices(self) -> List[str]:
        command = self._command()
        if command is None or command.rsplit("/", 1)[-1] == "spd-say":
            return []

        # `say -v ?` lists "Name  lang  # sample"; espeak --voices lists a table
        args = [command, "-v", "?"] if self.system == "Darwin" else [command, "--voices"]
        try:
            result = subprocess.run(args, capture_output=True, text=True, timeout=5)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Failed to list system voices: {e}")
            return []

        voices = []
        for line in result.stdout.splitlines():
            if self.system == "Darwin":
                columns = line.split("#", 1)[0].rsplit(None, 1)
                name = columns[0].strip() if "#" in line and len(columns) == 2 else ""
            else:
                parts = line.split()
                # Columns: Pty Language Age/Gender VoiceName File Other. `-v <language>` selects a voice
                name = parts[1] if len(parts) >= 4 and parts[0] != "Pty" else ""
            if name and name not in voices and is_valid_voice_id(name):
                voices.append(name)
        return voices

    def get_voices(self) -> List[str]:
        if self._voices is None:
            self._voices = self._discover_voices()
        return self._voices

    def get_health_info(self) -> Dict[str, Any]:
        return {
            "platform": self.system,
            "speech_command": self._command(),
        }
