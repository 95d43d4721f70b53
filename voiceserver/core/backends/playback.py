"""
Audio playback helpers shared by the backends.

Backends produce an audio file (WAV or MP3) and hand it to a platform media
player process, waiting for its exit code.
"""

import asyncio
import io
import os
import platform
import shutil
import tempfile
import wave
from typing import List, Optional

from voiceserver.core.errors import BackendError
from .base import logger

# Tried in order on non-macOS hosts. Each entry is the argv prefix.
LINUX_PLAYERS = [
    ["ffplay", "-nodisp", "-autoexit", "-loglevel", "error"],
    ["mpg123", "-q"],
    ["paplay"],
    ["aplay", "-q"],
]

# Players that cannot decode MP3
WAV_ONLY_PLAYERS = {"paplay", "aplay"}


def wav_wrap(pcm: bytes, sample_rate: int = 22050, channels: int = 1, sample_width: int = 2) -> bytes:
    """
    Wrap raw PCM samples in a minimal WAV header.

    Args:
        pcm: Raw little-endian PCM bytes
        sample_rate: Samples per second
        channels: Number of channels
        sample_width: Bytes per sample (2 = 16-bit)

    Returns:
        WAV file bytes
    """
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav_file:
        wav_file.setnchannels(channels)
        wav_file.setsampwidth(sample_width)
        wav_file.setframerate(sample_rate)
        wav_file.writeframes(pcm)
    return buffer.getvalue()


def resolve_player(suffix: str = ".wav") -> Optional[List[str]]:
    """
    Find a media player command for the current platform.

    VOICE_PLAYER overrides detection (a single executable name or path).
    """
    override = os.getenv("VOICE_PLAYER")
    if override:
        return [override]

    if platform.system() == "Darwin":
        return ["afplay"] if shutil.which("afplay") else None

    for candidate in LINUX_PLAYERS:
        if suffix == ".mp3" and candidate[0] in WAV_ONLY_PLAYERS:
            continue
        if shutil.which(candidate[0]):
            return list(candidate)
    return None


async def communicate(process, input: Optional[bytes] = None):
    """
    Wait for a child process, killing it if the waiting task is cancelled.

    Returns:
        (stdout, stderr) as from Process.communicate()
    """
    try:
        return await process.communicate(input=input)
    except asyncio.CancelledError:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        raise


async def play_file(path: str, backend: str) -> None:
    """
    Play an audio file and wait for the player to exit.

    Raises:
        BackendError: If no player is found or it exits non-zero
    """
    suffix = os.path.splitext(path)[1].lower()
    player = resolve_player(suffix)
    if not player:
        raise BackendError(backend, f"No audio player found for {suffix} files")

    try:
        process = await asyncio.create_subprocess_exec(
            *player, path,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE
        )
    except OSError as e:
        raise BackendError(backend, f"Failed to start player {player[0]}: {e}", e) from e

    _, stderr = await communicate(process)
    if process.returncode != 0:
        error_msg = stderr.decode(errors="replace").strip() if stderr else "Unknown error"
        raise BackendError(backend, f"{player[0]} exited with code {process.returncode}: {error_msg}")


async def play_bytes(audio: bytes, suffix: str, backend: str) -> None:
    """Write audio bytes to a temp file, play it, and remove the file."""
    temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=suffix)
    try:
        temp_file.write(audio)
        temp_file.close()
        logger.debug(f"{backend}: playing {len(audio)} bytes from {temp_file.name}")
        await play_file(temp_file.name, backend)
    finally:
        if os.path.exists(temp_file.name):
            os.unlink(temp_file.name)
