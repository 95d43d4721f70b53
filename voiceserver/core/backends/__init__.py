"""
TTS backend abstraction system.

Provides pluggable speech backends selected once at startup.
Backends: piper (neural local), elevenlabs (cloud API), edge (cloud),
system (OS speech command), pyttsx3 (OS speech library)
"""

from .base import TTSBackend
from .factory import BackendRegistry, DEFAULT_BACKENDS

__all__ = ["TTSBackend", "BackendRegistry", "DEFAULT_BACKENDS"]
