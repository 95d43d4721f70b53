"""
TTS backend registry.

Holds an explicit name -> constructor map and picks the first available backend
from a preference list.
"""

from typing import Callable, Dict, Iterable, Optional

from .base import TTSBackend, logger
from .edge_backend import EdgeBackend
from .elevenlabs_backend import ElevenLabsBackend
from .piper_backend import PiperBackend
from .pyttsx3_backend import Pyttsx3Backend
from .system_backend import SystemBackend

BackendFactory = Callable[[], TTSBackend]

DEFAULT_BACKENDS: Dict[str, BackendFactory] = {
    "piper": PiperBackend,
    "elevenlabs": ElevenLabsBackend,
    "edge": EdgeBackend,
    "system": SystemBackend,
    "pyttsx3": Pyttsx3Backend,
}


class BackendRegistry:
    """Named backend constructors plus the selection policy."""

    def __init__(self, factories: Optional[Dict[str, BackendFactory]] = None):
        source = DEFAULT_BACKENDS if factories is None else factories
        self.factories: Dict[str, BackendFactory] = {name.lower(): factory for name, factory in source.items()}

    def register(self, name: str, factory: BackendFactory):
        """Register (or replace) a backend constructor."""
        self.factories[name.lower()] = factory

    def names(self):
        return list(self.factories)

    def create(self, name: str) -> TTSBackend:
        """
        Create a backend instance.

        Raises:
            ValueError: If name is unknown
        """
        factory = self.factories.get(name.lower())
        if factory is None:
            raise ValueError(f"Unknown TTS backend: {name}")
        return factory()

    def load_backend(self, preference_order: Iterable[str]) -> Optional[TTSBackend]:
        """
        Return the first backend in preference order that reports available.

        Unknown names are skipped with a warning; construction failures count
        as unavailable. Returns None if no candidate is usable.
        """
        for name in preference_order:
            if name.lower() not in self.factories:
                logger.warning(f"Unknown TTS backend in preference list: {name}")
                continue

            try:
                backend = self.create(name)
                available = backend.is_available()
            except Exception as e:
                logger.warning(f"Failed to initialize TTS backend {name}: {e}")
                continue

            if available:
                logger.info(f"Selected TTS backend: {name}")
                return backend

            logger.info(f"TTS backend {name} not available, trying next")

        logger.error("No TTS backend available")
        return None

    def check_backend_availability(self) -> Dict[str, bool]:
        """Transiently construct every registered backend and report availability."""
        availability = {}
        for name in self.factories:
            try:
                availability[name] = bool(self.create(name).is_available())
            except Exception as e:
                logger.debug(f"TTS backend {name} failed to initialize: {e}")
                availability[name] = False
        return availability
