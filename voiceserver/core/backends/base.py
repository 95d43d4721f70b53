"""
Base TTS backend interface.

All backends must inherit from TTSBackend and implement the required methods.
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
import logging

logger = logging.getLogger("voiceserver.backends")


class TTSBackend(ABC):
    """Base class for TTS backends."""

    #: Registry key, unique per backend
    name: str = "base"

    @abstractmethod
    def is_available(self) -> bool:
        """
        Cheap availability check (binary present, API key set, OS match).

        Must never raise.
        """
        pass

    @abstractmethod
    async def speak(self, text: str, voice_id: Optional[str] = None) -> None:
        """
        Synthesize text and play it, returning once playback has finished.

        Args:
            text: Sanitized text to speak
            voice_id: Voice identifier (backend-specific), None for the default

        Raises:
            BackendError: If synthesis or playback fails
        """
        pass

    @abstractmethod
    def get_voices(self) -> List[str]:
        """
        List known voice identifiers for this backend.

        Returns:
            Voice identifiers, possibly empty
        """
        pass

    def get_health_info(self) -> Dict[str, Any]:
        """
        Diagnostic snapshot surfaced on the health endpoint.

        Must never raise. Override to add backend-specific fields.
        """
        return {"available": self.is_available()}
