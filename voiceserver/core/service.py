"""
Notification service.

VoiceNotifier owns everything that lives for the whole process: the backend
selected at startup, the playback queue, the rate limiter and the error
handler. The HTTP layer receives it through app.state.
"""

import logging
from typing import Any, Dict, List, Optional

from voiceserver.config import VoiceConfig
from voiceserver.core.backends import BackendRegistry, TTSBackend
from voiceserver.core.errors import BackendUnavailable, ErrorHandler, RateLimitError, ValidationError
from voiceserver.core.playback_queue import PlaybackQueue, QueueItem
from voiceserver.core.rate_limiter import RateLimiter
from voiceserver.core.validation import sanitize, validate_message, validate_voice_id

logger = logging.getLogger("voiceserver.service")

QUEUED_MESSAGE = "Notification queued"
VOICE_DISABLED_MESSAGE = "Notification received (voice disabled)"


class VoiceNotifier:
    """Validates, rate-limits and queues notifications for one TTS backend."""

    def __init__(
        self,
        backend: TTSBackend,
        config: Optional[VoiceConfig] = None,
        registry: Optional[BackendRegistry] = None,
        rate_limiter: Optional[RateLimiter] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.config = config or VoiceConfig()
        self.backend = backend
        self.registry = registry or BackendRegistry()
        self.error_handler = error_handler or ErrorHandler()
        self.rate_limiter = rate_limiter or RateLimiter(
            limit=self.config.server.rate_limit,
            window_seconds=self.config.server.rate_window_seconds,
        )
        self.queue = PlaybackQueue(backend, self.error_handler)

    @classmethod
    def from_config(cls, config: VoiceConfig, registry: Optional[BackendRegistry] = None) -> "VoiceNotifier":
        """
        Select a backend from the configured preference list and build the service.

        Raises:
            BackendUnavailable: If no configured backend is available
        """
        registry = registry or BackendRegistry()
        backend = registry.load_backend(config.backends)
        if backend is None:
            raise BackendUnavailable(
                "No TTS backend available",
                f"None of the configured backends are available: {', '.join(config.backends)}"
            )
        return cls(backend, config=config, registry=registry)

    async def start(self):
        self.queue.start()

    async def stop(self):
        await self.queue.stop()

    def notify(
        self,
        message: Any,
        client_id: str,
        voice_id: Optional[str] = None,
        agent: Optional[str] = None,
        voice_enabled: bool = True,
    ) -> str:
        """
        Admit a notification and queue it for playback.

        Returns:
            Acknowledgement text for the caller

        Raises:
            RateLimitError: If client_id has used up its window
            ValidationError: If the message is rejected
        """
        if not self.rate_limiter.check(client_id):
            raise RateLimitError(log_message=f"Rate limit exceeded for {client_id}")

        validate_message(message)
        validate_voice_id(voice_id)
        text = sanitize(message)
        if not text.strip():
            raise ValidationError(
                "Message has no speakable content",
                f"Rejected message from {client_id}: nothing left after sanitizing"
            )

        if not voice_enabled:
            logger.info(f"Voice disabled for notification from {client_id}")
            return VOICE_DISABLED_MESSAGE

        voice = self.config.voice_for(agent=agent, voice_id=voice_id)
        self.queue.enqueue(QueueItem(message=text, voice_id=voice))
        logger.info(f"Queued notification from {client_id} (agent: {agent}, voice: {voice})")
        return QUEUED_MESSAGE

    def voices(self) -> List[str]:
        return self.backend.get_voices()

    def health(self) -> Dict[str, Any]:
        """Status body: selected backend, availability snapshot and backend health."""
        body: Dict[str, Any] = {
            "status": "healthy",
            "port": self.config.server.port,
            "backend": self.backend.name,
            "backends_available": self.registry.check_backend_availability(),
            "queue": self.queue.stats(),
            "errors": self.error_handler.get_stats(),
        }
        try:
            backend_info = self.backend.get_health_info()
        except Exception as e:
            logger.warning(f"Health info failed for {self.backend.name}: {e}")
            backend_info = {}
        for key, value in backend_info.items():
            body.setdefault(key, value)
        return body
