"""
Ordered playback queue.

A single long-lived worker task speaks queued items one at a time in arrival
order. Failures are logged and the item is dropped; the request that queued it
has already been acknowledged.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from voiceserver.core.backends import TTSBackend
from voiceserver.core.errors import ErrorHandler, SpeechError

logger = logging.getLogger("voiceserver.queue")


@dataclass(frozen=True)
class QueueItem:
    """A sanitized message waiting to be spoken."""
    message: str
    voice_id: Optional[str] = None


class PlaybackQueue:
    """Single-consumer FIFO queue in front of a TTS backend."""

    def __init__(self, backend: TTSBackend, error_handler: Optional[ErrorHandler] = None):
        self.backend = backend
        self.error_handler = error_handler or ErrorHandler()
        self._queue: "asyncio.Queue[QueueItem]" = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None
        self.processed = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self):
        """Start the worker task. Calling again while running is a no-op."""
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="playback-queue")
        logger.info(f"Playback worker started (backend: {self.backend.name})")

    async def stop(self):
        """Cancel the worker. Items still queued are abandoned."""
        if self._worker and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
        logger.info(f"Playback worker stopped ({self._queue.qsize()} items abandoned)")

    def enqueue(self, item: QueueItem):
        """Append an item. Never blocks."""
        self._queue.put_nowait(item)
        logger.debug(f"Queued message ({self._queue.qsize()} pending): {item.message[:50]!r}")

    async def join(self):
        """Wait until every queued item has been attempted."""
        await self._queue.join()

    def stats(self) -> dict:
        return {
            "pending": self._queue.qsize(),
            "processed": self.processed,
            "failed": self.failed,
            "running": self.running,
        }

    async def _run(self):
        while True:
            item = await self._queue.get()
            try:
                await self.backend.speak(item.message, item.voice_id)
                self.processed += 1
                logger.info(f"Spoke message via {self.backend.name}: {item.message[:50]!r}")
            except SpeechError as e:
                self.failed += 1
                self.error_handler.log_error(e, context={"backend": self.backend.name, "voice_id": item.voice_id})
            except Exception as e:
                self.failed += 1
                self.error_handler.log_error(
                    SpeechError("Speech failed", f"Unexpected error in {self.backend.name}: {e}", e),
                    context={"backend": self.backend.name, "voice_id": item.voice_id}
                )
            finally:
                self._queue.task_done()
