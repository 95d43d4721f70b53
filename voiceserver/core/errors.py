"""
Centralized error handling for the voice server.

Every error raised on purpose is a VoiceServerError carrying a message that is
safe to return to the caller plus a category/severity used for logging and the
health report.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger("voiceserver.error_handler")


class ErrorSeverity(Enum):
    """Error severity levels for monitoring."""
    LOW = "low"  # Expected errors (bad requests)
    MEDIUM = "medium"  # Unexpected but recoverable
    HIGH = "high"  # Service degradation
    CRITICAL = "critical"  # Server cannot run


class ErrorCategory(Enum):
    """Categories for error classification."""
    USER_INPUT = "user_input"
    RATE_LIMIT = "rate_limit"
    AUDIO = "audio"
    BACKEND = "backend"
    CONFIG = "config"
    NETWORK = "network"
    INTERNAL = "internal"


class VoiceServerError(Exception):
    """Base exception for voice server errors with caller-facing messages."""

    status_code = 500

    def __init__(
            self,
            user_message: str,
            log_message: str = None,
            category: ErrorCategory = ErrorCategory.INTERNAL,
            severity: ErrorSeverity = ErrorSeverity.MEDIUM,
            original_error: Exception = None
    ):
        self.user_message = user_message
        self.log_message = log_message or user_message
        self.category = category
        self.severity = severity
        self.original_error = original_error
        super().__init__(self.log_message)


class ValidationError(VoiceServerError):
    """Raised when an inbound message fails validation."""

    status_code = 400

    def __init__(self, user_message: str, log_message: str = None):
        super().__init__(
            user_message,
            log_message,
            ErrorCategory.USER_INPUT,
            ErrorSeverity.LOW
        )


class RateLimitError(VoiceServerError):
    """Raised when a client exceeds its request window."""

    status_code = 429

    def __init__(self, user_message: str = "Rate limit exceeded", log_message: str = None):
        super().__init__(
            user_message,
            log_message,
            ErrorCategory.RATE_LIMIT,
            ErrorSeverity.LOW
        )


class BackendUnavailable(VoiceServerError):
    """No TTS backend passed its availability check at startup."""

    status_code = 503

    def __init__(self, user_message: str = "No TTS backend available", log_message: str = None):
        super().__init__(
            user_message,
            log_message,
            ErrorCategory.BACKEND,
            ErrorSeverity.CRITICAL
        )


class SpeechError(VoiceServerError):
    """A single speak attempt failed."""

    def __init__(self, user_message: str, log_message: str = None, original_error: Exception = None):
        super().__init__(
            user_message,
            log_message,
            ErrorCategory.AUDIO,
            ErrorSeverity.MEDIUM,
            original_error
        )


class BackendError(SpeechError):
    """Raised by a backend when synthesis or playback fails."""

    def __init__(self, backend: str, cause: str, original_error: Exception = None):
        self.backend = backend
        self.cause = cause
        super().__init__(
            f"{backend}: {cause}",
            original_error=original_error
        )


class ConfigError(VoiceServerError):
    """Malformed configuration file. Never fatal."""

    def __init__(self, user_message: str, log_message: str = None):
        super().__init__(
            user_message,
            log_message,
            ErrorCategory.CONFIG,
            ErrorSeverity.MEDIUM
        )


_LOG_LEVELS = {
    ErrorSeverity.LOW: logging.WARNING,
    ErrorSeverity.MEDIUM: logging.ERROR,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class ErrorHandler:
    """
    Logs errors and keeps the counters and recent history shown by /health.

    Only the newest max_error_history entries are kept.
    """

    def __init__(self, max_error_history: int = 100):
        self.error_count = 0
        self.errors_by_category: Dict[str, int] = {}
        self.last_errors: List[Dict[str, Any]] = []
        self.max_error_history = max_error_history

    def log_error(
            self,
            error: Exception,
            context: dict = None,
            severity: Optional[ErrorSeverity] = None,
            category: Optional[ErrorCategory] = None
    ):
        """Record an error and log it at a level matching its severity."""
        if isinstance(error, VoiceServerError):
            severity = severity or error.severity
            category = category or error.category
        severity = severity or ErrorSeverity.MEDIUM
        category = category or ErrorCategory.INTERNAL

        self.error_count += 1
        self.errors_by_category[category.value] = self.errors_by_category.get(category.value, 0) + 1

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error_type": type(error).__name__,
            "severity": severity.value,
            "category": category.value,
            "message": str(error),
        }
        if context:
            entry["context"] = context
        self.last_errors.append(entry)
        del self.last_errors[:-self.max_error_history]

        # Tracebacks only for errors that were not raised on purpose
        logger.log(
            _LOG_LEVELS[severity],
            f"[{category.value}] {type(error).__name__}: {error} | Context: {context}",
            exc_info=error if not isinstance(error, VoiceServerError) else None
        )

    def get_stats(self) -> dict:
        """Counters plus the ten most recent errors, for the health endpoint."""
        return {
            "total_errors": self.error_count,
            "by_category": self.errors_by_category.copy(),
            "recent_errors": self.last_errors[-10:],
        }
