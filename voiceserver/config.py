"""
Voice server configuration.

Settings are declared as dataclass fields with metadata (description, limits,
choices) through config_field(). load_config() reads a JSON file shaped like:

    {
        "backends": ["piper", "elevenlabs", "edge", "system", "pyttsx3"],
        "default_voice": null,
        "default_agent": "kai",
        "agent_voices": {"kai": null},
        "server": {"host": "127.0.0.1", "port": 8888, "rate_limit": 10,
                   "rate_window_seconds": 60, "cors_origin": "http://localhost"}
    }

A missing file yields defaults. A malformed file logs a warning and yields
defaults. Invalid individual values log a warning and keep their default.
Credentials and per-backend tunables come from the environment.
"""

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from voiceserver.core.errors import ConfigError

logger = logging.getLogger("voiceserver.config")

DEFAULT_CONFIG_FILE = Path("data/config/voice_server.json")
DEFAULT_BACKEND_ORDER = ["piper", "elevenlabs", "edge", "system", "pyttsx3"]


def config_field(
    default: Any,
    description: str,
    min_value: Optional[Union[int, float]] = None,
    max_value: Optional[Union[int, float]] = None,
    choices: Optional[List[Any]] = None,
    default_factory=None,
) -> Any:
    """
    Define a config field with validation metadata.

    Args:
        default: Default value for this field
        description: Human-readable description
        min_value: Minimum value (for numeric types)
        max_value: Maximum value (for numeric types)
        choices: List of valid choices (for enum-like fields)
        default_factory: Factory for mutable defaults (lists, dicts)
    """
    metadata = {
        "description": description,
        "min_value": min_value,
        "max_value": max_value,
        "choices": choices,
    }
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


def validate_value(expected_type: type, value: Any, metadata: Dict[str, Any]) -> Tuple[bool, Any, Optional[str]]:
    """
    Validate (and coerce) a value against a field's type and constraints.

    Returns:
        (is_valid, coerced_value, error_message)
    """
    if value is None or expected_type in (bool, str):
        if not isinstance(value, expected_type):
            return False, value, f"Expected {expected_type.__name__}, got {type(value).__name__}"
    elif not isinstance(value, expected_type) or isinstance(value, bool):
        try:
            value = expected_type(value)
        except (ValueError, TypeError):
            return False, value, f"Expected {expected_type.__name__}, got {type(value).__name__}"

    min_value = metadata.get("min_value")
    max_value = metadata.get("max_value")
    if min_value is not None and value < min_value:
        return False, value, f"Value {value} below minimum {min_value}"
    if max_value is not None and value > max_value:
        return False, value, f"Value {value} above maximum {max_value}"

    choices = metadata.get("choices")
    if choices is not None and value not in choices:
        return False, value, f"Value {value} not in valid choices: {choices}"

    return True, value, None


@dataclass
class ServerConfig:
    """HTTP server tuning."""

    host: str = config_field(default="127.0.0.1", description="Interface to bind")
    port: int = config_field(default=8888, description="Port to listen on", min_value=1, max_value=65535)
    rate_limit: int = config_field(default=10, description="Requests admitted per window per client", min_value=1)
    rate_window_seconds: float = config_field(
        default=60.0, description="Rate limit window length in seconds", min_value=0.001
    )
    cors_origin: str = config_field(default="http://localhost", description="Allowed CORS origin")


@dataclass
class VoiceConfig:
    """Top-level voice server configuration."""

    backends: List[str] = config_field(
        default=None,
        description="Backend names in order of preference",
        default_factory=lambda: list(DEFAULT_BACKEND_ORDER),
    )
    default_voice: Optional[str] = config_field(default=None, description="Voice used when none is requested")
    default_agent: str = config_field(default="kai", description="Agent persona for the /pai endpoint")
    agent_voices: Dict[str, Optional[str]] = config_field(
        default=None,
        description="Voice identifier per agent name",
        default_factory=dict,
    )
    server: ServerConfig = field(default_factory=ServerConfig)

    def voice_for(self, agent: Optional[str] = None, voice_id: Optional[str] = None) -> Optional[str]:
        """Resolve a voice: explicit id, then the agent's voice, then the default."""
        if voice_id:
            return voice_id
        if agent and self.agent_voices.get(agent):
            return self.agent_voices[agent]
        return self.default_voice


def _apply_scalars(target, data: Dict[str, Any], section: str):
    for dc_field in fields(target):
        if dc_field.name not in data or dc_field.name == "server":
            continue
        expected_type = dc_field.type if isinstance(dc_field.type, type) else None
        value = data[dc_field.name]
        if expected_type is None:
            # Optional/collection fields are checked by _parse_config
            continue
        is_valid, coerced, error = validate_value(expected_type, value, dict(dc_field.metadata))
        if is_valid:
            setattr(target, dc_field.name, coerced)
        else:
            logger.warning(f"Invalid config value {section}.{dc_field.name}: {error}; using default")


def _parse_config(data: Any) -> VoiceConfig:
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a JSON object", f"Config root is {type(data).__name__}")

    config = VoiceConfig()

    backends = data.get("backends")
    if backends is not None:
        if isinstance(backends, list) and backends and all(isinstance(b, str) for b in backends):
            config.backends = [b.lower() for b in backends]
        else:
            logger.warning("Invalid config value backends: expected a non-empty list of names; using default")

    default_voice = data.get("default_voice")
    if default_voice is None or isinstance(default_voice, str):
        config.default_voice = default_voice or None
    else:
        logger.warning("Invalid config value default_voice: expected string or null; using default")

    agent_voices = data.get("agent_voices")
    if agent_voices is not None:
        if isinstance(agent_voices, dict) and all(v is None or isinstance(v, str) for v in agent_voices.values()):
            config.agent_voices = dict(agent_voices)
        else:
            logger.warning("Invalid config value agent_voices: expected an object of strings; using default")

    _apply_scalars(config, data, "config")

    server = data.get("server", {})
    if isinstance(server, dict):
        _apply_scalars(config.server, server, "server")
    else:
        logger.warning("Invalid config section server: expected an object; using defaults")

    return config


def load_config(path: Optional[Union[str, Path]] = None) -> VoiceConfig:
    """
    Load configuration from JSON, falling back to defaults.

    Args:
        path: Config file path (default: VOICE_SERVER_CONFIG or data/config/voice_server.json)
    """
    path = Path(path or os.getenv("VOICE_SERVER_CONFIG") or DEFAULT_CONFIG_FILE)

    if not path.exists():
        logger.info(f"No config file at {path}, using defaults")
        config = VoiceConfig()
    else:
        try:
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError("Config file is not valid JSON", f"Invalid JSON in {path}: {e}") from e
            except OSError as e:
                raise ConfigError("Config file is not readable", f"Cannot read {path}: {e}") from e
            config = _parse_config(data)
            logger.info(f"Loaded config from {path}")
        except ConfigError as e:
            logger.warning(f"{e.log_message}; using default configuration")
            config = VoiceConfig()

    port = os.getenv("VOICE_SERVER_PORT")
    if port:
        is_valid, coerced, error = validate_value(
            int, port, dict(next(f for f in fields(ServerConfig) if f.name == "port").metadata)
        )
        if is_valid:
            config.server.port = coerced
        else:
            logger.warning(f"Invalid VOICE_SERVER_PORT: {error}; keeping {config.server.port}")

    return config
