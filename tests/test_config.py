"""
Unit tests for configuration loading.

Tests:
- Defaults when the file is missing
- Nested JSON format (server section)
- Malformed files fall back to defaults with a warning
- Invalid individual values keep their defaults
- Voice resolution order
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from voiceserver import config as config_module
from voiceserver.config import (
    DEFAULT_BACKEND_ORDER,
    ServerConfig,
    VoiceConfig,
    load_config,
    validate_value,
)


class TestValidateValue(unittest.TestCase):
    """Test validate_value() coercion and limits."""

    def test_int_coercion(self):
        self.assertEqual(validate_value(int, "10", {}), (True, 10, None))
        is_valid, _, error = validate_value(int, "abc", {})
        self.assertFalse(is_valid)
        self.assertIn("Expected int", error)

    def test_range(self):
        is_valid, _, error = validate_value(int, 0, {"min_value": 1})
        self.assertFalse(is_valid)
        self.assertIn("below minimum", error)
        is_valid, _, error = validate_value(int, 70000, {"max_value": 65535})
        self.assertFalse(is_valid)
        self.assertIn("above maximum", error)

    def test_choices(self):
        is_valid, _, error = validate_value(str, "c", {"choices": ["a", "b"]})
        self.assertFalse(is_valid)
        self.assertIn("not in valid choices", error)

    def test_none_rejected(self):
        for expected_type in (str, int, float, bool):
            with self.subTest(expected_type=expected_type):
                is_valid, _, error = validate_value(expected_type, None, {})
                self.assertFalse(is_valid)
                self.assertIn("NoneType", error)

    def test_str_not_coerced(self):
        self.assertFalse(validate_value(str, 5, {})[0])
        self.assertEqual(validate_value(str, "0.0.0.0", {}), (True, "0.0.0.0", None))

    def test_bool_handling(self):
        is_valid, _, _ = validate_value(int, True, {})
        self.assertTrue(is_valid)  # coerced to 1
        is_valid, _, _ = validate_value(bool, 1, {})
        self.assertFalse(is_valid)


class TestLoadConfig(unittest.TestCase):
    """Test load_config()."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "voice_server.json"
        self.env = mock.patch.dict(os.environ, {}, clear=True)
        self.env.start()

    def tearDown(self):
        self.env.stop()
        self.tmp.cleanup()

    def write(self, content):
        self.path.write_text(content if isinstance(content, str) else json.dumps(content))

    def test_missing_file_uses_defaults(self):
        config = load_config(self.path)
        self.assertEqual(config.backends, DEFAULT_BACKEND_ORDER)
        self.assertEqual(config.server.port, 8888)
        self.assertEqual(config.server.rate_limit, 10)
        self.assertEqual(config.server.rate_window_seconds, 60.0)
        self.assertIsNone(config.default_voice)
        self.assertEqual(config.default_agent, "kai")

    def test_full_file(self):
        self.write({
            "backends": ["System", "edge"],
            "default_voice": "en-US-GuyNeural",
            "default_agent": "nova",
            "agent_voices": {"nova": "en-GB-SoniaNeural"},
            "server": {"port": 9000, "rate_limit": 3, "rate_window_seconds": 5, "cors_origin": "http://localhost:3000"},
        })
        config = load_config(self.path)
        self.assertEqual(config.backends, ["system", "edge"])
        self.assertEqual(config.default_voice, "en-US-GuyNeural")
        self.assertEqual(config.default_agent, "nova")
        self.assertEqual(config.agent_voices, {"nova": "en-GB-SoniaNeural"})
        self.assertEqual(config.server.port, 9000)
        self.assertEqual(config.server.rate_limit, 3)
        self.assertEqual(config.server.rate_window_seconds, 5.0)
        self.assertEqual(config.server.cors_origin, "http://localhost:3000")

    def test_malformed_json_falls_back(self):
        self.write("{not json")
        with self.assertLogs("voiceserver.config", level="WARNING") as logs:
            config = load_config(self.path)
        self.assertEqual(config, VoiceConfig())
        self.assertTrue(any("using default configuration" in line for line in logs.output))

    def test_non_object_root_falls_back(self):
        self.write([1, 2, 3])
        with self.assertLogs("voiceserver.config", level="WARNING"):
            config = load_config(self.path)
        self.assertEqual(config, VoiceConfig())

    def test_invalid_values_keep_defaults(self):
        self.write({
            "backends": "piper",
            "server": {"port": 70000, "rate_limit": "many", "host": "0.0.0.0"},
        })
        with self.assertLogs("voiceserver.config", level="WARNING"):
            config = load_config(self.path)
        self.assertEqual(config.backends, DEFAULT_BACKEND_ORDER)
        self.assertEqual(config.server.port, 8888)
        self.assertEqual(config.server.rate_limit, 10)
        self.assertEqual(config.server.host, "0.0.0.0")

    def test_null_strings_keep_defaults(self):
        self.write({"default_agent": None, "server": {"host": None, "cors_origin": None, "port": None}})
        with self.assertLogs("voiceserver.config", level="WARNING") as logs:
            config = load_config(self.path)
        self.assertEqual(config.default_agent, "kai")
        self.assertEqual(config.server.host, "127.0.0.1")
        self.assertEqual(config.server.cors_origin, "http://localhost")
        self.assertEqual(config.server.port, 8888)
        self.assertEqual(len(logs.output), 4)

    def test_non_string_host_keeps_default(self):
        self.write({"server": {"host": 127}})
        with self.assertLogs("voiceserver.config", level="WARNING"):
            config = load_config(self.path)
        self.assertEqual(config.server.host, "127.0.0.1")

    def test_port_env_override(self):
        self.write({"server": {"port": 9000}})
        with mock.patch.dict(os.environ, {"VOICE_SERVER_PORT": "9100"}):
            self.assertEqual(load_config(self.path).server.port, 9100)

    def test_dotenv_left_to_entry_point(self):
        self.assertFalse(hasattr(config_module, "load_dotenv"))

    def test_path_from_env(self):
        self.write({"default_agent": "env-agent"})
        with mock.patch.dict(os.environ, {"VOICE_SERVER_CONFIG": str(self.path)}):
            self.assertEqual(load_config().default_agent, "env-agent")


class TestVoiceResolution(unittest.TestCase):
    """Test VoiceConfig.voice_for()."""

    def setUp(self):
        self.config = VoiceConfig(default_voice="default", agent_voices={"kai": "kai-voice", "mute": None})

    def test_explicit_voice_wins(self):
        self.assertEqual(self.config.voice_for(agent="kai", voice_id="explicit"), "explicit")

    def test_agent_voice(self):
        self.assertEqual(self.config.voice_for(agent="kai"), "kai-voice")

    def test_falls_back_to_default(self):
        self.assertEqual(self.config.voice_for(agent="unknown"), "default")
        self.assertEqual(self.config.voice_for(agent="mute"), "default")
        self.assertEqual(self.config.voice_for(), "default")

    def test_no_default(self):
        self.assertIsNone(VoiceConfig().voice_for())

    def test_server_defaults(self):
        self.assertEqual(ServerConfig().host, "127.0.0.1")


if __name__ == "__main__":
    unittest.main()
