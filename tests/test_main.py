"""
Tests for the command-line entry point.
"""

import io
import unittest
from contextlib import redirect_stdout
from unittest import mock

from voiceserver import main as entry
from voiceserver.config import VoiceConfig
from voiceserver.core.backends import BackendRegistry
from tests.fakes import FakeBackend


class TestMain(unittest.TestCase):
    """Test voiceserver.main.main()."""

    def setUp(self):
        patcher = mock.patch.object(entry, "setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)

    def registry(self, **availability):
        return BackendRegistry({
            name: (lambda name=name, available=available: FakeBackend(name, available=available))
            for name, available in availability.items()
        })

    def test_check_backends_prints_table(self):
        output = io.StringIO()
        with mock.patch.object(entry, "BackendRegistry", return_value=self.registry(piper=False, system=True)), \
                redirect_stdout(output):
            self.assertEqual(entry.main(["--check-backends"]), 0)
        lines = output.getvalue().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertIn("unavailable", lines[0])
        self.assertTrue(lines[1].startswith("system"))

    def test_exits_when_no_backend(self):
        with mock.patch.object(entry, "BackendRegistry", return_value=self.registry(piper=False)), \
                mock.patch.object(entry, "load_config", return_value=VoiceConfig(backends=["piper"])):
            with self.assertLogs("voiceserver", level="CRITICAL"):
                self.assertEqual(entry.main([]), 1)

    def test_starts_server_with_overrides(self):
        with mock.patch.object(entry, "BackendRegistry", return_value=self.registry(system=True)), \
                mock.patch.object(entry, "load_config", return_value=VoiceConfig(backends=["system"])), \
                mock.patch("voiceserver.web.app.run_server") as run_server:
            self.assertEqual(entry.main(["--port", "9999", "--host", "0.0.0.0"]), 0)

        app = run_server.call_args.args[0]
        self.assertEqual(app.state.notifier.backend.name, "system")
        self.assertEqual(run_server.call_args.kwargs, {"host": "0.0.0.0", "port": 9999})


if __name__ == "__main__":
    unittest.main()
