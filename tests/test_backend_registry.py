"""
Unit tests for backend selection.
"""

import unittest

from voiceserver.core.backends import BackendRegistry, DEFAULT_BACKENDS
from tests.fakes import FakeBackend


class TrackingFactory:
    """Constructor stand-in that counts how often it is called."""

    def __init__(self, backend=None, error=None):
        self.backend = backend
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.backend


class TestLoadBackend(unittest.TestCase):
    """Test BackendRegistry.load_backend()."""

    def setUp(self):
        self.a = TrackingFactory(FakeBackend("a", available=False))
        self.b = TrackingFactory(FakeBackend("b", available=True))
        self.c = TrackingFactory(FakeBackend("c", available=True))
        self.registry = BackendRegistry({"a": self.a, "b": self.b, "c": self.c})

    def test_first_available_selected(self):
        backend = self.registry.load_backend(["a", "b", "c"])
        self.assertIs(backend, self.b.backend)

    def test_later_candidates_never_constructed(self):
        self.registry.load_backend(["a", "b", "c"])
        self.assertEqual(self.a.calls, 1)
        self.assertEqual(self.b.calls, 1)
        self.assertEqual(self.c.calls, 0)
        self.assertEqual(self.c.backend.availability_checks, 0)

    def test_none_available(self):
        registry = BackendRegistry({
            "a": TrackingFactory(FakeBackend("a", available=False)),
            "b": TrackingFactory(FakeBackend("b", available=False)),
        })
        self.assertIsNone(registry.load_backend(["a", "b"]))

    def test_empty_preference(self):
        self.assertIsNone(self.registry.load_backend([]))

    def test_unknown_names_skipped(self):
        with self.assertLogs("voiceserver.backends", level="WARNING") as logs:
            backend = self.registry.load_backend(["nope", "b"])
        self.assertIs(backend, self.b.backend)
        self.assertTrue(any("nope" in line for line in logs.output))

    def test_construction_failure_treated_as_unavailable(self):
        self.registry.register("broken", TrackingFactory(error=ImportError("missing lib")))
        backend = self.registry.load_backend(["broken", "c"])
        self.assertIs(backend, self.c.backend)

    def test_names_case_insensitive(self):
        self.assertIs(self.registry.load_backend(["B"]), self.b.backend)

    def test_mixed_case_factory_keys(self):
        registry = BackendRegistry({"Piper": TrackingFactory(FakeBackend("piper"))})
        self.assertEqual(registry.names(), ["piper"])
        self.assertEqual(registry.load_backend(["piper"]).name, "piper")
        self.assertEqual(registry.create("PIPER").name, "piper")

    def test_create_unknown_raises(self):
        with self.assertRaises(ValueError):
            self.registry.create("nope")


class TestCheckBackendAvailability(unittest.TestCase):
    """Test BackendRegistry.check_backend_availability()."""

    def test_reports_every_backend(self):
        registry = BackendRegistry({
            "on": TrackingFactory(FakeBackend("on", available=True)),
            "off": TrackingFactory(FakeBackend("off", available=False)),
            "broken": TrackingFactory(error=RuntimeError("boom")),
        })
        self.assertEqual(
            registry.check_backend_availability(),
            {"on": True, "off": False, "broken": False},
        )

    def test_default_registry_contents(self):
        self.assertEqual(
            set(DEFAULT_BACKENDS),
            {"piper", "elevenlabs", "edge", "system", "pyttsx3"},
        )
        self.assertEqual(set(BackendRegistry().names()), set(DEFAULT_BACKENDS))


if __name__ == "__main__":
    unittest.main()
