"""Unit tests for VoiceRegistry."""
from __future__ import annotations

import unittest
from concurrent.futures import ThreadPoolExecutor
from threading import Barrier
from unittest import mock

from fakes import FakeEngine

from flitesay.application import voice_registry
from flitesay.application.voice_registry import VoiceRegistry, get_default_registry
from flitesay.domain.errors import (
    DuplicateVoiceError,
    InitError,
    VoiceLoadError,
    VoiceNotFoundError,
)
from flitesay.domain.voice import DEFAULT_VOICE_NAME
from flitesay.utils.logger import Logger


class TestVoiceRegistry(unittest.TestCase):
    def setUp(self):
        self.engine = FakeEngine()
        self.registry = VoiceRegistry(self.engine)

    def test_default_voice_is_registered_on_initialize(self):
        self.registry.initialize()

        voice = self.registry.get_voice(DEFAULT_VOICE_NAME)
        self.assertEqual(voice.handle, "builtin:slt")
        self.assertTrue(voice.static)
        self.assertEqual(self.registry.voice_names(), [DEFAULT_VOICE_NAME])

    def test_initialize_is_idempotent(self):
        self.registry.initialize()
        self.registry.initialize()
        self.assertEqual(self.engine.default_calls, 1)

    def test_concurrent_initialize_loads_default_once(self):
        engine = FakeEngine(load_delay=0.05)
        registry = VoiceRegistry(engine)
        barrier = Barrier(8)

        def init() -> None:
            barrier.wait(timeout=5)
            registry.initialize()

        with ThreadPoolExecutor(max_workers=8) as pool:
            for future in [pool.submit(init) for _ in range(8)]:
                future.result(timeout=5)

        self.assertEqual(engine.default_calls, 1)
        self.assertTrue(registry.initialized)

    def test_engine_failure_on_default_voice_raises_init_error(self):
        registry = VoiceRegistry(FakeEngine(fail_default=True))
        with self.assertRaises(InitError):
            registry.initialize()
        self.assertFalse(registry.initialized)

    def test_add_then_get_returns_same_voice(self):
        added = self.registry.add_voice("kal", "/voices/kal.flitevox")

        self.assertIs(self.registry.get_voice("kal"), added)
        self.assertEqual(added.handle, "file:///voices/kal.flitevox")
        self.assertFalse(added.static)
        self.assertEqual(str(added.source_path), "/voices/kal.flitevox")

    def test_duplicate_name_fails_without_mutating(self):
        first = self.registry.add_voice("kal", "/voices/kal.flitevox")

        with self.assertRaises(DuplicateVoiceError):
            self.registry.add_voice("kal", "/voices/other.flitevox")

        self.assertIs(self.registry.get_voice("kal"), first)
        self.assertEqual(len(self.registry), 2)
        # The duplicate is rejected before the engine is asked to load anything.
        self.assertEqual(len(self.engine.load_calls), 1)

    def test_default_name_cannot_be_replaced(self):
        with self.assertRaises(DuplicateVoiceError):
            self.registry.add_voice(DEFAULT_VOICE_NAME, "/voices/slt.flitevox")
        self.assertTrue(self.registry.get_voice(DEFAULT_VOICE_NAME).static)

    def test_load_failure_is_not_registered(self):
        with self.assertRaises(VoiceLoadError):
            self.registry.add_voice("bad", "/voices/broken.flitevox")
        self.assertNotIn("bad", self.registry)

    def test_os_error_from_engine_becomes_load_error(self):
        self.engine.load_voice = mock.MagicMock(side_effect=PermissionError("denied"))
        with self.assertRaises(VoiceLoadError):
            self.registry.add_voice("kal", "/voices/kal.flitevox")

    def test_get_unknown_voice(self):
        with self.assertRaises(VoiceNotFoundError) as ctx:
            self.registry.get_voice("nonexistent")
        self.assertEqual(ctx.exception.name, "nonexistent")

    def test_concurrent_distinct_adds_are_all_kept(self):
        names = [f"voice{i}" for i in range(32)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda n: self.registry.add_voice(n, f"/voices/{n}.flitevox"), names))

        self.assertEqual(self.registry.voice_names(), sorted(names + [DEFAULT_VOICE_NAME]))

    def test_concurrent_same_name_adds_have_one_winner(self):
        engine = FakeEngine(load_delay=0.01)
        registry = VoiceRegistry(engine)

        def add(i: int) -> str:
            try:
                registry.add_voice("kal", f"/voices/kal{i}.flitevox")
                return "ok"
            except DuplicateVoiceError:
                return "duplicate"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(add, range(16)))

        self.assertEqual(outcomes.count("ok"), 1)
        self.assertEqual(outcomes.count("duplicate"), 15)

    def test_release_frees_loaded_voices_but_not_default(self):
        self.registry.add_voice("kal", "/voices/kal.flitevox")
        self.registry.add_voice("awb", "/voices/awb.flitevox")

        self.registry.release()

        self.assertEqual(
            sorted(self.engine.released),
            ["file:///voices/awb.flitevox", "file:///voices/kal.flitevox"],
        )
        self.assertNotIn("builtin:slt", self.engine.released)
        self.assertEqual(self.registry.voice_names(), [DEFAULT_VOICE_NAME])

    def test_release_twice_is_harmless(self):
        self.registry.add_voice("kal", "/voices/kal.flitevox")
        self.registry.release()
        self.registry.release()
        self.assertEqual(len(self.engine.released), 1)

    def test_logs_added_voices(self):
        logger = Logger(level="debug")
        registry = VoiceRegistry(self.engine, logger=logger)
        registry.add_voice("kal", "/voices/kal.flitevox")
        self.assertTrue(any("Added voice 'kal'" in line for line in logger.lines))


class TestDefaultRegistry(unittest.TestCase):
    def test_process_wide_registry_is_created_once(self):
        engine = FakeEngine()
        with mock.patch.object(voice_registry, "_default_registry", None):
            first = get_default_registry(engine)
            second = get_default_registry(FakeEngine())

        self.assertIs(first, second)
        self.assertIs(first.engine, engine)
        self.assertEqual(engine.default_calls, 1)


if __name__ == "__main__":
    unittest.main()
