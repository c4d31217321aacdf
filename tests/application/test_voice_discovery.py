"""Unit tests for voice file discovery."""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from fakes import FakeEngine

from flitesay.application.voice_discovery import discover_voice_files, load_voice_directory
from flitesay.application.voice_registry import VoiceRegistry
from flitesay.domain.voice import DEFAULT_VOICE_NAME
from flitesay.utils.logger import Logger


class TestVoiceDiscovery(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        for name in ("kal.flitevox", "awb.flitevox", "broken.flitevox", "notes.txt"):
            (self.dir / name).write_bytes(b"CMU_FLITE_CG_VOXDATA")
        (self.dir / "rms.flitevox").mkdir()

        self.engine = FakeEngine()
        self.registry = VoiceRegistry(self.engine)
        self.logger = Logger()

    def tearDown(self):
        self._tmp.cleanup()

    def test_discovers_regular_voice_files_by_stem(self):
        found = discover_voice_files(self.dir)
        self.assertEqual(
            [(name, path.name) for name, path in found],
            [("awb", "awb.flitevox"), ("broken", "broken.flitevox"), ("kal", "kal.flitevox")],
        )

    def test_bad_files_are_skipped_and_logged(self):
        added = load_voice_directory(self.registry, self.dir, logger=self.logger)

        self.assertEqual(added, ["awb", "kal"])
        self.assertEqual(self.registry.voice_names(), ["awb", "kal", DEFAULT_VOICE_NAME])
        self.assertTrue(
            any(line.startswith("WARN [voices]") and "broken.flitevox" in line for line in self.logger.lines)
        )

    def test_filter_loads_only_the_requested_voice(self):
        added = load_voice_directory(self.registry, self.dir, only="kal")
        self.assertEqual(added, ["kal"])
        self.assertNotIn("awb", self.registry)

    def test_voice_with_default_name_is_skipped(self):
        (self.dir / f"{DEFAULT_VOICE_NAME}.flitevox").write_bytes(b"CMU_FLITE_CG_VOXDATA")

        added = load_voice_directory(self.registry, self.dir, logger=self.logger)

        self.assertNotIn(DEFAULT_VOICE_NAME, added)
        self.assertTrue(self.registry.get_voice(DEFAULT_VOICE_NAME).static)

    def test_unreadable_directory_is_not_fatal(self):
        added = load_voice_directory(self.registry, self.dir / "missing", logger=self.logger)

        self.assertEqual(added, [])
        self.assertTrue(any("Failed to scan" in line for line in self.logger.lines))


if __name__ == "__main__":
    unittest.main()
