"""Unit tests for Voice and FeatureSet."""
from __future__ import annotations

import unittest

from flitesay.domain.voice import DEFAULT_VOICE_NAME, FeatureSet, Voice


class TestFeatureSet(unittest.TestCase):
    def setUp(self):
        self.features = FeatureSet()

    def test_typed_setters_coerce_values(self):
        self.features.set_int("int_f0_target_mean", 160.7)
        self.features.set_float("duration_stretch", 1)
        self.features.set_string("name", 42)

        self.assertEqual(self.features.get("int_f0_target_mean"), 160)
        self.assertIsInstance(self.features.get("duration_stretch"), float)
        self.assertEqual(self.features.get("name"), "42")

    def test_snapshot_is_a_copy(self):
        self.features.set_int("a", 1)
        snapshot = self.features.snapshot()
        self.features.set_int("a", 2)

        self.assertEqual(snapshot, {"a": 1})
        self.assertEqual(self.features.get("a"), 2)

    def test_unknown_feature_names_are_accepted(self):
        self.features.set_string("no_such_feature", "x")
        self.assertIn("no_such_feature", self.features)
        self.assertEqual(len(self.features), 1)

    def test_get_default(self):
        self.assertIsNone(self.features.get("missing"))
        self.assertEqual(self.features.get("missing", 3), 3)


class TestVoice(unittest.TestCase):
    def test_each_voice_gets_its_own_feature_set(self):
        a = Voice(name="a", handle="a")
        b = Voice(name="b", handle="b")
        self.assertIsNot(a.features, b.features)

    def test_voices_are_not_static_by_default(self):
        voice = Voice(name=DEFAULT_VOICE_NAME, handle="slt")
        self.assertFalse(voice.static)
        self.assertIsNone(voice.source_path)


if __name__ == "__main__":
    unittest.main()
