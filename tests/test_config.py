"""Unit tests for AppConfig.from_env."""
from __future__ import annotations

import os
import unittest
from pathlib import Path
from unittest import mock

from flitesay.config import DEFAULT_POST_FINISH_DELAY_SECONDS, AppConfig


class TestAppConfigFromEnv(unittest.TestCase):
    @mock.patch.dict(os.environ, {}, clear=True)
    def test_defaults(self):
        config = AppConfig.from_env()

        self.assertEqual(config.engine.binary, "flite")
        self.assertIsNone(config.engine.timeout_seconds)
        self.assertEqual(config.voice_dir, Path("."))
        self.assertEqual(config.post_finish_delay_seconds, DEFAULT_POST_FINISH_DELAY_SECONDS)
        self.assertEqual(config.log_levels, ("info",))
        self.assertIsNone(config.log_dir)

    @mock.patch.dict(
        os.environ,
        {
            "FLITESAY_FLITE_BINARY": "/opt/flite/bin/flite",
            "FLITESAY_VOICE_DIR": "/usr/share/flite",
            "FLITESAY_ENGINE_TIMEOUT": "12.5",
            "FLITESAY_POST_FINISH_DELAY": "0",
            "LOGLEVEL": "warning, registry:debug",
            "FLITESAY_LOG_DIR": "/tmp/flitesay-logs",
        },
        clear=True,
    )
    def test_values_from_environment(self):
        config = AppConfig.from_env()

        self.assertEqual(config.engine.binary, "/opt/flite/bin/flite")
        self.assertEqual(config.engine.timeout_seconds, 12.5)
        self.assertEqual(config.voice_dir, Path("/usr/share/flite"))
        self.assertEqual(config.post_finish_delay_seconds, 0.0)
        self.assertEqual(config.log_levels, ("warning", "registry:debug"))
        self.assertEqual(config.log_dir, Path("/tmp/flitesay-logs"))

    @mock.patch.dict(os.environ, {"FLITESAY_ENGINE_TIMEOUT": "soon"}, clear=True)
    def test_non_numeric_timeout(self):
        with self.assertRaises(ValueError):
            AppConfig.from_env()

    @mock.patch.dict(os.environ, {"FLITESAY_ENGINE_TIMEOUT": "0"}, clear=True)
    def test_timeout_must_be_positive(self):
        with self.assertRaises(ValueError):
            AppConfig.from_env()

    @mock.patch.dict(os.environ, {"FLITESAY_POST_FINISH_DELAY": "-1"}, clear=True)
    def test_negative_delay(self):
        with self.assertRaises(ValueError):
            AppConfig.from_env()


if __name__ == "__main__":
    unittest.main()
