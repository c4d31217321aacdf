"""Pytest configuration: make the shared test doubles (fakes.py) importable."""
from __future__ import annotations

import sys
from pathlib import Path


def _ensure_tests_dir_on_sys_path() -> None:
    tests_dir = str(Path(__file__).resolve().parent)
    if tests_dir not in sys.path:
        sys.path.insert(0, tests_dir)


_ensure_tests_dir_on_sys_path()
