from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock
from typing import Union

FeatureValue = Union[int, float, str]
VoiceHandle = Hashable

DEFAULT_VOICE_NAME = "slt"


class FeatureSet:
    """Runtime acoustic parameters attached to a voice.

    A FeatureSet belongs to the voice, not to whoever set the value: every
    Synthesizer bound to the same voice reads and writes the same instance.
    """

    def __init__(self, initial: dict[str, FeatureValue] | None = None):
        self._lock = Lock()
        self._values: dict[str, FeatureValue] = dict(initial or {})

    def set_int(self, name: str, value: int) -> None:
        self._set(name, int(value))

    def set_float(self, name: str, value: float) -> None:
        self._set(name, float(value))

    def set_string(self, name: str, value: str) -> None:
        self._set(name, str(value))

    def get(self, name: str, default: FeatureValue | None = None) -> FeatureValue | None:
        with self._lock:
            return self._values.get(name, default)

    def snapshot(self) -> dict[str, FeatureValue]:
        with self._lock:
            return dict(self._values)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def _set(self, name: str, value: FeatureValue) -> None:
        with self._lock:
            self._values[name] = value


@dataclass(frozen=True, eq=False)
class Voice:
    name: str
    handle: VoiceHandle
    source_path: Path | None = None
    # Built-in voices are owned by the process and never released.
    static: bool = False
    features: FeatureSet = field(default_factory=FeatureSet, repr=False)
