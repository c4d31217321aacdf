from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol

import numpy as np

from flitesay.domain.voice import FeatureValue, VoiceHandle


@dataclass(frozen=True)
class RawAudio:
    """PCM produced by an engine, before it is copied into a Waveform."""

    sample_rate: int
    num_channels: int
    samples: np.ndarray


class SynthesisEngine(Protocol):
    def load_default_voice(self) -> VoiceHandle:
        """Return the handle of the engine's built-in default voice."""
        ...

    def load_voice(self, path: Path) -> VoiceHandle:
        """Load a voice file; raise VoiceLoadError when it cannot be used."""
        ...

    def release_voice(self, handle: VoiceHandle) -> None:
        """Free a voice previously returned by ``load_voice``."""
        ...

    def synthesize(
        self,
        text: str,
        handle: VoiceHandle,
        features: Mapping[str, FeatureValue],
    ) -> RawAudio | None:
        """Render ``text``; ``None`` means the engine produced no waveform."""
        ...
