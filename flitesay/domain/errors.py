from __future__ import annotations


class FliteSayError(RuntimeError):
    """Base class for all errors raised by flitesay."""


class VoiceNotFoundError(FliteSayError):
    """Raised when a voice name is not present in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No such voice {name!r}")


class DuplicateVoiceError(FliteSayError):
    """Raised when adding a voice under a name that is already registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Voice {name!r} is already registered")


class VoiceLoadError(FliteSayError):
    """Raised when the engine cannot load a voice file."""


class InitError(FliteSayError):
    """Raised when the default voice cannot be resolved (broken installation)."""


class SynthesisError(FliteSayError):
    """Raised when the engine produces no waveform for a text."""


class WriteError(FliteSayError):
    """Raised when an encoding sink rejects a write."""


class PlaybackError(FliteSayError):
    """Raised when the audio output fails to play a waveform."""


class EngineError(FliteSayError):
    """Raised when the synthesis engine itself is unusable (missing binary, crash)."""
