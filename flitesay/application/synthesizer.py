from __future__ import annotations

import time
from threading import Event

import numpy as np

from flitesay.application.port.audio_sink import AudioSink
from flitesay.application.streaming import WaveStream
from flitesay.application.voice_registry import VoiceRegistry, get_default_registry
from flitesay.domain.errors import (
    EngineError,
    InitError,
    PlaybackError,
    SynthesisError,
    VoiceNotFoundError,
)
from flitesay.domain.voice import DEFAULT_VOICE_NAME, Voice
from flitesay.domain.waveform import Waveform
from flitesay.utils.logger import Logger

DEFAULT_POST_FINISH_DELAY_SECONDS = 0.15


class Synthesizer:
    """Turns text into waveforms with one bound voice.

    Feature setters write onto the bound voice, so every Synthesizer sharing
    that voice sees the change. A single instance is meant to be used from one
    thread at a time.
    """

    def __init__(
        self,
        registry: VoiceRegistry | None = None,
        *,
        audio_sink: AudioSink | None = None,
        post_finish_delay: float = DEFAULT_POST_FINISH_DELAY_SECONDS,
        logger: Logger | None = None,
    ) -> None:
        self.registry = registry if registry is not None else get_default_registry(logger=logger)
        self.audio_sink = audio_sink
        self.post_finish_delay = post_finish_delay
        self._logger = logger

        try:
            self._voice: Voice = self.registry.get_voice(DEFAULT_VOICE_NAME)
        except VoiceNotFoundError as e:
            raise InitError(f"Unknown default voice {DEFAULT_VOICE_NAME!r}") from e

    @property
    def voice(self) -> Voice:
        return self._voice

    @property
    def voice_name(self) -> str:
        return self._voice.name

    def set_voice(self, name: str) -> None:
        # Lookup first: an unknown name leaves the current binding untouched.
        self._voice = self.registry.get_voice(name)
        self._log(f"Voice set to {name!r}", level="debug")

    def set_int_feature(self, name: str, value: int) -> None:
        self._voice.features.set_int(name, value)

    def set_float_feature(self, name: str, value: float) -> None:
        self._voice.features.set_float(name, value)

    def set_string_feature(self, name: str, value: str) -> None:
        self._voice.features.set_string(name, value)

    def synthesize(self, text: str) -> Waveform:
        voice = self._voice
        features = voice.features.snapshot()
        self._log(f"Synthesizing {len(text)} chars with {voice.name!r} {features}", level="debug")

        try:
            raw = self.registry.engine.synthesize(text, voice.handle, features)
        except EngineError as e:
            raise SynthesisError(f"Speech synthesis failed with voice {voice.name!r}: {e}") from e

        if raw is None:
            raise SynthesisError(f"Speech synthesis failed with voice {voice.name!r}")

        channels = max(int(raw.num_channels), 1)
        samples = np.array(raw.samples, dtype=np.int16, copy=True).reshape(-1)
        try:
            return Waveform(
                sample_rate=int(raw.sample_rate),
                num_samples=samples.size // channels,
                num_channels=channels,
                samples=samples,
            )
        except ValueError as e:
            raise SynthesisError(f"Engine returned malformed audio: {e}") from e

    def say(self, text: str) -> None:
        """Synthesize ``text`` and block until it has been played."""
        if self.audio_sink is None:
            raise PlaybackError("No audio output configured")

        wave = self.synthesize(text)
        self._log(f"Playing {wave.duration:.2f}s of audio", level="debug")

        done = Event()
        outcome: list[BaseException | None] = [None]

        def on_finished(error: BaseException | None) -> None:
            if error is None and self.post_finish_delay > 0:
                time.sleep(self.post_finish_delay)
            outcome[0] = error
            done.set()

        stream = WaveStream(wave)
        try:
            try:
                self.audio_sink.play(stream, on_finished)
            except PlaybackError:
                raise
            except Exception as e:
                raise PlaybackError(f"Failed to start playback: {e}") from e

            done.wait()
        finally:
            stream.close()

        error = outcome[0]
        if isinstance(error, PlaybackError):
            raise error
        if error is not None:
            raise PlaybackError(f"Playback failed: {error}") from error

    def _log(self, message: str, *, level: str = "info") -> None:
        if self._logger:
            self._logger.log(message, level=level, module="synthesizer")
