from __future__ import annotations

from dataclasses import dataclass

from flitesay.application.port.audio_sink import AudioSink
from flitesay.application.port.engine import SynthesisEngine
from flitesay.application.synthesizer import Synthesizer
from flitesay.application.voice_registry import VoiceRegistry
from flitesay.config import AppConfig
from flitesay.domain.errors import PlaybackError
from flitesay.infrastructure.flite.engine import FliteEngine
from flitesay.utils.logger import Logger


@dataclass(frozen=True)
class AppContainer:
    config: AppConfig
    logger: Logger
    engine: SynthesisEngine
    registry: VoiceRegistry
    audio_sink: AudioSink | None
    synthesizer: Synthesizer


def build_container(
    config: AppConfig,
    *,
    logger: Logger | None = None,
    engine: SynthesisEngine | None = None,
    registry: VoiceRegistry | None = None,
    audio_sink: AudioSink | None = None,
    playback: bool = True,
) -> AppContainer:
    logger = logger or Logger()

    if registry is None:
        engine = engine or FliteEngine(
            binary=config.engine.binary,
            timeout_seconds=config.engine.timeout_seconds,
            logger=logger,
        )
        registry = VoiceRegistry(engine, logger=logger)
    else:
        engine = registry.engine

    registry.initialize()

    if audio_sink is None and playback:
        # sounddevice needs PortAudio at import time; only load it when
        # something is actually going to be played.
        try:
            from flitesay.infrastructure.audio.speaker import Speaker
        except OSError as e:
            raise PlaybackError(f"Audio output is unavailable: {e}") from e

        audio_sink = Speaker(logger=logger)

    synthesizer = Synthesizer(
        registry,
        audio_sink=audio_sink,
        post_finish_delay=config.post_finish_delay_seconds,
        logger=logger,
    )

    return AppContainer(
        config=config,
        logger=logger,
        engine=engine,
        registry=registry,
        audio_sink=audio_sink,
        synthesizer=synthesizer,
    )
