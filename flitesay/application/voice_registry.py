from __future__ import annotations

from pathlib import Path
from threading import Lock

from flitesay.application.port.engine import SynthesisEngine
from flitesay.domain.errors import (
    DuplicateVoiceError,
    FliteSayError,
    InitError,
    VoiceLoadError,
    VoiceNotFoundError,
)
from flitesay.domain.voice import DEFAULT_VOICE_NAME, Voice
from flitesay.utils.logger import Logger
from flitesay.utils.rwlock import ReadWriteLock


class VoiceRegistry:
    """Named voices available for synthesis.

    Lookups run concurrently; adding or releasing voices is exclusive. The
    built-in default voice is registered by ``initialize()`` and stays for the
    lifetime of the process.
    """

    def __init__(self, engine: SynthesisEngine, *, logger: Logger | None = None):
        self.engine = engine
        self._logger = logger

        self._voices: dict[str, Voice] = {}
        self._lock = ReadWriteLock()

        # Guards the one-time default voice load, independent of the map lock.
        self._init_lock = Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        if self._initialized:
            return

        with self._init_lock:
            if self._initialized:
                return

            try:
                handle = self.engine.load_default_voice()
            except FliteSayError as e:
                raise InitError(
                    f"Failed to load default voice {DEFAULT_VOICE_NAME!r}: {e}"
                ) from e

            voice = Voice(name=DEFAULT_VOICE_NAME, handle=handle, static=True)
            with self._lock.write_locked():
                self._voices[DEFAULT_VOICE_NAME] = voice
            self._initialized = True

        self._log(f"Default voice {DEFAULT_VOICE_NAME!r} ready", level="debug")

    def add_voice(self, name: str, path: str | Path) -> Voice:
        self.initialize()

        source_path = Path(path)
        # The lock is held across the load so that concurrent adds of one
        # name resolve to a single winner.
        with self._lock.write_locked():
            if name in self._voices:
                raise DuplicateVoiceError(name)

            try:
                handle = self.engine.load_voice(source_path)
            except VoiceLoadError:
                raise
            except (FliteSayError, OSError) as e:
                raise VoiceLoadError(f"Voice file {str(source_path)!r} could not be loaded: {e}") from e

            voice = Voice(name=name, handle=handle, source_path=source_path)
            self._voices[name] = voice

        self._log(f"Added voice {name!r} ({source_path})", level="debug")
        return voice

    def get_voice(self, name: str) -> Voice:
        self.initialize()

        with self._lock.read_locked():
            try:
                return self._voices[name]
            except KeyError:
                raise VoiceNotFoundError(name) from None

    def voice_names(self) -> list[str]:
        self.initialize()

        with self._lock.read_locked():
            return sorted(self._voices)

    def __contains__(self, name: object) -> bool:
        with self._lock.read_locked():
            return name in self._voices

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._voices)

    def release(self) -> None:
        """Free every loaded voice except the built-in default."""
        with self._lock.write_locked():
            released = [voice for voice in self._voices.values() if not voice.static]
            for voice in released:
                del self._voices[voice.name]

        for voice in released:
            try:
                self.engine.release_voice(voice.handle)
            except FliteSayError as e:
                self._log(f"Failed to release voice {voice.name!r}: {e}", level="warning")

        if released:
            self._log(f"Released {len(released)} voice(s)", level="debug")

    def _log(self, message: str, *, level: str = "info") -> None:
        if self._logger:
            self._logger.log(message, level=level, module="registry")


_default_registry: VoiceRegistry | None = None
_default_registry_lock = Lock()


def get_default_registry(
    engine: SynthesisEngine | None = None,
    *,
    logger: Logger | None = None,
) -> VoiceRegistry:
    """Return the process-wide registry, creating it on first use.

    ``engine`` only matters for the first call; later calls return the
    existing registry unchanged.
    """

    global _default_registry

    registry = _default_registry
    if registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                if engine is None:
                    from flitesay.infrastructure.flite.engine import FliteEngine

                    engine = FliteEngine(logger=logger)
                _default_registry = VoiceRegistry(engine, logger=logger)
            registry = _default_registry

    registry.initialize()
    return registry
