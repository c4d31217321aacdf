from __future__ import annotations

from pathlib import Path

from flitesay.application.voice_registry import VoiceRegistry
from flitesay.domain.errors import DuplicateVoiceError, VoiceLoadError
from flitesay.utils.logger import Logger

VOICE_FILE_SUFFIX = ".flitevox"


def discover_voice_files(directory: str | Path) -> list[tuple[str, Path]]:
    """Return ``(voice name, path)`` for each voice file in ``directory``.

    Raises OSError when the directory cannot be listed.
    """

    found: list[tuple[str, Path]] = []
    for entry in sorted(Path(directory).iterdir()):
        if entry.suffix == VOICE_FILE_SUFFIX and entry.is_file():
            found.append((entry.stem, entry))
    return found


def load_voice_directory(
    registry: VoiceRegistry,
    directory: str | Path,
    *,
    only: str | None = None,
    logger: Logger | None = None,
) -> list[str]:
    """Register every voice file found in ``directory``.

    A directory that cannot be read, or a file that fails to load, is logged
    and skipped. Returns the names that were added.
    """

    def _log(message: str, level: str) -> None:
        if logger:
            logger.log(message, level=level, module="voices")

    try:
        candidates = discover_voice_files(directory)
    except OSError as e:
        _log(f"Failed to scan {str(directory)!r} for voices: {e}", "warning")
        return []

    added: list[str] = []
    for name, path in candidates:
        if only and name != only:
            continue

        try:
            registry.add_voice(name, path)
        except (VoiceLoadError, DuplicateVoiceError) as e:
            _log(f"Failed to add voice {path.name}: {e}", "warning")
            continue

        added.append(name)

    return added
