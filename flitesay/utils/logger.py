from __future__ import annotations

from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Callable, Iterable

LEVELS = {
    "debug": 10,
    "info": 20,
    "notice": 25,
    "warning": 30,
    "error": 40,
    "critical": 50,
}


def parse_level(name: str) -> int:
    try:
        return LEVELS[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(
            f"Unknown log level {name!r}. Expected one of: {', '.join(LEVELS)}"
        ) from exc


class Logger:
    """Buffered, levelled log sink shared by the whole application.

    Lines are kept in memory so they can be replayed to the first subscriber
    and saved to disk on exit. Per-module thresholds override the default one.
    """

    def __init__(
        self,
        *,
        level: str = "info",
        log_dir: Path = Path("logs"),
        on_emit: Callable[[str], None] | None = None,
    ):
        self.log_dir = log_dir
        self._on_emit: Callable[[str], None] | None = None

        self._lock = Lock()
        self._lines: list[str] = []
        self._started_at = datetime.now()

        self._default_level = parse_level(level)
        self._module_levels: dict[str, int] = {}

        # Set via property to keep replay behavior consistent.
        self.on_emit = on_emit

    @property
    def on_emit(self) -> Callable[[str], None] | None:
        return self._on_emit

    @on_emit.setter
    def on_emit(self, callback: Callable[[str], None] | None) -> None:
        # Only replay buffered logs when the first subscriber is attached.
        should_replay = self._on_emit is None and callback is not None
        self._on_emit = callback

        if should_replay:
            for line in list(self._lines):
                callback(line)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def set_level(self, level: str, module: str | None = None) -> None:
        if module:
            self._module_levels[module] = parse_level(level)
        else:
            self._default_level = parse_level(level)

    def configure(self, specs: Iterable[str]) -> None:
        """Apply level specs of the form ``level`` or ``module:level``."""
        for spec in specs:
            spec = spec.strip()
            if not spec:
                continue
            module, sep, level = spec.partition(":")
            if sep:
                self.set_level(level, module)
            else:
                self.set_level(module)

    def is_enabled(self, level: str, module: str | None = None) -> bool:
        threshold = self._module_levels.get(module or "", self._default_level)
        return parse_level(level) >= threshold

    def log(self, message: str, *, level: str = "info", module: str | None = None) -> None:
        if not message:
            return
        if not self.is_enabled(level, module):
            return

        prefix = level.upper()[:4]
        line = f"{prefix} [{module}] {message}" if module else f"{prefix} {message}"

        with self._lock:
            self._lines.append(line)

        if self._on_emit:
            self._on_emit(line)

    def debug(self, message: str, *, module: str | None = None) -> None:
        self.log(message, level="debug", module=module)

    def info(self, message: str, *, module: str | None = None) -> None:
        self.log(message, level="info", module=module)

    def warning(self, message: str, *, module: str | None = None) -> None:
        self.log(message, level="warning", module=module)

    def error(self, message: str, *, module: str | None = None) -> None:
        self.log(message, level="error", module=module)

    def save(self) -> Path:
        self.log_dir.mkdir(parents=True, exist_ok=True)

        filename = self._started_at.strftime("%Y-%m-%d_%H-%M-%S.txt")
        path = self.log_dir / filename

        path.write_text("\n".join(self._lines), encoding="utf-8")
        return path
