from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_FLITE_BINARY = "flite"
DEFAULT_VOICE_DIR = "."
DEFAULT_POST_FINISH_DELAY_SECONDS = 0.15
DEFAULT_LOG_LEVEL = "info"


def _env_float(key: str, default: float | None) -> float | None:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number (seconds), got {raw!r}.") from exc


@dataclass(frozen=True)
class EngineConfig:
    binary: str = DEFAULT_FLITE_BINARY
    timeout_seconds: float | None = None


@dataclass(frozen=True)
class AppConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    voice_dir: Path = Path(DEFAULT_VOICE_DIR)
    post_finish_delay_seconds: float = DEFAULT_POST_FINISH_DELAY_SECONDS
    log_levels: tuple[str, ...] = (DEFAULT_LOG_LEVEL,)
    log_dir: Path | None = None

    @staticmethod
    def from_env() -> "AppConfig":
        binary = os.getenv("FLITESAY_FLITE_BINARY") or DEFAULT_FLITE_BINARY
        voice_dir = os.getenv("FLITESAY_VOICE_DIR") or DEFAULT_VOICE_DIR

        timeout_seconds = _env_float("FLITESAY_ENGINE_TIMEOUT", None)
        if timeout_seconds is not None and timeout_seconds <= 0:
            raise ValueError("FLITESAY_ENGINE_TIMEOUT must be greater than zero.")

        delay = _env_float("FLITESAY_POST_FINISH_DELAY", DEFAULT_POST_FINISH_DELAY_SECONDS)
        if delay is not None and delay < 0:
            raise ValueError("FLITESAY_POST_FINISH_DELAY must not be negative.")

        # Comma separated level specs, e.g. "info,registry:debug".
        raw_levels = os.getenv("LOGLEVEL") or DEFAULT_LOG_LEVEL
        log_levels = tuple(part.strip() for part in raw_levels.split(",") if part.strip())

        log_dir_raw = os.getenv("FLITESAY_LOG_DIR") or None

        return AppConfig(
            engine=EngineConfig(binary=binary, timeout_seconds=timeout_seconds),
            voice_dir=Path(voice_dir),
            post_finish_delay_seconds=delay if delay is not None else DEFAULT_POST_FINISH_DELAY_SECONDS,
            log_levels=log_levels or (DEFAULT_LOG_LEVEL,),
            log_dir=Path(log_dir_raw) if log_dir_raw else None,
        )
