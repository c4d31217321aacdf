from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Mapping, Sequence

import numpy as np
from scipy.io import wavfile

from flitesay.application.port.engine import RawAudio
from flitesay.domain.errors import EngineError, VoiceLoadError
from flitesay.domain.voice import DEFAULT_VOICE_NAME, FeatureValue, VoiceHandle
from flitesay.utils.logger import Logger

FLITEVOX_MAGIC = b"CMU_FLITE_CG_VOXDATA"


class FliteEngine:
    """CMU Flite driven through its command-line front end.

    Voice handles are the strings flite's ``-voice`` option accepts: a
    built-in voice name or a ``file://`` URL of a ``.flitevox`` file. Each
    synthesis runs a fresh flite process, so the engine keeps no per-voice state.
    """

    def __init__(
        self,
        *,
        binary: str = "flite",
        timeout_seconds: float | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.binary = binary
        self.timeout_seconds = timeout_seconds
        self._logger = logger

    def load_default_voice(self) -> VoiceHandle:
        result = self._run([self._resolve_binary(), "-lv"])
        if result.returncode != 0:
            raise EngineError(
                f"'{self.binary} -lv' exited with status {result.returncode}: "
                f"{result.stderr.strip()}"
            )

        available = self._parse_voice_list(result.stdout)
        self._log(f"Built-in voices: {', '.join(available) or '(none)'}", level="debug")
        if DEFAULT_VOICE_NAME not in available:
            raise EngineError(f"Built-in voice {DEFAULT_VOICE_NAME!r} is not available")
        return DEFAULT_VOICE_NAME

    def load_voice(self, path: Path) -> VoiceHandle:
        path = Path(path).expanduser().resolve()
        if not path.is_file():
            raise VoiceLoadError(f"Voice file {str(path)!r} does not exist")

        try:
            with path.open("rb") as fh:
                magic = fh.read(len(FLITEVOX_MAGIC))
        except OSError as e:
            raise VoiceLoadError(f"Voice file {str(path)!r} could not be read: {e}") from e

        if magic != FLITEVOX_MAGIC:
            raise VoiceLoadError(f"{str(path)!r} is not a flitevox voice file")

        return f"file://{path}"

    def release_voice(self, handle: VoiceHandle) -> None:
        """Nothing to free: flite loads the voice file on every run."""
        self._log(f"Released voice {handle}", level="debug")

    def synthesize(
        self,
        text: str,
        handle: VoiceHandle,
        features: Mapping[str, FeatureValue],
    ) -> RawAudio | None:
        binary = self._resolve_binary()

        with tempfile.TemporaryDirectory(prefix="flitesay-") as tmp:
            text_path = Path(tmp) / "input.txt"
            wav_path = Path(tmp) / "output.wav"
            text_path.write_text(text, encoding="utf-8")

            command = [
                binary,
                "-voice",
                str(handle),
                "-f",
                str(text_path),
                "-o",
                str(wav_path),
                *self.feature_args(features),
            ]
            result = self._run(command)

            if result.returncode != 0:
                self._log(
                    f"flite exited with status {result.returncode}: {result.stderr.strip()}",
                    level="warning",
                )
                return None
            if not wav_path.is_file() or wav_path.stat().st_size == 0:
                self._log("flite produced no output file", level="warning")
                return None

            try:
                sample_rate, data = wavfile.read(str(wav_path))
            except ValueError as e:
                self._log(f"Unreadable flite output: {e}", level="warning")
                return None

        data = np.asarray(data)
        if data.dtype != np.int16:
            raise EngineError(f"Expected 16-bit PCM from flite, got {data.dtype}")

        channels = 1 if data.ndim == 1 else int(data.shape[1])
        return RawAudio(
            sample_rate=int(sample_rate),
            num_channels=channels,
            samples=np.ascontiguousarray(data).reshape(-1),
        )

    @staticmethod
    def feature_args(features: Mapping[str, FeatureValue]) -> list[str]:
        args: list[str] = []
        for name, value in features.items():
            # bool is an int subclass; flite has no boolean features.
            if isinstance(value, bool):
                option = "--seti"
                value = int(value)
            elif isinstance(value, int):
                option = "--seti"
            elif isinstance(value, float):
                option = "--setf"
            else:
                option = "--sets"
            args.extend([option, f"{name}={value}"])
        return args

    @staticmethod
    def _parse_voice_list(output: str) -> list[str]:
        # e.g. "Voices available: kal awb_time kal16 awb rms slt"
        _, _, names = output.partition(":")
        return names.split()

    def _resolve_binary(self) -> str:
        resolved = shutil.which(self.binary)
        if resolved is None:
            raise EngineError(
                f"Flite executable {self.binary!r} not found. "
                "Install flite or set FLITESAY_FLITE_BINARY."
            )
        return resolved

    def _run(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        self._log(f"Running {' '.join(command)}", level="debug")
        try:
            return subprocess.run(
                list(command),
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineError(f"{self.binary} timed out after {e.timeout}s") from e
        except OSError as e:
            raise EngineError(f"Failed to run {self.binary}: {e}") from e

    def _log(self, message: str, *, level: str = "info") -> None:
        if self._logger:
            self._logger.log(message, level=level, module="flite")
