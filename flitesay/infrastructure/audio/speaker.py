from __future__ import annotations

import io
import wave
from dataclasses import dataclass
from queue import Empty, Queue
from threading import Event, Lock, Thread
from typing import BinaryIO, Optional

import numpy as np
import sounddevice as sd

from flitesay.application.port.audio_sink import PlaybackCallback
from flitesay.domain.errors import PlaybackError
from flitesay.utils.logger import Logger


@dataclass(frozen=True)
class _PlaybackRequest:
    stream: Optional[BinaryIO]
    on_finished: PlaybackCallback


class Speaker:
    """Plays WAV streams on the default output device, one at a time."""

    def __init__(
        self,
        *,
        chunk_frames: int = 1024,
        prime_silence_ms: int = 100,
        logger: Logger | None = None,
    ):
        self.chunk_frames = chunk_frames
        self.prime_silence_ms = prime_silence_ms
        self._logger = logger

        self._queue: Queue[_PlaybackRequest] = Queue()
        self._worker_thread: Thread | None = None
        self._shutdown_event = Event()
        # Orders play() against close() so nothing is queued after the drain.
        self._lock = Lock()

    @property
    def closed(self) -> bool:
        return self._shutdown_event.is_set()

    def play(self, stream: BinaryIO, on_finished: PlaybackCallback) -> None:
        with self._lock:
            if self._shutdown_event.is_set():
                raise PlaybackError("Speaker is closed")

            self._ensure_worker_started()
            self._queue.put(_PlaybackRequest(stream=stream, on_finished=on_finished))

    def close(self) -> None:
        """Stop background thread, cutting the current playback short.

        Requests still waiting in the queue are finished with PlaybackError.
        """
        with self._lock:
            self._shutdown_event.set()
            # Unblock worker if it's waiting for a request.
            self._queue.put(_PlaybackRequest(stream=None, on_finished=lambda _error: None))

        if self._worker_thread is not None:
            self._worker_thread.join(timeout=1.0)

    def _ensure_worker_started(self) -> None:
        if self._worker_thread is not None:
            return

        self._worker_thread = Thread(target=self._worker_loop, name="speaker", daemon=True)
        self._worker_thread.start()

    def _worker_loop(self) -> None:
        while True:
            req = self._queue.get()

            if self._shutdown_event.is_set() or req.stream is None:
                req.on_finished(PlaybackError("Speaker closed before playback"))
                if self._shutdown_event.is_set():
                    self._drain_queue()
                    break
                continue

            try:
                self._play_stream(req.stream)
            except Exception as e:
                # Reported through the callback; the worker keeps serving.
                self._log(f"Playback failed: {e!r}", level="error")
                req.on_finished(e)
            else:
                req.on_finished(None)

    def _drain_queue(self) -> None:
        while True:
            try:
                req = self._queue.get_nowait()
            except Empty:
                return
            req.on_finished(PlaybackError("Speaker closed before playback"))

    def _play_stream(self, stream: BinaryIO) -> None:
        # wave reads fixed-size header fields; the buffered reader turns the
        # stream's short reads into full ones.
        reader = stream if isinstance(stream, io.BufferedIOBase) else io.BufferedReader(stream)

        with wave.open(reader, "rb") as wav:
            if wav.getsampwidth() != 2:
                raise PlaybackError(f"Unsupported sample width {wav.getsampwidth()}")

            sample_rate = wav.getframerate()
            channels = wav.getnchannels()
            self._log(f"Opening output: {sample_rate} Hz, {channels} channel(s)", level="debug")

            with sd.OutputStream(
                samplerate=sample_rate,
                channels=channels,
                dtype="int16",
            ) as out:
                # Prime the device/mixer path with a short silence to avoid
                # startup clicks/pops on some environments.
                prime_frames = int(sample_rate * (self.prime_silence_ms / 1000.0))
                if prime_frames > 0:
                    out.write(np.zeros((prime_frames, channels), dtype=np.int16))

                while True:
                    if self._shutdown_event.is_set():
                        raise PlaybackError("Playback interrupted by close()")
                    frames = wav.readframes(self.chunk_frames)
                    if not frames:
                        break
                    chunk = np.frombuffer(frames, dtype="<i2").reshape(-1, channels)
                    out.write(chunk)

    def _log(self, message: str, *, level: str = "info") -> None:
        if self._logger:
            self._logger.log(message, level=level, module="speaker")
