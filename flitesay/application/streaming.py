from __future__ import annotations

import io
from threading import Lock, Thread

from flitesay.domain.waveform import Waveform
from flitesay.utils.pipe import PipeReader, PipeWriter, make_pipe


class WaveStream(io.RawIOBase):
    """Read a Waveform as WAV bytes without encoding it up front.

    The first read starts a producer thread that runs ``encode_riff`` into an
    in-memory pipe; reads block until the producer has written enough or has
    finished. An encoding failure is raised by the read that follows the last
    byte produced. Closing early makes the producer's pending write fail so the
    thread ends. Each instance is a single pass over the waveform.
    """

    def __init__(self, wave: Waveform) -> None:
        super().__init__()
        self.wave = wave

        self._start_lock = Lock()
        self._reader: PipeReader | None = None
        self._producer: Thread | None = None

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed WaveStream")
        return self._ensure_started().readinto(buffer)

    def close(self) -> None:
        if self.closed:
            return

        with self._start_lock:
            reader, producer = self._reader, self._producer

        if reader is not None:
            reader.close()
        if producer is not None:
            producer.join()
        super().close()

    @property
    def producer_alive(self) -> bool:
        return self._producer is not None and self._producer.is_alive()

    def _ensure_started(self) -> PipeReader:
        with self._start_lock:
            if self._reader is None:
                reader, writer = make_pipe()
                self._reader = reader
                self._producer = Thread(
                    target=self._produce,
                    args=(writer,),
                    name="wave-encoder",
                    daemon=True,
                )
                self._producer.start()
            return self._reader

    def _produce(self, writer: PipeWriter) -> None:
        try:
            self.wave.encode_riff(writer)
        except Exception as e:
            writer.close_with_error(e)
        else:
            writer.close()
