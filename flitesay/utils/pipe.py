from __future__ import annotations

import io
from threading import Condition, Lock


class _PipeState:
    """Shared state of a synchronous in-memory pipe.

    A write hands its buffer to the readers and blocks until every byte has
    been consumed or the read end is closed. Nothing is copied or buffered
    beyond the single pending write.
    """

    def __init__(self) -> None:
        self._cond = Condition(Lock())
        self._write_lock = Lock()

        self._pending: memoryview | None = None
        self._offset = 0

        self._read_closed = False
        self._write_closed = False
        self._write_error: BaseException | None = None

    def write(self, data) -> int:
        view = memoryview(data).cast("B")
        if not len(view):
            return 0

        # Concurrent writers take turns; each write is delivered contiguously.
        with self._write_lock, self._cond:
            if self._write_closed:
                raise ValueError("write to closed pipe")
            if self._read_closed:
                raise BrokenPipeError("read end of pipe is closed")

            self._pending = view
            self._offset = 0
            self._cond.notify_all()

            while self._offset < len(view) and not self._read_closed:
                self._cond.wait()

            written = self._offset
            self._pending = None
            self._offset = 0

            if written < len(view):
                raise BrokenPipeError("read end of pipe closed during write")
            return written

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        if not len(view):
            return 0

        with self._cond:
            while True:
                if self._read_closed:
                    raise ValueError("read from closed pipe")
                if self._pending is not None and self._offset < len(self._pending):
                    break
                if self._write_closed:
                    if self._write_error is not None:
                        raise self._write_error
                    return 0
                self._cond.wait()

            n = min(len(view), len(self._pending) - self._offset)
            view[:n] = self._pending[self._offset : self._offset + n]
            self._offset += n
            if self._offset >= len(self._pending):
                self._cond.notify_all()
            return n

    def close_read(self) -> None:
        with self._cond:
            self._read_closed = True
            self._cond.notify_all()

    def close_write(self, error: BaseException | None = None) -> None:
        with self._cond:
            if self._write_closed:
                return
            self._write_closed = True
            self._write_error = error
            self._cond.notify_all()


class PipeReader(io.RawIOBase):
    def __init__(self, state: _PipeState) -> None:
        super().__init__()
        self._state = state

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed pipe reader")
        return self._state.readinto(buffer)

    def close(self) -> None:
        if not self.closed:
            self._state.close_read()
        super().close()


class PipeWriter(io.RawIOBase):
    def __init__(self, state: _PipeState) -> None:
        super().__init__()
        self._state = state

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed pipe writer")
        return self._state.write(data)

    def close_with_error(self, error: BaseException | None) -> None:
        """Close the write end; readers raise ``error`` once drained."""
        if not self.closed:
            self._state.close_write(error)
        super().close()

    def close(self) -> None:
        self.close_with_error(None)


def make_pipe() -> tuple[PipeReader, PipeWriter]:
    """Create a connected (reader, writer) pair.

    Reads block until a writer supplies bytes or the write end is closed.
    Writes block until the data is fully read or the read end is closed, in
    which case they fail with ``BrokenPipeError``.
    """

    state = _PipeState()
    return PipeReader(state), PipeWriter(state)
