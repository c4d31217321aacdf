from __future__ import annotations

from typing import BinaryIO, Callable, Optional, Protocol

PlaybackCallback = Callable[[Optional[BaseException]], None]


class AudioSink(Protocol):
    def play(self, stream: BinaryIO, on_finished: PlaybackCallback) -> None:
        """Start playing a WAV byte stream.

        ``on_finished`` is called exactly once, with ``None`` when playback
        completed or with the exception that stopped it.
        """
        ...
