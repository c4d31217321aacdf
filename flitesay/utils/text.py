from __future__ import annotations

from typing import TextIO


def read_message(stream: TextIO) -> str:
    """Read a whole message from a non-interactive stream.

    Interactive terminals are never read from, so running without a message
    does not hang waiting for input.
    """

    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return ""
    return stream.read().strip()
