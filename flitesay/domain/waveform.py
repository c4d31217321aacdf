from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import BinaryIO, Callable, Sequence, Union

import numpy as np

from flitesay.domain.errors import WriteError

SampleTransform = Callable[[np.ndarray], np.ndarray]

RIFF_FORMAT_PCM = 0x0001
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = 2
FMT_CHUNK_SIZE = 16
# Bytes counted by the RIFF size field besides the sample data: the "WAVE"
# tag plus the "fmt " chunk (8 + 16) and the "data" chunk header.
RIFF_OVERHEAD = 8 + 16 + 12

_RIFF_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")

# Samples per sink write; keeps stream consumers fed without large copies.
ENCODE_BLOCK_SAMPLES = 4096


def sample_noop(samples: np.ndarray) -> np.ndarray:
    """Samples as unsigned 16-bit little-endian words (the default)."""
    return samples.astype("<u2")


def sample_to_s16(samples: np.ndarray) -> np.ndarray:
    """Samples as signed 16-bit little-endian integers."""
    return samples.astype("<i2")


def sample_to_2u8(samples: np.ndarray) -> np.ndarray:
    """Each sample split into two unsigned bytes, low byte first."""
    return samples.astype("<u2").view(np.uint8)


@dataclass(frozen=True, eq=False)
class Waveform:
    """16-bit PCM audio, interleaved when there is more than one channel.

    ``samples`` is a read-only int16 array of ``num_samples * num_channels``
    values; nothing mutates it once the waveform exists.
    """

    sample_rate: int
    num_samples: int
    num_channels: int
    samples: np.ndarray

    def __post_init__(self) -> None:
        if not 0 <= self.sample_rate <= 0xFFFF:
            raise ValueError(f"sample_rate must fit in 16 bits, got {self.sample_rate}")
        if self.num_samples < 0:
            raise ValueError(f"num_samples must be >= 0, got {self.num_samples}")
        if self.num_channels < 0:
            raise ValueError(f"num_channels must be >= 0, got {self.num_channels}")

        samples = np.array(self.samples).astype(np.int16).reshape(-1)
        expected = self.num_samples * self.num_channels
        if samples.size != expected:
            raise ValueError(
                f"Expected {expected} samples "
                f"({self.num_samples} x {self.num_channels} channels), got {samples.size}"
            )
        samples.flags.writeable = False
        object.__setattr__(self, "samples", samples)

    @classmethod
    def from_samples(
        cls,
        samples: Union[Sequence[int], np.ndarray],
        *,
        sample_rate: int,
        num_channels: int = 1,
    ) -> "Waveform":
        samples = np.array(samples).astype(np.int16).reshape(-1)
        if num_channels <= 0:
            raise ValueError(f"num_channels must be > 0, got {num_channels}")
        if samples.size % num_channels:
            raise ValueError(
                f"{samples.size} samples do not divide into {num_channels} channels"
            )
        return cls(
            sample_rate=sample_rate,
            num_samples=samples.size // num_channels,
            num_channels=num_channels,
            samples=samples,
        )

    @property
    def duration(self) -> float:
        """Length in seconds."""
        if self.sample_rate == 0:
            return 0.0
        return self.num_samples / self.sample_rate

    @property
    def data_size(self) -> int:
        return self.num_channels * self.num_samples * BYTES_PER_SAMPLE

    @property
    def riff_size(self) -> int:
        """Value of the RIFF size field (whole file minus 8 bytes)."""
        return self.data_size + RIFF_OVERHEAD

    def riff_header(self) -> bytes:
        return _RIFF_HEADER.pack(
            b"RIFF",
            self.riff_size & 0xFFFFFFFF,
            b"WAVE",
            b"fmt ",
            FMT_CHUNK_SIZE,
            RIFF_FORMAT_PCM,
            self.num_channels,
            self.sample_rate,
            (self.sample_rate * self.num_channels * BYTES_PER_SAMPLE) & 0xFFFFFFFF,
            (self.num_channels * BYTES_PER_SAMPLE) & 0xFFFF,
            BITS_PER_SAMPLE,
            b"data",
            self.data_size & 0xFFFFFFFF,
        )

    def encode_riff(self, sink: BinaryIO) -> None:
        """Write a complete WAV file (header + samples) to ``sink``.

        Raises WriteError on the first failed write; whatever already reached
        the sink is left for the caller to discard.
        """
        _write_all(sink, self.riff_header())
        self.encode(sink)

    def encode(self, sink: BinaryIO, transform: SampleTransform = sample_noop) -> None:
        """Write the raw sample bytes only, after ``transform``."""
        for start in range(0, self.samples.size, ENCODE_BLOCK_SAMPLES):
            block = transform(self.samples[start : start + ENCODE_BLOCK_SAMPLES])
            _write_all(sink, np.ascontiguousarray(block).tobytes())

    def to_wav_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.encode_riff(buffer)
        return buffer.getvalue()


def _write_all(sink: BinaryIO, data: bytes) -> None:
    view = memoryview(data)
    while view:
        try:
            written = sink.write(view)
        except (OSError, ValueError) as exc:
            raise WriteError(f"Failed to write waveform data: {exc}") from exc
        if written is None:
            # Non-blocking sinks report "would block" as None; the encoder only
            # supports blocking sinks.
            raise WriteError("Sink could not accept waveform data without blocking")
        if written <= 0:
            raise WriteError("Sink accepted no bytes")
        view = view[written:]
