"""Audio buffer sizing, PCM chunks and sample mixing."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from kvmstream.rtp import OPUS_CH

FRAME_MS = 20
MIN_PCM_HZ = 8000
MAX_PCM_HZ = 192000
SAMPLE_BYTES = 2


def hz_to_frames(hz: int) -> int:
    """Frames per channel in one 20 ms chunk."""
    return hz // 50


def hz_to_buf16(hz: int) -> int:
    """Interleaved 16-bit samples in one chunk."""
    return hz_to_frames(hz) * OPUS_CH


def hz_to_buf8(hz: int) -> int:
    """Bytes in one chunk of 16-bit interleaved samples."""
    return hz_to_buf16(hz) * SAMPLE_BYTES


MAX_BUF16 = hz_to_buf16(MAX_PCM_HZ)
MAX_BUF8 = hz_to_buf8(MAX_PCM_HZ)


def _mix_one(a: int, b: int) -> int:
    a += 32768
    b += 32768
    if a < 32768 and b < 32768:
        m = a * b // 32768
    else:
        m = 2 * (a + b) - (a * b) // 32768 - 65536
    if m == 65536:
        m = 65535
    return m - 32768


def mix_samples(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """Mix two equally long sequences of signed 16-bit samples."""
    if len(a) != len(b):
        raise ValueError("sample sequences differ in length")
    return [_mix_one(x, y) for x, y in zip(a, b)]


@dataclass
class PcmChunk:
    """Interleaved stereo 16-bit PCM samples."""

    samples: list[int] = field(default_factory=list)

    @property
    def frames(self) -> int:
        return len(self.samples) // OPUS_CH

    def mix(self, other: PcmChunk) -> None:
        """Mix ``other`` into this chunk in place.

        An empty chunk takes a copy of ``other``; chunks of different
        lengths are left untouched.
        """
        if other.frames == 0:
            return
        if self.frames == 0:
            self.samples = list(other.samples)
        elif self.frames == other.frames:
            self.samples = mix_samples(self.samples, other.samples)


@dataclass
class EncodedChunk:
    """An encoded audio packet with its timestamp."""

    data: bytes = b""
    pts: int = 0

    @property
    def used(self) -> int:
        return len(self.data)