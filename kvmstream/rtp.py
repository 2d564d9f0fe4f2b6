"""RTP header construction and packet sessions."""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass

DATAGRAM_SIZE = 1200
HEADER_SIZE = 12
PAYLOAD_SIZE = DATAGRAM_SIZE - HEADER_SIZE

H264_PAYLOAD = 96
OPUS_PAYLOAD = 111

OPUS_HZ = 48000
OPUS_CH = 2

_U32 = 0xFFFFFFFF
_U64 = 0xFFFFFFFFFFFFFFFF
_HEADER = struct.Struct(">III")


def _mix_u32(seed: int) -> int:
    """Scramble a 64-bit seed into a 32-bit value."""
    x = seed & _U64
    x = ((x ^ (x >> 30)) * 0xBF58476D1CE4E5B9) & _U64
    x = ((x ^ (x >> 27)) * 0x94D049BB133111EB) & _U64
    x ^= x >> 31
    return (x ^ (x >> 32)) & _U32


@dataclass(frozen=True)
class RtpPacket:
    """A complete RTP datagram ready to be relayed."""

    payload: int
    video: bool
    ssrc: int
    datagram: bytes
    zero_playout_delay: bool = False

    @property
    def used(self) -> int:
        return len(self.datagram)

    @property
    def body(self) -> bytes:
        return self.datagram[HEADER_SIZE:]


class RtpSession:
    """State of one outgoing RTP stream: payload type, SSRC and sequence."""

    def __init__(self, payload: int, video: bool) -> None:
        self.payload = payload
        self.video = video
        self.ssrc = _mix_u32(time.monotonic_ns() // 1000)
        self.seq = 0
        self.zero_playout_delay = False

    def header(self, pts: int, marked: bool) -> bytes:
        """Build a 12-byte RTP header and advance the sequence number."""
        word0 = 0x80000000
        if marked:
            word0 |= 1 << 23
        word0 |= (self.payload & 0x7F) << 16
        word0 |= self.seq & 0xFFFF
        self.seq = (self.seq + 1) & 0xFFFF
        return _HEADER.pack(word0, pts & _U32, self.ssrc & _U32)

    def packet(self, body: bytes, pts: int, marked: bool) -> RtpPacket:
        """Build a packet holding ``body`` after a fresh header."""
        body = bytes(body)
        if len(body) + HEADER_SIZE > DATAGRAM_SIZE:
            raise ValueError(
                f"RTP body of {len(body)} bytes exceeds {PAYLOAD_SIZE} bytes"
            )
        return RtpPacket(
            payload=self.payload,
            video=self.video,
            ssrc=self.ssrc,
            datagram=self.header(pts, marked) + body,
            zero_playout_delay=self.zero_playout_delay,
        )