"""Packetizing of H.264 Annex B frames into RTP (RFC 6184)."""

from __future__ import annotations

import time
from collections.abc import Callable

from kvmstream.rtp import (
    DATAGRAM_SIZE,
    H264_PAYLOAD,
    HEADER_SIZE,
    RtpPacket,
    RtpSession,
)

RN = "\r\n"

_START_CODE = b"\x00\x00\x01"
_PRE = len(_START_CODE)
_FU_A = 28
_FU_OVERHEAD = HEADER_SIZE + 2
_FRAGMENT_SIZE = DATAGRAM_SIZE - _FU_OVERHEAD


def find_annexb(data: bytes, start: int = 0) -> int:
    """Index of the next ``00 00 01`` start code at or after ``start``, or -1."""
    return bytes(data).find(_START_CODE, start)


def split_nalus(data: bytes) -> list[bytes]:
    """Split an Annex B byte stream into NAL units.

    A trailing zero byte before a four-byte start code is dropped from the
    preceding unit; empty units are skipped.
    """
    data = bytes(data)
    offsets = []
    offset = find_annexb(data, 0)
    while offset >= 0:
        offsets.append(offset)
        offset = find_annexb(data, offset + _PRE)

    nalus = []
    for begin, end in zip(offsets, offsets[1:]):
        nalu = data[begin + _PRE:end]
        if nalu and nalu[-1] == 0:
            nalu = nalu[:-1]
        if nalu:
            nalus.append(nalu)
    if offsets:
        last = data[offsets[-1] + _PRE:]
        if last:
            nalus.append(last)
    return nalus


def _now_pts() -> int:
    """Current monotonic time in 90 kHz units, truncated to 32 bits."""
    return ((time.monotonic_ns() // 1000) * 9 // 100) & 0xFFFFFFFF


class H264Packetizer:
    """Wraps H.264 frames into RTP packets and hands them to a callback."""

    def __init__(self, callback: Callable[[RtpPacket], None]) -> None:
        self.session = RtpSession(H264_PAYLOAD, True)
        self.callback = callback

    def make_sdp(self) -> str:
        """SDP media section for the video stream."""
        pl = self.session.payload
        lines = [
            f"m=video 1 RTP/SAVPF {pl}",
            "c=IN IP4 0.0.0.0",
            f"a=rtpmap:{pl} H264/90000",
            f"a=fmtp:{pl} profile-level-id=42E01F",
            f"a=fmtp:{pl} packetization-mode=1",
            f"a=rtcp-fb:{pl} nack",
            f"a=rtcp-fb:{pl} nack pli",
            f"a=rtcp-fb:{pl} goog-remb",
            f"a=ssrc:{self.session.ssrc} cname:ustreamer",
            "a=extmap:1 http://www.webrtc.org/experiments/rtp-hdrext/playout-delay",
            "a=extmap:2 urn:3gpp:video-orientation",
            "a=sendonly",
        ]
        return "".join(line + RN for line in lines)

    def wrap(
        self, data: bytes, zero_playout_delay: bool = False, pts: int | None = None
    ) -> int:
        """Send every NAL unit of an Annex B frame; returns the packet count.

        The last packet of the frame carries the RTP marker bit.
        """
        self.session.zero_playout_delay = zero_playout_delay
        if pts is None:
            pts = _now_pts()
        nalus = split_nalus(data)
        sent = 0
        for index, nalu in enumerate(nalus):
            sent += self._process_nalu(nalu, pts, index == len(nalus) - 1)
        return sent

    def _process_nalu(self, nalu: bytes, pts: int, marked: bool) -> int:
        if len(nalu) + HEADER_SIZE <= DATAGRAM_SIZE:
            self.callback(self.session.packet(nalu, pts, marked))
            return 1

        ref_idc = (nalu[0] >> 5) & 3
        nalu_type = nalu[0] & 0x1F
        indicator = _FU_A | (ref_idc << 5)
        rest = nalu[1:]
        chunks = [
            rest[pos:pos + _FRAGMENT_SIZE]
            for pos in range(0, len(rest), _FRAGMENT_SIZE)
        ]
        for index, chunk in enumerate(chunks):
            first = index == 0
            last = index == len(chunks) - 1
            fu = nalu_type
            if first:
                fu |= 0x80
            if last:
                fu |= 0x40
            body = bytes((indicator, fu)) + chunk
            self.callback(self.session.packet(body, pts, marked and last))
        return len(chunks)