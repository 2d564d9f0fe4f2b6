"""Per-session state of a WebRTC client: outgoing media and incoming audio."""

from __future__ import annotations

import logging
import queue
import struct
from dataclasses import dataclass

from kvmstream.audio import EncodedChunk
from kvmstream.rtp import HEADER_SIZE, OPUS_PAYLOAD, PAYLOAD_SIZE, RtpPacket

logger = logging.getLogger(__name__)

VIDEO_RING_SIZE = 2048
ACAP_RING_SIZE = 64
APLAY_RING_SIZE = 64

# A packet this far behind the expected sequence number is taken as a wrap.
_MAX_SEQ_LAG = 50

_FIXED_HEADER = struct.Struct(">BBHII")


@dataclass(frozen=True)
class RelayedPacket:
    """An RTP datagram as handed to the gateway for one session."""

    video: bool
    datagram: bytes
    mindex: int
    video_rotation: int | None = None


def rotation_extension(orientation: int) -> int | None:
    """Video-orientation extension value for a counterclockwise rotation.

    The extension rotates clockwise, so 90 and 270 are exchanged; an
    orientation of 0 needs no extension and gives None.
    """
    if orientation == 0:
        return None
    if orientation == 90:
        return 270
    if orientation == 270:
        return 90
    return orientation


def parse_rtp_header(buffer: bytes) -> tuple[int, int, bytes]:
    """Return ``(payload_type, sequence_number, payload)`` of an RTP packet.

    CSRC entries and a header extension are skipped. The payload is empty
    when the headers run past the end of the buffer. Raises ValueError for
    a buffer shorter than the fixed header.
    """
    buffer = bytes(buffer)
    if len(buffer) < HEADER_SIZE:
        raise ValueError(f"RTP packet of {len(buffer)} bytes is too short")
    first, second, seq, _ts, _ssrc = _FIXED_HEADER.unpack_from(buffer)
    payload_type = second & 0x7F
    offset = HEADER_SIZE + (first & 0x0F) * 4
    if first & 0x10:
        if offset + 4 > len(buffer):
            return payload_type, seq, b""
        (ext_words,) = struct.unpack_from(">H", buffer, offset + 2)
        offset += 4 + ext_words * 4
    if offset >= len(buffer):
        return payload_type, seq, b""
    return payload_type, seq, buffer[offset:]


class Client:
    """Media queues and flags of one gateway session."""

    def __init__(self, session: object) -> None:
        self.session = session
        self.transmit = False
        self.transmit_acap = False
        self.transmit_aplay = False
        self.video_orient = 0
        self.aplay_seq_next = 0
        self._video_ring: queue.Queue[RtpPacket] = queue.Queue(VIDEO_RING_SIZE)
        self._acap_ring: queue.Queue[RtpPacket] = queue.Queue(ACAP_RING_SIZE)
        self._aplay_enc_ring: queue.Queue[EncodedChunk] = queue.Queue(APLAY_RING_SIZE)

    def _wants(self, video: bool) -> bool:
        return self.transmit and (video or self.transmit_acap)

    def send(self, packet: RtpPacket) -> bool:
        """Queue an outgoing packet; returns whether it was queued."""
        if not self._wants(packet.video):
            return False
        ring = self._video_ring if packet.video else self._acap_ring
        try:
            ring.put_nowait(packet)
        except queue.Full:
            logger.error(
                "Session %r %s ring is full",
                self.session,
                "video" if packet.video else "acap",
            )
            return False
        return True

    def recv(self, buffer: bytes, video: bool) -> bool:
        """Accept an incoming Opus packet from the peer.

        Returns whether a chunk was queued for playback.
        """
        if (
            video
            or len(buffer) < HEADER_SIZE
            or not self.transmit
            or not self.transmit_aplay
        ):
            return False
        payload_type, seq, payload = parse_rtp_header(buffer)
        if payload_type != OPUS_PAYLOAD:
            return False
        if not (seq >= self.aplay_seq_next or self.aplay_seq_next - seq > _MAX_SEQ_LAG):
            return False
        self.aplay_seq_next = (seq + 1) & 0xFFFF
        if not payload:
            return False
        chunk = EncodedChunk(data=payload if len(payload) < PAYLOAD_SIZE else b"")
        try:
            self._aplay_enc_ring.put_nowait(chunk)
        except queue.Full:
            return False
        return True

    def relay(self) -> list[RelayedPacket]:
        """Drain the outgoing queues into packets ready for the gateway.

        Packets queued before transmission was switched off are dropped.
        """
        relayed = []
        for ring in (self._video_ring, self._acap_ring):
            while True:
                try:
                    packet = ring.get_nowait()
                except queue.Empty:
                    break
                if not self._wants(packet.video):
                    continue
                rotation = (
                    rotation_extension(self.video_orient) if packet.video else None
                )
                relayed.append(
                    RelayedPacket(
                        video=packet.video,
                        datagram=packet.datagram,
                        mindex=0 if packet.video else 1,
                        video_rotation=rotation,
                    )
                )
        return relayed

    def take_encoded(self) -> EncodedChunk | None:
        """Next non-empty received Opus chunk, or None if there is none."""
        while True:
            try:
                chunk = self._aplay_enc_ring.get_nowait()
            except queue.Empty:
                return None
            if chunk.used:
                return chunk