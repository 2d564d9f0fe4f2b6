"""RTP packetizing of H.264, PCM mixing, frame dumping and capture helpers for KVM video streaming."""

__version__ = "0.1.0"

__all__ = [
    "audio",
    "capture_checks",
    "capture_formats",
    "client",
    "output",
    "rtp",
    "rtpv",
]