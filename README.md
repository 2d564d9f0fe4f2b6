# kvmstream

Building blocks for streaming a KVM console over WebRTC:

- `kvmstream.rtp`: `RtpSession` writes 12-byte RTP headers with a per-session payload type, SSRC and wrapping sequence number; `RtpSession.packet()` returns an `RtpPacket` and rejects bodies over 1188 bytes.
- `kvmstream.rtpv`: `find_annexb()` and `split_nalus()` split an H.264 Annex B stream into NAL units; `H264Packetizer` turns a frame into RTP packets (FU-A fragments for large units, marker bit on the last packet), hands each to a callback, and builds the video SDP section with `make_sdp()`.
- `kvmstream.audio`: chunk sizing (`hz_to_frames`, `hz_to_buf16`, `hz_to_buf8`), `PcmChunk` with in-place `mix()`, `mix_samples()` for 16-bit samples, and `EncodedChunk`.
- `kvmstream.output`: `base64_encode()`, `Frame`, `frame_to_json()`, and `FrameWriter`, a context manager that writes frames raw or as JSON lines to a file or to standard output (`"-"`).
- `kvmstream.capture_formats`: `fourcc()`, `fourcc_to_string()`, parsing and naming of pixel formats, TV standards and IO methods, `is_jpeg()` and `swap_rgb()`. Unknown names raise `ValueError`.
- `kvmstream.capture_checks`: `CaptureSettings`, `Controls`, `Control` and `ControlMode`; `check_resolution()`, `is_buffer_valid()` for broken or truncated frames, `dv_timings_hz()`, and `control_actions()` listing the control writes a setting needs.
- `kvmstream.client`: `Client` holds one viewer session with its outgoing video and audio queues and its incoming Opus queue; `parse_rtp_header()` and `rotation_extension()` support it, and `Client.relay()` returns `RelayedPacket` items.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from kvmstream.rtpv import H264Packetizer

packets = []
packetizer = H264Packetizer(packets.append)
frame = b"\x00\x00\x01\x67\x42\x00\x1f" + b"\x00\x00\x01\x65" + bytes(3000)
count = packetizer.wrap(frame, zero_playout_delay=False, pts=0)
print(count, "RTP packets")
print(packetizer.make_sdp())
```

Frames can be written to a file or to standard output (`"-"`):

```python
from kvmstream.output import Frame, FrameWriter

with FrameWriter("-", json=True) as writer:
    writer.write(Frame(data=b"\xff\xd8\xff\xd9", width=640, height=480))
```

## What it does not do

- It opens no capture devices and grabs no frames; the capture modules only name formats, validate settings and check buffers.
- It has no audio capture, playback or Opus encoding and decoding, and no RTP packetizer or SDP section for audio.
- It reads no configuration files and has no gateway plugin or session-level message handling: `Client` queues packets, but nothing here sends them over the network.
- It installs no command-line program.