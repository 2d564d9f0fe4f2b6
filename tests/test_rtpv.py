import struct

import pytest

from kvmstream.rtp import DATAGRAM_SIZE, H264_PAYLOAD, HEADER_SIZE
from kvmstream.rtpv import H264Packetizer, find_annexb, split_nalus

SC3 = b"\x00\x00\x01"
SC4 = b"\x00\x00\x00\x01"


@pytest.fixture
def collected():
    packets = []
    return packets, H264Packetizer(packets.append)


def _marked(packet):
    return bool(packet.datagram[1] & 0x80)


def _pts(packet):
    return struct.unpack(">I", packet.datagram[4:8])[0]


def _seq(packet):
    return struct.unpack(">H", packet.datagram[2:4])[0]


def test_find_annexb_positions():
    data = b"\x11" + SC3 + b"\x65\x22" + SC3 + b"\x41"
    assert find_annexb(data, 0) == 1
    assert find_annexb(data, 2) == data.index(SC3, 2)
    assert find_annexb(b"\x00\x00", 0) == -1
    assert find_annexb(b"\x01\x02\x03\x04", 0) == -1


def test_split_nalus_mixed_start_codes():
    sps = b"\x67\x42\xe0\x1f"
    pps = b"\x68\xce\x3c\x80"
    idr = b"\x65\x88\x84\x00\x33"
    data = SC4 + sps + SC4 + pps + SC3 + idr
    assert split_nalus(data) == [sps, pps, idr]


def test_split_nalus_without_start_code():
    assert split_nalus(b"\x65\x88\x84") == []
    assert split_nalus(b"") == []


def test_wrap_small_frame(collected):
    packets, packetizer = collected
    nalus = [b"\x67\x42\x00", b"\x68\xce", b"\x65\x88\x84\x21"]
    data = b"".join(SC4 + n for n in nalus)
    count = packetizer.wrap(data, False, pts=1234)
    assert count == len(nalus) == len(packets)
    assert [p.body for p in packets] == nalus
    assert [_marked(p) for p in packets] == [False, False, True]
    assert all(_pts(p) == 1234 for p in packets)
    assert all(p.datagram[1] & 0x7F == H264_PAYLOAD for p in packets)
    seqs = [_seq(p) for p in packets]
    assert seqs == [seqs[0], seqs[0] + 1, seqs[0] + 2]


def test_wrap_fragments_large_nalu(collected):
    packets, packetizer = collected
    nalu = b"\x65" + bytes(range(256)) * 12
    packetizer.wrap(SC3 + nalu, False, pts=7)
    assert len(packets) > 1
    assert all(p.used <= DATAGRAM_SIZE for p in packets)
    assert all(p.body[0] & 0x1F == 28 for p in packets)
    assert all(p.body[0] & 0x60 == nalu[0] & 0x60 for p in packets)
    assert all(p.body[1] & 0x1F == nalu[0] & 0x1F for p in packets)
    assert packets[0].body[1] & 0x80
    assert not packets[0].body[1] & 0x40
    assert packets[-1].body[1] & 0x40
    assert not packets[-1].body[1] & 0x80
    assert b"".join(p.body[2:] for p in packets) == nalu[1:]
    assert [_marked(p) for p in packets] == [False] * (len(packets) - 1) + [True]


def test_wrap_size_boundary(collected):
    packets, packetizer = collected
    limit = DATAGRAM_SIZE - HEADER_SIZE
    fits = b"\x41" + b"\x11" * (limit - 1)
    packetizer.wrap(SC3 + fits, False, pts=0)
    assert len(packets) == 1
    assert packets[0].body == fits
    packets.clear()
    packetizer.wrap(SC3 + fits + b"\x11", False, pts=0)
    assert len(packets) == 2


def test_wrap_sets_zero_playout_delay(collected):
    packets, packetizer = collected
    packetizer.wrap(SC3 + b"\x65\x01", True, pts=0)
    packetizer.wrap(SC3 + b"\x41\x01", False, pts=0)
    assert [p.zero_playout_delay for p in packets] == [True, False]


def test_wrap_default_pts(collected):
    packets, packetizer = collected
    assert packetizer.wrap(SC3 + b"\x65\x01") == 1
    assert 0 <= _pts(packets[0]) < 2 ** 32


def test_make_sdp(collected):
    _, packetizer = collected
    sdp = packetizer.make_sdp()
    assert sdp.startswith(f"m=video 1 RTP/SAVPF {H264_PAYLOAD}\r\n")
    assert f"a=rtpmap:{H264_PAYLOAD} H264/90000\r\n" in sdp
    assert f"a=ssrc:{packetizer.session.ssrc} cname:ustreamer\r\n" in sdp
    assert "a=extmap:2 urn:3gpp:video-orientation\r\n" in sdp
    assert sdp.endswith("a=sendonly\r\n")