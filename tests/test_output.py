import base64
import json

import pytest

from kvmstream.output import Frame, FrameWriter, base64_encode, frame_to_json


@pytest.mark.parametrize("size", [0, 1, 2, 3, 4, 5, 100, 1000])
def test_base64_round_trip(size):
    data = bytes((i * 7) & 0xFF for i in range(size))
    encoded = base64_encode(data)
    assert len(encoded) % 4 == 0
    assert base64.b64decode(encoded) == data


def test_base64_known_vectors():
    assert base64_encode(b"") == ""
    assert base64_encode(b"foob") == "Zm9vYg=="
    assert base64_encode(b"foobar") == "Zm9vYmFy"


def _frame():
    return Frame(
        data=b"\xff\xd8jpegdata\xff\xd9",
        width=640,
        height=480,
        format=1196444237,
        stride=1280,
        online=True,
        key=False,
        gop=30,
        grab_ts=12.5,
        encode_begin_ts=13.25,
        encode_end_ts=14.0,
    )


def test_frame_to_json_fields():
    frame = _frame()
    text = frame_to_json(frame)
    parsed = json.loads(text)
    assert parsed["size"] == frame.used == len(frame.data)
    assert parsed["width"] == frame.width
    assert parsed["height"] == frame.height
    assert parsed["format"] == frame.format
    assert parsed["stride"] == frame.stride
    assert parsed["online"] == 1
    assert parsed["key"] == 0
    assert parsed["gop"] == frame.gop
    assert parsed["grab_ts"] == frame.grab_ts
    assert base64.b64decode(parsed["data"]) == frame.data
    assert '"grab_ts": 12.500,' in text
    assert "\n" not in text


def test_writer_raw(tmp_path):
    path = tmp_path / "out.bin"
    frames = [Frame(data=b"abc"), Frame(data=b"defgh")]
    with FrameWriter(str(path)) as writer:
        for frame in frames:
            writer.write(frame)
    assert path.read_bytes() == b"abcdefgh"


def test_writer_json_lines(tmp_path):
    path = tmp_path / "out.jsonl"
    frames = [_frame(), Frame(data=b"xyz", width=2)]
    with FrameWriter(str(path), json=True) as writer:
        for frame in frames:
            writer.write(frame)
    lines = path.read_text().splitlines()
    assert lines == [frame_to_json(f) for f in frames]


def test_writer_stdout(capsysbinary):
    writer = FrameWriter("-")
    writer.write(Frame(data=b"rawbytes"))
    writer.close()
    assert capsysbinary.readouterr().out == b"rawbytes"


def test_writer_closed_raises(tmp_path):
    writer = FrameWriter(str(tmp_path / "f.bin"))
    writer.close()
    with pytest.raises(ValueError):
        writer.write(Frame(data=b"a"))


def test_writer_bad_path(tmp_path):
    with pytest.raises(OSError):
        FrameWriter(str(tmp_path / "missing" / "f.bin"))