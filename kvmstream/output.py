"""Writing of captured frames to files, raw or as JSON lines."""

from __future__ import annotations

import base64
import logging
import sys
from dataclasses import dataclass
from typing import BinaryIO

logger = logging.getLogger(__name__)


def base64_encode(data: bytes) -> str:
    """Standard padded base64 of ``data``."""
    return base64.b64encode(bytes(data)).decode("ascii")


@dataclass
class Frame:
    """A video frame and its metadata."""

    data: bytes = b""
    width: int = 0
    height: int = 0
    format: int = 0
    stride: int = 0
    online: bool = False
    key: bool = False
    gop: int = 0
    grab_ts: float = 0.0
    encode_begin_ts: float = 0.0
    encode_end_ts: float = 0.0

    @property
    def used(self) -> int:
        return len(self.data)


def frame_to_json(frame: Frame) -> str:
    """One-line JSON description of a frame, data included as base64."""
    return (
        f'{{"size": {frame.used}, "width": {frame.width}, "height": {frame.height},'
        f' "format": {frame.format}, "stride": {frame.stride},'
        f' "online": {int(frame.online)}, "key": {int(frame.key)}, "gop": {frame.gop},'
        f' "grab_ts": {frame.grab_ts:.3f},'
        f' "encode_begin_ts": {frame.encode_begin_ts:.3f},'
        f' "encode_end_ts": {frame.encode_end_ts:.3f},'
        f' "data": "{base64_encode(frame.data)}"}}'
    )


class FrameWriter:
    """Dumps frames to a file or, for the path ``-``, to standard output."""

    def __init__(self, path: str, json: bool = False) -> None:
        self.path = path
        self.json = json
        self._owned = path != "-"
        if self._owned:
            logger.info("Using output: %s", path)
            self._fp: BinaryIO | None = open(path, "wb")
        else:
            logger.info("Using output: <stdout>")
            self._fp = sys.stdout.buffer

    def write(self, frame: Frame) -> None:
        """Write one frame and flush."""
        if self._fp is None:
            raise ValueError("writer is closed")
        if self.json:
            self._fp.write((frame_to_json(frame) + "\n").encode("ascii"))
        else:
            self._fp.write(frame.data)
        self._fp.flush()

    def close(self) -> None:
        """Close the output file; standard output is left open."""
        fp, self._fp = self._fp, None
        if fp is not None and self._owned:
            fp.close()

    def __enter__(self) -> FrameWriter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()