"""Names and codes of V4L2 pixel formats, TV standards and IO methods."""

from __future__ import annotations

VIDEO_MIN_WIDTH = 160
VIDEO_MAX_WIDTH = 15360
VIDEO_MIN_HEIGHT = 120
VIDEO_MAX_HEIGHT = 8640
VIDEO_MAX_FPS = 120

STANDARDS_STR = "PAL, NTSC, SECAM"
FORMATS_STR = "YUYV, YVYU, UYVY, YUV420, YVU420, RGB565, RGB24, BGR24, GREY, MJPEG, JPEG"
IO_METHODS_STR = "MMAP, USERPTR"

_BIG_ENDIAN_FLAG = 1 << 31


def fourcc(code: str) -> int:
    """Pack a four-character code into its 32-bit little-endian value."""
    if len(code) != 4:
        raise ValueError(f"fourcc code must have 4 characters: {code!r}")
    raw = code.encode("ascii")
    return int.from_bytes(raw, "little")


def fourcc_to_string(value: int) -> str:
    """Render a fourcc value as its characters, with ``-BE`` for big-endian ones."""
    text = "".join(chr((value >> shift) & 0x7F) for shift in (0, 8, 16, 24))
    if value & _BIG_ENDIAN_FLAG:
        text += "-BE"
    return text


PIX_FMT_YUYV = fourcc("YUYV")
PIX_FMT_YVYU = fourcc("YVYU")
PIX_FMT_UYVY = fourcc("UYVY")
PIX_FMT_YUV420 = fourcc("YU12")
PIX_FMT_YVU420 = fourcc("YV12")
PIX_FMT_GREY = fourcc("GREY")
PIX_FMT_RGB565 = fourcc("RGBP")
PIX_FMT_RGB24 = fourcc("RGB3")
PIX_FMT_BGR24 = fourcc("BGR3")
PIX_FMT_MJPEG = fourcc("MJPG")
PIX_FMT_JPEG = fourcc("JPEG")
PIX_FMT_H264 = fourcc("H264")

STD_UNKNOWN = 0
STD_PAL = 0x000000FF
STD_NTSC = 0x0000B000
STD_SECAM = 0x00FF0000

MEMORY_MMAP = 1
MEMORY_USERPTR = 2

_FORMATS: dict[str, int] = {
    "YUYV": PIX_FMT_YUYV,
    "YVYU": PIX_FMT_YVYU,
    "UYVY": PIX_FMT_UYVY,
    "YUV420": PIX_FMT_YUV420,
    "YVU420": PIX_FMT_YVU420,
    "GREY": PIX_FMT_GREY,
    "RGB565": PIX_FMT_RGB565,
    "RGB24": PIX_FMT_RGB24,
    "BGR24": PIX_FMT_BGR24,
    "MJPEG": PIX_FMT_MJPEG,
    "JPEG": PIX_FMT_JPEG,
}

_STANDARDS: dict[str, int] = {
    "UNKNOWN": STD_UNKNOWN,
    "PAL": STD_PAL,
    "NTSC": STD_NTSC,
    "SECAM": STD_SECAM,
}

_IO_METHODS: dict[str, int] = {
    "MMAP": MEMORY_MMAP,
    "USERPTR": MEMORY_USERPTR,
}


def _lookup(table: dict[str, int], name: str, kind: str) -> int:
    try:
        return table[name.upper()]
    except KeyError:
        raise ValueError(f"Unknown {kind}: {name!r}") from None


def _reverse(table: dict[str, int], value: int) -> str | None:
    return next((name for name, code in table.items() if code == value), None)


def parse_format(name: str) -> int:
    """Pixel format code for a case-insensitive name such as ``mjpeg``."""
    return _lookup(_FORMATS, name, "pixel format")


def parse_standard(name: str) -> int:
    """TV standard mask for a case-insensitive name such as ``pal``."""
    return _lookup(_STANDARDS, name, "TV standard")


def parse_io_method(name: str) -> int:
    """IO method code for a case-insensitive name such as ``mmap``."""
    return _lookup(_IO_METHODS, name, "IO method")


def format_name(value: int) -> str | None:
    """Name of a supported pixel format, or None if it is not supported."""
    return _reverse(_FORMATS, value)


def standard_name(value: int) -> str:
    """Name of a TV standard, or ``???`` if it is not known."""
    name = _reverse(_STANDARDS, value)
    return "???" if name is None else name


def io_method_name(value: int) -> str:
    """Name of an IO method, or ``unsupported``."""
    name = _reverse(_IO_METHODS, value)
    return "unsupported" if name is None else name


def is_jpeg(value: int) -> bool:
    """Whether the pixel format carries JPEG data."""
    return value in (PIX_FMT_JPEG, PIX_FMT_MJPEG)


def swap_rgb(pixel_format: int) -> int:
    """Exchange RGB24 and BGR24; other formats are returned unchanged."""
    if pixel_format == PIX_FMT_RGB24:
        return PIX_FMT_BGR24
    if pixel_format == PIX_FMT_BGR24:
        return PIX_FMT_RGB24
    return pixel_format