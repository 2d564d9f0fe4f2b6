"""Capture settings, image controls and checks applied to captured buffers."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field

from kvmstream.capture_formats import (
    MEMORY_MMAP,
    PIX_FMT_YUYV,
    STD_UNKNOWN,
    VIDEO_MAX_HEIGHT,
    VIDEO_MAX_WIDTH,
    is_jpeg,
)

MIN_JPEG_SIZE = 125
_JPEG_END_MARKERS = (0xFFD9, 0xD900, 0x0000)
_U32 = 0xFFFFFFFF


class ControlMode(enum.IntEnum):
    """How an image control is applied when the device is opened."""

    NONE = 0
    VALUE = 1
    AUTO = 2
    DEFAULT = 3


@dataclass
class Control:
    """One image control: its mode and, for ``VALUE``, the value to set."""

    mode: ControlMode = ControlMode.NONE
    value: int = 0

    def accepts(self, value: int, minimum: int, maximum: int, step: int) -> bool:
        """Whether ``value`` fits a control with the given range and step."""
        if step <= 0:
            raise ValueError(f"control step must be positive: {step}")
        return minimum <= value <= maximum and value % step == 0


# Control names in the order they are applied, with whether each has an auto switch.
CONTROL_ORDER: tuple[tuple[str, bool], ...] = (
    ("brightness", True),
    ("contrast", False),
    ("saturation", False),
    ("hue", True),
    ("gamma", False),
    ("sharpness", False),
    ("backlight_compensation", False),
    ("white_balance", True),
    ("gain", True),
    ("color_effect", False),
    ("rotate", False),
    ("flip_vertical", False),
    ("flip_horizontal", False),
)


@dataclass
class Controls:
    """The full set of image controls of a capture device."""

    brightness: Control = field(default_factory=Control)
    contrast: Control = field(default_factory=Control)
    saturation: Control = field(default_factory=Control)
    hue: Control = field(default_factory=Control)
    gamma: Control = field(default_factory=Control)
    sharpness: Control = field(default_factory=Control)
    backlight_compensation: Control = field(default_factory=Control)
    white_balance: Control = field(default_factory=Control)
    gain: Control = field(default_factory=Control)
    color_effect: Control = field(default_factory=Control)
    rotate: Control = field(default_factory=Control)
    flip_vertical: Control = field(default_factory=Control)
    flip_horizontal: Control = field(default_factory=Control)

    def actions(self) -> list[tuple[str, int | None, bool]]:
        """All control writes for this set, in application order."""
        return [
            action
            for name, has_auto in CONTROL_ORDER
            for action in control_actions(name, getattr(self, name), has_auto)
        ]


def _default_n_bufs() -> int:
    return (os.cpu_count() or 1) + 1


@dataclass
class CaptureSettings:
    """Requested parameters of a video capture device."""

    path: str = "/dev/video0"
    input: int = 0
    width: int = 640
    height: int = 480
    format: int = PIX_FMT_YUYV
    format_swap_rgb: bool = False
    jpeg_quality: int = 80
    standard: int = STD_UNKNOWN
    io_method: int = MEMORY_MMAP
    dv_timings: bool = False
    n_bufs: int = field(default_factory=_default_n_bufs)
    dma_export: bool = False
    dma_required: bool = False
    desired_fps: int = 0
    min_frame_size: int = 128
    allow_truncated_frames: bool = False
    persistent: bool = False
    timeout: int = 1
    ctl: Controls = field(default_factory=Controls)


def check_resolution(width: int, height: int) -> tuple[int, int]:
    """Validate a resolution; raises ValueError outside 1x1 .. max."""
    if not (0 < width <= VIDEO_MAX_WIDTH and 0 < height <= VIDEO_MAX_HEIGHT):
        raise ValueError(
            f"Requested forbidden resolution={width}x{height}: "
            f"min=1x1, max={VIDEO_MAX_WIDTH}x{VIDEO_MAX_HEIGHT}"
        )
    return width, height


def is_buffer_valid(
    data: bytes,
    used: int,
    pixel_format: int,
    min_frame_size: int,
    allow_truncated: bool = False,
) -> bool:
    """Whether a captured buffer holds a usable frame.

    Frames smaller than ``min_frame_size`` are taken as broken. JPEG frames
    must be at least 125 bytes and end with FF D9, D9 00 or 00 00, unless
    truncated frames are allowed.
    """
    if used < min_frame_size:
        return False
    if is_jpeg(pixel_format):
        if used < MIN_JPEG_SIZE:
            return False
        tail = bytes(data[used - 2:used])
        marker = int.from_bytes(tail, "big") if len(tail) == 2 else -1
        if marker not in _JPEG_END_MARKERS and not allow_truncated:
            return False
    return True


def dv_timings_hz(
    pixelclock: int, htotal: int, vtotal: int, interlaced: bool = False
) -> float:
    """Refresh rate from DV timings, rounded down to hundredths of a hertz."""
    vtot = vtotal // (2 if interlaced else 1)
    area = (htotal * vtot) & _U32
    fps = ((100 * pixelclock) // area) & _U32 if area > 0 else 0
    return fps // 100 + (fps % 100) / 100.0


def control_actions(
    name: str, control: Control, has_auto: bool
) -> list[tuple[str, int | None, bool]]:
    """Control writes needed to apply ``control``.

    Each action is ``(control_name, value, quiet)``; a value of None means
    the device's default value.
    """
    mode = control.mode
    if not has_auto:
        if mode == ControlMode.VALUE:
            return [(name, control.value, False)]
        if mode == ControlMode.DEFAULT:
            return [(name, None, False)]
        return []

    auto = f"{name}_auto"
    if mode == ControlMode.VALUE:
        return [(auto, 0, True), (name, control.value, False)]
    if mode == ControlMode.AUTO:
        return [(auto, 1, False)]
    if mode == ControlMode.DEFAULT:
        return [(auto, 0, True), (name, None, False), (auto, None, False)]
    return []