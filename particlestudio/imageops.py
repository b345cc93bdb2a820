"""Pixel operations on RGB images held as (height, width, 3) uint8 arrays."""

from __future__ import annotations

import enum
import math
from bisect import bisect_right

import numpy as np

_WHITESPACE = b" \t\n\r\v\f"


class Channel(enum.IntFlag):
    """Channel selection bits; the same bits pick Y, U and V in YUV mode."""

    RED = 1
    GREEN = 2
    BLUE = 4
    Y = 1
    U = 2
    V = 4


def _as_pixels(pixels) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"expected an array of shape (height, width, 3), got {arr.shape}")
    if arr.dtype != np.uint8:
        if arr.dtype.kind not in "iu":
            raise ValueError("pixel values must be integers")
        if arr.size and (arr.min() < 0 or arr.max() > 255):
            raise ValueError("pixel values must lie in 0..255")
        arr = arr.astype(np.uint8)
    return arr


def _wrap_byte(values: np.ndarray) -> np.ndarray:
    """Store values into bytes the way an 8-bit integer store does."""
    return (np.trunc(values).astype(np.int64) & 0xFF).astype(np.uint8)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def ppm_encode(pixels) -> bytes:
    """Encode pixels as a binary PPM (P6) image with a single-line header."""
    arr = _as_pixels(pixels)
    height, width, _ = arr.shape
    header = f"P6 {width} {height} 255 ".encode("ascii")
    return header + arr.tobytes()


def _header_tokens(data: bytes) -> tuple[list[bytes], int]:
    tokens: list[bytes] = []
    pos = 0
    while len(tokens) < 4:
        if pos >= len(data):
            raise ValueError("truncated PPM header")
        byte = data[pos]
        if byte in _WHITESPACE:
            pos += 1
        elif byte == ord("#"):
            end = data.find(b"\n", pos)
            if end < 0:
                raise ValueError("truncated PPM header")
            pos = end + 1
        else:
            start = pos
            while pos < len(data) and data[pos] not in _WHITESPACE and data[pos] != ord("#"):
                pos += 1
            tokens.append(data[start:pos])
    if pos >= len(data) or data[pos] not in _WHITESPACE:
        raise ValueError("PPM header must end with a whitespace byte")
    return tokens, pos + 1


def ppm_decode(data: bytes) -> np.ndarray:
    """Decode a binary PPM (P6, maximum value 255) into a pixel array."""
    tokens, offset = _header_tokens(bytes(data))
    magic, *numbers = tokens
    if magic != b"P6":
        raise ValueError("not a binary PPM image")
    try:
        width, height, maxval = (int(token) for token in numbers)
    except ValueError as exc:
        raise ValueError("malformed PPM header") from exc
    if width <= 0 or height <= 0:
        raise ValueError("PPM dimensions must be positive")
    if maxval != 255:
        raise ValueError(f"unsupported PPM maximum value {maxval}")
    size = width * height * 3
    body = data[offset:offset + size]
    if len(body) < size:
        raise ValueError("truncated PPM pixel data")
    return np.frombuffer(body, dtype=np.uint8).reshape(height, width, 3).copy()


def grayscale(pixels) -> np.ndarray:
    """Replace each pixel with its luma, truncated, in all three channels."""
    arr = _as_pixels(pixels).astype(np.float64)
    red = (arr[..., 0] * 0.299).astype(np.float32)
    green = (arr[..., 1] * 0.587).astype(np.float32)
    blue = (arr[..., 2] * 0.114).astype(np.float32)
    gray = np.trunc(red + green + blue).astype(np.uint8)
    return np.stack([gray, gray, gray], axis=-1)


def negative(pixels) -> np.ndarray:
    """Invert every channel."""
    return (255 - _as_pixels(pixels)).astype(np.uint8)


def colorize(pixels, color_count: int) -> np.ndarray:
    """Posterize every channel to ``color_count`` evenly spaced levels."""
    if not 2 <= color_count <= 255:
        raise ValueError("color_count must lie in 2..255")
    arr = _as_pixels(pixels)
    value_step = 255.0 / (color_count - 1)
    limit_step = 256 // color_count
    colors = [_round_half_up(value_step * i) for i in range(color_count)]
    limits = [limit_step * i for i in range(1, color_count)]

    def level(value: int) -> int:
        index = bisect_right(limits, value)
        return colors[index] if index < len(limits) else 255

    table = np.array([level(value) for value in range(256)], dtype=np.uint8)
    return table[arr]


def _select(planes: tuple[np.ndarray, np.ndarray, np.ndarray], mask) -> np.ndarray:
    mask = int(mask)
    if mask not in range(8):
        raise ValueError(f"channel mask must lie in 0..7, got {mask}")
    if mask in (0, 7):
        chosen = planes
    elif mask in (1, 2, 4):
        plane = planes[mask.bit_length() - 1]
        chosen = (plane, plane, plane)
    else:
        zero = np.zeros_like(planes[0])
        chosen = tuple(
            plane if mask & bit else zero for plane, bit in zip(planes, (1, 2, 4))
        )
    return np.stack(chosen, axis=-1).astype(np.uint8)


def select_rgb_channels(pixels, mask) -> np.ndarray:
    """Show the RGB channels picked by ``mask`` (a :class:`Channel` combination).

    A single channel is shown as gray; two channels keep their colours with
    the third zeroed; none or all shows the image unchanged.
    """
    arr = _as_pixels(pixels)
    return _select((arr[..., 0], arr[..., 1], arr[..., 2]), mask)


def rgb_to_yuv(pixels) -> np.ndarray:
    """Convert to YUV bytes; values outside 0..255 wrap as an 8-bit store does."""
    arr = _as_pixels(pixels).astype(np.float64)
    red, green, blue = arr[..., 0], arr[..., 1], arr[..., 2]
    y = red * 0.299 + green * 0.587 + blue * 0.114
    u = red * -0.14713 + green * -0.28886 + blue * 0.436 + 128
    v = red * 0.615 + green * -0.51499 + blue * -0.10001 + 128
    return np.stack([_wrap_byte(plane) for plane in (y, u, v)], axis=-1)


def select_yuv_channels(pixels, mask) -> np.ndarray:
    """Convert to YUV and show the channels picked by ``mask``."""
    yuv = rgb_to_yuv(pixels)
    return _select((yuv[..., 0], yuv[..., 1], yuv[..., 2]), mask)


def gamma_from_slider(value: int) -> float:
    """Map the gamma slider position to a gamma exponent."""
    return (500 - value) / 100.0


def color_correction(pixels, red, green, blue, brightness, contrast, gamma) -> np.ndarray:
    """Apply channel offsets, brightness, contrast and gamma, clamping to 0..255."""
    if contrast == 259:
        raise ValueError("contrast must not be 259")
    arr = _as_pixels(pixels)
    factor = np.float32((259.0 * (contrast + 255)) / (255.0 * (259 - contrast)))
    exponent = float(np.float32(gamma))

    values = arr.astype(np.int64) + np.array([red, green, blue], dtype=np.int64) + brightness
    scaled = factor * (values - 128).astype(np.float32) + np.float32(128)
    values = np.trunc(scaled).astype(np.int64)

    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        corrected = 255 * np.power(values / 255.0, exponent)
    corrected = np.where(np.isfinite(corrected), corrected, 0.0)
    return np.clip(np.trunc(corrected), 0, 255).astype(np.uint8)