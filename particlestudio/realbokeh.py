"""Lens-shaped blur and highlight detection for a photographic bokeh look."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image, ImageDraw

from .particles import polygon_points, random_in_range

_SHARP_FILL = 160
_FULL = 255
_CURVE_STEPS = 32


@dataclass(frozen=True)
class HighlightSpot:
    """A bright pixel turned into a soft disc of its own colour."""

    x: int
    y: int
    size: int
    color: tuple[int, int, int]
    opacity: float
    z: int
    blur: float


def _pixels(pixels) -> np.ndarray:
    arr = np.asarray(pixels)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"expected an array of shape (height, width, 3), got {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise ValueError("image must not be empty")
    return arr.astype(np.uint8)


def _quad_curve(start, control, end) -> list[tuple[float, float]]:
    points = []
    for k in range(_CURVE_STEPS + 1):
        t = k / _CURVE_STEPS
        u = 1 - t
        points.append((
            u * u * start[0] + 2 * u * t * control[0] + t * t * end[0],
            u * u * start[1] + 2 * u * t * control[1] + t * t * end[1],
        ))
    return points


def kernel_shape(sides: int, size: int, sharp: bool) -> np.ndarray:
    """Rasterise the aperture shape as a grayscale weight matrix.

    One side or fewer gives a disc with a bright rim, two sides a lens made of
    two curves, more sides a regular polygon. A sharp kernel has a dimmer
    interior so that edges dominate.
    """
    if size <= 0:
        raise ValueError("kernel size must be positive")
    fill = _SHARP_FILL if sharp else _FULL

    if sides <= 1:
        extent = int(size + 2)
        image = Image.new("L", (extent, extent), 0)
        ImageDraw.Draw(image).ellipse(
            [0, 0, extent - 1, extent - 1], fill=fill, outline=_FULL, width=2)
    elif sides == 2:
        extent = int(2 * size)
        upper = _quad_curve((0, 0), (size, -size), (2 * size, 0))
        lower = _quad_curve((2 * size, 0), (size, size), (0, 0))
        outline = [(x, y + size) for x, y in upper + lower]
        image = Image.new("L", (extent, extent), 0)
        ImageDraw.Draw(image).polygon(outline, fill=fill)
    else:
        corners = polygon_points(0, 0, size, sides)
        xs = [x for x, _ in corners]
        ys = [y for _, y in corners]
        width = max(int(max(xs) - min(xs)), 1)
        height = max(int(max(ys) - min(ys)), 1)
        outline = [(x - min(xs), y - min(ys)) for x, y in corners]
        image = Image.new("L", (width, height), 0)
        ImageDraw.Draw(image).polygon(outline, fill=fill)

    return np.asarray(image, dtype=np.uint8).copy()


def convolve_bokeh(pixels, kernel, strength: float, limit: int) -> np.ndarray:
    """Spread every pixel through ``kernel``, normalising by the dark weight.

    The image is padded with black by half the kernel's larger side; the
    padded result is returned. Each output channel is the weighted sum of the
    window divided by ``strength`` times the weight of window pixels darker
    than ``limit``, clamped to 255.
    """
    arr = _pixels(pixels)
    weights_full = np.asarray(kernel, dtype=np.float64)
    if weights_full.ndim != 2 or 0 in weights_full.shape:
        raise ValueError("kernel must be a non-empty two-dimensional array")
    if strength <= 0:
        raise ValueError("strength must be positive")

    kernel_h, kernel_w = weights_full.shape
    side = max(kernel_h, kernel_w)
    if side % 2 == 0:
        side += 1
    margin = (side - 1) // 2

    height, width = arr.shape[:2]
    padded = np.zeros((height + 2 * margin, width + 2 * margin, 3), dtype=np.uint8)
    padded[margin:margin + height, margin:margin + width] = arr
    result = np.zeros_like(padded)

    weights = weights_full[:max(kernel_h - 2, 0), :max(kernel_w - 2, 0)]
    offsets = list(zip(*np.nonzero(weights)))

    for channel in range(3):
        plane = padded[..., channel].astype(np.float64)
        totals = np.zeros((height, width))
        counts = np.zeros((height, width))
        for dx, dy in offsets:
            window = plane[dx:dx + height, dy:dy + width]
            weight = weights[dx, dy]
            totals += window * weight
            counts += (window < limit) * weight
        with np.errstate(divide="ignore", invalid="ignore"):
            values = totals / (counts * strength)
        values = np.where(counts > 0, values, np.where(totals > 0, 255.0, 0.0))
        values = np.clip(np.trunc(values), 0, 255)
        result[margin:margin + height, margin:margin + width, channel] = values.astype(np.uint8)

    return result


def highlight_bokeh(pixels, limit: float, bokeh_size: int, step: int,
                    rng: Optional[random.Random] = None) -> list[HighlightSpot]:
    """Find pixels whose luma reaches ``limit`` and turn them into spots.

    After a spot the scan skips up to ``step`` further pixels in the row, and
    after a row with spots up to ``step`` further rows.
    """
    if limit >= 255:
        raise ValueError("limit must be below 255")
    if bokeh_size <= 0:
        raise ValueError("bokeh_size must be positive")
    if step < 0:
        raise ValueError("step must not be negative")
    rng = rng if rng is not None else random.Random()
    arr = _pixels(pixels)
    height, width = arr.shape[:2]
    luma = np.trunc(arr[..., 0] * 0.299 + arr[..., 1] * 0.587 + arr[..., 2] * 0.114)
    half = bokeh_size // 2

    spots = []
    row = 0
    while row < height:
        found = False
        col = 0
        while col < width:
            value = int(luma[row, col])
            if value >= limit:
                found = True
                level = (value - limit) / (255 - limit)
                red, green, blue = (int(v) for v in arr[row, col])
                spots.append(HighlightSpot(
                    col - half, row - half, bokeh_size, (red, green, blue),
                    level - 0.3, value, (1 - level) * 2 + 1,
                ))
                col += random_in_range(rng, 0, step)
            col += 1
        if found:
            row += random_in_range(rng, 0, step)
        row += 1
    return spots