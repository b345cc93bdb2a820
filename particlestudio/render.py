"""Rasterising particle shapes and effect layers onto images."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, Optional, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFilter

from .layers import Layer
from .particles import Color, Ellipse, Group, Line, Polygon
from .realbokeh import HighlightSpot

Matrix = tuple[float, float, float, float, float, float]
Primitive = Union[Ellipse, Polygon, Line]
Shape = Union[Ellipse, Polygon, Line, Group]

_IDENTITY: Matrix = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
_ELLIPSE_STEPS = 72
_SUPERSAMPLE = 4
_HIGHLIGHT_EDGE = 1.5


def _rotation(angle: float, origin: tuple[float, float]) -> Matrix:
    if not angle:
        return _IDENTITY
    rad = math.radians(angle)
    cos, sin = math.cos(rad), math.sin(rad)
    ox, oy = origin
    return (cos, -sin, ox - cos * ox + sin * oy,
            sin, cos, oy - sin * ox - cos * oy)


def _compose(outer: Matrix, inner: Matrix) -> Matrix:
    """The transform that applies ``inner`` first, then ``outer``."""
    a1, b1, c1, d1, e1, f1 = outer
    a2, b2, c2, d2, e2, f2 = inner
    return (a1 * a2 + b1 * d2, a1 * b2 + b1 * e2, a1 * c2 + b1 * f2 + c1,
            d1 * a2 + e1 * d2, d1 * b2 + e1 * e2, d1 * c2 + e1 * f2 + f1)


def _apply(matrix: Matrix, points) -> list[tuple[float, float]]:
    a, b, c, d, e, f = matrix
    return [(a * x + b * y + c, d * x + e * y + f) for x, y in points]


def _local(shape: Shape, matrix: Matrix) -> Matrix:
    return _compose(matrix, _rotation(shape.rotation, shape.origin))


def _rgba(color: Color) -> tuple[int, int, int, int]:
    return color.r, color.g, color.b, color.a


def _outline(shape: Primitive) -> list[tuple[float, float]]:
    if isinstance(shape, Ellipse):
        cx, cy = shape.x + shape.width / 2, shape.y + shape.height / 2
        rx, ry = shape.width / 2, shape.height / 2
        return [(cx + rx * math.cos(2 * math.pi * k / _ELLIPSE_STEPS),
                 cy + ry * math.sin(2 * math.pi * k / _ELLIPSE_STEPS))
                for k in range(_ELLIPSE_STEPS)]
    if isinstance(shape, Polygon):
        return list(shape.points)
    return [(shape.x1, shape.y1), (shape.x2, shape.y2)]


def _stroke_pad(shape: Primitive) -> float:
    if isinstance(shape, Line):
        return shape.width / 2
    return shape.edge_width / 2 if shape.edge is not None else 0.0


def _blur_pad(shape: Shape) -> float:
    return max(float(shape.blur), 0.0) * 2 + 2


def _extent(shape: Shape, matrix: Matrix) -> Optional[tuple[float, float, float, float]]:
    local = _local(shape, matrix)
    if isinstance(shape, Group):
        rects = [r for r in (_extent(child, local) for child in shape.children) if r]
        if not rects:
            return None
        pad = _blur_pad(shape)
        return (min(r[0] for r in rects) - pad, min(r[1] for r in rects) - pad,
                max(r[2] for r in rects) + pad, max(r[3] for r in rects) + pad)
    points = _apply(local, _outline(shape))
    pad = _stroke_pad(shape) + _blur_pad(shape)
    xs = [x for x, _ in points]
    ys = [y for _, y in points]
    return min(xs) - pad, min(ys) - pad, max(xs) + pad, max(ys) + pad


def _gradient(shape: Line, local: Matrix, corner, size) -> np.ndarray:
    x0, y0 = corner
    width, height = size
    (cx, cy), = _apply(local, [shape.gradient_center])
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    distance = np.hypot(xs + x0 + 0.5 - cx, ys + y0 + 0.5 - cy)
    position = distance / max(shape.gradient_radius, 1e-9)
    result = np.zeros((height, width, 4))
    if not shape.gradient:
        return result
    stops = [offset for offset, _ in shape.gradient]
    for channel, pick in enumerate((lambda c: c.r, lambda c: c.g, lambda c: c.b, lambda c: c.a)):
        result[..., channel] = np.interp(position, stops, [pick(c) for _, c in shape.gradient])
    return result


def _draw_primitive(shape: Primitive, local: Matrix, corner, size, high_quality) -> Image.Image:
    scale = _SUPERSAMPLE if high_quality else 1
    x0, y0 = corner
    big = (size[0] * scale, size[1] * scale)

    def to_patch(points):
        return [((x - x0) * scale, (y - y0) * scale) for x, y in points]

    if isinstance(shape, Line):
        mask = Image.new("L", big, 0)
        draw = ImageDraw.Draw(mask)
        start, end = to_patch(_apply(local, _outline(shape)))
        draw.line([start, end], fill=255, width=max(1, round(shape.width * scale)))
        cap = shape.width * scale / 2
        for px, py in (start, end):
            draw.ellipse([px - cap, py - cap, px + cap, py + cap], fill=255)
        if scale > 1:
            mask = mask.resize(size, Image.Resampling.LANCZOS)
        paint = _gradient(shape, local, corner, size)
        paint[..., 3] *= np.asarray(mask, dtype=np.float64) / 255
        return Image.fromarray(np.clip(np.round(paint), 0, 255).astype(np.uint8), "RGBA")

    points = to_patch(_apply(local, _outline(shape)))
    patch = Image.new("RGBA", big, (0, 0, 0, 0))
    if shape.fill is not None:
        ImageDraw.Draw(patch).polygon(points, fill=_rgba(shape.fill))
    if shape.edge is not None and shape.edge_width > 0:
        edge = Image.new("RGBA", big, (0, 0, 0, 0))
        ImageDraw.Draw(edge).line(points + points[:1], fill=_rgba(shape.edge),
                                  width=max(1, round(shape.edge_width * scale)), joint="curve")
        patch.alpha_composite(edge)
    if scale > 1:
        patch = patch.resize(size, Image.Resampling.LANCZOS)
    return patch


def _blur(patch: Image.Image, radius: float, high_quality: bool) -> Image.Image:
    if radius <= 0:
        return patch
    kernel = ImageFilter.GaussianBlur(radius / 2) if high_quality else ImageFilter.BoxBlur(radius / 2)
    return patch.convert("RGBa").filter(kernel).convert("RGBA")


def _fade(patch: Image.Image, opacity: float) -> Image.Image:
    opacity = min(max(opacity, 0.0), 1.0)
    if opacity >= 1.0:
        return patch
    arr = np.array(patch)
    arr[..., 3] = np.round(arr[..., 3] * opacity).astype(np.uint8)
    return Image.fromarray(arr, "RGBA")


def _paint(target: Image.Image, offset, shape: Shape, matrix: Matrix, high_quality: bool) -> None:
    if shape.opacity <= 0:
        return
    extent = _extent(shape, matrix)
    if extent is None:
        return
    ox, oy = offset
    x0 = max(math.floor(extent[0]), ox)
    y0 = max(math.floor(extent[1]), oy)
    x1 = min(math.ceil(extent[2]), ox + target.width)
    y1 = min(math.ceil(extent[3]), oy + target.height)
    if x1 <= x0 or y1 <= y0:
        return
    size = (x1 - x0, y1 - y0)
    local = _local(shape, matrix)

    if isinstance(shape, Group):
        patch = Image.new("RGBA", size, (0, 0, 0, 0))
        for child in shape.children:
            _paint(patch, (x0, y0), child, local, high_quality)
    else:
        patch = _draw_primitive(shape, local, (x0, y0), size, high_quality)

    patch = _fade(_blur(patch, float(shape.blur), high_quality), shape.opacity)
    target.alpha_composite(patch, dest=(x0 - ox, y0 - oy))


def render_shape(canvas: Image.Image, shape: Shape, high_quality: bool) -> None:
    """Draw ``shape`` onto the RGBA ``canvas`` in place; canvas pixels are scene units."""
    if canvas.mode != "RGBA":
        raise ValueError("canvas must be an RGBA image")
    _paint(canvas, (0, 0), shape, _IDENTITY, high_quality)


def _base_image(base, width: int, height: int) -> Image.Image:
    arr = np.asarray(base)
    if arr.shape != (height, width, 3):
        raise ValueError(f"base image must have shape {(height, width, 3)}, got {arr.shape}")
    return Image.fromarray(arr.astype(np.uint8), "RGB").convert("RGBA")


def render_scene(base, layers: Iterable[Layer], fog: Optional[Color], width: int, height: int,
                 high_quality: bool) -> Image.Image:
    """Compose the base image, the fog and the visible layers, lowest z first."""
    if width <= 0 or height <= 0:
        raise ValueError("scene dimensions must be positive")
    if base is None:
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    else:
        canvas = _base_image(base, width, height)
    if fog is not None and fog.a:
        canvas.alpha_composite(Image.new("RGBA", (width, height), _rgba(fog)))
    for layer in sorted((layer for layer in layers if layer.visible), key=lambda layer: layer.z):
        for item in layer.items:
            render_shape(canvas, item, high_quality)
    return canvas


def _spot_shape(spot: HighlightSpot) -> Ellipse:
    color = Color(*spot.color)
    return Ellipse(spot.x, spot.y, spot.size, spot.size, fill=color, edge=color,
                   edge_width=_HIGHLIGHT_EDGE, opacity=min(max(spot.opacity, 0.0), 1.0),
                   blur=spot.blur)


def render_highlights(base, spots: Iterable[HighlightSpot], blur: float) -> Image.Image:
    """Blur the base image and lay the highlight spots over it, brightest on top."""
    arr = np.asarray(base)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"expected an array of shape (height, width, 3), got {arr.shape}")
    image = Image.fromarray(arr.astype(np.uint8), "RGB")
    if blur > 0:
        image = image.filter(ImageFilter.GaussianBlur(blur / 2))
    canvas = image.convert("RGBA")
    for spot in sorted(spots, key=lambda spot: spot.z):
        render_shape(canvas, _spot_shape(spot), True)
    return canvas


def save_image(image, path) -> Path:
    """Write ``image`` (a PIL image or pixel array) with the format taken from the suffix."""
    if isinstance(image, np.ndarray):
        image = Image.fromarray(image.astype(np.uint8))
    target = Path(path)
    image.save(target)
    return target