"""Random particle generation for rain, snow and bokeh effect layers."""

from __future__ import annotations

import math
import random
import struct
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np

Point = tuple[float, float]
Rect = tuple[float, float, float, float]


@dataclass(frozen=True)
class Color:
    """An RGBA colour with 8-bit components."""

    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for part in (self.r, self.g, self.b, self.a):
            if not 0 <= part <= 255:
                raise ValueError(f"colour components must lie in 0..255, got {self}")

    @property
    def name(self) -> str:
        """The colour as ``#rrggbb``, alpha left out."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"

    def with_alpha(self, alpha: int) -> "Color":
        return Color(self.r, self.g, self.b, alpha)


WHITE = Color(255, 255, 255)
TRANSPARENT = Color(0, 0, 0, 0)


def _rotated_bounds(rect: Rect, angle: float, origin: Point) -> Rect:
    if not angle:
        return rect
    left, top, width, height = rect
    ox, oy = origin
    rad = math.radians(angle)
    cos, sin = math.cos(rad), math.sin(rad)
    corners = [(left, top), (left + width, top), (left, top + height), (left + width, top + height)]
    xs, ys = [], []
    for x, y in corners:
        dx, dy = x - ox, y - oy
        xs.append(ox + dx * cos - dy * sin)
        ys.append(oy + dx * sin + dy * cos)
    return min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys)


def _center(rect: Rect) -> Point:
    left, top, width, height = rect
    return left + width / 2, top + height / 2


@dataclass(frozen=True)
class Ellipse:
    """An ellipse inscribed in the rectangle (x, y, width, height)."""

    x: float
    y: float
    width: float
    height: float
    fill: Optional[Color] = None
    edge: Optional[Color] = None
    edge_width: float = 0.0
    rotation: float = 0.0
    opacity: float = 1.0
    blur: int = 0

    def bounds(self) -> Rect:
        pad = self.edge_width / 2 if self.edge is not None else 0.0
        return self.x - pad, self.y - pad, self.width + 2 * pad, self.height + 2 * pad

    @property
    def origin(self) -> Point:
        """Rotation origin: the centre of the ellipse's rectangle."""
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass(frozen=True)
class Polygon:
    """A closed polygon."""

    points: tuple[Point, ...]
    fill: Optional[Color] = None
    edge: Optional[Color] = None
    edge_width: float = 0.0
    rotation: float = 0.0
    opacity: float = 1.0
    blur: int = 0

    def bounds(self) -> Rect:
        xs = [x for x, _ in self.points]
        ys = [y for _, y in self.points]
        pad = self.edge_width / 2 if self.edge is not None else 0.0
        return (min(xs) - pad, min(ys) - pad,
                max(xs) - min(xs) + 2 * pad, max(ys) - min(ys) + 2 * pad)

    @property
    def origin(self) -> Point:
        """Rotation origin: the centre of the bounding rectangle."""
        return _center(self.bounds())


@dataclass(frozen=True)
class Line:
    """A round-capped stroke painted with a radial gradient."""

    x1: float
    y1: float
    x2: float
    y2: float
    width: float
    gradient: tuple[tuple[float, Color], ...]
    gradient_center: Point
    gradient_radius: float
    rotation: float = 0.0
    opacity: float = 1.0
    blur: int = 0

    def bounds(self) -> Rect:
        pad = self.width / 2
        left, top = min(self.x1, self.x2), min(self.y1, self.y2)
        return (left - pad, top - pad,
                abs(self.x2 - self.x1) + 2 * pad, abs(self.y2 - self.y1) + 2 * pad)

    @property
    def origin(self) -> Point:
        return (self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2


Shape = Union[Ellipse, Polygon, Line, "Group"]


@dataclass(frozen=True)
class Group:
    """Shapes transformed, faded and blurred together."""

    children: tuple[Shape, ...] = field(default_factory=tuple)
    rotation: float = 0.0
    opacity: float = 1.0
    blur: int = 0

    def bounds(self) -> Rect:
        if not self.children:
            return 0.0, 0.0, 0.0, 0.0
        rects = [_rotated_bounds(child.bounds(), child.rotation, child.origin)
                 for child in self.children]
        left = min(r[0] for r in rects)
        top = min(r[1] for r in rects)
        right = max(r[0] + r[2] for r in rects)
        bottom = max(r[1] + r[3] for r in rects)
        return left, top, right - left, bottom - top

    @property
    def origin(self) -> Point:
        return _center(self.bounds())


@dataclass
class RainSettings:
    count: int = 100
    size_min: int = 10
    size_max: int = 40
    rotation_min: int = 0
    rotation_max: int = 10
    blur_min: int = 0
    blur_max: int = 2
    thickness_min: float = 0.5
    thickness_max: float = 2.0
    opacity_min: float = 0.3
    opacity_max: float = 0.9


@dataclass
class SnowSettings:
    count: int = 100
    size_min: int = 2
    size_max: int = 8
    rotation_min: int = 0
    rotation_max: int = 360
    blur_min: int = 0
    blur_max: int = 2
    kernel_min: int = 1
    kernel_max: int = 4
    motion_min: int = 0
    motion_max: int = 4
    opacity_min: float = 0.3
    opacity_max: float = 1.0


@dataclass
class BokehSettings:
    count: int = 30
    sides: int = 0
    size_min: int = 10
    size_max: int = 40
    rotation_min: int = 0
    rotation_max: int = 90
    blur_min: int = 0
    blur_max: int = 5
    thickness_min: float = 0.5
    thickness_max: float = 2.0
    opacity_min: float = 0.2
    opacity_max: float = 0.6
    edge_opacity_min: float = 0.3
    edge_opacity_max: float = 0.8


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else random.Random()


def _draw(rng: random.Random, modulus: int) -> int:
    """A 32-bit random number reduced modulo ``modulus``."""
    if modulus <= 0:
        raise ValueError(f"random range must be positive, got {modulus}")
    return rng.getrandbits(32) % modulus


def _f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def random_in_range(rng: random.Random, low: int, high: int) -> int:
    """A random integer in ``low..high`` inclusive."""
    if high < low:
        raise ValueError(f"empty range {low}..{high}")
    return _draw(_rng(rng), high - low + 1) + low


def random_fraction(rng: random.Random, low: float, high: float) -> float:
    """A random value in ``low..high`` on a grid of hundredths above ``low``."""
    if high < low:
        raise ValueError(f"empty range {low}..{high}")
    return _draw(_rng(rng), int((high - low) * 100 + 1)) / 100.0 + low


def polygon_points(x: float, y: float, size: float, sides: int) -> list[Point]:
    """Corners of a regular polygon of ``sides`` corners around (x, y)."""
    if sides < 3:
        raise ValueError("a polygon needs at least 3 sides")
    step = 360.0 / sides
    return [
        (x + size * math.cos(i * step * 3.14 / 180.0), y + size * math.sin(i * step * 3.14 / 180.0))
        for i in range(sides)
    ]


def _check_canvas(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError("canvas dimensions must be positive")


def generate_rain(settings: RainSettings, width: int, height: int, color: Color,
                  rng: random.Random) -> list[Line]:
    """Rain streaks scattered over a ``width`` x ``height`` canvas."""
    _check_canvas(width, height)
    rng = _rng(rng)
    s = settings
    drops = []
    for _ in range(s.count):
        size = random_in_range(rng, s.size_min, s.size_max)
        rotation = random_in_range(rng, s.rotation_min, s.rotation_max)
        blur = random_in_range(rng, s.blur_min, s.blur_max)
        thickness = random_fraction(rng, s.thickness_min, s.thickness_max)
        opacity = random_fraction(rng, s.opacity_min, s.opacity_max)
        start_x = _draw(rng, width)
        start_y = _draw(rng, height + size) - size

        stops: dict[float, Color] = {}
        for stop_color in (TRANSPARENT, color, TRANSPARENT, color, TRANSPARENT):
            stops[_draw(rng, 10) / 10.0] = stop_color
        stops[1.0] = color

        drops.append(Line(
            start_x, start_y, start_x, start_y + size, thickness,
            tuple(sorted(stops.items(), key=lambda stop: stop[0])),
            (start_x, start_y), size, rotation, opacity, blur,
        ))
    return drops


def generate_snow(settings: SnowSettings, width: int, height: int, color: Color,
                  cloudy: bool, rng: random.Random) -> list[Group]:
    """Snow flakes, each a group of small ellipses smeared by motion."""
    _check_canvas(width, height)
    rng = _rng(rng)
    s = settings
    flakes = []
    for _ in range(s.count):
        size = random_in_range(rng, s.size_min, s.size_max)
        rotation = random_in_range(rng, s.rotation_min, s.rotation_max)
        blur = random_in_range(rng, s.blur_min, s.blur_max)
        kernel = random_in_range(rng, s.kernel_min, s.kernel_max)
        motion = random_in_range(rng, s.motion_min, s.motion_max)
        opacity = random_fraction(rng, s.opacity_min, s.opacity_max)
        start_x = _draw(rng, width)
        start_y = _draw(rng, height + size) - size

        spread_x = max(size - _trunc_div(motion, 2) + 1, 1)
        spread_y = size + motion + 1
        half = _trunc_div(size, 2)

        parts = []
        for _ in range(kernel):
            tx = _draw(rng, spread_x) - _trunc_div(spread_x, 2)
            ty = _draw(rng, spread_y) - _trunc_div(spread_y, 2)
            sx = _draw(rng, half + 1) + half
            sy = _draw(rng, half + 1) + half
            turn = _draw(rng, 360)
            part_opacity = random_fraction(rng, s.opacity_min, s.opacity_max) if cloudy else 1.0
            parts.append(Ellipse(start_x + tx, start_y + ty, sx, sy, fill=color,
                                 rotation=turn, opacity=part_opacity))
        flakes.append(Group(tuple(parts), rotation, opacity, blur))
    return flakes


def _bokeh_common(rng: random.Random, s: BokehSettings) -> tuple[int, int, float, float, float]:
    rotation = random_in_range(rng, s.rotation_min, s.rotation_max)
    blur = random_in_range(rng, s.blur_min, s.blur_max)
    thickness = _f32(random_fraction(rng, s.thickness_min, s.thickness_max))
    opacity = _f32(random_fraction(rng, s.opacity_min, s.opacity_max))
    edge_opacity = _f32(random_fraction(rng, s.edge_opacity_min, s.edge_opacity_max))
    return rotation, blur, thickness, opacity, edge_opacity


def _alpha(opacity: float) -> int:
    return int(_f32(opacity * 255))


def _bokeh_shape(sides: int, x: int, y: int, size: int, fill: Color, edge: Color,
                 thickness: float, rotation: int, opacity: float, blur: int) -> Shape:
    if sides >= 3:
        return Polygon(tuple(polygon_points(x, y, size, sides)), fill, edge, thickness,
                       rotation, opacity, blur)
    return Ellipse(x, y, size, size, fill, edge, thickness, rotation, opacity, blur)


def generate_bokeh(settings: BokehSettings, width: int, height: int, color1: Color,
                   color2: Color, rng: random.Random) -> list[Shape]:
    """Bokeh discs or polygons coloured between ``color1`` and ``color2``."""
    _check_canvas(width, height)
    rng = _rng(rng)
    s = settings
    low = Color(min(color1.r, color2.r), min(color1.g, color2.g),
                min(color1.b, color2.b), min(color1.a, color2.a))
    deltas = (abs(color1.r - color2.r), abs(color1.g - color2.g),
              abs(color1.b - color2.b), abs(color1.a - color2.a))
    shapes = []
    for _ in range(s.count):
        size = random_in_range(rng, s.size_min, s.size_max)
        x = _draw(rng, width + size) - size
        y = _draw(rng, height + size) - size
        rotation, blur, thickness, opacity, edge_opacity = _bokeh_common(rng, s)
        r, g, b, a = (_draw(rng, delta + 1) + base
                      for delta, base in zip(deltas, (low.r, low.g, low.b, low.a)))
        fill = Color(r, g, b, a)
        edge = Color(r, g, b, _alpha(edge_opacity))
        shapes.append(_bokeh_shape(s.sides, x, y, size, fill, edge, thickness,
                                   rotation, opacity, blur))
    return shapes


def _clamp(value: int, upper: int) -> int:
    return min(max(value, 0), upper)


def generate_smart_bokeh(settings: BokehSettings, pixels, click: Optional[Sequence[int]],
                         area: int, radius: int, rng: random.Random) -> list[Shape]:
    """Bokeh coloured from the image under each shape, or under ``click``.

    With ``click`` the shapes gather within ``area`` of the clicked point and
    all take their colour around it; without, they scatter over the image.
    """
    arr = np.asarray(pixels)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"expected an array of shape (height, width, 3), got {arr.shape}")
    height, width = arr.shape[:2]
    _check_canvas(width, height)
    if radius <= 0:
        raise ValueError("radius must be positive")
    rng = _rng(rng)
    s = settings
    sums = arr.astype(np.int64)
    shapes = []
    for _ in range(s.count):
        size = random_in_range(rng, s.size_min, s.size_max)
        if click is not None:
            x = click[0] + _draw(rng, 2 * area) - area
            y = click[1] + _draw(rng, 2 * area) - area
        else:
            x = _draw(rng, width + size) - size
            y = _draw(rng, height + size) - size
        rotation, blur, thickness, opacity, edge_opacity = _bokeh_common(rng, s)

        cx, cy = (click[0], click[1]) if click is not None else (x, y)
        top, bottom = _clamp(cy - radius, height - 1), _clamp(cy + radius, height - 1)
        left, right = _clamp(cx - radius, width - 1), _clamp(cx + radius, width - 1)
        totals = sums[top:bottom, left:right].reshape(-1, 3).sum(axis=0)

        channels = []
        for total in totals:
            value = int(total) // (4 * radius * radius) + 2 * radius
            value += _draw(rng, 2 * radius)
            channels.append(min(value, 255))
        r, g, b = channels
        fill = Color(r, g, b, _alpha(opacity))
        edge = Color(r, g, b, _alpha(edge_opacity))
        shapes.append(_bokeh_shape(s.sides, x, y, size, fill, edge, thickness,
                                   rotation, opacity, blur))
    return shapes