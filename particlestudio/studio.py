"""Editing session: the working image, its effect layers and the view onto it."""

from __future__ import annotations

import argparse
import itertools
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from PIL import Image

from . import imageops
from .layers import Layer, LayerStack
from .particles import (
    BokehSettings,
    Color,
    RainSettings,
    SnowSettings,
    generate_bokeh,
    generate_rain,
    generate_smart_bokeh,
    generate_snow,
)
from .render import render_scene, save_image

_ZOOM_BASE = 1.2
_ZOOM_STEP = 240.0
DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480


@dataclass
class Viewport:
    """Zoom and scroll state of the view onto the scene."""

    scale: float = 1.0
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    _anchor: Optional[tuple[float, float]] = field(default=None, repr=False)

    def zoom(self, delta: float) -> float:
        """Zoom by one wheel movement of ``delta`` and return the factor applied.

        The scroll offsets are scaled with the view so the top-left scene
        point stays in place.
        """
        factor = _ZOOM_BASE ** (delta / _ZOOM_STEP)
        self.scale *= factor
        self.scroll_x *= factor
        self.scroll_y *= factor
        return factor

    def press(self, x: float, y: float) -> None:
        """Start a drag at scene point (x, y)."""
        self._anchor = (self.scale * x, self.scale * y)

    def drag(self, x: float, y: float) -> tuple[float, float]:
        """Pan so that the pressed point follows the pointer; return the scroll."""
        if self._anchor is None:
            raise RuntimeError("drag without a preceding press")
        anchor_x, anchor_y = self._anchor
        self.scroll_x -= self.scale * x - anchor_x
        self.scroll_y -= self.scale * y - anchor_y
        return self.scroll_x, self.scroll_y


class Studio:
    """One image with its rain, snow and bokeh layers."""

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT,
                 rng: Optional[random.Random] = None, high_quality: bool = False) -> None:
        self.rng = rng if rng is not None else random.Random()
        self.high_quality = high_quality
        self.viewport = Viewport()

        self.rain_color = Color(255, 255, 255)
        self.snow_color = Color(255, 255, 255)
        self.bokeh_color1 = Color(33, 255, 170, 200)
        self.bokeh_color2 = Color(255, 37, 40, 200)
        self.fog_rain_color = Color(255, 255, 255, 0)
        self.fog_snow_color = Color(255, 255, 255, 0)
        self.fog_bokeh_color = Color(255, 255, 255, 0)

        self.rain = LayerStack("Rain")
        self.snow = LayerStack("Snow")
        self.bokeh = LayerStack("Bokeh")
        self.smart_bokeh: list = []
        self.fog: Optional[Color] = None

        self.filename: Optional[Path] = None
        self.original: Optional[np.ndarray] = None
        self.image: Optional[np.ndarray] = None
        self.width = width
        self.height = height
        self.new(width, height)

    def _require_image(self) -> np.ndarray:
        if self.original is None:
            raise RuntimeError("no image is open")
        return self.original

    def _clear_effects(self) -> None:
        for stack in (self.rain, self.snow, self.bokeh):
            stack.clear()
        self.smart_bokeh = []
        self.fog = None

    def new(self, width: int, height: int) -> None:
        """Start an empty, transparent canvas of the given size."""
        if width <= 0 or height <= 0:
            raise ValueError("canvas dimensions must be positive")
        self.filename = None
        self.original = None
        self.image = None
        self.width, self.height = width, height
        self._clear_effects()

    def open(self, path) -> np.ndarray:
        """Load an image file as the working image and return its pixels."""
        target = Path(path)
        with Image.open(target) as picture:
            pixels = np.asarray(picture.convert("RGB"), dtype=np.uint8).copy()
        self.filename = target
        self.original = pixels
        self.height, self.width = pixels.shape[:2]
        self.reset()
        return pixels

    def reset(self) -> bool:
        """Show the image as loaded again and drop the fog; False if none is open."""
        if self.original is None:
            return False
        self.image = self.original.copy()
        self.fog = None
        return True

    def apply(self, pixels) -> np.ndarray:
        """Show the result of an image operation on the loaded pixels."""
        self._require_image()
        arr = np.asarray(pixels)
        if arr.shape != (self.height, self.width, 3):
            raise ValueError(
                f"pixels must have shape {(self.height, self.width, 3)}, got {arr.shape}")
        self.image = arr.astype(np.uint8)
        return self.image

    def add_rain(self, settings: RainSettings, fog_alpha: int) -> Layer:
        """Add a layer of rain and lay the rain fog under the layers."""
        self.fog = self.fog_rain_color.with_alpha(fog_alpha)
        items = generate_rain(settings, self.width, self.height, self.rain_color, self.rng)
        return self.rain.add(items)

    def add_snow(self, settings: SnowSettings, fog_alpha: int, cloudy: bool) -> Layer:
        """Add a layer of snow and lay the snow fog under the layers."""
        self.fog = self.fog_snow_color.with_alpha(fog_alpha)
        items = generate_snow(settings, self.width, self.height, self.snow_color, cloudy, self.rng)
        return self.snow.add(items)

    def add_bokeh(self, settings: BokehSettings, fog_alpha: int) -> Layer:
        """Add a layer of bokeh between the two bokeh colours."""
        self.fog = self.fog_bokeh_color.with_alpha(fog_alpha)
        items = generate_bokeh(settings, self.width, self.height,
                               self.bokeh_color1, self.bokeh_color2, self.rng)
        return self.bokeh.add(items)

    def add_smart_bokeh(self, settings: BokehSettings, click: Optional[Sequence[int]],
                        area: int, radius: int) -> list:
        """Add bokeh coloured from the loaded image; return the new shapes."""
        pixels = self._require_image()
        shapes = generate_smart_bokeh(settings, pixels, click, area, radius, self.rng)
        self.smart_bokeh.extend(shapes)
        return shapes

    def _clear(self, stack: LayerStack) -> None:
        self.reset()
        stack.clear()
        self.fog = None

    def clear_rain(self) -> None:
        self._clear(self.rain)

    def clear_snow(self) -> None:
        self._clear(self.snow)

    def clear_bokeh(self) -> None:
        self._clear(self.bokeh)
        self.smart_bokeh = []

    def render(self) -> Image.Image:
        """Compose the shown image, fog and visible layers into an RGBA image."""
        layers = list(itertools.chain(self.rain, self.snow, self.bokeh))
        if self.smart_bokeh:
            layers.insert(0, Layer("Bokeh", list(self.smart_bokeh), z=0))
        return render_scene(self.image, layers, self.fog, self.width, self.height,
                            self.high_quality)

    def save(self, path) -> Path:
        """Render the scene and write it to ``path``."""
        return save_image(self.render(), path)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="particlestudio", description="Add rain, snow and bokeh effects to an image.")
    parser.add_argument("input", nargs="?", help="image to start from")
    parser.add_argument("-o", "--output", required=True, help="file to write")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH)
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT)
    parser.add_argument("--gray", action="store_true")
    parser.add_argument("--negative", action="store_true")
    parser.add_argument("--colorize", type=int, metavar="LEVELS")
    parser.add_argument("--rain", type=int, metavar="COUNT")
    parser.add_argument("--snow", type=int, metavar="COUNT")
    parser.add_argument("--bokeh", type=int, metavar="COUNT")
    parser.add_argument("--fog", type=int, default=0, metavar="ALPHA")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--high-quality", action="store_true")
    return parser


def main(argv=None) -> int:
    parser = _parser()
    args = parser.parse_args(argv)
    if not 0 <= args.fog <= 255:
        parser.error("--fog must lie in 0..255")
    needs_image = args.gray or args.negative or args.colorize is not None
    if needs_image and args.input is None:
        parser.error("image operations need an input image")

    studio = Studio(args.width, args.height, random.Random(args.seed), args.high_quality)
    if args.input is not None:
        studio.open(args.input)
        pixels = studio.original
        if args.gray:
            pixels = imageops.grayscale(pixels)
        if args.negative:
            pixels = imageops.negative(pixels)
        if args.colorize is not None:
            pixels = imageops.colorize(pixels, args.colorize)
        studio.apply(pixels)

    if args.rain:
        studio.add_rain(RainSettings(count=args.rain), args.fog)
    if args.snow:
        studio.add_snow(SnowSettings(count=args.snow), args.fog, False)
    if args.bokeh:
        studio.add_bokeh(BokehSettings(count=args.bokeh), args.fog)

    studio.save(args.output)
    return 0