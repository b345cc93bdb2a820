# particlestudio

Lay rain, snow and bokeh particles over an image and stack them as layers.
You can also make simple colour adjustments along the way. Everything is
drawn with Pillow on NumPy pixel arrays.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
particlestudio --help
```

The `particlestudio` command starts from an input image, or from a blank
transparent canvas when no input is given. It adds particle layers and writes
the result to the file named by `-o/--output`. Pillow picks the file format
from the suffix. The result has an alpha channel, so use a format that keeps
one, such as PNG, TIFF or WebP.

Options:

- `input`: image to start from (optional)
- `-o`, `--output`: file to write (required)
- `--width`, `--height`: size of the blank canvas when there is no input
  (default 640 x 480)
- `--gray`, `--negative`, `--colorize LEVELS`: image operations, applied in
  that order. They need an input image.
- `--rain COUNT`, `--snow COUNT`, `--bokeh COUNT`: add one layer of that many
  particles
- `--fog ALPHA`: alpha (0..255) of the white fog laid under the particles
- `--seed`: seed for the random generator, for repeatable output
- `--high-quality`: supersampled shapes and Gaussian rather than box blur

Example:

```
particlestudio photo.png --rain 300 --fog 40 --seed 1 -o photo-rain.png
```

## Library use

### Image operations: `particlestudio.imageops`

These functions work on RGB arrays of shape `(height, width, 3)` and return
new `uint8` arrays:

- `grayscale`, `negative`, and `colorize(pixels, color_count)`, which
  posterizes each channel to 2..255 levels
- `select_rgb_channels(pixels, mask)` and `select_yuv_channels(pixels, mask)`.
  The mask is built from `Channel` flags (R/Y = 1, G/U = 2, B/V = 4). One
  channel is shown as gray. With two channels the third is zeroed. With none
  or all, every channel is shown.
- `rgb_to_yuv`
- `color_correction(pixels, red, green, blue, brightness, contrast, gamma)`,
  with the gamma exponent taken from `gamma_from_slider(value)`
- `ppm_encode` and `ppm_decode` for binary PPM (P6) data

### Particles: `particlestudio.particles`

`generate_rain`, `generate_snow`, `generate_bokeh` and
`generate_smart_bokeh` take `RainSettings`, `SnowSettings` or
`BokehSettings`. They return shapes (`Ellipse`, `Polygon`, `Line`, `Group`)
in scene coordinates and accept a `random.Random` for repeatable results.
`generate_smart_bokeh` takes each shape's colour from the image around it. If
you pass a `click` point, it takes the colour from around that point instead.

### Layers: `particlestudio.layers`

`LayerStack` keeps `Layer` objects in drawing order. It supports:

- `add`
- `move_up` and `move_down`
- `toggle` (show or hide)
- `delete` and `clear`
- `visible_layers`

### Lens effects: `particlestudio.realbokeh`

- `convolve_bokeh` spreads an image through an aperture kernel made by
  `kernel_shape`. It returns the image padded by half the kernel size.
- `highlight_bokeh` finds bright pixels and returns them as `HighlightSpot`
  values.

### Drawing: `particlestudio.render`

- `render_shape` draws one shape onto an RGBA Pillow image.
- `render_scene` composes a base image, fog and visible layers.
- `render_highlights` blurs an image and draws highlight spots over it.
- `save_image` writes the result to a file.

### Session: `particlestudio.studio`

`Studio` ties the pieces together:

```python
import random

from particlestudio.particles import RainSettings
from particlestudio.studio import Studio

studio = Studio(rng=random.Random(1))
studio.open("photo.png")
studio.add_rain(RainSettings(), fog_alpha=40)
studio.save("photo-rain.png")
```

`Viewport` holds zoom and scroll state (`zoom`, `press`, `drag`) for a front
end that shows the scene.

## What this package does not do

There is no interactive editor window. The package has no colour pickers, no
on-screen layer table and no mouse-driven placement. Layer reordering and
hiding, smart bokeh, and the lens effects in `particlestudio.realbokeh` are
available from Python only, not from the `particlestudio` command.