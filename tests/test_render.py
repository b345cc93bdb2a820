import numpy as np
import pytest
from PIL import Image

from particlestudio.layers import LayerStack
from particlestudio.particles import Color, Ellipse, Group, Line, Polygon
from particlestudio.realbokeh import HighlightSpot
from particlestudio.render import render_highlights, render_scene, render_shape, save_image

RED = Color(255, 0, 0)
BLUE = Color(0, 0, 255)


def _canvas(size=20):
    return Image.new("RGBA", (size, size), (0, 0, 0, 0))


def test_empty_scene_is_transparent():
    image = render_scene(None, [], None, 10, 8, False)
    assert image.size == (10, 8)
    assert not np.asarray(image).any()


def test_base_image_passes_through():
    base = np.random.default_rng(3).integers(0, 256, size=(4, 5, 3), dtype=np.uint8)
    image = np.asarray(render_scene(base, [], None, 5, 4, False))
    assert (image[..., :3] == base).all()
    assert (image[..., 3] == 255).all()


def test_opaque_fog_covers_base():
    base = np.full((4, 4, 3), 200, dtype=np.uint8)
    image = np.asarray(render_scene(base, [], Color(0, 0, 0, 255), 4, 4, False))
    assert (image[..., :3] == 0).all()


def test_scene_rejects_mismatched_base_and_empty_size():
    with pytest.raises(ValueError):
        render_scene(np.zeros((3, 3, 3), dtype=np.uint8), [], None, 4, 4, False)
    with pytest.raises(ValueError):
        render_scene(None, [], None, 0, 4, False)


def test_filled_ellipse_is_drawn():
    canvas = _canvas()
    render_shape(canvas, Ellipse(0, 0, 20, 20, fill=RED), False)
    assert canvas.getpixel((10, 10)) == (255, 0, 0, 255)
    assert canvas.getpixel((0, 0))[3] == 0


def test_render_shape_requires_rgba():
    with pytest.raises(ValueError):
        render_shape(Image.new("RGB", (4, 4)), Ellipse(0, 0, 4, 4, fill=RED), False)


def test_rotation_turns_polygon_about_its_centre():
    canvas = _canvas(24)
    shape = Polygon(((10, 0), (12, 0), (12, 20), (10, 20)), fill=BLUE, rotation=90)
    render_shape(canvas, shape, False)
    assert canvas.getpixel((5, 10))[3] == 255
    assert canvas.getpixel((11, 2))[3] == 0


def test_line_is_painted_with_gradient_colour():
    canvas = _canvas()
    line = Line(10, 2, 10, 18, 3, ((0.0, RED), (1.0, RED)), (10, 2), 16)
    render_shape(canvas, line, False)
    assert canvas.getpixel((10, 10)) == (255, 0, 0, 255)
    assert canvas.getpixel((2, 10))[3] == 0


def test_group_opacity_fades_children():
    canvas = _canvas()
    render_shape(canvas, Group((Ellipse(0, 0, 20, 20, fill=RED),), opacity=0.5), False)
    assert 125 <= canvas.getpixel((10, 10))[3] <= 130


def test_blur_spreads_beyond_the_shape():
    sharp = _canvas()
    render_shape(sharp, Ellipse(8, 8, 4, 4, fill=Color(255, 255, 255)), True)
    soft = _canvas()
    render_shape(soft, Ellipse(8, 8, 4, 4, fill=Color(255, 255, 255), blur=6), True)
    assert sharp.getpixel((5, 10))[3] == 0
    assert soft.getpixel((5, 10))[3] > 0
    assert soft.getpixel((10, 10))[3] < sharp.getpixel((10, 10))[3]


def test_layers_follow_z_and_visibility():
    stack = LayerStack("Bokeh")
    stack.add([Ellipse(0, 0, 20, 20, fill=RED)])
    stack.add([Ellipse(0, 0, 20, 20, fill=BLUE)])
    image = render_scene(None, stack, None, 20, 20, False)
    assert image.getpixel((10, 10)) == (0, 0, 255, 255)

    stack.move_up(1)
    image = render_scene(None, stack, None, 20, 20, False)
    assert image.getpixel((10, 10)) == (255, 0, 0, 255)

    stack.toggle(1)
    image = render_scene(None, stack, None, 20, 20, False)
    assert image.getpixel((10, 10)) == (0, 0, 255, 255)


def test_highlights_brighten_their_spot():
    base = np.zeros((20, 20, 3), dtype=np.uint8)
    spot = HighlightSpot(6, 6, 8, (255, 255, 255), 0.7, 255, 1.0)
    image = render_highlights(base, [spot], 2)
    assert image.size == (20, 20)
    assert image.getpixel((10, 10))[0] > image.getpixel((0, 0))[0]


def test_save_image_round_trip(tmp_path):
    base = np.random.default_rng(5).integers(0, 256, size=(4, 5, 3), dtype=np.uint8)
    image = render_scene(base, [], None, 5, 4, False)
    path = save_image(image, tmp_path / "scene.png")
    with Image.open(path) as loaded:
        assert (np.asarray(loaded.convert("RGBA")) == np.asarray(image)).all()