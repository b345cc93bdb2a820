import random

import numpy as np
import pytest
from PIL import Image

from particlestudio import imageops
from particlestudio.particles import RainSettings, SnowSettings, BokehSettings
from particlestudio.studio import Studio, Viewport, main


@pytest.fixture
def picture(tmp_path):
    pixels = np.random.default_rng(3).integers(0, 256, size=(6, 8, 3), dtype=np.uint8)
    path = tmp_path / "input.png"
    Image.fromarray(pixels, "RGB").save(path)
    return path, pixels


def test_zoom_in_one_step():
    view = Viewport()
    factor = view.zoom(240)
    assert factor == pytest.approx(1.2)
    assert view.scale == pytest.approx(1.2)


def test_zoom_in_and_out_returns_to_start():
    view = Viewport(scroll_x=10.0, scroll_y=4.0)
    view.zoom(360)
    view.zoom(-360)
    assert view.scale == pytest.approx(1.0)
    assert view.scroll_x == pytest.approx(10.0)
    assert view.scroll_y == pytest.approx(4.0)


def test_drag_at_pressed_point_keeps_scroll():
    view = Viewport(scale=2.0, scroll_x=5.0, scroll_y=7.0)
    view.press(3, 4)
    assert view.drag(3, 4) == (5.0, 7.0)


def test_drag_moves_opposite_to_pointer():
    view = Viewport()
    view.press(10, 10)
    x, y = view.drag(15, 12)
    assert x < 0 and y < 0


def test_drag_without_press_raises():
    with pytest.raises(RuntimeError):
        Viewport().drag(1, 1)


def test_new_canvas_has_no_image():
    studio = Studio(20, 10)
    assert studio.image is None
    assert studio.render().size == (20, 10)


def test_new_rejects_bad_size():
    with pytest.raises(ValueError):
        Studio(0, 10)


def test_open_loads_pixels(picture):
    path, pixels = picture
    studio = Studio()
    studio.open(path)
    assert np.array_equal(studio.original, pixels)
    assert (studio.width, studio.height) == (8, 6)


def test_apply_then_reset_restores(picture):
    path, pixels = picture
    studio = Studio()
    studio.open(path)
    studio.apply(imageops.negative(studio.original))
    assert np.array_equal(studio.image, 255 - pixels)
    assert studio.reset() is True
    assert np.array_equal(studio.image, pixels)


def test_reset_without_image_returns_false():
    assert Studio(4, 4).reset() is False


def test_apply_without_image_raises():
    with pytest.raises(RuntimeError):
        Studio(4, 4).apply(np.zeros((4, 4, 3), dtype=np.uint8))


def test_apply_wrong_shape_raises(picture):
    path, _ = picture
    studio = Studio()
    studio.open(path)
    with pytest.raises(ValueError):
        studio.apply(np.zeros((2, 2, 3), dtype=np.uint8))


def test_add_rain_creates_named_layer():
    studio = Studio(30, 20, random.Random(1))
    layer = studio.add_rain(RainSettings(count=3), 40)
    assert layer.name == "New Rain Layer 1"
    assert len(layer.items) == 3
    assert len(studio.rain) == 1
    assert studio.fog.a == 40


def test_clear_rain_empties_stack():
    studio = Studio(30, 20, random.Random(1))
    studio.add_rain(RainSettings(count=2), 10)
    studio.add_snow(SnowSettings(count=2), 10, False)
    studio.clear_rain()
    assert len(studio.rain) == 0
    assert len(studio.snow) == 1
    assert studio.fog is None


def test_bokeh_layers_numbered():
    studio = Studio(30, 20, random.Random(2))
    studio.add_bokeh(BokehSettings(count=2), 0)
    second = studio.add_bokeh(BokehSettings(count=2), 0)
    assert second.name == "New Bokeh Layer 2"
    studio.clear_bokeh()
    assert len(studio.bokeh) == 0


def test_opaque_fog_covers_canvas():
    studio = Studio(6, 5, random.Random(0))
    studio.add_rain(RainSettings(count=0), 255)
    arr = np.asarray(studio.render())
    assert arr.shape == (5, 6, 4)
    assert (arr == 255).all()


def test_smart_bokeh_needs_image():
    with pytest.raises(RuntimeError):
        Studio(8, 8).add_smart_bokeh(BokehSettings(count=1), None, 5, 2)


def test_smart_bokeh_adds_shapes(picture):
    path, _ = picture
    studio = Studio(rng=random.Random(5))
    studio.open(path)
    shapes = studio.add_smart_bokeh(BokehSettings(count=4, size_min=2, size_max=3), None, 2, 2)
    assert len(shapes) == 4
    assert studio.smart_bokeh == shapes


def test_save_writes_rendered_image(tmp_path, picture):
    path, pixels = picture
    studio = Studio()
    studio.open(path)
    out = studio.save(tmp_path / "out.png")
    with Image.open(out) as saved:
        assert saved.size == (8, 6)
        assert np.array_equal(np.asarray(saved.convert("RGB")), pixels)


def test_main_writes_output(tmp_path, picture):
    path, _ = picture
    out = tmp_path / "result.png"
    code = main([str(path), "-o", str(out), "--negative", "--rain", "2", "--seed", "1"])
    assert code == 0
    with Image.open(out) as saved:
        assert saved.size == (8, 6)


def test_main_operation_without_input_fails(tmp_path):
    with pytest.raises(SystemExit):
        main(["-o", str(tmp_path / "x.png"), "--gray"])