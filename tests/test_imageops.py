import numpy as np
import pytest

from particlestudio.imageops import (
    Channel,
    color_correction,
    colorize,
    gamma_from_slider,
    grayscale,
    negative,
    ppm_decode,
    ppm_encode,
    rgb_to_yuv,
    select_rgb_channels,
    select_yuv_channels,
)


@pytest.fixture
def image():
    rng = np.random.default_rng(7)
    return rng.integers(0, 256, size=(5, 4, 3), dtype=np.uint8)


def test_ppm_header_format():
    pixels = np.zeros((1, 2, 3), dtype=np.uint8)
    encoded = ppm_encode(pixels)
    assert encoded.startswith(b"P6 2 1 255 ")
    assert len(encoded) == len(b"P6 2 1 255 ") + 6


def test_ppm_round_trip(image):
    assert np.array_equal(ppm_decode(ppm_encode(image)), image)


def test_ppm_decode_accepts_comments_and_newlines(image):
    body = image.tobytes()
    data = b"P6\n# a comment\n4 5\n255\n" + body
    assert np.array_equal(ppm_decode(data), image)


def test_ppm_decode_rejects_bad_magic(image):
    with pytest.raises(ValueError):
        ppm_decode(b"P3 4 5 255 " + image.tobytes())


def test_ppm_decode_rejects_truncated_data(image):
    with pytest.raises(ValueError):
        ppm_decode(ppm_encode(image)[:-1])


def test_invalid_shape_rejected():
    with pytest.raises(ValueError):
        negative(np.zeros((3, 3), dtype=np.uint8))


def test_grayscale_equal_channels_and_bounds(image):
    gray = grayscale(image)
    assert np.array_equal(gray[..., 0], gray[..., 1])
    assert np.array_equal(gray[..., 1], gray[..., 2])
    assert gray.max() <= image.max()
    assert grayscale(np.zeros((2, 2, 3), dtype=np.uint8)).max() == 0


def test_negative_is_involution(image):
    assert np.array_equal(negative(negative(image)), image)
    assert np.array_equal(negative(image).astype(int) + image.astype(int), np.full(image.shape, 255))


def test_colorize_two_levels(image):
    result = colorize(image, 2)
    assert set(np.unique(result)) <= {0, 255}
    assert np.array_equal(result == 255, image >= 128)


def test_colorize_is_idempotent_and_monotonic(image):
    once = colorize(image, 5)
    assert np.array_equal(colorize(once, 5), once)
    ramp = np.arange(256, dtype=np.uint8).reshape(1, 256, 1).repeat(3, axis=2)
    levels = colorize(ramp, 5)[0, :, 0]
    assert np.all(np.diff(levels.astype(int)) >= 0)
    assert len(np.unique(levels)) == 5


@pytest.mark.parametrize("count", [0, 1, 256])
def test_colorize_rejects_bad_count(image, count):
    with pytest.raises(ValueError):
        colorize(image, count)


def test_select_single_channel_is_gray(image):
    result = select_rgb_channels(image, Channel.GREEN)
    for index in range(3):
        assert np.array_equal(result[..., index], image[..., 1])


def test_select_two_channels_zeroes_third(image):
    result = select_rgb_channels(image, Channel.RED | Channel.BLUE)
    assert np.array_equal(result[..., 0], image[..., 0])
    assert not result[..., 1].any()
    assert np.array_equal(result[..., 2], image[..., 2])


@pytest.mark.parametrize("mask", [0, 7])
def test_select_none_or_all_is_identity(image, mask):
    assert np.array_equal(select_rgb_channels(image, mask), image)


def test_select_rejects_bad_mask(image):
    with pytest.raises(ValueError):
        select_rgb_channels(image, 8)


def test_yuv_of_black():
    yuv = rgb_to_yuv(np.zeros((1, 1, 3), dtype=np.uint8))
    assert yuv[0, 0].tolist() == [0, 128, 128]


def test_select_yuv_matches_conversion(image):
    yuv = rgb_to_yuv(image)
    assert np.array_equal(select_yuv_channels(image, 0), yuv)
    single = select_yuv_channels(image, Channel.U)
    assert np.array_equal(single[..., 2], yuv[..., 1])


def test_gamma_from_slider():
    assert gamma_from_slider(400) == 1.0
    assert gamma_from_slider(500) == 0.0


def test_color_correction_extremes_unchanged():
    pixels = np.array([[[0, 255, 0]]], dtype=np.uint8)
    assert np.array_equal(color_correction(pixels, 0, 0, 0, 0, 0, 1.0), pixels)


def test_color_correction_saturates(image):
    brightest = color_correction(image, 0, 0, 0, 255, 0, 1.0)
    darkest = color_correction(image, 0, 0, 0, -255, 0, 1.0)
    assert brightest.tolist() == np.full(image.shape, 255).tolist()
    assert darkest.tolist() == np.zeros(image.shape, dtype=int).tolist()


def test_color_correction_channel_offset_only_affects_its_channel():
    pixels = np.array([[[0, 0, 0]]], dtype=np.uint8)
    result = color_correction(pixels, 255, 0, 0, 0, 0, 1.0)
    assert result[0, 0, 0] == 255
    assert result[0, 0, 1] == result[0, 0, 2] == 0


def test_color_correction_rejects_singular_contrast(image):
    with pytest.raises(ValueError):
        color_correction(image, 0, 0, 0, 0, 259, 1.0)