import numpy as np
import pytest

from toroidal import ImageBuffer, ScalarField


def _image(h=3, w=5):
    return ImageBuffer(np.random.default_rng(0).random((h, w, 4)))


def test_at_wraps_negative_and_overflowing_coordinates():
    img = _image()
    np.testing.assert_array_equal(img.at(-1, 0), img.at(img.width - 1, 0))
    np.testing.assert_array_equal(img.at(img.width, img.height), img.at(0, 0))
    np.testing.assert_array_equal(img.at(-2 * img.width - 1, -1), img.data[img.height - 1, img.width - 1])


def test_at_accepts_coordinate_arrays():
    img = _image()
    ys, xs = np.mgrid[-1:2, -1:4]
    assert img.at(xs, ys).shape == (3, 5, 4)


def test_scalar_field_reads_as_int32():
    field = ScalarField(np.full((2, 2), 255))
    vals = field.at(np.array([0, 1, 2]), np.array([0, -1, 5]))
    assert vals.dtype == np.int32
    assert (vals * 8).max() == 2040


def test_empty_buffer_is_rejected():
    with pytest.raises(ValueError):
        ImageBuffer(np.zeros((0, 4, 4)))
