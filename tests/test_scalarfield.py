import numpy as np
import pytest

from licconfig import EffectChannel, InvalidArgument
from scalarfield import HSL_UNDEFINED, extract_scalar_field, rgba_to_hsl
from toroidal import ScalarField


@pytest.mark.parametrize("level", [0.0, 0.3, 0.5, 1.0])
def test_gray_has_zero_saturation_and_undefined_hue(level):
    h, s, l, a = rgba_to_hsl(np.array([level, level, level, 0.25]))
    assert s == 0.0
    assert h == HSL_UNDEFINED
    assert l == pytest.approx(level)
    assert a == 0.25


@pytest.mark.parametrize(
    "rgb, hue",
    [
        ((1.0, 0.0, 0.0), 0.0),
        ((0.0, 1.0, 0.0), 1.0 / 3.0),
        ((0.0, 0.0, 1.0), 2.0 / 3.0),
        ((1.0, 0.0, 1.0), 5.0 / 6.0),
    ],
)
def test_primary_hues(rgb, hue):
    h, s, l, _ = rgba_to_hsl(np.array([*rgb, 1.0]))
    assert h == pytest.approx(hue)
    assert s == pytest.approx(1.0)
    assert l == pytest.approx(0.5)


def test_saturation_above_half_lightness():
    # max .9, min .5 -> l=.7, s=(.4)/(2-1.4)
    _, s, l, _ = rgba_to_hsl(np.array([0.9, 0.5, 0.7, 1.0]))
    assert l == pytest.approx(0.7)
    assert s == pytest.approx(0.4 / 0.6)


def test_brightness_field_is_lightness_plus_dither():
    rng = np.random.default_rng(0)
    effect = rng.random((6, 9, 4))
    field = extract_scalar_field(effect, EffectChannel.BRIGHTNESS, np.random.default_rng(1))
    assert isinstance(field, ScalarField)
    assert field.data.dtype == np.uint8
    assert field.shape == (6, 9)
    expected = rgba_to_hsl(effect)[..., 2] * 255.0
    assert np.all(np.abs(field.data.astype(float) - expected) <= 1.5)


def test_hue_of_gray_image_clamps_to_zero():
    effect = np.full((4, 4, 4), 0.4)
    field = extract_scalar_field(effect, "hue", np.random.default_rng(2))
    assert np.all(field.data == 0)


def test_full_saturation_stays_near_top():
    effect = np.zeros((3, 3, 4))
    effect[..., 0] = 1.0
    effect[..., 3] = 1.0
    field = extract_scalar_field(effect, EffectChannel.SATURATION, np.random.default_rng(3))
    assert np.all(field.data >= 254)


def test_dither_is_reproducible_with_seeded_rng():
    effect = np.random.default_rng(4).random((5, 5, 4))
    a = extract_scalar_field(effect, EffectChannel.BRIGHTNESS, np.random.default_rng(9))
    b = extract_scalar_field(effect, EffectChannel.BRIGHTNESS, np.random.default_rng(9))
    np.testing.assert_array_equal(a.data, b.data)


def test_unknown_channel_is_rejected():
    with pytest.raises(InvalidArgument):
        extract_scalar_field(np.zeros((2, 2, 4)), "VALUE")
