from __future__ import annotations

from typing import Optional

import numpy as np

from licconfig import EffectChannel
from toroidal import ScalarField

__all__ = ["HSL_UNDEFINED", "rgba_to_hsl", "extract_scalar_field"]

HSL_UNDEFINED = -1.0


def rgba_to_hsl(rgba: np.ndarray) -> np.ndarray:
    """
    (..., 4) RGBA in [0,1] -> (..., 4) HSLA.

    Hue is in [0,1) and set to HSL_UNDEFINED for achromatic pixels (max == min),
    whose saturation is 0. Alpha is carried over unchanged.
    """
    rgba = np.asarray(rgba, dtype=np.float64)
    r, g, b, a = rgba[..., 0], rgba[..., 1], rgba[..., 2], rgba[..., 3]
    mx = np.maximum(np.maximum(r, g), b)
    mn = np.minimum(np.minimum(r, g), b)
    light = (mx + mn) / 2.0
    gray = mx == mn
    # achromatic pixels get overwritten below; keep their denominators nonzero
    delta = np.where(gray, 1.0, mx - mn)

    denom = np.where(light <= 0.5, mx + mn, 2.0 - mx - mn)
    sat = np.where(gray, 0.0, (mx - mn) / np.where(gray, 1.0, denom))

    hue = np.where(
        r == mx,
        (g - b) / delta,
        np.where(g == mx, 2.0 + (b - r) / delta, 4.0 + (r - g) / delta),
    )
    hue = hue / 6.0
    hue = np.where(hue < 0.0, hue + 1.0, hue)
    hue = np.where(gray, HSL_UNDEFINED, hue)
    return np.stack([hue, sat, light, a], axis=-1)


def extract_scalar_field(
    effect: np.ndarray,
    channel: EffectChannel,
    rng: Optional[np.random.Generator] = None,
) -> ScalarField:
    """Pick one HSL channel of the effect image, scale to 0..255 and dither by ±1."""
    channel = EffectChannel.parse(channel)
    rng = rng or np.random.default_rng()
    hsl = rgba_to_hsl(effect)
    val = hsl[..., channel.value] * 255.0
    val = val + (rng.random(val.shape) * 2.0 - 1.0)
    # ties round up
    val = np.floor(val + 0.5)
    return ScalarField(np.clip(val, 0, 255).astype(np.uint8))
