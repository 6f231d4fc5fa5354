"""
streamline.py — line integral along the local flow direction.

Every output pixel (x, y) with unit flow (vx, vy) integrates

    filter(u) * sample(x - u*vx, y - u*vy),   u in [-L, L]

with the trapezoidal rule. The sample is either gradient noise (white-noise
mode, a scalar brightness factor) or a bilinear RGBA lookup in the source
image (source-image mode, the output color itself).

All functions work on coordinate arrays of any shape, so a whole row band is
integrated with one pass over the integration nodes.
"""
from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np

from licconfig import ConvolveWith, ResolvedParameters
from noisefield import NoiseField, VectorGrid
from toroidal import ImageBuffer

__all__ = [
    "tent_filter",
    "integration_offsets",
    "bilinear_rgba",
    "getpixel",
    "Streamline",
    "NoiseStreamline",
    "ImageStreamline",
    "streamline_for",
]


# ============================ kernels ============================

def tent_filter(u, length: float) -> np.ndarray:
    f = 1.0 - np.abs(np.asarray(u, dtype=np.float64)) / length
    return np.maximum(f, 0.0)


def integration_offsets(length: float, steps: float) -> np.ndarray:
    """Trapezoid nodes -L, -L + h, ... up to L with h = 2L / steps."""
    step = 2.0 * length / steps
    n = max(1, int(math.floor(steps + 1e-9)))
    return -length + step * np.arange(n + 1, dtype=np.float64)


# ============================ sampling ============================

def bilinear_rgba(p00: np.ndarray, p10: np.ndarray, p01: np.ndarray, p11: np.ndarray, fx, fy) -> np.ndarray:
    """
    Blend four RGBA corners with associated alpha.

    Alpha is plain bilinear; RGB is blended premultiplied and divided by the
    blended alpha, so transparent corners do not bleed their color. A fully
    transparent result has zero color; with fx == fy == 0 the result is p00.
    """
    fx = np.asarray(fx, dtype=np.float64)[..., None]
    fy = np.asarray(fy, dtype=np.float64)[..., None]
    ix = 1.0 - fx
    iy = 1.0 - fy

    a0, a1, a2, a3 = p00[..., 3:], p10[..., 3:], p01[..., 3:], p11[..., 3:]
    alpha = iy * (ix * a0 + fx * a1) + fy * (ix * a2 + fx * a3)
    rgb = (iy * (ix * a0 * p00[..., :3] + fx * a1 * p10[..., :3])
           + fy * (ix * a2 * p01[..., :3] + fx * a3 * p11[..., :3]))

    with np.errstate(divide="ignore", invalid="ignore"):
        rgb = np.where(alpha > 0.0, rgb / alpha, 0.0)
    rgb = np.where((fx == 0.0) & (fy == 0.0) & (a0 > 0.0), p00[..., :3], rgb)
    return np.concatenate([rgb, alpha], axis=-1)


def getpixel(image: ImageBuffer, u, v) -> np.ndarray:
    """Bilinear RGBA sample at real coordinates (u, v) with toroidal wraparound."""
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)
    fu = np.floor(u)
    fv = np.floor(v)
    x1 = fu.astype(np.int64)
    y1 = fv.astype(np.int64)
    return bilinear_rgba(
        image.at(x1, y1),
        image.at(x1 + 1, y1),
        image.at(x1, y1 + 1),
        image.at(x1 + 1, y1 + 1),
        u - fu,
        v - fv,
    )


# ============================ integrators ============================

class Streamline:
    def __init__(self, length: float, steps: float) -> None:
        self.length = float(length)
        self.step = 2.0 * self.length / float(steps)
        self.offsets = integration_offsets(self.length, steps)
        self.weights = tent_filter(self.offsets, self.length)

    def integrate(self, sampler: Callable[[np.ndarray, np.ndarray], np.ndarray], x, y, vx, vy) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        total = 0.0
        prev = None
        for u, w in zip(self.offsets, self.weights):
            cur = w * sampler(x - u * vx, y - u * vy)
            if prev is not None:
                total = total + (prev + cur) * (0.5 * self.step)
            prev = cur
        return total

    def sample(self, image: ImageBuffer, x, y, vx, vy) -> np.ndarray:  # pragma: no cover
        raise NotImplementedError


class NoiseStreamline(Streamline):
    """Modulates the input pixel by integrated noise, mapped into [0.5, 1]."""

    def __init__(self, noise: NoiseField, length: float, steps: float, minv: float, maxv: float) -> None:
        super().__init__(length, steps)
        self.noise = noise
        self.minv = float(minv)
        self.maxv = float(maxv)

    def intensity(self, x, y, vx, vy) -> np.ndarray:
        i = self.integrate(self.noise.evaluate, x, y, vx, vy)
        i = np.clip((i - self.minv) / (self.maxv - self.minv), 0.0, 1.0)
        return i / 2.0 + 0.5

    def sample(self, image, x, y, vx, vy):
        return image.at(x, y) * self.intensity(x, y, vx, vy)[..., None]


class ImageStreamline(Streamline):
    """Smears the source image itself along the streamline."""

    def sample(self, image, x, y, vx, vy):
        total = self.integrate(lambda px, py: getpixel(image, px, py), x, y, vx, vy)
        return np.clip(total / self.length, 0.0, 1.0)


def streamline_for(params: ResolvedParameters, grid: Optional[VectorGrid] = None) -> Streamline:
    if params.source is ConvolveWith.WHITE_NOISE:
        if grid is None:
            raise ValueError("white-noise convolution needs a vector grid")
        noise = NoiseField(grid, params.dx, params.dy)
        return NoiseStreamline(noise, params.length, params.steps, params.minv, params.maxv)
    return ImageStreamline(params.length, params.steps)
