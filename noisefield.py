"""
Band-limited gradient noise (2D Perlin variant) over a fixed grid of random
unit vectors. Used only when convolving with white noise.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

__all__ = ["GRID_SIZE", "VectorGrid", "NoiseField", "cubic"]

GRID_SIZE = 40


@dataclass(frozen=True)
class VectorGrid:
    """GRID_SIZE×GRID_SIZE unit vectors, indexed [i, j] -> (gx, gy)."""
    vectors: np.ndarray

    @classmethod
    def generate(cls, rng: Optional[np.random.Generator] = None) -> "VectorGrid":
        rng = rng or np.random.default_rng()
        alpha = rng.random((GRID_SIZE, GRID_SIZE)) * 2.0 * math.pi
        vectors = np.stack([np.cos(alpha), np.sin(alpha)], axis=-1)
        vectors.setflags(write=False)
        return cls(vectors=vectors)


def cubic(t):
    """2nd order cubic spline: 1 at 0, 0 from |t| >= 1, smooth in between."""
    at = np.abs(np.asarray(t, dtype=np.float64))
    return np.where(at < 1.0, at * at * (2.0 * at - 3.0) + 1.0, 0.0)


class NoiseField:
    def __init__(self, grid: VectorGrid, dx: float, dy: float) -> None:
        self.grid = grid
        self.dx = float(dx)
        self.dy = float(dy)

    def _omega(self, u: np.ndarray, v: np.ndarray, i: np.ndarray, j: np.ndarray) -> np.ndarray:
        g = self.grid.vectors[np.mod(i, GRID_SIZE), np.mod(j, GRID_SIZE)]
        return cubic(u) * cubic(v) * (g[..., 0] * u + g[..., 1] * v)

    def evaluate(self, x, y) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        sti = np.floor(x / self.dx).astype(np.int64)
        stj = np.floor(y / self.dy).astype(np.int64)

        total = np.zeros(np.broadcast(x, y).shape, dtype=np.float64)
        for i in (sti, sti + 1):
            for j in (stj, stj + 1):
                total += self._omega((x - i * self.dx) / self.dx, (y - j * self.dy) / self.dy, i, j)
        return total
