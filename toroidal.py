from __future__ import annotations

from typing import Tuple

import numpy as np

__all__ = ["ToroidalBuffer", "ImageBuffer", "ScalarField"]


class ToroidalBuffer:
    """2D grid (optionally with trailing channels) addressed with wraparound.

    `at` takes integer coordinates of any shape; x indexes columns, y rows.
    """

    def __init__(self, data: np.ndarray) -> None:
        if data.ndim < 2 or data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError(f"buffer needs a non-empty 2D grid, got shape {data.shape}")
        self.data = data

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    def wrap(self, x, y) -> Tuple[np.ndarray, np.ndarray]:
        # np.mod on ints is always non-negative for a positive divisor
        return np.mod(x, self.width), np.mod(y, self.height)

    def at(self, x, y) -> np.ndarray:
        xi, yi = self.wrap(np.asarray(x, dtype=np.int64), np.asarray(y, dtype=np.int64))
        return self.data[yi, xi]


class ImageBuffer(ToroidalBuffer):
    """H×W×4 float64 RGBA pixels in [0,1]."""

    def __init__(self, pixels: np.ndarray) -> None:
        super().__init__(np.asarray(pixels, dtype=np.float64))


class ScalarField(ToroidalBuffer):
    """H×W uint8 scalar map; `at` returns int32 so kernel sums cannot overflow."""

    def __init__(self, values: np.ndarray) -> None:
        super().__init__(np.asarray(values, dtype=np.uint8))

    def at(self, x, y) -> np.ndarray:
        return super().at(x, y).astype(np.int32)
