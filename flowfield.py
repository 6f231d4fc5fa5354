from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from licconfig import EffectOperator
from toroidal import ScalarField

__all__ = [
    "gradient_x",
    "gradient_y",
    "normalize",
    "FlowOperator",
    "DerivativeFlow",
    "GradientFlow",
    "flow_operator_for",
]

MIN_MAGNITUDE = 1e-6


# Sobel variants, left minus right and top minus bottom:
#     |1 0 -1|       | 1  2  1|
# DX: |2 0 -2|   DY: | 0  0  0|
#     |1 0 -1|       |-1 -2 -1|
def gradient_x(field: ScalarField, x, y) -> np.ndarray:
    f = field.at
    left = f(x - 1, y - 1) + 2 * f(x - 1, y) + f(x - 1, y + 1)
    right = f(x + 1, y - 1) + 2 * f(x + 1, y) + f(x + 1, y + 1)
    return left - right


def gradient_y(field: ScalarField, x, y) -> np.ndarray:
    f = field.at
    top = f(x - 1, y - 1) + 2 * f(x, y - 1) + f(x + 1, y - 1)
    bottom = f(x - 1, y + 1) + 2 * f(x, y + 1) + f(x + 1, y + 1)
    return top - bottom


def normalize(vx: np.ndarray, vy: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Unit vectors; anything shorter than MIN_MAGNITUDE becomes the zero vector."""
    vx = np.asarray(vx, dtype=np.float64)
    vy = np.asarray(vy, dtype=np.float64)
    mag = np.hypot(vx, vy)
    ok = mag >= MIN_MAGNITUDE
    scale = np.where(ok, 1.0 / np.where(ok, mag, 1.0), 0.0)
    return vx * scale, vy * scale


class FlowOperator:
    """Maps scalar-field derivatives at (x, y) to a unit flow direction."""

    def orient(self, gx: np.ndarray, gy: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:  # pragma: no cover
        raise NotImplementedError

    def direction(self, field: ScalarField, x, y) -> Tuple[np.ndarray, np.ndarray]:
        vx, vy = self.orient(gradient_x(field, x, y), gradient_y(field, x, y))
        return normalize(vx, vy)


class DerivativeFlow(FlowOperator):
    def orient(self, gx, gy):
        return gx, gy


class GradientFlow(FlowOperator):
    """Rotated by 90 degrees, so streamlines follow edges instead of crossing them."""

    def orient(self, gx, gy):
        return gy, -gx


_OPERATORS: Dict[EffectOperator, FlowOperator] = {
    EffectOperator.DERIVATIVE: DerivativeFlow(),
    EffectOperator.GRADIENT: GradientFlow(),
}


def flow_operator_for(operator) -> FlowOperator:
    return _OPERATORS[EffectOperator.parse(operator)]
