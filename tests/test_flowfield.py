import numpy as np
import pytest

from flowfield import (
    DerivativeFlow,
    GradientFlow,
    flow_operator_for,
    gradient_x,
    gradient_y,
    normalize,
)
from licconfig import EffectOperator, InvalidArgument
from toroidal import ScalarField


def _ramp():
    # f(x, y) = 10 * x on a 6x5 grid
    return ScalarField(np.tile(np.arange(5) * 10, (6, 1)))


def test_constant_field_has_no_flow():
    field = ScalarField(np.full((4, 4), 77))
    ys, xs = np.mgrid[0:4, 0:4]
    assert np.all(gradient_x(field, xs, ys) == 0)
    assert np.all(gradient_y(field, xs, ys) == 0)
    for op in (DerivativeFlow(), GradientFlow()):
        vx, vy = op.direction(field, xs, ys)
        assert np.all(vx == 0.0) and np.all(vy == 0.0)


def test_ramp_kernels():
    field = _ramp()
    # left column (x=1) minus right column (x=3), weights 1-2-1
    assert gradient_x(field, 2, 2) == 4 * 10 - 4 * 30
    assert gradient_y(field, 2, 2) == 0


def test_derivative_points_along_kernel_direction():
    vx, vy = DerivativeFlow().direction(_ramp(), 2, 2)
    assert float(vx) == pytest.approx(-1.0)
    assert float(vy) == pytest.approx(0.0)


def test_gradient_operator_rotates_by_90_degrees():
    vx, vy = GradientFlow().direction(_ramp(), 2, 2)
    assert float(vx) == pytest.approx(0.0)
    assert float(vy) == pytest.approx(1.0)


def test_directions_are_unit_length():
    field = ScalarField(np.random.default_rng(1).integers(0, 256, (7, 7)))
    ys, xs = np.mgrid[0:7, 0:7]
    vx, vy = GradientFlow().direction(field, xs, ys)
    mag = np.hypot(vx, vy)
    assert np.all((np.abs(mag - 1.0) < 1e-12) | (mag == 0.0))


def test_normalize_leaves_tiny_vectors_at_zero():
    vx, vy = normalize(np.array([3.0, 1e-9]), np.array([4.0, 0.0]))
    np.testing.assert_allclose(vx, [0.6, 0.0])
    np.testing.assert_allclose(vy, [0.8, 0.0])


def test_operator_lookup():
    assert isinstance(flow_operator_for("gradient"), GradientFlow)
    assert isinstance(flow_operator_for(EffectOperator.DERIVATIVE), DerivativeFlow)
    with pytest.raises(InvalidArgument):
        flow_operator_for("curl")
