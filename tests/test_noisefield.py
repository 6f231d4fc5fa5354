import numpy as np

from noisefield import GRID_SIZE, NoiseField, VectorGrid, cubic


def _grid(seed=3):
    return VectorGrid.generate(np.random.default_rng(seed))


def test_cubic_endpoints_and_support():
    assert cubic(0.0) == 1.0
    assert cubic(1.0) == 0.0
    assert cubic(-1.0) == 0.0
    assert np.all(cubic(np.array([1.5, -3.0, 10.0])) == 0.0)


def test_cubic_is_even_and_decreasing():
    t = np.linspace(-2.0, 2.0, 81)
    np.testing.assert_allclose(cubic(t), cubic(-t))
    u = np.linspace(0.0, 1.0, 101)
    assert np.all(np.diff(cubic(u)) < 0.0)


def test_vector_grid_has_unit_vectors():
    g = _grid()
    assert g.vectors.shape == (GRID_SIZE, GRID_SIZE, 2)
    np.testing.assert_allclose(np.hypot(g.vectors[..., 0], g.vectors[..., 1]), 1.0)
    assert not g.vectors.flags.writeable


def test_vector_grid_is_reproducible_with_seed():
    np.testing.assert_array_equal(_grid(5).vectors, _grid(5).vectors)
    assert not np.array_equal(_grid(5).vectors, _grid(6).vectors)


def test_noise_vanishes_on_lattice_points():
    field = NoiseField(_grid(), 2.0, 2.0)
    xs, ys = np.meshgrid(np.arange(0, 20, 2.0), np.arange(-6, 6, 2.0))
    np.testing.assert_allclose(field.evaluate(xs, ys), 0.0, atol=1e-12)


def test_noise_is_continuous_across_cell_boundaries():
    field = NoiseField(_grid(), 2.0, 3.0)
    deltas = []
    for eps in (1e-1, 1e-3, 1e-5, 1e-7):
        a = field.evaluate(4.0 - eps, 1.3)
        b = field.evaluate(4.0 + eps, 1.3)
        c = field.evaluate(0.7, 6.0 - eps)
        d = field.evaluate(0.7, 6.0 + eps)
        deltas.append(max(abs(a - b), abs(c - d)))
    assert all(later <= earlier for earlier, later in zip(deltas, deltas[1:]))
    assert deltas[-1] < 1e-5


def test_noise_wraps_every_grid_period():
    field = NoiseField(_grid(), 1.5, 1.5)
    x = np.array([0.3, 2.9, 7.1])
    y = np.array([1.1, 4.4, 0.2])
    period = GRID_SIZE * 1.5
    np.testing.assert_allclose(field.evaluate(x + period, y), field.evaluate(x, y), atol=1e-9)
    np.testing.assert_allclose(field.evaluate(x, y - period), field.evaluate(x, y), atol=1e-9)


def test_noise_keeps_input_shape():
    field = NoiseField(_grid(), 2.0, 2.0)
    ys, xs = np.mgrid[0:3, 0:5]
    assert field.evaluate(xs * 0.7, ys * 1.3).shape == (3, 5)
