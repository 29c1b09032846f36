"""Tests for periodic field sampling."""

import numpy as np
import pytest

from splatflow.core.sampling import value_at, value_at_1d, value_at_3d


def _grid2d(nx=8, ny=6, seed=0):
    return np.random.default_rng(seed).uniform(-1, 1, (nx, ny))


def _grid3d(n=5, seed=0):
    return np.random.default_rng(seed).uniform(-1, 1, (n, n + 1, n + 2))


class TestValueAt1D:
    def test_lattice_points(self):
        grid = np.array([0.0, 1.0, 4.0, 9.0])
        assert value_at_1d(grid, 2) == pytest.approx(4.0)

    def test_wraps_last_cell(self):
        grid = np.array([0.0, 1.0, 4.0, 9.0])
        # halfway between index 3 and index 0
        assert value_at_1d(grid, 3.5) == pytest.approx(4.5)


class TestValueAt:
    def test_lattice_points_exact(self):
        grid = _grid2d()
        for ix in range(8):
            for iy in range(6):
                assert value_at(grid, ix, iy) == pytest.approx(grid[ix, iy])

    def test_returns_float_for_scalars(self):
        assert isinstance(value_at(_grid2d(), 1.5, 2.5), float)

    def test_cell_centre_is_corner_average(self):
        grid = _grid2d()
        expected = (grid[2, 3] + grid[3, 3] + grid[2, 4] + grid[3, 4]) / 4
        assert value_at(grid, 2.5, 3.5) == pytest.approx(expected)

    @pytest.mark.parametrize("x, y", [(0.3, 0.7), (5.9, 2.2), (-3.1, 4.4), (17.25, -0.5)])
    def test_periodic_in_x(self, x, y):
        grid = _grid2d()
        assert value_at(grid, x + 8, y) == pytest.approx(value_at(grid, x, y), abs=1e-9)

    @pytest.mark.parametrize("x, y", [(0.3, 0.7), (5.9, 2.2), (-3.1, 4.4), (17.25, -0.5)])
    def test_periodic_in_y(self, x, y):
        grid = _grid2d()
        assert value_at(grid, x, y + 6) == pytest.approx(value_at(grid, x, y), abs=1e-9)

    def test_negative_coordinates_use_floor_modulo(self):
        grid = _grid2d()
        # -0.25 lies between index 7 (the last column) and index 0
        expected = grid[7, 0] * 0.25 + grid[0, 0] * 0.75
        assert value_at(grid, -0.25, 0) == pytest.approx(expected)

    def test_large_coordinates(self):
        grid = _grid2d()
        far = value_at(grid, 1.5 + 8 * 10_000, 2.5 - 6 * 10_000)
        assert far == pytest.approx(value_at(grid, 1.5, 2.5), abs=1e-6)

    def test_array_input(self, rng):
        grid = _grid2d()
        x = rng.uniform(-20, 20, 50)
        y = rng.uniform(-20, 20, 50)
        result = value_at(grid, x, y)
        assert result.shape == (50,)
        for i in range(0, 50, 7):
            assert result[i] == pytest.approx(value_at(grid, x[i], y[i]))

    def test_bounded_by_grid_extremes(self, rng):
        grid = _grid2d()
        values = value_at(grid, rng.uniform(-50, 50, 500), rng.uniform(-50, 50, 500))
        assert values.min() >= grid.min() - 1e-12
        assert values.max() <= grid.max() + 1e-12


class TestValueAt3D:
    def test_lattice_points_exact(self):
        grid = _grid3d()
        assert value_at_3d(grid, 2, 3, 4) == pytest.approx(grid[2, 3, 4])

    def test_cell_centre_is_corner_average(self):
        grid = _grid3d()
        expected = grid[1:3, 1:3, 1:3].mean()
        assert value_at_3d(grid, 1.5, 1.5, 1.5) == pytest.approx(expected)

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_periodic_on_every_axis(self, axis):
        grid = _grid3d()
        point = [1.3, -2.7, 8.1]
        shifted = list(point)
        shifted[axis] += grid.shape[axis]
        assert value_at_3d(grid, *shifted) == pytest.approx(value_at_3d(grid, *point), abs=1e-9)

    def test_broadcasting(self):
        grid = _grid3d()
        result = value_at_3d(grid, np.linspace(0, 4, 10), 1.0, np.zeros(10))
        assert result.shape == (10,)
