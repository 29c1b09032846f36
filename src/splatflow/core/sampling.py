"""
Periodic interpolation over noise lattices.

Coordinates are lattice units and wrap on every axis, so a finite grid
behaves as an infinite tiling. Scalars and broadcastable arrays are both
accepted; scalar input returns a Python float.
"""

import numpy as np


def _cell(coord, n: int):
    """Return (index, next_index, fraction) for a periodic axis of length n."""
    coord = np.asarray(coord, dtype=np.float64)
    base = np.floor(coord)
    frac = coord - base
    # np.mod follows the divisor's sign, so negative coordinates wrap correctly
    index = np.mod(base, n).astype(np.intp)
    return index, (index + 1) % n, frac


def _as_result(value):
    if np.ndim(value) == 0:
        return float(value)
    return value


def value_at_1d(grid: np.ndarray, x):
    """Linear interpolation on a periodic 1-D grid."""
    ix0, ix1, ax = _cell(x, grid.shape[0])
    return _as_result(grid[ix0] * (1 - ax) + grid[ix1] * ax)


def value_at(grid: np.ndarray, x, y):
    """Bilinear interpolation on a periodic 2-D grid indexed ``[x, y]``."""
    nx, ny = grid.shape
    ix0, ix1, ax = _cell(x, nx)
    iy0, iy1, ay = _cell(y, ny)
    bx = 1 - ax
    by = 1 - ay
    value = (
        grid[ix0, iy0] * bx * by
        + grid[ix1, iy0] * ax * by
        + grid[ix0, iy1] * bx * ay
        + grid[ix1, iy1] * ax * ay
    )
    return _as_result(value)


def value_at_3d(grid: np.ndarray, x, y, z):
    """Trilinear interpolation on a periodic 3-D grid indexed ``[x, y, z]``."""
    nx, ny, nz = grid.shape
    ix0, ix1, ax = _cell(x, nx)
    iy0, iy1, ay = _cell(y, ny)
    iz0, iz1, az = _cell(z, nz)
    bx = 1 - ax
    by = 1 - ay
    bz = 1 - az
    value = (
        grid[ix0, iy0, iz0] * bx * by * bz
        + grid[ix1, iy0, iz0] * ax * by * bz
        + grid[ix0, iy1, iz0] * bx * ay * bz
        + grid[ix1, iy1, iz0] * ax * ay * bz
        + grid[ix0, iy0, iz1] * bx * by * az
        + grid[ix1, iy0, iz1] * ax * by * az
        + grid[ix0, iy1, iz1] * bx * ay * az
        + grid[ix1, iy1, iz1] * ax * ay * az
    )
    return _as_result(value)
