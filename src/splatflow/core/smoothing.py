"""
Circular exponential smoothing.

A band-limiting kernel built from the difference of two exponential
moving averages, run forward and backward around a periodic sequence so
the response is symmetric. N-D grids are smoothed separably, one axis
at a time; every pass wraps circularly.

Precision caveat: the circular steady state is exact, but when a sequence
is only a few multiples of ``scale`` long the kernel overlaps itself
around the loop and the result drifts toward the sequence mean.
"""

import math

import numpy as np
from scipy.signal import lfilter


def _circular_ema(data: np.ndarray, decay: float, axis: int) -> np.ndarray:
    """Exponential moving average of a periodic sequence along ``axis``.

    The first pass accumulates the state left after one trip around the
    loop; dividing by ``1 - decay**n`` turns that into the infinite-loop
    steady state, which seeds the second pass.
    """
    n = data.shape[axis]
    b = [1.0]
    a = [1.0, -decay]

    warm = lfilter(b, a, data, axis=axis)
    state = np.take(warm, [-1], axis=axis) / (1.0 - decay ** n)

    out, _ = lfilter(b, a, data, axis=axis, zi=decay * state)
    return out


def smooth_1d(data, scale: float, axis: int = -1) -> np.ndarray:
    """
    Smooth a periodic sequence (or every line of an array along ``axis``).

    Args:
        data: Array-like of reals. Treated as circular along ``axis``.
        scale: Smoothing length in samples, must be >= 1.
        axis: Axis to smooth along.

    Returns:
        float64 array of the same shape. A constant input comes back
        unchanged.
    """
    if scale < 1:
        raise ValueError(f"scale must be >= 1, got {scale}")

    data = np.asarray(data, dtype=np.float64)
    if data.shape[axis] == 0:
        return data.copy()

    e1 = math.exp(-1.0 / scale)
    e2 = e1 * e1
    vscale = 4.0 / (1.0 - e1) - 2.0 / (1.0 - e2) - 1.0

    forward1 = _circular_ema(data, e1, axis)
    forward2 = _circular_ema(data, e2, axis)

    reversed_data = np.flip(data, axis=axis)
    backward1 = np.flip(_circular_ema(reversed_data, e1, axis), axis=axis)
    backward2 = np.flip(_circular_ema(reversed_data, e2, axis), axis=axis)

    # The backward averages include the current sample; subtract it once
    # from each so the centre tap is only counted by the forward pass.
    total1 = forward1 + backward1 - data
    total2 = forward2 + backward2 - data
    return (2.0 * total1 - total2) / vscale


def smooth_2d(grid, scale: float) -> np.ndarray:
    """Smooth a 2-D grid along axis 0, then axis 1."""
    grid = np.asarray(grid, dtype=np.float64)
    if grid.ndim != 2:
        raise ValueError(f"smooth_2d expects a 2-D grid, got shape {grid.shape}")
    out = smooth_1d(grid, scale, axis=0)
    return smooth_1d(out, scale, axis=1)


def smooth_3d(
    grid,
    xscale: float,
    yscale: float,
    zscale: float,
) -> np.ndarray:
    """Smooth a 3-D grid indexed ``[x, y, z]`` along z, then y, then x."""
    grid = np.asarray(grid, dtype=np.float64)
    if grid.ndim != 3:
        raise ValueError(f"smooth_3d expects a 3-D grid, got shape {grid.shape}")
    out = smooth_1d(grid, zscale, axis=2)
    out = smooth_1d(out, yscale, axis=1)
    return smooth_1d(out, xscale, axis=0)
