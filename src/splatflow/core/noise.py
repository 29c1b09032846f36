"""
Seedable smooth-noise generators.

Every generator draws a uniform random lattice in [-1, 1] and band-limits
it with the circular smoothing kernel, so the resulting fields tile
seamlessly and can be sampled as infinite periodic fields.
"""

from typing import Optional

import numpy as np

from splatflow.core.smoothing import smooth_2d, smooth_3d


def _resolve_rng(
    rng: Optional[np.random.Generator],
    seed: Optional[int],
) -> np.random.Generator:
    if rng is not None:
        return rng
    return np.random.default_rng(seed)


def octave_scales(size: int) -> list:
    """Smoothing scales ``size, size/2, size/4, ...`` down to (and including) 1."""
    scales = []
    scale = float(size)
    while scale >= 1:
        scales.append(scale)
        scale /= 2
    return scales


def generate_smooth_noise(
    size: int,
    scale: float,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Single-octave periodic 2-D noise, ``(size, size)`` float64, not normalised."""
    rng = _resolve_rng(rng, seed)
    rands = rng.uniform(-1.0, 1.0, size=(size, size))
    return smooth_2d(rands, scale)


def generate_smooth_noise_3d(
    xsize: int,
    ysize: int,
    zsize: int,
    xscale: float,
    yscale: float,
    zscale: float,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Single-octave periodic 3-D noise indexed ``[x, y, z]``, not normalised."""
    rng = _resolve_rng(rng, seed)
    rands = rng.uniform(-1.0, 1.0, size=(xsize, ysize, zsize))
    return smooth_3d(rands, xscale, yscale, zscale)


def generate_noise(
    size: int,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Multi-octave fractal noise normalised to [0, 1].

    All octaves smooth the same random lattice; octave ``i`` (``i = 0`` is
    the coarsest) is weighted ``3**-i``. The sum is min-max normalised,
    so the smallest cell is exactly 0 and the largest exactly 1.

    Args:
        size: Grid edge length.
        rng: Random generator to draw from.
        seed: Seed used when ``rng`` is not given.

    Returns:
        ``(size, size)`` float64 array.
    """
    rng = _resolve_rng(rng, seed)
    rands = rng.uniform(-1.0, 1.0, size=(size, size))

    output = np.zeros((size, size), dtype=np.float64)
    for i, scale in enumerate(octave_scales(size)):
        output += smooth_2d(rands, scale) / 3.0 ** i

    lo = output.min()
    hi = output.max()
    if hi - lo <= 0:
        return np.zeros_like(output)
    return (output - lo) / (hi - lo)


def generate_noise_texture(
    size: int,
    rng: Optional[np.random.Generator] = None,
    seed: Optional[int] = None,
) -> np.ndarray:
    """
    Soft round splat mask: fractal noise under a radial falloff.

    Returns:
        ``(size, size)`` float32 alpha mask in [0, 1], zero outside the
        inscribed disc.
    """
    noise = generate_noise(size, rng=rng, seed=seed)

    coords = np.arange(size, dtype=np.float64)
    xg, yg = np.meshgrid(coords, coords)
    r2 = ((2 * xg - size - 0.5) ** 2 + (2 * yg - size - 0.5) ** 2) / size ** 2
    falloff = np.where(r2 > 1, 0.0, (1 - r2) ** 2)

    # noise rows are y, columns x
    texture = (noise * 1.2 - 0.2) * falloff
    return np.clip(texture, 0.0, 1.0).astype(np.float32)
