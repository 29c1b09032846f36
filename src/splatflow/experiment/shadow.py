"""
Volumetric self-shadowing for 3-D smoke.

Particles deposit density into a cubic grid in light space; light is then
attenuated cumulatively along the grid's depth axis, and each particle
reads back how much light reaches it.
"""

import numpy as np

from splatflow.core.sampling import value_at_3d


class ShadowMap3D:
    """Light-space density grid covering the cube ``[-1, 1]^3``."""

    def __init__(self, size: int = 64):
        self.size = size
        self.data = np.zeros((size, size, size), dtype=np.float64)

    def _to_grid(self, coord) -> np.ndarray:
        return (np.asarray(coord, dtype=np.float64) + 1) / 2 * self.size

    def clear(self) -> None:
        self.data.fill(0.0)

    def add_density(self, x, y, z, density: float) -> None:
        """Splat ``density`` at light-space points with trilinear weights.

        ``z`` is depth along the light direction. Points too close to the
        far faces to have a full 2x2x2 neighbourhood are dropped.
        """
        size = self.size
        gx = np.atleast_1d(self._to_grid(x))
        gy = np.atleast_1d(self._to_grid(y))
        gz = np.atleast_1d(self._to_grid(z))
        gx, gy, gz = np.broadcast_arrays(gx, gy, gz)

        limit = size - 1.01
        inside = (gx >= 0) & (gy >= 0) & (gz >= 0) & (gx < limit) & (gy < limit) & (gz < limit)
        gx, gy, gz = gx[inside], gy[inside], gz[inside]

        ix = np.floor(gx).astype(np.intp)
        iy = np.floor(gy).astype(np.intp)
        iz = np.floor(gz).astype(np.intp)
        ax, ay, az = gx - ix, gy - iy, gz - iz
        bx, by, bz = 1 - ax, 1 - ay, 1 - az

        for dx, wx in ((0, bx), (1, ax)):
            for dy, wy in ((0, by), (1, ay)):
                for dz, wz in ((0, bz), (1, az)):
                    np.add.at(self.data, (ix + dx, iy + dy, iz + dz), density * wx * wy * wz)

    def calculate_brightness(self) -> None:
        """Replace densities with the light transmitted to each cell."""
        transmittance = np.maximum(1 - self.data / self.size, 0)
        self.data = np.cumprod(transmittance, axis=2)

    def brightness_at(self, x, y, z):
        """Transmitted light at light-space points, clamped to the grid."""
        top = self.size - 1
        gx = np.clip(self._to_grid(x), 0, top)
        gy = np.clip(self._to_grid(y), 0, top)
        gz = np.clip(self._to_grid(z), 0, top)
        return value_at_3d(self.data, gx, gy, gz)
