"""
Anisotropic splat rasteriser.

Each particle is drawn as a tinted alpha texture mapped through its
ellipse transform ``[[a, c], [c, b]]``. World coordinates span ``[-1, 1]``
on the shorter frame edge, centred on the frame.
"""

import math
from typing import Sequence

import numpy as np

from splatflow.sim.projection import ScreenParticles


class SplatCanvas:
    """Float32 RGB frame with source-over splat compositing."""

    def __init__(self, background: np.ndarray):
        self.frame = np.array(background, dtype=np.float32)
        self.height, self.width = self.frame.shape[:2]
        self.unit = min(self.width, self.height) / 2
        self.cx = self.width / 2
        self.cy = self.height / 2

    def draw(
        self,
        x: float,
        y: float,
        a: float,
        b: float,
        c: float,
        radius: float,
        alpha: float,
        texture: np.ndarray,
        color: np.ndarray,
    ) -> bool:
        """
        Composite one splat. Returns False when nothing was drawn
        (singular transform, zero alpha or fully off-frame).
        """
        det = a * b - c * c
        if abs(det) < 1e-12 or alpha <= 0:
            return False

        px = self.cx + self.unit * x
        py = self.cy + self.unit * y
        ext_x = radius * (abs(a) + abs(c)) * self.unit
        ext_y = radius * (abs(c) + abs(b)) * self.unit

        x0 = max(int(math.floor(px - ext_x)), 0)
        x1 = min(int(math.ceil(px + ext_x)) + 1, self.width)
        y0 = max(int(math.floor(py - ext_y)), 0)
        y1 = min(int(math.ceil(py + ext_y)) + 1, self.height)
        if x0 >= x1 or y0 >= y1:
            return False

        # pixel centres -> world offsets from the splat centre
        dx = (np.arange(x0, x1) + 0.5 - self.cx) / self.unit - x
        dy = (np.arange(y0, y1) + 0.5 - self.cy) / self.unit - y
        dxg, dyg = np.meshgrid(dx, dy)

        # invert the symmetric map back to texture space
        u = (b * dxg - c * dyg) / det
        v = (a * dyg - c * dxg) / det

        n_rows, n_cols = texture.shape
        tu = (u + radius) / (2 * radius) * n_cols
        tv = (v + radius) / (2 * radius) * n_rows
        inside = (tu >= 0) & (tu < n_cols) & (tv >= 0) & (tv < n_rows)
        if not np.any(inside):
            return False

        iu = np.clip(tu.astype(np.intp), 0, n_cols - 1)
        iv = np.clip(tv.astype(np.intp), 0, n_rows - 1)
        coverage = np.where(inside, texture[iv, iu], 0.0)

        weight = (alpha * coverage)[:, :, np.newaxis]
        region = self.frame[y0:y1, x0:x1]
        region *= 1 - weight
        region += weight * np.asarray(color, dtype=np.float32)
        return True


def draw_splats(
    canvas: SplatCanvas,
    screen: ScreenParticles,
    ellipse: tuple,
    indices: np.ndarray,
    radius: float,
    alphas: np.ndarray,
    textures: Sequence[np.ndarray],
    colors: np.ndarray,
) -> int:
    """
    Draw ``indices`` back to front (largest depth first).

    Alpha is softened by the covariance trace so that stretched splats do
    not over-saturate. Returns the number of splats drawn.
    """
    a, b, c, _ = ellipse
    order = indices[np.argsort(-screen.z[indices], kind="stable")]
    drawn = 0
    for i in order:
        trace = screen.xx[i] + screen.yy[i]
        alpha = alphas[i] / (1 + trace / 10)
        if canvas.draw(
            screen.x[i], screen.y[i], a[i], b[i], c[i],
            radius, alpha, textures[i % len(textures)], colors[i],
        ):
            drawn += 1
    return drawn
