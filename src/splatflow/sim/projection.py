"""
Camera and splat-shape projection.

Turns particle state (position + shape tensor) into screen-space splat
parameters: a centre, a 2x2 covariance and, finally, the symmetric affine
map ``[[a, c], [c, b]]`` whose induced covariance equals that block.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

POINTER_LIMIT = 0.9


def clamp_pointer(x: float, y: float) -> Tuple[float, float]:
    """Clamp a normalised pointer pair to ``[-0.9, 0.9]`` on each axis."""
    return (
        min(max(-POINTER_LIMIT, float(x)), POINTER_LIMIT),
        min(max(-POINTER_LIMIT, float(y)), POINTER_LIMIT),
    )


@dataclass
class ScreenParticles:
    """Screen-space splat centres and 2x2 covariance blocks."""
    x: np.ndarray
    y: np.ndarray
    z: np.ndarray  # view depth, larger is further away
    xx: np.ndarray
    yy: np.ndarray
    xy: np.ndarray

    def __len__(self) -> int:
        return len(self.x)


def view_matrix(pointer: Tuple[float, float]) -> Tuple[np.ndarray, float]:
    """
    Build the camera rotation from the clamped pointer pair.

    The pointer's x turns the camera around the vertical axis (up to 90
    degrees each way), its y tilts it (up to 54 degrees).

    Returns:
        ``(matrix, angle_z)``; ``angle_z`` also drives the sky backdrop.
    """
    px, py = clamp_pointer(*pointer)
    angle_z = 0.3 * math.pi * py
    angle = 0.5 * math.pi * px
    cz, sz = math.cos(angle_z), math.sin(angle_z)
    cos, sin = math.cos(angle), math.sin(angle)
    matrix = np.array([
        [cos, sin, 0.0],
        [-sin * sz, cos * sz, -cz],
        [-sin * cz, cos * cz, sz],
    ])
    return matrix, angle_z


def tensors_to_matrices(tensors: np.ndarray) -> np.ndarray:
    """Expand packed tensors, ``(n, 6)`` or ``(n, 3)``, to ``(n, d, d)``."""
    tensors = np.asarray(tensors, dtype=np.float64)
    n, width = tensors.shape
    if width == 6:
        xx, yy, zz, xy, yz, zx = tensors.T
        return np.stack([
            np.stack([xx, xy, zx], axis=-1),
            np.stack([xy, yy, yz], axis=-1),
            np.stack([zx, yz, zz], axis=-1),
        ], axis=1)
    if width == 3:
        xx, yy, xy = tensors.T
        return np.stack([
            np.stack([xx, xy], axis=-1),
            np.stack([xy, yy], axis=-1),
        ], axis=1)
    raise ValueError(f"packed tensors must have 3 or 6 columns, got {width}")


def matrices_to_tensors(matrices: np.ndarray) -> np.ndarray:
    """Pack symmetric ``(n, d, d)`` matrices back to 6 or 3 columns."""
    d = matrices.shape[-1]
    if d == 3:
        return np.stack([
            matrices[:, 0, 0], matrices[:, 1, 1], matrices[:, 2, 2],
            matrices[:, 0, 1], matrices[:, 1, 2], matrices[:, 2, 0],
        ], axis=1)
    if d == 2:
        return np.stack([matrices[:, 0, 0], matrices[:, 1, 1], matrices[:, 0, 1]], axis=1)
    raise ValueError(f"expected 2x2 or 3x3 matrices, got {d}x{d}")


def plane_projection(
    positions: np.ndarray,
    tensors: np.ndarray,
    plane: str = "xy",
) -> ScreenParticles:
    """Orthographic projection onto the ``xy`` or ``xz`` plane."""
    positions = np.asarray(positions, dtype=np.float64)
    matrices = tensors_to_matrices(tensors)
    if plane == "xy":
        i, j, k = 0, 1, 2
    elif plane == "xz":
        if matrices.shape[-1] != 3:
            raise ValueError("the xz plane needs 3-D tensors")
        i, j, k = 0, 2, 1
    else:
        raise ValueError(f"unknown plane: {plane!r}")

    return ScreenParticles(
        x=positions[:, i].copy(),
        y=positions[:, j].copy(),
        z=positions[:, k].copy(),
        xx=matrices[:, i, i],
        yy=matrices[:, j, j],
        xy=matrices[:, i, j],
    )


def view_transform(
    positions: np.ndarray,
    tensors: np.ndarray,
    matrix: np.ndarray,
) -> ScreenParticles:
    """Rotate positions by ``matrix`` and push tensors through ``M T M^T``."""
    positions = np.asarray(positions, dtype=np.float64)
    matrices = tensors_to_matrices(tensors)
    if matrices.shape[-1] == 2:
        # Embed flat tensors with unit depth spread
        flat = matrices
        matrices = np.zeros((len(flat), 3, 3))
        matrices[:, :2, :2] = flat
        matrices[:, 2, 2] = 1.0

    rotated = positions @ matrix.T
    cov = np.einsum("ij,njk,lk->nil", matrix, matrices, matrix)
    return ScreenParticles(
        x=rotated[:, 0],
        y=rotated[:, 1],
        z=rotated[:, 2],
        xx=cov[:, 0, 0],
        yy=cov[:, 1, 1],
        xy=cov[:, 0, 1],
    )


def perspective(screen: ScreenParticles, distance: float) -> ScreenParticles:
    """
    Projective depth scaling: ``s = d / (d + z)`` on position, ``s**2`` on
    covariance. Points at or behind the eye (``d + z <= 0``) become NaN and
    fail the ellipse decomposition, so they are culled.
    """
    depth = distance + np.asarray(screen.z, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        scale = np.where(depth > 0, distance / depth, np.nan)
    scale2 = scale * scale
    return ScreenParticles(
        x=screen.x * scale,
        y=screen.y * scale,
        z=screen.z,
        xx=screen.xx * scale2,
        yy=screen.yy * scale2,
        xy=screen.xy * scale2,
    )


def ellipse_from_covariance(
    xx,
    yy,
    xy,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Recover the symmetric map ``[[a, c], [c, b]]`` with covariance
    ``xx = a^2 + c^2``, ``yy = b^2 + c^2``, ``xy = (a + b) c``.

    ``det = (ab - c^2)^2`` and ``trace = a^2 + b^2 + 2c^2``, hence
    ``a + b = sqrt(trace + 2 sqrt(det))``. The branch with ``ab >= c^2``
    and ``a + b >= 0`` is returned; the sign ambiguity is not resolved.

    Returns:
        ``(a, b, c, valid)``. ``valid`` is False where the decomposition
        is not real (indefinite or empty tensor); those splats are culled.
    """
    xx = np.asarray(xx, dtype=np.float64)
    yy = np.asarray(yy, dtype=np.float64)
    xy = np.asarray(xy, dtype=np.float64)

    with np.errstate(invalid="ignore", divide="ignore"):
        trace = xx + yy
        det = xx * yy - xy * xy
        a_b = np.sqrt(trace + 2 * np.sqrt(det))
        c = xy / a_b
        a = np.sqrt(xx - c * c)
        b = np.sqrt(yy - c * c)

    valid = np.isfinite(a) & np.isfinite(b) & np.isfinite(c)
    return a, b, c, valid


def project(
    positions: np.ndarray,
    tensors: np.ndarray,
    matrix: Optional[np.ndarray] = None,
    distance: Optional[float] = None,
) -> ScreenParticles:
    """Orthographic x-y projection, or camera rotation plus optional perspective."""
    if matrix is None:
        return plane_projection(positions, tensors, "xy")
    screen = view_transform(positions, tensors, matrix)
    if distance is not None:
        screen = perspective(screen, distance)
    return screen
