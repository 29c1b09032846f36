"""
Particle advection with deformation tracking.

Each particle carries a position and a symmetric shape tensor (a
covariance of the small cloud of material it stands for). One tick moves
every particle by an explicit Euler step and pushes its tensor through
the one-step flow map ``F = I + vscale * grad(v)``, estimated by central
differences. Renormalisation then pins the determinant to 1 and caps the
elongation.

Packed tensor layouts:
    3-D: ``(xx, yy, zz, xy, yz, zx)``
    2-D: ``(xx, yy, xy)``
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from splatflow.sim.fields import VelocityField
from splatflow.sim.projection import (
    clamp_pointer,
    matrices_to_tensors,
    tensors_to_matrices,
)

DEFAULT_THRESHOLDS = {2: 4.0, 3: 8.0}


@dataclass
class SimulationConfig:
    """Integrator constants."""
    dim: int = 3
    delta: float = 0.001    # finite-difference step for the Jacobian
    vscale: float = 0.001   # Euler step applied to velocity and Jacobian
    threshold: Optional[float] = None  # elongation cap; None picks 8 (3-D) or 4 (2-D)

    def resolved_threshold(self) -> float:
        if self.threshold is not None:
            return self.threshold
        return DEFAULT_THRESHOLDS[self.dim]


def _tensor_dim(tensors: np.ndarray) -> int:
    width = tensors.shape[-1]
    if width == 6:
        return 3
    if width == 3:
        return 2
    raise ValueError(f"packed tensors must have 3 or 6 columns, got {width}")


def identity_tensors(n: int, dim: int = 3) -> np.ndarray:
    """``n`` packed identity tensors."""
    if dim == 3:
        return np.tile(np.array([1.0, 1.0, 1.0, 0.0, 0.0, 0.0]), (n, 1))
    if dim == 2:
        return np.tile(np.array([1.0, 1.0, 0.0]), (n, 1))
    raise ValueError(f"dim must be 2 or 3, got {dim}")


def tensor_determinant(tensors: np.ndarray) -> np.ndarray:
    """Determinant of each packed tensor."""
    tensors = np.asarray(tensors, dtype=np.float64)
    if _tensor_dim(tensors) == 3:
        xx, yy, zz, xy, yz, zx = (tensors[..., k] for k in range(6))
        return xx * yy * zz + 2 * xy * yz * zx - xx * yz * yz - yy * zx * zx - zz * xy * xy
    xx, yy, xy = (tensors[..., k] for k in range(3))
    return xx * yy - xy * xy


def normalize_particle(tensors: np.ndarray) -> np.ndarray:
    """
    Rescale packed tensors in place so each determinant is 1.

    The flow is treated as divergence-free, so any determinant drift is
    integration error. Rows whose determinant is not positive are left
    as they are.
    """
    rows2d = np.atleast_2d(tensors)
    dim = _tensor_dim(rows2d)
    det = tensor_determinant(rows2d)
    ok = det > 0
    if np.any(ok):
        rows2d[ok] *= (det[ok] ** (-1.0 / dim))[:, None]
    return tensors


def normalize_particle2(tensors: np.ndarray, threshold: Optional[float] = None) -> np.ndarray:
    """
    Level-1 normalisation followed by an elongation cap, in place.

    Accepts ``(n, 3|6)`` packed rows or a single ``(3|6,)`` row.

    ``len`` is the sum of squared diagonal entries. Rows with
    ``len > threshold`` get the same amount added to every diagonal entry
    (pulling the shape toward a circle/sphere without touching shear) and
    are normalised again.

    3-D adds ``over / (1 + over) / 10`` with ``over = len - threshold``,
    a soft step below 0.1 that converges over successive ticks. 2-D adds
    the root of ``(T-2) a^2 + (T-2) tr a - (len - T) = 0``, which lands
    the renormalised tensor exactly on the threshold.
    """
    rows2d = np.atleast_2d(tensors)
    dim = _tensor_dim(rows2d)
    if threshold is None:
        threshold = DEFAULT_THRESHOLDS[dim]
    if dim == 2 and threshold <= 2:
        # a unit-determinant 2x2 tensor always has xx^2 + yy^2 >= 2
        raise ValueError(f"2-D threshold must exceed 2, got {threshold}")

    normalize_particle(rows2d)

    diag = rows2d[:, :dim]
    length = np.sum(diag * diag, axis=1)
    over_mask = length > threshold
    if not np.any(over_mask):
        return tensors

    over = length[over_mask] - threshold
    if dim == 3:
        add = over / (1 + over) / 10
    else:
        trace = diag[over_mask].sum(axis=1)
        add = 0.5 * (-trace + np.sqrt(trace * trace + 4 * over / (threshold - 2)))

    rows = rows2d[over_mask]
    rows[:, :dim] += add[:, None]
    rows2d[over_mask] = normalize_particle(rows)
    return tensors


class ParticleSystem:
    """
    Simulation context: particle state, global tick counter and pointer.

    Owns physical state only. Presentation lifecycle (fade phase, respawn
    snapshot) belongs to the caller, which respawns particles through
    ``reset_particle``.
    """

    def __init__(
        self,
        field: VelocityField,
        positions: np.ndarray,
        config: Optional[SimulationConfig] = None,
    ):
        self.cfg = config or SimulationConfig()
        if self.cfg.dim not in (2, 3):
            raise ValueError(f"dim must be 2 or 3, got {self.cfg.dim}")

        self.field = field
        self.positions = self._as_positions(positions)
        self.tensors = identity_tensors(len(self.positions), self.cfg.dim)
        self.threshold = self.cfg.resolved_threshold()

        self.time = 0.0
        self._pointer = (0.0, 0.0)

    @staticmethod
    def _as_positions(positions) -> np.ndarray:
        positions = np.array(positions, dtype=np.float64, ndmin=2)
        if positions.shape[1] == 2:
            positions = np.column_stack([positions, np.zeros(len(positions))])
        if positions.shape[1] != 3:
            raise ValueError(f"positions must have 2 or 3 columns, got {positions.shape[1]}")
        return positions

    def __len__(self) -> int:
        return len(self.positions)

    @property
    def dim(self) -> int:
        return self.cfg.dim

    @property
    def pointer(self) -> Tuple[float, float]:
        return self._pointer

    def set_pointer(self, x: float, y: float) -> Tuple[float, float]:
        """Store the pointer pair, clamped to ``[-0.9, 0.9]``."""
        self._pointer = clamp_pointer(x, y)
        return self._pointer

    def velocity(self, positions: Optional[np.ndarray] = None) -> np.ndarray:
        """Field velocity at ``positions`` (default: the particles), ``(n, 3)``."""
        pos = self.positions if positions is None else self._as_positions(positions)
        vx, vy, vz = self.field(pos[:, 0], pos[:, 1], pos[:, 2], self.time, self._pointer)
        return np.column_stack(np.broadcast_arrays(vx, vy, vz)).astype(np.float64)

    def jacobian(self, positions: Optional[np.ndarray] = None) -> np.ndarray:
        """
        One-step flow map ``I + vscale * grad(v)`` by central differences.

        Returns:
            ``(n, dim, dim)`` array, ``F[:, i, j] ~ d(x_i') / d(x_j)``.
        """
        pos = self.positions if positions is None else self._as_positions(positions)
        dim = self.cfg.dim
        delta = self.cfg.delta

        grad = np.empty((len(pos), dim, dim))
        for j in range(dim):
            step = np.zeros(3)
            step[j] = delta
            plus = self.velocity(pos + step)
            minus = self.velocity(pos - step)
            grad[:, :, j] = (plus[:, :dim] - minus[:, :dim]) / (2 * delta)

        return np.eye(dim) + self.cfg.vscale * grad

    def tick(self) -> None:
        """Advance global time by one and step every particle."""
        self.time += 1
        dim = self.cfg.dim

        v = self.velocity()
        flow = self.jacobian()

        shape = tensors_to_matrices(self.tensors)
        shape = np.einsum("nij,njk,nlk->nil", flow, shape, flow)
        self.tensors = matrices_to_tensors(shape)

        self.positions[:, :dim] += self.cfg.vscale * v[:, :dim]
        normalize_particle2(self.tensors, self.threshold)

    def reset_particle(self, index: int, position) -> None:
        """Respawn one particle at ``position`` with an identity tensor."""
        self.positions[index] = self._as_positions(position)[0]
        self.tensors[index] = identity_tensors(1, self.cfg.dim)[0]

    def determinants(self) -> np.ndarray:
        return tensor_determinant(self.tensors)
