"""
Velocity fields.

A field maps particle positions (plus the global tick counter and the
clamped pointer pair) to a 3-D velocity. Fields are evaluated seven times
per particle per tick by the integrator (once at the particle and at
+/- delta along each axis), so they must be vectorised and side-effect
free. Noise lattices are built once in ``__init__`` and frozen.
"""

import abc
import math
from typing import Optional, Sequence, Tuple

import numpy as np

from splatflow.core.noise import generate_smooth_noise, generate_smooth_noise_3d
from splatflow.core.sampling import value_at, value_at_3d

Velocity = Tuple[np.ndarray, np.ndarray, np.ndarray]


def _freeze(grid: np.ndarray) -> np.ndarray:
    grid.setflags(write=False)
    return grid


class VelocityField(abc.ABC):
    """Pluggable velocity field consumed by ``ParticleSystem``."""

    @property
    def noise_fields(self) -> Tuple[np.ndarray, ...]:
        """Read-only noise lattices this field samples (for visualisation)."""
        return ()

    @abc.abstractmethod
    def __call__(
        self,
        x: np.ndarray,
        y: np.ndarray,
        z: np.ndarray,
        time: float = 0.0,
        pointer: Tuple[float, float] = (0.0, 0.0),
    ) -> Velocity:
        """Return ``(vx, vy, vz)`` arrays broadcast against the inputs."""
        pass


class VortexField(VelocityField):
    """
    Analytic point vortex in the x-y plane.

    ``v = k * (-dy, dx) / r2``, optionally divided by ``falloff + r``.
    Both forms are divergence-free away from the centre. ``core_radius``
    floors the radius; the default 0 leaves the singularity unguarded.
    """

    def __init__(
        self,
        strength: float = 1.0,
        falloff: Optional[float] = None,
        core_radius: float = 0.0,
        center_follows_pointer: bool = True,
    ):
        self.strength = strength
        self.falloff = falloff
        self.core_radius = core_radius
        self.center_follows_pointer = center_follows_pointer

    def __call__(self, x, y, z, time=0.0, pointer=(0.0, 0.0)) -> Velocity:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        cx, cy = pointer if self.center_follows_pointer else (0.0, 0.0)
        dx = x - cx
        dy = y - cy

        r2 = dx * dx + dy * dy
        if self.core_radius > 0:
            r2 = np.maximum(r2, self.core_radius ** 2)

        gain = self.strength / r2
        if self.falloff is not None:
            gain = gain / (self.falloff + np.sqrt(r2))

        vx = -dy * gain
        vy = dx * gain
        return vx, vy, np.zeros_like(vx)


class NoiseVortexField(VelocityField):
    """
    Swirling 2-D smoke: a softened vortex plus drifting noise turbulence.

    Each turbulence term samples the same periodic noise grid through its
    own rotation, frequency and time rate so the terms stay uncorrelated.
    """

    # (angle, frequency, time rate, lattice offset)
    _TERMS: Tuple[Tuple[float, float, float, float], ...] = (
        (0.0, 24.0, 0.08, 0.0),
        (2.1, 40.0, -0.12, 71.0),
    )

    def __init__(
        self,
        strength: float = 0.05,
        falloff: float = 0.5,
        core_radius: float = 0.05,
        noise_gain: float = 4.0,
        noise_size: int = 256,
        noise_scale: float = 16.0,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.vortex = VortexField(strength, falloff=falloff, core_radius=core_radius)
        self.noise_gain = noise_gain
        self._noise = _freeze(generate_smooth_noise(noise_size, noise_scale, rng=rng, seed=seed))

    @property
    def noise_fields(self):
        return (self._noise,)

    def __call__(self, x, y, z, time=0.0, pointer=(0.0, 0.0)) -> Velocity:
        vx, vy, vz = self.vortex(x, y, z, time, pointer)
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)

        for angle, freq, rate, offset in self._TERMS:
            c = math.cos(angle)
            s = math.sin(angle)
            tx = freq * (c * x - s * y) + rate * time
            ty = freq * (s * x + c * y) + offset
            vx = vx + value_at(self._noise, tx, ty) * self.noise_gain
            vy = vy + value_at(self._noise, tx + 37.0, ty + 11.0) * self.noise_gain
        return vx, vy, vz


class WindField(VelocityField):
    """
    Layered 3-D wind: a uniform +x drift plus three scrolling samples of
    one 3-D noise lattice. Horizontal components get a strong gain, the
    vertical one a weak gain, which keeps the smoke in sheets.
    """

    # (x rate, y rate, z offset) per noise term
    _TERMS: Sequence[Tuple[float, float, float]] = (
        (0.05, 0.1, 0.0),
        (-0.1, 0.05, 3.0),
        (0.1, -0.1, 6.0),
    )

    def __init__(
        self,
        size: int = 64,
        scale: float = 2.0,
        base_flow: Tuple[float, float, float] = (1.0, 0.0, 0.0),
        horizontal_gain: float = 20.0,
        vertical_gain: float = 2.0,
        frequency: Tuple[float, float, float] = (8.0, 32.0, 4.0),
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ):
        self.base_flow = base_flow
        self.horizontal_gain = horizontal_gain
        self.vertical_gain = vertical_gain
        self.frequency = frequency
        self._noise = _freeze(
            generate_smooth_noise_3d(size, size, size, scale, scale, scale, rng=rng, seed=seed)
        )

    @property
    def noise_fields(self):
        return (self._noise,)

    def __call__(self, x, y, z, time=0.0, pointer=(0.0, 0.0)) -> Velocity:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        z = np.asarray(z, dtype=np.float64)
        fx, fy, fz = self.frequency
        bx, by, bz = self.base_flow

        vx = np.full(np.broadcast(x, y, z).shape, bx, dtype=np.float64)
        vy = np.full_like(vx, by)
        vz = np.full_like(vx, bz)

        for x_rate, y_rate, z_offset in self._TERMS:
            tx = x * fx + x_rate * time
            ty = y * fy + y_rate * time
            tz = z * fz + z_offset
            vx += value_at_3d(self._noise, tx, ty, tz) * self.horizontal_gain
            vy += value_at_3d(self._noise, tx, ty, tz + 10) * self.horizontal_gain
            vz += value_at_3d(self._noise, tx, ty, tz + 20) * self.vertical_gain
        return vx, vy, vz
