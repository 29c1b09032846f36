"""
2-D vortex smoke.

Flat particles swirl around a softened point vortex that follows the
pointer, stirred by drifting noise turbulence. Orthographic x-y view.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from splatflow.core.noise import generate_noise
from splatflow.core.sampling import value_at
from splatflow.experiment.base import BaseScene, SceneConfig, rejection_walk
from splatflow.experiment.colorgrade import solid_background
from splatflow.sim.fields import NoiseVortexField
from splatflow.sim.particles import SimulationConfig
from splatflow.sim.projection import ScreenParticles, plane_projection


@dataclass
class VortexConfig(SceneConfig):
    """Configuration for the 2-D vortex scene."""
    strength: float = 0.2
    falloff: float = 0.5
    core_radius: float = 0.05
    noise_gain: float = 4.0

    # Elongation cap for flat splats
    threshold: float = 4.0

    # Spawn density
    density_size: int = 128
    spawn_gain: float = 1.0

    background: Tuple[float, float, float] = (0.03, 0.03, 0.06)
    tint: Tuple[float, float, float] = (0.55, 0.75, 1.0)


class VortexScene(BaseScene):
    """Renders the 2-D vortex."""

    def __init__(self, config: Optional[VortexConfig] = None, seed: Optional[int] = None):
        super().__init__(config or VortexConfig(), seed)
        self.cfg: VortexConfig = self.cfg  # type annotation

    def _build_field(self) -> NoiseVortexField:
        cfg = self.cfg
        return NoiseVortexField(
            strength=cfg.strength,
            falloff=cfg.falloff,
            core_radius=cfg.core_radius,
            noise_gain=cfg.noise_gain,
            rng=self.rng,
        )

    def _spawn_positions(self, count: int) -> np.ndarray:
        size = self.cfg.density_size
        self._density = generate_noise(size, rng=self.rng)
        xy = rejection_walk(self.rng, count, self._density, scale=size, gain=self.cfg.spawn_gain)
        return np.column_stack([xy, np.zeros(count)])

    def _simulation_config(self) -> SimulationConfig:
        return SimulationConfig(dim=2, threshold=self.cfg.threshold)

    def _project(self) -> ScreenParticles:
        return plane_projection(self.system.positions, self.system.tensors, "xy")

    def _background(self) -> np.ndarray:
        return solid_background(self.cfg.width, self.cfg.height, self.cfg.background)

    def _brightness(self) -> np.ndarray:
        # Denser spawn regions read brighter, sampled at the respawn point
        size = self.cfg.density_size
        start = self.initial_positions
        return 0.5 + 0.5 * value_at(self._density, start[:, 0] * size, start[:, 1] * size)

    def _colors(self, brightness: np.ndarray) -> np.ndarray:
        tint = np.asarray(self.cfg.tint, dtype=np.float32)
        return (brightness[:, None] * tint[None, :]).astype(np.float32)
