"""
3-D wind-blown smoke with self-shadowing.

Particles ride a layered noise wind; a light-space shadow map darkens
splats behind dense smoke, and the pointer orbits the camera over a sky
gradient. Optional perspective foreshortening.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from splatflow.core.noise import generate_smooth_noise
from splatflow.core.sampling import value_at
from splatflow.experiment.base import BaseScene, SceneConfig, rejection_walk
from splatflow.experiment.colorgrade import shade_color, sky_gradient
from splatflow.experiment.shadow import ShadowMap3D
from splatflow.sim.fields import WindField
from splatflow.sim.particles import SimulationConfig
from splatflow.sim.projection import ScreenParticles, perspective, view_matrix, view_transform


@dataclass
class WindConfig(SceneConfig):
    """Configuration for the 3-D wind scene."""
    noise_size: int = 64
    noise_scale: float = 2.0

    # Elongation cap for volumetric splats
    threshold: float = 8.0

    # Spawn terrain
    wave_size: int = 256
    wave_scale: float = 16.0
    spawn_gain: float = 100.0

    # Lighting
    shadow_size: int = 64
    shadow_density: float = 4.0

    # Camera; None keeps the orthographic view
    projection_distance: Optional[float] = None


class WindScene(BaseScene):
    """Renders the 3-D wind scene."""

    def __init__(self, config: Optional[WindConfig] = None, seed: Optional[int] = None):
        super().__init__(config or WindConfig(), seed)
        self.cfg: WindConfig = self.cfg  # type annotation
        self.shadow = ShadowMap3D(self.cfg.shadow_size)

    def _build_field(self) -> WindField:
        return WindField(size=self.cfg.noise_size, scale=self.cfg.noise_scale, rng=self.rng)

    def _spawn_positions(self, count: int) -> np.ndarray:
        cfg = self.cfg
        wave = generate_smooth_noise(cfg.wave_size, cfg.wave_scale, rng=self.rng)
        xy = rejection_walk(self.rng, count, wave, scale=cfg.wave_size, gain=cfg.spawn_gain)
        x, y = xy[:, 0], xy[:, 1]

        # Height: fine ripples on top of broad dunes, plus a little jitter
        z = (
            value_at(wave, 200 * (x + y), 200 * (x - y)) * 10
            - 0.05
            + 0.1 * self.rng.random(count)
            + value_at(wave, 32 * (x + y), 32 * (x - y)) * 20
        )
        return np.column_stack([x, y, z])

    def _simulation_config(self) -> SimulationConfig:
        return SimulationConfig(dim=3, threshold=self.cfg.threshold)

    def _light_space(self):
        p = self.system.positions
        x, y, z = p[:, 0], p[:, 1], p[:, 2]
        return y * 0.8, z * 0.8, 0.8 * x - 0.2 * z

    def _brightness(self) -> np.ndarray:
        lx, ly, lz = self._light_space()
        self.shadow.clear()
        self.shadow.add_density(lx, ly, lz, self.cfg.shadow_density)
        self.shadow.calculate_brightness()
        return np.atleast_1d(self.shadow.brightness_at(lx, ly, lz))

    def _colors(self, brightness: np.ndarray) -> np.ndarray:
        return shade_color(brightness)

    def _project(self) -> ScreenParticles:
        matrix, _ = view_matrix(self.system.pointer)
        screen = view_transform(self.system.positions, self.system.tensors, matrix)
        if self.cfg.projection_distance is not None:
            screen = perspective(screen, self.cfg.projection_distance)
        return screen

    def _background(self) -> np.ndarray:
        _, angle_z = view_matrix(self.system.pointer)
        return sky_gradient(self.cfg.width, self.cfg.height, angle_z)
