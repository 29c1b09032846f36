"""
Base classes for splatflow scenes.

A scene wires one velocity field and one projection into the shared
particle integrator and owns everything presentational: fade phase,
respawn snapshots, splat textures, tinting and post-processing.
"""

import abc
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np

from splatflow.core.noise import generate_noise_texture
from splatflow.core.sampling import value_at
from splatflow.experiment.colorgrade import add_glow, to_uint8, tone_map_soft, vignette
from splatflow.experiment.splat import SplatCanvas, draw_splats
from splatflow.sim.fields import VelocityField
from splatflow.sim.particles import ParticleSystem, SimulationConfig
from splatflow.sim.projection import ScreenParticles, ellipse_from_covariance


@dataclass
class SceneConfig:
    """Universal configuration for all scenes."""
    width: int = 512
    height: int = 512
    fps: int = 60

    # Population
    n_particles: int = 2000
    phase_step: float = 0.002   # lifetime advance per frame; respawn at 1

    # Splats
    splat_radius: float = 0.05
    splat_alpha: float = 0.5
    n_textures: int = 16
    texture_size: int = 64

    # Input
    pointer: Tuple[float, float] = (0.0, 0.0)

    # Post-processing
    glow_enabled: bool = True
    glow_intensity: float = 0.25
    glow_radius: int = 6
    vignette_strength: float = 0.2


def fade_alpha(phase: np.ndarray) -> np.ndarray:
    """Fade in over the first tenth of a lifetime and out over the last."""
    return np.where(
        phase < 0.1, phase * 10,
        np.where(phase > 0.9, (1 - phase) * 10, 1.0),
    )


def rejection_walk(
    rng: np.random.Generator,
    count: int,
    density: np.ndarray,
    scale: float,
    gain: float,
    step: float = 0.4,
    max_steps: int = 10,
) -> np.ndarray:
    """
    Density-biased start positions on the x-y plane.

    Every walker starts at the origin and takes up to ``max_steps``
    uniform steps in ``[-step, step]``; after each step it settles with
    probability ``gain * density(x * scale, y * scale)``. Walkers that
    never settle keep their last position.

    Returns:
        ``(count, 2)`` array.
    """
    xy = np.zeros((count, 2))
    walking = np.ones(count, dtype=bool)
    for _ in range(max_steps):
        n = int(walking.sum())
        if n == 0:
            break
        xy[walking] += rng.uniform(-step, step, size=(n, 2))
        moved = xy[walking]
        settle = rng.random(n) < gain * value_at(density, moved[:, 0] * scale, moved[:, 1] * scale)
        idx = np.flatnonzero(walking)
        walking[idx[settle]] = False
    return xy


class BaseScene(abc.ABC):
    """
    Abstract base for all splatflow scenes.

    Subclasses provide the field, the spawn distribution, the projection
    and the backdrop; the base runs the lifecycle and the splat pass.
    """

    def __init__(self, config: Optional[SceneConfig] = None, seed: Optional[int] = None):
        self.cfg = config or SceneConfig()
        self.rng = np.random.default_rng(seed)

        self.field = self._build_field()
        positions = self._spawn_positions(self.cfg.n_particles)
        self.system = ParticleSystem(self.field, positions, self._simulation_config())
        self.initial_positions = self.system.positions.copy()
        self.phase = self.rng.random(self.cfg.n_particles)

        self.textures = [
            generate_noise_texture(self.cfg.texture_size, rng=self.rng)
            for _ in range(self.cfg.n_textures)
        ]
        self.set_pointer(*self.cfg.pointer)
        self.frame_index = 0

    # ------------------------------------------------------------------
    # Scene hooks
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _build_field(self) -> VelocityField:
        pass

    @abc.abstractmethod
    def _spawn_positions(self, count: int) -> np.ndarray:
        """Return ``(count, 3)`` initial positions."""
        pass

    @abc.abstractmethod
    def _simulation_config(self) -> SimulationConfig:
        pass

    @abc.abstractmethod
    def _project(self) -> ScreenParticles:
        pass

    @abc.abstractmethod
    def _background(self) -> np.ndarray:
        """(H, W, 3) float32 backdrop for the current frame."""
        pass

    def _brightness(self) -> np.ndarray:
        """Per-particle light level in [0, 1]."""
        return np.ones(len(self.system))

    def _colors(self, brightness: np.ndarray) -> np.ndarray:
        return np.tile(np.array([1.0, 1.0, 1.0], dtype=np.float32), (len(brightness), 1))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_pointer(self, x: float, y: float) -> Tuple[float, float]:
        return self.system.set_pointer(x, y)

    def update(self) -> None:
        """Advance the simulation by one tick."""
        self.system.tick()

    def advance_lifecycle(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Age every particle by one frame and respawn the expired ones.

        Returns:
            ``(alphas, visible)``; respawned particles are hidden this frame.
        """
        self.phase += self.cfg.phase_step
        expired = self.phase >= 1
        for i in np.flatnonzero(expired):
            self.phase[i] = 0.0
            self.system.reset_particle(i, self.initial_positions[i])

        alphas = fade_alpha(self.phase) * self.cfg.splat_alpha
        return alphas, ~expired

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render_frame(self) -> np.ndarray:
        """Draw the current state. Returns (H, W, 3) uint8."""
        alphas, visible = self.advance_lifecycle()
        brightness = self._brightness()
        colors = self._colors(brightness)

        screen = self._project()
        ellipse = ellipse_from_covariance(screen.xx, screen.yy, screen.xy)
        drawable = np.flatnonzero(visible & ellipse[3])

        canvas = SplatCanvas(self._background())
        draw_splats(
            canvas, screen, ellipse, drawable,
            self.cfg.splat_radius, alphas, self.textures, colors,
        )
        self.frame_index += 1
        return self._post_process(canvas.frame)

    def _post_process(self, frame: np.ndarray) -> np.ndarray:
        cfg = self.cfg
        if cfg.glow_enabled:
            frame = add_glow(frame, intensity=cfg.glow_intensity, radius=cfg.glow_radius)
        if cfg.vignette_strength > 0:
            frame = vignette(frame, strength=cfg.vignette_strength)
        return to_uint8(tone_map_soft(frame))

    def render(self, n_frames: int) -> Iterator[np.ndarray]:
        """Yield ``n_frames`` frames, ticking the simulation before each."""
        for _ in range(n_frames):
            self.update()
            yield self.render_frame()
