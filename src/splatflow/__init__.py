"""Noise-driven particle smoke with anisotropic splat rendering."""

from splatflow.core.noise import generate_noise, generate_smooth_noise, generate_smooth_noise_3d
from splatflow.sim.fields import NoiseVortexField, VelocityField, VortexField, WindField
from splatflow.sim.particles import ParticleSystem, SimulationConfig

__version__ = "0.1.0"
__all__ = [
    "generate_noise",
    "generate_smooth_noise",
    "generate_smooth_noise_3d",
    "NoiseVortexField",
    "ParticleSystem",
    "SimulationConfig",
    "VelocityField",
    "VortexField",
    "WindField",
]
