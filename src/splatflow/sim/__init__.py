"""Velocity fields, the particle integrator and splat projection."""

from splatflow.sim.fields import NoiseVortexField, VelocityField, VortexField, WindField
from splatflow.sim.particles import (
    ParticleSystem,
    SimulationConfig,
    normalize_particle,
    normalize_particle2,
    tensor_determinant,
)
from splatflow.sim.projection import (
    ScreenParticles,
    clamp_pointer,
    ellipse_from_covariance,
    perspective,
    project,
    view_matrix,
    view_transform,
)

__all__ = [
    "NoiseVortexField",
    "ParticleSystem",
    "ScreenParticles",
    "SimulationConfig",
    "VelocityField",
    "VortexField",
    "WindField",
    "clamp_pointer",
    "ellipse_from_covariance",
    "normalize_particle",
    "normalize_particle2",
    "perspective",
    "project",
    "tensor_determinant",
    "view_matrix",
    "view_transform",
]
