"""Noise synthesis and periodic field sampling."""

from splatflow.core.noise import (
    generate_noise,
    generate_noise_texture,
    generate_smooth_noise,
    generate_smooth_noise_3d,
)
from splatflow.core.sampling import value_at, value_at_1d, value_at_3d
from splatflow.core.smoothing import smooth_1d, smooth_2d, smooth_3d

__all__ = [
    "generate_noise",
    "generate_noise_texture",
    "generate_smooth_noise",
    "generate_smooth_noise_3d",
    "smooth_1d",
    "smooth_2d",
    "smooth_3d",
    "value_at",
    "value_at_1d",
    "value_at_3d",
]
