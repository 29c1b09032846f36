"""
Color grading and backdrops for splat frames.

Frames are composed in float32 RGB in [0, 1] and only converted to uint8
at the very end, after glow, vignette and soft tone mapping.
"""

from typing import Sequence, Tuple

import numpy as np
from PIL import Image, ImageFilter

# (t, rgb) stops for the sky; t = -angle_z + (2 * row_fraction - 1)
SKY_STOPS: Sequence[Tuple[float, Tuple[int, int, int]]] = (
    (-2.0, (0x40, 0x60, 0xA0)),
    (-1.0, (0x87, 0xCE, 0xEB)),
    (1.0, (0xFF, 0xDD, 0xAA)),
    (2.0, (0xFF, 0x88, 0x88)),
)


def sky_gradient(width: int, height: int, angle_z: float) -> np.ndarray:
    """
    Vertical sky gradient that slides with the camera tilt.

    Returns:
        (H, W, 3) float32 in [0, 1].
    """
    rows = np.linspace(0.0, 1.0, height)
    t = -angle_z + (2 * rows - 1)

    stop_t = np.array([s[0] for s in SKY_STOPS])
    stop_rgb = np.array([s[1] for s in SKY_STOPS], dtype=np.float64) / 255.0

    # np.interp holds the end colours outside the stop range
    column = np.stack([np.interp(t, stop_t, stop_rgb[:, ch]) for ch in range(3)], axis=-1)
    return np.broadcast_to(column[:, None, :], (height, width, 3)).astype(np.float32)


def solid_background(width: int, height: int, color: Tuple[float, float, float]) -> np.ndarray:
    """(H, W, 3) float32 frame filled with ``color`` (components in [0, 1])."""
    return np.broadcast_to(np.asarray(color, dtype=np.float32), (height, width, 3)).copy()


def shade_color(brightness) -> np.ndarray:
    """
    Warm smoke tint for a light level in [0, 1].

    Levels are quantised to tenths so lit and shadowed splats fall into a
    handful of shared tints.

    Returns:
        (..., 3) float32 RGB in [0, 1].
    """
    level = np.round(np.clip(brightness, 0.0, 1.0) * 10) / 10
    r = np.minimum(level * 128 + 128, 255.0)
    g = level * 64 + 128
    b = np.full_like(level, 128.0)
    return (np.stack([r, g, b], axis=-1) / 255.0).astype(np.float32)


def to_uint8(frame: np.ndarray) -> np.ndarray:
    return (np.clip(frame, 0.0, 1.0) * 255).astype(np.uint8)


def add_glow(
    frame: np.ndarray,
    intensity: float = 0.25,
    radius: int = 6,
) -> np.ndarray:
    """
    Screen-blend a blurred copy of a float frame over itself.

    Args:
        frame: (H, W, 3) float32 in [0, 1].
        intensity: Glow opacity.
        radius: Gaussian blur radius in pixels.
    """
    if intensity <= 0:
        return frame

    blurred = Image.fromarray(to_uint8(frame)).filter(ImageFilter.GaussianBlur(radius=radius))
    glow = np.asarray(blurred, dtype=np.float32) / 255.0 * intensity
    return 1.0 - (1.0 - frame) * (1.0 - glow)


def vignette(frame: np.ndarray, strength: float = 0.2) -> np.ndarray:
    """Darken a float frame radially toward the corners."""
    if strength <= 0:
        return frame

    h, w = frame.shape[:2]
    y = np.arange(h, dtype=np.float32) - h / 2
    x = np.arange(w, dtype=np.float32) - w / 2
    xg, yg = np.meshgrid(x, y)
    r = np.sqrt(xg ** 2 + yg ** 2) / np.sqrt((w / 2) ** 2 + (h / 2) ** 2)

    falloff = 1.0 - np.clip(r * strength, 0, 1) ** 2
    return frame * falloff[:, :, np.newaxis]


def tone_map_soft(frame: np.ndarray, shoulder: float = 0.85) -> np.ndarray:
    """
    Reinhard-style highlight roll-off above ``shoulder``.

    Values below the shoulder pass through; values above approach 1
    asymptotically instead of clipping.
    """
    headroom = 1.0 - shoulder
    above = np.maximum(frame - shoulder, 0.0)
    compressed = shoulder + above * headroom / (above + headroom)
    return np.where(frame > shoulder, compressed, frame).astype(np.float32)
