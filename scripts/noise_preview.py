"""
Noise Field Preview
===================
Dumps the noise lattices behind the splatflow scenes as grayscale PNGs,
for eyeballing octave balance and tiling seams.

Usage
-----
    python scripts/noise_preview.py previews/
    python scripts/noise_preview.py previews/ --size 256 --seed 7 --tile
"""

import argparse
from pathlib import Path

import numpy as np
from PIL import Image

from splatflow.core.noise import (
    generate_noise,
    generate_noise_texture,
    generate_smooth_noise,
    generate_smooth_noise_3d,
)


def to_gray(field: np.ndarray) -> Image.Image:
    """Min-max stretch a 2-D field into an 8-bit grayscale image."""
    lo, hi = float(field.min()), float(field.max())
    span = hi - lo if hi > lo else 1.0
    return Image.fromarray(((field - lo) / span * 255).astype(np.uint8))


def main():
    parser = argparse.ArgumentParser(description="Dump splatflow noise fields as PNGs")
    parser.add_argument("output_dir", type=Path)
    parser.add_argument("--size", type=int, default=128)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--tile", action="store_true", help="Repeat each field 2x2 to check seams")
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)
    size = args.size
    fields = {
        "fractal": generate_noise(size, rng=rng),
        "smooth": generate_smooth_noise(size, max(1.0, size / 16), rng=rng),
        "slice3d": generate_smooth_noise_3d(size, size, 8, 2, 2, 2, rng=rng)[:, :, 0],
        "texture": generate_noise_texture(size, rng=rng),
    }

    args.output_dir.mkdir(parents=True, exist_ok=True)
    for name, field in fields.items():
        if args.tile and name != "texture":
            field = np.tile(field, (2, 2))
        path = args.output_dir / f"{name}.png"
        to_gray(field).save(path)
        print(f"  {name}: {field.shape[1]}x{field.shape[0]} -> {path}")


if __name__ == "__main__":
    main()
