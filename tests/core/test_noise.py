"""Tests for the smooth-noise generators."""

import numpy as np
import pytest

from splatflow.core.noise import (
    generate_noise,
    generate_noise_texture,
    generate_smooth_noise,
    generate_smooth_noise_3d,
    octave_scales,
)


class TestOctaveScales:
    def test_power_of_two(self):
        assert octave_scales(64) == [64, 32, 16, 8, 4, 2, 1]

    def test_stops_at_one(self):
        scales = octave_scales(100)
        assert scales[0] == 100
        assert scales[-1] >= 1
        assert scales[-1] / 2 < 1

    def test_size_one(self):
        assert octave_scales(1) == [1]


class TestGenerateNoise:
    def test_output_shape(self):
        assert generate_noise(32, seed=1).shape == (32, 32)

    def test_bounds_exact(self):
        noise = generate_noise(64, seed=3)
        assert noise.min() == 0.0
        assert noise.max() == 1.0

    def test_all_cells_in_unit_range(self):
        noise = generate_noise(48, seed=5)
        assert np.all((noise >= 0.0) & (noise <= 1.0))

    def test_deterministic_with_seed(self):
        np.testing.assert_array_equal(generate_noise(32, seed=9), generate_noise(32, seed=9))

    def test_different_seeds_differ(self):
        assert not np.allclose(generate_noise(32, seed=1), generate_noise(32, seed=2))

    def test_accepts_generator(self, rng):
        noise = generate_noise(16, rng=rng)
        assert noise.shape == (16, 16)


class TestGenerateSmoothNoise:
    def test_output_shape(self):
        assert generate_smooth_noise(64, 4, seed=0).shape == (64, 64)

    def test_not_normalised(self):
        noise = generate_smooth_noise(64, 8, seed=0)
        # a positive unit-gain kernel keeps values inside the input range
        assert noise.min() > -1.0
        assert noise.max() < 1.0
        assert noise.max() - noise.min() < 1.0

    def test_larger_scale_is_smoother(self):
        fine = generate_smooth_noise(64, 2, seed=4)
        coarse = generate_smooth_noise(64, 16, seed=4)
        assert np.abs(np.diff(coarse, axis=0)).mean() < np.abs(np.diff(fine, axis=0)).mean()

    def test_deterministic_with_seed(self):
        np.testing.assert_array_equal(
            generate_smooth_noise(32, 4, seed=11),
            generate_smooth_noise(32, 4, seed=11),
        )

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            generate_smooth_noise(16, 0.1, seed=0)


class TestGenerateSmoothNoise3D:
    def test_output_shape(self):
        noise = generate_smooth_noise_3d(8, 6, 4, 2, 2, 2, seed=0)
        assert noise.shape == (8, 6, 4)

    def test_within_input_range(self):
        noise = generate_smooth_noise_3d(16, 16, 16, 2, 3, 4, seed=0)
        assert noise.min() > -1.0
        assert noise.max() < 1.0

    def test_deterministic_with_seed(self):
        a = generate_smooth_noise_3d(8, 8, 8, 2, 2, 2, seed=21)
        b = generate_smooth_noise_3d(8, 8, 8, 2, 2, 2, seed=21)
        np.testing.assert_array_equal(a, b)


class TestNoiseTexture:
    def test_shape_and_dtype(self):
        tex = generate_noise_texture(32, seed=0)
        assert tex.shape == (32, 32)
        assert tex.dtype == np.float32

    def test_range(self):
        tex = generate_noise_texture(32, seed=0)
        assert tex.min() >= 0.0
        assert tex.max() <= 1.0

    def test_corners_transparent(self):
        tex = generate_noise_texture(32, seed=0)
        assert tex[0, 0] == 0.0
        assert tex[0, -1] == 0.0
        assert tex[-1, 0] == 0.0
        assert tex[-1, -1] == 0.0

    def test_not_empty(self):
        tex = generate_noise_texture(32, seed=0)
        assert tex.max() > 0.0
