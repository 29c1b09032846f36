"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest


@pytest.fixture
def rng() -> np.random.Generator:
    """Reproducible random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def spd_tensors_3d(rng) -> np.ndarray:
    """
    Random symmetric positive-definite 3x3 tensors, packed
    ``(xx, yy, zz, xy, yz, zx)``.
    """
    a = rng.normal(size=(64, 3, 3))
    m = a @ a.transpose(0, 2, 1) + 0.1 * np.eye(3)
    return np.stack([
        m[:, 0, 0], m[:, 1, 1], m[:, 2, 2],
        m[:, 0, 1], m[:, 1, 2], m[:, 2, 0],
    ], axis=1)


@pytest.fixture
def spd_tensors_2d(rng) -> np.ndarray:
    """Random symmetric positive-definite 2x2 tensors, packed ``(xx, yy, xy)``."""
    a = rng.normal(size=(64, 2, 2))
    m = a @ a.transpose(0, 2, 1) + 0.1 * np.eye(2)
    return np.stack([m[:, 0, 0], m[:, 1, 1], m[:, 0, 1]], axis=1)
