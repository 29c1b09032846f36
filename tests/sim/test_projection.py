"""Tests for camera and splat-shape projection."""

import math

import numpy as np
import pytest

from splatflow.sim.projection import (
    ScreenParticles,
    clamp_pointer,
    ellipse_from_covariance,
    matrices_to_tensors,
    perspective,
    plane_projection,
    project,
    tensors_to_matrices,
    view_matrix,
    view_transform,
)


def _screen(z, x=1.0, y=-2.0, xx=4.0, yy=1.0, xy=0.5):
    z = np.atleast_1d(np.asarray(z, dtype=np.float64))
    n = len(z)
    return ScreenParticles(
        x=np.full(n, x), y=np.full(n, y), z=z,
        xx=np.full(n, xx), yy=np.full(n, yy), xy=np.full(n, xy),
    )


class TestClampPointer:
    def test_inside(self):
        assert clamp_pointer(0.2, -0.4) == (0.2, -0.4)

    def test_outside(self):
        assert clamp_pointer(1.5, -3.0) == (0.9, -0.9)

    def test_returns_floats(self):
        x, y = clamp_pointer(np.float32(0.5), 0)
        assert type(x) is float and type(y) is float


class TestViewMatrix:
    def test_centre_pointer(self):
        matrix, angle_z = view_matrix((0.0, 0.0))
        np.testing.assert_allclose(matrix, [[1, 0, 0], [0, 0, -1], [0, 1, 0]], atol=1e-12)
        assert angle_z == 0.0

    @pytest.mark.parametrize("pointer", [(0.3, -0.7), (-0.9, 0.9), (0.5, 0.1)])
    def test_orthonormal(self, pointer):
        matrix, _ = view_matrix(pointer)
        np.testing.assert_allclose(matrix @ matrix.T, np.eye(3), atol=1e-12)
        assert np.linalg.det(matrix) == pytest.approx(1.0)

    def test_angle_from_pointer_y(self):
        _, angle_z = view_matrix((0.0, 0.5))
        assert angle_z == pytest.approx(0.15 * math.pi)

    def test_pointer_clamped(self):
        far, _ = view_matrix((5.0, 5.0))
        edge, _ = view_matrix((0.9, 0.9))
        np.testing.assert_allclose(far, edge)


class TestTensorPacking:
    def test_round_trip_3d(self, spd_tensors_3d):
        back = matrices_to_tensors(tensors_to_matrices(spd_tensors_3d))
        np.testing.assert_array_equal(back, spd_tensors_3d)

    def test_symmetric(self, spd_tensors_3d):
        m = tensors_to_matrices(spd_tensors_3d)
        np.testing.assert_array_equal(m, m.transpose(0, 2, 1))

    def test_layout_2d(self):
        m = tensors_to_matrices(np.array([[2.0, 3.0, 0.5]]))
        np.testing.assert_array_equal(m[0], [[2.0, 0.5], [0.5, 3.0]])

    def test_bad_width(self):
        with pytest.raises(ValueError):
            tensors_to_matrices(np.zeros((2, 5)))

    def test_bad_matrix_size(self):
        with pytest.raises(ValueError):
            matrices_to_tensors(np.zeros((2, 4, 4)))


class TestPlaneProjection:
    def test_xy(self):
        positions = np.array([[0.1, 0.2, 0.3]])
        tensors = np.array([[1.0, 2.0, 3.0, 0.4, 0.5, 0.6]])
        screen = plane_projection(positions, tensors)
        assert (screen.x[0], screen.y[0], screen.z[0]) == (0.1, 0.2, 0.3)
        assert (screen.xx[0], screen.yy[0], screen.xy[0]) == (1.0, 2.0, 0.4)

    def test_xz(self):
        positions = np.array([[0.1, 0.2, 0.3]])
        tensors = np.array([[1.0, 2.0, 3.0, 0.4, 0.5, 0.6]])
        screen = plane_projection(positions, tensors, "xz")
        assert (screen.x[0], screen.y[0], screen.z[0]) == (0.1, 0.3, 0.2)
        assert (screen.xx[0], screen.yy[0], screen.xy[0]) == (1.0, 3.0, 0.6)

    def test_2d_tensors(self):
        screen = plane_projection(np.zeros((2, 3)), np.array([[1.0, 2.0, 0.3]] * 2))
        np.testing.assert_array_equal(screen.xy, 0.3)
        assert len(screen) == 2

    def test_xz_needs_3d(self):
        with pytest.raises(ValueError):
            plane_projection(np.zeros((1, 3)), np.array([[1.0, 1.0, 0.0]]), "xz")

    def test_unknown_plane(self):
        with pytest.raises(ValueError):
            plane_projection(np.zeros((1, 3)), np.array([[1.0, 1.0, 0.0]]), "yz")


class TestViewTransform:
    def test_identity(self, spd_tensors_3d):
        positions = np.random.default_rng(0).uniform(-1, 1, (64, 3))
        screen = view_transform(positions, spd_tensors_3d, np.eye(3))
        np.testing.assert_allclose(screen.x, positions[:, 0])
        np.testing.assert_allclose(screen.z, positions[:, 2])
        np.testing.assert_allclose(screen.xx, spd_tensors_3d[:, 0])
        np.testing.assert_allclose(screen.xy, spd_tensors_3d[:, 3])

    def test_quarter_turn(self):
        rotate = np.array([[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
        tensors = np.array([[4.0, 1.0, 1.0, 0.0, 0.0, 0.0]])
        screen = view_transform(np.array([[1.0, 0.0, 0.0]]), tensors, rotate)
        assert screen.x[0] == pytest.approx(0.0)
        assert screen.y[0] == pytest.approx(1.0)
        assert screen.xx[0] == pytest.approx(1.0)
        assert screen.yy[0] == pytest.approx(4.0)

    def test_flat_tensors_embedded(self):
        matrix, _ = view_matrix((0.0, 0.0))
        tensors = np.array([[3.0, 2.0, 0.5]])
        screen = view_transform(np.zeros((1, 3)), tensors, matrix)
        # the camera looks along y, so the flat y spread becomes depth
        assert screen.xx[0] == pytest.approx(3.0)
        assert screen.yy[0] == pytest.approx(1.0)
        assert screen.xy[0] == pytest.approx(0.0)


class TestPerspective:
    def test_zero_depth_unchanged(self):
        screen = perspective(_screen(0.0), 2.0)
        assert screen.x[0] == pytest.approx(1.0)
        assert screen.xx[0] == pytest.approx(4.0)

    def test_at_distance_halves(self):
        screen = perspective(_screen(2.0), 2.0)
        assert screen.x[0] == pytest.approx(0.5)
        assert screen.y[0] == pytest.approx(-1.0)
        assert screen.xx[0] == pytest.approx(1.0)
        assert screen.yy[0] == pytest.approx(0.25)
        assert screen.xy[0] == pytest.approx(0.125)

    def test_closer_is_larger(self):
        screen = perspective(_screen([-1.0, 1.0]), 2.0)
        assert screen.xx[0] > screen.xx[1]

    def test_behind_eye_culled(self):
        screen = perspective(_screen([-2.0, -3.0, 0.5]), 2.0)
        assert np.isnan(screen.x[0]) and np.isnan(screen.x[1])
        assert np.isfinite(screen.x[2])
        _, _, _, valid = ellipse_from_covariance(screen.xx, screen.yy, screen.xy)
        np.testing.assert_array_equal(valid, [False, False, True])


class TestEllipseFromCovariance:
    def test_identity(self):
        a, b, c, valid = ellipse_from_covariance(1.0, 1.0, 0.0)
        assert (float(a), float(b), float(c)) == pytest.approx((1.0, 1.0, 0.0))
        assert valid

    def test_axis_aligned(self):
        a, b, c, _ = ellipse_from_covariance(9.0, 4.0, 0.0)
        assert (float(a), float(b), float(c)) == pytest.approx((3.0, 2.0, 0.0))

    def test_reconstructs_covariance(self, spd_tensors_2d):
        xx, yy, xy = spd_tensors_2d.T
        a, b, c, valid = ellipse_from_covariance(xx, yy, xy)
        assert np.all(valid)
        np.testing.assert_allclose(a * a + c * c, xx, rtol=1e-9)
        np.testing.assert_allclose(b * b + c * c, yy, rtol=1e-9)
        np.testing.assert_allclose((a + b) * c, xy, rtol=1e-9, atol=1e-12)

    def test_recovers_map(self, rng):
        a = rng.uniform(0.2, 2.0, 200)
        b = rng.uniform(0.2, 2.0, 200)
        c = rng.uniform(-1.0, 1.0, 200) * np.sqrt(a * b) * 0.95
        assert np.all(a * b > c * c)

        xx = a * a + c * c
        yy = b * b + c * c
        xy = (a + b) * c
        ra, rb, rc, valid = ellipse_from_covariance(xx, yy, xy)

        assert np.all(valid)
        np.testing.assert_allclose(ra, a, rtol=1e-9)
        np.testing.assert_allclose(rb, b, rtol=1e-9)
        np.testing.assert_allclose(rc, c, rtol=1e-9, atol=1e-12)

    def test_positive_branch(self, spd_tensors_2d):
        xx, yy, xy = spd_tensors_2d.T
        a, b, c, _ = ellipse_from_covariance(xx, yy, xy)
        assert np.all(a > 0) and np.all(b > 0)
        assert np.all(a * b > c * c)

    def test_indefinite_invalid(self):
        _, _, _, valid = ellipse_from_covariance([1.0, 1.0], [1.0, 1.0], [2.0, 0.0])
        np.testing.assert_array_equal(valid, [False, True])

    def test_empty_tensor_invalid(self):
        _, _, _, valid = ellipse_from_covariance(0.0, 0.0, 0.0)
        assert not valid


class TestProject:
    def test_default_is_xy_plane(self, spd_tensors_3d):
        positions = np.random.default_rng(1).uniform(-1, 1, (64, 3))
        screen = project(positions, spd_tensors_3d)
        np.testing.assert_array_equal(screen.y, positions[:, 1])

    def test_with_camera_and_distance(self, spd_tensors_3d):
        positions = np.random.default_rng(1).uniform(-1, 1, (64, 3))
        matrix, _ = view_matrix((0.2, 0.1))
        flat = project(positions, spd_tensors_3d, matrix)
        deep = project(positions, spd_tensors_3d, matrix, distance=3.0)
        scale = 3.0 / (3.0 + flat.z)
        np.testing.assert_allclose(deep.x, flat.x * scale)
        np.testing.assert_allclose(deep.yy, flat.yy * scale * scale)
