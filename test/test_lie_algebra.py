"""Unit tests for the spatial algebra helpers."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from hybrid_dynamics.lie_algebra import (
    ad,
    adjoint,
    adjoint_inverse,
    cross_force,
    inverse_transform,
    inverse_transform_twist,
    inverse_transform_wrench,
    rotate_spatial,
    rotation_about_axis,
    se3_exp,
    skew,
    so3_exp,
    transform_from_rotation_translation,
    transform_twist,
    transform_wrench,
    unskew,
)


def _random_transform(seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    axis = rng.normal(size=3)
    axis /= np.linalg.norm(axis)
    return transform_from_rotation_translation(
        rotation_about_axis(axis, rng.uniform(-np.pi, np.pi)), rng.normal(size=3)
    )


class TestSkew:
    """Tests for skew symmetric matrix operations."""

    def test_skew_basic(self) -> None:
        """Test skew matrix construction."""
        S = skew(np.array([1.0, 2.0, 3.0]))

        expected = np.array([
            [0, -3, 2],
            [3, 0, -1],
            [-2, 1, 0]
        ], dtype=np.float64)
        assert_allclose(S, expected)

    def test_skew_is_cross_product(self) -> None:
        a = np.array([0.3, -1.2, 2.0])
        b = np.array([1.5, 0.4, -0.7])
        assert_allclose(skew(a) @ b, np.cross(a, b))

    def test_unskew_inverse(self) -> None:
        v = np.array([1.0, 2.0, 3.0])
        assert_allclose(unskew(skew(v)), v)


class TestExponentials:
    """Tests for SO(3) and SE(3) exponentials."""

    def test_so3_exp_about_z(self) -> None:
        """Quarter turn about z maps x onto y."""
        R = so3_exp(np.array([0.0, 0.0, 1.0]), np.pi / 2)
        assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_rotation_is_orthonormal(self) -> None:
        R = rotation_about_axis(np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0), 0.7)
        assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
        assert np.isclose(np.linalg.det(R), 1.0)

    def test_se3_exp_identity(self) -> None:
        """Test exponential of zero is identity."""
        assert_allclose(se3_exp(np.zeros(6)), np.eye(4), atol=1e-10)

    def test_se3_exp_pure_translation(self) -> None:
        v = np.array([1.0, 2.0, 3.0])
        T = se3_exp(np.concatenate([np.zeros(3), v]), 0.5)
        assert_allclose(T[:3, :3], np.eye(3))
        assert_allclose(T[:3, 3], 0.5 * v)

    def test_se3_exp_rotation_about_offset_axis(self) -> None:
        """Rotation about z through (1, 0, 0) moves the origin on a circle."""
        origin = np.array([1.0, 0.0, 0.0])
        axis = np.array([0.0, 0.0, 1.0])
        screw = np.concatenate([axis, np.cross(origin, axis)])
        T = se3_exp(screw, np.pi)
        assert_allclose(T[:3, 3], [2.0, 0.0, 0.0], atol=1e-12)


class TestAdjoint:
    """Tests for adjoint maps and frame transport."""

    def test_adjoint_of_inverse(self) -> None:
        T = _random_transform(0)
        assert_allclose(adjoint(T) @ adjoint_inverse(T), np.eye(6), atol=1e-12)

    def test_inverse_transform(self) -> None:
        T = _random_transform(1)
        assert_allclose(T @ inverse_transform(T), np.eye(4), atol=1e-12)

    def test_twist_round_trip(self) -> None:
        T = _random_transform(2)
        twist = np.array([0.1, -0.2, 0.3, 1.0, 0.5, -0.4])
        assert_allclose(inverse_transform_twist(T, transform_twist(T, twist)), twist, atol=1e-12)

    def test_power_is_invariant(self) -> None:
        """A wrench and a twist carried to the same frame keep their pairing."""
        T = _random_transform(3)
        twist = np.array([0.1, -0.2, 0.3, 1.0, 0.5, -0.4])
        wrench = np.array([2.0, 0.0, -1.0, 3.0, 4.0, 0.5])
        power_child = wrench @ twist
        power_parent = transform_wrench(T, wrench) @ transform_twist(T, twist)
        assert np.isclose(power_child, power_parent)

    def test_wrench_round_trip(self) -> None:
        T = _random_transform(4)
        wrench = np.array([2.0, 0.0, -1.0, 3.0, 4.0, 0.5])
        assert_allclose(inverse_transform_wrench(T, transform_wrench(T, wrench)), wrench, atol=1e-12)

    def test_pure_force_creates_moment(self) -> None:
        """A force at an offset point produces a moment p x f at the parent origin."""
        T = transform_from_rotation_translation(np.eye(3), [1.0, 0.0, 0.0])
        wrench = np.array([0.0, 0.0, 0.0, 0.0, 2.0, 0.0])
        assert_allclose(transform_wrench(T, wrench), [0.0, 0.0, 2.0, 0.0, 2.0, 0.0])


class TestCrossProducts:
    """Tests for motion and force cross products."""

    def test_ad_self_is_zero(self) -> None:
        twist = np.array([0.1, -0.2, 0.3, 1.0, 0.5, -0.4])
        assert_allclose(ad(twist) @ twist, np.zeros(6), atol=1e-15)

    def test_cross_force_is_dual(self) -> None:
        """(V x W) . F = -W . (V x* F)."""
        V = np.array([0.1, -0.2, 0.3, 1.0, 0.5, -0.4])
        W = np.array([0.5, 0.1, -0.3, -0.2, 0.7, 0.9])
        F = np.array([2.0, 0.0, -1.0, 3.0, 4.0, 0.5])
        assert np.isclose((ad(V) @ W) @ F, -W @ cross_force(V, F))


class TestRotateSpatial:
    """Tests for orientation-only changes."""

    def test_vector(self) -> None:
        R = rotation_about_axis(np.array([0.0, 0.0, 1.0]), np.pi / 2)
        x = np.array([1.0, 0.0, 0.0, 0.0, 1.0, 0.0])
        assert_allclose(rotate_spatial(R, x), [0.0, 1.0, 0.0, -1.0, 0.0, 0.0], atol=1e-12)

    @pytest.mark.parametrize("k", [0, 1, 3])
    def test_matrix_columns(self, k: int) -> None:
        R = _random_transform(5)[:3, :3]
        X = np.arange(6 * k, dtype=np.float64).reshape(6, k)
        out = rotate_spatial(R, X)
        assert out.shape == (6, k)
        for c in range(k):
            assert_allclose(out[:, c], rotate_spatial(R, X[:, c]))
