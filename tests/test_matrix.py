"""Tests for 4x4 matrix helpers and tolerance configuration."""

import math

import numpy as np
import pytest

from transformator import TRANSFORM_CONFIG, TransformConfig
from transformator.matrix import (
    IDENTITY_16,
    as_matrix_4x4,
    build_axis_angle_matrix_4x4,
    build_euler_rotation_matrix_4x4,
    build_perspective_matrix_4x4,
    build_rotation_x_matrix_4x4,
    build_rotation_y_matrix_4x4,
    build_rotation_z_matrix_4x4,
    build_scale_matrix_4x4,
    build_translation_matrix_4x4,
    intersect_local_plane,
    invert_matrix_4x4,
    perspective_divide,
    to_flat,
    transform_point_homogeneous,
)


class TestConversion:
    """Test flat <-> array conversion."""

    def test_identity_constant(self):
        assert np.array_equal(as_matrix_4x4(IDENTITY_16), np.eye(4))

    def test_row_major_layout(self):
        m = as_matrix_4x4(range(16))
        assert m[0, 3] == 3.0
        assert m[3, 0] == 12.0
        assert to_flat(m) == tuple(float(i) for i in range(16))

    def test_nested_input(self):
        nested = [[1, 0, 0, 5], [0, 1, 0, 6], [0, 0, 1, 7], [0, 0, 0, 1]]
        assert np.array_equal(as_matrix_4x4(nested), build_translation_matrix_4x4(5, 6, 7))

    def test_returns_copy(self):
        src = np.eye(4)
        m = as_matrix_4x4(src)
        m[0, 0] = 42.0
        assert src[0, 0] == 1.0

    def test_wrong_size_raises(self):
        with pytest.raises(ValueError, match="16 entries"):
            as_matrix_4x4([1.0, 2.0, 3.0])


class TestElementaryMatrices:
    """Test elementary matrix builders (column-vector convention)."""

    def test_translation(self):
        hom = transform_point_homogeneous(build_translation_matrix_4x4(1, 2, 3), 1.0, 1.0, 1.0)
        assert hom == (2.0, 3.0, 4.0, 1.0)

    def test_scale(self):
        hom = transform_point_homogeneous(build_scale_matrix_4x4(2, 3, 4), 1.0, 1.0, 1.0)
        assert hom == (2.0, 3.0, 4.0, 1.0)

    def test_rotation_z_is_right_handed(self):
        x, y, z, w = transform_point_homogeneous(build_rotation_z_matrix_4x4(math.pi / 2), 1, 0)
        assert np.allclose([x, y, z, w], [0.0, 1.0, 0.0, 1.0])

    def test_rotation_x_is_right_handed(self):
        x, y, z, w = transform_point_homogeneous(build_rotation_x_matrix_4x4(math.pi / 2), 0, 1)
        assert np.allclose([x, y, z, w], [0.0, 0.0, 1.0, 1.0])

    def test_rotation_y_is_right_handed(self):
        R = build_rotation_y_matrix_4x4(math.pi / 2)
        x, y, z, w = transform_point_homogeneous(R, 0.0, 0.0, 1.0)
        assert np.allclose([x, y, z, w], [1.0, 0.0, 0.0, 1.0])

    def test_rotations_are_orthonormal(self):
        for R in (
            build_rotation_x_matrix_4x4(0.7),
            build_rotation_y_matrix_4x4(-1.2),
            build_rotation_z_matrix_4x4(2.5),
            build_axis_angle_matrix_4x4((1.0, 2.0, 3.0), 0.9),
        ):
            assert np.allclose(R @ R.T, np.eye(4))
            assert abs(np.linalg.det(R) - 1.0) < 1e-12

    def test_euler_product_order(self):
        expected = (
            build_rotation_x_matrix_4x4(0.1)
            @ build_rotation_y_matrix_4x4(0.2)
            @ build_rotation_z_matrix_4x4(0.3)
        )
        assert np.allclose(build_euler_rotation_matrix_4x4(0.1, 0.2, 0.3), expected)

    def test_axis_angle_normalizes_axis(self):
        a = build_axis_angle_matrix_4x4((0.0, 5.0, 0.0), 0.4)
        assert np.allclose(a, build_rotation_y_matrix_4x4(0.4))

    def test_axis_angle_zero_axis_raises(self):
        with pytest.raises(ValueError, match="non-zero length"):
            build_axis_angle_matrix_4x4((0.0, 0.0, 0.0), 1.0)

    def test_perspective_term(self):
        P = build_perspective_matrix_4x4(500.0, 0.0, 0.0)
        assert P[3, 2] == -1.0 / 500.0
        _, _, _, w = transform_point_homogeneous(P, 0.0, 0.0, 250.0)
        assert abs(w - 0.5) < 1e-12

    def test_perspective_origin(self):
        P = build_perspective_matrix_4x4(200.0, 400.0, 300.0)
        x, y, _ = perspective_divide(transform_point_homogeneous(P, 500.0, 300.0, 100.0))
        # 100 units right of the vanishing point, at half the distance -> doubled
        assert abs(x - 600.0) < 1e-9
        assert abs(y - 300.0) < 1e-9


class TestInversion:
    """Test inversion and singularity detection."""

    def test_inverse(self):
        M = (
            build_translation_matrix_4x4(3, -4, 5)
            @ build_rotation_z_matrix_4x4(0.3)
            @ build_scale_matrix_4x4(2, 2, 2)
        )
        inv = invert_matrix_4x4(M)
        assert inv is not None
        assert np.allclose(inv @ M, np.eye(4))

    def test_zero_scale_is_singular(self):
        assert invert_matrix_4x4(build_scale_matrix_4x4(0.0, 1.0, 1.0)) is None

    def test_tiny_determinant_is_singular(self):
        assert invert_matrix_4x4(build_scale_matrix_4x4(1e-6, 1e-6, 1.0)) is None
        assert invert_matrix_4x4(build_scale_matrix_4x4(1e-6, 1e-6, 1.0), 1e-15) is not None

    def test_non_finite_is_not_invertible(self):
        M = np.eye(4)
        M[0, 3] = np.nan
        assert invert_matrix_4x4(M) is None


class TestPointMapping:
    """Test homogeneous division and ray casting."""

    def test_perspective_divide(self):
        assert perspective_divide((2.0, 4.0, 6.0, 2.0)) == (1.0, 2.0, 3.0)

    @pytest.mark.parametrize("w", [0.0, 1e-9, -1e-9, float("nan"), float("inf")])
    def test_degenerate_w(self, w):
        assert perspective_divide((1.0, 1.0, 1.0, w)) is None

    def test_custom_w_epsilon(self):
        assert perspective_divide((1.0, 1.0, 1.0, 1e-3), w_epsilon=1e-2) is None

    def test_intersect_identity(self):
        assert intersect_local_plane(np.eye(4), 12.0, -3.0) == (12.0, -3.0)

    def test_intersect_parallel_ray(self):
        inv = invert_matrix_4x4(build_rotation_x_matrix_4x4(math.pi / 2))
        assert intersect_local_plane(inv, 1.0, 1.0) is None

    def test_intersect_tilted_plane(self):
        M = build_rotation_y_matrix_4x4(math.radians(60.0))
        inv = invert_matrix_4x4(M)
        # Local (10, 0) lands at screen x = 10 * cos(60) = 5
        lx, ly = intersect_local_plane(inv, 5.0, 0.0)
        assert abs(lx - 10.0) < 1e-9
        assert abs(ly) < 1e-9


class TestTransformConfig:
    """Test tolerance configuration."""

    def test_defaults(self):
        assert TRANSFORM_CONFIG.singular_epsilon == 1e-10
        assert TRANSFORM_CONFIG.w_epsilon == 1e-6
        assert TRANSFORM_CONFIG.parallel_epsilon == 1e-6

    def test_get_all_tolerances(self):
        tolerances = TransformConfig().get_all_tolerances()
        assert set(tolerances) == {
            "singular_epsilon",
            "w_epsilon",
            "parallel_epsilon",
            "identity_tolerance",
            "serialization_tolerance",
        }

    def test_non_positive_tolerance_raises(self):
        with pytest.raises(ValueError, match="w_epsilon must be positive"):
            TransformConfig(w_epsilon=0.0)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            TRANSFORM_CONFIG.w_epsilon = 1.0
