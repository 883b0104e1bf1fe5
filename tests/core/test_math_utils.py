"""Tests for math_utils module."""

import numpy as np
import pytest

from simpleskin.core.math_utils import (
    vec3, mat4_translation, mat4_from_quaternion, mat4_compose, mat4_inverse, as_mat4,
    quat_identity, quat_from_axis_angle, quat_normalize, normalize, lerp,
    transform_point, batch_transform_points, to_homogeneous,
)


def test_mat4_translation():
    p = transform_point(mat4_translation(1, 2, 3), vec3(0, 0, 0))
    np.testing.assert_array_almost_equal(p, [1, 2, 3])


def test_quat_from_axis_angle_about_y():
    q = quat_from_axis_angle(vec3(0, 1, 0), np.pi / 2)
    p = transform_point(mat4_from_quaternion(q), vec3(0, 0, 1))
    np.testing.assert_array_almost_equal(p, [1, 0, 0], decimal=10)


def test_quat_from_axis_angle_about_z():
    q = quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2)
    p = transform_point(mat4_from_quaternion(q), vec3(1, 0, 0))
    np.testing.assert_array_almost_equal(p, [0, 1, 0], decimal=10)


def test_quat_axis_is_normalized():
    a = quat_from_axis_angle(vec3(0, 0, 5), 0.3)
    b = quat_from_axis_angle(vec3(0, 0, 1), 0.3)
    np.testing.assert_array_almost_equal(a, b)


def test_quat_normalize_degenerate():
    np.testing.assert_array_equal(quat_normalize(np.zeros(4)), quat_identity())


def test_mat4_from_identity_quaternion():
    np.testing.assert_array_equal(mat4_from_quaternion(quat_identity()), np.eye(4))


def test_mat4_compose_applies_scale_then_rotation_then_translation():
    q = quat_from_axis_angle(vec3(0, 0, 1), np.pi / 2)
    m = mat4_compose(vec3(10, 0, 0), q, vec3(2, 1, 1))
    # scale x: (2,0,0) -> rotate 90° about Z: (0,2,0) -> translate
    p = transform_point(m, vec3(1, 0, 0))
    np.testing.assert_array_almost_equal(p, [10, 2, 0])


def test_mat4_inverse():
    m = mat4_translation(5, 10, 15)
    np.testing.assert_array_almost_equal(m @ mat4_inverse(m), np.eye(4), decimal=10)


def test_as_mat4_rejects_wrong_shape():
    with pytest.raises(ValueError):
        as_mat4(np.eye(3))


def test_normalize_zero():
    np.testing.assert_array_equal(normalize(vec3(0, 0, 0)), [0, 0, 0])


def test_lerp_scalars_and_arrays():
    assert lerp(0, 10, 0.5) == 5
    np.testing.assert_array_equal(lerp(np.zeros(3), np.ones(3) * 4, 0.25), [1, 1, 1])


def test_to_homogeneous_accepts_flat_input():
    h = to_homogeneous(np.array([1, 2, 3, 4, 5, 6], dtype=np.float32))
    np.testing.assert_array_equal(h, [[1, 2, 3, 1], [4, 5, 6, 1]])


def test_batch_transform_points_uses_one_matrix_per_point():
    mats = np.stack([mat4_translation(1, 0, 0), mat4_translation(0, 0, 5)])
    pts = np.zeros((2, 3))
    np.testing.assert_array_almost_equal(batch_transform_points(mats, pts), [[1, 0, 0], [0, 0, 5]])
