import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from calibsim.core.errors import MalformedVectorError
from calibsim.core.geometry import (
    DEFAULT_CAMERA_ROTATION,
    Color,
    Pose,
    default_camera_orientation,
    matrix_to_quaternion,
    quaternion_from_axis_angle,
    quaternion_multiply,
    quaternion_to_matrix,
    rotate_vector,
)


def test_default_camera_orientation_fixture_value():
    """The startup camera quaternion (x, y, z, w) is a fixed regression value."""
    q = default_camera_orientation()
    h = math.sqrt(0.5)
    assert q == pytest.approx((0.0, h, -h, 0.0))


def test_default_camera_orientation_round_trips_to_matrix():
    q = default_camera_orientation()
    assert_allclose(quaternion_to_matrix(q), DEFAULT_CAMERA_ROTATION, atol=1e-12)


def test_default_camera_looks_along_negative_y():
    rotation = quaternion_to_matrix(default_camera_orientation())
    # optical axis and image-down axis of the camera, in world coordinates
    assert_allclose(rotation[:, 2], (0.0, -1.0, 0.0), atol=1e-12)
    assert_allclose(rotation[:, 1], (0.0, 0.0, -1.0), atol=1e-12)


@pytest.mark.parametrize("axis, angle", [
    ((1, 0, 0), 0.3),
    ((0, 1, 0), -2.0),
    ((0, 0, 1), math.pi),
    ((1, 1, 0), math.pi),
    ((1, -2, 3), 1.234),
    ((0, 0, 1), 0.0),
])
def test_matrix_quaternion_round_trip(axis, angle):
    matrix = quaternion_to_matrix(quaternion_from_axis_angle(axis, angle))
    q = matrix_to_quaternion(matrix)
    assert_allclose(quaternion_to_matrix(q), matrix, atol=1e-12)
    assert sum(c * c for c in q) == pytest.approx(1.0)


@pytest.mark.parametrize("matrix, expected", [
    (np.diag([-1.0, -1.0, 1.0]), (0.0, 0.0, 1.0, 0.0)),
    (np.diag([1.0, -1.0, -1.0]), (1.0, 0.0, 0.0, 0.0)),
    (np.eye(3), (0.0, 0.0, 0.0, 1.0)),
])
def test_matrix_to_quaternion_sign_is_canonical(matrix, expected):
    assert matrix_to_quaternion(matrix) == pytest.approx(expected, abs=1e-12)


def test_quaternion_multiply_composes_rotations():
    quarter = quaternion_from_axis_angle((0, 0, 1), math.pi / 2)
    half = quaternion_multiply(quarter, quarter)
    assert_allclose(quaternion_to_matrix(half), np.diag([-1.0, -1.0, 1.0]), atol=1e-12)


def test_rotate_vector():
    q = quaternion_from_axis_angle((0, 0, 1), math.pi / 2)
    assert rotate_vector(q, (1, 0, 0)) == pytest.approx((0.0, 1.0, 0.0), abs=1e-12)


def test_matrix_to_quaternion_rejects_wrong_shape():
    with pytest.raises(MalformedVectorError):
        matrix_to_quaternion(np.eye(4))


def test_pose_normalizes_orientation():
    pose = Pose((1, 2, 3), (0, 0, 0, 2))
    assert pose.orientation == (0.0, 0.0, 0.0, 1.0)
    assert pose.position == (1.0, 2.0, 3.0)


def test_pose_rejects_zero_quaternion():
    with pytest.raises(MalformedVectorError):
        Pose((0, 0, 0), (0, 0, 0, 0))


def test_pose_rejects_wrong_position_length():
    with pytest.raises(MalformedVectorError):
        Pose((0, 0), (0, 0, 0, 1))


def test_pose_translated_keeps_orientation():
    q = quaternion_from_axis_angle((0, 0, 1), 0.5)
    pose = Pose((1, 1, 1), q).translated((0.5, -1, 2))
    assert pose.position == pytest.approx((1.5, 0.0, 3.0))
    assert pose.orientation == pytest.approx(q)


def test_pose_compose():
    parent = Pose((1, 0, 0), quaternion_from_axis_angle((0, 0, 1), math.pi / 2))
    child = Pose((1, 0, 0))
    composed = parent.compose(child)
    assert composed.position == pytest.approx((1.0, 1.0, 0.0))
    assert composed.orientation == pytest.approx(parent.orientation)


def test_rotate_about_local_axis_keeps_position():
    pose = Pose((3, 2, 1))
    once = pose.rotated_about_local_axis((0, 0, 1), math.pi / 2)
    twice = once.rotated_about_local_axis((0, 0, 1), math.pi / 2)
    assert twice.position == (3.0, 2.0, 1.0)
    assert_allclose(twice.rotation_matrix, np.diag([-1.0, -1.0, 1.0]), atol=1e-12)


def test_transform_and_inverse_transform_points():
    pose = Pose((1, -2, 0.5), quaternion_from_axis_angle((1, 2, 3), 0.7))
    local = np.array([[0.1, 0.2, 0.3], [-1.0, 0.0, 2.0]])
    world = np.array([pose.transform_point(p) for p in local])
    assert_allclose(pose.inverse_transform_points(world), local, atol=1e-12)


def test_color_from_sequence():
    color = Color.from_sequence([1, 0.5, 0, 1])
    assert color.as_tuple() == (1.0, 0.5, 0.0, 1.0)


@pytest.mark.parametrize("values", [[1, 0, 0], [1, 0, 0, 1, 0]])
def test_color_rejects_wrong_length(values):
    with pytest.raises(MalformedVectorError):
        Color.from_sequence(values)


def test_color_rejects_out_of_range_component():
    with pytest.raises(MalformedVectorError):
        Color(1.5, 0, 0, 1)
