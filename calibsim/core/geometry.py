"""
Geometry value types for the scene: poses, colors and quaternion helpers.

Conventions:
    - Positions are (x, y, z) in the frame named by the owning entity.
    - Quaternions are stored (x, y, z, w), matching ROS geometry messages.
    - Rotation matrices are 3x3 numpy arrays acting on column vectors.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Sequence, Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from calibsim.core.errors import MalformedVectorError

Vector3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]

IDENTITY_QUATERNION: Quaternion = (0.0, 0.0, 0.0, 1.0)

# Camera looks along world -Y with image "down" along world -Z.
DEFAULT_CAMERA_ROTATION = np.array([
    [-1.0, 0.0, 0.0],
    [0.0, 0.0, -1.0],
    [0.0, -1.0, 0.0],
])


def as_vector(values: Sequence[float], length: int, name: str = "vector") -> tuple[float, ...]:
    """
    Convert a sequence to a tuple of floats of an exact length.

    :param values: Input values
    :param length: Required element count
    :param name: Name used in the error message
    :return: Tuple of floats
    """
    try:
        items = tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise MalformedVectorError(f"{name} must be a sequence of numbers: {values!r}") from e
    if len(items) != length:
        raise MalformedVectorError(f"{name} must have {length} elements, got {len(items)}")
    return items


def normalize_quaternion(q: Sequence[float]) -> Quaternion:
    """Return the unit quaternion pointing the same way as q."""
    x, y, z, w = as_vector(q, 4, "orientation")
    norm = math.sqrt(x * x + y * y + z * z + w * w)
    if norm == 0 or not math.isfinite(norm):
        raise MalformedVectorError(f"orientation cannot be normalized: {tuple(q)!r}")
    return x / norm, y / norm, z / norm, w / norm


def _rotation(q: Sequence[float]) -> Rotation:
    return Rotation.from_quat(normalize_quaternion(q))


def _as_quaternion(rotation: Rotation, canonical: bool = False) -> Quaternion:
    x, y, z, w = rotation.as_quat(canonical=canonical)
    return float(x), float(y), float(z), float(w)


def quaternion_multiply(a: Sequence[float], b: Sequence[float]) -> Quaternion:
    """Hamilton product a * b (apply b first, then a)."""
    return _as_quaternion(_rotation(a) * _rotation(b))


def quaternion_from_axis_angle(axis: Sequence[float], angle_rad: float) -> Quaternion:
    """
    Quaternion for a rotation of angle_rad around axis.

    :param axis: Rotation axis (need not be unit length)
    :param angle_rad: Rotation angle in radians
    :return: Unit quaternion (x, y, z, w)
    """
    ax = np.asarray(as_vector(axis, 3, "axis"))
    norm = np.linalg.norm(ax)
    if norm == 0:
        raise MalformedVectorError("rotation axis has zero length")
    return _as_quaternion(Rotation.from_rotvec(ax / norm * angle_rad))


def quaternion_to_matrix(q: Sequence[float]) -> np.ndarray:
    """Rotation matrix for the (normalized) quaternion q."""
    return _rotation(q).as_matrix()


def matrix_to_quaternion(matrix: Sequence[Sequence[float]] | np.ndarray) -> Quaternion:
    """
    Convert a 3x3 rotation matrix to a unit quaternion.

    The result is canonical: w >= 0, and for half-turns (w == 0) the first
    non-zero component is positive.
    """
    m = np.asarray(matrix, dtype=float)
    if m.shape != (3, 3):
        raise MalformedVectorError(f"rotation matrix must be 3x3, got shape {m.shape}")
    return _as_quaternion(Rotation.from_matrix(m), canonical=True)


def rotate_vector(q: Sequence[float], v: Sequence[float]) -> Vector3:
    """Rotate the 3D vector v by quaternion q."""
    r = _rotation(q).apply(as_vector(v, 3, "vector"))
    return float(r[0]), float(r[1]), float(r[2])


def default_camera_orientation() -> Quaternion:
    """Orientation given to the camera at startup, whatever was configured."""
    return matrix_to_quaternion(DEFAULT_CAMERA_ROTATION)


@dataclass(frozen=True)
class Color:
    """RGBA color with components in [0, 1]."""
    r: float
    g: float
    b: float
    a: float = 1.0

    def __post_init__(self):
        for name in ("r", "g", "b", "a"):
            value = float(getattr(self, name))
            if not 0.0 <= value <= 1.0:
                raise MalformedVectorError(f"color component {name}={value} is outside [0, 1]")
            object.__setattr__(self, name, value)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Color:
        r, g, b, a = as_vector(values, 4, "color")
        return cls(r, g, b, a)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return self.r, self.g, self.b, self.a


@dataclass(frozen=True)
class Pose:
    """Position plus unit-quaternion orientation."""
    position: Vector3 = (0.0, 0.0, 0.0)
    orientation: Quaternion = field(default=IDENTITY_QUATERNION)

    def __post_init__(self):
        object.__setattr__(self, "position", as_vector(self.position, 3, "position"))
        object.__setattr__(self, "orientation", normalize_quaternion(self.orientation))

    @property
    def rotation_matrix(self) -> np.ndarray:
        return quaternion_to_matrix(self.orientation)

    def translated(self, offset: Sequence[float]) -> Pose:
        """Return a copy moved by offset (in the parent frame)."""
        dx, dy, dz = as_vector(offset, 3, "offset")
        x, y, z = self.position
        return replace(self, position=(x + dx, y + dy, z + dz))

    def with_position(self, position: Sequence[float]) -> Pose:
        return replace(self, position=tuple(position))

    def with_orientation(self, orientation: Sequence[float]) -> Pose:
        return replace(self, orientation=tuple(orientation))

    def rotated_about_local_axis(self, axis: Sequence[float], angle_rad: float) -> Pose:
        """
        Rotate around an axis expressed in this pose's own frame.

        The position is kept; only the orientation changes.
        """
        delta = quaternion_from_axis_angle(axis, angle_rad)
        return replace(self, orientation=quaternion_multiply(self.orientation, delta))

    def compose(self, other: Pose) -> Pose:
        """Pose of `other` (expressed in this frame) in the parent frame."""
        rx, ry, rz = rotate_vector(self.orientation, other.position)
        x, y, z = self.position
        return Pose(
            position=(x + rx, y + ry, z + rz),
            orientation=quaternion_multiply(self.orientation, other.orientation),
        )

    def transform_point(self, point: Sequence[float]) -> Vector3:
        """Map a point from this pose's frame to the parent frame."""
        rx, ry, rz = rotate_vector(self.orientation, point)
        x, y, z = self.position
        return x + rx, y + ry, z + rz

    def inverse_transform_points(self, points: np.ndarray) -> np.ndarray:
        """Map an (N, 3) array of parent-frame points into this pose's frame."""
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        return _rotation(self.orientation).apply(pts - np.asarray(self.position), inverse=True)
