"""
Camera parameter model.

Turns the raw intrinsic/distortion parameters of a camera (as found in a
ROS-style camera info file) into a single immutable CameraParameters record.

Distortion coefficients follow the OpenCV convention:
    plumb_bob: [k1, k2, p1, p2, k3]
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

import numpy as np

from calibsim.core.errors import (
    InvalidParameterError,
    MalformedVectorError,
    UnsupportedDistortionModelError,
)
from calibsim.core.parameters import ParameterStore
from calibsim.utils.log_util import log_io

logger = logging.getLogger(__name__)

MIN_DISTANCE_BETWEEN_TARGET_CORNERS = 30


class DistortionModel(str, Enum):
    PLUMB_BOB = "plumb_bob"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, name: str) -> DistortionModel:
        """Return the model for name, or raise UnsupportedDistortionModelError."""
        try:
            return cls(str(name).strip())
        except ValueError:
            raise UnsupportedDistortionModelError(name) from None


@dataclass(frozen=True)
class DistortionCoefficients:
    """Radial (k1..k6) and tangential (p1, p2) distortion coefficients."""
    k1: float = 0.0
    k2: float = 0.0
    k3: float = 0.0
    k4: float = 0.0
    k5: float = 0.0
    k6: float = 0.0
    p1: float = 0.0
    p2: float = 0.0

    def as_opencv(self) -> np.ndarray:
        """Coefficients in OpenCV order (k1, k2, p1, p2, k3, k4, k5, k6)."""
        return np.array([self.k1, self.k2, self.p1, self.p2, self.k3, self.k4, self.k5, self.k6])

    @property
    def is_zero(self) -> bool:
        return not np.any(self.as_opencv())


def _plumb_bob_coefficients(values: Sequence[float]) -> DistortionCoefficients:
    if len(values) < 5:
        raise MalformedVectorError(
            f"plumb_bob distortion needs at least 5 coefficients, got {len(values)}")
    return DistortionCoefficients(
        k1=values[0],
        k2=values[1],
        k3=values[4],
        p1=values[2],
        p2=values[3],
    )


# One reader per supported model; every DistortionModel member must appear here.
_COEFFICIENT_READERS: dict[DistortionModel, Callable[[Sequence[float]], DistortionCoefficients]] = {
    DistortionModel.PLUMB_BOB: _plumb_bob_coefficients,
}


def read_distortion(model: DistortionModel, values: Sequence[float]) -> DistortionCoefficients:
    """Map raw coefficients onto the named distortion model."""
    return _COEFFICIENT_READERS[model]([float(v) for v in values])


@dataclass(frozen=True)
class CameraParameters:
    """Canonical intrinsic and distortion description of the simulated camera."""
    image_width: int
    image_height: int
    camera_name: str
    fx: float
    fy: float
    cx: float
    cy: float
    distortion_model: DistortionModel
    distortion: DistortionCoefficients
    min_distance_between_target_corners: int = MIN_DISTANCE_BETWEEN_TARGET_CORNERS

    # Flat accessors, so callers can write params.k1 like the camera info file.
    @property
    def k1(self) -> float:
        return self.distortion.k1

    @property
    def k2(self) -> float:
        return self.distortion.k2

    @property
    def k3(self) -> float:
        return self.distortion.k3

    @property
    def k4(self) -> float:
        return self.distortion.k4

    @property
    def k5(self) -> float:
        return self.distortion.k5

    @property
    def k6(self) -> float:
        return self.distortion.k6

    @property
    def p1(self) -> float:
        return self.distortion.p1

    @property
    def p2(self) -> float:
        return self.distortion.p2

    @property
    def camera_matrix(self) -> np.ndarray:
        """3x3 intrinsic matrix K."""
        return np.array([
            [self.fx, 0.0, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0],
        ])

    def contains_pixel(self, u: float, v: float) -> bool:
        return 0 <= u < self.image_width and 0 <= v < self.image_height


def intrinsics_from_matrix(values: Sequence[float]) -> tuple[float, float, float, float]:
    """
    Extract (fx, fy, cx, cy) from a row-major 3x3 camera matrix.

    :param values: 9 matrix elements
    :return: fx, fy, cx, cy
    """
    if len(values) != 9:
        raise MalformedVectorError(f"camera_matrix/data must have 9 elements, got {len(values)}")
    m = [float(v) for v in values]
    return m[0], m[4], m[2], m[5]


def _positive_int(params: ParameterStore, key: str) -> int:
    number = params.get_int(key)
    if number <= 0:
        raise InvalidParameterError(f"{key} must be a positive integer, got {number!r}")
    return number


@log_io(logging.DEBUG)
def build_camera_parameters(params: ParameterStore) -> CameraParameters:
    """
    Build the camera parameter record from scene parameters.

    Reads image_width, image_height, camera_name, camera_matrix/data,
    distortion_model and distortion_coefficients/data.

    :raises MalformedVectorError: camera matrix or coefficient vector too short
    :raises UnsupportedDistortionModelError: distortion model not recognized
    """
    image_width = _positive_int(params, "image_width")
    image_height = _positive_int(params, "image_height")
    camera_name = params.get_str("camera_name")

    fx, fy, cx, cy = intrinsics_from_matrix(params.get_vector("camera_matrix/data"))

    model_name = params.get_str("distortion_model")
    try:
        model = DistortionModel.parse(model_name)
    except UnsupportedDistortionModelError:
        logger.error("Unknown camera distortion model specified: %s", model_name)
        raise
    distortion = read_distortion(model, params.get_vector("distortion_coefficients/data"))

    camera_parameters = CameraParameters(
        image_width=image_width,
        image_height=image_height,
        camera_name=camera_name,
        fx=fx,
        fy=fy,
        cx=cx,
        cy=cy,
        distortion_model=model,
        distortion=distortion,
    )
    logger.info(
        "Camera %s: %dx%d fx=%s fy=%s cx=%s cy=%s model=%s",
        camera_name, image_width, image_height, fx, fy, cx, cy, model,
    )
    return camera_parameters
