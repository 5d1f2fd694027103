import math

import pytest

from calibsim.core.camera_parameters import build_camera_parameters
from calibsim.core.geometry import Color
from calibsim.core.parameters import ParameterStore
from calibsim.scene.registry import SceneRegistry

HALF_SQRT2 = math.sqrt(0.5)


def make_scene_parameters() -> dict:
    """Parameters for a five-target line in front of the camera."""
    return {
        "world_frame_id": "world",
        "grey": [0.5, 0.5, 0.5, 1.0],
        "blue": [0.0, 0.0, 1.0, 1.0],
        "orange": [1.0, 0.5, 0.0, 1.0],
        "target_scale": 0.25,
        "camera_scale": 0.2,
        "starting_target_position": [0.0, 0.0, 0.0],
        # Same orientation as the camera: targets face it upright.
        "starting_target_orientation": [0.0, HALF_SQRT2, -HALF_SQRT2, 0.0],
        "num_targets_in_line": 5,
        "distance_between_targets": 0.5,
        "starting_camera_positon": [1.0, 3.0, 0.0],
        "starting_camera_orientation": [0.0, 0.0, 0.0, 1.0],
        "image_width": 640,
        "image_height": 480,
        "camera_name": "sim_camera",
        "camera_matrix": {"rows": 3, "cols": 3, "data": [600, 0, 320, 0, 600, 240, 0, 0, 1]},
        "distortion_model": "plumb_bob",
        "distortion_coefficients": {"rows": 1, "cols": 5, "data": [0.0, 0.0, 0.0, 0.0, 0.0]},
    }


@pytest.fixture
def scene_parameters() -> dict:
    return make_scene_parameters()


@pytest.fixture
def params(scene_parameters) -> ParameterStore:
    return ParameterStore(scene_parameters)


@pytest.fixture
def camera_parameters(params):
    return build_camera_parameters(params)


@pytest.fixture
def blue() -> Color:
    return Color(0.0, 0.0, 1.0, 1.0)


@pytest.fixture
def grey() -> Color:
    return Color(0.5, 0.5, 0.5, 1.0)


@pytest.fixture
def orange() -> Color:
    return Color(1.0, 0.5, 0.0, 1.0)


@pytest.fixture
def registry():
    reg = SceneRegistry("test").open()
    yield reg
    reg.close()
