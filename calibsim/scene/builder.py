"""Startup: build the whole scene from parameters."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from calibsim.core.camera_parameters import build_camera_parameters
from calibsim.core.errors import SceneError
from calibsim.core.geometry import Pose, default_camera_orientation
from calibsim.core.parameters import ParameterStore
from calibsim.scene.camera import Camera
from calibsim.scene.layout import make_wall_of_targets, remove_targets
from calibsim.scene.registry import SceneRegistry
from calibsim.scene.target import Target

logger = logging.getLogger(__name__)

CAMERA_NAME = "camera"


@dataclass
class Scene:
    frame_id: str
    targets: list[Target]
    camera: Camera


def build_scene(params: ParameterStore, registry: SceneRegistry) -> Scene:
    """
    Create the targets and the camera described by params, register them and
    publish the first frame.

    The configured camera orientation is replaced by the default looking-down
    orientation; the configured value is only checked for shape.
    """
    frame_id = params.get_str("/world_frame_id")

    grey = params.load_color("grey")
    blue = params.load_color("blue")
    orange = params.load_color("orange")
    target_scale = params.get_float("target_scale")
    camera_scale = params.get_float("camera_scale")

    start_position = params.load_point("starting_target_position")
    target_orientation = params.load_orientation("starting_target_orientation")
    num_targets = params.get_int("num_targets_in_line")
    spacing = params.get_float("distance_between_targets")
    rows = params.get_int("num_target_rows", 1)
    row_spacing = params.get_float("distance_between_rows", spacing)

    # The camera is fully built before anything is registered, so a bad
    # camera description leaves the registry empty.
    camera_parameters = build_camera_parameters(params)
    camera_position = params.load_point("starting_camera_positon")
    params.load_orientation("starting_camera_orientation")

    q = default_camera_orientation()
    logger.info("Quaternion: %s %s %s %s", *q)
    camera = Camera(
        frame_id, CAMERA_NAME, Pose(camera_position, q), orange, camera_scale, camera_parameters,
    )

    targets = make_wall_of_targets(
        frame_id, rows, num_targets, spacing, row_spacing,
        start_position, target_orientation, blue, grey, registry, target_scale,
    )
    try:
        camera.add_to_registry(registry)
    except SceneError:
        remove_targets(registry, targets)
        raise

    registry.apply_changes()
    logger.info("Scene ready: %d target(s) and camera %s in frame %s",
                len(targets), camera_parameters.camera_name, frame_id)
    return Scene(frame_id=frame_id, targets=targets, camera=camera)
