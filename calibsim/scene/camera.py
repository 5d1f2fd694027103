"""Simulated camera entity and the captures it produces."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

import numpy as np

from calibsim.core.camera_parameters import CameraParameters
from calibsim.core.geometry import Color, Pose
from calibsim.core.projection import min_pairwise_distance, project_points
from calibsim.scene.entity import SceneEntity
from calibsim.scene.state import ControlMode, MarkerShape
from calibsim.scene.target import Target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetObservation:
    """Pixel corners of one target seen by the camera."""
    index: int
    name: str
    corners: tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class CaptureResult:
    """Targets seen by the camera when it was clicked."""
    camera_name: str
    sequence: int
    camera_pose: Pose
    observations: tuple[TargetObservation, ...]

    @property
    def observed_indices(self) -> list[int]:
        return [o.index for o in self.observations]


def observe_target(params: CameraParameters, camera_pose: Pose, target: Target) -> TargetObservation | None:
    """
    Project a target into the camera image.

    Returns None unless every corner is in front of the camera, inside the
    image, and corners are at least min_distance_between_target_corners apart.
    """
    corners_camera = camera_pose.inverse_transform_points(target.corners())
    uv, in_front = project_points(corners_camera, params)
    if not in_front.all():
        return None
    if not all(params.contains_pixel(u, v) for u, v in uv):
        return None
    if min_pairwise_distance(uv) < params.min_distance_between_target_corners:
        return None
    return TargetObservation(
        index=target.index,
        name=target.name,
        corners=tuple((float(u), float(v)) for u, v in uv),
    )


class Camera(SceneEntity):
    """
    Camera proxy. It cannot be dragged; clicking it captures the targets
    currently registered in the same scene.

    The camera frame follows the optical convention: +z is the viewing
    direction, +y points down in the image.
    """

    shape = MarkerShape.CAMERA

    def __init__(
            self,
            frame_id: str,
            name: str,
            pose: Pose,
            color: Color,
            scale: float,
            parameters: CameraParameters,
    ) -> None:
        super().__init__(frame_id, name, pose, color, scale, ControlMode.BUTTON)
        self._parameters = parameters
        self._capture_count = 0
        self._on_capture_callbacks: list[Callable[[CaptureResult], None]] = []

    @property
    def parameters(self) -> CameraParameters:
        return self._parameters

    @property
    def capture_count(self) -> int:
        return self._capture_count

    def add_capture_callback(self, callback: Callable[[CaptureResult], None]) -> None:
        """
        Add a callback for captures.

        Callback signature: callback(result: CaptureResult) -> None
        """
        self._on_capture_callbacks.append(callback)

    def remove_capture_callback(self, callback: Callable[[CaptureResult], None]) -> None:
        self._on_capture_callbacks.remove(callback)

    def capture(self, targets: Iterable[Target]) -> CaptureResult:
        """Project the given targets and return what the camera sees."""
        self._capture_count += 1
        observations = []
        for target in sorted(targets, key=lambda t: t.index):
            observation = observe_target(self._parameters, self.pose, target)
            if observation is not None:
                observations.append(observation)
        result = CaptureResult(
            camera_name=self._parameters.camera_name,
            sequence=self._capture_count,
            camera_pose=self.pose,
            observations=tuple(observations),
        )
        logger.info("Capture %d from %s: targets %s",
                    result.sequence, self.name, result.observed_indices)
        return result

    def on_click(self) -> None:
        targets = self._registry.entities_of_type(Target) if self._registry is not None else []
        result = self.capture(targets)
        for callback in self._on_capture_callbacks:
            try:
                callback(result)
            except Exception as e:
                logger.exception(f"Error in capture callback: {e}")

    def view_direction(self) -> np.ndarray:
        """Viewing direction in the parent frame."""
        return self.pose.rotation_matrix[:, 2]
