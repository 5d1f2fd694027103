"""Fiducial target entity."""
from __future__ import annotations

from enum import Enum

import numpy as np

from calibsim.core.errors import InvalidParameterError
from calibsim.core.geometry import Color, Pose
from calibsim.scene.entity import SceneEntity
from calibsim.scene.state import ControlMode, MarkerShape


class TargetRole(str, Enum):
    WORLD_ORIGIN = "world_origin"
    REGULAR = "regular"


def target_name(index: int) -> str:
    return f"tag{index}"


def role_for_index(index: int) -> TargetRole:
    return TargetRole.WORLD_ORIGIN if index == 0 else TargetRole.REGULAR


def color_for_index(index: int, origin_color: Color, regular_color: Color) -> Color:
    """Origin color for tag0, regular color for every other tag."""
    return origin_color if role_for_index(index) is TargetRole.WORLD_ORIGIN else regular_color


class Target(SceneEntity):
    """
    A square fiducial marker identified by a non-negative index.

    The marker lies in the x-y plane of its own pose, centred on the pose
    position, with side length equal to its scale.
    """

    shape = MarkerShape.CUBE

    def __init__(
            self,
            frame_id: str,
            index: int,
            pose: Pose,
            color: Color,
            scale: float,
            control_mode: ControlMode = ControlMode.MOVE_3D,
    ) -> None:
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise InvalidParameterError(f"Target index must be a non-negative integer, got {index!r}")
        super().__init__(frame_id, target_name(index), pose, color, scale, control_mode)
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    @property
    def role(self) -> TargetRole:
        return role_for_index(self._index)

    def corners(self) -> np.ndarray:
        """
        Corner positions in the parent frame, shape (4, 3).

        Order: top-left, top-right, bottom-right, bottom-left in the marker's
        own x (right) / y (down) axes.
        """
        h = self.scale / 2.0
        local = np.array([
            [-h, -h, 0.0],
            [h, -h, 0.0],
            [h, h, 0.0],
            [-h, h, 0.0],
        ])
        rotation = self.pose.rotation_matrix
        return local @ rotation.T + np.asarray(self.pose.position)
