"""Immutable state shared between entities, the registry and observers."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import NamedTuple

from calibsim.core.geometry import Color, Pose


class ControlMode(Enum):
    """How the user may interact with an entity."""
    MOVE_3D = auto()  # free drag, plus single-axis rotate
    BUTTON = auto()   # click only


class MarkerShape(Enum):
    CUBE = auto()
    CAMERA = auto()


class EntityId(NamedTuple):
    frame_id: str
    name: str

    def __str__(self) -> str:
        return f"{self.frame_id}/{self.name}"


@dataclass(frozen=True)
class EntityState:
    """Everything about an entity that can change or be published."""
    frame_id: str
    name: str
    pose: Pose
    color: Color
    scale: float
    control_mode: ControlMode

    @property
    def entity_id(self) -> EntityId:
        return EntityId(self.frame_id, self.name)


@dataclass(frozen=True)
class MarkerRecord:
    """What observers of the registry see for one entity."""
    frame_id: str
    name: str
    pose: Pose
    color: Color
    scale: float
    control_mode: ControlMode
    shape: MarkerShape

    @property
    def entity_id(self) -> EntityId:
        return EntityId(self.frame_id, self.name)

    @classmethod
    def from_state(cls, state: EntityState, shape: MarkerShape) -> MarkerRecord:
        return cls(
            frame_id=state.frame_id,
            name=state.name,
            pose=state.pose,
            color=state.color,
            scale=state.scale,
            control_mode=state.control_mode,
            shape=shape,
        )
