"""Interaction events and the pure state transition they drive."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, auto

from calibsim.core.geometry import Pose
from calibsim.scene.state import ControlMode, EntityId, EntityState

logger = logging.getLogger(__name__)


class EventKind(Enum):
    POSE_UPDATE = auto()
    BUTTON_CLICK = auto()


@dataclass(frozen=True)
class InteractionEvent:
    """A single user interaction addressed to one entity."""
    entity_id: EntityId
    kind: EventKind
    pose: Pose | None = None

    def __post_init__(self):
        if self.kind is EventKind.POSE_UPDATE and self.pose is None:
            raise ValueError("POSE_UPDATE events need a pose")

    @classmethod
    def pose_update(cls, entity_id: EntityId, pose: Pose) -> InteractionEvent:
        return cls(entity_id, EventKind.POSE_UPDATE, pose)

    @classmethod
    def button_click(cls, entity_id: EntityId) -> InteractionEvent:
        return cls(entity_id, EventKind.BUTTON_CLICK)


def apply_event(state: EntityState, event: InteractionEvent) -> EntityState:
    """
    Return the state that results from applying event to state.

    Pose updates only move MOVE_3D entities; BUTTON entities keep their pose.
    Clicks never change state (their effect is a notification).
    """
    if event.entity_id != state.entity_id:
        raise ValueError(f"Event for {event.entity_id} applied to {state.entity_id}")

    if event.kind is EventKind.POSE_UPDATE:
        if state.control_mode is not ControlMode.MOVE_3D:
            logger.debug("Ignoring pose update for %s (control mode %s)",
                         state.entity_id, state.control_mode.name)
            return state
        return replace(state, pose=event.pose)
    return state
