"""Base class for every manipulable object in the scene."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Callable

from calibsim.core.errors import InvalidParameterError
from calibsim.core.geometry import Color, Pose
from calibsim.scene.events import EventKind, InteractionEvent, apply_event
from calibsim.scene.state import ControlMode, EntityId, EntityState, MarkerRecord, MarkerShape

if TYPE_CHECKING:
    from calibsim.scene.registry import SceneRegistry

logger = logging.getLogger(__name__)


class SceneEntity:
    """
    A named, posed, colored object anchored in a reference frame.

    Responsible for:
    - Holding the current EntityState.
    - Applying interaction events addressed to it.
    - Notifying pose-changed callbacks.

    The registry owns the entity once registered and re-publishes it after
    every state change.
    """

    shape: MarkerShape = MarkerShape.CUBE

    def __init__(
            self,
            frame_id: str,
            name: str,
            pose: Pose,
            color: Color,
            scale: float,
            control_mode: ControlMode,
    ) -> None:
        if not frame_id:
            raise InvalidParameterError("Entity frame id must not be empty")
        if not name:
            raise InvalidParameterError("Entity name must not be empty")
        if not scale > 0:
            raise InvalidParameterError(f"Entity scale must be positive, got {scale!r}")

        self._state = EntityState(
            frame_id=frame_id,
            name=name,
            pose=pose,
            color=color,
            scale=float(scale),
            control_mode=control_mode,
        )
        self._registry: SceneRegistry | None = None
        self._on_pose_changed_callbacks: list[Callable[[SceneEntity, Pose], None]] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.entity_id}, position={self.pose.position})"

    @property
    def state(self) -> EntityState:
        return self._state

    @property
    def frame_id(self) -> str:
        return self._state.frame_id

    @property
    def name(self) -> str:
        return self._state.name

    @property
    def entity_id(self) -> EntityId:
        return self._state.entity_id

    @property
    def pose(self) -> Pose:
        return self._state.pose

    @property
    def color(self) -> Color:
        return self._state.color

    @property
    def scale(self) -> float:
        return self._state.scale

    @property
    def control_mode(self) -> ControlMode:
        return self._state.control_mode

    @property
    def registry(self) -> SceneRegistry | None:
        return self._registry

    def marker_record(self) -> MarkerRecord:
        return MarkerRecord.from_state(self._state, self.shape)

    def add_to_registry(self, registry: SceneRegistry) -> EntityId:
        """Publish this entity to the registry and start receiving its events."""
        return registry.register(self)

    def _attach(self, registry: SceneRegistry) -> None:
        self._registry = registry

    def _detach(self) -> None:
        self._registry = None

    def set_pose(self, pose: Pose) -> None:
        """Move the entity programmatically and re-publish it."""
        if pose == self._state.pose:
            return
        self._state = replace(self._state, pose=pose)
        self._notify_pose_changed()
        if self._registry is not None:
            self._registry.publish(self)

    def handle_event(self, event: InteractionEvent) -> bool:
        """
        Apply an interaction event.

        :return: True if the published state changed
        """
        new_state = apply_event(self._state, event)
        changed = new_state != self._state
        self._state = new_state

        if event.kind is EventKind.BUTTON_CLICK:
            self.on_click()
        if changed:
            logger.debug("%s moved to %s", self.entity_id, new_state.pose.position)
            self._notify_pose_changed()
        return changed

    def on_click(self) -> None:
        """Called for button clicks; entities without a button ignore them."""
        logger.debug("Click on %s ignored", self.entity_id)

    def add_pose_changed_callback(self, callback: Callable[[SceneEntity, Pose], None]) -> None:
        """
        Add a callback for pose changes.

        Callback signature: callback(entity: SceneEntity, pose: Pose) -> None
        """
        self._on_pose_changed_callbacks.append(callback)

    def remove_pose_changed_callback(self, callback: Callable[[SceneEntity, Pose], None]) -> None:
        self._on_pose_changed_callbacks.remove(callback)

    def _notify_pose_changed(self) -> None:
        for callback in self._on_pose_changed_callbacks:
            try:
                callback(self, self._state.pose)
            except Exception as e:
                logger.exception(f"Error in pose changed callback: {e}")
