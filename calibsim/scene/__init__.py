"""Scene entities, layouts and the registry that publishes them."""

from calibsim.scene.camera import Camera, CaptureResult, TargetObservation
from calibsim.scene.entity import SceneEntity
from calibsim.scene.events import EventKind, InteractionEvent, apply_event
from calibsim.scene.layout import make_line_of_targets, make_wall_of_targets
from calibsim.scene.registry import SceneRegistry
from calibsim.scene.state import ControlMode, EntityId, EntityState, MarkerRecord, MarkerShape
from calibsim.scene.target import Target, TargetRole

__all__ = [
    "Camera",
    "CaptureResult",
    "TargetObservation",
    "SceneEntity",
    "EventKind",
    "InteractionEvent",
    "apply_event",
    "make_line_of_targets",
    "make_wall_of_targets",
    "SceneRegistry",
    "ControlMode",
    "EntityId",
    "EntityState",
    "MarkerRecord",
    "MarkerShape",
    "Target",
    "TargetRole",
]
