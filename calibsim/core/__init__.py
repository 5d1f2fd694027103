"""Core components layer - scene-independent values and camera model."""

from calibsim.core.geometry import Color, Pose, default_camera_orientation

__all__ = [
    "Color",
    "Pose",
    "default_camera_orientation",
]
