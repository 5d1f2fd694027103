"""Deterministic target layouts."""
from __future__ import annotations

import logging
from typing import Sequence

from calibsim.core.errors import SceneError
from calibsim.core.geometry import Color, Pose, Quaternion
from calibsim.scene.registry import SceneRegistry
from calibsim.scene.state import ControlMode
from calibsim.scene.target import Target, color_for_index
from calibsim.utils.log_util import log_io

logger = logging.getLogger(__name__)

DEFAULT_TARGET_SCALE = 0.1


def remove_targets(registry: SceneRegistry, targets: Sequence[Target]) -> None:
    """Unregister targets that are still registered, last first."""
    for target in reversed(targets):
        if target.entity_id in registry:
            registry.unregister(target.entity_id)
    if targets:
        logger.warning("Removed %d target(s) after a failed layout", len(targets))


@log_io(logging.DEBUG)
def make_line_of_targets(
        frame_id: str,
        count: int,
        spacing: float,
        start_index: int,
        start_position: Sequence[float],
        orientation: Quaternion,
        origin_color: Color,
        regular_color: Color,
        registry: SceneRegistry,
        scale: float = DEFAULT_TARGET_SCALE,
) -> list[Target]:
    """
    Make a row of targets along the x axis and register each one.

    Targets are numbered start_index .. count - 1, so ``count`` is the index
    one past the last target, not the number of targets made. Only the target
    with index 0 gets the origin color.

    :param frame_id: Reference frame of the targets
    :param count: One past the last target index
    :param spacing: Distance between neighbouring targets along x (any sign)
    :param start_index: Index of the first target
    :param start_position: Position of the first target
    :param orientation: Orientation shared by every target
    :param origin_color: Color of tag0
    :param regular_color: Color of every other target
    :param registry: Registry the targets are added to
    :param scale: Side length of each target
    :return: The targets, in index order
    """
    targets: list[Target] = []
    x, y, z = start_position
    try:
        for index in range(start_index, count):
            target = Target(
                frame_id,
                index,
                Pose((x + (index - start_index) * spacing, y, z), orientation),
                color_for_index(index, origin_color, regular_color),
                scale,
                ControlMode.MOVE_3D,
            )
            target.add_to_registry(registry)
            targets.append(target)
    except SceneError:
        remove_targets(registry, targets)
        raise

    logger.info("Made %d target(s) in a line starting at index %d", len(targets), start_index)
    return targets


def make_wall_of_targets(
        frame_id: str,
        rows: int,
        columns: int,
        spacing: float,
        row_spacing: float,
        start_position: Sequence[float],
        orientation: Quaternion,
        origin_color: Color,
        regular_color: Color,
        registry: SceneRegistry,
        scale: float = DEFAULT_TARGET_SCALE,
) -> list[Target]:
    """
    Stack ``rows`` lines of ``columns`` targets, rows stepping along z.

    Numbering continues from row to row, so the wall holds tag0 ..
    tag(rows * columns - 1) and only tag0 has the origin color.
    """
    targets: list[Target] = []
    x, y, z = start_position
    try:
        for row in range(rows):
            first = row * columns
            targets.extend(make_line_of_targets(
                frame_id,
                first + columns,
                spacing,
                first,
                (x, y, z + row * row_spacing),
                orientation,
                origin_color,
                regular_color,
                registry,
                scale,
            ))
    except SceneError:
        remove_targets(registry, targets)
        raise
    return targets
