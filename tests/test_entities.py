import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from calibsim.core.errors import InvalidParameterError
from calibsim.core.geometry import Pose, default_camera_orientation
from calibsim.scene.camera import Camera, CaptureResult, observe_target
from calibsim.scene.entity import SceneEntity
from calibsim.scene.events import EventKind, InteractionEvent, apply_event
from calibsim.scene.layout import make_line_of_targets
from calibsim.scene.state import ControlMode, EntityId, MarkerShape
from calibsim.scene.target import Target, TargetRole, color_for_index, target_name

CAMERA_Q = (0.0, math.sqrt(0.5), -math.sqrt(0.5), 0.0)


# ---------- events ----------

def test_apply_event_moves_move3d_entity(grey):
    state = Target("world", 1, Pose(), grey, 0.1).state
    new_pose = Pose((1.0, 2.0, 3.0))
    new_state = apply_event(state, InteractionEvent.pose_update(state.entity_id, new_pose))
    assert new_state.pose == new_pose
    assert new_state.name == state.name and new_state.color == state.color
    # the input state is left alone
    assert state.pose == Pose()


def test_apply_event_ignores_pose_for_button_entity(orange, camera_parameters):
    camera = Camera("world", "camera", Pose(), orange, 0.2, camera_parameters)
    state = camera.state
    assert apply_event(state, InteractionEvent.pose_update(state.entity_id, Pose((5, 5, 5)))) is state


def test_apply_event_click_keeps_state(grey):
    state = Target("world", 0, Pose(), grey, 0.1).state
    assert apply_event(state, InteractionEvent.button_click(state.entity_id)) == state


def test_apply_event_rejects_wrong_entity(grey):
    state = Target("world", 0, Pose(), grey, 0.1).state
    with pytest.raises(ValueError):
        apply_event(state, InteractionEvent.button_click(EntityId("world", "tag1")))


def test_pose_update_requires_pose():
    with pytest.raises(ValueError):
        InteractionEvent(EntityId("world", "tag0"), EventKind.POSE_UPDATE)


# ---------- entities ----------

@pytest.mark.parametrize("frame_id, name, scale", [
    ("", "tag0", 0.1),
    ("world", "", 0.1),
    ("world", "tag0", 0.0),
    ("world", "tag0", -1.0),
])
def test_entity_rejects_invalid_fields(grey, frame_id, name, scale):
    with pytest.raises(InvalidParameterError):
        SceneEntity(frame_id, name, Pose(), grey, scale, ControlMode.MOVE_3D)


@pytest.mark.parametrize("index", [-1, 1.0, True, "0"])
def test_target_rejects_bad_index(grey, index):
    with pytest.raises(InvalidParameterError):
        Target("world", index, Pose(), grey, 0.1)


def test_target_naming_and_roles(blue, grey):
    assert target_name(12) == "tag12"
    assert color_for_index(0, blue, grey) == blue
    assert color_for_index(7, blue, grey) == grey
    target = Target("world", 0, Pose(), blue, 0.1)
    assert target.role is TargetRole.WORLD_ORIGIN
    assert target.entity_id == EntityId("world", "tag0")
    assert str(target.entity_id) == "world/tag0"
    assert target.marker_record().shape is MarkerShape.CUBE


def test_target_corners_identity(grey):
    target = Target("world", 0, Pose((1.0, 2.0, 3.0)), grey, 0.2)
    assert_allclose(target.corners(), [
        [0.9, 1.9, 3.0],
        [1.1, 1.9, 3.0],
        [1.1, 2.1, 3.0],
        [0.9, 2.1, 3.0],
    ])


def test_pose_changed_callback(registry, grey):
    target = Target("world", 0, Pose(), grey, 0.1)
    target.add_to_registry(registry)
    seen = []
    target.add_pose_changed_callback(lambda entity, pose: seen.append((entity.name, pose.position)))

    registry.dispatch(InteractionEvent.pose_update(target.entity_id, Pose((0.0, 0.0, 1.0))))
    registry.dispatch(InteractionEvent.button_click(target.entity_id))
    assert seen == [("tag0", (0.0, 0.0, 1.0))]


def test_target_click_is_ignored(registry, grey):
    target = Target("world", 0, Pose(), grey, 0.1)
    target.add_to_registry(registry)
    assert registry.dispatch(InteractionEvent.button_click(target.entity_id)) is False


# ---------- camera ----------

@pytest.fixture
def line(registry, blue, grey):
    return make_line_of_targets("world", 5, 0.5, 0, (0.0, 0.0, 0.0), CAMERA_Q, blue, grey, registry, 0.25)


@pytest.fixture
def camera(registry, orange, camera_parameters):
    cam = Camera("world", "camera", Pose((1.0, 3.0, 0.0), default_camera_orientation()),
                 orange, 0.2, camera_parameters)
    cam.add_to_registry(registry)
    registry.apply_changes()
    return cam


def test_camera_is_button_controlled(camera):
    assert camera.control_mode is ControlMode.BUTTON
    assert camera.marker_record().shape is MarkerShape.CAMERA
    assert_allclose(camera.view_direction(), (0.0, -1.0, 0.0), atol=1e-12)


def test_camera_ignores_drag(registry, camera):
    before = camera.pose
    assert registry.dispatch(InteractionEvent.pose_update(camera.entity_id, Pose((9, 9, 9)))) is False
    assert camera.pose == before


def test_capture_sees_all_targets_in_line(line, camera):
    result = camera.capture(line)
    assert result.observed_indices == [0, 1, 2, 3, 4]
    assert result.camera_name == "sim_camera"
    assert result.sequence == 1

    # the target at x = 1 sits on the optical axis, 3 m away
    tag2 = result.observations[2]
    assert tag2.name == "tag2"
    assert_allclose(tag2.corners, [(295, 215), (345, 215), (345, 265), (295, 265)], atol=1e-9)

    # targets further along +x appear further left in the image
    centers = [np.mean(o.corners, axis=0)[0] for o in result.observations]
    assert_allclose(centers, [520, 420, 320, 220, 120], atol=1e-9)


def test_capture_skips_targets_behind_camera(line, camera):
    camera.set_pose(camera.pose.with_position((1.0, -3.0, 0.0)))
    assert camera.capture(line).observations == ()


def test_capture_skips_targets_too_small(line, camera):
    camera.set_pose(camera.pose.with_position((1.0, 30.0, 0.0)))
    assert camera.capture(line).observations == ()


def test_capture_skips_targets_outside_image(line, camera):
    camera.set_pose(camera.pose.with_position((10.0, 3.0, 0.0)))
    assert camera.capture(line).observations == ()


def test_observe_target_requires_every_corner_in_image(camera, camera_parameters, grey):
    # centre at u = 320 + 200 * 1.5 = 620, right edge past 640
    target = Target("world", 7, Pose((-0.5, 0.0, 0.0), CAMERA_Q), grey, 0.25)
    assert observe_target(camera_parameters, camera.pose, target) is None
    target = Target("world", 8, Pose((-0.25, 0.0, 0.0), CAMERA_Q), grey, 0.25)
    assert observe_target(camera_parameters, camera.pose, target) is not None


def test_click_on_camera_captures_registered_targets(registry, line, camera):
    captures: list[CaptureResult] = []
    camera.add_capture_callback(captures.append)

    registry.post_event(InteractionEvent.button_click(camera.entity_id))
    registry.process_events()
    assert len(captures) == 1
    assert captures[0].observed_indices == [0, 1, 2, 3, 4]

    # move a target out of view and click again
    tag4 = registry.find("tag4")
    registry.dispatch(InteractionEvent.pose_update(tag4.entity_id, tag4.pose.translated((0.0, 10.0, 0.0))))
    registry.dispatch(InteractionEvent.button_click(camera.entity_id))
    assert captures[-1].observed_indices == [0, 1, 2, 3]
    assert captures[-1].sequence == 2
    assert camera.capture_count == 2


def test_failing_capture_callback_is_logged(registry, line, camera, caplog):
    def broken(result):
        raise RuntimeError("viewer gone")

    camera.add_capture_callback(broken)
    registry.dispatch(InteractionEvent.button_click(camera.entity_id))
    assert "viewer gone" in caplog.text
