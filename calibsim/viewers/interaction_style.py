from __future__ import annotations

import math
from typing import TYPE_CHECKING

import vtk
from vtkmodules.vtkInteractionStyle import vtkInteractorStyleTrackballCamera

from calibsim.scene.state import ControlMode

if TYPE_CHECKING:
    from calibsim.viewers.scene_viewer import SceneViewer


class SceneInteractorStyle(vtkInteractorStyleTrackballCamera):
    """
    Left-drag on a target moves it in the view plane, right-drag rotates it
    about its own z axis, left-click on the camera fires its button.
    Presses on empty space keep the trackball camera behaviour.
    """

    def __init__(self, parent: SceneViewer):
        super().__init__()
        self.parent = parent
        self._picker = vtk.vtkPropPicker()
        self._entity_id = None
        self._last_pos = None
        self._press_pos = None
        self._mode = None    # None, 'move', 'rotate', 'click' or 'camera'

        self.RemoveObservers("LeftButtonPressEvent")
        self.AddObserver("LeftButtonPressEvent", self.on_left_button_down)
        self.RemoveObservers("LeftButtonReleaseEvent")
        self.AddObserver("LeftButtonReleaseEvent", self.on_left_button_up)
        self.RemoveObservers("RightButtonPressEvent")
        self.AddObserver("RightButtonPressEvent", self.on_right_button_down)
        self.RemoveObservers("RightButtonReleaseEvent")
        self.AddObserver("RightButtonReleaseEvent", self.on_right_button_up)
        self.RemoveObservers("MouseMoveEvent")
        self.AddObserver("MouseMoveEvent", self.on_mouse_move)

    def _pick(self):
        x, y = self.GetInteractor().GetEventPosition()
        self._picker.Pick(x, y, 0, self.parent.renderer)
        return self.parent.actors.entity_for_actor(self._picker.GetActor())

    def on_left_button_down(self, obj, event):
        entity_id = self._pick()
        record = self.parent.actors.record(entity_id) if entity_id is not None else None
        if record is None:
            self._mode = 'camera'
            self.OnLeftButtonDown()
            return
        self._entity_id = entity_id
        self._press_pos = self._last_pos = self.GetInteractor().GetEventPosition()
        self._mode = 'click' if record.control_mode is ControlMode.BUTTON else 'move'

    def on_right_button_down(self, obj, event):
        entity_id = self._pick()
        record = self.parent.actors.record(entity_id) if entity_id is not None else None
        if record is None or record.control_mode is not ControlMode.MOVE_3D:
            self._mode = 'camera'
            self.OnRightButtonDown()
            return
        self._entity_id = entity_id
        self._last_pos = self.GetInteractor().GetEventPosition()
        self._mode = 'rotate'

    def on_mouse_move(self, obj, event):
        if self._mode == 'move':
            x, y = self.GetInteractor().GetEventPosition()
            px, py = self._press_pos
            if max(abs(x - px), abs(y - py)) < self.parent.drag_threshold_px and self._last_pos == self._press_pos:
                return
            self.parent.drag_entity(self._entity_id, self._last_pos, (x, y))
            self._last_pos = (x, y)
        elif self._mode == 'rotate':
            x, y = self.GetInteractor().GetEventPosition()
            dy = y - self._last_pos[1]
            self.parent.rotate_entity(self._entity_id, math.radians(dy * self.parent.rotation_step_deg))
            self._last_pos = (x, y)
        else:
            self.OnMouseMove()

    def on_left_button_up(self, obj, event):
        if self._mode == 'click':
            self.parent.click_entity(self._entity_id)
        elif self._mode == 'camera':
            self.OnLeftButtonUp()
        self._reset()

    def on_right_button_up(self, obj, event):
        if self._mode == 'camera':
            self.OnRightButtonUp()
        self._reset()

    def _reset(self):
        self._mode = None
        self._entity_id = None
        self._last_pos = None
        self._press_pos = None
