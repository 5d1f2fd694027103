"""Main window showing the scene and turning mouse input into interaction events."""
from __future__ import annotations

import logging

import vtk
from PySide6 import QtWidgets
from PySide6.QtWidgets import QLabel
from vtkmodules.qt.QVTKRenderWindowInteractor import QVTKRenderWindowInteractor

from calibsim.app.app_settings_manager import AppSettingsManager
from calibsim.scene.camera import CaptureResult
from calibsim.scene.events import InteractionEvent
from calibsim.scene.registry import SceneRegistry
from calibsim.scene.state import EntityId, MarkerRecord
from calibsim.utils import vtk_helpers
from calibsim.viewers.interaction_style import SceneInteractorStyle
from calibsim.viewers.marker_actors import MarkerActors

logger = logging.getLogger(__name__)


class SceneViewer(QtWidgets.QMainWindow):
    """
    Renders the registry's markers and feeds user interaction back to it.

    The viewer only talks to the registry through published records and
    queued InteractionEvents; it never mutates entities directly.
    """

    def __init__(
            self,
            registry: SceneRegistry,
            settings_manager: AppSettingsManager | None = None,
            parent: QtWidgets.QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle(f"calibsim - {registry.name}")
        self.registry = registry
        self.setting = settings_manager or AppSettingsManager()

        self._setup_ui()
        self._setup_vtk_rendering()

        self.actors = MarkerActors(self.renderer)
        for record in registry.records():
            self.actors.update(record)
        registry.add_update_callback(self._on_marker_updated)
        registry.add_erase_callback(self._on_marker_erased)
        registry.add_commit_callback(self._on_commit)

        self.interactor.SetInteractorStyle(SceneInteractorStyle(self))
        self.renderer.ResetCamera()
        self.setGeometry(100, 100, 1200, 800)
        self.show()
        self.interactor.Initialize()

    @property
    def rotation_step_deg(self) -> float:
        return self.setting.rotation_step_deg

    @property
    def drag_threshold_px(self) -> int:
        return self.setting.drag_threshold_px

    def _setup_ui(self) -> None:
        self.vtk_widget = QVTKRenderWindowInteractor(self)
        self.setCentralWidget(self.vtk_widget)

        self._selection_label = QLabel("", self)
        self._capture_label = QLabel("", self)
        self.statusBar().addPermanentWidget(self._selection_label)
        self.statusBar().addPermanentWidget(self._capture_label)

    def _setup_vtk_rendering(self) -> None:
        render_window = self.vtk_widget.GetRenderWindow()
        self.renderer = vtk.vtkRenderer()
        self.renderer.SetBackground(0.15, 0.15, 0.18)
        render_window.AddRenderer(self.renderer)

        axes = vtk.vtkAxesActor()
        axes.SetTotalLength(0.3, 0.3, 0.3)
        axes.SetAxisLabels(False)
        self.renderer.AddActor(axes)

        self.interactor = render_window.GetInteractor()
        logger.debug("VTK rendering components initialized.")

    # =====================================================
    # Registry callbacks
    # =====================================================

    def _on_marker_updated(self, record: MarkerRecord) -> None:
        self.actors.update(record)

    def _on_marker_erased(self, entity_id: EntityId) -> None:
        self.actors.erase(entity_id)

    def _on_commit(self, records: list[MarkerRecord]) -> None:
        self.update_view()

    def show_capture(self, result: CaptureResult) -> None:
        """Capture callback: summarize the capture in the status bar."""
        seen = ", ".join(o.name for o in result.observations) or "no targets"
        self._capture_label.setText(f"Capture #{result.sequence}: {seen}")

    # =====================================================
    # User interaction -> events
    # =====================================================

    def drag_entity(self, entity_id: EntityId, last_xy, xy) -> None:
        record = self.actors.record(entity_id)
        if record is None:
            return
        offset = vtk_helpers.drag_offset(self.renderer, record.pose.position, last_xy, xy)
        self._post(InteractionEvent.pose_update(entity_id, record.pose.translated(offset)))

    def rotate_entity(self, entity_id: EntityId, angle_rad: float) -> None:
        record = self.actors.record(entity_id)
        if record is None:
            return
        pose = record.pose.rotated_about_local_axis((0.0, 0.0, 1.0), angle_rad)
        self._post(InteractionEvent.pose_update(entity_id, pose))

    def click_entity(self, entity_id: EntityId) -> None:
        self._post(InteractionEvent.button_click(entity_id))

    def _post(self, event: InteractionEvent) -> None:
        if self.registry.post_event(event):
            self.registry.process_events()
        record = self.actors.record(event.entity_id)
        if record is not None:
            x, y, z = record.pose.position
            self._selection_label.setText(f"{record.name}: ({x:.3f}, {y:.3f}, {z:.3f})")

    # =====================================================
    # Rendering / lifecycle
    # =====================================================

    def update_view(self) -> None:
        self.vtk_widget.GetRenderWindow().Render()

    def closeEvent(self, event) -> None:
        self.registry.remove_update_callback(self._on_marker_updated)
        self.registry.remove_erase_callback(self._on_marker_erased)
        self.registry.remove_commit_callback(self._on_commit)
        self.vtk_widget.Finalize()
        super().closeEvent(event)
