"""VTK actors for published marker records."""
from __future__ import annotations

import logging

import vtk

from calibsim.scene.state import EntityId, MarkerRecord, MarkerShape
from calibsim.utils import vtk_helpers

logger = logging.getLogger(__name__)

# Targets are drawn as thin tiles in their local x-y plane.
TARGET_THICKNESS_RATIO = 0.05


def _make_source(shape: MarkerShape, scale: float) -> vtk.vtkPolyDataAlgorithm:
    if shape is MarkerShape.CAMERA:
        # Apex at the camera centre, opening along +z (the viewing direction).
        source = vtk.vtkConeSource()
        source.SetResolution(4)
        source.SetHeight(scale)
        source.SetRadius(scale * 0.5)
        source.SetDirection(0.0, 0.0, -1.0)
        source.SetCenter(0.0, 0.0, scale * 0.5)
        return source

    source = vtk.vtkCubeSource()
    source.SetXLength(scale)
    source.SetYLength(scale)
    source.SetZLength(scale * TARGET_THICKNESS_RATIO)
    return source


def build_actor(record: MarkerRecord) -> vtk.vtkActor:
    source = _make_source(record.shape, record.scale)
    mapper = vtk.vtkPolyDataMapper()
    mapper.SetInputConnection(source.GetOutputPort())
    actor = vtk.vtkActor()
    actor.SetMapper(mapper)
    apply_record(actor, record)
    return actor


def apply_record(actor: vtk.vtkActor, record: MarkerRecord) -> None:
    """Copy pose and color of record onto actor."""
    actor.SetUserMatrix(vtk_helpers.pose_to_vtk_matrix(record.pose))
    prop = actor.GetProperty()
    prop.SetColor(record.color.r, record.color.g, record.color.b)
    prop.SetOpacity(record.color.a)


class MarkerActors:
    """
    One actor per published entity, kept in sync with registry callbacks.

    Usage:
        actors = MarkerActors(renderer)
        registry.add_update_callback(actors.update)
        registry.add_erase_callback(actors.erase)
    """

    def __init__(self, renderer: vtk.vtkRenderer) -> None:
        self.renderer = renderer
        self._actors: dict[EntityId, vtk.vtkActor] = {}
        self._records: dict[EntityId, MarkerRecord] = {}

    def __len__(self) -> int:
        return len(self._actors)

    def __contains__(self, entity_id: EntityId) -> bool:
        return entity_id in self._actors

    def actor(self, entity_id: EntityId) -> vtk.vtkActor | None:
        return self._actors.get(entity_id)

    def record(self, entity_id: EntityId) -> MarkerRecord | None:
        return self._records.get(entity_id)

    def update(self, record: MarkerRecord) -> None:
        entity_id = record.entity_id
        actor = self._actors.get(entity_id)
        if actor is None:
            actor = build_actor(record)
            self._actors[entity_id] = actor
            self.renderer.AddActor(actor)
            logger.debug("Actor created for %s", entity_id)
        else:
            apply_record(actor, record)
        self._records[entity_id] = record

    def erase(self, entity_id: EntityId) -> None:
        actor = self._actors.pop(entity_id, None)
        self._records.pop(entity_id, None)
        if actor is not None:
            self.renderer.RemoveActor(actor)

    def clear(self) -> None:
        for entity_id in list(self._actors):
            self.erase(entity_id)

    def entity_for_actor(self, actor: vtk.vtkProp | None) -> EntityId | None:
        if actor is None:
            return None
        for entity_id, candidate in self._actors.items():
            if candidate is actor:
                return entity_id
        return None
