import vtk
import numpy as np

from calibsim.core.geometry import Pose


def pose_to_vtk_matrix(pose: Pose) -> vtk.vtkMatrix4x4:
    """Homogeneous transform of a pose as a vtkMatrix4x4."""
    rotation = pose.rotation_matrix
    matrix = vtk.vtkMatrix4x4()
    for i in range(3):
        for j in range(3):
            matrix.SetElement(i, j, float(rotation[i, j]))
        matrix.SetElement(i, 3, float(pose.position[i]))
    return matrix


def vtk_matrix_to_numpy(matrix: vtk.vtkMatrix4x4) -> np.ndarray:
    return np.array([[matrix.GetElement(i, j) for j in range(4)] for i in range(4)])


def world_to_display(renderer: vtk.vtkRenderer, point) -> tuple[float, float, float]:
    """World coordinates -> display coordinates (x, y in pixels, z depth)."""
    renderer.SetWorldPoint(float(point[0]), float(point[1]), float(point[2]), 1.0)
    renderer.WorldToDisplay()
    return tuple(renderer.GetDisplayPoint())


def display_to_world(renderer: vtk.vtkRenderer, x: float, y: float, z: float) -> tuple[float, float, float]:
    """Display coordinates at depth z -> world coordinates."""
    renderer.SetDisplayPoint(float(x), float(y), float(z))
    renderer.DisplayToWorld()
    wx, wy, wz, w = renderer.GetWorldPoint()
    if w == 0:
        return wx, wy, wz
    return wx / w, wy / w, wz / w


def drag_offset(renderer: vtk.vtkRenderer, anchor, last_xy, xy) -> tuple[float, float, float]:
    """
    World-space offset for a mouse move from last_xy to xy, measured in the
    view plane through anchor.
    """
    _, _, depth = world_to_display(renderer, anchor)
    p0 = display_to_world(renderer, last_xy[0], last_xy[1], depth)
    p1 = display_to_world(renderer, xy[0], xy[1], depth)
    return p1[0] - p0[0], p1[1] - p0[1], p1[2] - p0[2]
