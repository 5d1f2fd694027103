"""
Pinhole projection with lens distortion.

Camera frame: X-right, Y-down, Z-forward (optical axis).
Image frame: u-right, v-down, origin at the top-left pixel.

Projection model:
    1. Perspective division: x' = X/Z, y' = Y/Z
    2. Distortion (OpenCV rational form, plumb_bob when k4..k6 are zero):
        r2 = x'^2 + y'^2
        radial = (1 + k1*r2 + k2*r2^2 + k3*r2^3) / (1 + k4*r2 + k5*r2^2 + k6*r2^3)
        x'' = x'*radial + 2*p1*x'*y' + p2*(r2 + 2*x'^2)
        y'' = y'*radial + p1*(r2 + 2*y'^2) + 2*p2*x'*y'
    3. Pixel mapping: u = fx*x'' + cx, v = fy*y'' + cy
"""
from __future__ import annotations

import numpy as np

from calibsim.core.camera_parameters import CameraParameters, DistortionCoefficients


def distort_normalized(
        x: np.ndarray,
        y: np.ndarray,
        d: DistortionCoefficients,
) -> tuple[np.ndarray, np.ndarray]:
    """Apply lens distortion to normalized image coordinates."""
    r2 = x * x + y * y
    r4 = r2 * r2
    r6 = r4 * r2
    radial = (1 + d.k1 * r2 + d.k2 * r4 + d.k3 * r6) / (1 + d.k4 * r2 + d.k5 * r4 + d.k6 * r6)
    x_dist = x * radial + 2 * d.p1 * x * y + d.p2 * (r2 + 2 * x * x)
    y_dist = y * radial + d.p1 * (r2 + 2 * y * y) + 2 * d.p2 * x * y
    return x_dist, y_dist


def project_points(
        points_camera: np.ndarray,
        params: CameraParameters,
        apply_distortion: bool = True,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Project camera-frame points to pixel coordinates.

    :param points_camera: (N, 3) points in the camera frame
    :param params: Camera parameters
    :param apply_distortion: Whether to apply lens distortion
    :return: (N, 2) pixel coordinates and (N,) mask of points in front of the camera.
        Pixels of points behind the camera are NaN.
    """
    pts = np.asarray(points_camera, dtype=float).reshape(-1, 3)
    z = pts[:, 2]
    in_front = z > 0

    uv = np.full((len(pts), 2), np.nan)
    if not np.any(in_front):
        return uv, in_front

    x = pts[in_front, 0] / z[in_front]
    y = pts[in_front, 1] / z[in_front]
    if apply_distortion and not params.distortion.is_zero:
        x, y = distort_normalized(x, y, params.distortion)

    uv[in_front, 0] = params.fx * x + params.cx
    uv[in_front, 1] = params.fy * y + params.cy
    return uv, in_front


def min_pairwise_distance(uv: np.ndarray) -> float:
    """Smallest distance between any two of the given pixels."""
    pts = np.asarray(uv, dtype=float).reshape(-1, 2)
    if len(pts) < 2:
        return float("inf")
    diff = pts[:, None, :] - pts[None, :, :]
    dist = np.sqrt((diff ** 2).sum(axis=-1))
    iu = np.triu_indices(len(pts), k=1)
    return float(dist[iu].min())
