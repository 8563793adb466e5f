"""
4x4 homogeneous matrix algebra (NumPy).

Convention: matrices act on column vectors (``p' = M @ p``) and are stored
flat in row-major order, so element ``(r, c)`` is ``m[4 * r + c]``.
Translation lives in column 3, the perspective term in row 3.

Functions:

- ``build_*_matrix_4x4()``: elementary translation/rotation/scale/perspective matrices
- ``invert_matrix_4x4()``: inversion with singularity detection
- ``transform_point_homogeneous()`` / ``perspective_divide()``: point mapping
- ``intersect_local_plane()``: ray cast from a screen point onto the local z=0 plane
"""

from __future__ import annotations

import logging
import math

import numpy as np

from transformator.config import TRANSFORM_CONFIG
from transformator.types import Matrix16, MatrixLike, Vector3

logger = logging.getLogger(__name__)

IDENTITY_16: Matrix16 = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)  # fmt: skip

# ============================================================================
# Flat <-> array conversion
# ============================================================================


def as_matrix_4x4(m: MatrixLike) -> np.ndarray:
    """Convert a flat row-major 16-sequence or a 4x4 nested sequence to a float64 array.

    :param m: Matrix data
    :returns: 4x4 float64 array (always a fresh copy)
    :raises ValueError: If the data does not hold exactly 16 entries
    """
    arr = np.array(m, dtype=np.float64)
    if arr.size != 16:
        raise ValueError(f"Matrix must have 16 entries, got {arr.size}")
    return arr.reshape(4, 4)


def to_flat(M: np.ndarray) -> Matrix16:
    """Flatten a 4x4 array to a row-major tuple of Python floats."""
    return tuple(float(v) for v in np.asarray(M, dtype=np.float64).reshape(16))


# ============================================================================
# Elementary matrices
# ============================================================================


def build_translation_matrix_4x4(tx: float, ty: float, tz: float = 0.0) -> np.ndarray:
    """Build 4x4 translation matrix."""
    T = np.eye(4, dtype=np.float64)
    T[0, 3] = tx
    T[1, 3] = ty
    T[2, 3] = tz
    return T


def build_scale_matrix_4x4(sx: float, sy: float, sz: float = 1.0) -> np.ndarray:
    """Build 4x4 scale matrix."""
    S = np.eye(4, dtype=np.float64)
    S[0, 0] = sx
    S[1, 1] = sy
    S[2, 2] = sz
    return S


def build_rotation_x_matrix_4x4(radians: float) -> np.ndarray:
    """Rotation about X (right-handed): +y turns towards +z."""
    c, s = math.cos(radians), math.sin(radians)
    R = np.eye(4, dtype=np.float64)
    R[1, 1] = c
    R[1, 2] = -s
    R[2, 1] = s
    R[2, 2] = c
    return R


def build_rotation_y_matrix_4x4(radians: float) -> np.ndarray:
    """Rotation about Y (right-handed): +z turns towards +x."""
    c, s = math.cos(radians), math.sin(radians)
    R = np.eye(4, dtype=np.float64)
    R[0, 0] = c
    R[0, 2] = s
    R[2, 0] = -s
    R[2, 2] = c
    return R


def build_rotation_z_matrix_4x4(radians: float) -> np.ndarray:
    """Rotation about Z (right-handed): +x turns towards +y."""
    c, s = math.cos(radians), math.sin(radians)
    R = np.eye(4, dtype=np.float64)
    R[0, 0] = c
    R[0, 1] = -s
    R[1, 0] = s
    R[1, 1] = c
    return R


def build_euler_rotation_matrix_4x4(rx: float, ry: float, rz: float) -> np.ndarray:
    """Combined rotation ``Rx @ Ry @ Rz`` (angles in radians).

    Points are rotated about Z first, then Y, then X, matching CSS
    ``rotateX() rotateY() rotateZ()``.
    """
    return (
        build_rotation_x_matrix_4x4(rx)
        @ build_rotation_y_matrix_4x4(ry)
        @ build_rotation_z_matrix_4x4(rz)
    )


def build_axis_angle_matrix_4x4(axis: Vector3, radians: float) -> np.ndarray:
    """Rotation about an arbitrary axis (Rodrigues' formula).

    :param axis: Rotation axis [x, y, z], normalized internally
    :param radians: Rotation angle in radians
    :returns: 4x4 rotation matrix
    :raises ValueError: If the axis has zero length
    """
    axis = np.asarray(axis, dtype=np.float64)
    norm = np.linalg.norm(axis)
    if norm < 1e-12:
        raise ValueError("Rotation axis must have non-zero length")
    x, y, z = axis / norm

    c, s = math.cos(radians), math.sin(radians)
    t = 1.0 - c

    R = np.eye(4, dtype=np.float64)
    R[0, 0] = t * x * x + c
    R[0, 1] = t * x * y - s * z
    R[0, 2] = t * x * z + s * y
    R[1, 0] = t * x * y + s * z
    R[1, 1] = t * y * y + c
    R[1, 2] = t * y * z - s * x
    R[2, 0] = t * x * z - s * y
    R[2, 1] = t * y * z + s * x
    R[2, 2] = t * z * z + c
    return R


def build_perspective_matrix_4x4(distance: float, origin_x: float, origin_y: float) -> np.ndarray:
    """CSS ``perspective(d)`` centred on ``perspective-origin``.

    ``T(origin) @ P @ T(-origin)`` where ``P`` is identity with ``P[3, 2] = -1/d``,
    so a point at depth ``z`` ends up with ``w = 1 - z/d``.
    """
    P = np.eye(4, dtype=np.float64)
    P[3, 2] = -1.0 / distance
    return (
        build_translation_matrix_4x4(origin_x, origin_y)
        @ P
        @ build_translation_matrix_4x4(-origin_x, -origin_y)
    )


# ============================================================================
# Inversion and point mapping
# ============================================================================


def invert_matrix_4x4(M: np.ndarray, singular_epsilon: float | None = None) -> np.ndarray | None:
    """Invert a 4x4 matrix, or return None if it is (numerically) singular.

    :param M: 4x4 matrix
    :param singular_epsilon: Determinant magnitude below which M is singular
        (defaults to ``TRANSFORM_CONFIG.singular_epsilon``)
    :returns: Inverse matrix, or None
    """
    if singular_epsilon is None:
        singular_epsilon = TRANSFORM_CONFIG.singular_epsilon

    if not np.all(np.isfinite(M)):
        logger.debug("[matrix] Non-finite entries, not invertible")
        return None

    det = float(np.linalg.det(M))
    if abs(det) < singular_epsilon:
        logger.debug("[matrix] Singular matrix (det=%g)", det)
        return None

    return np.linalg.inv(M)


def transform_point_homogeneous(
    M: np.ndarray, x: float, y: float, z: float = 0.0
) -> tuple[float, float, float, float]:
    """Map ``(x, y, z, 1)`` through M without perspective division.

    :returns: Homogeneous result (x, y, z, w)
    """
    hx, hy, hz, hw = M @ np.array([x, y, z, 1.0], dtype=np.float64)
    return float(hx), float(hy), float(hz), float(hw)


def perspective_divide(
    hom: tuple[float, float, float, float], w_epsilon: float | None = None
) -> tuple[float, float, float] | None:
    """Divide a homogeneous point by its w.

    :param hom: Homogeneous point (x, y, z, w)
    :param w_epsilon: Minimum usable ``|w|`` (defaults to ``TRANSFORM_CONFIG.w_epsilon``)
    :returns: Cartesian (x, y, z), or None when w is non-finite or effectively zero
    """
    if w_epsilon is None:
        w_epsilon = TRANSFORM_CONFIG.w_epsilon

    x, y, z, w = hom
    if not math.isfinite(w) or abs(w) < w_epsilon:
        return None
    return x / w, y / w, z / w


def intersect_local_plane(
    inverse: np.ndarray,
    screen_x: float,
    screen_y: float,
    w_epsilon: float | None = None,
    parallel_epsilon: float | None = None,
) -> tuple[float, float] | None:
    """Cast a ray along the screen's z axis and intersect it with local z=0.

    The screen points ``(sx, sy, 0)`` and ``(sx, sy, 1)`` are pulled back
    through the inverse matrix. Projective maps send lines to lines, so the
    two local points span the ray and solving ``origin.z + t * dir.z = 0``
    gives the exact hit.

    :param inverse: Inverse of the fully composed matrix
    :param screen_x: Screen x coordinate
    :param screen_y: Screen y coordinate
    :returns: Local (x, y) on the z=0 plane, or None if the ray misses it
    """
    if parallel_epsilon is None:
        parallel_epsilon = TRANSFORM_CONFIG.parallel_epsilon

    ray_origin = perspective_divide(
        transform_point_homogeneous(inverse, screen_x, screen_y, 0.0), w_epsilon
    )
    ray_end = perspective_divide(
        transform_point_homogeneous(inverse, screen_x, screen_y, 1.0), w_epsilon
    )
    if ray_origin is None or ray_end is None:
        logger.debug("[matrix] Ray endpoint at infinity for (%g, %g)", screen_x, screen_y)
        return None

    dir_x = ray_end[0] - ray_origin[0]
    dir_y = ray_end[1] - ray_origin[1]
    dir_z = ray_end[2] - ray_origin[2]
    if abs(dir_z) < parallel_epsilon:
        logger.debug("[matrix] Ray parallel to local plane (dir.z=%g)", dir_z)
        return None

    t = -ray_origin[2] / dir_z
    local_x = ray_origin[0] + t * dir_x
    local_y = ray_origin[1] + t * dir_y
    if not (math.isfinite(local_x) and math.isfinite(local_y)):
        return None
    return local_x, local_y
