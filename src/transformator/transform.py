"""CSS-style hierarchical 3D transforms.

A :class:`Transform` holds one node's local parameters (origin, position,
rotation, scale, perspective and accumulated ``then_*`` increments) plus the
resolved matrix of the ancestors it was composed onto.

Example:
    >>> from transformator import Transform
    >>>
    >>> parent = (Transform()
    ...     .with_position_relative_to_parent(350, 250)
    ...     .with_parent_container_perspective(500, 400, 300)
    ...     .with_origin(50, 50)
    ...     .then_rotate_x_deg(45)
    ...     .compose(Transform()))
    >>> child = Transform().with_position_relative_to_parent(10, 10).compose(parent)
    >>> child.transform_local_point2d_to_world(0, 0)
    >>> child.project_screen_point_to_local_2d((380, 290))
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from functools import cached_property

import numpy as np

from transformator.config import TRANSFORM_CONFIG
from transformator.kernels import map_points_2d_numba, project_points_to_plane_numba
from transformator.matrix import (
    IDENTITY_16,
    as_matrix_4x4,
    build_axis_angle_matrix_4x4,
    build_euler_rotation_matrix_4x4,
    build_perspective_matrix_4x4,
    build_rotation_x_matrix_4x4,
    build_rotation_y_matrix_4x4,
    build_rotation_z_matrix_4x4,
    build_scale_matrix_4x4,
    build_translation_matrix_4x4,
    intersect_local_plane,
    invert_matrix_4x4,
    perspective_divide,
    to_flat,
    transform_point_homogeneous,
)
from transformator.types import Matrix16
from transformator.validators import ensure_finite, validate_finite, validate_positive

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Perspective:
    """Perspective of the parent container (CSS ``perspective`` + ``perspective-origin``).

    :param distance: Distance from the viewer to the z=0 plane (> 0)
    :param origin: Vanishing point in the parent's coordinates
    """

    distance: float
    origin: tuple[float, float] = (0.0, 0.0)

    def to_matrix(self) -> np.ndarray:
        return build_perspective_matrix_4x4(self.distance, *self.origin)


@dataclass(frozen=True)
class Transform:
    """Local transform of one node, optionally composed onto its ancestors.

    Builder methods never mutate; each returns a new ``Transform``.
    Plain forms (``translate``, ``rotate_*``, ``scale``) overwrite one parameter
    slot. ``then_*`` forms append an increment that acts after everything
    accumulated so far, in call order.

    The node's own matrix, in column-vector convention, is::

        Persp · T(position) · T(origin) · Δ · Rx · Ry · Rz · S · T(-origin)

    where ``Δ`` is the product of ``then_*`` increments. The resolved matrix
    is ``parent_matrix @ local_matrix``.

    Attributes:
        origin: Pivot for rotation, scale and increments (local coordinates)
        position: Offset in the parent's coordinate space
        rotation: Rotation about X, Y, Z in radians
        scale_factor: Scale along X, Y, Z
        perspective: Optional perspective applied to this node
        local_delta: Accumulated ``then_*`` increments (row-major 16-tuple)
        parent_matrix: Accumulated ancestor matrix (row-major 16-tuple)
    """

    origin: tuple[float, float] = (0.0, 0.0)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale_factor: tuple[float, float, float] = (1.0, 1.0, 1.0)
    perspective: Perspective | None = None
    local_delta: Matrix16 = IDENTITY_16
    parent_matrix: Matrix16 = IDENTITY_16

    @classmethod
    def identity(cls) -> Transform:
        return cls()

    # ========================================================================
    # Derived matrices
    # ========================================================================

    @cached_property
    def local_matrix(self) -> Matrix16:
        """This node's own matrix, before ancestors (row-major 16-tuple)."""
        ox, oy = self.origin

        M = build_translation_matrix_4x4(*self.position)
        if self.perspective is not None:
            M = self.perspective.to_matrix() @ M

        M = (
            M
            @ build_translation_matrix_4x4(ox, oy)
            @ as_matrix_4x4(self.local_delta)
            @ build_euler_rotation_matrix_4x4(*self.rotation)
            @ build_scale_matrix_4x4(*self.scale_factor)
            @ build_translation_matrix_4x4(-ox, -oy)
        )
        return to_flat(M)

    @cached_property
    def matrix(self) -> Matrix16:
        """Resolved matrix including all composed ancestors (row-major 16-tuple)."""
        return to_flat(as_matrix_4x4(self.parent_matrix) @ as_matrix_4x4(self.local_matrix))

    def to_array(self) -> np.ndarray:
        """Resolved matrix as a fresh 4x4 array."""
        return as_matrix_4x4(self.matrix)

    def rows_world(self) -> np.ndarray:
        return self.to_array()

    def rows_local(self) -> np.ndarray:
        return as_matrix_4x4(self.local_matrix)

    def inverse(self) -> np.ndarray | None:
        """Inverse of the resolved matrix, or None if it is singular."""
        return invert_matrix_4x4(self.to_array())

    @property
    def rotation_deg(self) -> tuple[float, float, float]:
        return tuple(math.degrees(r) for r in self.rotation)

    def is_identity(self, tolerance: float | None = None) -> bool:
        """Check whether the resolved matrix is the identity.

        :param tolerance: Element-wise tolerance (defaults to ``TRANSFORM_CONFIG.identity_tolerance``)
        :returns: True if applying this transform would have no effect
        """
        if tolerance is None:
            tolerance = TRANSFORM_CONFIG.identity_tolerance
        return bool(np.allclose(self.to_array(), np.eye(4), rtol=0.0, atol=tolerance))

    # ========================================================================
    # Layout
    # ========================================================================

    @validate_finite("x", "y")
    def with_origin(self, x: float, y: float) -> Transform:
        """Set the pivot about which rotation and scale are applied.

        :param x: Pivot x in local coordinates
        :param y: Pivot y in local coordinates
        :returns: Updated transform
        """
        return replace(self, origin=(float(x), float(y)))

    @validate_finite("x", "y")
    def with_position_relative_to_parent(self, x: float, y: float) -> Transform:
        """Set the layout offset inside the parent (z is reset to 0)."""
        return replace(self, position=(float(x), float(y), 0.0))

    @validate_positive("distance")
    @validate_finite("origin_x", "origin_y")
    def with_parent_container_perspective(
        self, distance: float, origin_x: float, origin_y: float
    ) -> Transform:
        """Apply the parent container's perspective to this node.

        In CSS this is declared on the parent element; here it is attached to
        the child, and takes effect after the child's position is applied.

        :param distance: Perspective distance (> 0)
        :param origin_x: Vanishing point x in the parent's coordinates
        :param origin_y: Vanishing point y in the parent's coordinates
        :returns: Updated transform
        :raises ValueError: If distance is not positive
        """
        perspective = Perspective(float(distance), (float(origin_x), float(origin_y)))
        return replace(self, perspective=perspective)

    def without_perspective(self) -> Transform:
        return replace(self, perspective=None)

    # ========================================================================
    # Translations
    # ========================================================================

    @validate_finite("x", "y")
    def translate(self, x: float, y: float) -> Transform:
        """Overwrite the position with (x, y, 0)."""
        return replace(self, position=(float(x), float(y), 0.0))

    @validate_finite("x", "y", "z")
    def translate_3d(self, x: float, y: float, z: float) -> Transform:
        """Overwrite the position with (x, y, z)."""
        return replace(self, position=(float(x), float(y), float(z)))

    @validate_finite("x", "y")
    def then_translate(self, x: float, y: float) -> Transform:
        """Append a 2D translation increment."""
        return self._then(build_translation_matrix_4x4(x, y, 0.0))

    @validate_finite("x", "y", "z")
    def then_translate_3d(self, x: float, y: float, z: float) -> Transform:
        """Append a 3D translation increment."""
        return self._then(build_translation_matrix_4x4(x, y, z))

    def then_translate_2d(self, x: float, y: float) -> Transform:
        return self.then_translate(x, y)

    @validate_finite("x")
    def then_translate_x(self, x: float) -> Transform:
        return self._then(build_translation_matrix_4x4(x, 0.0, 0.0))

    @validate_finite("y")
    def then_translate_y(self, y: float) -> Transform:
        return self._then(build_translation_matrix_4x4(0.0, y, 0.0))

    @validate_finite("z")
    def then_translate_z(self, z: float) -> Transform:
        return self._then(build_translation_matrix_4x4(0.0, 0.0, z))

    # ========================================================================
    # Rotations
    # ========================================================================

    @validate_finite("radians")
    def rotate_x_rad(self, radians: float) -> Transform:
        """Overwrite the X rotation (radians)."""
        _, ry, rz = self.rotation
        return replace(self, rotation=(float(radians), ry, rz))

    @validate_finite("radians")
    def rotate_y_rad(self, radians: float) -> Transform:
        """Overwrite the Y rotation (radians)."""
        rx, _, rz = self.rotation
        return replace(self, rotation=(rx, float(radians), rz))

    @validate_finite("radians")
    def rotate_z_rad(self, radians: float) -> Transform:
        """Overwrite the Z rotation (radians)."""
        rx, ry, _ = self.rotation
        return replace(self, rotation=(rx, ry, float(radians)))

    @validate_finite("degrees")
    def rotate_x_deg(self, degrees: float) -> Transform:
        """Overwrite the X rotation (degrees)."""
        return self.rotate_x_rad(math.radians(degrees))

    @validate_finite("degrees")
    def rotate_y_deg(self, degrees: float) -> Transform:
        """Overwrite the Y rotation (degrees)."""
        return self.rotate_y_rad(math.radians(degrees))

    @validate_finite("degrees")
    def rotate_z_deg(self, degrees: float) -> Transform:
        """Overwrite the Z rotation (degrees)."""
        return self.rotate_z_rad(math.radians(degrees))

    @validate_finite("radians")
    def then_rotate_x_rad(self, radians: float) -> Transform:
        return self._then(build_rotation_x_matrix_4x4(radians))

    @validate_finite("radians")
    def then_rotate_y_rad(self, radians: float) -> Transform:
        return self._then(build_rotation_y_matrix_4x4(radians))

    @validate_finite("radians")
    def then_rotate_z_rad(self, radians: float) -> Transform:
        return self._then(build_rotation_z_matrix_4x4(radians))

    @validate_finite("degrees")
    def then_rotate_x_deg(self, degrees: float) -> Transform:
        """Append a rotation increment about X (degrees)."""
        return self.then_rotate_x_rad(math.radians(degrees))

    @validate_finite("degrees")
    def then_rotate_y_deg(self, degrees: float) -> Transform:
        """Append a rotation increment about Y (degrees)."""
        return self.then_rotate_y_rad(math.radians(degrees))

    @validate_finite("degrees")
    def then_rotate_z_deg(self, degrees: float) -> Transform:
        """Append a rotation increment about Z (degrees)."""
        return self.then_rotate_z_rad(math.radians(degrees))

    @validate_finite("axis_x", "axis_y", "axis_z", "degrees")
    def then_rotate(
        self, axis_x: float, axis_y: float, axis_z: float, degrees: float
    ) -> Transform:
        """Append a rotation increment about an arbitrary axis (CSS ``rotate3d``).

        :param axis_x: Axis x component
        :param axis_y: Axis y component
        :param axis_z: Axis z component
        :param degrees: Rotation angle in degrees
        :returns: Updated transform
        :raises ValueError: If the axis has zero length
        """
        R = build_axis_angle_matrix_4x4((axis_x, axis_y, axis_z), math.radians(degrees))
        return self._then(R)

    # ========================================================================
    # Scaling
    # ========================================================================

    @validate_finite("sx", "sy")
    def scale(self, sx: float, sy: float) -> Transform:
        """Overwrite the scale with (sx, sy, 1)."""
        return replace(self, scale_factor=(float(sx), float(sy), 1.0))

    @validate_finite("sx", "sy", "sz")
    def scale_3d(self, sx: float, sy: float, sz: float) -> Transform:
        """Overwrite the scale with (sx, sy, sz)."""
        return replace(self, scale_factor=(float(sx), float(sy), float(sz)))

    @validate_finite("sx", "sy")
    def then_scale(self, sx: float, sy: float) -> Transform:
        return self._then(build_scale_matrix_4x4(sx, sy, 1.0))

    @validate_finite("sx", "sy", "sz")
    def then_scale_3d(self, sx: float, sy: float, sz: float) -> Transform:
        return self._then(build_scale_matrix_4x4(sx, sy, sz))

    def _then(self, increment: np.ndarray) -> Transform:
        delta = increment @ as_matrix_4x4(self.local_delta)
        return replace(self, local_delta=to_flat(delta))

    # ========================================================================
    # Composition
    # ========================================================================

    def compose(self, parent: Transform) -> Transform:
        """Compose this node onto a parent, keeping its local parameters.

        The parent's resolved matrix is folded into ``parent_matrix``, so the
        result's matrix is ``parent.matrix @ self.matrix``. Builder calls on
        the result still edit the local parameters and re-resolve under the
        same ancestors.

        :param parent: Parent transform (compose the parent first; use
            ``Transform()`` for the root)
        :returns: Composed transform
        """
        if not isinstance(parent, Transform):
            raise TypeError(f"Expected Transform, got {type(parent).__name__}")

        ancestors = as_matrix_4x4(parent.matrix) @ as_matrix_4x4(self.parent_matrix)
        return replace(self, parent_matrix=to_flat(ancestors))

    def compose_2(self, parent: Transform) -> Transform:
        """Compose onto a parent and bake the result.

        The returned transform has identity local parameters and carries only
        the resolved matrix, which equals ``self.compose(parent).matrix``.

        :param parent: Parent transform
        :returns: Baked transform
        """
        resolved = self.compose(parent).matrix
        return Transform(parent_matrix=resolved)

    # ========================================================================
    # Point mapping
    # ========================================================================

    @validate_finite("x", "y")
    def transform_local_point2d_to_world(self, x: float, y: float) -> tuple[float, float] | None:
        """Map a local point on the z=0 plane to world coordinates.

        :param x: Local x
        :param y: Local y
        :returns: World (x, y), or None if the point lands at infinity / behind the eye
        """
        hom = transform_point_homogeneous(self.to_array(), x, y, 0.0)
        point = perspective_divide(hom)
        if point is None:
            logger.debug("[Transform] Degenerate projection of (%g, %g): w=%g", x, y, hom[3])
            return None
        return point[0], point[1]

    @validate_finite("x", "y", "z")
    def transform_world_point_to_local(
        self, x: float, y: float, z: float
    ) -> tuple[float, float] | None:
        """Map a world point with known depth back to local coordinates.

        For hit testing against the z=0 plane without knowing the depth,
        use :meth:`project_screen_point_to_local_2d` instead.

        :returns: Local (x, y), or None if the matrix is singular or w degenerates
        """
        inv = self.inverse()
        if inv is None:
            logger.debug("[Transform] Cannot invert matrix for world->local mapping")
            return None
        point = perspective_divide(transform_point_homogeneous(inv, x, y, z))
        if point is None:
            return None
        return point[0], point[1]

    def project_screen_point_to_local_2d(
        self, screen_pos: tuple[float, float]
    ) -> tuple[float, float] | None:
        """Hit testing: find the local point that projects onto ``screen_pos``.

        Casts a ray through the screen point parallel to the screen's z axis
        and intersects it with the local z=0 plane, accounting for perspective.

        :param screen_pos: Screen/world coordinates (e.g. mouse position)
        :returns: Local (x, y), or None if the matrix is singular or the ray misses the plane

        Example:
            >>> hit = transform.project_screen_point_to_local_2d((mouse_x, mouse_y))
            >>> inside = hit is not None and 0 <= hit[0] <= width and 0 <= hit[1] <= height
        """
        screen_x, screen_y = screen_pos
        screen_x = ensure_finite("project_screen_point_to_local_2d", "screen_x", screen_x)
        screen_y = ensure_finite("project_screen_point_to_local_2d", "screen_y", screen_y)

        inv = self.inverse()
        if inv is None:
            logger.debug("[Transform] Singular matrix, no hit for (%g, %g)", screen_x, screen_y)
            return None
        return intersect_local_plane(inv, screen_x, screen_y)

    # ========================================================================
    # Batch point mapping
    # ========================================================================

    def transform_local_points2d_to_world(self, points) -> tuple[np.ndarray, np.ndarray]:
        """Batch version of :meth:`transform_local_point2d_to_world`.

        :param points: Local points [N, 2]
        :returns: Tuple of (world points [N, 2], valid mask [N]); invalid rows are NaN
        """
        pts = _as_points_2d(points)
        out = np.empty_like(pts)
        valid = np.empty(pts.shape[0], dtype=np.bool_)
        map_points_2d_numba(self.to_array(), pts, TRANSFORM_CONFIG.w_epsilon, out, valid)
        return out, valid

    def project_screen_points_to_local_2d(self, points) -> tuple[np.ndarray, np.ndarray]:
        """Batch version of :meth:`project_screen_point_to_local_2d`.

        :param points: Screen points [N, 2]
        :returns: Tuple of (local points [N, 2], valid mask [N]); misses are NaN
        """
        pts = _as_points_2d(points)
        out = np.full_like(pts, np.nan)
        valid = np.zeros(pts.shape[0], dtype=np.bool_)

        inv = self.inverse()
        if inv is None:
            logger.debug("[Transform] Singular matrix, no hits for %d points", pts.shape[0])
            return out, valid

        project_points_to_plane_numba(
            inv,
            pts,
            TRANSFORM_CONFIG.w_epsilon,
            TRANSFORM_CONFIG.parallel_epsilon,
            out,
            valid,
        )
        return out, valid


def _as_points_2d(points) -> np.ndarray:
    pts = np.ascontiguousarray(points, dtype=np.float64)
    if pts.ndim == 1 and pts.shape[0] == 2:
        pts = pts.reshape(1, 2)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"Points must be shape (N, 2), got {pts.shape}")
    return pts
