"""
transformator - CSS-style hierarchical 3D transforms

Compose per-node transforms (origin, position, rotation, scale, perspective)
the way browsers resolve nested CSS transforms, and invert the result for
hit testing.

Features:
- Fluent, immutable builder API (``with_*``, ``translate``, ``rotate_*``, ``scale`` and ``then_*``)
- Parent/child composition into a single 4x4 matrix
- Perspective with a configurable vanishing point
- Local -> world point mapping with perspective division
- Screen -> local hit testing by ray casting onto the local z=0 plane
- Numba batch kernels for mapping many points at once
- Dict/JSON persistence

Example:
    >>> from transformator import Transform
    >>>
    >>> root = Transform()
    >>> card = (Transform()
    ...     .with_position_relative_to_parent(350, 250)
    ...     .with_parent_container_perspective(500, 400, 300)
    ...     .with_origin(50, 50)
    ...     .then_rotate_x_deg(45)
    ...     .compose(root))
    >>> label = Transform().with_position_relative_to_parent(10, 10).compose(card)
    >>>
    >>> label.transform_local_point2d_to_world(0, 0)
    >>> label.project_screen_point_to_local_2d((mouse_x, mouse_y))
"""

__version__ = "0.2.0"

from transformator.config import TRANSFORM_CONFIG, TransformConfig
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
from transformator.serialization import (
    load_transform_json,
    save_transform_json,
    transform_from_dict,
    transform_to_dict,
)
from transformator.transform import Perspective, Transform
from transformator.validators import ensure_finite, validate_finite, validate_positive

__all__ = [
    # Core
    "Transform",
    "Perspective",
    # Configuration
    "TransformConfig",
    "TRANSFORM_CONFIG",
    # Matrix helpers
    "IDENTITY_16",
    "as_matrix_4x4",
    "to_flat",
    "build_translation_matrix_4x4",
    "build_scale_matrix_4x4",
    "build_rotation_x_matrix_4x4",
    "build_rotation_y_matrix_4x4",
    "build_rotation_z_matrix_4x4",
    "build_euler_rotation_matrix_4x4",
    "build_axis_angle_matrix_4x4",
    "build_perspective_matrix_4x4",
    "invert_matrix_4x4",
    "transform_point_homogeneous",
    "perspective_divide",
    "intersect_local_plane",
    # Persistence
    "transform_to_dict",
    "transform_from_dict",
    "save_transform_json",
    "load_transform_json",
    # Validation
    "validate_finite",
    "validate_positive",
    "ensure_finite",
]
