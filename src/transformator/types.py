"""Type aliases for transformator.

Provides unified type hints for point, vector and matrix parameters across all modules.
"""

from collections.abc import Sequence

import numpy as np

# 2D point or vector (origin, screen position, etc.)
Vector2 = tuple[float, float] | Sequence[float] | np.ndarray

# 3D vector (position, rotation angles, scale factors)
Vector3 = tuple[float, float, float] | Sequence[float] | np.ndarray

# Flat row-major 4x4 matrix (16 entries)
Matrix16 = tuple[float, ...]

# Anything np.asarray can turn into a 4x4 matrix
MatrixLike = Sequence[float] | Sequence[Sequence[float]] | np.ndarray
