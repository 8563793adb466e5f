"""
Numba-optimized kernels for batch point mapping.

Provides JIT-compiled kernels for mapping many points through a single
resolved matrix (rendering outlines, hit testing a cloud of pointer samples).
Each kernel mirrors its scalar counterpart in ``transformator.matrix``.
"""

from __future__ import annotations

import math

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

# fastmath is off: it lets LLVM assume no NaN/inf, which would drop the isfinite checks


@njit(parallel=True, cache=True, nogil=True)
def map_points_2d_numba(
    matrix: NDArray[np.float64],
    points: NDArray[np.float64],
    w_epsilon: float,
    out: NDArray[np.float64],
    valid: NDArray[np.bool_],
) -> None:
    """
    Map local points (x, y, 0, 1) to world space with perspective division.

    Args:
        matrix: Resolved 4x4 matrix (column-vector convention)
        points: Local points [N, 2]
        w_epsilon: Minimum usable |w|
        out: Output world points [N, 2] (modified in-place, NaN where invalid)
        valid: Output mask [N] (modified in-place)
    """
    n = points.shape[0]

    for i in prange(n):
        x = points[i, 0]
        y = points[i, 1]

        hx = matrix[0, 0] * x + matrix[0, 1] * y + matrix[0, 3]
        hy = matrix[1, 0] * x + matrix[1, 1] * y + matrix[1, 3]
        hw = matrix[3, 0] * x + matrix[3, 1] * y + matrix[3, 3]

        if not math.isfinite(hw) or abs(hw) < w_epsilon:
            out[i, 0] = np.nan
            out[i, 1] = np.nan
            valid[i] = False
        else:
            out[i, 0] = hx / hw
            out[i, 1] = hy / hw
            valid[i] = True


@njit(parallel=True, cache=True, nogil=True)
def project_points_to_plane_numba(
    inverse: NDArray[np.float64],
    points: NDArray[np.float64],
    w_epsilon: float,
    parallel_epsilon: float,
    out: NDArray[np.float64],
    valid: NDArray[np.bool_],
) -> None:
    """
    Ray-cast screen points onto the local z=0 plane.

    Args:
        inverse: Inverse of the resolved 4x4 matrix
        points: Screen points [N, 2]
        w_epsilon: Minimum usable |w|
        parallel_epsilon: Minimum |dir.z| for the ray to hit the plane
        out: Output local points [N, 2] (modified in-place, NaN where invalid)
        valid: Output mask [N] (modified in-place)
    """
    n = points.shape[0]

    for i in prange(n):
        sx = points[i, 0]
        sy = points[i, 1]

        # Ray origin: (sx, sy, 0, 1)
        ox = inverse[0, 0] * sx + inverse[0, 1] * sy + inverse[0, 3]
        oy = inverse[1, 0] * sx + inverse[1, 1] * sy + inverse[1, 3]
        oz = inverse[2, 0] * sx + inverse[2, 1] * sy + inverse[2, 3]
        ow = inverse[3, 0] * sx + inverse[3, 1] * sy + inverse[3, 3]

        # Ray end: (sx, sy, 1, 1) only adds column 2
        ex = ox + inverse[0, 2]
        ey = oy + inverse[1, 2]
        ez = oz + inverse[2, 2]
        ew = ow + inverse[3, 2]

        ok = math.isfinite(ow) and math.isfinite(ew)
        ok = ok and abs(ow) >= w_epsilon and abs(ew) >= w_epsilon

        lx = np.nan
        ly = np.nan
        if ok:
            ox /= ow
            oy /= ow
            oz /= ow
            ex /= ew
            ey /= ew
            ez /= ew

            dz = ez - oz
            if abs(dz) < parallel_epsilon:
                ok = False
            else:
                t = -oz / dz
                lx = ox + t * (ex - ox)
                ly = oy + t * (ey - oy)
                ok = math.isfinite(lx) and math.isfinite(ly)

        if ok:
            out[i, 0] = lx
            out[i, 1] = ly
            valid[i] = True
        else:
            out[i, 0] = np.nan
            out[i, 1] = np.nan
            valid[i] = False
