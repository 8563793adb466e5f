"""Dict and JSON persistence for transforms.

The full field set is written, including the resolved matrix for the
benefit of external consumers. On load the matrix is always recomputed
from the fields; a stored matrix that disagrees is reported and ignored.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np

from transformator.config import TRANSFORM_CONFIG
from transformator.matrix import IDENTITY_16, as_matrix_4x4, to_flat
from transformator.transform import Perspective, Transform

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def _vector(d: dict, key: str, length: int, default: tuple) -> tuple:
    if key not in d or d[key] is None:
        return default
    values = tuple(float(v) for v in d[key])
    if len(values) != length:
        raise ValueError(f"'{key}' must have {length} components, got {len(values)}")
    return values


def _matrix(d: dict, key: str) -> tuple[float, ...]:
    if key not in d or d[key] is None:
        return IDENTITY_16
    return to_flat(as_matrix_4x4(d[key]))


# ============================================================================
# Dict conversion
# ============================================================================


def transform_to_dict(transform: Transform) -> dict:
    """Convert Transform to dictionary.

    :param transform: Transform instance
    :returns: Dictionary representation (JSON-compatible)
    """
    perspective = None
    if transform.perspective is not None:
        perspective = {
            "distance": transform.perspective.distance,
            "origin": list(transform.perspective.origin),
        }

    return {
        "version": FORMAT_VERSION,
        "origin": list(transform.origin),
        "position": list(transform.position),
        "rotation": list(transform.rotation),
        "scale": list(transform.scale_factor),
        "perspective": perspective,
        "local_delta": list(transform.local_delta),
        "parent_matrix": list(transform.parent_matrix),
        "matrix": list(transform.matrix),
    }


def transform_from_dict(d: dict) -> Transform:
    """Create Transform from dictionary.

    Missing keys fall back to identity defaults. ``rotation`` is in radians.
    The stored ``matrix`` (if any) is only used as a consistency check.

    Example:
        >>> d = {"position": [10, 0, 0], "rotation": [0, 0, 1.5707963]}
        >>> transform = transform_from_dict(d)

    :param d: Dictionary with transform fields
    :returns: Transform instance
    :raises ValueError: If a vector or matrix has the wrong number of components
    """
    version = d.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        logger.warning(
            "[serialization] Unknown transform format version %s, reading as %d",
            version,
            FORMAT_VERSION,
        )

    perspective = None
    p = d.get("perspective")
    if p is not None:
        perspective = Perspective(
            distance=float(p["distance"]),
            origin=_vector(p, "origin", 2, (0.0, 0.0)),
        )
        if not perspective.distance > 0.0:
            raise ValueError(f"Perspective distance must be positive, got {perspective.distance}")

    transform = Transform(
        origin=_vector(d, "origin", 2, (0.0, 0.0)),
        position=_vector(d, "position", 3, (0.0, 0.0, 0.0)),
        rotation=_vector(d, "rotation", 3, (0.0, 0.0, 0.0)),
        scale_factor=_vector(d, "scale", 3, (1.0, 1.0, 1.0)),
        perspective=perspective,
        local_delta=_matrix(d, "local_delta"),
        parent_matrix=_matrix(d, "parent_matrix"),
    )

    if not np.all(np.isfinite(transform.to_array())):
        raise ValueError("Transform fields produce a non-finite matrix")

    stored = d.get("matrix")
    if stored is not None:
        stored_matrix = as_matrix_4x4(stored)
        if not np.allclose(
            stored_matrix,
            transform.to_array(),
            rtol=0.0,
            atol=TRANSFORM_CONFIG.serialization_tolerance,
            equal_nan=False,
        ):
            logger.warning(
                "[serialization] Stored matrix disagrees with its fields; "
                "using the recomputed matrix"
            )

    return transform


# ============================================================================
# JSON files
# ============================================================================


def load_transform_json(path: str | Path) -> Transform:
    """Load Transform from JSON file.

    :param path: Path to JSON file
    :returns: Transform instance
    """
    with open(path) as f:
        d = json.load(f)
    return transform_from_dict(d)


def save_transform_json(transform: Transform, path: str | Path) -> None:
    """Save Transform to JSON file.

    :param transform: Transform instance
    :param path: Output path
    """
    with open(path, "w") as f:
        json.dump(transform_to_dict(transform), f, indent=2)
    logger.debug("[serialization] Saved transform to %s", path)
