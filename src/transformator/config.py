"""Numerical tolerance configuration.

This module defines the tolerances used by matrix inversion, perspective
division and hit testing, so that scalar and batch (Numba) code paths
agree on what counts as degenerate.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TransformConfig:
    """Tolerances for transform algebra.

    Attributes:
        singular_epsilon: Matrices with ``|det|`` below this are treated as non-invertible
        w_epsilon: Homogeneous ``w`` values with magnitude below this are degenerate
        parallel_epsilon: Ray direction ``z`` below this means the ray misses the z=0 plane
        identity_tolerance: Element-wise tolerance for ``Transform.is_identity``
        serialization_tolerance: Allowed drift between a stored matrix and its recomputation
    """

    singular_epsilon: float = 1e-10
    w_epsilon: float = 1e-6
    parallel_epsilon: float = 1e-6
    identity_tolerance: float = 1e-9
    serialization_tolerance: float = 1e-6

    def __post_init__(self) -> None:
        for name in (
            "singular_epsilon",
            "w_epsilon",
            "parallel_epsilon",
            "identity_tolerance",
            "serialization_tolerance",
        ):
            value = getattr(self, name)
            if not value > 0.0:
                raise ValueError(f"{name} must be positive, got {value}")

    def get_all_tolerances(self) -> dict[str, float]:
        """Get all tolerances as a dictionary.

        :return: Dictionary mapping tolerance names to values
        """
        return {
            "singular_epsilon": self.singular_epsilon,
            "w_epsilon": self.w_epsilon,
            "parallel_epsilon": self.parallel_epsilon,
            "identity_tolerance": self.identity_tolerance,
            "serialization_tolerance": self.serialization_tolerance,
        }


# Singleton instance for use throughout the codebase
TRANSFORM_CONFIG = TransformConfig()
