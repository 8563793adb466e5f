"""Tests for validation decorators.

Tests cover:
- validate_finite decorator
- validate_positive decorator
- ensure_finite helper
"""

import math

import numpy as np
import pytest

from transformator.validators import ensure_finite, validate_finite, validate_positive


class TestValidateFinite:
    """Test validate_finite decorator."""

    def test_valid_values(self):
        """Test decorator passes finite values through unchanged."""
        @validate_finite("x", "y")
        def move(self, x: float, y: float) -> tuple:
            return x, y

        assert move(None, 1.5, -2) == (1.5, -2)

    def test_numpy_scalars_accepted(self):
        """Test decorator accepts NumPy floating scalars."""
        @validate_finite("x")
        def func(self, x: float) -> float:
            return x

        assert func(None, np.float64(0.25)) == 0.25

    @pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
    def test_non_finite_raises(self, bad):
        """Test decorator raises for NaN and infinities."""
        @validate_finite("x")
        def func(self, x: float) -> float:
            return x

        with pytest.raises(ValueError, match="x=.* must be finite"):
            func(None, bad)

    def test_non_numeric_raises(self):
        """Test decorator raises for non-numeric values."""
        @validate_finite("x")
        def func(self, x: float) -> float:
            return x

        with pytest.raises(TypeError, match="must be a number"):
            func(None, "not a number")

    def test_bool_rejected(self):
        """Test decorator does not treat booleans as coordinates."""
        @validate_finite("x")
        def func(self, x: float) -> float:
            return x

        with pytest.raises(TypeError, match="must be a number"):
            func(None, True)

    def test_kwarg_validation(self):
        """Test decorator validates keyword arguments."""
        @validate_finite("x", "y")
        def func(self, x: float, y: float = 0.0) -> float:
            return x + y

        assert func(None, x=1.0, y=2.0) == 3.0
        with pytest.raises(ValueError, match="y=nan must be finite"):
            func(None, 1.0, y=math.nan)

    def test_default_not_checked(self):
        """Test omitted arguments with defaults are not validated."""
        @validate_finite("y")
        def func(self, x: float, y: float = math.nan) -> float:
            return x

        assert func(None, 1.0) == 1.0

    def test_unknown_parameter_raises(self):
        """Test decorating with a parameter name the function lacks."""
        with pytest.raises(TypeError, match="no parameter 'z'"):

            @validate_finite("z")
            def func(self, x: float) -> float:
                return x

    def test_error_names_function(self):
        """Test error message includes the decorated function name."""
        @validate_finite("x")
        def with_origin(self, x: float) -> float:
            return x

        with pytest.raises(ValueError, match="with_origin"):
            with_origin(None, math.nan)


class TestValidatePositive:
    """Test validate_positive decorator."""

    def test_valid_positive_value(self):
        """Test decorator passes positive values."""
        @validate_positive("distance")
        def set_distance(self, distance: float) -> float:
            return distance

        assert set_distance(None, 500.0) == 500.0

    def test_zero_raises(self):
        """Test decorator raises for zero values."""
        @validate_positive("distance")
        def func(self, distance: float) -> float:
            return distance

        with pytest.raises(ValueError, match="must be positive"):
            func(None, 0.0)

    def test_negative_raises(self):
        """Test decorator raises for negative values."""
        @validate_positive("distance")
        def func(self, distance: float) -> float:
            return distance

        with pytest.raises(ValueError, match="must be positive"):
            func(None, -1.0)

    def test_infinite_raises(self):
        """Test decorator rejects infinity before the sign check."""
        @validate_positive("distance")
        def func(self, distance: float) -> float:
            return distance

        with pytest.raises(ValueError, match="must be finite"):
            func(None, math.inf)

    def test_suggestion_for_distance(self):
        """Test error includes suggestion for perspective distances."""
        @validate_positive("distance")
        def func(self, distance: float) -> float:
            return distance

        with pytest.raises(ValueError, match="drop the perspective"):
            func(None, -5.0)

    def test_combined_with_validate_finite(self):
        """Test stacked decorators each check their own parameters."""
        @validate_positive("distance")
        @validate_finite("origin_x")
        def func(self, distance: float, origin_x: float) -> float:
            return distance + origin_x

        assert func(None, 1.0, 2.0) == 3.0
        with pytest.raises(ValueError, match="must be positive"):
            func(None, 0.0, 2.0)
        with pytest.raises(ValueError, match="origin_x=nan must be finite"):
            func(None, 1.0, math.nan)


class TestEnsureFinite:
    """Test ensure_finite helper."""

    def test_returns_float(self):
        value = ensure_finite("func", "x", 3)
        assert value == 3.0
        assert isinstance(value, float)

    def test_raises(self):
        with pytest.raises(ValueError, match="func: x=inf must be finite"):
            ensure_finite("func", "x", math.inf)
