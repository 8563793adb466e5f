"""Argument validation decorators for builder methods.

NaN or infinite values fed into a transform would silently poison every
matrix composed from it, so builders reject them at the boundary.

Example:
    >>> class Node:
    ...     @validate_finite("x", "y")
    ...     def with_origin(self, x: float, y: float): ...
"""

from __future__ import annotations

import functools
import inspect
import math
from collections.abc import Callable
from numbers import Real
from typing import Any, TypeVar

F = TypeVar("F", bound=Callable[..., Any])

_SUGGESTIONS = {
    "distance": "Use a positive perspective distance, or drop the perspective entirely",
}


def _suggestion(param_name: str) -> str:
    for key, hint in _SUGGESTIONS.items():
        if key in param_name:
            return f" {hint}."
    return ""


def ensure_finite(func_name: str, param_name: str, value: Any) -> float:
    """Return value as float, raising TypeError/ValueError if it is not a finite real number."""
    # bool is a Real subclass but never a meaningful coordinate
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(
            f"{func_name}: {param_name} must be a number, got {type(value).__name__}"
        )
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{func_name}: {param_name}={value} must be finite")
    return value


def _bound_values(func: Callable, names: tuple[str, ...]) -> Callable:
    """Build an extractor returning ``(name, value)`` for each named argument present."""
    signature = inspect.signature(func)
    for name in names:
        if name not in signature.parameters:
            raise TypeError(f"{func.__qualname__} has no parameter '{name}'")

    def extract(args: tuple, kwargs: dict) -> list[tuple[str, Any]]:
        bound = signature.bind_partial(*args, **kwargs)
        return [(name, bound.arguments[name]) for name in names if name in bound.arguments]

    return extract


def validate_finite(*param_names: str) -> Callable[[F], F]:
    """Require the named arguments to be finite real numbers.

    :param param_names: Names of the parameters to check
    :returns: Decorator
    :raises TypeError: (at call time) if a value is not a real number
    :raises ValueError: (at call time) if a value is NaN or infinite
    """

    def decorator(func: F) -> F:
        extract = _bound_values(func, param_names)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for name, value in extract(args, kwargs):
                ensure_finite(func.__name__, name, value)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def validate_positive(param_name: str) -> Callable[[F], F]:
    """Require the named argument to be a finite number strictly greater than zero.

    :param param_name: Name of the parameter to check
    :returns: Decorator
    """

    def decorator(func: F) -> F:
        extract = _bound_values(func, (param_name,))

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for name, value in extract(args, kwargs):
                value = ensure_finite(func.__name__, name, value)
                if value <= 0.0:
                    raise ValueError(
                        f"{func.__name__}: {name}={value} must be positive."
                        f"{_suggestion(name)}"
                    )
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
