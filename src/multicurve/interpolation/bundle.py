"""
Validated (x, y) data handed to an interpolator.

A bundle is built once per curve and reused for every query. Keys are
co-sorted with their values on construction, checked for duplicates and
non-finite entries, and frozen.
"""

from typing import Any, Dict, Sequence

import numpy as np

from ..errors import InputValidationError
from ..splines import PiecewisePolynomialResult, sort_nodes, validate_nodes


class Interpolator1DDataBundle:
    """
    Sorted interpolation nodes.

    Attributes:
        keys: Strictly increasing abscissae
        values: Values at the keys
    """

    def __init__(self, keys: Sequence[float], values: Sequence[float]):
        keys = np.asarray(keys, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if values.ndim != 1 or keys.shape != values.shape:
            raise InputValidationError(
                f"Keys and values must have the same length, got {keys.shape} and {values.shape}"
            )
        validate_nodes(keys, values)
        keys, values = sort_nodes(keys, values)
        keys.setflags(write=False)
        values.setflags(write=False)
        self.keys = keys
        self.values = values
        # derived data cached per bundle (log values)
        self._cache: Dict[str, Any] = {}

    @property
    def size(self) -> int:
        return len(self.keys)

    @property
    def first_key(self) -> float:
        return float(self.keys[0])

    @property
    def last_key(self) -> float:
        return float(self.keys[-1])

    @property
    def first_value(self) -> float:
        return float(self.values[0])

    @property
    def last_value(self) -> float:
        return float(self.values[-1])

    @property
    def log_values(self) -> np.ndarray:
        """Natural log of the values; only defined when every value is positive."""
        if "log_values" not in self._cache:
            if np.any(self.values <= 0):
                raise InputValidationError("Log interpolation needs strictly positive values")
            log_values = np.log(self.values)
            log_values.setflags(write=False)
            self._cache["log_values"] = log_values
        return self._cache["log_values"]

    def lower_bound_index(self, x: float) -> int:
        """
        Index of the largest key <= x.

        Returns 0 below the first key and size - 1 at or above the last key.
        """
        idx = int(np.searchsorted(self.keys, x, side='right')) - 1
        return max(0, min(idx, self.size - 1))

    def interval_index(self, x: float) -> int:
        """Index i of the interval [keys[i], keys[i+1]] used at x."""
        return min(self.lower_bound_index(x), self.size - 2)

    def with_values(self, values: Sequence[float]) -> "Interpolator1DDataBundle":
        return Interpolator1DDataBundle(self.keys, values)

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size}, keys=[{self.first_key}, ..., {self.last_key}])"


class SplineDataBundle(Interpolator1DDataBundle):
    """Bundle that also caches the piecewise polynomial solved from it."""

    def __init__(
        self,
        keys: Sequence[float],
        values: Sequence[float],
        polynomial: PiecewisePolynomialResult,
    ):
        super().__init__(keys, values)
        self.polynomial = polynomial


__all__ = [
    "Interpolator1DDataBundle",
    "SplineDataBundle",
]
