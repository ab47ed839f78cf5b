"""
Piecewise polynomial results and their evaluation.

A piecewise polynomial is stored as knots x_0 < ... < x_n and, for every
interval i, the coefficients of the local polynomial in (x - x_i), highest
degree first:

    p_i(x) = c[0] (x - x_i)^(k-1) + ... + c[k-2] (x - x_i) + c[k-1]

For vector-valued data the coefficient rows are interleaved: row
``i * dimensions + d`` holds interval i of output dimension d.

Queries outside [x_0, x_n] use the first or last polynomial piece.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..errors import InputTooLargeError, InputValidationError


@dataclass(frozen=True, eq=False)
class PiecewisePolynomialResult:
    """
    Solved piecewise polynomial.

    Attributes:
        knots: Interval boundaries, length n_intervals + 1
        coefficients: Matrix of shape (dimensions * n_intervals, order)
        order: Number of coefficients per piece (4 for a cubic)
        dimensions: Number of output dimensions
    """
    knots: np.ndarray
    coefficients: np.ndarray
    order: int
    dimensions: int = 1

    def __post_init__(self):
        knots = np.array(self.knots, dtype=np.float64)
        coefficients = np.atleast_2d(np.array(self.coefficients, dtype=np.float64))
        if knots.ndim != 1 or len(knots) < 2:
            raise InputValidationError("Need at least 2 knots")
        if self.dimensions < 1:
            raise InputValidationError("dimensions must be positive")
        if coefficients.shape != (self.dimensions * (len(knots) - 1), self.order):
            raise InputValidationError(
                f"Coefficient matrix shape {coefficients.shape} does not match "
                f"{self.dimensions} x {len(knots) - 1} intervals of order {self.order}"
            )
        if not np.all(np.isfinite(coefficients)):
            raise InputTooLargeError("Spline coefficients are not finite; input too large")
        knots.setflags(write=False)
        coefficients.setflags(write=False)
        object.__setattr__(self, "knots", knots)
        object.__setattr__(self, "coefficients", coefficients)

    @property
    def n_intervals(self) -> int:
        return len(self.knots) - 1

    def interval_index(self, x: float) -> int:
        """Index of the piece used at x (end pieces extend outside the knots)."""
        idx = int(np.searchsorted(self.knots, x, side='right')) - 1
        return max(0, min(idx, self.n_intervals - 1))

    def piece(self, interval: int, dimension: int = 0) -> np.ndarray:
        """Coefficients of one piece, highest degree first."""
        return self.coefficients[interval * self.dimensions + dimension]


@dataclass(frozen=True, eq=False)
class PiecewisePolynomialResultsWithSensitivity(PiecewisePolynomialResult):
    """
    Piecewise polynomial with coefficient sensitivities.

    ``coefficient_sensitivity[i][j, k]`` is the derivative of coefficient j of
    interval i with respect to input value y_k. Only one output dimension is
    supported.
    """
    coefficient_sensitivity: List[np.ndarray] = field(default_factory=list)

    def __post_init__(self):
        if self.dimensions != 1:
            raise NotImplementedError(
                "Coefficient sensitivities are only available for one-dimensional data"
            )
        super().__post_init__()
        sensitivity = [np.array(s, dtype=np.float64) for s in self.coefficient_sensitivity]
        if len(sensitivity) != self.n_intervals:
            raise InputValidationError("Need one sensitivity matrix per interval")
        for s in sensitivity:
            if s.ndim != 2 or s.shape[0] != self.order:
                raise InputValidationError("Sensitivity matrices must have one row per coefficient")
            s.setflags(write=False)
        object.__setattr__(self, "coefficient_sensitivity", sensitivity)


def _powers(dx: float, order: int) -> np.ndarray:
    """[dx^(k-1), ..., dx, 1]"""
    return dx ** np.arange(order - 1, -1, -1, dtype=np.float64)


def _derivative_powers(dx: float, order: int) -> np.ndarray:
    """Derivative of _powers with respect to dx."""
    degrees = np.arange(order - 1, -1, -1, dtype=np.float64)
    out = np.zeros(order)
    for j, deg in enumerate(degrees):
        if deg > 0:
            out[j] = deg * dx ** (deg - 1)
    return out


def evaluate(pp: PiecewisePolynomialResult, x: float) -> np.ndarray:
    """Value of every output dimension at x."""
    idx = pp.interval_index(x)
    dx = x - pp.knots[idx]
    powers = _powers(dx, pp.order)
    return np.array([pp.piece(idx, d) @ powers for d in range(pp.dimensions)])


def differentiate(pp: PiecewisePolynomialResult, x: float) -> np.ndarray:
    """First derivative of every output dimension at x."""
    idx = pp.interval_index(x)
    dx = x - pp.knots[idx]
    powers = _derivative_powers(dx, pp.order)
    return np.array([pp.piece(idx, d) @ powers for d in range(pp.dimensions)])


def node_sensitivity(pp: PiecewisePolynomialResultsWithSensitivity, x: float) -> np.ndarray:
    """Derivative of the value at x with respect to each input y value."""
    idx = pp.interval_index(x)
    dx = x - pp.knots[idx]
    return _powers(dx, pp.order) @ pp.coefficient_sensitivity[idx]


def differentiate_node_sensitivity(
    pp: PiecewisePolynomialResultsWithSensitivity, x: float
) -> np.ndarray:
    """Derivative of the first derivative at x with respect to each input y value."""
    idx = pp.interval_index(x)
    dx = x - pp.knots[idx]
    return _derivative_powers(dx, pp.order) @ pp.coefficient_sensitivity[idx]


def validate_nodes(x: Sequence[float], y: np.ndarray) -> np.ndarray:
    """
    Check node data before any solve.

    Rejects fewer than two points, NaN or infinite values and non-distinct
    abscissae. Returns x as a float array.
    """
    x = np.asarray(x, dtype=np.float64)
    if x.ndim != 1:
        raise InputValidationError("x values must be one-dimensional")
    if len(x) < 2:
        raise InputValidationError("Need at least 2 data points")
    if not np.all(np.isfinite(x)):
        raise InputValidationError("x values contain NaN or infinite values")
    if not np.all(np.isfinite(y)):
        raise InputValidationError("y values contain NaN or infinite values")
    if len(np.unique(x)) != len(x):
        raise InputValidationError("x values must be distinct")
    return x


def sort_nodes(x: Sequence[float], y: Sequence[float]):
    """
    Co-sort raw (x, y) data by x.

    The sort is stable, so equal keys keep their input order and are then
    rejected by validation rather than silently reordered. For 2-D y the
    columns are permuted.
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    order = np.argsort(x, kind="stable")
    if y.ndim == 1:
        return x[order], y[order]
    return x[order], y[:, order]


__all__ = [
    "PiecewisePolynomialResult",
    "PiecewisePolynomialResultsWithSensitivity",
    "evaluate",
    "differentiate",
    "node_sensitivity",
    "differentiate_node_sensitivity",
    "validate_nodes",
    "sort_nodes",
]
