"""
One-dimensional interpolators for curve nodes.

Every interpolator works on an Interpolator1DDataBundle built by its own
``data_bundle`` method and provides:
- interpolate: value at x
- first_derivative: dy/dx at x
- node_sensitivities: d value(x) / d y_k for every node k
- first_derivative_node_sensitivities: d (dy/dx)(x) / d y_k

All node sensitivities are analytic. The slope-limited cubics (constrained,
monotone, PCHIP) are nonlinear in the values; their knot slopes are
differentiated piecewise, taking the branch of every limiter that is
active at the current values.

Queries outside the nodes extend the first or last piece; flat or other
extrapolation is added by wrapping in a CombinedInterpolatorExtrapolator.
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple

import numpy as np

from ..errors import InputValidationError
from ..splines import (
    PiecewisePolynomialResultsWithSensitivity,
    constrained_slopes_with_sensitivity,
    cubic_spline_with_sensitivity,
    differentiate,
    differentiate_node_sensitivity,
    evaluate,
    hermite_cubic_with_sensitivity,
    hyman_filter_with_sensitivity,
    natural_cubic_spline_with_sensitivity,
    natural_spline_slopes_with_sensitivity,
    node_sensitivity,
    pchip_slopes_with_sensitivity,
)
from .bundle import Interpolator1DDataBundle, SplineDataBundle


class Interpolator1D(ABC):
    """Abstract base class for node interpolation."""

    name: str = ""

    def data_bundle(self, x: Sequence[float], y: Sequence[float]) -> Interpolator1DDataBundle:
        """
        Validate and sort nodes into a bundle for this interpolator.

        Args:
            x: Node abscissae (any order, distinct)
            y: Node values

        Returns:
            Bundle to pass to every other method
        """
        return Interpolator1DDataBundle(x, y)

    @abstractmethod
    def interpolate(self, bundle: Interpolator1DDataBundle, x: float) -> float:
        pass

    @abstractmethod
    def first_derivative(self, bundle: Interpolator1DDataBundle, x: float) -> float:
        pass

    @abstractmethod
    def node_sensitivities(self, bundle: Interpolator1DDataBundle, x: float) -> np.ndarray:
        pass

    @abstractmethod
    def first_derivative_node_sensitivities(
        self, bundle: Interpolator1DDataBundle, x: float
    ) -> np.ndarray:
        """Sensitivity of the first derivative at x to each node value."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LinearInterpolator1D(Interpolator1D):
    """Linear interpolation between nodes."""

    name = "Linear"

    def _weight(self, bundle: Interpolator1DDataBundle, x: float):
        i = bundle.interval_index(x)
        h = bundle.keys[i + 1] - bundle.keys[i]
        return i, (x - bundle.keys[i]) / h, h

    def interpolate(self, bundle, x):
        i, w, _ = self._weight(bundle, x)
        return float((1 - w) * bundle.values[i] + w * bundle.values[i + 1])

    def first_derivative(self, bundle, x):
        i, _, h = self._weight(bundle, x)
        return float((bundle.values[i + 1] - bundle.values[i]) / h)

    def node_sensitivities(self, bundle, x):
        i, w, _ = self._weight(bundle, x)
        out = np.zeros(bundle.size)
        out[i] = 1 - w
        out[i + 1] = w
        return out

    def first_derivative_node_sensitivities(self, bundle, x):
        i, _, h = self._weight(bundle, x)
        out = np.zeros(bundle.size)
        out[i] = -1.0 / h
        out[i + 1] = 1.0 / h
        return out


class LogLinearInterpolator1D(Interpolator1D):
    """
    Linear interpolation of log(y).

    On discount factors this gives piecewise constant forward rates. All node
    values must be positive.
    """

    name = "Log Linear"

    def data_bundle(self, x, y):
        bundle = Interpolator1DDataBundle(x, y)
        # fail at construction rather than at the first query
        bundle.log_values
        return bundle

    def _parts(self, bundle: Interpolator1DDataBundle, x: float):
        i = bundle.interval_index(x)
        h = bundle.keys[i + 1] - bundle.keys[i]
        w = (x - bundle.keys[i]) / h
        logs = bundle.log_values
        value = np.exp((1 - w) * logs[i] + w * logs[i + 1])
        slope = (logs[i + 1] - logs[i]) / h
        return i, w, h, value, slope

    def interpolate(self, bundle, x):
        return float(self._parts(bundle, x)[3])

    def first_derivative(self, bundle, x):
        _, _, _, value, slope = self._parts(bundle, x)
        return float(value * slope)

    def node_sensitivities(self, bundle, x):
        i, w, _, value, _ = self._parts(bundle, x)
        out = np.zeros(bundle.size)
        out[i] = value * (1 - w) / bundle.values[i]
        out[i + 1] = value * w / bundle.values[i + 1]
        return out

    def first_derivative_node_sensitivities(self, bundle, x):
        i, w, h, value, slope = self._parts(bundle, x)
        out = np.zeros(bundle.size)
        y0, y1 = bundle.values[i], bundle.values[i + 1]
        out[i] = value * (1 - w) / y0 * slope - value / (h * y0)
        out[i + 1] = value * w / y1 * slope + value / (h * y1)
        return out


class StepInterpolator1D(Interpolator1D):
    """Piecewise constant: the value of the largest node at or below x."""

    name = "Step"

    def interpolate(self, bundle, x):
        return float(bundle.values[bundle.lower_bound_index(x)])

    def first_derivative(self, bundle, x):
        return 0.0

    def node_sensitivities(self, bundle, x):
        out = np.zeros(bundle.size)
        out[bundle.lower_bound_index(x)] = 1.0
        return out

    def first_derivative_node_sensitivities(self, bundle, x):
        return np.zeros(bundle.size)


def _lagrange(xs: np.ndarray, x: float) -> Tuple[np.ndarray, np.ndarray]:
    """Quadratic Lagrange basis through three points and its derivative at x."""
    x0, x1, x2 = xs
    d0 = (x0 - x1) * (x0 - x2)
    d1 = (x1 - x0) * (x1 - x2)
    d2 = (x2 - x0) * (x2 - x1)
    basis = np.array([
        (x - x1) * (x - x2) / d0,
        (x - x0) * (x - x2) / d1,
        (x - x0) * (x - x1) / d2,
    ])
    slope = np.array([
        (2 * x - x1 - x2) / d0,
        (2 * x - x0 - x2) / d1,
        (2 * x - x0 - x1) / d2,
    ])
    return basis, slope


class DoubleQuadraticInterpolator1D(Interpolator1D):
    """
    Blend of the two quadratics through the neighbouring node triples.

    Between x_i and x_{i+1} the value is w q_i(x) + (1 - w) q_{i+1}(x) with
    w = (x_{i+1} - x) / (x_{i+1} - x_i), q_i the parabola through nodes
    i-1, i, i+1. The end intervals use the single available parabola; with
    two nodes the interpolation is linear.
    """

    name = "Double Quadratic"

    def _weights(self, bundle: Interpolator1DDataBundle, x: float):
        n = bundle.size
        keys = bundle.keys
        value_w = np.zeros(n)
        slope_w = np.zeros(n)
        if n == 2:
            h = keys[1] - keys[0]
            t = (x - keys[0]) / h
            value_w[:] = [1 - t, t]
            slope_w[:] = [-1.0 / h, 1.0 / h]
            return value_w, slope_w

        i = bundle.interval_index(x)
        if i == 0:
            basis, slope = _lagrange(keys[0:3], x)
            value_w[0:3] = basis
            slope_w[0:3] = slope
        elif i == n - 2:
            basis, slope = _lagrange(keys[n - 3:n], x)
            value_w[n - 3:n] = basis
            slope_w[n - 3:n] = slope
        else:
            h = keys[i + 1] - keys[i]
            w = (keys[i + 1] - x) / h
            left_b, left_s = _lagrange(keys[i - 1:i + 2], x)
            right_b, right_s = _lagrange(keys[i:i + 3], x)
            value_w[i - 1:i + 2] += w * left_b
            value_w[i:i + 3] += (1 - w) * right_b
            slope_w[i - 1:i + 2] += w * left_s - left_b / h
            slope_w[i:i + 3] += (1 - w) * right_s + right_b / h
        return value_w, slope_w

    def interpolate(self, bundle, x):
        return float(self._weights(bundle, x)[0] @ bundle.values)

    def first_derivative(self, bundle, x):
        return float(self._weights(bundle, x)[1] @ bundle.values)

    def node_sensitivities(self, bundle, x):
        return self._weights(bundle, x)[0]

    def first_derivative_node_sensitivities(self, bundle, x):
        return self._weights(bundle, x)[1]


class StepUpperInterpolator1D(Interpolator1D):
    """Piecewise constant: the value of the smallest node at or above x."""

    name = "Step Upper"

    def _index(self, bundle: Interpolator1DDataBundle, x: float) -> int:
        return min(int(np.searchsorted(bundle.keys, x, side='left')), bundle.size - 1)

    def interpolate(self, bundle, x):
        return float(bundle.values[self._index(bundle, x)])

    def first_derivative(self, bundle, x):
        return 0.0

    def node_sensitivities(self, bundle, x):
        out = np.zeros(bundle.size)
        out[self._index(bundle, x)] = 1.0
        return out

    def first_derivative_node_sensitivities(self, bundle, x):
        return np.zeros(bundle.size)


class _TimeWeightedInterpolator1D(Interpolator1D):
    """
    Linear interpolation of g(x, y) = x * f(y), inverted at the query.

    Keys must be positive; so must the values where f needs it.
    """

    def data_bundle(self, x, y):
        bundle = Interpolator1DDataBundle(x, y)
        if bundle.first_key <= 0:
            raise InputValidationError(f"{self.name} interpolation needs positive keys")
        if np.any(bundle.values <= 0):
            raise InputValidationError(f"{self.name} interpolation needs positive values")
        return bundle

    @staticmethod
    def _check_query(x: float):
        if x <= 0:
            raise InputValidationError(f"Query must be positive, got {x}")

    def _linear(self, bundle: Interpolator1DDataBundle, x: float, g: np.ndarray, dg: np.ndarray):
        """L(x), L'(x) and their derivatives with respect to each node value."""
        self._check_query(x)
        i = bundle.interval_index(x)
        h = bundle.keys[i + 1] - bundle.keys[i]
        w = (x - bundle.keys[i]) / h
        level = (1 - w) * g[i] + w * g[i + 1]
        slope = (g[i + 1] - g[i]) / h
        d_level = np.zeros(bundle.size)
        d_slope = np.zeros(bundle.size)
        d_level[i] = (1 - w) * dg[i]
        d_level[i + 1] = w * dg[i + 1]
        d_slope[i] = -dg[i] / h
        d_slope[i + 1] = dg[i + 1] / h
        return level, slope, d_level, d_slope


class ExponentialInterpolator1D(_TimeWeightedInterpolator1D):
    """
    Linear interpolation of x log(y); the value is y = exp(L(x) / x).

    Keys and values must be positive.
    """

    name = "Exponential"

    def _parts(self, bundle: Interpolator1DDataBundle, x: float):
        keys, values = bundle.keys, bundle.values
        level, slope, d_level, d_slope = self._linear(
            bundle, x, keys * bundle.log_values, keys / values
        )
        value = np.exp(level / x)
        return value, level, slope, d_level, d_slope

    def interpolate(self, bundle, x):
        return float(self._parts(bundle, x)[0])

    def first_derivative(self, bundle, x):
        value, level, slope, _, _ = self._parts(bundle, x)
        return float(value * (slope * x - level) / x ** 2)

    def node_sensitivities(self, bundle, x):
        value, _, _, d_level, _ = self._parts(bundle, x)
        return value * d_level / x

    def first_derivative_node_sensitivities(self, bundle, x):
        value, level, slope, d_level, d_slope = self._parts(bundle, x)
        d_value = value * d_level / x
        return d_value * (slope * x - level) / x ** 2 + value * (d_slope * x - d_level) / x ** 2


class TimeSquareInterpolator1D(_TimeWeightedInterpolator1D):
    """
    Linear interpolation of x y^2.

    On zero rates this is linear interpolation of the total variance-like
    quantity r^2 t; the result is y = sqrt(L(x) / x).
    """

    name = "Time Square"

    def _parts(self, bundle: Interpolator1DDataBundle, x: float):
        keys, values = bundle.keys, bundle.values
        level, slope, d_level, d_slope = self._linear(
            bundle, x, keys * values ** 2, 2.0 * keys * values
        )
        if level <= 0:
            raise InputValidationError(f"Time square interpolation is undefined at {x}")
        value = np.sqrt(level / x)
        return value, level, slope, d_level, d_slope

    def interpolate(self, bundle, x):
        return float(self._parts(bundle, x)[0])

    def first_derivative(self, bundle, x):
        value, level, slope, _, _ = self._parts(bundle, x)
        return float((slope * x - level) / (2.0 * x ** 2 * value))

    def node_sensitivities(self, bundle, x):
        value, _, _, d_level, _ = self._parts(bundle, x)
        return d_level / (2.0 * x * value)

    def first_derivative_node_sensitivities(self, bundle, x):
        value, level, slope, d_level, d_slope = self._parts(bundle, x)
        first = (slope * x - level) / (2.0 * x ** 2 * value)
        d_value = d_level / (2.0 * x * value)
        return (d_slope * x - d_level) / (2.0 * x ** 2 * value) - first * d_value / value


class PiecewisePolynomialInterpolator1D(Interpolator1D):
    """
    Interpolator backed by a solved piecewise polynomial.

    The polynomial and its coefficient sensitivities are solved once in
    ``data_bundle`` and cached on the returned SplineDataBundle.
    """

    @abstractmethod
    def solve(self, x: np.ndarray, y: np.ndarray) -> PiecewisePolynomialResultsWithSensitivity:
        pass

    def data_bundle(self, x, y):
        bundle = Interpolator1DDataBundle(x, y)
        polynomial = self.solve(bundle.keys, bundle.values)
        return SplineDataBundle(bundle.keys, bundle.values, polynomial)

    def _polynomial(self, bundle: Interpolator1DDataBundle) -> PiecewisePolynomialResultsWithSensitivity:
        if not isinstance(bundle, SplineDataBundle):
            raise InputValidationError(
                f"{self.name} needs a bundle built by its own data_bundle()"
            )
        return bundle.polynomial

    def interpolate(self, bundle, x):
        return float(evaluate(self._polynomial(bundle), x)[0])

    def first_derivative(self, bundle, x):
        return float(differentiate(self._polynomial(bundle), x)[0])

    def node_sensitivities(self, bundle, x):
        return node_sensitivity(self._polynomial(bundle), x)

    def first_derivative_node_sensitivities(self, bundle, x):
        return differentiate_node_sensitivity(self._polynomial(bundle), x)


class NaturalCubicSplineInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Cubic spline with zero second derivative at the end nodes."""

    name = "Natural Cubic Spline"

    def solve(self, x, y):
        return natural_cubic_spline_with_sensitivity(x, y)


class NotAKnotCubicSplineInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Cubic spline with continuous third derivative at the second and last-but-one nodes."""

    name = "Not-a-Knot Cubic Spline"

    def solve(self, x, y):
        return cubic_spline_with_sensitivity(x, y)


class ClampedCubicSplineInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Cubic spline with zero first derivative at the end nodes."""

    name = "Clamped Cubic Spline"

    def solve(self, x, y):
        return cubic_spline_with_sensitivity(x, np.concatenate([[0.0], y, [0.0]]))


class ConstrainedCubicSplineInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Hermite cubic on constrained slopes; no overshoot at local extrema."""

    name = "Constrained Cubic Spline"

    def solve(self, x, y):
        return hermite_cubic_with_sensitivity(x, y, *constrained_slopes_with_sensitivity(x, y))


class MonotonicConstrainedCubicSplineInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Constrained cubic with the Hyman filter applied to its slopes."""

    name = "Monotonic Constrained Cubic Spline"

    def solve(self, x, y):
        slopes, sensitivity = constrained_slopes_with_sensitivity(x, y)
        return hermite_cubic_with_sensitivity(
            x, y, *hyman_filter_with_sensitivity(x, y, slopes, sensitivity)
        )


class MonotonicNaturalCubicSplineInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Hermite cubic on the natural spline's knot slopes, Hyman filtered."""

    name = "Monotonic Natural Cubic Spline"

    def solve(self, x, y):
        slopes, sensitivity = natural_spline_slopes_with_sensitivity(x, y)
        return hermite_cubic_with_sensitivity(
            x, y, *hyman_filter_with_sensitivity(x, y, slopes, sensitivity)
        )


class PchipInterpolator1D(PiecewisePolynomialInterpolator1D):
    """Monotone piecewise cubic Hermite interpolation (Fritsch-Carlson)."""

    name = "PCHIP"

    def solve(self, x, y):
        return hermite_cubic_with_sensitivity(x, y, *pchip_slopes_with_sensitivity(x, y))


__all__ = [
    "Interpolator1D",
    "LinearInterpolator1D",
    "LogLinearInterpolator1D",
    "StepInterpolator1D",
    "StepUpperInterpolator1D",
    "DoubleQuadraticInterpolator1D",
    "ExponentialInterpolator1D",
    "TimeSquareInterpolator1D",
    "PiecewisePolynomialInterpolator1D",
    "NaturalCubicSplineInterpolator1D",
    "NotAKnotCubicSplineInterpolator1D",
    "ClampedCubicSplineInterpolator1D",
    "ConstrainedCubicSplineInterpolator1D",
    "MonotonicConstrainedCubicSplineInterpolator1D",
    "MonotonicNaturalCubicSplineInterpolator1D",
    "PchipInterpolator1D",
]
