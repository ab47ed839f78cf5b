"""
Extrapolation beyond the first or last node.

An extrapolator is a value: a kind plus the interior interpolator it reads
the edge value and slope from. It is used on one side at a time.

Kinds:
- FLAT: edge value
- LINEAR: tangent line of the interpolator at the edge
- LOG_LINEAR: tangent line of log(y) at the edge
- EXPONENTIAL: y(x) = exp(m x) with m = log(y_edge) / x_edge; on discount
  factors this holds the edge zero rate constant
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np

from ..errors import InputValidationError
from .bundle import Interpolator1DDataBundle
from .interpolators import Interpolator1D


class ExtrapolatorKind(Enum):
    FLAT = "Flat Extrapolator"
    LINEAR = "Linear Extrapolator"
    LOG_LINEAR = "Log Linear Extrapolator"
    EXPONENTIAL = "Exponential Extrapolator"


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Extrapolator1D:
    """
    Extrapolation on one side of the nodes.

    Attributes:
        kind: Extrapolation rule
        interpolator: Interior interpolator the edge data is taken from
    """
    kind: ExtrapolatorKind
    interpolator: Interpolator1D

    @property
    def name(self) -> str:
        return self.kind.value

    def _edge(self, bundle: Interpolator1DDataBundle, side: Side):
        if side is Side.LEFT:
            return bundle.first_key, bundle.first_value, 0
        return bundle.last_key, bundle.last_value, bundle.size - 1

    def extrapolate(self, bundle: Interpolator1DDataBundle, x: float, side: Side) -> float:
        x_e, y_e, _ = self._edge(bundle, side)
        if self.kind is ExtrapolatorKind.FLAT:
            return y_e
        if self.kind is ExtrapolatorKind.LINEAR:
            return y_e + self.interpolator.first_derivative(bundle, x_e) * (x - x_e)
        if self.kind is ExtrapolatorKind.LOG_LINEAR:
            self._check_positive(y_e)
            slope = self.interpolator.first_derivative(bundle, x_e) / y_e
            return float(y_e * np.exp(slope * (x - x_e)))
        m = self._exponent(x_e, y_e)
        return float(np.exp(m * x))

    def first_derivative(self, bundle: Interpolator1DDataBundle, x: float, side: Side) -> float:
        x_e, y_e, _ = self._edge(bundle, side)
        if self.kind is ExtrapolatorKind.FLAT:
            return 0.0
        if self.kind is ExtrapolatorKind.LINEAR:
            return self.interpolator.first_derivative(bundle, x_e)
        if self.kind is ExtrapolatorKind.LOG_LINEAR:
            value = self.extrapolate(bundle, x, side)
            return value * self.interpolator.first_derivative(bundle, x_e) / y_e
        m = self._exponent(x_e, y_e)
        return float(m * np.exp(m * x))

    def node_sensitivities(self, bundle: Interpolator1DDataBundle, x: float, side: Side) -> np.ndarray:
        """Derivative of the extrapolated value at x with respect to each node value."""
        x_e, y_e, edge = self._edge(bundle, side)
        unit = np.zeros(bundle.size)
        unit[edge] = 1.0
        if self.kind is ExtrapolatorKind.FLAT:
            return unit
        if self.kind is ExtrapolatorKind.LINEAR:
            return unit + (x - x_e) * self.interpolator.first_derivative_node_sensitivities(bundle, x_e)
        if self.kind is ExtrapolatorKind.LOG_LINEAR:
            self._check_positive(y_e)
            slope = self.interpolator.first_derivative(bundle, x_e)
            slope_sens = self.interpolator.first_derivative_node_sensitivities(bundle, x_e)
            value = self.extrapolate(bundle, x, side)
            d_log = unit / y_e + (x - x_e) * (slope_sens / y_e - slope * unit / y_e ** 2)
            return value * d_log
        m = self._exponent(x_e, y_e)
        return float(np.exp(m * x)) * x / (x_e * y_e) * unit

    def first_derivative_node_sensitivities(
        self, bundle: Interpolator1DDataBundle, x: float, side: Side
    ) -> np.ndarray:
        """Derivative of the extrapolated slope at x with respect to each node value."""
        x_e, y_e, edge = self._edge(bundle, side)
        if self.kind is ExtrapolatorKind.FLAT:
            return np.zeros(bundle.size)
        if self.kind is ExtrapolatorKind.LINEAR:
            return self.interpolator.first_derivative_node_sensitivities(bundle, x_e)
        unit = np.zeros(bundle.size)
        unit[edge] = 1.0
        if self.kind is ExtrapolatorKind.LOG_LINEAR:
            self._check_positive(y_e)
            slope = self.interpolator.first_derivative(bundle, x_e)
            slope_sens = self.interpolator.first_derivative_node_sensitivities(bundle, x_e)
            value = self.extrapolate(bundle, x, side)
            d_value = self.node_sensitivities(bundle, x, side)
            return d_value * slope / y_e + value * (slope_sens / y_e - slope * unit / y_e ** 2)
        m = self._exponent(x_e, y_e)
        growth = float(np.exp(m * x))
        return (growth + m * x * growth) / (x_e * y_e) * unit

    @staticmethod
    def _check_positive(y_e: float):
        if y_e <= 0:
            raise InputValidationError("Log-linear extrapolation needs a positive edge value")

    @staticmethod
    def _exponent(x_e: float, y_e: float) -> float:
        if y_e <= 0:
            raise InputValidationError("Exponential extrapolation needs a positive edge value")
        if x_e == 0:
            raise InputValidationError("Exponential extrapolation needs a non-zero edge key")
        return float(np.log(y_e) / x_e)


__all__ = [
    "ExtrapolatorKind",
    "Side",
    "Extrapolator1D",
]
