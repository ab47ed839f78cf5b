"""
Yield and discount curves built from calibrated parameters.

Every curve exposes:
- Discount factor P(0,t)
- Zero rate r(t), continuously compounded
- Simple forward rate f(t1, t2)
- Its parameters and d r(t) / d parameters

Internal representation uses year fractions from the valuation time. The
parameter sensitivity is always expressed on the continuously compounded
zero rate, which is the quantity point sensitivities of instruments are
measured against.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from ..errors import InputValidationError
from ..interpolation import Interpolator1D
from .functional import FunctionalForm


class YieldAndDiscountCurve(ABC):
    """
    Base class for named curves.

    Conventions:
        - Zero rates are continuously compounded
        - Times are year fractions from the valuation time
        - Discount factor at t <= 0 is 1.0
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def interest_rate(self, t: float) -> float:
        """Continuously compounded zero rate at t."""
        pass

    def discount_factor(self, t: float) -> float:
        if t <= 0:
            return 1.0
        return float(np.exp(-self.interest_rate(t) * t))

    def forward_rate(self, t1: float, t2: float) -> float:
        """
        Simple forward rate between t1 and t2.

        Args:
            t1: Start time
            t2: End time

        Returns:
            (P(t1) / P(t2) - 1) / (t2 - t1)
        """
        if t2 <= t1:
            raise InputValidationError("t2 must be greater than t1")
        return (self.discount_factor(t1) / self.discount_factor(t2) - 1) / (t2 - t1)

    @property
    def number_of_parameters(self) -> int:
        return len(self.parameters)

    @property
    @abstractmethod
    def parameters(self) -> np.ndarray:
        pass

    @abstractmethod
    def parameter_sensitivity(self, t: float) -> np.ndarray:
        """Derivative of the zero rate at t with respect to each parameter."""
        pass

    def underlying_curve_names(self) -> List[str]:
        """Names of other curves this curve's value depends on."""
        return []

    def underlying_parameter_sensitivities(self, t: float) -> Dict[str, np.ndarray]:
        """Derivative of the zero rate at t with respect to parameters of underlying curves."""
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, parameters={self.number_of_parameters})"


class NodeCurve(YieldAndDiscountCurve):
    """
    Curve whose parameters are values at node times.

    The parameters keep the order the node times were given in; the
    interpolator works on the sorted copy.
    """

    def __init__(
        self,
        name: str,
        times: Sequence[float],
        values: Sequence[float],
        interpolator: Interpolator1D,
    ):
        super().__init__(name)
        times = np.asarray(times, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if times.shape != values.shape:
            raise InputValidationError("Node times and values must have the same length")
        self.interpolator = interpolator
        self._times = times
        self._values = values
        self._order = np.argsort(times, kind="stable")
        self.bundle = interpolator.data_bundle(times, values)

    @property
    def node_times(self) -> np.ndarray:
        return self._times.copy()

    @property
    def parameters(self) -> np.ndarray:
        return self._values.copy()

    def _node_value(self, t: float) -> float:
        return self.interpolator.interpolate(self.bundle, t)

    def _node_sensitivity(self, t: float) -> np.ndarray:
        """d node-interpolated value / d parameters, in parameter order."""
        sorted_sens = self.interpolator.node_sensitivities(self.bundle, t)
        out = np.empty_like(sorted_sens)
        out[self._order] = sorted_sens
        return out

    def nodes_frame(self) -> pd.DataFrame:
        """Node snapshot: time, parameter, zero rate and discount factor."""
        return pd.DataFrame({
            "time": self._times,
            "parameter": self._values,
            "zero_rate": [self.interest_rate(t) for t in self._times],
            "discount_factor": [self.discount_factor(t) for t in self._times],
        })


class InterpolatedYieldCurve(NodeCurve):
    """Continuously compounded zero rates interpolated between nodes."""

    def interest_rate(self, t):
        return self._node_value(t)

    def parameter_sensitivity(self, t):
        return self._node_sensitivity(t)


class InterpolatedDiscountCurve(NodeCurve):
    """
    Log discount factors interpolated between nodes.

    The parameters are log P(0, t_i); the zero rate is -log P(0, t) / t.
    """

    def discount_factor(self, t):
        if t <= 0:
            return 1.0
        return float(np.exp(self._node_value(t)))

    def interest_rate(self, t):
        if t <= 0:
            # instantaneous short rate
            return -self.interpolator.first_derivative(self.bundle, 0.0)
        return -self._node_value(t) / t

    def parameter_sensitivity(self, t):
        if t <= 0:
            sorted_sens = self.interpolator.first_derivative_node_sensitivities(self.bundle, 0.0)
            out = np.empty_like(sorted_sens)
            out[self._order] = -sorted_sens
            return out
        return -self._node_sensitivity(t) / t


class PeriodicYieldCurve(NodeCurve):
    """
    Zero rates compounded m times per year interpolated between nodes.

    P(0,t) = (1 + r_m(t) / m)^(-m t), so the continuous rate is
    m log(1 + r_m / m).
    """

    def __init__(self, name, times, values, interpolator, periods_per_year: int):
        if periods_per_year < 1:
            raise InputValidationError("Compounding periods per year must be at least 1")
        super().__init__(name, times, values, interpolator)
        self.periods_per_year = periods_per_year

    def interest_rate(self, t):
        m = self.periods_per_year
        return float(m * np.log1p(self._node_value(t) / m))

    def parameter_sensitivity(self, t):
        m = self.periods_per_year
        return self._node_sensitivity(t) / (1.0 + self._node_value(t) / m)


class FunctionalYieldCurve(YieldAndDiscountCurve):
    """Zero rate given by a functional form and its parameters."""

    def __init__(self, name: str, form: FunctionalForm, params: Sequence[float]):
        super().__init__(name)
        params = np.asarray(params, dtype=np.float64)
        if len(params) != form.number_of_parameters:
            raise InputValidationError(
                f"{form.name} takes {form.number_of_parameters} parameters, got {len(params)}"
            )
        self.form = form
        self._params = params

    @property
    def parameters(self):
        return self._params.copy()

    def interest_rate(self, t):
        return self.form.rate(t, self._params)

    def parameter_sensitivity(self, t):
        return self.form.gradient(t, self._params)


class SpreadYieldCurve(YieldAndDiscountCurve):
    """
    Base curve plus a spread curve, added on zero rates.

    Only the spread curve's parameters belong to this curve; the base
    curve's parameters are reported as underlying sensitivities.
    """

    def __init__(self, name: str, base: YieldAndDiscountCurve, spread: YieldAndDiscountCurve):
        super().__init__(name)
        self.base = base
        self.spread = spread

    @property
    def parameters(self):
        return self.spread.parameters

    def interest_rate(self, t):
        return self.base.interest_rate(t) + self.spread.interest_rate(t)

    def parameter_sensitivity(self, t):
        return self.spread.parameter_sensitivity(t)

    def underlying_curve_names(self):
        return [self.base.name] + self.base.underlying_curve_names()

    def underlying_parameter_sensitivities(self, t):
        out = {self.base.name: self.base.parameter_sensitivity(t)}
        out.update(self.base.underlying_parameter_sensitivities(t))
        return out


__all__ = [
    "YieldAndDiscountCurve",
    "NodeCurve",
    "InterpolatedYieldCurve",
    "InterpolatedDiscountCurve",
    "PeriodicYieldCurve",
    "FunctionalYieldCurve",
    "SpreadYieldCurve",
]
