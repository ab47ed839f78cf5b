"""
Curve generators: recipes turning a parameter vector into a curve.

A generator is attached to every curve being calibrated. The root finder
only sees parameter vectors; the generator knows how many parameters a
curve has, how to build the curve from them and how to produce a starting
point from rough rate guesses.

Generators whose nodes sit on instrument maturities are incomplete until
``final_generator`` is called with the curve's instruments.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from ..errors import CurveConfigurationError, InputValidationError
from ..interpolation import Interpolator1D, combined_interpolator_of, interpolator_of
from .curve import (
    FunctionalYieldCurve,
    InterpolatedDiscountCurve,
    InterpolatedYieldCurve,
    PeriodicYieldCurve,
    SpreadYieldCurve,
    YieldAndDiscountCurve,
)
from .functional import FunctionalForm, functional_form_of

logger = logging.getLogger(__name__)


class CurveGenerator(ABC):
    """Abstract recipe for building a curve from parameters."""

    @abstractmethod
    def number_of_parameters(self) -> int:
        pass

    @abstractmethod
    def generate_curve(
        self,
        name: str,
        parameters: Sequence[float],
        known=None,
    ) -> YieldAndDiscountCurve:
        """
        Build the curve.

        Args:
            name: Curve name
            parameters: Parameter vector of length number_of_parameters()
            known: MulticurveProvider with curves this one may depend on

        Returns:
            The curve
        """
        pass

    @abstractmethod
    def initial_guess(self, rates: Sequence[float]) -> np.ndarray:
        """Starting parameters from one rough zero-rate guess per instrument."""
        pass

    def final_generator(self, instruments: Sequence[Any]) -> "CurveGenerator":
        """Generator completed with the curve's instruments."""
        return self

    def _check_length(self, parameters: Sequence[float]) -> np.ndarray:
        parameters = np.asarray(parameters, dtype=np.float64)
        if len(parameters) != self.number_of_parameters():
            raise InputValidationError(
                f"Expected {self.number_of_parameters()} parameters, got {len(parameters)}"
            )
        return parameters


class _NodeGenerator(CurveGenerator):
    """Interpolated curve with nodes at given times or at instrument maturities."""

    def __init__(self, interpolator: Interpolator1D, node_times: Optional[Sequence[float]] = None):
        self.interpolator = interpolator
        self.node_times = None if node_times is None else np.asarray(node_times, dtype=np.float64)

    def _times(self) -> np.ndarray:
        if self.node_times is None:
            raise CurveConfigurationError(
                "Node times are taken from instrument maturities; call final_generator() first"
            )
        return self.node_times

    def number_of_parameters(self):
        return len(self._times())

    @abstractmethod
    def _with_times(self, times: np.ndarray) -> "_NodeGenerator":
        pass

    def final_generator(self, instruments):
        if self.node_times is not None:
            return self
        return self._with_times(np.array([inst.maturity for inst in instruments], dtype=np.float64))

    def __repr__(self) -> str:
        nodes = "maturities" if self.node_times is None else list(self.node_times)
        return f"{type(self).__name__}({self.interpolator.name}, nodes={nodes})"


class YieldInterpolatedGenerator(_NodeGenerator):
    """Zero rates interpolated between nodes; parameters are the node rates."""

    def _with_times(self, times):
        return YieldInterpolatedGenerator(self.interpolator, times)

    def generate_curve(self, name, parameters, known=None):
        return InterpolatedYieldCurve(name, self._times(), self._check_length(parameters),
                                      self.interpolator)

    def initial_guess(self, rates):
        return np.asarray(rates, dtype=np.float64).copy()


class DiscountInterpolatedGenerator(_NodeGenerator):
    """Log discount factors interpolated between nodes."""

    def _with_times(self, times):
        return DiscountInterpolatedGenerator(self.interpolator, times)

    def generate_curve(self, name, parameters, known=None):
        return InterpolatedDiscountCurve(name, self._times(), self._check_length(parameters),
                                         self.interpolator)

    def initial_guess(self, rates):
        return -np.asarray(rates, dtype=np.float64) * self._times()


class PeriodicYieldInterpolatedGenerator(_NodeGenerator):
    """Periodically compounded zero rates interpolated between maturity nodes."""

    def __init__(self, interpolator, periods_per_year: int, node_times=None):
        super().__init__(interpolator, node_times)
        self.periods_per_year = periods_per_year

    def _with_times(self, times):
        return PeriodicYieldInterpolatedGenerator(self.interpolator, self.periods_per_year, times)

    def generate_curve(self, name, parameters, known=None):
        return PeriodicYieldCurve(name, self._times(), self._check_length(parameters),
                                  self.interpolator, self.periods_per_year)

    def initial_guess(self, rates):
        m = self.periods_per_year
        return m * np.expm1(np.asarray(rates, dtype=np.float64) / m)


class FunctionalGenerator(CurveGenerator):
    """Curve from a functional form; the initial guess is a least-squares fit."""

    def __init__(self, form: FunctionalForm):
        self.form = form
        self._maturities: Optional[np.ndarray] = None

    def number_of_parameters(self):
        return self.form.number_of_parameters

    def generate_curve(self, name, parameters, known=None):
        return FunctionalYieldCurve(name, self.form, self._check_length(parameters))

    def final_generator(self, instruments):
        generator = FunctionalGenerator(self.form)
        generator._maturities = np.array([inst.maturity for inst in instruments], dtype=np.float64)
        return generator

    def initial_guess(self, rates):
        if self._maturities is None:
            raise CurveConfigurationError(
                "Functional initial guess needs instrument maturities; call final_generator() first"
            )
        params = self.form.fit(self._maturities, rates)
        logger.debug("Initial %s parameters %s", self.form.name, params)
        return params

    def __repr__(self) -> str:
        return f"FunctionalGenerator({self.form.name})"


class SpreadGenerator(CurveGenerator):
    """
    Spread curve added on zero rates to an existing named curve.

    The base curve is looked up in the provider passed to generate_curve. The
    initial spread is zero.
    """

    def __init__(self, base_curve_name: str, spread_generator: CurveGenerator):
        self.base_curve_name = base_curve_name
        self.spread_generator = spread_generator

    def number_of_parameters(self):
        return self.spread_generator.number_of_parameters()

    def generate_curve(self, name, parameters, known=None):
        if known is None or not known.has_curve(self.base_curve_name):
            raise CurveConfigurationError(
                f"Spread curve '{name}' needs base curve '{self.base_curve_name}'"
            )
        spread = self.spread_generator.generate_curve(f"{name} spread", parameters, known)
        return SpreadYieldCurve(name, known.curve(self.base_curve_name), spread)

    def final_generator(self, instruments):
        return SpreadGenerator(self.base_curve_name,
                               self.spread_generator.final_generator(instruments))

    def initial_guess(self, rates):
        return self.spread_generator.initial_guess(np.zeros(len(rates)))

    def __repr__(self) -> str:
        return f"SpreadGenerator(base={self.base_curve_name!r}, {self.spread_generator!r})"


class CurveType(Enum):
    """Quantity the interpolator works on."""
    ZERO_RATE = "zero_rate"
    DISCOUNT_FACTOR = "discount_factor"


@dataclass(frozen=True)
class CurveGeneratorConfig:
    """
    Declarative description of a curve generator.

    Exactly one of ``functional_form`` and ``interpolator`` must be set.
    Interpolated curves need exactly one of ``node_times`` and
    ``maturity_nodes``. Periodic compounding (``compounding_periods``) is
    only available on zero rates with maturity nodes.

    Attributes:
        interpolator: Interpolator or registered interpolator name
        left_extrapolator: Registered extrapolator name for x below the nodes
        right_extrapolator: Registered extrapolator name for x above the nodes
        functional_form: "Nelson-Siegel" or "Nelson-Siegel-Svensson"
        curve_type: ZERO_RATE or DISCOUNT_FACTOR
        node_times: Fixed node times
        maturity_nodes: Put the nodes on the instrument maturities
        compounding_periods: Periods per year of the interpolated rate
        spread_over: Name of a base curve the result is a spread over
    """
    interpolator: Optional[Union[str, Interpolator1D]] = None
    left_extrapolator: Optional[str] = None
    right_extrapolator: Optional[str] = None
    functional_form: Optional[str] = None
    curve_type: CurveType = CurveType.ZERO_RATE
    node_times: Optional[Sequence[float]] = None
    maturity_nodes: bool = False
    compounding_periods: Optional[int] = None
    spread_over: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CurveGeneratorConfig":
        """Create from a plain dictionary (e.g. loaded from YAML or JSON)."""
        data = dict(data)
        if "curve_type" in data and not isinstance(data["curve_type"], CurveType):
            data["curve_type"] = CurveType(data["curve_type"])
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise CurveConfigurationError(f"Unknown generator options: {sorted(unknown)}")
        return cls(**data)

    def _interpolator(self) -> Interpolator1D:
        if self.left_extrapolator is None and self.right_extrapolator is None:
            if isinstance(self.interpolator, str):
                return interpolator_of(self.interpolator)
            return self.interpolator
        return combined_interpolator_of(self.interpolator, self.left_extrapolator,
                                        self.right_extrapolator)

    def build(self) -> CurveGenerator:
        """
        Validate the options and create the generator.

        Raises:
            CurveConfigurationError: On incompatible or missing options
            UnknownIdentifierError: On an unknown functional form or
                interpolator name
        """
        if self.functional_form is not None and self.interpolator is not None:
            raise CurveConfigurationError("Set either a functional form or an interpolator, not both")
        if self.compounding_periods is not None and self.compounding_periods < 1:
            raise CurveConfigurationError("Compounding periods per year must be at least 1")
        if self.compounding_periods is not None and self.node_times is not None:
            raise CurveConfigurationError("Periodic compounding is only available with maturity nodes")

        if self.functional_form is not None:
            if self.node_times is not None or self.maturity_nodes:
                raise CurveConfigurationError("Functional forms take no node options")
            if self.compounding_periods is not None:
                raise CurveConfigurationError("Functional forms are continuously compounded")
            if self.left_extrapolator is not None or self.right_extrapolator is not None:
                raise CurveConfigurationError("Functional forms take no extrapolators")
            generator: CurveGenerator = FunctionalGenerator(functional_form_of(self.functional_form))
        else:
            if self.interpolator is None:
                raise CurveConfigurationError("An interpolator is required for interpolated curves")
            if (self.node_times is not None) == self.maturity_nodes:
                raise CurveConfigurationError(
                    "Interpolated curves need either node_times or maturity_nodes"
                )
            interpolator = self._interpolator()
            if self.curve_type is CurveType.DISCOUNT_FACTOR:
                if self.compounding_periods is not None:
                    raise CurveConfigurationError(
                        "Periodic compounding applies to zero-rate curves only"
                    )
                generator = DiscountInterpolatedGenerator(interpolator, self.node_times)
            elif self.compounding_periods is not None:
                generator = PeriodicYieldInterpolatedGenerator(interpolator, self.compounding_periods)
            else:
                generator = YieldInterpolatedGenerator(interpolator, self.node_times)

        if self.spread_over is not None:
            generator = SpreadGenerator(self.spread_over, generator)
        return generator


__all__ = [
    "CurveGenerator",
    "YieldInterpolatedGenerator",
    "DiscountInterpolatedGenerator",
    "PeriodicYieldInterpolatedGenerator",
    "FunctionalGenerator",
    "SpreadGenerator",
    "CurveType",
    "CurveGeneratorConfig",
]
