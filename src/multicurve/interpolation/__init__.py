"""
Interpolation package - node interpolation and extrapolation for curves.

Provides:
- Interpolator1DDataBundle: validated, sorted node data
- Interpolator1D implementations (linear, log-linear, step, cubic splines, ...)
- Extrapolator1D and CombinedInterpolatorExtrapolator
- Name registry: interpolator_of, extrapolator_of, combined_interpolator_of
"""

from .bundle import Interpolator1DDataBundle, SplineDataBundle
from .interpolators import (
    Interpolator1D,
    LinearInterpolator1D,
    LogLinearInterpolator1D,
    StepInterpolator1D,
    StepUpperInterpolator1D,
    DoubleQuadraticInterpolator1D,
    ExponentialInterpolator1D,
    TimeSquareInterpolator1D,
    PiecewisePolynomialInterpolator1D,
    NaturalCubicSplineInterpolator1D,
    NotAKnotCubicSplineInterpolator1D,
    ClampedCubicSplineInterpolator1D,
    ConstrainedCubicSplineInterpolator1D,
    MonotonicConstrainedCubicSplineInterpolator1D,
    MonotonicNaturalCubicSplineInterpolator1D,
    PchipInterpolator1D,
)
from .extrapolators import ExtrapolatorKind, Side, Extrapolator1D
from .combined import CombinedInterpolatorExtrapolator
from .registry import (
    interpolator_of,
    extrapolator_of,
    combined_interpolator_of,
    available_interpolators,
    available_extrapolators,
)

__all__ = [
    "Interpolator1DDataBundle",
    "SplineDataBundle",
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
    "ExtrapolatorKind",
    "Side",
    "Extrapolator1D",
    "CombinedInterpolatorExtrapolator",
    "interpolator_of",
    "extrapolator_of",
    "combined_interpolator_of",
    "available_interpolators",
    "available_extrapolators",
]
