"""
Static name registry for interpolators and extrapolators.

Names are matched ignoring case, spaces, hyphens and underscores, so
"Natural Cubic Spline", "natural_cubic_spline" and "NaturalCubicSpline"
resolve to the same interpolator. A trailing "Interpolator" or
"Interpolator1D" is ignored too ("Linear Interpolator"). Every lookup
returns a fresh instance.
"""

import re
from typing import Callable, Dict, List, Optional, Union

from ..errors import UnknownIdentifierError
from .combined import CombinedInterpolatorExtrapolator
from .extrapolators import Extrapolator1D, ExtrapolatorKind
from .interpolators import (
    ClampedCubicSplineInterpolator1D,
    ConstrainedCubicSplineInterpolator1D,
    DoubleQuadraticInterpolator1D,
    ExponentialInterpolator1D,
    Interpolator1D,
    LinearInterpolator1D,
    LogLinearInterpolator1D,
    MonotonicConstrainedCubicSplineInterpolator1D,
    MonotonicNaturalCubicSplineInterpolator1D,
    NaturalCubicSplineInterpolator1D,
    NotAKnotCubicSplineInterpolator1D,
    PchipInterpolator1D,
    StepInterpolator1D,
    StepUpperInterpolator1D,
    TimeSquareInterpolator1D,
)


_INTERPOLATORS: Dict[str, Callable[[], Interpolator1D]] = {
    cls.name: cls
    for cls in (
        LinearInterpolator1D,
        LogLinearInterpolator1D,
        StepInterpolator1D,
        StepUpperInterpolator1D,
        ExponentialInterpolator1D,
        TimeSquareInterpolator1D,
        NaturalCubicSplineInterpolator1D,
        NotAKnotCubicSplineInterpolator1D,
        ClampedCubicSplineInterpolator1D,
        DoubleQuadraticInterpolator1D,
        ConstrainedCubicSplineInterpolator1D,
        MonotonicConstrainedCubicSplineInterpolator1D,
        MonotonicNaturalCubicSplineInterpolator1D,
        PchipInterpolator1D,
    )
}

_INTERPOLATOR_ALIASES = {
    "lin": "Linear",
    "loglinear": "Log Linear",
    "flat": "Step",
    "natural": "Natural Cubic Spline",
    "naturalspline": "Natural Cubic Spline",
    "cubicspline": "Not-a-Knot Cubic Spline",
    "cubic": "Not-a-Knot Cubic Spline",
    "spline": "Not-a-Knot Cubic Spline",
    "notaknot": "Not-a-Knot Cubic Spline",
    "doublequadratic": "Double Quadratic",
    "constrained": "Constrained Cubic Spline",
    "clamped": "Clamped Cubic Spline",
    "naturalcubicsplinewithmonotonicity": "Monotonic Natural Cubic Spline",
    "constrainedcubicsplinewithmonotonicity": "Monotonic Constrained Cubic Spline",
    "monotonic": "PCHIP",
    "monotoniccubicspline": "PCHIP",
    "piecewisecubichermiteinterpolatingpolynomial": "PCHIP",
}

_EXTRAPOLATORS = {kind.value: kind for kind in ExtrapolatorKind}

_EXTRAPOLATOR_ALIASES = {
    "flat": "Flat Extrapolator",
    "linear": "Linear Extrapolator",
    "loglinear": "Log Linear Extrapolator",
    "exponential": "Exponential Extrapolator",
}


def _normalize(name: str) -> str:
    return "".join(ch for ch in name.lower() if ch not in " -_")


def _normalize_interpolator(name: str) -> str:
    key = _normalize(name)
    stripped = re.sub(r"interpolator(1d)?$", "", key)
    return stripped or key


_INTERPOLATOR_LOOKUP = {_normalize(k): k for k in _INTERPOLATORS}
_INTERPOLATOR_LOOKUP.update(_INTERPOLATOR_ALIASES)
_EXTRAPOLATOR_LOOKUP = {_normalize(k): k for k in _EXTRAPOLATORS}
_EXTRAPOLATOR_LOOKUP.update(_EXTRAPOLATOR_ALIASES)


def interpolator_of(name: str) -> Interpolator1D:
    """
    Interpolator registered under name.

    Raises:
        UnknownIdentifierError: If the name is not registered
    """
    canonical = _INTERPOLATOR_LOOKUP.get(_normalize_interpolator(name))
    if canonical is None:
        raise UnknownIdentifierError("interpolator", name)
    return _INTERPOLATORS[canonical]()


def extrapolator_of(name: str, interpolator: Union[str, Interpolator1D]) -> Extrapolator1D:
    """Extrapolator registered under name, reading edge data from interpolator."""
    canonical = _EXTRAPOLATOR_LOOKUP.get(_normalize(name))
    if canonical is None:
        raise UnknownIdentifierError("extrapolator", name)
    if isinstance(interpolator, str):
        interpolator = interpolator_of(interpolator)
    return Extrapolator1D(_EXTRAPOLATORS[canonical], interpolator)


def combined_interpolator_of(
    interpolator: Union[str, Interpolator1D],
    left: Optional[str] = None,
    right: Optional[str] = None,
) -> CombinedInterpolatorExtrapolator:
    """
    Interior interpolator with named extrapolators on either side.

    Args:
        interpolator: Interior interpolator or its registered name
        left: Left extrapolator name, or None for none
        right: Right extrapolator name, or None for none
    """
    if isinstance(interpolator, str):
        interpolator = interpolator_of(interpolator)
    return CombinedInterpolatorExtrapolator(
        interpolator,
        extrapolator_of(left, interpolator) if left is not None else None,
        extrapolator_of(right, interpolator) if right is not None else None,
    )


def available_interpolators() -> List[str]:
    return list(_INTERPOLATORS)


def available_extrapolators() -> List[str]:
    return list(_EXTRAPOLATORS)


__all__ = [
    "interpolator_of",
    "extrapolator_of",
    "combined_interpolator_of",
    "available_interpolators",
    "available_extrapolators",
]
