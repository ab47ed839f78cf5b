"""
Curves package - curve objects and the generators that build them.

Provides:
- YieldAndDiscountCurve and its interpolated, periodic, functional and
  spread variants
- Nelson-Siegel / Nelson-Siegel-Svensson functional forms
- CurveGenerator family and CurveGeneratorConfig
"""

from .curve import (
    YieldAndDiscountCurve,
    NodeCurve,
    InterpolatedYieldCurve,
    InterpolatedDiscountCurve,
    PeriodicYieldCurve,
    FunctionalYieldCurve,
    SpreadYieldCurve,
)
from .functional import FunctionalForm, NelsonSiegel, NelsonSiegelSvensson, functional_form_of
from .generators import (
    CurveGenerator,
    YieldInterpolatedGenerator,
    DiscountInterpolatedGenerator,
    PeriodicYieldInterpolatedGenerator,
    FunctionalGenerator,
    SpreadGenerator,
    CurveType,
    CurveGeneratorConfig,
)

__all__ = [
    "YieldAndDiscountCurve",
    "NodeCurve",
    "InterpolatedYieldCurve",
    "InterpolatedDiscountCurve",
    "PeriodicYieldCurve",
    "FunctionalYieldCurve",
    "SpreadYieldCurve",
    "FunctionalForm",
    "NelsonSiegel",
    "NelsonSiegelSvensson",
    "functional_form_of",
    "CurveGenerator",
    "YieldInterpolatedGenerator",
    "DiscountInterpolatedGenerator",
    "PeriodicYieldInterpolatedGenerator",
    "FunctionalGenerator",
    "SpreadGenerator",
    "CurveType",
    "CurveGeneratorConfig",
]
