"""
multicurve: Multi-Curve Interest-Rate Calibration Engine

A library for:
- Interpolating curve nodes with pluggable 1-D interpolators and extrapolators
- Solving cubic splines with node sensitivities
- Calibrating mutually dependent discount and forward curves so every
  instrument reprices to its quote
- Computing the sensitivity of curve parameters to market quotes

Scope: time-based instruments (deposits, FRAs, futures, OIS and Ibor swaps);
no calendars or trade booking.
"""

__version__ = "0.1.0"

from .errors import (
    CurveCalibrationError,
    InputValidationError,
    UnknownIdentifierError,
    CurveConfigurationError,
    InputTooLargeError,
    NonConvergenceError,
    SingularJacobianError,
)
from .settings import CalibrationSettings
from .provider import MulticurveProvider

# Interpolation
from .interpolation import (
    Interpolator1D,
    Interpolator1DDataBundle,
    CombinedInterpolatorExtrapolator,
    interpolator_of,
    extrapolator_of,
    combined_interpolator_of,
)

# Curves
from .curves import (
    YieldAndDiscountCurve,
    InterpolatedYieldCurve,
    InterpolatedDiscountCurve,
    CurveGeneratorConfig,
)

# Instruments
from .instruments import (
    OvernightIndex,
    IborIndex,
    par_spread,
    par_spread_sensitivity,
    DepositNode,
    FraNode,
    FutureNode,
    OisNode,
    IborSwapNode,
)

# Calibration
from .calibration import (
    newton_root,
    SingleCurveBundle,
    MultiCurveBundle,
    CurveBuildingBlock,
    CurveBuildingBlockBundle,
    MulticurveBuildingRepository,
    CurveSetUp,
    CurveBuilder,
)

__all__ = [
    "__version__",
    "CurveCalibrationError",
    "InputValidationError",
    "UnknownIdentifierError",
    "CurveConfigurationError",
    "InputTooLargeError",
    "NonConvergenceError",
    "SingularJacobianError",
    "CalibrationSettings",
    "MulticurveProvider",
    "Interpolator1D",
    "Interpolator1DDataBundle",
    "CombinedInterpolatorExtrapolator",
    "interpolator_of",
    "extrapolator_of",
    "combined_interpolator_of",
    "YieldAndDiscountCurve",
    "InterpolatedYieldCurve",
    "InterpolatedDiscountCurve",
    "CurveGeneratorConfig",
    "OvernightIndex",
    "IborIndex",
    "par_spread",
    "par_spread_sensitivity",
    "DepositNode",
    "FraNode",
    "FutureNode",
    "OisNode",
    "IborSwapNode",
    "newton_root",
    "SingleCurveBundle",
    "MultiCurveBundle",
    "CurveBuildingBlock",
    "CurveBuildingBlockBundle",
    "MulticurveBuildingRepository",
    "CurveSetUp",
    "CurveBuilder",
]
