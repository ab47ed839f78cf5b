"""
Instruments package - calibration instruments and their pricing.

Provides:
- Instrument derivatives (Cash, FRA, futures, fixed/float swaps)
- par_spread / par_spread_sensitivity calculators
- Node templates building instruments from tenors and quotes
"""

from .derivatives import (
    OvernightIndex,
    IborIndex,
    AccrualPeriod,
    Cash,
    ForwardRateAgreement,
    InterestRateFuture,
    OvernightCompoundedLeg,
    IborLeg,
    FixedFloatSwap,
    InstrumentDerivative,
)
from .calculators import (
    MulticurveSensitivity,
    quote_of,
    par_rate,
    par_spread,
    par_spread_sensitivity,
    parameter_sensitivity,
)
from .nodes import DepositNode, FraNode, FutureNode, OisNode, IborSwapNode

__all__ = [
    "OvernightIndex",
    "IborIndex",
    "AccrualPeriod",
    "Cash",
    "ForwardRateAgreement",
    "InterestRateFuture",
    "OvernightCompoundedLeg",
    "IborLeg",
    "FixedFloatSwap",
    "InstrumentDerivative",
    "MulticurveSensitivity",
    "quote_of",
    "par_rate",
    "par_spread",
    "par_spread_sensitivity",
    "parameter_sensitivity",
    "DepositNode",
    "FraNode",
    "FutureNode",
    "OisNode",
    "IborSwapNode",
]
