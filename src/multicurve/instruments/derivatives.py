"""
Calibration instruments as time-based cash-flow descriptions.

All times are year fractions from the valuation time and accrual factors
are given explicitly, so no calendar or day count logic is involved here.
The set of instrument types is closed:
- Cash: deposit from start to end on the discounting curve
- ForwardRateAgreement: index forward over [start, end]
- InterestRateFuture: 1 - index forward, quoted as a price
- FixedFloatSwap: fixed leg against an overnight-compounded or Ibor leg
"""

from dataclasses import dataclass
from typing import Tuple, Union

from ..errors import InputValidationError


@dataclass(frozen=True)
class OvernightIndex:
    """Overnight index (e.g. SOFR, ESTR)."""
    name: str
    currency: str


@dataclass(frozen=True)
class IborIndex:
    """
    Term index (e.g. EURIBOR 6M).

    Attributes:
        name: Index name
        currency: Currency code
        tenor: Length of the underlying deposit in years
    """
    name: str
    currency: str
    tenor: float


@dataclass(frozen=True)
class AccrualPeriod:
    """One coupon period paid at its end."""
    start: float
    end: float
    accrual: float

    def __post_init__(self):
        if self.end <= self.start:
            raise InputValidationError(
                f"Accrual period end {self.end} must be after start {self.start}"
            )
        if self.accrual <= 0:
            raise InputValidationError("Accrual factor must be positive")

    @classmethod
    def between(cls, start: float, end: float) -> "AccrualPeriod":
        """Period whose accrual factor is its length in years."""
        return cls(start, end, end - start)


def _check_period(start: float, end: float, accrual: float):
    if start < 0:
        raise InputValidationError("Instrument start must not be before the valuation time")
    if end <= start:
        raise InputValidationError(f"Instrument end {end} must be after start {start}")
    if accrual <= 0:
        raise InputValidationError("Accrual factor must be positive")


@dataclass(frozen=True)
class Cash:
    """
    Deposit: 1 lent at start, 1 + rate * accrual repaid at end.

    Par rate: (P(start) / P(end) - 1) / accrual on the discounting curve.
    """
    currency: str
    start: float
    end: float
    accrual: float
    rate: float

    def __post_init__(self):
        _check_period(self.start, self.end, self.accrual)

    @property
    def maturity(self) -> float:
        return self.end


@dataclass(frozen=True)
class ForwardRateAgreement:
    """FRA on an index over [start, end]; the quote is the fixed rate."""
    index: Union[OvernightIndex, IborIndex]
    start: float
    end: float
    accrual: float
    rate: float

    def __post_init__(self):
        _check_period(self.start, self.end, self.accrual)

    @property
    def maturity(self) -> float:
        return self.end


@dataclass(frozen=True)
class InterestRateFuture:
    """
    Rate future quoted as a price, 1 - forward.

    No convexity adjustment is applied.
    """
    index: Union[OvernightIndex, IborIndex]
    start: float
    end: float
    accrual: float
    price: float

    def __post_init__(self):
        _check_period(self.start, self.end, self.accrual)

    @property
    def maturity(self) -> float:
        return self.end


@dataclass(frozen=True)
class OvernightCompoundedLeg:
    """Floating leg paying the compounded overnight rate of each period."""
    index: OvernightIndex
    periods: Tuple[AccrualPeriod, ...]


@dataclass(frozen=True)
class IborLeg:
    """Floating leg paying the index forward fixed over each period."""
    index: IborIndex
    periods: Tuple[AccrualPeriod, ...]


@dataclass(frozen=True)
class FixedFloatSwap:
    """
    Fixed against floating swap.

    Par rate: PV(floating leg) / annuity of the fixed leg, both discounted on
    the currency's discounting curve.

    Attributes:
        currency: Discounting currency
        fixed_rate: Quoted fixed rate
        fixed_periods: Fixed leg periods
        floating_leg: Overnight compounded or Ibor leg
    """
    currency: str
    fixed_rate: float
    fixed_periods: Tuple[AccrualPeriod, ...]
    floating_leg: Union[OvernightCompoundedLeg, IborLeg]

    def __post_init__(self):
        if not self.fixed_periods or not self.floating_leg.periods:
            raise InputValidationError("Swap legs need at least one period")
        if self.fixed_periods[0].start < 0 or self.floating_leg.periods[0].start < 0:
            raise InputValidationError("Swap must not start before the valuation time")

    @property
    def maturity(self) -> float:
        return max(self.fixed_periods[-1].end, self.floating_leg.periods[-1].end)


InstrumentDerivative = Union[Cash, ForwardRateAgreement, InterestRateFuture, FixedFloatSwap]


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
]
