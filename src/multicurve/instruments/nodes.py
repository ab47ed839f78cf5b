"""
Curve node templates.

A node describes a quoted instrument by tenors (deposit 3M, OIS 5Y, ...)
and turns a market quote into the instrument derivative used in the
calibration. It also gives the rough zero-rate guess the curve generator
starts from.

Schedules are generated in time space from the valuation time: a tenor
"3M" is 0.25 years and swap periods are rolled backward from maturity.
"""

from dataclasses import dataclass

import numpy as np

from ..tenors import payment_schedule, tenor_to_years
from .derivatives import (
    AccrualPeriod,
    Cash,
    FixedFloatSwap,
    ForwardRateAgreement,
    IborIndex,
    IborLeg,
    InterestRateFuture,
    OvernightCompoundedLeg,
    OvernightIndex,
)


def _periods(start: float, end: float, tenor: str):
    return tuple(AccrualPeriod.between(s, e)
                 for s, e in payment_schedule(start, end, tenor_to_years(tenor)))


def _continuous(rate: float, accrual: float) -> float:
    """Simple rate over accrual converted to continuous compounding."""
    return float(np.log1p(rate * accrual) / accrual)


@dataclass(frozen=True)
class DepositNode:
    """
    Deposit from the valuation time (plus optional start) to tenor.

    Attributes:
        currency: Currency code
        tenor: Deposit length (e.g. "ON", "3M")
        start_tenor: Forward start (default spot)
    """
    currency: str
    tenor: str
    start_tenor: str = "0D"

    @property
    def start(self) -> float:
        return tenor_to_years(self.start_tenor)

    @property
    def maturity(self) -> float:
        return self.start + tenor_to_years(self.tenor)

    def to_derivative(self, quote: float) -> Cash:
        return Cash(self.currency, self.start, self.maturity, self.maturity - self.start, quote)

    def initial_rate(self, quote: float) -> float:
        return _continuous(quote, self.maturity - self.start)


@dataclass(frozen=True)
class FraNode:
    """FRA from start_tenor to end_tenor on an index (e.g. 3M x 6M)."""
    index: IborIndex
    start_tenor: str
    end_tenor: str

    @property
    def start(self) -> float:
        return tenor_to_years(self.start_tenor)

    @property
    def maturity(self) -> float:
        return tenor_to_years(self.end_tenor)

    def to_derivative(self, quote: float) -> ForwardRateAgreement:
        return ForwardRateAgreement(self.index, self.start, self.maturity,
                                    self.maturity - self.start, quote)

    def initial_rate(self, quote: float) -> float:
        return _continuous(quote, self.maturity - self.start)


@dataclass(frozen=True)
class FutureNode:
    """
    Rate future fixing over [start, start + tenor], quoted as a price.

    Attributes:
        index: Underlying index
        start: Fixing period start in years
        tenor: Underlying deposit length
    """
    index: IborIndex
    start: float
    tenor: str = "3M"

    @property
    def maturity(self) -> float:
        return self.start + tenor_to_years(self.tenor)

    def to_derivative(self, quote: float) -> InterestRateFuture:
        return InterestRateFuture(self.index, self.start, self.maturity,
                                  self.maturity - self.start, quote)

    def initial_rate(self, quote: float) -> float:
        return _continuous(1.0 - quote, self.maturity - self.start)


@dataclass(frozen=True)
class OisNode:
    """
    Overnight index swap from spot to tenor.

    Attributes:
        index: Overnight index of the floating leg
        tenor: Swap maturity
        payment_tenor: Period length of both legs
    """
    index: OvernightIndex
    tenor: str
    payment_tenor: str = "1Y"

    @property
    def maturity(self) -> float:
        return tenor_to_years(self.tenor)

    def to_derivative(self, quote: float) -> FixedFloatSwap:
        periods = _periods(0.0, self.maturity, self.payment_tenor)
        return FixedFloatSwap(self.index.currency, quote, periods,
                              OvernightCompoundedLeg(self.index, periods))

    def initial_rate(self, quote: float) -> float:
        return _continuous(quote, min(self.maturity, tenor_to_years(self.payment_tenor)))


@dataclass(frozen=True)
class IborSwapNode:
    """
    Fixed against Ibor swap from spot to tenor.

    The floating leg pays every index tenor; the fixed leg every
    fixed_tenor.
    """
    index: IborIndex
    tenor: str
    fixed_tenor: str = "1Y"

    @property
    def maturity(self) -> float:
        return tenor_to_years(self.tenor)

    def to_derivative(self, quote: float) -> FixedFloatSwap:
        fixed = _periods(0.0, self.maturity, self.fixed_tenor)
        floating = tuple(AccrualPeriod.between(s, e)
                         for s, e in payment_schedule(0.0, self.maturity, self.index.tenor))
        return FixedFloatSwap(self.index.currency, quote, fixed, IborLeg(self.index, floating))

    def initial_rate(self, quote: float) -> float:
        return _continuous(quote, min(self.maturity, tenor_to_years(self.fixed_tenor)))


__all__ = [
    "DepositNode",
    "FraNode",
    "FutureNode",
    "OisNode",
    "IborSwapNode",
]
