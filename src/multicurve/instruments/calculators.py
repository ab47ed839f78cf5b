"""
Par spread and curve sensitivity calculators.

For every calibration instrument:
- par_rate: the market rate (or price) implied by the curves
- par_spread: par_rate minus the instrument's quote; zero at calibration
- par_spread_sensitivity: derivative of the par spread with respect to the
  continuously compounded zero rate of each curve at each time it is read

Point sensitivities follow from dP(0,t)/dr(t) = -t P(0,t). They are turned
into a row over curve parameters by ``parameter_sensitivity``.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..errors import InputValidationError
from ..provider import MulticurveProvider
from .derivatives import (
    Cash,
    FixedFloatSwap,
    ForwardRateAgreement,
    IborLeg,
    InterestRateFuture,
    OvernightCompoundedLeg,
)


class MulticurveSensitivity:
    """
    Point sensitivities by curve name.

    Each curve maps to a list of (time, d value / d zero rate at time).
    """

    def __init__(self, sensitivities: Optional[Mapping[str, Iterable[Tuple[float, float]]]] = None):
        self._data: Dict[str, List[Tuple[float, float]]] = {
            name: list(points) for name, points in (sensitivities or {}).items()
        }

    @property
    def curve_names(self) -> List[str]:
        return list(self._data)

    def points(self, curve_name: str) -> List[Tuple[float, float]]:
        return list(self._data.get(curve_name, []))

    def items(self):
        return [(name, list(points)) for name, points in self._data.items()]

    def plus(self, other: "MulticurveSensitivity") -> "MulticurveSensitivity":
        combined = {name: list(points) for name, points in self._data.items()}
        for name, points in other._data.items():
            combined.setdefault(name, []).extend(points)
        return MulticurveSensitivity(combined)

    def multiplied_by(self, factor: float) -> "MulticurveSensitivity":
        return MulticurveSensitivity({
            name: [(t, factor * v) for t, v in points] for name, points in self._data.items()
        })

    def cleaned(self) -> "MulticurveSensitivity":
        """Points at equal times summed, sorted by time, zero entries dropped."""
        out = {}
        for name, points in self._data.items():
            by_time: Dict[float, float] = defaultdict(float)
            for t, v in points:
                by_time[t] += v
            merged = [(t, v) for t, v in sorted(by_time.items()) if v != 0.0]
            if merged:
                out[name] = merged
        return MulticurveSensitivity(out)

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"curve": name, "time": t, "sensitivity": v}
            for name, points in self._data.items()
            for t, v in points
        ]
        return pd.DataFrame(rows, columns=["curve", "time", "sensitivity"])

    def __repr__(self) -> str:
        return f"MulticurveSensitivity({self._data})"


class _PointCollector:
    """Accumulates d value / d P(0,t) and converts to zero-rate sensitivities."""

    def __init__(self, provider: MulticurveProvider):
        self.provider = provider
        self._points: Dict[str, List[Tuple[float, float]]] = defaultdict(list)

    def add(self, curve_name: str, t: float, d_value_d_df: float):
        if t <= 0:
            # P(0, t) = 1, no rate dependence
            return
        df = self.provider.curve(curve_name).discount_factor(t)
        self._points[curve_name].append((t, -t * df * d_value_d_df))

    def result(self) -> MulticurveSensitivity:
        return MulticurveSensitivity(self._points).cleaned()


def _forward_ratio(provider: MulticurveProvider, index, start: float, end: float):
    curve = provider.forward_curve(index)
    return provider.forward_curve_name(index), curve.discount_factor(start), curve.discount_factor(end)


def _floating_coupons(leg) -> List[Tuple[float, float, float, float]]:
    """(fixing start, fixing end, coupon factor, payment time) per period."""
    if isinstance(leg, OvernightCompoundedLeg):
        return [(p.start, p.end, 1.0, p.end) for p in leg.periods]
    if isinstance(leg, IborLeg):
        tenor = leg.index.tenor
        return [(p.start, p.start + tenor, p.accrual / tenor, p.end) for p in leg.periods]
    raise InputValidationError(f"Unsupported floating leg: {type(leg).__name__}")


def _swap(instrument: FixedFloatSwap, provider: MulticurveProvider, collector=None) -> float:
    disc_name = provider.discounting_curve_name(instrument.currency)
    disc = provider.curve(disc_name)

    annuity = 0.0
    for p in instrument.fixed_periods:
        annuity += p.accrual * disc.discount_factor(p.end)

    coupons = []
    floating_pv = 0.0
    for start, end, factor, pay in _floating_coupons(instrument.floating_leg):
        fwd_name, f_start, f_end = _forward_ratio(provider, instrument.floating_leg.index, start, end)
        df_pay = disc.discount_factor(pay)
        floating_pv += df_pay * factor * (f_start / f_end - 1)
        coupons.append((fwd_name, start, end, factor, pay, f_start, f_end, df_pay))

    if annuity <= 0:
        raise InputValidationError("Swap fixed leg annuity must be positive")
    par = floating_pv / annuity

    if collector is not None:
        for fwd_name, start, end, factor, pay, f_start, f_end, df_pay in coupons:
            collector.add(disc_name, pay, factor * (f_start / f_end - 1) / annuity)
            collector.add(fwd_name, start, df_pay * factor / f_end / annuity)
            collector.add(fwd_name, end, -df_pay * factor * f_start / f_end ** 2 / annuity)
        for p in instrument.fixed_periods:
            collector.add(disc_name, p.end, -par * p.accrual / annuity)
    return par


def _simple_rate(curve_name, df_start, df_end, start, end, accrual, collector, sign=1.0):
    rate = (df_start / df_end - 1) / accrual
    if collector is not None:
        collector.add(curve_name, start, sign / (accrual * df_end))
        collector.add(curve_name, end, -sign * df_start / (accrual * df_end ** 2))
    return rate


def _par_rate(instrument, provider: MulticurveProvider, collector=None) -> float:
    if isinstance(instrument, Cash):
        name = provider.discounting_curve_name(instrument.currency)
        curve = provider.curve(name)
        return _simple_rate(name, curve.discount_factor(instrument.start),
                            curve.discount_factor(instrument.end),
                            instrument.start, instrument.end, instrument.accrual, collector)
    elif isinstance(instrument, ForwardRateAgreement):
        name, f_start, f_end = _forward_ratio(provider, instrument.index,
                                              instrument.start, instrument.end)
        return _simple_rate(name, f_start, f_end, instrument.start, instrument.end,
                            instrument.accrual, collector)
    elif isinstance(instrument, InterestRateFuture):
        name, f_start, f_end = _forward_ratio(provider, instrument.index,
                                              instrument.start, instrument.end)
        return 1.0 - _simple_rate(name, f_start, f_end, instrument.start, instrument.end,
                                  instrument.accrual, collector, sign=-1.0)
    elif isinstance(instrument, FixedFloatSwap):
        return _swap(instrument, provider, collector)
    raise InputValidationError(f"Unsupported instrument type: {type(instrument).__name__}")


def quote_of(instrument) -> float:
    """Market quote carried by the instrument (rate, or price for futures)."""
    if isinstance(instrument, (Cash, ForwardRateAgreement)):
        return instrument.rate
    elif isinstance(instrument, InterestRateFuture):
        return instrument.price
    elif isinstance(instrument, FixedFloatSwap):
        return instrument.fixed_rate
    raise InputValidationError(f"Unsupported instrument type: {type(instrument).__name__}")


def par_rate(instrument, provider: MulticurveProvider) -> float:
    """Par rate implied by the curves (a price for futures)."""
    return _par_rate(instrument, provider)


def par_spread(instrument, provider: MulticurveProvider) -> float:
    """
    Par rate minus quote.

    Args:
        instrument: Calibration instrument
        provider: Curves to price with

    Returns:
        Zero when the curves reprice the instrument to its quote
    """
    return _par_rate(instrument, provider) - quote_of(instrument)


def par_spread_sensitivity(instrument, provider: MulticurveProvider) -> MulticurveSensitivity:
    """Sensitivity of the par spread to the zero rates of every curve used."""
    collector = _PointCollector(provider)
    _par_rate(instrument, provider, collector)
    return collector.result()


def parameter_sensitivity(
    sensitivity: MulticurveSensitivity,
    provider: MulticurveProvider,
    layout: Mapping[str, Tuple[int, int]],
    width: Optional[int] = None,
) -> np.ndarray:
    """
    Point sensitivities converted to a row over curve parameters.

    Args:
        sensitivity: Point sensitivities by curve name
        provider: Curves the points were computed with
        layout: Curve name -> (start column, number of parameters)
        width: Row length (default: end of the last layout entry)

    Returns:
        Row of d value / d parameter; curves missing from layout are fixed
        and contribute nothing
    """
    if width is None:
        width = max((start + n for start, n in layout.values()), default=0)
    row = np.zeros(width)
    for name, points in sensitivity.items():
        curve = provider.curve(name)
        for t, value in points:
            if name in layout:
                start, n = layout[name]
                row[start:start + n] += value * curve.parameter_sensitivity(t)
            for base, base_sens in curve.underlying_parameter_sensitivities(t).items():
                if base in layout:
                    start, n = layout[base]
                    row[start:start + n] += value * base_sens
    return row


__all__ = [
    "MulticurveSensitivity",
    "quote_of",
    "par_rate",
    "par_spread",
    "par_spread_sensitivity",
    "parameter_sensitivity",
]
